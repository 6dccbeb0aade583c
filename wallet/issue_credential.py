import argparse
import logging
from pathlib import Path

import requests

from core.config import load_settings
from core.logging import setup_logging

logger = logging.getLogger(__name__)

def issue(name, birth_date=None, birth_year=None, issuer_url=None, timeout=5):
    """
    Ask the issuer for a credential. A birth_date ("YYYY-MM-DD") gets a
    signed credential, a birth_year gets a commitment proof.
    Returns the issuer response: {"credential": ..., "transport": ...}
    """
    if (birth_date is None) == (birth_year is None):
        raise ValueError("pass exactly one of birth_date or birth_year")
    issuer_url = issuer_url or load_settings().issuer_url

    if birth_date is not None:
        r = requests.post(f"{issuer_url}/issue", json={"name": name, "birth_date": birth_date}, timeout=timeout)
    else:
        r = requests.post(f"{issuer_url}/issue/zk", json={"name": name, "birth_year": birth_year}, timeout=timeout)
    r.raise_for_status()
    return r.json()

if __name__ == "__main__":
    p = argparse.ArgumentParser()
    p.add_argument("--name", required=True)
    kind = p.add_mutually_exclusive_group(required=True)
    kind.add_argument("--birth_date", help="YYYY-MM-DD, signed credential")
    kind.add_argument("--birth_year", type=int, help="commitment proof credential")
    p.add_argument("--out", type=Path, default=None, help="Write the QR transport string here")
    args = p.parse_args()

    settings = load_settings()
    setup_logging(settings.log_level, json_format=settings.log_json)

    bundle = issue(args.name, birth_date=args.birth_date, birth_year=args.birth_year, issuer_url=settings.issuer_url)
    if args.out:
        args.out.write_text(bundle["transport"], encoding="utf-8")
        print("QR payload written to", args.out)
    else:
        print(bundle["transport"])
