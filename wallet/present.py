import argparse
import json
from pathlib import Path

import requests

from core.config import load_settings

def present(transport: str, verifier_url=None, timeout=5) -> dict:
    """Submit a QR transport string to the verifier service, return its verdict."""
    verifier_url = verifier_url or load_settings().verifier_url
    r = requests.post(f"{verifier_url}/verify", json={"payload": transport}, timeout=timeout)
    r.raise_for_status()
    return r.json()

if __name__ == "__main__":
    p = argparse.ArgumentParser()
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--payload")
    src.add_argument("--file", type=Path)
    args = p.parse_args()

    transport = args.payload if args.payload is not None else args.file.read_text(encoding="utf-8").strip()
    verdict = present(transport)
    print(json.dumps(verdict, indent=2, sort_keys=True))
