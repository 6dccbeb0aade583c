import argparse
import json
import sys
from pathlib import Path

from core.config import load_settings
from core.logging import setup_logging
from credcrypto.keys import KeyProvider
from verifier.validator import CredentialValidator

def main(argv=None) -> int:
    p = argparse.ArgumentParser(description="Verify a proof-of-age payload offline.")
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--payload", help="String read from the QR code")
    src.add_argument("--file", type=Path, help="File holding the QR string")
    p.add_argument("--public_key", default=None, help="Issuer public key (hex); defaults to ISSUER_PUBLIC_KEY, then the demo key")
    p.add_argument("--now", type=int, default=None, help="Override the clock (epoch seconds)")
    args = p.parse_args(argv)

    settings = load_settings()
    setup_logging(settings.log_level, json_format=settings.log_json)

    payload = args.payload if args.payload is not None else args.file.read_text(encoding="utf-8")
    public_key = args.public_key or settings.issuer_public_key
    if public_key is None:
        if settings.key_mode != "demo":
            p.error("--public_key (or ISSUER_PUBLIC_KEY) is required unless KEY_MODE=demo")
        public_key = KeyProvider("demo").public_key

    result = CredentialValidator(public_key=public_key).verify_transport(payload, now=args.now)
    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.accepted else 1

if __name__ == "__main__":
    sys.exit(main())
