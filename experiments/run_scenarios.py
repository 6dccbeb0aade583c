"""
Runs the issuance/verification scenarios in-process and writes timings and
payload sizes to CSV. No services need to be running.

    python -m experiments.run_scenarios --n 20
"""
import argparse
from pathlib import Path

from core.errors import AgeRequirementError
from credcrypto.keys import KeyProvider
from credcrypto.signing import SignatureEngine
from experiments.metrics import size_bytes, timed, write_csv
from experiments.scenarios import DAY, NOW, SCENARIOS
from issuer.issue import issue_signed_credential, to_timestamp
from verifier.validator import CredentialValidator
from wallet.transport import decode_transport, encode_for_transport
from wallet.zk_proof import CommitmentProofEngine, issue_zk_credential

OUT = Path("experiments/results")
CSV_PATH = OUT / "scenarios.csv"

def _flip_hex(s: str, i: int = 0) -> str:
    c = "1" if s[i] != "1" else "2"
    return s[:i] + c + s[i + 1:]

def run_scenario(name, spec, key_provider, validator):
    now = to_timestamp(NOW)
    row = {"scenario": name, "variant": spec["variant"]}

    try:
        if spec["variant"] == "signed":
            engine = SignatureEngine(key_provider)
            cred, issue_ms = timed(lambda: issue_signed_credential(spec["name"], spec["birth_date"], now, engine))
        else:
            engine = CommitmentProofEngine()
            cred, issue_ms = timed(lambda: issue_zk_credential(spec["name"], spec["birth_year"], now, engine))
    except AgeRequirementError as e:
        row.update({"issued": False, "reason": e.reason})
        return row

    wire = cred.to_wire()
    if spec.get("flip_signature"):
        wire["signature"] = _flip_hex(wire["signature"])
    if "set_min_age" in spec:
        wire["zkProof"]["publicSignals"][2] = spec["set_min_age"]

    transport = encode_for_transport(wire)
    verify_now = now + spec.get("verify_after_days", 0) * DAY
    result, verify_ms = timed(lambda: validator.verify_transport(transport, now=verify_now))

    row.update({
        "issued": True,
        "valid": result.valid,
        "expired": result.expired,
        "reason": result.reason,
        "issue_ms": round(issue_ms, 3),
        "verify_ms": round(verify_ms, 3),
        "json_bytes": size_bytes(decode_transport(transport).text),
        "transport_bytes": size_bytes(transport),
    })
    return row

def main(n=10, out=CSV_PATH):
    key_provider = KeyProvider("demo")
    validator = CredentialValidator(public_key=key_provider.public_key)

    rows = []
    for name, spec in SCENARIOS.items():
        for _ in range(n):
            rows.append(run_scenario(name, spec, key_provider, validator))

    write_csv(rows, out)
    print("Wrote:", out)
    print("Rows:", len(rows))
    return rows

if __name__ == "__main__":
    p = argparse.ArgumentParser()
    p.add_argument("--n", type=int, default=20)
    p.add_argument("--out", type=Path, default=CSV_PATH)
    args = p.parse_args()
    main(n=args.n, out=args.out)
