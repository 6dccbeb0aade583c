"""
Verification of scanned proof-of-age payloads.

Checks always run in this order:

  1. structure   - missing or mistyped fields -> FormatError, stop here
  2. crypto      - Ed25519 signature (signed) or commitment proof (zk);
                   sets `valid`, reason SignatureError / ProofError
  3. expiry      - always evaluated after step 2, sets `expired`

so a forged-but-current credential and a genuine-but-expired one give
different results. Nothing raises out of verify() / verify_transport().
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from Crypto.PublicKey import ECC

from core.errors import CredentialError, FormatError, ProofError, SignatureError
from credcrypto.keys import import_public_key
from credcrypto.signing import SignatureEngine
from issuer.issue import WIRE_FIELDS, Moment, VerifiableCredential, to_timestamp
from verifier.expiry import is_expired
from wallet.transport import decode_transport
from wallet.zk_proof import AGE_CLAIM_FLAG, CommitmentProofEngine, ProofBackend, ZKCredential

logger = logging.getLogger(__name__)

VARIANT_SIGNED = "signed"
VARIANT_ZK = "zk"

@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    expired: bool
    reason: Optional[str] = None
    variant: Optional[str] = None
    decode_stage: Optional[str] = None
    credential: Any = None
    detail: Optional[str] = None
    over18: bool = False

    @property
    def accepted(self) -> bool:
        return self.valid and not self.expired and self.over18

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "expired": self.expired,
            "accepted": self.accepted,
            "over18": self.over18,
            "reason": self.reason,
            "variant": self.variant,
            "decode_stage": self.decode_stage,
            "detail": self.detail,
            "credential": self.credential.to_wire() if self.credential is not None else None,
        }

def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)

def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise FormatError(msg)

def _require_text(value, msg: str) -> None:
    # lone surrogates survive json.loads but cannot be signed or hashed
    _require(isinstance(value, str), msg)
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise FormatError(f"{msg} (not valid UTF-8)") from None

def _require_window(iat, exp) -> None:
    _require(_is_int(iat) and _is_int(exp), "iat and exp must be integers")
    _require(exp > iat, "exp must be after iat")

def parse_signed(data: Dict[str, Any]) -> Tuple[VerifiableCredential, str]:
    payload = data.get("payload")
    signature = data.get("signature")
    _require(isinstance(payload, dict), "payload must be an object")
    _require_text(signature, "signature must be a string")
    _require(set(payload) == set(WIRE_FIELDS), f"payload fields must be exactly {list(WIRE_FIELDS)}")
    _require_text(payload["iss"], "iss must be a non-empty string")
    _require(payload["iss"] != "", "iss must be a non-empty string")
    _require_text(payload["name"], "name must be a string")
    _require(isinstance(payload["over18"], bool), "over18 must be a boolean")
    _require_window(payload["iat"], payload["exp"])
    return VerifiableCredential.from_wire(payload), signature

def parse_zk(data: Dict[str, Any]) -> ZKCredential:
    zk = data.get("zkProof")
    meta = data.get("metadata")
    _require(isinstance(zk, dict), "zkProof must be an object")
    _require(isinstance(meta, dict), "metadata must be an object")
    _require_text(data.get("commitment"), "commitment must be a string")

    proof = zk.get("proof")
    signals = zk.get("publicSignals")
    _require(isinstance(proof, dict), "zkProof.proof must be an object")
    _require_text(proof.get("protocol"), "zkProof.proof.protocol must be a string")
    _require_text(proof.get("digest"), "zkProof.proof.digest must be a string")
    _require(isinstance(signals, list) and len(signals) == 4, "publicSignals must be a list of four values")
    for s in signals:
        _require_text(s, "publicSignals must all be strings")

    _require_text(meta.get("iss"), "metadata.iss must be a non-empty string")
    _require(meta["iss"] != "", "metadata.iss must be a non-empty string")
    _require_text(meta.get("name"), "metadata.name must be a string")
    _require_window(meta.get("iat"), meta.get("exp"))
    return ZKCredential.from_wire(data)

class CredentialValidator:
    def __init__(
        self,
        public_key: Union[bytes, str, ECC.EccKey, None] = None,
        proof_backend: Optional[ProofBackend] = None,
        signature_engine: Optional[SignatureEngine] = None,
    ):
        # A bad public key is a configuration error, raise it now.
        self.public_key = import_public_key(public_key) if public_key is not None else None
        self.proof_backend = proof_backend or CommitmentProofEngine()
        self.signature_engine = signature_engine or SignatureEngine()

    def verify(self, data: Any, now: Optional[Moment] = None, decode_stage: Optional[str] = None) -> VerificationResult:
        now_ts = to_timestamp(now) if now is not None else None

        # 1. structure
        try:
            _require(isinstance(data, dict), "credential must be a JSON object")
            if "zkProof" in data:
                variant = VARIANT_ZK
                credential = parse_zk(data)
                record = credential.metadata
                over18 = credential.zk_proof.public_signals[0] == AGE_CLAIM_FLAG
            elif "payload" in data:
                variant = VARIANT_SIGNED
                credential, signature = parse_signed(data)
                record = credential
                over18 = credential.age_claim
            else:
                raise FormatError("neither a signed nor a zk credential")
        except FormatError as e:
            return self._finish(VerificationResult(
                valid=False, expired=False, reason=e.reason,
                decode_stage=decode_stage, detail=str(e),
            ))

        # 2. signature / proof
        reason = None
        detail = None
        try:
            if variant == VARIANT_SIGNED:
                if not self.signature_engine.verify(credential, signature, self.public_key):
                    raise SignatureError("issuer signature is invalid")
            else:
                if not self.proof_backend.verify(credential):
                    raise ProofError("age proof is invalid or was tampered with")
            valid = True
            if not over18:
                detail = "credential does not claim age over 18"
        except CredentialError as e:
            valid = False
            reason = e.reason
            detail = str(e)

        # 3. expiry, independent of step 2
        expired = is_expired(record, now_ts)

        return self._finish(VerificationResult(
            valid=valid,
            expired=expired,
            reason=reason,
            variant=variant,
            decode_stage=decode_stage,
            credential=credential,
            detail=detail,
            over18=over18,
        ))

    def verify_transport(self, qr_data: Union[str, bytes], now: Optional[Moment] = None) -> VerificationResult:
        """Entry point for the optical-code codec: transport string in, verdict out."""
        decoded = decode_transport(qr_data)
        try:
            data = json.loads(decoded.text)
        except (ValueError, RecursionError) as e:
            # JSONDecodeError, oversized integer literals, runaway nesting
            return self._finish(VerificationResult(
                valid=False, expired=False, reason=FormatError.__name__,
                decode_stage=decoded.stage, detail=f"payload is not JSON: {getattr(e, 'msg', e)}",
            ))
        return self.verify(data, now=now, decode_stage=decoded.stage)

    @staticmethod
    def _finish(result: VerificationResult) -> VerificationResult:
        level = logging.INFO if result.accepted else logging.WARNING
        logger.log(
            level, "Verification valid=%s expired=%s reason=%s",
            result.valid, result.expired, result.reason,
            extra={
                "variant": result.variant,
                "reason": result.reason,
                "decode_stage": result.decode_stage,
                "valid": result.valid,
                "expired": result.expired,
            },
        )
        return result

def verify(data: Any, now: Optional[Moment] = None, public_key=None) -> VerificationResult:
    """One-shot form of CredentialValidator(public_key).verify(data, now)."""
    return CredentialValidator(public_key=public_key).verify(data, now=now)
