"""
Commitment-based proof of age.

The holder commits to their birth year with a random salt and publishes:

    publicSignals = ["1", referenceYear, minAge, commitment]

together with an integrity digest over {commitment, publicSignals}. A verifier
recomputes the digest and checks the signals without ever seeing the birth
year or the salt.

LIMITATION: this is not a zero-knowledge proof. The digest is keyless, so
anyone can build a self-consistent artefact for any commitment; it catches
tampering and internal inconsistency only. It also does not cover `metadata`.
Swap in a circuit-based backend through ProofBackend for real soundness.
"""

from __future__ import annotations

import hmac
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Protocol, Tuple

from core.errors import AgeRequirementError, ProofError, ValidationError
from credcrypto.canonical import canonicalize
from credcrypto.hashing import sha256_hex
from issuer.issue import (
    CREDENTIAL_TTL_SECONDS,
    DEFAULT_ISSUER_ID,
    MIN_AGE,
    Moment,
    to_timestamp,
)
from wallet.commitments import commit, new_salt

logger = logging.getLogger(__name__)

PROOF_PROTOCOL = "sha256-commitment"
AGE_CLAIM_FLAG = "1"

# years and ages; also keeps int() well under the digit-count limit
_UINT_RE = re.compile(r"0|[1-9][0-9]{0,8}")
_DIGEST_RE = re.compile(r"[0-9a-f]{64}")

@dataclass(frozen=True)
class IntegrityProof:
    protocol: str
    digest: str

    def to_wire(self) -> Dict[str, Any]:
        return {"protocol": self.protocol, "digest": self.digest}

@dataclass(frozen=True)
class ProofArtifacts:
    commitment: str
    proof: IntegrityProof
    public_signals: Tuple[str, ...]

@dataclass(frozen=True)
class ZKProof:
    proof: IntegrityProof
    public_signals: Tuple[str, ...]

    def to_wire(self) -> Dict[str, Any]:
        return {"proof": self.proof.to_wire(), "publicSignals": list(self.public_signals)}

@dataclass(frozen=True)
class ZKMetadata:
    issuer: str
    subject_name: str
    issued_at: int
    expires_at: int

    def to_wire(self) -> Dict[str, Any]:
        return {
            "iss": self.issuer,
            "name": self.subject_name,
            "iat": self.issued_at,
            "exp": self.expires_at,
        }

@dataclass(frozen=True)
class ZKCredential:
    zk_proof: ZKProof
    metadata: ZKMetadata
    commitment: str

    def to_wire(self) -> Dict[str, Any]:
        return {
            "zkProof": self.zk_proof.to_wire(),
            "metadata": self.metadata.to_wire(),
            "commitment": self.commitment,
        }

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "ZKCredential":
        zk = data["zkProof"]
        meta = data["metadata"]
        return cls(
            zk_proof=ZKProof(
                proof=IntegrityProof(
                    protocol=zk["proof"]["protocol"],
                    digest=zk["proof"]["digest"],
                ),
                public_signals=tuple(zk["publicSignals"]),
            ),
            metadata=ZKMetadata(
                issuer=meta["iss"],
                subject_name=meta["name"],
                issued_at=meta["iat"],
                expires_at=meta["exp"],
            ),
            commitment=data["commitment"],
        )

class ProofBackend(Protocol):
    """What CredentialValidator needs from an age-proof scheme."""

    def generate(self, birth_year: int, reference_year: int, min_age: int = MIN_AGE) -> ProofArtifacts:
        ...

    def verify(self, zk_credential: ZKCredential) -> bool:
        ...

def _integrity_digest(commitment: str, public_signals) -> str:
    return sha256_hex(canonicalize({
        "commitment": commitment,
        "publicSignals": list(public_signals),
    }))

def _require_year(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer year")
    return value

class CommitmentProofEngine:
    """Salted SHA-256 commitment plus integrity digest. See module docstring."""

    def __init__(self, min_age: int = MIN_AGE):
        # floor enforced on verification: a proof for a lower age is rejected
        self.min_age = min_age

    def generate_proof(self, birth_year: int, reference_year: int, min_age: int = MIN_AGE) -> ProofArtifacts:
        birth_year = _require_year(birth_year, "birth_year")
        reference_year = _require_year(reference_year, "reference_year")

        age = reference_year - birth_year
        if age < min_age:
            raise AgeRequirementError(age, min_age)

        commitment = commit(str(birth_year), new_salt())
        public_signals = (AGE_CLAIM_FLAG, str(reference_year), str(min_age), commitment)
        proof = IntegrityProof(
            protocol=PROOF_PROTOCOL,
            digest=_integrity_digest(commitment, public_signals),
        )
        return ProofArtifacts(commitment=commitment, proof=proof, public_signals=public_signals)

    def check_proof(self, zk_credential: ZKCredential) -> None:
        """Raises ProofError naming the first failed check."""
        proof = zk_credential.zk_proof.proof
        signals = zk_credential.zk_proof.public_signals

        if proof.protocol != PROOF_PROTOCOL:
            raise ProofError(f"unsupported proof protocol {proof.protocol!r}")
        if len(signals) != 4 or not all(isinstance(s, str) for s in signals):
            raise ProofError("publicSignals must be four strings")

        flag, reference_year, min_age, signal_commitment = signals
        if flag != AGE_CLAIM_FLAG:
            raise ProofError("age claim flag is not set")
        if not _UINT_RE.fullmatch(reference_year) or not _UINT_RE.fullmatch(min_age):
            raise ProofError("referenceYear and minAge must be integer strings")
        if int(min_age) < self.min_age:
            raise ProofError(f"minAge {min_age} is below the required {self.min_age}")
        if not isinstance(zk_credential.commitment, str) or not _DIGEST_RE.fullmatch(zk_credential.commitment):
            raise ProofError("commitment is not a 64-char hex digest")
        if signal_commitment != zk_credential.commitment:
            raise ProofError("commitment does not match publicSignals")

        expected = _integrity_digest(zk_credential.commitment, signals)
        if not isinstance(proof.digest, str) or not hmac.compare_digest(proof.digest, expected):
            raise ProofError("integrity digest mismatch")

    def verify_proof(self, zk_credential: ZKCredential) -> bool:
        try:
            self.check_proof(zk_credential)
        except ProofError as e:
            logger.debug("Proof rejected: %s", e)
            return False
        return True

    # ProofBackend
    generate = generate_proof
    verify = verify_proof

def issue_zk_credential(
    name: str,
    birth_year: int,
    now: Moment,
    engine: ProofBackend = None,
    issuer_id: str = DEFAULT_ISSUER_ID,
    min_age: int = MIN_AGE,
) -> ZKCredential:
    """
    Build a ZKCredential for `name`. The reference year is the UTC year of
    `now`; the validity window matches signed credentials.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name must not be empty")
    birth_year = _require_year(birth_year, "birth_year")

    now_ts = to_timestamp(now)
    reference_year = datetime.fromtimestamp(now_ts, tz=timezone.utc).year
    if birth_year > reference_year:
        raise ValidationError("birth year is in the future")

    engine = engine or CommitmentProofEngine()
    artefacts = engine.generate(birth_year, reference_year, min_age)

    issued_at = int(now_ts)
    credential = ZKCredential(
        zk_proof=ZKProof(proof=artefacts.proof, public_signals=artefacts.public_signals),
        metadata=ZKMetadata(
            issuer=issuer_id,
            subject_name=name.strip(),
            issued_at=issued_at,
            expires_at=issued_at + CREDENTIAL_TTL_SECONDS,
        ),
        commitment=artefacts.commitment,
    )
    logger.info("Issued ZK credential iss=%s iat=%d ref_year=%d", issuer_id, issued_at, reference_year)
    return credential
