from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Union

from core.errors import AgeRequirementError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_ISSUER_ID = "DemoIssuer"
MIN_AGE = 18

SECONDS_PER_DAY = 24 * 60 * 60
# Age divisor. Keep 365.25 days exactly so ages match across implementations.
SECONDS_PER_AGE_YEAR = 365.25 * SECONDS_PER_DAY
# Fixed validity window, not a calendar "+1 year".
CREDENTIAL_TTL_SECONDS = 365 * SECONDS_PER_DAY

WIRE_FIELDS = ("iss", "iat", "exp", "name", "over18")

Moment = Union[datetime, date, int, float]

def to_timestamp(moment: Moment) -> float:
    """
    Seconds since the epoch. A bare date is UTC midnight, a naive datetime
    is taken as UTC.
    """
    if isinstance(moment, datetime):
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.timestamp()
    if isinstance(moment, date):
        return datetime.combine(moment, time.min, tzinfo=timezone.utc).timestamp()
    if isinstance(moment, bool) or not isinstance(moment, (int, float)):
        raise TypeError(f"expected datetime, date or epoch seconds, got {type(moment).__name__}")
    return float(moment)

def compute_age(birth_date: Moment, now: Moment) -> int:
    return math.floor((to_timestamp(now) - to_timestamp(birth_date)) / SECONDS_PER_AGE_YEAR)

@dataclass(frozen=True)
class VerifiableCredential:
    issuer: str
    issued_at: int
    expires_at: int
    subject_name: str
    age_claim: bool

    def to_wire(self) -> Dict[str, Any]:
        # key order is part of the signed bytes
        return {
            "iss": self.issuer,
            "iat": self.issued_at,
            "exp": self.expires_at,
            "name": self.subject_name,
            "over18": self.age_claim,
        }

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "VerifiableCredential":
        return cls(
            issuer=data["iss"],
            issued_at=data["iat"],
            expires_at=data["exp"],
            subject_name=data["name"],
            age_claim=data["over18"],
        )

@dataclass(frozen=True)
class SignedCredential:
    payload: VerifiableCredential
    signature: str    # hex, 64 bytes

    def to_wire(self) -> Dict[str, Any]:
        return {"payload": self.payload.to_wire(), "signature": self.signature}

def build_credential(
    name: str,
    birth_date: Moment,
    now: Moment,
    issuer_id: str = DEFAULT_ISSUER_ID,
    min_age: int = MIN_AGE,
) -> VerifiableCredential:
    """
    Raises ValidationError for a blank name or a birth date after `now`, and
    AgeRequirementError below `min_age`: no under-age credential is ever built.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name must not be empty")

    now_ts = to_timestamp(now)
    if to_timestamp(birth_date) > now_ts:
        raise ValidationError("birth date is in the future")

    age = compute_age(birth_date, now_ts)
    if age < min_age:
        raise AgeRequirementError(age, min_age)

    issued_at = math.floor(now_ts)
    return VerifiableCredential(
        issuer=issuer_id,
        issued_at=issued_at,
        expires_at=issued_at + CREDENTIAL_TTL_SECONDS,
        subject_name=name.strip(),
        age_claim=age >= min_age,
    )

def issue_signed_credential(
    name: str,
    birth_date: Moment,
    now: Moment,
    engine,
    issuer_id: str = DEFAULT_ISSUER_ID,
) -> SignedCredential:
    """Build then sign with a SignatureEngine."""
    credential = build_credential(name, birth_date, now, issuer_id=issuer_id)
    signed = engine.sign(credential)
    logger.info(
        "Issued signed credential iss=%s iat=%d exp=%d",
        credential.issuer, credential.issued_at, credential.expires_at,
    )
    return signed
