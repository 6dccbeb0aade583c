"""
Error taxonomy for issuance and verification.

Issuance errors (ValidationError, AgeRequirementError) propagate to the caller
and stop credential creation. Verification errors (FormatError,
SignatureError, ProofError) are caught by the validator and reported as the
`reason` of a VerificationResult, using the class name.

Expiry is not an error: a genuine credential can be expired.
"""


class CredentialError(Exception):
    """Base class for all credential protocol errors."""

    @property
    def reason(self) -> str:
        return type(self).__name__


class ValidationError(CredentialError):
    """Bad issuance input (empty name, birth date in the future)."""


class AgeRequirementError(CredentialError):
    """Subject is below the minimum age; nothing is issued."""

    def __init__(self, age: int, min_age: int):
        super().__init__(f"age {age} is below the minimum of {min_age}")
        self.age = age
        self.min_age = min_age


class FormatError(CredentialError):
    """Decoded payload is not JSON or is missing/mistyped fields."""


class SignatureError(CredentialError):
    """Ed25519 signature did not verify."""


class ProofError(CredentialError):
    """Commitment proof is inconsistent or was tampered with."""
