from __future__ import annotations

import logging
import sys
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

# Ensure repo root is on sys.path so the top-level packages import under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.config import Settings  # noqa: E402
from credcrypto.keys import KeyProvider  # noqa: E402
from credcrypto.signing import SignatureEngine  # noqa: E402
from issuer.issue import SignedCredential, issue_signed_credential, to_timestamp  # noqa: E402
from verifier.validator import CredentialValidator  # noqa: E402
from wallet.zk_proof import CommitmentProofEngine, ZKCredential, issue_zk_credential  # noqa: E402

DAY = 24 * 60 * 60
NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)
NOW_TS = int(to_timestamp(NOW))
ALICE_BIRTH = date(2000, 1, 1)


def make_settings(**overrides) -> Settings:
    values = dict(
        app_env="test",
        log_level="info",
        log_json=False,
        issuer_id="DemoIssuer",
        key_mode="demo",
        issuer_port=5001,
        verifier_port=5002,
        issuer_url="http://issuer.test",
        verifier_url="http://verifier.test",
        issuer_public_key=None,
    )
    values.update(overrides)
    return Settings(**values)  # type: ignore[arg-type]


def flip_hex_char(s: str, index: int = 0) -> str:
    """Replace one hex digit with a different one."""
    c = "0" if s[index] != "0" else "1"
    return s[:index] + c + s[index + 1:]


@pytest.fixture(autouse=True)
def restore_root_logging():
    """setup_logging() replaces root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def key_provider() -> KeyProvider:
    return KeyProvider("demo")


@pytest.fixture
def signature_engine(key_provider: KeyProvider) -> SignatureEngine:
    return SignatureEngine(key_provider)


@pytest.fixture
def proof_engine() -> CommitmentProofEngine:
    return CommitmentProofEngine()


@pytest.fixture
def validator(key_provider: KeyProvider) -> CredentialValidator:
    return CredentialValidator(public_key=key_provider.public_key)


@pytest.fixture
def signed_alice(signature_engine: SignatureEngine) -> SignedCredential:
    return issue_signed_credential("Alice", ALICE_BIRTH, NOW, signature_engine)


@pytest.fixture
def zk_alice(proof_engine: CommitmentProofEngine) -> ZKCredential:
    return issue_zk_credential("Alice", 2000, NOW, proof_engine)
