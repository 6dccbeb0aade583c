"""End-to-end verification: structure -> signature/proof -> expiry."""

from __future__ import annotations

import copy
import dataclasses
import json
import zlib

import pytest

from conftest import DAY, NOW_TS, flip_hex_char
from credcrypto.encoding import b64url_encode
from credcrypto.keys import KeyProvider
from credcrypto.signing import SignatureEngine
from issuer.issue import SignedCredential
from verifier.validator import CredentialValidator, VerificationResult, verify
from wallet.transport import PREFIX, encode_for_transport
from wallet.zk_proof import ZKCredential


# ---- signed credentials ----


def test_s1_issue_then_verify_same_instant(validator: CredentialValidator, signed_alice: SignedCredential) -> None:
    result = validator.verify(signed_alice.to_wire(), now=NOW_TS)
    assert result.valid is True
    assert result.expired is False
    assert result.reason is None
    assert result.variant == "signed"
    assert result.accepted
    assert result.credential == signed_alice.payload


def test_s3_flipped_signature_char(validator: CredentialValidator, signed_alice: SignedCredential) -> None:
    wire = signed_alice.to_wire()
    wire["signature"] = flip_hex_char(wire["signature"], 10)
    result = validator.verify(wire, now=NOW_TS)
    assert result.valid is False
    assert result.reason == "SignatureError"
    assert result.expired is False


def test_s4_expired_but_genuine(validator: CredentialValidator, signed_alice: SignedCredential) -> None:
    result = validator.verify(signed_alice.to_wire(), now=NOW_TS + 400 * DAY)
    assert result.valid is True
    assert result.expired is True
    assert result.reason is None
    assert not result.accepted


def test_forged_and_expired_reports_both(validator: CredentialValidator, signed_alice: SignedCredential) -> None:
    wire = signed_alice.to_wire()
    wire["payload"]["name"] = "Mallory"
    result = validator.verify(wire, now=NOW_TS + 400 * DAY)
    assert result.valid is False
    assert result.reason == "SignatureError"
    assert result.expired is True


def test_extended_expiry_is_caught(validator: CredentialValidator, signed_alice: SignedCredential) -> None:
    wire = signed_alice.to_wire()
    wire["payload"]["exp"] += 1000 * DAY
    result = validator.verify(wire, now=NOW_TS + 400 * DAY)
    assert result.valid is False
    assert result.expired is False


def test_wrong_issuer_key(signed_alice: SignedCredential) -> None:
    other = CredentialValidator(public_key=KeyProvider("generated").public_key)
    result = other.verify(signed_alice.to_wire(), now=NOW_TS)
    assert result.reason == "SignatureError"


def test_payload_key_order_does_not_matter(validator: CredentialValidator, signed_alice: SignedCredential) -> None:
    wire = signed_alice.to_wire()
    wire["payload"] = dict(reversed(list(wire["payload"].items())))
    assert validator.verify(wire, now=NOW_TS).valid is True


def test_one_shot_verify(signed_alice: SignedCredential, key_provider: KeyProvider) -> None:
    result = verify(signed_alice.to_wire(), NOW_TS, key_provider.public_key)
    assert result.accepted


@pytest.mark.parametrize("mutate", [
    lambda w: w.pop("signature"),
    lambda w: w.pop("payload"),
    lambda w: w.__setitem__("signature", 123),
    lambda w: w["payload"].pop("over18"),
    lambda w: w["payload"].__setitem__("iat", "1704067200"),
    lambda w: w["payload"].__setitem__("exp", True),
    lambda w: w["payload"].__setitem__("over18", "true"),
    lambda w: w["payload"].__setitem__("iss", ""),
    lambda w: w["payload"].__setitem__("extra", 1),
    lambda w: w["payload"].__setitem__("exp", w["payload"]["iat"]),
])
def test_structural_problems_are_format_errors(
    validator: CredentialValidator, signed_alice: SignedCredential, mutate,
) -> None:
    wire = signed_alice.to_wire()
    mutate(wire)
    result = validator.verify(wire, now=NOW_TS)
    assert result.reason == "FormatError"
    assert result.valid is False
    assert result.expired is False
    assert result.credential is None


@pytest.mark.parametrize("data", [None, [], "text", 42, {}, {"foo": "bar"}])
def test_non_credential_objects(validator: CredentialValidator, data) -> None:
    assert validator.verify(data, now=NOW_TS).reason == "FormatError"


# ---- commitment proofs ----


def test_zk_credential_verifies(validator: CredentialValidator, zk_alice: ZKCredential) -> None:
    result = validator.verify(zk_alice.to_wire(), now=NOW_TS)
    assert result.accepted
    assert result.variant == "zk"
    assert result.credential == zk_alice


def test_s5_tampered_min_age(validator: CredentialValidator, zk_alice: ZKCredential) -> None:
    wire = zk_alice.to_wire()
    wire["zkProof"]["publicSignals"][2] = "21"
    result = validator.verify(wire, now=NOW_TS)
    assert result.valid is False
    assert result.reason == "ProofError"
    assert result.expired is False


def test_zk_expired_independent_of_proof(validator: CredentialValidator, zk_alice: ZKCredential) -> None:
    wire = zk_alice.to_wire()
    result = validator.verify(wire, now=NOW_TS + 400 * DAY)
    assert (result.valid, result.expired) == (True, True)

    wire["zkProof"]["proof"]["digest"] = "0" * 64
    result = validator.verify(wire, now=NOW_TS + 400 * DAY)
    assert (result.valid, result.expired, result.reason) == (False, True, "ProofError")


@pytest.mark.parametrize("mutate", [
    lambda w: w.pop("commitment"),
    lambda w: w.pop("metadata"),
    lambda w: w["zkProof"].pop("publicSignals"),
    lambda w: w["zkProof"]["publicSignals"].pop(),
    lambda w: w["zkProof"]["publicSignals"].__setitem__(1, 2024),
    lambda w: w["zkProof"].__setitem__("proof", "opaque"),
    lambda w: w["metadata"].pop("exp"),
    lambda w: w["metadata"].__setitem__("iat", 1.5),
])
def test_zk_structural_problems(validator: CredentialValidator, zk_alice: ZKCredential, mutate) -> None:
    wire = copy.deepcopy(zk_alice.to_wire())
    mutate(wire)
    assert validator.verify(wire, now=NOW_TS).reason == "FormatError"


class _AlwaysValid:
    def generate(self, birth_year, reference_year, min_age=18):
        raise NotImplementedError

    def verify(self, zk_credential):
        return True


def test_proof_backend_is_pluggable(key_provider: KeyProvider, zk_alice: ZKCredential) -> None:
    wire = zk_alice.to_wire()
    wire["zkProof"]["proof"]["digest"] = "f" * 64
    validator = CredentialValidator(public_key=key_provider.public_key, proof_backend=_AlwaysValid())
    assert validator.verify(wire, now=NOW_TS).valid is True


# ---- transport entry point ----


def test_transport_compressed_stage(validator: CredentialValidator, signed_alice: SignedCredential) -> None:
    result = validator.verify_transport(encode_for_transport(signed_alice), now=NOW_TS)
    assert result.accepted
    assert result.decode_stage == "compressed"


def test_transport_raw_stage(validator: CredentialValidator, zk_alice: ZKCredential) -> None:
    result = validator.verify_transport(json.dumps(zk_alice.to_wire()), now=NOW_TS)
    assert result.accepted
    assert result.decode_stage == "raw"


@pytest.mark.parametrize("qr", ["", "hello world", "{not json", "PA1:garbage", "https://example.com"])
def test_non_json_transport_is_format_error(validator: CredentialValidator, qr: str) -> None:
    result = validator.verify_transport(qr, now=NOW_TS)
    assert result.reason == "FormatError"
    assert result.valid is False
    assert result.decode_stage == "raw"


def _with_signed(signed: SignedCredential, mutate) -> str:
    wire = signed.to_wire()
    mutate(wire)
    return json.dumps(wire)


def _with_zk(zk: ZKCredential, mutate) -> str:
    wire = zk.to_wire()
    mutate(wire)
    return json.dumps(wire)


HOSTILE_TRANSPORTS = {
    "lone-surrogate-name": lambda s, z: json.dumps(s.to_wire()).replace('"Alice"', '"\\ud800"'),
    "huge-integer-literal": lambda s, z: json.dumps(s.to_wire()).replace(str(NOW_TS), "9" * 5000, 1),
    "deep-nesting": lambda s, z: "[" * 200000,
    "non-utf8-compressed-body": lambda s, z: PREFIX + b64url_encode(zlib.compress(b"\xff" * 16)),
    "non-string-signature": lambda s, z: _with_signed(s, lambda w: w.__setitem__("signature", 12345)),
    "oversized-zk-signal": lambda s, z: _with_zk(z, lambda w: w["zkProof"]["publicSignals"].__setitem__(2, "9" * 5000)),
}


@pytest.mark.parametrize("build", list(HOSTILE_TRANSPORTS.values()), ids=list(HOSTILE_TRANSPORTS))
def test_hostile_transport_never_raises(
    validator: CredentialValidator, signed_alice: SignedCredential, zk_alice: ZKCredential, build,
) -> None:
    result = validator.verify_transport(build(signed_alice, zk_alice), now=NOW_TS)
    assert isinstance(result, VerificationResult)
    assert result.valid is False
    assert result.reason in ("FormatError", "ProofError")


def test_surrogate_in_metadata_is_format_error(validator: CredentialValidator, zk_alice: ZKCredential) -> None:
    wire = zk_alice.to_wire()
    wire["metadata"]["name"] = "\ud800"
    result = validator.verify(wire, now=NOW_TS)
    assert result.reason == "FormatError"
    assert "UTF-8" in result.detail


def test_genuine_under_18_claim_is_not_accepted(
    validator: CredentialValidator, signature_engine: SignatureEngine, signed_alice: SignedCredential,
) -> None:
    under = dataclasses.replace(signed_alice.payload, age_claim=False)
    result = validator.verify(signature_engine.sign(under).to_wire(), now=NOW_TS)
    assert result.valid is True
    assert result.expired is False
    assert result.over18 is False
    assert not result.accepted
    body = result.to_dict()
    assert (body["accepted"], body["over18"]) == (False, False)


def test_result_serializes(validator: CredentialValidator, signed_alice: SignedCredential) -> None:
    body = validator.verify(signed_alice.to_wire(), now=NOW_TS).to_dict()
    assert json.loads(json.dumps(body))["credential"]["name"] == "Alice"
    assert body["accepted"] is True


def test_bad_public_key_is_a_configuration_error() -> None:
    with pytest.raises(ValueError):
        CredentialValidator(public_key="abc")
