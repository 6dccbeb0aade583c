import logging
from typing import Optional, Union

from Crypto.Signature import eddsa
from Crypto.PublicKey import ECC

from credcrypto.canonical import canonicalize
from credcrypto.encoding import hex_decode
from credcrypto.keys import KeyProvider, import_public_key
from issuer.issue import SignedCredential, VerifiableCredential

logger = logging.getLogger(__name__)

SIGNATURE_LEN = 64

def ed25519_sign(message: bytes, sk: ECC.EccKey) -> bytes:
    """
    Standard Ed25519 over the raw message bytes (RFC8032).
    DO NOT pre-hash here; a plain ed25519.verify(sig, msg, pk) must accept it.
    """
    signer = eddsa.new(sk, mode="rfc8032")
    return signer.sign(message)

def ed25519_verify(message: bytes, sig: bytes, pk: ECC.EccKey) -> bool:
    """
    Verify standard Ed25519 signature over raw message bytes.
    """
    try:
        verifier = eddsa.new(pk, mode="rfc8032")
        verifier.verify(message, sig)
        return True
    except ValueError:
        return False

class SignatureEngine:
    """Signs and verifies the canonical serialization of a credential."""

    def __init__(self, key_provider: Optional[KeyProvider] = None):
        # verifier-side engines only hold a public key, passed to verify()
        self.key_provider = key_provider

    def sign(self, credential: VerifiableCredential) -> SignedCredential:
        if self.key_provider is None:
            raise ValueError("SignatureEngine has no key provider to sign with")
        msg = canonicalize(credential.to_wire())
        signature = ed25519_sign(msg, self.key_provider.signing_key())
        return SignedCredential(payload=credential, signature=signature.hex())

    def verify(
        self,
        credential: VerifiableCredential,
        signature_hex: str,
        public_key: Union[bytes, str, ECC.EccKey, None] = None,
    ) -> bool:
        """
        Never raises. Malformed hex, a payload that cannot be serialized, a bad or
        wrong public key, or any changed bit all give False.
        """
        try:
            msg = canonicalize(credential.to_wire())
            sig = hex_decode(signature_hex, SIGNATURE_LEN)
            if public_key is None:
                if self.key_provider is None:
                    raise ValueError("no public key to verify against")
                pk = self.key_provider.verifying_key()
            else:
                pk = import_public_key(public_key)
        except ValueError as e:
            logger.debug("Signature input rejected: %s", e)
            return False
        return ed25519_verify(msg, sig, pk)
