import logging
import threading
from dataclasses import dataclass
from typing import Optional, Union

from Crypto.PublicKey import ECC
from Crypto.Random import get_random_bytes
from Crypto.Signature import eddsa

from credcrypto.encoding import hex_decode

logger = logging.getLogger(__name__)

KEY_LEN = 32

# Demo issuer seed for the prototype. NOT for production use: it is public.
DEMO_SEED = bytes([
    74, 72, 147, 198, 35, 77, 182, 204, 144, 172, 106, 178, 80, 13, 175, 106,
    221, 196, 43, 171, 135, 166, 46, 86, 127, 124, 27, 20, 138, 131, 179, 226,
])

@dataclass(frozen=True)
class KeyPair:
    private_key: bytes  # 32-byte Ed25519 seed
    public_key: bytes   # 32-byte encoded point

    @property
    def public_key_hex(self) -> str:
        return self.public_key.hex()

    def __repr__(self) -> str:
        return f"KeyPair(public_key={self.public_key_hex})"

def keypair_from_seed(seed: bytes) -> KeyPair:
    if len(seed) != KEY_LEN:
        raise ValueError(f"Ed25519 seed must be {KEY_LEN} bytes")
    sk = eddsa.import_private_key(seed)
    pk = sk.public_key().export_key(format="raw")
    return KeyPair(private_key=bytes(seed), public_key=pk)

def generate_keypair() -> KeyPair:
    """Fresh pair from the pycryptodome CSPRNG. RNG failure propagates."""
    return keypair_from_seed(get_random_bytes(KEY_LEN))

def import_public_key(public_key: Union[bytes, str, ECC.EccKey]) -> ECC.EccKey:
    """Accepts raw 32 bytes, their hex form, or an already imported key."""
    if isinstance(public_key, ECC.EccKey):
        return public_key
    if isinstance(public_key, str):
        public_key = hex_decode(public_key, KEY_LEN)
    return eddsa.import_public_key(public_key)

class KeyProvider:
    """
    Supplies the issuer key pair.

    mode="demo" derives the pair from DEMO_SEED (reproducible for tests and
    demos), mode="generated" draws a fresh seed once per provider.
    initialize() is idempotent and safe under concurrent first use; once the
    pair exists no lock is taken.
    """

    def __init__(self, mode: str = "demo"):
        if mode not in ("demo", "generated"):
            raise ValueError(f"unknown key mode {mode!r}")
        self.mode = mode
        self._keypair: Optional[KeyPair] = None
        self._init_lock = threading.Lock()

    def initialize(self) -> KeyPair:
        keypair = self._keypair
        if keypair is not None:
            return keypair
        with self._init_lock:
            if self._keypair is None:
                if self.mode == "demo":
                    self._keypair = keypair_from_seed(DEMO_SEED)
                else:
                    self._keypair = generate_keypair()
                logger.info("Issuer key initialized mode=%s pk=%s", self.mode, self._keypair.public_key_hex)
            return self._keypair

    def get_or_create_keypair(self) -> KeyPair:
        return self.initialize()

    @property
    def public_key(self) -> bytes:
        return self.initialize().public_key

    def signing_key(self) -> ECC.EccKey:
        return eddsa.import_private_key(self.initialize().private_key)

    def verifying_key(self) -> ECC.EccKey:
        return eddsa.import_public_key(self.initialize().public_key)
