import os
from credcrypto.hashing import sha256_hex

SALT_LEN = 32

def commit(value: str, salt: bytes) -> str:
    """
    Commitment = SHA256(value || salt), hex.
    Hiding while the salt stays private, binding by collision resistance.
    This is not ZK on its own.
    """
    data = value.encode("utf-8") + salt
    return sha256_hex(data)

def new_salt(n: int = SALT_LEN) -> bytes:
    return os.urandom(n)
