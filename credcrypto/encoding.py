import base64
import string
from typing import Optional, Union

_HEX_CHARS = frozenset(string.hexdigits)

def b64url_encode(data: bytes) -> str:
    """Encode bytes to a URL-safe Base64 string without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b'=').decode('ascii')

def b64url_decode(s: Union[str, bytes]) -> bytes:
    if isinstance(s, bytes):
        s = s.decode("ascii")

    pad = "=" * ((4 - len(s) % 4) % 4)
    return base64.urlsafe_b64decode((s + pad).encode("ascii"))

def hex_decode(s: str, expected_len: Optional[int] = None) -> bytes:
    """
    Strict hex decode (bytes.fromhex tolerates whitespace, we don't).
    Raises ValueError on non-hex input or a byte length mismatch.
    """
    if not isinstance(s, str) or len(s) % 2 or not _HEX_CHARS.issuperset(s):
        raise ValueError("invalid hex string")
    raw = bytes.fromhex(s)
    if expected_len is not None and len(raw) != expected_len:
        raise ValueError(f"expected {expected_len} bytes, got {len(raw)}")
    return raw
