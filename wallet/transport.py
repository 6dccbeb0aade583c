"""
Optical-code transport wrapper.

Stage 1 form:  "PA1:" + base64url(zlib(compact JSON))
Stage 2 form:  the JSON text itself

decode_transport() tries stage 1 and falls back to stage 2, reporting which
one produced the text. It does not parse JSON; that is the validator's job.
"""
import binascii
import logging
import zlib
from dataclasses import dataclass
from typing import Any, Union

from credcrypto.canonical import canonical_text
from credcrypto.encoding import b64url_decode, b64url_encode

logger = logging.getLogger(__name__)

PREFIX = "PA1:"
STAGE_COMPRESSED = "compressed"
STAGE_RAW = "raw"

# a QR code tops out near 3 KB; anything inflating past this is not ours
MAX_INFLATED_SIZE = 64 * 1024

@dataclass(frozen=True)
class DecodedPayload:
    text: str
    stage: str

def _to_text(obj: Any) -> str:
    if isinstance(obj, str):
        return obj
    if hasattr(obj, "to_wire"):
        obj = obj.to_wire()
    return canonical_text(obj)

def _inflate(data: bytes) -> bytes:
    d = zlib.decompressobj()
    out = d.decompress(data, MAX_INFLATED_SIZE)
    if d.unconsumed_tail:
        raise ValueError(f"inflated payload exceeds {MAX_INFLATED_SIZE} bytes")
    if not d.eof:
        raise zlib.error("truncated compressed payload")
    return out

def encode_for_transport(obj: Union[str, Any]) -> str:
    """Accepts JSON text, a wire dict, or a credential with to_wire()."""
    data = _to_text(obj).encode("utf-8")
    return PREFIX + b64url_encode(zlib.compress(data, 9))

def decode_transport(data: Union[str, bytes]) -> DecodedPayload:
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")
    data = data.strip()

    if data.startswith(PREFIX):
        try:
            text = _inflate(b64url_decode(data[len(PREFIX):])).decode("utf-8")
            return DecodedPayload(text=text, stage=STAGE_COMPRESSED)
        except (binascii.Error, zlib.error, UnicodeError, ValueError) as e:
            logger.warning("Compressed decode failed, falling back to raw text: %s", e)
    else:
        logger.debug("No transport prefix, treating payload as raw text")

    return DecodedPayload(text=data, stage=STAGE_RAW)
