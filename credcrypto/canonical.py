import json
from typing import Any

def canonicalize(obj: Any) -> bytes:
    """
        Canonical JSON encoding for signature and verification.
        -keys are NOT sorted: callers build the dict in its fixed wire order,
         matching a plain JSON.stringify of the same record
        -separators = (',', ':') removes whitespace variations
        -ensure_ascii = False keeps UTF-8 stable (then encode to UTF-8)
    """
    return json.dumps(
        obj,
        separators=(',', ':'),
        ensure_ascii=False
    ).encode('utf-8')

def canonical_text(obj: Any) -> str:
    return canonicalize(obj).decode('utf-8')
