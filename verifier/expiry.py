import time
from typing import Any, Mapping, Optional, Union

def expires_at_of(record: Union[Mapping[str, Any], Any]) -> int:
    if isinstance(record, Mapping):
        return record["exp"]
    return record.expires_at

def is_expired(record, now: Optional[float] = None) -> bool:
    """True once `now` is strictly past the record's expiry (epoch seconds)."""
    if now is None:
        now = time.time()
    return now > expires_at_of(record)
