import csv
import time
import json
from pathlib import Path

def timed(fn):
    start = time.perf_counter()
    result = fn()
    end = time.perf_counter()
    return result, (end - start) * 1000  # ms

def size_bytes(obj):
    if isinstance(obj, str):
        return len(obj.encode("utf-8"))
    return len(json.dumps(obj, separators=(",", ":")).encode("utf-8"))

def write_csv(rows, path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fieldnames = sorted({k for r in rows for k in r.keys()})
    with path.open("w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames)
        w.writeheader()
        w.writerows(rows)
