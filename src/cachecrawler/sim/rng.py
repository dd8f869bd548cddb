from __future__ import annotations

import hashlib

_UNIT_SCALE = float(1 << 64)


def luck(key: str) -> float:
    """Map a string key to a reproducible value in [0, 1)."""
    if not isinstance(key, str):
        raise ValueError("luck key must be a string")
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=False) / _UNIT_SCALE
