from __future__ import annotations

import hashlib
import json
from typing import Any

from cachecrawler.sim.world import WorldState

SAVE_HASH_FIELDS = ("schema_version", "world_state")


def _digest(payload: Any) -> str:
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def world_hash(world: WorldState) -> str:
    return _digest(world.to_dict())


def save_hash(payload: dict[str, Any]) -> str:
    return _digest({name: payload[name] for name in SAVE_HASH_FIELDS})
