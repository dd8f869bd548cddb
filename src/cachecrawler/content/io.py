from __future__ import annotations

import json
import logging
from typing import Any

from cachecrawler.content.gameplay import DEFAULT_SAVE_KEY, GameplayConfig
from cachecrawler.content.schema import validate_save_payload
from cachecrawler.content.store import KeyValueStore
from cachecrawler.sim.hash import save_hash
from cachecrawler.sim.world import WorldState

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
CANONICAL_JSON_INDENT = 2
CANONICAL_JSON_SEPARATORS = (",", ": ")


class CorruptSaveError(ValueError):
    """Persisted world blob is unreadable or violates world invariants."""


def default_world(config: GameplayConfig | None = None) -> WorldState:
    config = config if config is not None else GameplayConfig()
    return WorldState.fresh(config.start_position)


def world_to_payload(world: WorldState) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "world_state": world.to_dict(),
    }
    payload["save_hash"] = save_hash(payload)
    return payload


def world_from_payload(payload: Any) -> WorldState:
    try:
        validate_save_payload(payload)
    except ValueError as exc:
        raise CorruptSaveError(str(exc)) from exc

    expected_hash = payload["save_hash"]
    actual_hash = save_hash(payload)
    if expected_hash != actual_hash:
        raise CorruptSaveError(
            f"save_hash mismatch while loading save (stored={expected_hash}, recomputed={actual_hash})"
        )

    try:
        return WorldState.from_dict(payload["world_state"])
    except (KeyError, TypeError, ValueError) as exc:
        raise CorruptSaveError(f"invalid world_state: {exc}") from exc


def _canonical_json(payload: dict[str, Any]) -> str:
    return json.dumps(
        payload,
        indent=CANONICAL_JSON_INDENT,
        separators=CANONICAL_JSON_SEPARATORS,
        sort_keys=True,
    )


def encode_world(world: WorldState) -> bytes:
    return _canonical_json(world_to_payload(world)).encode("utf-8")


def decode_world(blob: bytes) -> WorldState:
    try:
        payload = json.loads(blob.decode("utf-8"))
    except (UnicodeDecodeError, ValueError, RecursionError) as exc:
        raise CorruptSaveError(f"save blob is not valid JSON: {exc}") from exc
    return world_from_payload(payload)


def save_world(store: KeyValueStore, world: WorldState, *, key: str = DEFAULT_SAVE_KEY) -> None:
    store.put(key, encode_world(world))


def load_world(store: KeyValueStore, config: GameplayConfig | None = None) -> WorldState:
    """Load the persisted world, falling back to a fresh one when absent or corrupt."""
    config = config if config is not None else GameplayConfig()
    blob = store.get(config.save_key)
    if blob is None:
        logger.info("no saved world under %r; starting fresh", config.save_key)
        return default_world(config)
    try:
        world = decode_world(blob)
    except CorruptSaveError as exc:
        logger.warning("discarding corrupt save %r: %s", config.save_key, exc)
        return default_world(config)
    logger.info(
        "loaded world %r explored=%d caches=%d points=%d",
        config.save_key,
        len(world.explored),
        len(world.ledger),
        world.player.points,
    )
    return world


def reset_world(store: KeyValueStore, config: GameplayConfig | None = None) -> WorldState:
    config = config if config is not None else GameplayConfig()
    store.delete(config.save_key)
    logger.info("reset world %r", config.save_key)
    return default_world(config)
