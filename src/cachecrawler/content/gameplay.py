from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cachecrawler.sim.grid import GridSpec, LatLng

GAMEPLAY_SCHEMA_VERSION = 1
DEFAULT_GAMEPLAY_PATH = "content/gameplay/default.json"

# Location of the classroom the world was first laid out around.
DEFAULT_START_POSITION = LatLng(lat=36.98949379578401, lng=-122.06277128548504)
DEFAULT_TILE_DEGREES = 0.0001
DEFAULT_NEIGHBORHOOD_SIZE = 8
DEFAULT_SPAWN_PROBABILITY = 0.1
DEFAULT_VALUE_SCALE = 100
DEFAULT_SAVE_KEY = "world"


@dataclass(frozen=True)
class GameplayConfig:
    start_position: LatLng = DEFAULT_START_POSITION
    origin: LatLng | None = None
    tile_degrees: float = DEFAULT_TILE_DEGREES
    neighborhood_size: int = DEFAULT_NEIGHBORHOOD_SIZE
    spawn_probability: float = DEFAULT_SPAWN_PROBABILITY
    value_scale: int = DEFAULT_VALUE_SCALE
    step_degrees: float | None = None
    save_key: str = DEFAULT_SAVE_KEY

    def __post_init__(self) -> None:
        if not _is_number(self.tile_degrees) or self.tile_degrees <= 0.0:
            raise ValueError("tile_degrees must be a number > 0")
        if isinstance(self.neighborhood_size, bool) or not isinstance(self.neighborhood_size, int):
            raise ValueError("neighborhood_size must be an integer")
        if self.neighborhood_size < 0:
            raise ValueError("neighborhood_size must be >= 0")
        if not _is_number(self.spawn_probability) or not 0.0 <= self.spawn_probability <= 1.0:
            raise ValueError("spawn_probability must be within [0, 1]")
        if isinstance(self.value_scale, bool) or not isinstance(self.value_scale, int) or self.value_scale < 0:
            raise ValueError("value_scale must be an integer >= 0")
        if self.step_degrees is not None and (not _is_number(self.step_degrees) or self.step_degrees <= 0.0):
            raise ValueError("step_degrees must be a number > 0 when present")
        if not isinstance(self.save_key, str) or not self.save_key:
            raise ValueError("save_key must be a non-empty string")

    @property
    def grid_origin(self) -> LatLng:
        return self.origin if self.origin is not None else self.start_position

    @property
    def step(self) -> float:
        return self.step_degrees if self.step_degrees is not None else self.tile_degrees

    def grid_spec(self) -> GridSpec:
        return GridSpec(origin=self.grid_origin, tile_degrees=self.tile_degrees)


def _is_number(value: Any) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float)) and math.isfinite(value)


def load_gameplay_json(path: str | Path) -> GameplayConfig:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return gameplay_from_payload(payload)


def load_gameplay_or_default(path: str | Path) -> GameplayConfig:
    """Load the gameplay file when it exists; built-in defaults otherwise."""
    if Path(path).exists():
        return load_gameplay_json(path)
    return GameplayConfig()


def gameplay_from_payload(payload: dict[str, Any]) -> GameplayConfig:
    if not isinstance(payload, dict):
        raise ValueError("gameplay payload must be an object")

    schema_version = payload.get("schema_version")
    if not isinstance(schema_version, int):
        raise ValueError("gameplay config must contain integer field: schema_version")
    if schema_version != GAMEPLAY_SCHEMA_VERSION:
        raise ValueError(f"unsupported gameplay schema_version: {schema_version}")

    kwargs: dict[str, Any] = {}
    for name in ("start_position", "origin"):
        if payload.get(name) is not None:
            raw = payload[name]
            if not isinstance(raw, dict) or not {"lat", "lng"} <= raw.keys():
                raise ValueError(f"gameplay.{name} must be an object with lat and lng")
            kwargs[name] = LatLng(lat=raw["lat"], lng=raw["lng"])
    for name in ("tile_degrees", "neighborhood_size", "spawn_probability", "value_scale", "step_degrees", "save_key"):
        if name in payload:
            kwargs[name] = payload[name]

    unknown = set(payload) - {"schema_version", "start_position", "origin", *kwargs}
    if unknown:
        raise ValueError(f"unknown gameplay fields: {sorted(unknown)}")
    return GameplayConfig(**kwargs)
