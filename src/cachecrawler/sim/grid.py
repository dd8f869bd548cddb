from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

CELL_KEY_SEPARATOR = ","
# A ratio this close below an integer belongs to the upper cell; repeated
# whole-tile steps accumulate float error that would otherwise land a hair short.
CELL_SNAP_TOLERANCE = 1e-6


@dataclass(frozen=True)
class LatLng:
    """Continuous world position in degrees."""

    lat: float
    lng: float

    def __post_init__(self) -> None:
        for name in ("lat", "lng"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"position.{name} must be numeric")
            if not math.isfinite(value):
                raise ValueError(f"position.{name} must be finite")

    def offset(self, dlat: float, dlng: float) -> "LatLng":
        return LatLng(lat=self.lat + dlat, lng=self.lng + dlng)

    def to_dict(self) -> dict[str, float]:
        return {"lat": float(self.lat), "lng": float(self.lng)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LatLng":
        return cls(lat=float(data["lat"]), lng=float(data["lng"]))


@dataclass(frozen=True, order=True)
class CellCoord:
    """Integer grid cell; x runs along latitude, y along longitude."""

    x: int
    y: int

    def to_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CellCoord":
        x = data["x"]
        y = data["y"]
        if isinstance(x, bool) or isinstance(y, bool) or not isinstance(x, int) or not isinstance(y, int):
            raise ValueError("cell coord x and y must be integers")
        return cls(x=x, y=y)


def cell_key(coord: CellCoord) -> str:
    return f"{coord.x}{CELL_KEY_SEPARATOR}{coord.y}"


def parse_cell_key(key: str) -> CellCoord:
    if not isinstance(key, str):
        raise ValueError("cell key must be a string")
    parts = key.split(CELL_KEY_SEPARATOR)
    if len(parts) != 2:
        raise ValueError(f"malformed cell key: {key!r}")
    try:
        coord = CellCoord(x=int(parts[0]), y=int(parts[1]))
    except ValueError as exc:
        raise ValueError(f"malformed cell key: {key!r}") from exc
    if cell_key(coord) != key:
        raise ValueError(f"non-canonical cell key: {key!r}")
    return coord


@dataclass(frozen=True)
class GridSpec:
    """Fixed mapping between world positions and grid cells.

    Cells are squares of ``tile_degrees`` measured from ``origin``; the same
    grid must be shared by the engine and whatever draws the cells.

    ``to_cell`` treats each south and west edge as reaching ``CELL_SNAP_TOLERANCE``
    tiles below the corner returned by ``cell_bounds``: a position that close
    under a boundary is placed in the cell above it.
    """

    origin: LatLng
    tile_degrees: float

    def __post_init__(self) -> None:
        if isinstance(self.tile_degrees, bool) or not isinstance(self.tile_degrees, (int, float)):
            raise ValueError("tile_degrees must be numeric")
        if not self.tile_degrees > 0.0 or not math.isfinite(self.tile_degrees):
            raise ValueError("tile_degrees must be a finite number > 0")

    def to_cell(self, position: LatLng) -> CellCoord:
        return CellCoord(
            x=_floor_ratio(position.lat - self.origin.lat, self.tile_degrees),
            y=_floor_ratio(position.lng - self.origin.lng, self.tile_degrees),
        )

    def cell_bounds(self, coord: CellCoord) -> tuple[LatLng, LatLng]:
        south_west = LatLng(
            lat=self.origin.lat + coord.x * self.tile_degrees,
            lng=self.origin.lng + coord.y * self.tile_degrees,
        )
        north_east = LatLng(
            lat=self.origin.lat + (coord.x + 1) * self.tile_degrees,
            lng=self.origin.lng + (coord.y + 1) * self.tile_degrees,
        )
        return (south_west, north_east)

    def cell_center(self, coord: CellCoord) -> LatLng:
        return LatLng(
            lat=self.origin.lat + (coord.x + 0.5) * self.tile_degrees,
            lng=self.origin.lng + (coord.y + 0.5) * self.tile_degrees,
        )


def _floor_ratio(delta: float, tile: float) -> int:
    ratio = delta / tile
    nearest = round(ratio)
    if 0.0 < nearest - ratio <= CELL_SNAP_TOLERANCE:
        return nearest
    return math.floor(ratio)
