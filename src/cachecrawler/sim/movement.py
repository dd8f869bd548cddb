from __future__ import annotations

from cachecrawler.sim.grid import LatLng

# (dlat, dlng) per unit step.
DIRECTION_OFFSETS: dict[str, tuple[int, int]] = {
    "north": (1, 0),
    "south": (-1, 0),
    "east": (0, 1),
    "west": (0, -1),
}


def step_position(position: LatLng, direction: str, step_degrees: float) -> LatLng:
    if direction not in DIRECTION_OFFSETS:
        raise ValueError(f"unknown direction: {direction!r}")
    dlat, dlng = DIRECTION_OFFSETS[direction]
    return position.offset(dlat * step_degrees, dlng * step_degrees)
