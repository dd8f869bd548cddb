from __future__ import annotations

import math

from cachecrawler.sim.grid import CellCoord, cell_key
from cachecrawler.sim.rng import luck
from cachecrawler.sim.world import CacheRecord, CoinMint

DEFAULT_SPAWN_PROBABILITY = 0.1
DEFAULT_VALUE_SCALE = 100
VALUE_KEY_SUFFIX = "#value"


def spawn_roll(coord: CellCoord) -> float:
    return luck(cell_key(coord))


def value_roll(coord: CellCoord) -> float:
    return luck(cell_key(coord) + VALUE_KEY_SUFFIX)


def generate_cache(
    coord: CellCoord,
    mint: CoinMint,
    *,
    spawn_probability: float = DEFAULT_SPAWN_PROBABILITY,
    value_scale: int = DEFAULT_VALUE_SCALE,
) -> CacheRecord | None:
    """Roll the cache for a never-seen cell.

    The outcome depends only on the cell coordinates; the mint only decides
    which serials the new coins receive. Callers must not roll a cell twice.
    """
    if spawn_roll(coord) >= spawn_probability:
        return None

    initial_value = math.floor(value_roll(coord) * value_scale)
    record = CacheRecord(cell=coord, remaining_value=0)
    for _ in range(initial_value):
        record.push(mint.mint(coord))
    return record


class CacheGenerator:
    """Generator bound to one gameplay configuration."""

    def __init__(self, *, spawn_probability: float = DEFAULT_SPAWN_PROBABILITY, value_scale: int = DEFAULT_VALUE_SCALE) -> None:
        self.spawn_probability = spawn_probability
        self.value_scale = value_scale

    def __call__(self, coord: CellCoord, mint: CoinMint) -> CacheRecord | None:
        return generate_cache(
            coord,
            mint,
            spawn_probability=self.spawn_probability,
            value_scale=self.value_scale,
        )
