from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from cachecrawler.sim.grid import CellCoord, cell_key
from cachecrawler.sim.world import CacheRecord, CoinMint, WorldState

logger = logging.getLogger(__name__)

Generator = Callable[[CellCoord, CoinMint], CacheRecord | None]


def window_cells(center: CellCoord, radius: int) -> set[CellCoord]:
    """Square window of side ``2 * radius``: ``center - radius <= x < center + radius``."""
    if isinstance(radius, bool) or not isinstance(radius, int) or radius < 0:
        raise ValueError("radius must be a non-negative integer")
    return {
        CellCoord(x, y)
        for x in range(center.x - radius, center.x + radius)
        for y in range(center.y - radius, center.y + radius)
    }


@dataclass
class WindowUpdate:
    center: CellCoord
    materialized: list[tuple[CellCoord, CacheRecord]] = field(default_factory=list)
    dematerialized: list[CellCoord] = field(default_factory=list)
    generated: list[CellCoord] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.materialized and not self.dematerialized

    def to_dict(self) -> dict[str, object]:
        return {
            "center": self.center.to_dict(),
            "materialized": [cell_key(coord) for coord, _ in self.materialized],
            "dematerialized": [cell_key(coord) for coord in self.dematerialized],
            "generated": len(self.generated),
        }


class VisibilityWindow:
    """Fog-of-war window around the player.

    The visible set is derived state: it can be dropped with ``reset`` and is
    rebuilt on the next ``update``. Cache records always stay in the ledger.
    """

    def __init__(self, radius: int) -> None:
        window_cells(CellCoord(0, 0), radius)
        self.radius = radius
        self.center: CellCoord | None = None
        self._visible: set[CellCoord] = set()

    @property
    def visible_cells(self) -> frozenset[CellCoord]:
        return frozenset(self._visible)

    def is_visible(self, coord: CellCoord) -> bool:
        return coord in self._visible

    def reset(self) -> None:
        self.center = None
        self._visible = set()

    def update(self, world: WorldState, center: CellCoord, generator: Generator) -> WindowUpdate:
        target = window_cells(center, self.radius)
        entering = sorted(target - self._visible)
        leaving = sorted(self._visible - target)
        update = WindowUpdate(center=center)

        for coord in leaving:
            if world.get_cache(cell_key(coord)) is not None:
                update.dematerialized.append(coord)

        for coord in entering:
            key = cell_key(coord)
            if not world.has_explored(key):
                world.record_generation(coord, generator(coord, world.mint))
                update.generated.append(coord)
            record = world.get_cache(key)
            if record is not None:
                update.materialized.append((coord, record))

        self._visible = target
        self.center = center
        logger.debug(
            "window center=%s materialized=%d dematerialized=%d generated=%d",
            cell_key(center),
            len(update.materialized),
            len(update.dematerialized),
            len(update.generated),
        )
        return update
