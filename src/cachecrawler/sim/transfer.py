from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from cachecrawler.sim.world import Coin, WorldState

logger = logging.getLogger(__name__)

OUTCOME_APPLIED = "applied"
OUTCOME_UNKNOWN_CACHE = "unknown_cache"
OUTCOME_EMPTY_CACHE = "empty_cache"
OUTCOME_EMPTY_INVENTORY = "empty_inventory"
OUTCOME_NO_POINTS = "no_points"

ACTION_COLLECT = "collect"
ACTION_DEPOSIT = "deposit"


@dataclass(frozen=True)
class TransferResult:
    action: str
    cell_key: str
    outcome: str
    coin: Coin | None = None

    @property
    def applied(self) -> bool:
        return self.outcome == OUTCOME_APPLIED

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "cell_key": self.cell_key,
            "outcome": self.outcome,
            "coin": self.coin.to_dict() if self.coin is not None else None,
        }


def collect(world: WorldState, cell_key: str) -> TransferResult:
    """Move the top coin of a cache onto the player's inventory."""
    record = world.get_cache(cell_key)
    if record is None:
        return TransferResult(action=ACTION_COLLECT, cell_key=cell_key, outcome=OUTCOME_UNKNOWN_CACHE)
    if record.remaining_value == 0 or not record.coins:
        return TransferResult(action=ACTION_COLLECT, cell_key=cell_key, outcome=OUTCOME_EMPTY_CACHE)

    coin = record.pop()
    world.player.inventory.append(coin)
    world.player.points += 1
    logger.debug("collected coin %s from %s", coin.label, cell_key)
    return TransferResult(action=ACTION_COLLECT, cell_key=cell_key, outcome=OUTCOME_APPLIED, coin=coin)


def deposit(world: WorldState, cell_key: str) -> TransferResult:
    """Move the most recently collected coin into a cache."""
    record = world.get_cache(cell_key)
    if record is None:
        return TransferResult(action=ACTION_DEPOSIT, cell_key=cell_key, outcome=OUTCOME_UNKNOWN_CACHE)
    if not world.player.inventory:
        return TransferResult(action=ACTION_DEPOSIT, cell_key=cell_key, outcome=OUTCOME_EMPTY_INVENTORY)
    if world.player.points == 0:
        return TransferResult(action=ACTION_DEPOSIT, cell_key=cell_key, outcome=OUTCOME_NO_POINTS)

    coin = world.player.inventory.pop()
    record.push(coin)
    world.player.points -= 1
    logger.debug("deposited coin %s into %s", coin.label, cell_key)
    return TransferResult(action=ACTION_DEPOSIT, cell_key=cell_key, outcome=OUTCOME_APPLIED, coin=coin)
