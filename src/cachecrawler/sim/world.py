from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from cachecrawler.sim.grid import CellCoord, LatLng, cell_key, parse_cell_key


def _require_non_negative_int(value: Any, *, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    if value < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return value


@dataclass(frozen=True)
class Coin:
    """One unit of cache value with a durable identity."""

    minted_at: CellCoord
    serial: int

    def __post_init__(self) -> None:
        _require_non_negative_int(self.serial, field_name="coin.serial")

    @property
    def label(self) -> str:
        return f"{self.minted_at.x}:{self.minted_at.y}#{self.serial}"

    def to_dict(self) -> dict[str, Any]:
        return {"minted_at_cell": self.minted_at.to_dict(), "serial": self.serial}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Coin":
        if not isinstance(data, dict):
            raise ValueError("coin must be an object")
        minted_at = data.get("minted_at_cell")
        if not isinstance(minted_at, dict):
            raise ValueError("coin.minted_at_cell must be an object")
        return cls(minted_at=CellCoord.from_dict(minted_at), serial=data.get("serial"))


@dataclass
class CoinMint:
    """Issues coins with monotonically increasing serials."""

    next_serial: int = 0

    def __post_init__(self) -> None:
        _require_non_negative_int(self.next_serial, field_name="next_serial")

    def mint(self, cell: CellCoord) -> Coin:
        coin = Coin(minted_at=cell, serial=self.next_serial)
        self.next_serial += 1
        return coin


@dataclass
class CacheRecord:
    """Mutable contents of one cache; ``coins[-1]`` is the top of the stack."""

    cell: CellCoord
    remaining_value: int
    coins: list[Coin] = field(default_factory=list)

    def __post_init__(self) -> None:
        _require_non_negative_int(self.remaining_value, field_name="cache.remaining_value")

    @property
    def key(self) -> str:
        return cell_key(self.cell)

    def push(self, coin: Coin) -> None:
        self.coins.append(coin)
        self.remaining_value += 1

    def pop(self) -> Coin:
        coin = self.coins.pop()
        self.remaining_value -= 1
        return coin

    def to_dict(self) -> dict[str, Any]:
        return {
            "remaining_value": self.remaining_value,
            "coins": [coin.to_dict() for coin in self.coins],
        }

    @classmethod
    def from_dict(cls, key: str, data: dict[str, Any]) -> "CacheRecord":
        if not isinstance(data, dict):
            raise ValueError(f"ledger[{key}] must be an object")
        coins = data.get("coins")
        if not isinstance(coins, list):
            raise ValueError(f"ledger[{key}].coins must be a list")
        record = cls(
            cell=parse_cell_key(key),
            remaining_value=_require_non_negative_int(
                data.get("remaining_value"), field_name=f"ledger[{key}].remaining_value"
            ),
            coins=[Coin.from_dict(coin) for coin in coins],
        )
        if record.remaining_value != len(record.coins):
            raise ValueError(
                f"ledger[{key}] remaining_value={record.remaining_value} does not match {len(record.coins)} coins"
            )
        return record


@dataclass
class PlayerState:
    position: LatLng
    points: int = 0
    inventory: list[Coin] = field(default_factory=list)
    path: list[LatLng] = field(default_factory=list)

    def __post_init__(self) -> None:
        _require_non_negative_int(self.points, field_name="player.points")

    def move_to(self, position: LatLng) -> None:
        self.position = position
        self.path.append(position)


@dataclass
class WorldState:
    """Authoritative world: player, ledger, explored cells and the coin mint."""

    player: PlayerState
    ledger: dict[str, CacheRecord] = field(default_factory=dict)
    explored: set[str] = field(default_factory=set)
    mint: CoinMint = field(default_factory=CoinMint)

    @classmethod
    def fresh(cls, start: LatLng) -> "WorldState":
        return cls(player=PlayerState(position=start, path=[start]))

    def has_explored(self, key: str) -> bool:
        return key in self.explored

    def get_cache(self, key: str) -> CacheRecord | None:
        return self.ledger.get(key)

    def record_generation(self, coord: CellCoord, record: CacheRecord | None) -> None:
        key = cell_key(coord)
        if key in self.explored:
            raise ValueError(f"cell {key} was already generated")
        if record is not None and record.cell != coord:
            raise ValueError(f"cache record for {cell_key(record.cell)} cannot be stored at {key}")
        self.explored.add(key)
        if record is not None:
            self.ledger[key] = record

    def all_coins(self) -> list[Coin]:
        coins = list(self.player.inventory)
        for key in sorted(self.ledger):
            coins.extend(self.ledger[key].coins)
        return coins

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": self.player.position.to_dict(),
            "points": self.player.points,
            "inventory": [coin.to_dict() for coin in self.player.inventory],
            "path": [position.to_dict() for position in self.player.path],
            "explored": sorted(self.explored),
            "ledger": [[key, self.ledger[key].to_dict()] for key in sorted(self.ledger)],
            "next_serial": self.mint.next_serial,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorldState":
        player = PlayerState(
            position=LatLng.from_dict(data["position"]),
            points=_require_non_negative_int(data.get("points"), field_name="points"),
            inventory=[Coin.from_dict(row) for row in data.get("inventory", [])],
            path=[LatLng.from_dict(row) for row in data.get("path", [])],
        )
        if player.points != len(player.inventory):
            raise ValueError(f"points={player.points} does not match {len(player.inventory)} inventory coins")

        explored: set[str] = set()
        for key in data.get("explored", []):
            parse_cell_key(key)
            explored.add(key)

        ledger: dict[str, CacheRecord] = {}
        for index, row in enumerate(data.get("ledger", [])):
            if not isinstance(row, list) or len(row) != 2:
                raise ValueError(f"ledger[{index}] must be a [cell_key, record] pair")
            key, record_payload = row
            if key in ledger:
                raise ValueError(f"duplicate ledger key: {key}")
            if key not in explored:
                raise ValueError(f"ledger key {key} missing from explored cells")
            ledger[key] = CacheRecord.from_dict(key, record_payload)

        world = cls(
            player=player,
            ledger=ledger,
            explored=explored,
            mint=CoinMint(next_serial=_require_non_negative_int(data.get("next_serial"), field_name="next_serial")),
        )
        serials = [coin.serial for coin in world.all_coins()]
        if len(serials) != len(set(serials)):
            raise ValueError("coin serials must be unique")
        if serials and max(serials) >= world.mint.next_serial:
            raise ValueError(f"next_serial={world.mint.next_serial} must exceed every minted serial")
        return world
