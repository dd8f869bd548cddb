import pytest

from cachecrawler.sim.grid import CellCoord, LatLng
from cachecrawler.sim.world import CacheRecord, Coin, CoinMint, WorldState


def _world_with_cache(value: int = 3) -> WorldState:
    world = WorldState.fresh(LatLng(0.0, 0.0))
    coord = CellCoord(1, 1)
    record = CacheRecord(cell=coord, remaining_value=0)
    for _ in range(value):
        record.push(world.mint.mint(coord))
    world.record_generation(coord, record)
    return world


def test_mint_assigns_monotonic_serials_from_zero() -> None:
    mint = CoinMint()
    coins = [mint.mint(CellCoord(0, 0)) for _ in range(3)]

    assert [coin.serial for coin in coins] == [0, 1, 2]
    assert mint.next_serial == 3
    assert coins[0].label == "0:0#0"


def test_coin_is_immutable() -> None:
    coin = Coin(minted_at=CellCoord(2, 3), serial=5)
    with pytest.raises(AttributeError):
        coin.serial = 6  # type: ignore[misc]


def test_record_generation_is_once_per_cell() -> None:
    world = _world_with_cache()

    with pytest.raises(ValueError, match="already generated"):
        world.record_generation(CellCoord(1, 1), None)

    world.record_generation(CellCoord(5, 5), None)
    assert world.has_explored("5,5")
    assert world.get_cache("5,5") is None


def test_world_dict_round_trip() -> None:
    world = _world_with_cache()
    world.player.inventory.append(world.ledger["1,1"].pop())
    world.player.points = 1

    restored = WorldState.from_dict(world.to_dict())

    assert restored.to_dict() == world.to_dict()
    assert restored.ledger["1,1"].coins == world.ledger["1,1"].coins


@pytest.mark.parametrize(
    ("mutate", "message"),
    [
        (lambda payload: payload.update(points=2), "inventory coins"),
        (lambda payload: payload["ledger"][0][1].update(remaining_value=9), "does not match"),
        (lambda payload: payload.update(explored=[]), "missing from explored"),
        (lambda payload: payload.update(next_serial=1), "next_serial"),
        (
            lambda payload: payload["ledger"][0][1]["coins"].append({"minted_at_cell": {"x": 1, "y": 1}, "serial": 0}),
            "does not match",
        ),
    ],
)
def test_world_from_dict_rejects_broken_invariants(mutate, message: str) -> None:
    payload = _world_with_cache().to_dict()
    mutate(payload)

    with pytest.raises(ValueError, match=message):
        WorldState.from_dict(payload)


def test_world_from_dict_rejects_duplicate_serials() -> None:
    payload = _world_with_cache().to_dict()
    payload["inventory"] = [{"minted_at_cell": {"x": 1, "y": 1}, "serial": 0}]
    payload["points"] = 1

    with pytest.raises(ValueError, match="unique"):
        WorldState.from_dict(payload)
