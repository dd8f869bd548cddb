import math

import pytest

from cachecrawler.sim.generator import CacheGenerator, generate_cache, spawn_roll, value_roll
from cachecrawler.sim.grid import CellCoord
from cachecrawler.sim.world import CoinMint

CELLS = [CellCoord(x, y) for x in range(-10, 10) for y in range(-10, 10)]


def test_generation_is_a_pure_function_of_coordinates() -> None:
    first = [generate_cache(coord, CoinMint()) for coord in CELLS]
    second = [generate_cache(coord, CoinMint()) for coord in CELLS]

    assert first == second


def test_spawn_and_value_follow_the_two_rolls() -> None:
    for coord in CELLS:
        mint = CoinMint(next_serial=40)
        record = generate_cache(coord, mint)
        if spawn_roll(coord) >= 0.1:
            assert record is None
            assert mint.next_serial == 40
            continue
        assert record is not None
        assert record.remaining_value == math.floor(value_roll(coord) * 100)
        assert [coin.serial for coin in record.coins] == list(range(40, 40 + record.remaining_value))
        assert all(coin.minted_at == coord for coin in record.coins)


def test_spawn_probability_bounds() -> None:
    never = CacheGenerator(spawn_probability=0.0)
    always = CacheGenerator(spawn_probability=1.0, value_scale=10)

    assert all(never(coord, CoinMint()) is None for coord in CELLS)
    assert all(always(coord, CoinMint()) is not None for coord in CELLS)


def test_generator_uses_cell_key_and_value_suffix(monkeypatch: pytest.MonkeyPatch) -> None:
    rolls = {"0,7": 0.05, "0,7#value": 0.5, "0,8": 0.2}
    monkeypatch.setattr("cachecrawler.sim.generator.luck", lambda key: rolls[key])

    record = generate_cache(CellCoord(0, 7), CoinMint())

    assert record is not None
    assert record.remaining_value == 50
    assert record.coins[-1].serial == 49
    assert generate_cache(CellCoord(0, 8), CoinMint()) is None
