import pytest

from cachecrawler.sim.generator import CacheGenerator
from cachecrawler.sim.grid import CellCoord, LatLng, cell_key
from cachecrawler.sim.visibility import VisibilityWindow, window_cells
from cachecrawler.sim.world import WorldState


class CountingGenerator:
    def __init__(self) -> None:
        self.inner = CacheGenerator(spawn_probability=1.0, value_scale=10)
        self.calls: list[CellCoord] = []

    def __call__(self, coord, mint):
        self.calls.append(coord)
        return self.inner(coord, mint)


def _fresh() -> tuple[WorldState, VisibilityWindow, CountingGenerator]:
    return WorldState.fresh(LatLng(0.0, 0.0)), VisibilityWindow(2), CountingGenerator()


def test_window_cells_is_half_open_square() -> None:
    cells = window_cells(CellCoord(5, -5), 2)

    assert len(cells) == 16
    assert min(cell.x for cell in cells) == 3
    assert max(cell.x for cell in cells) == 6
    assert min(cell.y for cell in cells) == -7
    assert max(cell.y for cell in cells) == -4
    with pytest.raises(ValueError):
        window_cells(CellCoord(0, 0), -1)


def test_first_update_generates_and_materializes_window() -> None:
    world, window, generator = _fresh()

    update = window.update(world, CellCoord(0, 0), generator)

    assert len(update.generated) == 16
    assert len(world.explored) == 16
    assert {coord for coord, _ in update.materialized} == window_cells(CellCoord(0, 0), 2)
    assert update.dematerialized == []


def test_shifting_one_row_swaps_one_row() -> None:
    world, window, generator = _fresh()
    window.update(world, CellCoord(0, 0), generator)

    update = window.update(world, CellCoord(1, 0), generator)

    assert sorted(update.generated) == [CellCoord(2, y) for y in range(-2, 2)]
    assert [coord for coord, _ in update.materialized] == [CellCoord(2, y) for y in range(-2, 2)]
    assert update.dematerialized == [CellCoord(-2, y) for y in range(-2, 2)]


def test_cells_are_generated_once_and_records_survive_leaving() -> None:
    world, window, generator = _fresh()
    window.update(world, CellCoord(0, 0), generator)
    record = world.get_cache("0,0")
    assert record is not None
    coins_before = list(record.coins)

    window.update(world, CellCoord(0, 10), generator)
    assert not window.is_visible(CellCoord(0, 0))
    assert world.get_cache("0,0") is record

    update = window.update(world, CellCoord(0, 0), generator)

    assert update.generated == []
    assert len(generator.calls) == len(set(generator.calls)) == 32
    assert (CellCoord(0, 0), record) in update.materialized
    assert record.coins == coins_before


def test_staying_put_is_an_empty_update() -> None:
    world, window, generator = _fresh()
    window.update(world, CellCoord(0, 0), generator)

    update = window.update(world, CellCoord(0, 0), generator)

    assert update.is_empty
    assert update.generated == []


def test_reset_forgets_visible_set_without_regenerating() -> None:
    world, window, generator = _fresh()
    window.update(world, CellCoord(0, 0), generator)
    window.reset()

    assert window.visible_cells == frozenset()
    update = window.update(world, CellCoord(0, 0), generator)

    assert update.generated == []
    assert len(update.materialized) == 16
    assert len(generator.calls) == 16


def test_empty_cells_are_explored_but_never_materialized() -> None:
    world = WorldState.fresh(LatLng(0.0, 0.0))
    window = VisibilityWindow(2)

    update = window.update(world, CellCoord(0, 0), CacheGenerator(spawn_probability=0.0))

    assert update.materialized == []
    assert world.ledger == {}
    assert world.has_explored(cell_key(CellCoord(-2, -2)))
