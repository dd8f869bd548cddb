from cachecrawler.cli.viewer import AsciiViewer, SessionController, describe_cache, describe_points, run_demo
from cachecrawler.content.gameplay import GameplayConfig
from cachecrawler.content.store import MemoryStore
from cachecrawler.sim.core import GameSession
from cachecrawler.sim.grid import CellCoord
from cachecrawler.sim.world import CacheRecord, Coin

CONFIG = GameplayConfig(neighborhood_size=2, spawn_probability=1.0, value_scale=10)


def test_cache_and_points_descriptions() -> None:
    record = CacheRecord(cell=CellCoord(3, -4), remaining_value=1, coins=[Coin(CellCoord(3, -4), 0)])

    assert describe_cache(record) == "Cache at 3,-4 with 1."
    assert describe_points(7) == "Point total: 7"


def test_render_draws_north_up_grid_with_player() -> None:
    session = GameSession.open(MemoryStore(), CONFIG)

    lines = AsciiViewer().render(session).splitlines()

    assert lines[1] == "Point total: 0"
    grid = lines[2:6]
    assert all(len(row) == 4 for row in grid)
    # Row for x=0 is the third from the top (x = 1, 0, -1, -2); column y=0 is third.
    assert grid[1][2] == "@"
    assert sum(row.count("@") for row in grid) == 1
    assert len([line for line in lines if line.startswith("Cache at ")]) == 16


def test_controller_reports_transfer_outcomes() -> None:
    session = GameSession.open(MemoryStore(), CONFIG)
    controller = SessionController(session)

    assert controller.deposit("0,0") == "empty_inventory"
    assert controller.collect("40,40") == "cache_not_visible"
    controller.move("north")
    assert session.player_cell == CellCoord(1, 0)


def test_run_demo_processes_scripted_commands() -> None:
    session = GameSession.open(MemoryStore(), CONFIG)
    commands = iter(["north", "collect 99,99", "dance", "show", "quit"])
    output: list[str] = []

    run_demo(session, read_line=lambda _prompt: next(commands), write=output.append)

    assert "cache_not_visible" in output
    assert "unknown command" in output
    assert session.player_cell == CellCoord(1, 0)


def test_run_demo_stops_on_end_of_input() -> None:
    session = GameSession.open(MemoryStore(), CONFIG)

    def read_line(_prompt: str) -> str:
        raise EOFError

    output: list[str] = []
    run_demo(session, read_line=read_line, write=output.append)

    assert len(output) == 2


def test_terminal_and_map_viewers_share_one_controller() -> None:
    from cachecrawler.cli import pygame_viewer, viewer

    assert viewer.SessionController is pygame_viewer.SessionController
    session = GameSession.open(MemoryStore(), CONFIG)
    assert SessionController(session).locate() is False
