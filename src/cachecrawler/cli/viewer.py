from __future__ import annotations

import argparse
from typing import Callable, Sequence

from cachecrawler.cli.logging_setup import setup_logging
from cachecrawler.cli.pygame_viewer import SessionController
from cachecrawler.content.gameplay import DEFAULT_GAMEPLAY_PATH, load_gameplay_or_default
from cachecrawler.content.store import FileStore
from cachecrawler.sim.core import GameSession
from cachecrawler.sim.grid import CellCoord, cell_key
from cachecrawler.sim.movement import DIRECTION_OFFSETS
from cachecrawler.sim.world import CacheRecord

DEFAULT_SAVE_DIR = "saves"
PLAYER_GLYPH = "@"
CACHE_GLYPH = "$"
EMPTY_CACHE_GLYPH = "o"
FOG_GLYPH = "."


def describe_cache(record: CacheRecord) -> str:
    return f"Cache at {record.cell.x},{record.cell.y} with {record.remaining_value}."


def describe_points(points: int) -> str:
    return f"Point total: {points}"


class AsciiViewer:
    """Read-only projection of the visibility window for terminal display."""

    def render(self, session: GameSession) -> str:
        player = session.world.player
        center = session.player_cell
        radius = session.window.radius
        lines = [
            f"pos=({player.position.lat:.6f},{player.position.lng:.6f}) cell={cell_key(center)} "
            f"explored={len(session.world.explored)}",
            describe_points(player.points),
        ]

        # North is up: rows run from the highest x down.
        for x in range(center.x + radius - 1, center.x - radius - 1, -1):
            row = []
            for y in range(center.y - radius, center.y + radius):
                coord = CellCoord(x, y)
                if coord == center:
                    row.append(PLAYER_GLYPH)
                    continue
                record = session.world.get_cache(cell_key(coord)) if session.window.is_visible(coord) else None
                if record is None:
                    row.append(FOG_GLYPH)
                else:
                    row.append(CACHE_GLYPH if record.remaining_value else EMPTY_CACHE_GLYPH)
            lines.append("".join(row))

        for _, record in session.visible_caches():
            lines.append(describe_cache(record))
        if player.inventory:
            lines.append("inventory top: " + ", ".join(coin.label for coin in reversed(player.inventory[-5:])))
        return "\n".join(lines)


def run_demo(
    session: GameSession,
    *,
    read_line: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> None:
    view = AsciiViewer()
    controller = SessionController(session)

    write("cachecrawler demo. Commands: north | south | east | west | collect <x,y> | deposit <x,y> | reset | show | quit")
    write(view.render(session))

    while True:
        try:
            raw = read_line("> ").strip()
        except EOFError:
            break
        if raw in {"quit", "exit"}:
            break
        if raw == "show":
            write(view.render(session))
            continue
        if raw in DIRECTION_OFFSETS:
            controller.move(raw)
            write(view.render(session))
            continue
        if raw == "reset":
            controller.reset()
            write(view.render(session))
            continue

        parts = raw.split()
        if len(parts) == 2 and parts[0] == "collect":
            write(controller.collect(parts[1]))
            continue
        if len(parts) == 2 and parts[0] == "deposit":
            write(controller.deposit(parts[1]))
            continue

        write("unknown command")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m cachecrawler.cli.viewer", description="Terminal cachecrawler viewer.")
    parser.add_argument("--gameplay-path", default=DEFAULT_GAMEPLAY_PATH, help="Gameplay config JSON.")
    parser.add_argument("--save-dir", default=DEFAULT_SAVE_DIR, help="Directory holding the world save.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level for the engine.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    setup_logging(args.log_level.upper())
    session = GameSession.open(FileStore(args.save_dir), load_gameplay_or_default(args.gameplay_path))
    run_demo(session)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
