from __future__ import annotations

import argparse
from typing import Sequence

from cachecrawler.cli.logging_setup import setup_logging
from cachecrawler.cli.pygame_viewer import run_pygame_viewer
from cachecrawler.content.gameplay import DEFAULT_GAMEPLAY_PATH, load_gameplay_or_default
from cachecrawler.content.io import default_world, save_world
from cachecrawler.content.store import FileStore

DEFAULT_SAVE_DIR = "saves"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cachecrawler-play", description="Canonical cachecrawler launcher.")
    parser.add_argument("--save-dir", default=DEFAULT_SAVE_DIR, help="Directory of the world save to open.")
    parser.add_argument("--gameplay-path", default=DEFAULT_GAMEPLAY_PATH, help="Gameplay config JSON.")
    parser.add_argument("--geolocation", help="Optional LAT,LNG fix applied when pressing G.")
    parser.add_argument("--headless", action="store_true", help="Run startup path in headless mode.")
    return parser


def _ensure_save_exists(*, save_dir: str, gameplay_path: str) -> None:
    config = load_gameplay_or_default(gameplay_path)
    store = FileStore(save_dir)
    if store.get(config.save_key) is not None:
        return
    save_world(store, default_world(config), key=config.save_key)


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    setup_logging()
    _ensure_save_exists(save_dir=args.save_dir, gameplay_path=args.gameplay_path)
    return run_pygame_viewer(
        args.gameplay_path,
        save_dir=args.save_dir,
        geolocation=args.geolocation,
        headless=args.headless,
    )


if __name__ == "__main__":
    raise SystemExit(main())
