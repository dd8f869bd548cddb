from __future__ import annotations

import argparse
import importlib.metadata
import os
import platform
import sys
from dataclasses import dataclass, field
from typing import Any

from cachecrawler.cli.logging_setup import setup_logging
from cachecrawler.content.gameplay import DEFAULT_GAMEPLAY_PATH, GameplayConfig, load_gameplay_or_default
from cachecrawler.content.store import FileStore
from cachecrawler.sim.core import GameSession, SessionCommand
from cachecrawler.sim.geolocation import FixedGeolocation, GeolocationProvider, UnavailableGeolocation
from cachecrawler.sim.grid import CellCoord, LatLng, cell_key
from cachecrawler.sim.hash import world_hash
from cachecrawler.sim.rules import WorldListener
from cachecrawler.sim.world import CacheRecord, Coin

TILE_PIXELS = 40
WINDOW_SIZE = (1024, 800)
HUD_HEIGHT = 84
INVENTORY_PREVIEW = 6

BACKGROUND_COLOR = (24, 30, 26)
GRID_COLOR = (40, 48, 42)
CACHE_COLOR = (80, 160, 255)
EMPTY_CACHE_COLOR = (96, 104, 120)
PATH_COLOR = (255, 196, 80)
PLAYER_COLOR = (255, 243, 130)
TEXT_COLOR = (240, 240, 240)

MOVE_KEYS: dict[str, str] = {
    "K_UP": "north",
    "K_w": "north",
    "K_DOWN": "south",
    "K_s": "south",
    "K_RIGHT": "east",
    "K_d": "east",
    "K_LEFT": "west",
    "K_a": "west",
}

pygame: Any | None = None


@dataclass
class CacheSprite:
    cell: CellCoord
    bounds: tuple[LatLng, LatLng]
    record: CacheRecord


@dataclass
class MapScene(WorldListener):
    """Retained scene fed by session callbacks; drawing reads only from here."""

    name: str = "pygame_map"
    caches: dict[str, CacheSprite] = field(default_factory=dict)
    player_position: LatLng | None = None
    path: list[LatLng] = field(default_factory=list)
    points: int = 0
    inventory: list[Coin] = field(default_factory=list)

    def on_session_start(self, session: GameSession) -> None:
        player = session.world.player
        self.player_position = player.position
        self.path = list(player.path)
        self.points = player.points
        self.inventory = list(player.inventory)

    def on_materialize(
        self,
        session: GameSession,
        cell: CellCoord,
        bounds: tuple[LatLng, LatLng],
        record: CacheRecord,
    ) -> None:
        self.caches[cell_key(cell)] = CacheSprite(cell=cell, bounds=bounds, record=record)

    def on_dematerialize(self, session: GameSession, cell: CellCoord) -> None:
        self.caches.pop(cell_key(cell), None)

    def on_player_moved(self, session: GameSession, position: LatLng, path: list[LatLng]) -> None:
        self.player_position = position
        self.path = path

    def on_points_changed(self, session: GameSession, points: int, inventory: list[Coin]) -> None:
        self.points = points
        self.inventory = inventory

    def on_cache_changed(self, session: GameSession, cell: CellCoord, record: CacheRecord) -> None:
        sprite = self.caches.get(cell_key(cell))
        if sprite is not None:
            sprite.record = record


@dataclass
class SessionController:
    """Viewer command adapter; the session remains source of truth."""

    session: GameSession
    geolocation: GeolocationProvider = field(default_factory=UnavailableGeolocation)

    def move(self, direction: str) -> None:
        self.session.apply_command(SessionCommand(command_type="move", params={"direction": direction}))

    def collect(self, key: str) -> str:
        return self.session.apply_command(SessionCommand(command_type="collect", params={"cell_key": key})).outcome

    def deposit(self, key: str) -> str:
        return self.session.apply_command(SessionCommand(command_type="deposit", params={"cell_key": key})).outcome

    def reset(self) -> None:
        self.session.apply_command(SessionCommand(command_type="reset"))

    def locate(self) -> bool:
        return self.session.request_geolocation(self.geolocation)


def latlng_to_pixel(position: LatLng, focus: LatLng, tile_degrees: float, center: tuple[float, float]) -> tuple[float, float]:
    """Project onto the screen: north is up, east is right, ``focus`` sits at ``center``."""
    scale = TILE_PIXELS / tile_degrees
    return (
        center[0] + (position.lng - focus.lng) * scale,
        center[1] - (position.lat - focus.lat) * scale,
    )


def sprite_pixel_rect(
    sprite: CacheSprite, focus: LatLng, tile_degrees: float, center: tuple[float, float]
) -> tuple[int, int, int, int]:
    south_west, north_east = sprite.bounds
    left, bottom = latlng_to_pixel(south_west, focus, tile_degrees, center)
    right, top = latlng_to_pixel(north_east, focus, tile_degrees, center)
    return (int(round(left)), int(round(top)), int(round(right - left)), int(round(bottom - top)))


def find_cache_at_pixel(
    scene: MapScene,
    pixel: tuple[int, int],
    tile_degrees: float,
    center: tuple[float, float],
) -> str | None:
    if scene.player_position is None:
        return None
    for key in sorted(scene.caches):
        x, y, width, height = sprite_pixel_rect(scene.caches[key], scene.player_position, tile_degrees, center)
        if x <= pixel[0] < x + width and y <= pixel[1] < y + height:
            return key
    return None


def parse_geolocation_fix(raw: str | None) -> GeolocationProvider:
    if not raw:
        return UnavailableGeolocation("no geolocation fix configured")
    parts = raw.split(",")
    if len(parts) != 2:
        raise ValueError(f"geolocation fix must be LAT,LNG: {raw!r}")
    return FixedGeolocation(LatLng(lat=float(parts[0]), lng=float(parts[1])))


def _map_center() -> tuple[float, float]:
    return (WINDOW_SIZE[0] / 2.0, HUD_HEIGHT + (WINDOW_SIZE[1] - HUD_HEIGHT) / 2.0)


def _draw_scene(screen: pygame.Surface, scene: MapScene, tile_degrees: float, font: pygame.font.Font) -> None:
    if scene.player_position is None:
        return
    center = _map_center()

    for key in sorted(scene.caches):
        sprite = scene.caches[key]
        rect = pygame.Rect(*sprite_pixel_rect(sprite, scene.player_position, tile_degrees, center))
        color = CACHE_COLOR if sprite.record.remaining_value else EMPTY_CACHE_COLOR
        pygame.draw.rect(screen, color, rect)
        pygame.draw.rect(screen, GRID_COLOR, rect, 1)
        label = font.render(str(sprite.record.remaining_value), True, TEXT_COLOR)
        screen.blit(label, (rect.x + 3, rect.y + 2))

    if len(scene.path) >= 2:
        points = [latlng_to_pixel(position, scene.player_position, tile_degrees, center) for position in scene.path]
        pygame.draw.lines(screen, PATH_COLOR, False, points, 2)

    pygame.draw.circle(screen, PLAYER_COLOR, (int(center[0]), int(center[1])), 8)
    pygame.draw.circle(screen, (15, 15, 15), (int(center[0]), int(center[1])), 8, 1)


def _draw_hud(screen: pygame.Surface, scene: MapScene, font: pygame.font.Font, status_message: str | None) -> None:
    inventory_text = ", ".join(coin.label for coin in reversed(scene.inventory[-INVENTORY_PREVIEW:]))
    lines = [
        f"Point total: {scene.points} | inventory: {inventory_text or '-'}",
        "WASD/arrows move | LMB collect | RMB deposit | G locate | R reset | F5 save | ESC quit",
    ]
    if status_message:
        lines.append(f"status: {status_message}")
    y = 8
    for line in lines:
        screen.blit(font.render(line, True, TEXT_COLOR), (12, y))
        y += 24


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m cachecrawler.cli.pygame_viewer",
        description="Run the cachecrawler pygame map viewer.",
    )
    parser.add_argument(
        "--gameplay-path",
        default=DEFAULT_GAMEPLAY_PATH,
        help="Path to gameplay config JSON.",
    )
    parser.add_argument(
        "--save-dir",
        default="saves",
        help="Directory of the world save; the world is persisted after every action.",
    )
    parser.add_argument(
        "--geolocation",
        help="Optional LAT,LNG fix applied when pressing G.",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Force SDL dummy video driver for CI/testing and exit without opening a real window.",
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level for the engine.")
    return parser


def _env_flag_enabled(var_name: str) -> bool:
    return os.environ.get(var_name, "").strip().lower() in {"1", "true", "yes", "on"}


def _print_startup_banner() -> None:
    try:
        pygame_version = importlib.metadata.version("pygame")
    except importlib.metadata.PackageNotFoundError:
        pygame_version = "not-installed"
    print(
        "[cachecrawler.viewer] startup "
        f"python={platform.python_version()} "
        f"pygame={pygame_version} "
        f"platform={platform.platform()}"
    )


def _ensure_pygame_imported() -> Any:
    global pygame
    if pygame is None:
        import pygame as pygame_module

        pygame = pygame_module
    return pygame


def _open_viewer_session(save_dir: str, config: GameplayConfig) -> tuple[GameSession, MapScene]:
    session = GameSession.open(FileStore(save_dir), config)
    scene = MapScene()
    session.register_listener(scene)
    print(
        "[cachecrawler.viewer] loaded "
        f"save_dir={save_dir} explored={len(session.world.explored)} "
        f"caches={len(session.world.ledger)} world_hash={world_hash(session.world)}"
    )
    return session, scene


def run_pygame_viewer(
    gameplay_path: str = DEFAULT_GAMEPLAY_PATH,
    *,
    save_dir: str = "saves",
    geolocation: str | None = None,
    headless: bool = False,
) -> int:
    if headless:
        os.environ["SDL_VIDEODRIVER"] = "dummy"
        print("[cachecrawler.viewer] warning: headless mode active; no window will open.")

    _print_startup_banner()
    pygame_module = _ensure_pygame_imported()

    try:
        pygame_module.init()
    except Exception as exc:
        print(f"[cachecrawler.viewer] failed during pygame.init(): {exc}", file=sys.stderr)
        return 1

    try:
        config = load_gameplay_or_default(gameplay_path)
        session, scene = _open_viewer_session(save_dir, config)
        controller = SessionController(session=session, geolocation=parse_geolocation_fix(geolocation))
    except (OSError, ValueError) as exc:
        print(f"[cachecrawler.viewer] failed to initialize session: {exc}", file=sys.stderr)
        pygame_module.quit()
        return 1

    try:
        pygame_module.display.set_caption("cachecrawler")
        screen = pygame_module.display.set_mode(WINDOW_SIZE)
    except Exception as exc:
        print(
            "[cachecrawler.viewer] failed during pygame.display.set_mode(...): "
            f"{exc}. Hint: use --headless or CACHECRAWLER_HEADLESS=1 without a display.",
            file=sys.stderr,
        )
        pygame_module.quit()
        return 1

    if headless:
        pygame_module.quit()
        return 0

    move_keys = {getattr(pygame_module, name): direction for name, direction in MOVE_KEYS.items()}
    clock = pygame_module.time.Clock()
    font = pygame_module.font.SysFont("consolas", 18)
    label_font = pygame_module.font.SysFont("consolas", 13)
    tile_degrees = session.config.tile_degrees
    status_message: str | None = None
    running = True

    while running:
        for event in pygame_module.event.get():
            if event.type == pygame_module.QUIT:
                running = False
            elif event.type == pygame_module.KEYDOWN and event.key == pygame_module.K_ESCAPE:
                running = False
            elif event.type == pygame_module.KEYDOWN and event.key in move_keys:
                controller.move(move_keys[event.key])
                status_message = None
            elif event.type == pygame_module.KEYDOWN and event.key == pygame_module.K_r:
                controller.reset()
                status_message = "world reset"
            elif event.type == pygame_module.KEYDOWN and event.key == pygame_module.K_g:
                status_message = "location updated" if controller.locate() else "geolocation unavailable"
            elif event.type == pygame_module.KEYDOWN and event.key == pygame_module.K_F5:
                session.save()
                status_message = f"saved {save_dir}"
                print(f"[cachecrawler.viewer] saved save_dir={save_dir} world_hash={world_hash(session.world)}")
            elif event.type == pygame_module.MOUSEBUTTONDOWN and event.button in (1, 3):
                key = find_cache_at_pixel(scene, event.pos, tile_degrees, _map_center())
                if key is None:
                    continue
                outcome = controller.collect(key) if event.button == 1 else controller.deposit(key)
                status_message = f"{'collect' if event.button == 1 else 'deposit'} {key}: {outcome}"

        screen.fill(BACKGROUND_COLOR)
        _draw_scene(screen, scene, tile_degrees, label_font)
        _draw_hud(screen, scene, font, status_message)
        pygame_module.display.flip()
        clock.tick(30)

    pygame_module.quit()
    return 0


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    setup_logging(args.log_level.upper())
    headless = args.headless or _env_flag_enabled("CACHECRAWLER_HEADLESS")
    raise SystemExit(
        run_pygame_viewer(
            args.gameplay_path,
            save_dir=args.save_dir,
            geolocation=args.geolocation,
            headless=headless,
        )
    )


if __name__ == "__main__":
    main()
