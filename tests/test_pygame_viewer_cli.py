import pytest

from cachecrawler.cli.pygame_viewer import (
    MapScene,
    SessionController,
    _build_parser,
    _map_center,
    _open_viewer_session,
    find_cache_at_pixel,
    parse_geolocation_fix,
    sprite_pixel_rect,
)
from cachecrawler.content.gameplay import GameplayConfig
from cachecrawler.content.store import MemoryStore
from cachecrawler.sim.core import GameSession
from cachecrawler.sim.geolocation import FixedGeolocation, UnavailableGeolocation
from cachecrawler.sim.grid import LatLng

CONFIG = GameplayConfig(neighborhood_size=2, spawn_probability=1.0, value_scale=10)


def _session_with_scene() -> tuple[GameSession, MapScene]:
    session = GameSession.open(MemoryStore(), CONFIG)
    scene = MapScene()
    session.register_listener(scene)
    return session, scene


def test_viewer_parser_defaults() -> None:
    args = _build_parser().parse_args([])

    assert args.gameplay_path == "content/gameplay/default.json"
    assert args.save_dir == "saves"
    assert args.geolocation is None
    assert args.headless is False


def test_scene_tracks_session_callbacks() -> None:
    session, scene = _session_with_scene()

    assert set(scene.caches) == {record.key for _, record in session.visible_caches()}
    assert scene.player_position == CONFIG.start_position

    for _ in range(5):
        session.move_player("east")

    assert set(scene.caches) == {record.key for _, record in session.visible_caches()}
    assert len(scene.path) == 6


def test_scene_follows_transfers() -> None:
    session, scene = _session_with_scene()
    key = next(record.key for _, record in session.visible_caches() if record.remaining_value)

    SessionController(session=session).collect(key)

    assert scene.points == 1
    assert scene.inventory == session.world.player.inventory
    assert scene.caches[key].record.remaining_value == session.world.get_cache(key).remaining_value


def test_clicking_a_cache_sprite_resolves_its_key() -> None:
    session, scene = _session_with_scene()
    center = _map_center()
    key = sorted(scene.caches)[0]
    x, y, width, height = sprite_pixel_rect(scene.caches[key], scene.player_position, CONFIG.tile_degrees, center)

    assert width == height == 40
    assert find_cache_at_pixel(scene, (x + width // 2, y + height // 2), CONFIG.tile_degrees, center) == key
    assert find_cache_at_pixel(scene, (-500, -500), CONFIG.tile_degrees, center) is None


def test_player_cell_is_drawn_at_map_center() -> None:
    session, scene = _session_with_scene()
    center = _map_center()

    key = find_cache_at_pixel(scene, (int(center[0]) + 1, int(center[1]) - 1), CONFIG.tile_degrees, center)

    assert key == "0,0"


def test_parse_geolocation_fix() -> None:
    assert parse_geolocation_fix("36.99,-122.06") == FixedGeolocation(LatLng(36.99, -122.06))
    assert isinstance(parse_geolocation_fix(None), UnavailableGeolocation)
    with pytest.raises(ValueError, match="LAT,LNG"):
        parse_geolocation_fix("36.99")


def test_controller_locate_uses_configured_fix() -> None:
    session, scene = _session_with_scene()
    target = CONFIG.start_position.offset(0.001, 0.001)
    controller = SessionController(session=session, geolocation=FixedGeolocation(target))

    assert controller.locate() is True
    assert scene.player_position == target
    assert SessionController(session=session).locate() is False


def test_open_viewer_session_persists_under_save_dir(tmp_path) -> None:
    session, scene = _open_viewer_session(str(tmp_path), CONFIG)
    session.move_player("north")

    assert (tmp_path / "world.json").exists()
    assert scene.player_position == session.world.player.position
