import json
from pathlib import Path

import pytest

from cachecrawler.content.gameplay import (
    DEFAULT_GAMEPLAY_PATH,
    GameplayConfig,
    gameplay_from_payload,
    load_gameplay_json,
    load_gameplay_or_default,
)
from cachecrawler.sim.grid import CellCoord, LatLng


def test_default_gameplay_file_matches_builtin_defaults() -> None:
    config = load_gameplay_json(DEFAULT_GAMEPLAY_PATH)

    assert config == GameplayConfig()
    assert config.neighborhood_size == 8
    assert config.spawn_probability == 0.1
    assert config.value_scale == 100


def test_grid_origin_and_step_default_to_start_and_tile() -> None:
    config = GameplayConfig(start_position=LatLng(10.0, 20.0), tile_degrees=0.5)

    assert config.grid_origin == LatLng(10.0, 20.0)
    assert config.step == 0.5
    assert config.grid_spec().to_cell(LatLng(10.0, 20.0)) == CellCoord(0, 0)


def test_explicit_origin_and_step_are_honored(tmp_path: Path) -> None:
    path = tmp_path / "gameplay.json"
    path.write_text(
        json.dumps(
            {
                "schema_version": 1,
                "start_position": {"lat": 1.0, "lng": 1.0},
                "origin": {"lat": 0.0, "lng": 0.0},
                "tile_degrees": 0.25,
                "step_degrees": 0.1,
            }
        ),
        encoding="utf-8",
    )

    config = load_gameplay_json(path)

    assert config.grid_spec().to_cell(config.start_position) == CellCoord(4, 4)
    assert config.step == 0.1


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({}, "schema_version"),
        ({"schema_version": 2}, "unsupported"),
        ({"schema_version": 1, "fog_color": "grey"}, "unknown gameplay fields"),
        ({"schema_version": 1, "tile_degrees": 0}, "tile_degrees"),
        ({"schema_version": 1, "spawn_probability": 1.5}, "spawn_probability"),
        ({"schema_version": 1, "neighborhood_size": 2.5}, "neighborhood_size"),
        ({"schema_version": 1, "value_scale": -1}, "value_scale"),
        ({"schema_version": 1, "start_position": {"lat": 1.0}}, "start_position"),
    ],
)
def test_invalid_gameplay_payloads_are_rejected(payload: dict, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        gameplay_from_payload(payload)


def test_missing_gameplay_file_falls_back_to_defaults(tmp_path: Path) -> None:
    assert load_gameplay_or_default(tmp_path / "absent.json") == GameplayConfig()
    assert load_gameplay_or_default(DEFAULT_GAMEPLAY_PATH) == GameplayConfig()
