from __future__ import annotations

from typing import Any

SUPPORTED_SCHEMA_VERSIONS = {1}
REQUIRED_SAVE_FIELDS = {"schema_version", "world_state", "save_hash"}
REQUIRED_WORLD_FIELDS = {"position", "points", "inventory", "path", "explored", "ledger", "next_serial"}


def _require_int(value: Any, *, field_name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")


def _validate_position(value: Any, *, field_name: str) -> None:
    if not isinstance(value, dict) or not {"lat", "lng"} <= value.keys():
        raise ValueError(f"{field_name} must be an object with lat and lng")
    for axis in ("lat", "lng"):
        raw = value[axis]
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise ValueError(f"{field_name}.{axis} must be numeric")


def _validate_coin(value: Any, *, field_name: str) -> None:
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be an object")
    cell = value.get("minted_at_cell")
    if not isinstance(cell, dict) or not {"x", "y"} <= cell.keys():
        raise ValueError(f"{field_name}.minted_at_cell must be an object with x and y")
    _require_int(cell["x"], field_name=f"{field_name}.minted_at_cell.x")
    _require_int(cell["y"], field_name=f"{field_name}.minted_at_cell.y")
    _require_int(value.get("serial"), field_name=f"{field_name}.serial")


def validate_world_payload(payload: Any, *, field_prefix: str = "world_state") -> None:
    if not isinstance(payload, dict):
        raise ValueError(f"{field_prefix} must be an object")
    missing = REQUIRED_WORLD_FIELDS - set(payload.keys())
    if missing:
        raise ValueError(f"{field_prefix} missing fields: {sorted(missing)}")

    _validate_position(payload["position"], field_name=f"{field_prefix}.position")
    _require_int(payload["points"], field_name=f"{field_prefix}.points")
    _require_int(payload["next_serial"], field_name=f"{field_prefix}.next_serial")

    for name in ("inventory", "path", "explored", "ledger"):
        if not isinstance(payload[name], list):
            raise ValueError(f"{field_prefix}.{name} must be a list")

    for index, coin in enumerate(payload["inventory"]):
        _validate_coin(coin, field_name=f"{field_prefix}.inventory[{index}]")
    for index, position in enumerate(payload["path"]):
        _validate_position(position, field_name=f"{field_prefix}.path[{index}]")
    for index, key in enumerate(payload["explored"]):
        if not isinstance(key, str) or not key:
            raise ValueError(f"{field_prefix}.explored[{index}] must be a non-empty string")

    for index, row in enumerate(payload["ledger"]):
        row_name = f"{field_prefix}.ledger[{index}]"
        if not isinstance(row, list) or len(row) != 2:
            raise ValueError(f"{row_name} must be a [cell_key, record] pair")
        key, record = row
        if not isinstance(key, str) or not key:
            raise ValueError(f"{row_name}[0] must be a non-empty string")
        if not isinstance(record, dict):
            raise ValueError(f"{row_name}[1] must be an object")
        _require_int(record.get("remaining_value"), field_name=f"{row_name}.remaining_value")
        coins = record.get("coins")
        if not isinstance(coins, list):
            raise ValueError(f"{row_name}.coins must be a list")
        for coin_index, coin in enumerate(coins):
            _validate_coin(coin, field_name=f"{row_name}.coins[{coin_index}]")


def validate_save_payload(payload: Any) -> None:
    if not isinstance(payload, dict):
        raise ValueError("save payload must be an object")
    missing = REQUIRED_SAVE_FIELDS - set(payload.keys())
    if missing:
        raise ValueError(f"save payload missing fields: {sorted(missing)}")
    schema_version = payload["schema_version"]
    if schema_version not in SUPPORTED_SCHEMA_VERSIONS:
        raise ValueError(f"unsupported schema_version: {schema_version}")
    if not isinstance(payload["save_hash"], str) or not payload["save_hash"]:
        raise ValueError("save_hash must be a non-empty string")
    validate_world_payload(payload["world_state"])
