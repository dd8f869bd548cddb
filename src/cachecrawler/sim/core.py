from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any

from cachecrawler.content.gameplay import GameplayConfig
from cachecrawler.content.io import load_world, reset_world, save_world
from cachecrawler.content.store import KeyValueStore
from cachecrawler.sim.generator import CacheGenerator
from cachecrawler.sim.geolocation import GeolocationProvider, resolve_position
from cachecrawler.sim.grid import CellCoord, LatLng, cell_key, parse_cell_key
from cachecrawler.sim.movement import DIRECTION_OFFSETS, step_position
from cachecrawler.sim.rules import WorldListener
from cachecrawler.sim.transfer import TransferResult, collect, deposit
from cachecrawler.sim.visibility import VisibilityWindow, WindowUpdate
from cachecrawler.sim.world import CacheRecord, WorldState

logger = logging.getLogger(__name__)

MAX_EVENT_TRACE = 256
WINDOW_UPDATE_EVENT_TYPE = "window_update"
TRANSFER_OUTCOME_EVENT_TYPE = "transfer_outcome"
SESSION_RESET_EVENT_TYPE = "session_reset"
GEOLOCATION_OUTCOME_EVENT_TYPE = "geolocation_outcome"
OUTCOME_CACHE_NOT_VISIBLE = "cache_not_visible"
COMMAND_TYPES = {"move", "collect", "deposit", "reset", "geolocation"}


@dataclass
class SessionCommand:
    """UI intent addressed to a ``GameSession``."""

    command_type: str
    params: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.command_type, str) or self.command_type not in COMMAND_TYPES:
            raise ValueError(f"command_type must be one of: {', '.join(sorted(COMMAND_TYPES))}")
        if not isinstance(self.params, dict):
            raise ValueError("params must be a dict")

    def to_dict(self) -> dict[str, Any]:
        return {"command_type": self.command_type, "params": copy.deepcopy(self.params)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionCommand":
        return cls(command_type=str(data["command_type"]), params=dict(data.get("params", {})))


class GameSession:
    """Single-threaded owner of one world.

    Every input event runs to completion: it mutates ``world``, recomputes the
    visibility window when the player moved, notifies listeners and persists
    to the attached store. The window around the current position is
    materialized on construction.
    """

    def __init__(
        self,
        world: WorldState,
        *,
        config: GameplayConfig | None = None,
        store: KeyValueStore | None = None,
    ) -> None:
        self.config = config if config is not None else GameplayConfig()
        self.grid = self.config.grid_spec()
        self.world = world
        self.store = store
        self.window = VisibilityWindow(self.config.neighborhood_size)
        self.generator = CacheGenerator(
            spawn_probability=self.config.spawn_probability,
            value_scale=self.config.value_scale,
        )
        self.listeners: list[WorldListener] = []
        self._event_trace: list[dict[str, Any]] = []
        self._next_trace_id = 1
        self.refresh_window()

    @classmethod
    def open(cls, store: KeyValueStore, config: GameplayConfig | None = None) -> "GameSession":
        config = config if config is not None else GameplayConfig()
        return cls(load_world(store, config), config=config, store=store)

    @property
    def player_cell(self) -> CellCoord:
        return self.grid.to_cell(self.world.player.position)

    def register_listener(self, listener: WorldListener) -> None:
        if any(existing.name == listener.name for existing in self.listeners):
            raise ValueError(f"duplicate listener name: {listener.name}")
        self.listeners.append(listener)
        listener.on_session_start(self)
        for coord, record in self.visible_caches():
            listener.on_materialize(self, coord, self.grid.cell_bounds(coord), record)

    def get_listener(self, name: str) -> WorldListener | None:
        for listener in self.listeners:
            if listener.name == name:
                return listener
        return None

    def visible_caches(self) -> list[tuple[CellCoord, CacheRecord]]:
        caches: list[tuple[CellCoord, CacheRecord]] = []
        for coord in sorted(self.window.visible_cells):
            record = self.world.get_cache(cell_key(coord))
            if record is not None:
                caches.append((coord, record))
        return caches

    def event_trace(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._event_trace)

    def refresh_window(self) -> WindowUpdate:
        update = self.window.update(self.world, self.player_cell, self.generator)
        for coord in update.dematerialized:
            for listener in self.listeners:
                listener.on_dematerialize(self, coord)
        for coord, record in update.materialized:
            bounds = self.grid.cell_bounds(coord)
            for listener in self.listeners:
                listener.on_materialize(self, coord, bounds, record)
        if not update.is_empty or update.generated:
            self._append_event_trace_entry(WINDOW_UPDATE_EVENT_TYPE, update.to_dict())
        return update

    def move_player(self, direction: str) -> LatLng:
        position = step_position(self.world.player.position, direction, self.config.step)
        self._relocate_player(position)
        return position

    def geolocation_resolved(self, position: LatLng | None) -> bool:
        if position is None:
            self._append_event_trace_entry(GEOLOCATION_OUTCOME_EVENT_TYPE, {"outcome": "unavailable"})
            return False
        self._relocate_player(position)
        self._append_event_trace_entry(
            GEOLOCATION_OUTCOME_EVENT_TYPE,
            {"outcome": "applied", "position": position.to_dict()},
        )
        return True

    def request_geolocation(self, provider: GeolocationProvider) -> bool:
        return self.geolocation_resolved(resolve_position(provider))

    def collect_from_cache(self, key: str) -> TransferResult:
        return self._transfer(key, action="collect")

    def deposit_to_cache(self, key: str) -> TransferResult:
        return self._transfer(key, action="deposit")

    def request_reset(self) -> None:
        for coord, _ in self.visible_caches():
            for listener in self.listeners:
                listener.on_dematerialize(self, coord)
        self.window.reset()
        if self.store is not None:
            self.world = reset_world(self.store, self.config)
        else:
            self.world = WorldState.fresh(self.config.start_position)
        self._append_event_trace_entry(SESSION_RESET_EVENT_TYPE, {"position": self.world.player.position.to_dict()})
        self.refresh_window()
        self._notify_player_moved()
        self._notify_points_changed()
        self.save()

    def save(self) -> None:
        if self.store is None:
            return
        save_world(self.store, self.world, key=self.config.save_key)

    def apply_command(self, command: SessionCommand | dict[str, Any]) -> Any:
        normalized = command if isinstance(command, SessionCommand) else SessionCommand.from_dict(command)
        params = normalized.params
        if normalized.command_type == "move":
            direction = params.get("direction")
            if direction not in DIRECTION_OFFSETS:
                raise ValueError(f"move command requires a direction in {sorted(DIRECTION_OFFSETS)}")
            return self.move_player(direction)
        if normalized.command_type in {"collect", "deposit"}:
            key = params.get("cell_key")
            if not isinstance(key, str) or not key:
                raise ValueError(f"{normalized.command_type} command requires a cell_key")
            if normalized.command_type == "collect":
                return self.collect_from_cache(key)
            return self.deposit_to_cache(key)
        if normalized.command_type == "reset":
            self.request_reset()
            return None
        position = params.get("position")
        return self.geolocation_resolved(LatLng.from_dict(position) if isinstance(position, dict) else None)

    def _relocate_player(self, position: LatLng) -> None:
        self.world.player.move_to(position)
        self.refresh_window()
        self._notify_player_moved()
        self.save()

    def _transfer(self, key: str, *, action: str) -> TransferResult:
        if not self._cache_is_visible(key):
            result = TransferResult(action=action, cell_key=key, outcome=OUTCOME_CACHE_NOT_VISIBLE)
        elif action == "collect":
            result = collect(self.world, key)
        else:
            result = deposit(self.world, key)

        self._append_event_trace_entry(TRANSFER_OUTCOME_EVENT_TYPE, result.to_dict())
        if not result.applied:
            logger.debug("%s at %s rejected: %s", action, key, result.outcome)
            return result

        record = self.world.get_cache(key)
        if record is not None:
            for listener in self.listeners:
                listener.on_cache_changed(self, record.cell, record)
        self._notify_points_changed()
        self.save()
        return result

    def _cache_is_visible(self, key: str) -> bool:
        try:
            coord = parse_cell_key(key)
        except ValueError:
            return False
        return self.window.is_visible(coord)

    def _notify_player_moved(self) -> None:
        player = self.world.player
        for listener in self.listeners:
            listener.on_player_moved(self, player.position, list(player.path))

    def _notify_points_changed(self) -> None:
        player = self.world.player
        for listener in self.listeners:
            listener.on_points_changed(self, player.points, list(player.inventory))

    def _append_event_trace_entry(self, event_type: str, params: dict[str, Any]) -> None:
        self._event_trace.append(
            {
                "event_id": self._next_trace_id,
                "event_type": event_type,
                "params": copy.deepcopy(params),
            }
        )
        self._next_trace_id += 1
        if len(self._event_trace) > MAX_EVENT_TRACE:
            overflow = len(self._event_trace) - MAX_EVENT_TRACE
            del self._event_trace[:overflow]
