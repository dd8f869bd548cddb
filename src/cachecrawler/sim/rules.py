from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cachecrawler.sim.core import GameSession
    from cachecrawler.sim.grid import CellCoord, LatLng
    from cachecrawler.sim.world import CacheRecord, Coin


class WorldListener:
    """Outbound hooks from a ``GameSession`` to a renderer or UI.

    Listeners are registered on a session and called in stable registration
    order. They observe state; they never mutate the world directly.
    """

    name: str

    def on_session_start(self, session: GameSession) -> None:
        """Called once, immediately when the listener is registered."""

    def on_materialize(
        self,
        session: GameSession,
        cell: CellCoord,
        bounds: tuple[LatLng, LatLng],
        record: CacheRecord,
    ) -> None:
        """A cache entered the visibility window."""

    def on_dematerialize(self, session: GameSession, cell: CellCoord) -> None:
        """A cache left the visibility window; its ledger entry is untouched."""

    def on_player_moved(self, session: GameSession, position: LatLng, path: list[LatLng]) -> None:
        """Called after every movement or geolocation fix."""

    def on_points_changed(self, session: GameSession, points: int, inventory: list[Coin]) -> None:
        """Called after an applied transfer or a reset."""

    def on_cache_changed(self, session: GameSession, cell: CellCoord, record: CacheRecord) -> None:
        """Called after an applied transfer touched a visible cache."""
