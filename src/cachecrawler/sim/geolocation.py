from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from cachecrawler.sim.grid import LatLng

logger = logging.getLogger(__name__)


class GeolocationUnavailable(RuntimeError):
    """The position source is absent, denied or timed out."""


GeolocationProvider = Callable[[], LatLng]


@dataclass(frozen=True)
class FixedGeolocation:
    position: LatLng

    def __call__(self) -> LatLng:
        return self.position


@dataclass(frozen=True)
class UnavailableGeolocation:
    reason: str = "geolocation unavailable"

    def __call__(self) -> LatLng:
        raise GeolocationUnavailable(self.reason)


def resolve_position(provider: GeolocationProvider) -> LatLng | None:
    try:
        position = provider()
    except GeolocationUnavailable as exc:
        logger.warning("geolocation unavailable: %s", exc)
        return None
    if not isinstance(position, LatLng):
        logger.warning("geolocation provider returned %r; ignoring", position)
        return None
    return position
