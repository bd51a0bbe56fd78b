"""Distance strategies between two geodetic points.

All strategies satisfy :class:`DistanceProvider`; the estimator never knows
which one is active.
"""

from __future__ import annotations

import logging
import math
from typing import Protocol

from pylocsync._api.routing import fetch_route_distance
from pylocsync._constants import EARTH_RADIUS_M
from pylocsync._transport import Transport
from pylocsync.config import DistanceStrategy, LocSyncConfig
from pylocsync.exceptions import DistanceUnavailableError
from pylocsync.models.sample import PositionSample

_logger = logging.getLogger(__name__)


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two points given in degrees."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push a a hair outside [0, 1] for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


class DistanceProvider(Protocol):
    """Distance in meters between two samples, or :class:`DistanceUnavailableError`."""

    async def distance(self, point_a: PositionSample, point_b: PositionSample) -> float:
        ...


class GreatCircleDistanceProvider:
    """Haversine distance. Never fails for validated samples."""

    async def distance(self, point_a: PositionSample, point_b: PositionSample) -> float:
        return haversine_distance(point_a.latitude, point_a.longitude, point_b.latitude, point_b.longitude)


class RoutedDistanceProvider:
    """Distance along the road network from an OSRM-compatible table service."""

    def __init__(self, config: LocSyncConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport

    async def distance(self, point_a: PositionSample, point_b: PositionSample) -> float:
        return await fetch_route_distance(self._config, self._transport, point_a, point_b)


class DegradingDistanceProvider:
    """Try *primary*; on :class:`DistanceUnavailableError` use *fallback*.

    Only built when degradation is explicitly configured.
    """

    def __init__(self, primary: DistanceProvider, fallback: DistanceProvider) -> None:
        self._primary = primary
        self._fallback = fallback

    async def distance(self, point_a: PositionSample, point_b: PositionSample) -> float:
        try:
            return await self._primary.distance(point_a, point_b)
        except DistanceUnavailableError:
            _logger.debug("Primary distance unavailable; degrading to fallback", exc_info=True)
            return await self._fallback.distance(point_a, point_b)


def build_distance_provider(config: LocSyncConfig, transport: Transport) -> DistanceProvider:
    """Select the distance strategy named by *config*."""
    if config.distance_strategy is DistanceStrategy.GREAT_CIRCLE:
        return GreatCircleDistanceProvider()

    routed = RoutedDistanceProvider(config, transport)
    if config.degrade_to_great_circle:
        return DegradingDistanceProvider(routed, GreatCircleDistanceProvider())
    return routed
