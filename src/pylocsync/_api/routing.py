"""Routed-network distance endpoint.

Speaks the OSRM ``table`` service:

  GET {routing_url}/table/v1/{profile}/{lon},{lat};{lon},{lat}?annotations=distance

and extracts the single cross distance ``distances[0][1]`` (meters) from the
returned matrix.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from pylocsync._transport import Transport
from pylocsync.config import LocSyncConfig
from pylocsync.exceptions import DistanceUnavailableError, LocSyncTransportError
from pylocsync.models.sample import PositionSample

_logger = logging.getLogger(__name__)


def _build_table_url(config: LocSyncConfig, origin: PositionSample, destination: PositionSample) -> str:
    if not config.routing_url:
        raise DistanceUnavailableError("No routing service configured")
    # OSRM coordinates are lon,lat
    coords = f"{origin.longitude},{origin.latitude};{destination.longitude},{destination.latitude}"
    return f"{config.routing_url.rstrip('/')}/table/v1/{config.routing_profile}/{coords}"


def _extract_cross_distance(data: Any) -> float:
    """Pull ``distances[0][1]`` out of a table response."""
    if not isinstance(data, dict):
        raise DistanceUnavailableError("Routing response is not an object")

    code = data.get("code")
    if code is not None and code != "Ok":
        raise DistanceUnavailableError(f"Routing service error: code={code} message={data.get('message', '')}")

    matrix = data.get("distances")
    if not isinstance(matrix, list) or not matrix:
        raise DistanceUnavailableError("Routing response has no distances")

    row = matrix[0]
    if not isinstance(row, list) or len(row) < 2:
        raise DistanceUnavailableError("Routing response has a malformed distance matrix")

    value = row[1]
    # OSRM reports unroutable pairs as null
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DistanceUnavailableError("Routing response has no usable distance")
    distance = float(value)
    if math.isnan(distance) or math.isinf(distance) or distance < 0:
        raise DistanceUnavailableError(f"Routing response has an invalid distance: {value!r}")
    return distance


async def fetch_route_distance(
    config: LocSyncConfig,
    transport: Transport,
    origin: PositionSample,
    destination: PositionSample,
) -> float:
    """Routed distance in meters between two samples.

    Raises
    ------
    DistanceUnavailableError
        On transport failure (including timeout), service error, or a
        response without a usable distance.
    """
    url = _build_table_url(config, origin, destination)
    try:
        data = await transport.get_json(url, params={"annotations": "distance"})
    except LocSyncTransportError as exc:
        raise DistanceUnavailableError(f"Routing request failed: {exc}") from exc

    distance = _extract_cross_distance(data)
    _logger.debug("Routed distance %.2f m", distance)
    return distance
