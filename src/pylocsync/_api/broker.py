"""Location broker endpoints.

The broker is a single-slot, overwrite-only store:

  - ``POST /location`` replaces the held sample
  - ``GET /location`` returns it, or ``404`` before the first push
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from pylocsync._transport import Transport
from pylocsync.config import LocSyncConfig
from pylocsync.exceptions import LocSyncTransportError, SampleUnavailableError
from pylocsync.models.sample import PositionSample

_logger = logging.getLogger(__name__)


def _is_sample_ready(data: Any) -> bool:
    """Check if the broker payload carries a position at all."""
    if not isinstance(data, dict) or not data:
        return False
    return data.get("latitude") is not None and data.get("longitude") is not None


async def push_latest_sample(
    config: LocSyncConfig,
    transport: Transport,
    sample: PositionSample,
) -> None:
    """Overwrite the broker's held sample with *sample*.

    Raises
    ------
    LocSyncTransportError
        If the broker cannot be reached or rejects the sample.
    """
    await transport.post_json(config.location_url, sample.to_payload())
    _logger.debug("Pushed sample t=%d", sample.timestamp)


async def fetch_latest_sample(config: LocSyncConfig, transport: Transport) -> PositionSample:
    """Read the broker's held sample.

    Raises
    ------
    SampleUnavailableError
        If the broker has not received a sample yet.
    LocSyncTransportError
        On any other transport failure, or a payload that is not a valid
        sample.
    """
    endpoint = config.location_url
    try:
        data = await transport.get_json(endpoint)
    except LocSyncTransportError as exc:
        if exc.status_code == 404:
            raise SampleUnavailableError("No location data available yet") from exc
        raise

    if not _is_sample_ready(data):
        raise SampleUnavailableError("No location data available yet")

    try:
        return PositionSample.model_validate(data)
    except ValidationError as exc:
        raise LocSyncTransportError(
            f"Malformed sample from {endpoint}: {exc.error_count()} validation error(s)",
            endpoint=endpoint,
        ) from exc
