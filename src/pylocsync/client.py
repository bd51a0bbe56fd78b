"""High-level async client for the location broker."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from pylocsync._api.broker import fetch_latest_sample, push_latest_sample
from pylocsync._transport import HttpTransport, Transport
from pylocsync.config import LocSyncConfig
from pylocsync.distance import DistanceProvider, build_distance_provider
from pylocsync.estimator import KinematicsEstimator
from pylocsync.exceptions import LocSyncError
from pylocsync.ingestion.sensor import LocationSensor
from pylocsync.models.sample import PositionSample
from pylocsync.receiver import LocationReceiver
from pylocsync.sender import LocationSender
from pylocsync.state.store import SenderState, SyncState

_logger = logging.getLogger(__name__)


class LocSyncClient:
    """Async client wiring the broker, the distance strategy and the sessions.

    Usage::

        async with LocSyncClient(config) as client:
            receiver = client.receiver(on_update=print)
            receiver.start()

    A *transport* may be injected (tests, custom HTTP stacks); otherwise an
    aiohttp-backed :class:`HttpTransport` is created on entry.
    """

    def __init__(
        self,
        config: LocSyncConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config if config is not None else LocSyncConfig()
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None
        self._provider: DistanceProvider | None = None
        self._sessions: list[LocationReceiver | LocationSender] = []

    @property
    def config(self) -> LocSyncConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> LocSyncClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._http_session, timeout=self._config.request_timeout)
        self._provider = build_distance_provider(self._config, self._transport)
        _logger.debug("Client ready strategy=%s", self._config.distance_strategy)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        for session in self._sessions:
            session.stop()
        self._sessions.clear()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None
        self._provider = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise LocSyncError("Client not initialized. Use 'async with LocSyncClient(...) as client:'")
        return self._transport

    def _require_provider(self) -> DistanceProvider:
        if self._provider is None:
            raise LocSyncError("Client not initialized. Use 'async with LocSyncClient(...) as client:'")
        return self._provider

    # ------------------------------------------------------------------
    # Broker and distance
    # ------------------------------------------------------------------

    async def push_sample(self, sample: PositionSample) -> None:
        """Overwrite the broker's latest sample."""
        await push_latest_sample(self._config, self._require_transport(), sample)

    async def get_latest_sample(self) -> PositionSample:
        """Read the broker's latest sample (raises ``SampleUnavailableError`` before the first push)."""
        return await fetch_latest_sample(self._config, self._require_transport())

    async def distance(self, point_a: PositionSample, point_b: PositionSample) -> float:
        """Distance in meters under the configured strategy."""
        return await self._require_provider().distance(point_a, point_b)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def receiver(self, *, on_update: Callable[[SyncState], None] | None = None) -> LocationReceiver:
        """Create a consumer session polling the broker."""
        receiver = LocationReceiver(
            self._config,
            self._require_transport(),
            KinematicsEstimator(self._require_provider()),
            on_update=on_update,
        )
        self._sessions.append(receiver)
        return receiver

    def sender(
        self,
        sensor: LocationSensor,
        *,
        on_update: Callable[[SenderState], None] | None = None,
    ) -> LocationSender:
        """Create a producer session forwarding *sensor* fixes to the broker."""
        sender = LocationSender(self._config, self._require_transport(), sensor, on_update=on_update)
        self._sessions.append(sender)
        return sender
