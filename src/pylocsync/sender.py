"""Producer session: forward sensor fixes to the broker."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from pylocsync._api.broker import push_latest_sample
from pylocsync._transport import Transport
from pylocsync.config import LocSyncConfig
from pylocsync.exceptions import LocSyncTransportError
from pylocsync.ingestion.sensor import LocationSensor, Unsubscribe, sample_from_fix
from pylocsync.models.sample import PositionSample
from pylocsync.session import SessionGeneration
from pylocsync.state.events import SyncError, SyncErrorKind
from pylocsync.state.store import SenderState

_logger = logging.getLogger(__name__)


class LocationSender:
    """Subscribe to a sensor and push every fix to the broker.

    Fixes are pushed one at a time in arrival order. Push and sensor
    failures are recorded on :attr:`state` and never end the subscription.
    """

    def __init__(
        self,
        config: LocSyncConfig,
        transport: Transport,
        sensor: LocationSensor,
        *,
        on_update: Callable[[SenderState], None] | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._sensor = sensor
        self._on_update = on_update
        self._state = SenderState()
        self._generation = SessionGeneration()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._unsubscribe: Unsubscribe | None = None
        self._lock = asyncio.Lock()
        self._pending: set[asyncio.Task[bool]] = set()

    @property
    def state(self) -> SenderState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state.is_active

    def start(self) -> None:
        if self._state.is_active:
            return
        self._loop = asyncio.get_running_loop()
        self._generation = self._generation.next()
        generation = self._generation
        self._unsubscribe = self._sensor.subscribe(
            lambda fix: self._on_fix(generation, fix),
            lambda exc: self._on_sensor_error(generation, exc),
        )
        self._state = self._state.activated()
        _logger.debug("Sender started generation=%d", generation.number)
        self._notify()

    def stop(self) -> None:
        """Unsubscribe from the sensor; the last captured sample is kept."""
        self._unsubscribe_sensor()
        if self._state.is_active:
            self._state = self._state.deactivated()
            self._notify()

    def reset(self) -> None:
        """Unsubscribe and clear the captured sample, push status and error."""
        self._unsubscribe_sensor()
        self._generation = self._generation.next()
        self._state = SenderState()
        self._notify()

    async def flush(self) -> None:
        """Wait for every push scheduled so far to finish."""
        # Let fixes already handed over via call_soon_threadsafe get scheduled.
        await asyncio.sleep(0)
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _unsubscribe_sensor(self) -> None:
        unsubscribe = self._unsubscribe
        self._unsubscribe = None
        if unsubscribe is not None:
            unsubscribe()

    def _is_current(self, generation: SessionGeneration) -> bool:
        return generation.matches(self._generation) and self._state.is_active

    def _on_fix(self, generation: SessionGeneration, fix: Mapping[str, Any]) -> None:
        """Sensor callback; may run on a sensor thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._accept_fix, generation, fix)

    def _on_sensor_error(self, generation: SessionGeneration, exc: Exception) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._record_sensor_error, generation, exc)

    def _accept_fix(self, generation: SessionGeneration, fix: Mapping[str, Any]) -> None:
        if not self._is_current(generation):
            return
        try:
            sample = sample_from_fix(fix)
        except (TypeError, ValidationError) as exc:
            _logger.debug("Rejected sensor fix", exc_info=True)
            self._record_sensor_error(generation, exc)
            return

        self._state = self._state.captured(sample)
        self._notify()

        assert self._loop is not None  # noqa: S101
        task = self._loop.create_task(self._push(generation, sample))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _record_sensor_error(self, generation: SessionGeneration, exc: Exception) -> None:
        if not self._is_current(generation):
            return
        self._state = self._state.with_error(SyncError.from_exception(SyncErrorKind.SENSOR_UNAVAILABLE, exc))
        self._notify()

    async def _push(self, generation: SessionGeneration, sample: PositionSample) -> bool:
        # asyncio.Lock wakes waiters in FIFO order, preserving fix order.
        async with self._lock:
            if not self._is_current(generation):
                return False
            try:
                await push_latest_sample(self._config, self._transport, sample)
            except LocSyncTransportError as exc:
                _logger.debug("Push failed for t=%d", sample.timestamp, exc_info=True)
                if self._is_current(generation):
                    error = SyncError.from_exception(SyncErrorKind.TRANSPORT_FAILURE, exc)
                    self._state = self._state.with_error(error)
                    self._notify()
                return False

            if not self._is_current(generation):
                return False
            self._state = self._state.pushed(datetime.now(UTC))
            self._notify()
            return True

    def _notify(self) -> None:
        if self._on_update is None:
            return
        try:
            self._on_update(self._state)
        except Exception:
            _logger.debug("on_update callback failed", exc_info=True)
