"""Consumer session: poll the broker and derive kinematics from new samples."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from pylocsync._api.broker import fetch_latest_sample
from pylocsync._transport import Transport
from pylocsync.config import LocSyncConfig
from pylocsync.estimator import KinematicsEstimator
from pylocsync.exceptions import EstimationUnavailableError, LocSyncTransportError, SampleUnavailableError
from pylocsync.session import SessionGeneration
from pylocsync.state.events import SyncError, SyncErrorKind, TickOutcome
from pylocsync.state.policy import is_new_sample
from pylocsync.state.store import SyncState

_logger = logging.getLogger(__name__)


class LocationReceiver:
    """Poll-driven synchronization state machine (consumer side).

    ``Idle`` → ``start()`` → ``Active`` → ``stop()`` → ``Idle``; ``reset()``
    returns to a blank ``Idle`` from any state.

    While active, the broker is polled every ``config.poll_interval``
    seconds. Ticks run one at a time. A tick that is still in flight when
    the session is stopped or reset runs to completion, but its result is
    dropped.

    Usage::

        receiver = client.receiver(on_update=render)
        receiver.start()
        ...
        receiver.stop()
    """

    def __init__(
        self,
        config: LocSyncConfig,
        transport: Transport,
        estimator: KinematicsEstimator,
        *,
        on_update: Callable[[SyncState], None] | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._estimator = estimator
        self._on_update = on_update
        self._state = SyncState()
        self._generation = SessionGeneration()
        self._task: asyncio.Task[None] | None = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state.is_active

    @property
    def generation(self) -> SessionGeneration:
        return self._generation

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self, *, immediate: bool = True) -> None:
        """Begin polling. The first poll happens right away unless *immediate* is false."""
        if self._state.is_active:
            return
        self._generation = self._generation.next()
        self._state = self._state.activated()
        self._task = asyncio.get_running_loop().create_task(self._poll_loop(self._generation, immediate))
        _logger.debug("Receiver started generation=%d", self._generation.number)
        self._notify()

    def stop(self) -> None:
        """Stop polling; retained samples and estimates are kept."""
        self._cancel_task()
        if self._state.is_active:
            self._state = self._state.deactivated()
            _logger.debug("Receiver stopped generation=%d", self._generation.number)
            self._notify()

    def reset(self) -> None:
        """Stop polling and clear every retained value and error."""
        self._cancel_task()
        self._generation = self._generation.next()
        self._state = SyncState()
        _logger.debug("Receiver reset generation=%d", self._generation.number)
        self._notify()

    async def poll_once(self) -> TickOutcome:
        """Run a single tick under the current generation."""
        return await self._tick(self._generation)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _cancel_task(self) -> None:
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()

    def _is_current(self, generation: SessionGeneration) -> bool:
        return generation.matches(self._generation) and self._state.is_active

    async def _poll_loop(self, generation: SessionGeneration, immediate: bool) -> None:
        if not immediate:
            await asyncio.sleep(self._config.poll_interval)
        while True:
            # Cancelling the loop must not cancel a tick mid-estimation;
            # the generation check discards its result instead.
            try:
                await asyncio.shield(self._tick(generation))
            except Exception as exc:
                _logger.debug("Receiver tick failed", exc_info=True)
                error = SyncError.from_exception(SyncErrorKind.TRANSPORT_FAILURE, exc)
                self._commit(generation, self._state.with_error(error), TickOutcome.FAILED)
            await asyncio.sleep(self._config.poll_interval)

    async def _tick(self, generation: SessionGeneration) -> TickOutcome:
        async with self._lock:
            if not self._is_current(generation):
                return TickOutcome.DISCARDED
            state = self._state

            try:
                sample = await fetch_latest_sample(self._config, self._transport)
            except SampleUnavailableError as exc:
                error = SyncError.from_exception(SyncErrorKind.SAMPLE_UNAVAILABLE, exc)
                return self._commit(generation, state.with_error(error), TickOutcome.UNAVAILABLE)
            except LocSyncTransportError as exc:
                _logger.debug("Broker poll failed", exc_info=True)
                error = SyncError.from_exception(SyncErrorKind.TRANSPORT_FAILURE, exc)
                return self._commit(generation, state.with_error(error), TickOutcome.FAILED)

            if not is_new_sample(state.last_sample, sample):
                return self._commit(generation, state.without_error(), TickOutcome.UNCHANGED)

            if state.last_sample is None:
                return self._commit(generation, state.advanced(sample, None), TickOutcome.ADVANCED)

            try:
                estimate = await self._estimator.estimate(state.last_sample, sample, state.last_estimate)
            except EstimationUnavailableError as exc:
                _logger.debug("Estimation skipped for t=%d", sample.timestamp, exc_info=True)
                error = SyncError.from_exception(SyncErrorKind.DISTANCE_UNAVAILABLE, exc)
                # The sample still advances; only its estimate is lost.
                return self._commit(generation, state.advanced(sample, None).with_error(error), TickOutcome.FAILED)

            return self._commit(generation, state.advanced(sample, estimate), TickOutcome.ADVANCED)

    def _commit(self, generation: SessionGeneration, state: SyncState, outcome: TickOutcome) -> TickOutcome:
        if not self._is_current(generation):
            _logger.debug(
                "Discarding %s tick from generation=%d (current=%d)",
                outcome,
                generation.number,
                self._generation.number,
            )
            return TickOutcome.DISCARDED
        self._state = state
        _logger.debug("Receiver tick outcome=%s", outcome)
        self._notify()
        return outcome

    def _notify(self) -> None:
        if self._on_update is None:
            return
        try:
            self._on_update(self._state)
        except Exception:
            _logger.debug("on_update callback failed", exc_info=True)
