from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from pylocsync.config import LocSyncConfig
from pylocsync.exceptions import LocSyncTransportError
from pylocsync.ingestion.replay import ReplaySensor
from pylocsync.sender import LocationSender
from pylocsync.state.events import SyncErrorKind
from pylocsync.state.store import SenderState


@dataclass
class FakeBroker:
    sample: dict[str, Any] | None = None
    fail_post: bool = False
    pushed: list[dict[str, Any]] = field(default_factory=list)

    async def get_json(self, url: str, *, params: dict[str, str] | None = None) -> Any:  # pragma: no cover
        return self.sample

    async def post_json(self, url: str, payload: dict[str, Any]) -> Any:
        if self.fail_post:
            raise LocSyncTransportError(f"HTTP 503 from {url}: unavailable", status_code=503, endpoint=url)
        self.pushed.append(dict(payload))
        self.sample = dict(payload)
        return {"ok": True}


class ManualSensor:
    """Sensor driven by the test; counts subscriptions."""

    def __init__(self) -> None:
        self.on_fix: Callable[[Mapping[str, Any]], None] | None = None
        self.on_error: Callable[[Exception], None] | None = None
        self.subscribed = 0
        self.unsubscribed = 0

    def subscribe(
        self,
        on_fix: Callable[[Mapping[str, Any]], None],
        on_error: Callable[[Exception], None],
    ) -> Callable[[], None]:
        self.subscribed += 1
        self.on_fix = on_fix
        self.on_error = on_error

        def _unsubscribe() -> None:
            self.unsubscribed += 1

        return _unsubscribe

    def emit(self, fix: Mapping[str, Any]) -> None:
        assert self.on_fix is not None
        self.on_fix(fix)


def _fix(lat: float, t: int, speed: float | None = None) -> dict[str, Any]:
    return {"coords": {"latitude": lat, "longitude": -75.0, "speed": speed}, "timestamp": t}


def _sender(broker: FakeBroker, sensor: Any, **kwargs: Any) -> LocationSender:
    return LocationSender(LocSyncConfig(), broker, sensor, **kwargs)


@pytest.mark.asyncio
async def test_fix_is_pushed_to_broker() -> None:
    broker = FakeBroker()
    sensor = ManualSensor()
    sender = _sender(broker, sensor)
    sender.start()

    sensor.emit(_fix(40.0, 1_000, speed=2.5))
    await sender.flush()

    assert broker.pushed == [{"latitude": 40.0, "longitude": -75.0, "speed": 2.5, "timestamp": 1_000}]
    assert sender.state.last_sample is not None
    assert sender.state.last_sample.timestamp == 1_000
    assert sender.state.last_pushed_at is not None
    assert sender.state.error is None
    sender.stop()


@pytest.mark.asyncio
async def test_fixes_pushed_in_arrival_order() -> None:
    broker = FakeBroker()
    sensor = ManualSensor()
    sender = _sender(broker, sensor)
    sender.start()

    for i in range(5):
        sensor.emit(_fix(40.0 + i / 1000, 1_000 * (i + 1)))
    await sender.flush()

    assert [p["timestamp"] for p in broker.pushed] == [1_000, 2_000, 3_000, 4_000, 5_000]
    assert broker.sample is not None and broker.sample["timestamp"] == 5_000
    sender.stop()


@pytest.mark.asyncio
async def test_push_failure_is_recorded_and_session_stays_active() -> None:
    broker = FakeBroker(fail_post=True)
    sensor = ManualSensor()
    sender = _sender(broker, sensor)
    sender.start()

    sensor.emit(_fix(40.0, 1_000))
    await sender.flush()

    assert sender.is_active
    assert sender.state.error is not None
    assert sender.state.error.kind == SyncErrorKind.TRANSPORT_FAILURE
    assert sender.state.last_sample is not None

    broker.fail_post = False
    sensor.emit(_fix(40.001, 2_000))
    await sender.flush()

    assert sender.state.error is None
    assert broker.pushed[-1]["timestamp"] == 2_000
    sender.stop()


@pytest.mark.asyncio
async def test_sensor_error_and_invalid_fix_are_transient() -> None:
    broker = FakeBroker()
    sensor = ManualSensor()
    sender = _sender(broker, sensor)
    sender.start()

    assert sensor.on_error is not None
    sensor.on_error(PermissionError("User denied Geolocation"))
    await sender.flush()
    assert sender.state.error is not None
    assert sender.state.error.kind == SyncErrorKind.SENSOR_UNAVAILABLE
    assert sender.state.error.message == "User denied Geolocation"
    assert sender.is_active

    sensor.emit({"coords": {"latitude": 95.0, "longitude": 0.0}, "timestamp": 1})
    await sender.flush()
    assert sender.state.error is not None
    assert sender.state.error.kind == SyncErrorKind.SENSOR_UNAVAILABLE
    assert broker.pushed == []

    sensor.emit(_fix(40.0, 2_000))
    await sender.flush()
    assert sender.state.error is None
    sender.stop()


@pytest.mark.asyncio
async def test_stop_and_reset_unsubscribe_exactly_once() -> None:
    broker = FakeBroker()
    sensor = ManualSensor()
    sender = _sender(broker, sensor)
    sender.start()
    sender.start()
    assert sensor.subscribed == 1

    sensor.emit(_fix(40.0, 1_000))
    await sender.flush()

    sender.stop()
    sender.stop()
    sender.reset()
    assert sensor.unsubscribed == 1
    assert sender.state == SenderState()

    sender.start()
    sender.reset()
    assert sensor.subscribed == 2
    assert sensor.unsubscribed == 2


@pytest.mark.asyncio
async def test_fix_after_stop_is_ignored() -> None:
    broker = FakeBroker()
    sensor = ManualSensor()
    sender = _sender(broker, sensor)
    sender.start()

    sensor.emit(_fix(40.0, 1_000))
    await sender.flush()
    sender.stop()

    # A late callback from the old subscription
    sensor.emit(_fix(40.001, 2_000))
    await sender.flush()

    assert [p["timestamp"] for p in broker.pushed] == [1_000]
    assert sender.state.last_sample is not None
    assert sender.state.last_sample.timestamp == 1_000
    assert not sender.is_active


@pytest.mark.asyncio
async def test_fix_delivered_from_another_thread() -> None:
    broker = FakeBroker()
    sensor = ManualSensor()
    sender = _sender(broker, sensor)
    sender.start()

    await asyncio.to_thread(sensor.emit, _fix(40.0, 1_000))
    await sender.flush()

    assert [p["timestamp"] for p in broker.pushed] == [1_000]
    sender.stop()


@pytest.mark.asyncio
async def test_replay_sensor_end_to_end() -> None:
    broker = FakeBroker()
    sensor = ReplaySensor(
        [
            {"latitude": 40.0, "longitude": -75.0, "timestamp": 0},
            RuntimeError("fix lost"),
            {"latitude": 40.001, "longitude": -75.0, "timestamp": 10_000},
        ],
        interval=0,
    )
    updates: list[SenderState] = []
    sender = _sender(broker, sensor, on_update=updates.append)
    sender.start()

    await sensor.wait_exhausted()
    await sender.flush()
    sender.stop()

    assert sensor.is_exhausted
    assert [p["timestamp"] for p in broker.pushed] == [0, 10_000]
    assert any(u.error is not None and u.error.kind == SyncErrorKind.SENSOR_UNAVAILABLE for u in updates)
    assert sender.state.error is None


class DeniedSensor(ManualSensor):
    def subscribe(
        self,
        on_fix: Callable[[Mapping[str, Any]], None],
        on_error: Callable[[Exception], None],
    ) -> Callable[[], None]:
        raise PermissionError("User denied Geolocation")


@pytest.mark.asyncio
async def test_failed_subscribe_leaves_sender_inactive() -> None:
    updates: list[SenderState] = []
    sender = _sender(FakeBroker(), DeniedSensor(), on_update=updates.append)

    with pytest.raises(PermissionError):
        sender.start()

    assert not sender.is_active
    assert sender.state == SenderState()
    assert updates == []
    sender.stop()
