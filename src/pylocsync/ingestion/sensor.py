"""Sensor subscription interface and fix parsing."""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from pylocsync.ingestion.normalize import first_present, safe_int
from pylocsync.models.sample import PositionSample

FixCallback = Callable[[Mapping[str, Any]], None]
ErrorCallback = Callable[[Exception], None]
Unsubscribe = Callable[[], None]


class LocationSensor(Protocol):
    """A source of position fixes.

    ``subscribe`` starts delivering fixes to *on_fix* (and failures to
    *on_error*) and returns a callable that ends the subscription. Callbacks
    may be invoked from any thread.
    """

    def subscribe(self, on_fix: FixCallback, on_error: ErrorCallback) -> Unsubscribe:
        ...


def _now_ms() -> int:
    return int(time.time() * 1000)


def sample_from_fix(fix: Mapping[str, Any], *, now_ms: int | None = None) -> PositionSample:
    """Build a :class:`PositionSample` from a raw sensor fix.

    Accepts a flat ``{latitude, longitude, speed, timestamp}`` mapping or a
    geolocation-style ``{"coords": {...}, "timestamp": ...}``. A fix without
    a timestamp is stamped with *now_ms* (wall clock by default).

    Raises
    ------
    TypeError
        If *fix* is not a mapping.
    pydantic.ValidationError
        If the coordinates are missing or out of range.
    """
    if not isinstance(fix, Mapping):
        raise TypeError(f"Sensor fix must be a mapping, got {type(fix).__name__}")

    coords = fix.get("coords")
    source: Mapping[str, Any] = coords if isinstance(coords, Mapping) else fix

    timestamp = safe_int(first_present(fix, "timestamp", "time"))
    if timestamp is None:
        timestamp = safe_int(source.get("timestamp"))
    if timestamp is None:
        timestamp = now_ms if now_ms is not None else _now_ms()

    return PositionSample(
        latitude=first_present(source, "latitude", "lat"),
        longitude=first_present(source, "longitude", "lng", "lon"),
        timestamp=timestamp,
        speed_hint=first_present(source, "speed", "speedHint"),
    )
