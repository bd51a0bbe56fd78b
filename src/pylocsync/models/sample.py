"""Position sample model."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from pylocsync.ingestion.normalize import safe_float, safe_int
from pylocsync.models._base import EpochTimestamp, LocSyncBaseModel


class PositionSample(LocSyncBaseModel):
    """One observed (sensor) or received (broker) geodetic fix.

    Samples are immutable; a new fix always produces a new instance.

    Parameters
    ----------
    latitude : float
        Latitude in signed degrees, within ``[-90, 90]``.
    longitude : float
        Longitude in signed degrees, within ``[-180, 180]``.
    timestamp : int
        Source-assigned epoch timestamp in milliseconds.
    speed_hint : float or None
        Speed in m/s as reported by the sensor. Informational only,
        never used for derivation.
    received_at : datetime or None
        Broker receipt time, when the broker stamps it.
    raw : dict
        Original payload dict.
    """

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    timestamp: int = Field(ge=0)
    speed_hint: float | None = Field(
        default=None,
        validation_alias=AliasChoices("speedHint", "speed", "speed_hint"),
    )
    received_at: EpochTimestamp = None

    @field_validator("latitude", "longitude", "speed_hint", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> int | None:
        return safe_int(value)

    @property
    def observed_at(self) -> datetime:
        """The sample timestamp as a UTC datetime."""
        return datetime.fromtimestamp(self.timestamp / 1000.0, tz=UTC)

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the broker's JSON shape.

        The broker and browser clients use ``speed`` for the
        sensor-reported speed.
        """
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "speed": self.speed_hint,
            "timestamp": self.timestamp,
        }
