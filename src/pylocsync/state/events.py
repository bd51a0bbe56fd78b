"""Transient errors and tick outcomes.

Every failure a session tick can hit is converted into a :class:`SyncError`
value and stored on the session snapshot. Only the session machines create
them; the next successful tick clears them.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class SyncErrorKind(StrEnum):
    SAMPLE_UNAVAILABLE = "sample_unavailable"
    DISTANCE_UNAVAILABLE = "distance_unavailable"
    TRANSPORT_FAILURE = "transport_failure"
    SENSOR_UNAVAILABLE = "sensor_unavailable"


class TickOutcome(StrEnum):
    ADVANCED = "advanced"
    UNCHANGED = "unchanged"
    UNAVAILABLE = "unavailable"
    FAILED = "failed"
    DISCARDED = "discarded"


class SyncError(BaseModel):
    """A transient, session-scoped error surfaced to the presentation layer."""

    model_config = ConfigDict(frozen=True)

    kind: SyncErrorKind
    message: str
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_exception(cls, kind: SyncErrorKind, exc: BaseException) -> SyncError:
        return cls(kind=kind, message=str(exc) or type(exc).__name__)
