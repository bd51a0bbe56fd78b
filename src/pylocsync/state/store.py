"""Immutable session snapshots.

Each transition returns a new snapshot; the session machines swap their
reference in one assignment so a discarded in-flight tick can never leave a
half-written state behind.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from pylocsync.models.estimate import DerivedEstimate
from pylocsync.models.sample import PositionSample
from pylocsync.state.events import SyncError


class SyncState(BaseModel):
    """Retained consumer-side state.

    Only the current and the immediately preceding sample and estimate are
    kept. ``stop`` keeps them; only ``reset`` returns a blank snapshot.
    """

    model_config = ConfigDict(frozen=True)

    last_sample: PositionSample | None = None
    previous_sample: PositionSample | None = None
    last_estimate: DerivedEstimate | None = None
    previous_estimate: DerivedEstimate | None = None
    is_active: bool = False
    error: SyncError | None = None

    def activated(self) -> SyncState:
        return self.model_copy(update={"is_active": True})

    def deactivated(self) -> SyncState:
        return self.model_copy(update={"is_active": False})

    def with_error(self, error: SyncError) -> SyncState:
        return self.model_copy(update={"error": error})

    def without_error(self) -> SyncState:
        if self.error is None:
            return self
        return self.model_copy(update={"error": None})

    def advanced(self, sample: PositionSample, estimate: DerivedEstimate | None) -> SyncState:
        """Shift both slot pairs by one for a new sample.

        The previous estimate always takes the last one. Without a new
        estimate (first sample, stale pair, or distance failure) the last
        estimate keeps its value.
        """
        update: dict[str, object] = {
            "previous_sample": self.last_sample,
            "last_sample": sample,
            "previous_estimate": self.last_estimate,
            "error": None,
        }
        if estimate is not None:
            update["last_estimate"] = estimate
        return self.model_copy(update=update)


class SenderState(BaseModel):
    """Producer-side snapshot: last captured fix and push status."""

    model_config = ConfigDict(frozen=True)

    last_sample: PositionSample | None = None
    last_pushed_at: datetime | None = None
    is_active: bool = False
    error: SyncError | None = None

    def activated(self) -> SenderState:
        return self.model_copy(update={"is_active": True, "error": None})

    def deactivated(self) -> SenderState:
        return self.model_copy(update={"is_active": False})

    def captured(self, sample: PositionSample) -> SenderState:
        return self.model_copy(update={"last_sample": sample})

    def pushed(self, at: datetime) -> SenderState:
        return self.model_copy(update={"last_pushed_at": at, "error": None})

    def with_error(self, error: SyncError) -> SenderState:
        return self.model_copy(update={"error": error})
