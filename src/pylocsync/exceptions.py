"""Custom exception hierarchy for pylocsync."""

from __future__ import annotations


class LocSyncError(Exception):
    """Base exception for all pylocsync errors."""


class LocSyncConfigError(LocSyncError):
    """Invalid or missing configuration."""


class LocSyncTransportError(LocSyncError):
    """HTTP-level failure (network, timeout, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class SampleUnavailableError(LocSyncError):
    """The broker holds no sample yet (``404`` on the latest-sample endpoint).

    This is "no data yet", not a broker failure.
    """


class DistanceUnavailableError(LocSyncError):
    """A distance provider could not produce a usable distance.

    Raised by the routed-network provider on service errors, timeouts,
    malformed responses or a missing ``distances`` matrix.
    """


class EstimationUnavailableError(LocSyncError):
    """An estimation step was skipped because its distance was unavailable.

    The original :class:`DistanceUnavailableError` is chained as
    ``__cause__``.
    """
