"""Ingestion layer.

This package contains adapters that receive fixes from location sensors and
turn them into normalized :class:`~pylocsync.models.PositionSample` values.
"""

__all__: list[str] = []
