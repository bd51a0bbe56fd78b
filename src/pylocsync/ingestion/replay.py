"""Sensor that replays recorded fixes on the running event loop."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pylocsync.ingestion.sensor import ErrorCallback, FixCallback, Unsubscribe

_logger = logging.getLogger(__name__)


class ReplaySensor:
    """Deliver a fixed sequence of fixes, one every *interval* seconds.

    Items that are exceptions are delivered to the error callback instead,
    which makes sensor failures reproducible.
    """

    def __init__(self, fixes: Iterable[Mapping[str, Any] | Exception], *, interval: float = 1.0) -> None:
        self._fixes = list(fixes)
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @classmethod
    def from_jsonl(cls, path: str | Path, *, interval: float = 1.0) -> ReplaySensor:
        """Load one JSON fix per line from *path*, skipping blank lines."""
        fixes: list[Mapping[str, Any]] = []
        with Path(path).open(encoding="utf-8") as handle:
            for line in handle:
                if line.strip():
                    fixes.append(json.loads(line))
        return cls(fixes, interval=interval)

    def __len__(self) -> int:
        return len(self._fixes)

    @property
    def is_exhausted(self) -> bool:
        return self._task is not None and self._task.done()

    def subscribe(self, on_fix: FixCallback, on_error: ErrorCallback) -> Unsubscribe:
        task = asyncio.get_running_loop().create_task(self._replay(on_fix, on_error))
        self._task = task

        def _unsubscribe() -> None:
            if not task.done():
                task.cancel()

        return _unsubscribe

    async def wait_exhausted(self) -> None:
        """Wait until every fix has been delivered (or the replay was cancelled)."""
        task = self._task
        if task is None:
            return
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    async def _replay(self, on_fix: FixCallback, on_error: ErrorCallback) -> None:
        for index, item in enumerate(self._fixes):
            if index and self._interval > 0:
                await asyncio.sleep(self._interval)
            if isinstance(item, Exception):
                on_error(item)
            else:
                on_fix(item)
        _logger.debug("Replay finished after %d fixes", len(self._fixes))
