#!/usr/bin/env python3
"""Replay a recorded track to the broker as if it came from a live sensor.

The track file holds one JSON fix per line, either flat::

    {"latitude": 40.0, "longitude": -75.0, "speed": 1.2, "timestamp": 1700000000000}

or geolocation-shaped::

    {"coords": {"latitude": 40.0, "longitude": -75.0, "speed": null}, "timestamp": 1700000000000}
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pylocsync import LocSyncClient, LocSyncConfig, LocSyncError, ReplaySensor, SenderState  # noqa: E402


def _print_state(state: SenderState) -> None:
    if state.error is not None:
        print(f"error[{state.error.kind}]: {state.error.message}", file=sys.stderr, flush=True)
    elif state.last_pushed_at is not None and state.last_sample is not None:
        sample = state.last_sample
        print(
            f"sent lat={sample.latitude:.6f} lon={sample.longitude:.6f} "
            f"at {state.last_pushed_at.strftime('%H:%M:%S')}",
            flush=True,
        )


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("track", type=Path, help="JSON-lines file of fixes")
    parser.add_argument("--broker-url", help="Broker base URL (default: LOCSYNC_BROKER_URL)")
    parser.add_argument("--interval", type=float, default=1.0, help="Seconds between fixes")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    overrides: dict[str, object] = {}
    if args.broker_url:
        overrides["broker_url"] = args.broker_url
    try:
        config = LocSyncConfig.from_env(**overrides)
    except LocSyncError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    sensor = ReplaySensor.from_jsonl(args.track, interval=args.interval)
    if not len(sensor):
        print(f"No fixes in {args.track}", file=sys.stderr)
        return 1

    async with LocSyncClient(config) as client:
        sender = client.sender(sensor, on_update=_print_state)
        sender.start()
        try:
            await sensor.wait_exhausted()
            await sender.flush()
        finally:
            sender.stop()
        failed = sender.state.error is not None
    return 1 if failed else 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
