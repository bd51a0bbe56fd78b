#!/usr/bin/env python3
"""Follow the broker's latest sample and print derived kinematics.

Polls the broker every ``--interval`` seconds and prints one line per tick:
the latest position, and once two distinct samples have been seen, the
distance, speed, velocity and (from the third sample on) acceleration.

Configuration is read from ``LOCSYNC_*`` environment variables; the flags
below override them.
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

from pylocsync import LocSyncClient, LocSyncConfig, LocSyncError, SyncState  # noqa: E402


def _format_state(state: SyncState) -> str:
    parts: list[str] = []
    if state.error is not None:
        parts.append(f"error[{state.error.kind}]: {state.error.message}")

    sample = state.last_sample
    if sample is not None:
        speed = f"{sample.speed_hint:.2f} m/s" if sample.speed_hint is not None else "N/A"
        parts.append(
            f"lat={sample.latitude:.6f} lon={sample.longitude:.6f} gps_speed={speed} "
            f"at={sample.observed_at.isoformat()}"
        )

    estimate = state.last_estimate
    if estimate is not None:
        parts.append(
            f"dist={estimate.distance:.2f} m speed={estimate.speed:.2f} m/s ({estimate.speed_kmh:.2f} km/h) "
            f"dt={estimate.time_delta:.2f} s vel_lat={estimate.velocity.latitude:.8f} deg/s "
            f"vel_lon={estimate.velocity.longitude:.8f} deg/s"
        )
        if estimate.acceleration is not None:
            parts.append(f"accel={estimate.acceleration.speed:.3f} m/s^2")

    return " | ".join(parts) if parts else "waiting for data"


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--broker-url", help="Broker base URL (default: LOCSYNC_BROKER_URL)")
    parser.add_argument("--routing-url", help="OSRM-compatible routing service base URL")
    parser.add_argument(
        "--strategy",
        choices=["great_circle", "routed"],
        help="Distance strategy (default: LOCSYNC_DISTANCE_STRATEGY or great_circle)",
    )
    parser.add_argument("--degrade", action="store_true", help="Fall back to great-circle when routing fails")
    parser.add_argument("--interval", type=float, help="Poll interval in seconds")
    parser.add_argument("--duration", type=float, default=0.0, help="Stop after N seconds (0 = run until Ctrl-C)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    overrides: dict[str, object] = {}
    if args.broker_url:
        overrides["broker_url"] = args.broker_url
    if args.routing_url:
        overrides["routing_url"] = args.routing_url
    if args.strategy:
        overrides["distance_strategy"] = args.strategy
    if args.degrade:
        overrides["degrade_to_great_circle"] = True
    if args.interval:
        overrides["poll_interval"] = args.interval

    try:
        config = LocSyncConfig.from_env(**overrides)
    except LocSyncError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    async with LocSyncClient(config) as client:
        receiver = client.receiver(on_update=lambda state: print(_format_state(state), flush=True))
        receiver.start()
        try:
            if args.duration > 0:
                await asyncio.sleep(args.duration)
            else:
                await asyncio.Event().wait()
        finally:
            receiver.stop()
    return 0


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
