#!/usr/bin/env python3
"""Drive the motion engine from the command line.

Resolves a destination (or uses the built-in demo trip), animates the
simulated vehicle along the route and logs every marker update. Optionally
attaches a mock live feed for a few extra vehicles.

Examples::

    FLEETMOTION_ROUTING_API_KEY=... python scripts/simulate_route.py --demo
    python scripts/simulate_route.py --destination "Meskel Square" --start 8.98,38.75 -v
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from fleetmotion import (  # noqa: E402
    Coordinate,
    MockPositionSource,
    MotionConfig,
    MotionEngine,
)

_LOG = logging.getLogger("simulate_route")


def _parse_lat_lng(value: str) -> Coordinate:
    try:
        lat_text, lng_text = value.split(",", 1)
        return Coordinate.of(float(lat_text), float(lng_text))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected LAT,LNG, got {value!r}") from exc


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulate a vehicle driving a routed trip.")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--destination", help="Free-text destination to geocode")
    target.add_argument("--demo", action="store_true", help="Drive the configured demo trip")
    parser.add_argument("--start", type=_parse_lat_lng, help="Start position as LAT,LNG")
    parser.add_argument(
        "--mock-vehicles",
        nargs="*",
        default=[],
        metavar="ID",
        help="Also track these ids from a mock live feed",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    return parser.parse_args()


async def run(args: argparse.Namespace) -> int:
    config = MotionConfig.from_env()
    async with MotionEngine(config) as engine:
        if args.mock_vehicles:
            await engine.attach_live_stream(MockPositionSource(config.live, args.mock_vehicles))

        if args.demo:
            result = await engine.start_demo()
        else:
            result = await engine.search(args.destination, start=args.start)

        if not result.started:
            _LOG.error("%s (%s)", result.message, result.status)
            return 1

        _LOG.info("Driving %d waypoints", len(result.route))
        while engine.is_demo_running:
            await asyncio.sleep(config.tick_interval * 10)
        _LOG.info("Simulation %s", engine.animator.state)
    return 0


def main() -> None:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        raise SystemExit(asyncio.run(run(args)))
    except KeyboardInterrupt:
        raise SystemExit(130) from None


if __name__ == "__main__":
    main()
