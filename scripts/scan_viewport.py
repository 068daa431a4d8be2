#!/usr/bin/env python3
"""
Scan a bounding box for storm conditions from the command line.

Example:
    python scripts/scan_viewport.py --north 12 --south 4 --east 128 --west 120
    python scripts/scan_viewport.py --north 10 --south 0 --east -170 --west 170 --profile fishing
"""

import argparse
import asyncio
import logging
import os
import sys

from stormscan import (
    BoundingBox,
    OpenMeteoClient,
    ReadingCache,
    ScanConfig,
    StormScanError,
    scan_bounds,
    threshold_profile,
)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Scan a map viewport for storm conditions.")
    parser.add_argument("--north", type=float, required=True)
    parser.add_argument("--south", type=float, required=True)
    parser.add_argument("--east", type=float, required=True)
    parser.add_argument("--west", type=float, required=True)
    parser.add_argument("--step", type=float, help="Grid step in degrees")
    parser.add_argument("--max-points", type=int, help="Maximum sample points")
    parser.add_argument(
        "--profile", help="Threshold profile: default, fishing or commercial"
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("STORMSCAN_LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO)",
    )
    return parser.parse_args(argv)


async def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = ScanConfig.from_env()
    thresholds = threshold_profile(args.profile) if args.profile else config.thresholds
    bbox = BoundingBox(north=args.north, south=args.south, east=args.east, west=args.west)

    async with OpenMeteoClient(
        timeout=config.timeout_s,
        weather_base_url=config.weather_base_url,
        marine_base_url=config.marine_base_url,
        cache=ReadingCache(ttl_s=config.cache_ttl_s),
    ) as client:
        flagged = await scan_bounds(
            bbox,
            client=client,
            thresholds=thresholds,
            step_deg=args.step or config.step_deg,
            max_points=args.max_points if args.max_points is not None else config.max_points,
            concurrency=config.concurrency,
        )

    print(f"{len(flagged)} storm location(s) using '{thresholds.name}' thresholds")
    for storm in flagged:
        print(f"  {storm.lat:9.4f} {storm.lng:10.4f}  {storm.summary}")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nScan interrupted by user")
        sys.exit(130)
    except (StormScanError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
