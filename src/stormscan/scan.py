"""
Bounded-concurrency storm scan over a set of sample points.

Points are fetched in consecutive batches of ``concurrency``: the fetches of
one batch run together and the next batch starts only once the whole batch
has settled, so at most ``concurrency`` requests are outstanding at a time.
For every point the marine reading is fetched first; points without a wave
height (land, or no marine coverage) are skipped without a weather request.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Sequence

from .client import OpenMeteoClient
from .grid import GRID_STEP, MAX_POINTS, sample_grid
from .models import (
    DEFAULT_THRESHOLDS,
    BoundingBox,
    ConditionReading,
    FlaggedPoint,
    SamplePoint,
    ThresholdSet,
)
from .utils import add_sync_version, format_number, round_half_up, to_float

logger = logging.getLogger(__name__)

SCAN_CONCURRENCY = 5
SUMMARY_SEPARATOR = " • "
FALLBACK_SUMMARY = "Strong marine conditions"

Fetcher = Callable[[float, float], Awaitable[Optional[Mapping[str, Any]]]]


def build_summary(
    wind: float,
    gust: float,
    wave: float,
    precip: float,
    thresholds: ThresholdSet = DEFAULT_THRESHOLDS,
) -> str:
    """
    Describe the conditions that reached their thresholds.

    Fragments appear in the order wind, gust, wave, precipitation and only
    for values at or above their trigger.
    """
    parts = []
    if wind >= thresholds.wind_speed_kmh:
        parts.append(f"Wind {round_half_up(wind)} km/h")
    if gust >= thresholds.wind_gust_kmh:
        parts.append(f"Gust {round_half_up(gust)} km/h")
    if wave >= thresholds.wave_height_m:
        parts.append(f"Wave {wave:.1f} m")
    if precip >= thresholds.precipitation_mm_h:
        parts.append(f"Precip {format_number(precip)} mm")
    return SUMMARY_SEPARATOR.join(parts) or FALLBACK_SUMMARY


def evaluate_conditions(
    point: SamplePoint,
    marine: Optional[Mapping[str, Any]],
    weather: Optional[Mapping[str, Any]],
    thresholds: ThresholdSet = DEFAULT_THRESHOLDS,
) -> Optional[FlaggedPoint]:
    """
    Apply the threshold test to one point's readings.

    Args:
        point: The sampled location
        marine: Marine ``current`` block; must carry a wave height
        weather: Weather ``current`` block, or None (fields default to 0)
        thresholds: Trigger levels

    Returns:
        FlaggedPoint if any condition reached its threshold, otherwise None
    """
    if marine is None or to_float(marine.get("wave_height")) is None:
        return None
    weather = weather or {}

    wave = to_float(marine.get("wave_height")) or 0.0
    wind = to_float(weather.get("wind_speed_10m")) or 0.0
    gust = to_float(weather.get("wind_gusts_10m")) or 0.0
    precip = to_float(weather.get("precipitation")) or 0.0

    severe = (
        wave >= thresholds.wave_height_m
        or wind >= thresholds.wind_speed_kmh
        or gust >= thresholds.wind_gust_kmh
        or precip >= thresholds.precipitation_mm_h
    )
    if not severe:
        return None

    return FlaggedPoint(
        point=point,
        summary=build_summary(wind, gust, wave, precip, thresholds),
        reading=ConditionReading.from_current(weather, marine),
        details={
            "wind_speed": round_half_up(wind),
            "wind_gust": round_half_up(gust),
            "wave_height": wave,
            "precipitation": precip,
        },
    )


async def _scan_point(
    point: SamplePoint,
    fetch_marine: Fetcher,
    fetch_weather: Fetcher,
    thresholds: ThresholdSet,
) -> Optional[FlaggedPoint]:
    try:
        marine = await fetch_marine(point.lat, point.lng)
        if marine is None or to_float(marine.get("wave_height")) is None:
            logger.debug(f"No wave data at ({point.lat}, {point.lng}), skipping")
            return None

        weather = await fetch_weather(point.lat, point.lng)
        return evaluate_conditions(point, marine, weather, thresholds)
    except Exception as e:
        logger.debug(f"Scan of ({point.lat}, {point.lng}) failed: {e}")
        return None


async def scan_points(
    points: Sequence[SamplePoint],
    fetch_marine: Fetcher,
    fetch_weather: Fetcher,
    thresholds: ThresholdSet = DEFAULT_THRESHOLDS,
    concurrency: int = SCAN_CONCURRENCY,
) -> List[FlaggedPoint]:
    """
    Fetch and classify every point, in batches of ``concurrency``.

    Args:
        points: Sample points, usually from ``sample_grid``
        fetch_marine: ``async (lat, lng)`` returning the marine current block
        fetch_weather: ``async (lat, lng)`` returning the weather current block
        thresholds: Trigger levels for flagging
        concurrency: Batch size, i.e. the cap on outstanding point scans

    Returns:
        Flagged points in the order of ``points``

    Raises:
        ValueError: If ``concurrency`` is less than 1
    """
    if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
        raise ValueError(f"concurrency must be a positive integer, got {concurrency!r}")

    flagged: List[FlaggedPoint] = []
    for start in range(0, len(points), concurrency):
        batch = points[start : start + concurrency]
        results = await asyncio.gather(
            *(
                _scan_point(point, fetch_marine, fetch_weather, thresholds)
                for point in batch
            )
        )
        flagged.extend(result for result in results if result is not None)

    return flagged


@add_sync_version
async def scan_bounds(
    bbox: BoundingBox,
    client: Optional[OpenMeteoClient] = None,
    thresholds: ThresholdSet = DEFAULT_THRESHOLDS,
    step_deg: float = GRID_STEP,
    max_points: int = MAX_POINTS,
    concurrency: int = SCAN_CONCURRENCY,
) -> List[FlaggedPoint]:
    """
    Scan a bounding box for storm conditions.

    Args:
        bbox: Viewport bounds
        client: Optional OpenMeteoClient instance
        thresholds: Trigger levels for flagging
        step_deg: Grid spacing in degrees
        max_points: Maximum number of sample points
        concurrency: Cap on outstanding point scans

    Returns:
        Flagged points in grid order

    Raises:
        InvalidBoundsError: If the bounding box is invalid
    """
    if client is None:
        raise TypeError("client parameter is required")

    points = sample_grid(bbox, step_deg=step_deg, max_points=max_points)
    logger.info(f"Scanning {len(points)} points in {bbox}")

    flagged = await scan_points(
        points,
        client.get_marine_data,
        client.get_current_weather,
        thresholds=thresholds,
        concurrency=concurrency,
    )

    logger.info(f"Scan flagged {len(flagged)} of {len(points)} points")
    return flagged
