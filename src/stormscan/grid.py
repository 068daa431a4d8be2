"""
Grid sampling of a viewport bounding box.

The visible map area is covered by a regular lat/lng lattice on a fixed step.
Points are produced in row-major order (every longitude of the southernmost
row, then the next row north) and the sequence is cut after ``max_points``
entries, so large viewports are undersampled from the tail of the grid rather
than refused.

Usage
-----
    bbox = BoundingBox(north=12.0, south=4.0, east=128.0, west=120.0)
    points = sample_grid(bbox, step_deg=1.0, max_points=80)
"""

import itertools
import logging
import math
from typing import Iterator, List, Tuple

from .models import BoundingBox, SamplePoint

logger = logging.getLogger(__name__)

GRID_STEP = 1.0  # degrees between neighbouring sample points
MAX_POINTS = 80
LAT_LIMIT = 89.5  # longitude spacing collapses at the poles
COORD_PRECISION = 6  # decimal digits kept after each step


def normalize_longitude(lng: float) -> float:
    """Wrap a longitude into (-180, 180]."""
    wrapped = round(((lng + 540.0) % 360.0) - 180.0, COORD_PRECISION)
    return 180.0 if wrapped == -180.0 else wrapped


def _axis(start: float, stop: float, step: float) -> Iterator[float]:
    value = round(start, COORD_PRECISION)
    stop = round(stop, COORD_PRECISION)
    while value <= stop:
        yield value
        value = round(value + step, COORD_PRECISION)


def _latitude_span(bbox: BoundingBox) -> Tuple[float, float]:
    return max(-LAT_LIMIT, bbox.south), min(LAT_LIMIT, bbox.north)


def _longitude_span(bbox: BoundingBox) -> Tuple[float, float]:
    east = bbox.east + 360.0 if bbox.crosses_antimeridian else bbox.east
    return bbox.west, east


def _check_step(step_deg: float) -> None:
    if (
        isinstance(step_deg, bool)
        or not isinstance(step_deg, (int, float))
        or not math.isfinite(step_deg)
        or step_deg <= 0
    ):
        raise ValueError(f"step_deg must be a positive finite number, got {step_deg!r}")


def _axis_length(start: float, stop: float, step: float) -> int:
    if stop < start:
        return 0
    return int(math.floor(round((stop - start) / step, COORD_PRECISION))) + 1


def grid_shape(bbox: BoundingBox, step_deg: float = GRID_STEP) -> Tuple[int, int]:
    """Return (rows, cols) of the full grid before ``max_points`` truncation."""
    bbox.validate()
    _check_step(step_deg)
    rows = _axis_length(*_latitude_span(bbox), step_deg)
    west, east = _longitude_span(bbox)
    # Meridians repeat after a full turn.
    cols = _axis_length(west, min(east, west + 360.0), step_deg)
    if cols > 1 and round((cols - 1) * step_deg, COORD_PRECISION) >= 360.0:
        cols -= 1
    return rows, cols


def sample_grid(
    bbox: BoundingBox,
    step_deg: float = GRID_STEP,
    max_points: int = MAX_POINTS,
) -> List[SamplePoint]:
    """
    Sample a bounding box on a regular grid.

    Args:
        bbox: Viewport bounds; ``east < west`` crosses the anti-meridian
        step_deg: Grid spacing in degrees
        max_points: Maximum number of points returned

    Returns:
        Sample points in row-major order, at most ``max_points`` long

    Raises:
        InvalidBoundsError: If the bounding box is invalid
        ValueError: If ``step_deg`` is not positive or ``max_points`` is negative
    """
    bbox.validate()
    _check_step(step_deg)
    if isinstance(max_points, bool) or not isinstance(max_points, int) or max_points < 0:
        raise ValueError(f"max_points must be a non-negative integer, got {max_points!r}")

    if max_points == 0:
        return []

    # Neither axis can contribute more than max_points values to the kept prefix.
    lat_values = list(
        itertools.islice(_axis(*_latitude_span(bbox), step_deg), max_points)
    )
    lng_values = list(
        dict.fromkeys(
            normalize_longitude(lng)
            for lng in itertools.islice(
                _axis(*_longitude_span(bbox), step_deg), max_points
            )
        )
    )

    points = [
        SamplePoint(lat=lat, lng=lng)
        for lat, lng in itertools.islice(
            itertools.product(lat_values, lng_values), max_points
        )
    ]

    logger.debug(
        f"Sampled {len(points)} points ({len(lat_values)} rows x {len(lng_values)} cols "
        f"kept) at {step_deg} deg step"
    )
    return points
