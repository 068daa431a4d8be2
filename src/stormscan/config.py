"""
Runtime configuration for scans, read from ``STORMSCAN_*`` environment variables.
"""

import logging
import math
import os
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional, TypeVar

from .cache import CACHE_TTL_S
from .client import OpenMeteoClient
from .grid import GRID_STEP, MAX_POINTS
from .models import DEFAULT_THRESHOLDS, VESSEL_THRESHOLDS, ThresholdSet
from .scan import SCAN_CONCURRENCY

logger = logging.getLogger(__name__)

ENV_PREFIX = "STORMSCAN_"
SETTLE_DELAY_S = 1.2

T = TypeVar("T")


def threshold_profile(name: str) -> ThresholdSet:
    """Look up a threshold set by name: 'default', 'fishing' or 'commercial'."""
    key = name.strip().lower()
    if key == DEFAULT_THRESHOLDS.name:
        return DEFAULT_THRESHOLDS
    try:
        return VESSEL_THRESHOLDS[key]
    except KeyError:
        choices = ", ".join([DEFAULT_THRESHOLDS.name, *VESSEL_THRESHOLDS])
        raise ValueError(f"Unknown threshold profile '{name}'. Use one of: {choices}") from None


def _positive_float(raw: str) -> float:
    value = float(raw)
    if not math.isfinite(value) or value <= 0:
        raise ValueError("must be a positive number")
    return value


def _non_negative_float(raw: str) -> float:
    value = float(raw)
    if not math.isfinite(value) or value < 0:
        raise ValueError("must be a non-negative number")
    return value


def _positive_int(raw: str) -> int:
    value = int(raw)
    if value < 1:
        raise ValueError("must be a positive integer")
    return value


def _non_negative_int(raw: str) -> int:
    value = int(raw)
    if value < 0:
        raise ValueError("must be a non-negative integer")
    return value


@dataclass
class ScanConfig:
    """Scan, viewport and provider settings."""

    step_deg: float = GRID_STEP
    max_points: int = MAX_POINTS
    concurrency: int = SCAN_CONCURRENCY
    settle_delay_s: float = SETTLE_DELAY_S
    cache_ttl_s: float = CACHE_TTL_S
    timeout_s: float = 30.0
    weather_base_url: str = OpenMeteoClient.WEATHER_BASE_URL
    marine_base_url: str = OpenMeteoClient.MARINE_BASE_URL
    thresholds: ThresholdSet = field(default=DEFAULT_THRESHOLDS)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ScanConfig":
        """
        Build a configuration from environment variables.

        Unset or empty variables keep their defaults.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Raises:
            ValueError: If a variable is set to an invalid value
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def _read(name: str, parse: Callable[[str], T], default: T) -> T:
            raw = env.get(ENV_PREFIX + name)
            if raw is None or not raw.strip():
                return default
            try:
                return parse(raw.strip())
            except ValueError as e:
                raise ValueError(f"Invalid {ENV_PREFIX}{name}={raw!r}: {e}") from e

        config = cls(
            step_deg=_read("STEP_DEG", _positive_float, defaults.step_deg),
            max_points=_read("MAX_POINTS", _non_negative_int, defaults.max_points),
            concurrency=_read("CONCURRENCY", _positive_int, defaults.concurrency),
            settle_delay_s=_read("SETTLE_DELAY", _non_negative_float, defaults.settle_delay_s),
            cache_ttl_s=_read("CACHE_TTL", _positive_float, defaults.cache_ttl_s),
            timeout_s=_read("TIMEOUT", _positive_float, defaults.timeout_s),
            weather_base_url=_read("WEATHER_URL", str, defaults.weather_base_url),
            marine_base_url=_read("MARINE_URL", str, defaults.marine_base_url),
            thresholds=_read("THRESHOLD_PROFILE", threshold_profile, defaults.thresholds),
        )
        logger.debug(f"Loaded scan configuration: {config}")
        return config
