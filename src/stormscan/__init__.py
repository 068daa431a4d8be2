"""
Viewport storm scanning for maritime weather and wave conditions.

Sample the visible map area, fetch Open-Meteo marine and weather readings
under a concurrency cap, and flag the points where conditions are severe.
"""

try:
    from importlib import metadata

    __version__ = metadata.version(__name__)
except Exception:
    __version__ = "unknown"

from .analysis import (
    AlertSummary,
    CriticalLocation,
    LocationAnalysis,
    StormDetails,
    analyze_location,
    analyze_multiple_locations,
    get_alert_summary,
    get_storm_details,
)
from .cache import CacheEntry, CacheStats, ReadingCache
from .classify import (
    DEFAULT_PROFILE,
    ClassificationProfile,
    classify_waves,
    classify_weather,
    combine,
    degrees_to_compass,
    describe_weather_code,
    generate_recommendations,
    recommend,
)
from .client import OpenMeteoClient
from .config import ScanConfig, threshold_profile
from .exceptions import (
    InvalidBoundsError,
    ProviderConnectionError,
    ProviderError,
    ProviderResponseError,
    RescueSubmissionError,
    RescueValidationError,
    StormScanError,
    UnknownActionError,
)
from .grid import GRID_STEP, MAX_POINTS, grid_shape, sample_grid
from .models import (
    DEFAULT_THRESHOLDS,
    VESSEL_THRESHOLDS,
    BoundingBox,
    ConditionReading,
    DailyForecast,
    FlaggedPoint,
    Issue,
    Recommendations,
    RescueRequest,
    SamplePoint,
    SeverityLevel,
    ThresholdSet,
    WaveAnalysis,
    WeatherAnalysis,
)
from .rescue import (
    InMemoryRescueSink,
    RescueRequestSink,
    build_rescue_request,
    normalize_reason,
    submit_rescue_request,
)
from .scan import build_summary, evaluate_conditions, scan_bounds, scan_points
from .viewport import ActionRegistry, MarkerSurface, ScanResult, ViewportScanner

__all__ = [
    # Client and configuration
    "OpenMeteoClient",
    "ScanConfig",
    "threshold_profile",
    "ReadingCache",
    "CacheEntry",
    "CacheStats",
    # Grid sampling and scanning
    "GRID_STEP",
    "MAX_POINTS",
    "sample_grid",
    "grid_shape",
    "scan_points",
    "scan_bounds",
    "evaluate_conditions",
    "build_summary",
    # Viewport controller
    "ViewportScanner",
    "ScanResult",
    "MarkerSurface",
    "ActionRegistry",
    # Classification
    "DEFAULT_PROFILE",
    "ClassificationProfile",
    "classify_weather",
    "classify_waves",
    "combine",
    "recommend",
    "generate_recommendations",
    "describe_weather_code",
    "degrees_to_compass",
    # Location analysis
    "LocationAnalysis",
    "AlertSummary",
    "CriticalLocation",
    "StormDetails",
    "analyze_location",
    "analyze_multiple_locations",
    "get_alert_summary",
    "get_storm_details",
    # Rescue requests
    "RescueRequestSink",
    "InMemoryRescueSink",
    "normalize_reason",
    "build_rescue_request",
    "submit_rescue_request",
    # Models
    "BoundingBox",
    "SamplePoint",
    "ConditionReading",
    "FlaggedPoint",
    "SeverityLevel",
    "ThresholdSet",
    "DEFAULT_THRESHOLDS",
    "VESSEL_THRESHOLDS",
    "DailyForecast",
    "Issue",
    "WeatherAnalysis",
    "WaveAnalysis",
    "Recommendations",
    "RescueRequest",
    # Exceptions
    "StormScanError",
    "InvalidBoundsError",
    "ProviderError",
    "ProviderConnectionError",
    "ProviderResponseError",
    "RescueValidationError",
    "RescueSubmissionError",
    "UnknownActionError",
]
