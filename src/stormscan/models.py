"""
Data models for viewport storm scanning and maritime condition analysis.
"""

import math
from dataclasses import asdict, dataclass, field
from enum import IntEnum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from .exceptions import InvalidBoundsError
from .utils import to_float, to_int


class SeverityLevel(IntEnum):
    """Ordered severity bands. The worse of two levels is ``max(a, b)``."""

    SAFE = 0
    CAUTION = 1
    WARNING = 2
    DANGER = 3

    @property
    def key(self) -> str:
        """Lowercase name used in summaries and records (e.g. 'danger')."""
        return self.name.lower()

    @property
    def label(self) -> str:
        """Display label (e.g. 'Danger')."""
        return self.name.capitalize()


@dataclass
class BoundingBox:
    """Geographic bounding box in degrees.

    ``east < west`` means the box crosses the anti-meridian.
    """

    north: float
    south: float
    east: float
    west: float

    @property
    def crosses_antimeridian(self) -> bool:
        return self.east < self.west

    def validate(self) -> "BoundingBox":
        """Check the box is usable for sampling and return it.

        Raises:
            InvalidBoundsError: on non-finite coordinates, latitudes outside
                [-90, 90] or ``south > north``
        """
        for name in ("north", "south", "east", "west"):
            value = getattr(self, name)
            if (
                isinstance(value, bool)
                or not isinstance(value, (int, float))
                or not math.isfinite(value)
            ):
                raise InvalidBoundsError(
                    f"Bounding box {name} must be a finite number, got {value!r}"
                )

        for name in ("north", "south"):
            value = getattr(self, name)
            if not -90.0 <= value <= 90.0:
                raise InvalidBoundsError(
                    f"Bounding box {name}={value} is outside [-90, 90]"
                )

        if self.south > self.north:
            raise InvalidBoundsError(
                f"Bounding box south={self.south} is north of north={self.north}"
            )

        return self


@dataclass(frozen=True)
class SamplePoint:
    """A grid sample location. Compared and hashed by value."""

    lat: float
    lng: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.lat, self.lng)


@dataclass
class ConditionReading:
    """Current conditions at one point. Any field may be ``None``."""

    wind_speed_kmh: Optional[float] = None
    wind_gust_kmh: Optional[float] = None
    wind_direction_deg: Optional[float] = None
    precipitation_mm_h: Optional[float] = None
    weather_code: Optional[int] = None
    temperature_c: Optional[float] = None
    humidity_pct: Optional[float] = None
    wave_height_m: Optional[float] = None
    wave_direction_deg: Optional[float] = None
    swell_height_m: Optional[float] = None
    swell_direction_deg: Optional[float] = None
    timestamp: Optional[str] = None

    @classmethod
    def from_current(
        cls,
        weather: Optional[Mapping[str, Any]] = None,
        marine: Optional[Mapping[str, Any]] = None,
    ) -> "ConditionReading":
        """Build a reading from the provider ``current`` blocks."""
        weather = weather or {}
        marine = marine or {}
        return cls(
            wind_speed_kmh=to_float(weather.get("wind_speed_10m")),
            wind_gust_kmh=to_float(weather.get("wind_gusts_10m")),
            wind_direction_deg=to_float(weather.get("wind_direction_10m")),
            precipitation_mm_h=to_float(weather.get("precipitation")),
            weather_code=to_int(weather.get("weather_code")),
            temperature_c=to_float(weather.get("temperature_2m")),
            humidity_pct=to_float(weather.get("relative_humidity_2m")),
            wave_height_m=to_float(marine.get("wave_height")),
            wave_direction_deg=to_float(marine.get("wave_direction")),
            swell_height_m=to_float(marine.get("swell_wave_height")),
            swell_direction_deg=to_float(marine.get("swell_wave_direction")),
            timestamp=weather.get("time") or marine.get("time"),
        )


@dataclass
class FlaggedPoint:
    """A sample point whose readings crossed at least one threshold."""

    point: SamplePoint
    summary: str
    reading: ConditionReading
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def lat(self) -> float:
        return self.point.lat

    @property
    def lng(self) -> float:
        return self.point.lng


@dataclass(frozen=True)
class ThresholdSet:
    """Named trigger levels for each condition. Missing triggers are infinite."""

    name: str
    wind_speed_kmh: float = math.inf
    wind_gust_kmh: float = math.inf
    wave_height_m: float = math.inf
    precipitation_mm_h: float = math.inf
    swell_height_m: float = math.inf


DEFAULT_THRESHOLDS = ThresholdSet(
    name="default",
    wind_speed_kmh=50.0,
    wind_gust_kmh=70.0,
    wave_height_m=2.0,
    precipitation_mm_h=10.0,
)

VESSEL_THRESHOLDS: Mapping[str, ThresholdSet] = MappingProxyType(
    {
        "fishing": ThresholdSet(
            name="fishing",
            wind_speed_kmh=35.0,
            wind_gust_kmh=50.0,
            wave_height_m=1.5,
            precipitation_mm_h=10.0,
        ),
        "commercial": ThresholdSet(
            name="commercial",
            wind_speed_kmh=50.0,
            wind_gust_kmh=70.0,
            wave_height_m=2.5,
            precipitation_mm_h=15.0,
        ),
    }
)


@dataclass
class DailyForecast:
    """One day of the daily forecast."""

    date: str
    weather_code: Optional[int] = None
    temperature_max_c: Optional[float] = None
    temperature_min_c: Optional[float] = None
    precipitation_probability_max_pct: Optional[float] = None
    wind_speed_max_kmh: Optional[float] = None


@dataclass
class RescueRequest:
    """Rescue request record handed to the persistence sink."""

    latitude: float
    longitude: float
    reason: str
    timestamp: str
    weather: Optional[Dict[str, Any]] = None
    marine: Optional[Dict[str, Any]] = None
    status: str = "pending"
    read: bool = False

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Issue:
    """One condition that crossed a severity tier."""

    type: str  # 'wind', 'gust', 'precipitation', 'storm', 'visibility', 'wave', 'swell'
    severity: SeverityLevel
    message: str


@dataclass
class WeatherAnalysis:
    """Classified atmospheric conditions at a location."""

    severity: SeverityLevel
    issues: List[Issue] = field(default_factory=list)
    temperature_c: Optional[float] = None
    humidity_pct: Optional[float] = None
    weather_code: Optional[int] = None
    weather_description: str = "Unknown"

    @property
    def issue_types(self) -> Set[str]:
        return {issue.type for issue in self.issues}


@dataclass
class WaveAnalysis:
    """Classified sea state at a location."""

    severity: SeverityLevel
    issues: List[Issue] = field(default_factory=list)
    wave_height_m: float = 0.0
    swell_height_m: float = 0.0
    wave_direction_deg: Optional[float] = None

    @property
    def issue_types(self) -> Set[str]:
        return {issue.type for issue in self.issues}


@dataclass
class Recommendations:
    """Advisory text per audience for a combined severity."""

    severity: SeverityLevel
    fishing: List[str] = field(default_factory=list)
    commercial: List[str] = field(default_factory=list)
    general: List[str] = field(default_factory=list)
