"""
Per-location condition analysis for ports and clicked map locations.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .classify import (
    DEFAULT_PROFILE,
    ClassificationProfile,
    classify_waves,
    classify_weather,
    degrees_to_compass,
    generate_recommendations,
    severity_counts,
)
from .client import OpenMeteoClient
from .models import (
    ConditionReading,
    Recommendations,
    SeverityLevel,
    WaveAnalysis,
    WeatherAnalysis,
)
from .utils import add_sync_version

logger = logging.getLogger(__name__)

CRITICAL_SEVERITIES = (SeverityLevel.WARNING, SeverityLevel.DANGER)


@dataclass
class LocationAnalysis:
    """Classified conditions and advice for one named location."""

    location: Optional[str]
    lat: float
    lng: float
    timestamp: str
    weather: Optional[WeatherAnalysis]
    waves: Optional[WaveAnalysis]
    recommendations: Recommendations

    @property
    def overall_severity(self) -> SeverityLevel:
        return self.recommendations.severity

    def to_record(self) -> Dict[str, Any]:
        """Flat record for tabular export."""
        return {
            "location": self.location,
            "lat": self.lat,
            "lng": self.lng,
            "timestamp": self.timestamp,
            "overall_severity": self.overall_severity.key,
            "weather_severity": self.weather.severity.key if self.weather else None,
            "wave_severity": self.waves.severity.key if self.waves else None,
            "temperature_c": self.weather.temperature_c if self.weather else None,
            "weather_description": (
                self.weather.weather_description if self.weather else None
            ),
            "wave_height_m": self.waves.wave_height_m if self.waves else None,
            "swell_height_m": self.waves.swell_height_m if self.waves else None,
            "issues": "; ".join(
                issue.message
                for part in (self.weather, self.waves)
                if part is not None
                for issue in part.issues
            ),
        }


@dataclass
class CriticalLocation:
    name: Optional[str]
    severity: SeverityLevel
    lat: float
    lng: float


@dataclass
class AlertSummary:
    """Severity counts over a set of location analyses."""

    total: int
    counts: Dict[str, int]
    critical_locations: List[CriticalLocation] = field(default_factory=list)
    analyses: List[LocationAnalysis] = field(default_factory=list)

    def count(self, severity: SeverityLevel) -> int:
        return self.counts.get(severity.key, 0)

    def to_dataframe(self) -> Any:
        """
        Export the analyses to a pandas DataFrame, one row per location.

        Raises:
            ImportError: If pandas is not installed
        """
        try:
            import pandas as pd
        except ImportError:
            raise ImportError(
                "pandas is required for DataFrame export. Install with: pip install stormscan[dataframes]"
            ) from None

        return pd.DataFrame([analysis.to_record() for analysis in self.analyses])


@dataclass
class StormDetails:
    """Current weather and marine blocks for a storm marker's detail view."""

    lat: float
    lng: float
    weather: Optional[Dict[str, Any]] = None
    marine: Optional[Dict[str, Any]] = None

    @property
    def has_data(self) -> bool:
        return self.weather is not None or self.marine is not None

    @property
    def reading(self) -> ConditionReading:
        return ConditionReading.from_current(self.weather, self.marine)

    @property
    def wind_direction(self) -> str:
        return degrees_to_compass((self.weather or {}).get("wind_direction_10m"))

    @property
    def wave_direction(self) -> str:
        return degrees_to_compass((self.marine or {}).get("wave_direction"))

    @property
    def swell_direction(self) -> str:
        return degrees_to_compass((self.marine or {}).get("swell_wave_direction"))


async def _fetch_conditions(
    client: OpenMeteoClient, latitude: float, longitude: float
) -> Tuple[Optional[Mapping[str, Any]], Optional[Mapping[str, Any]], int]:
    """Fetch weather and wave blocks together; a failed side comes back as None."""
    results = await asyncio.gather(
        client.get_current_weather(latitude, longitude),
        client.get_wave_data(latitude, longitude),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException) and not isinstance(result, Exception):
            raise result

    blocks = []
    failures = 0
    for label, result in zip(("Weather", "Wave data"), results):
        if isinstance(result, Exception):
            logger.warning(f"{label} unavailable at ({latitude}, {longitude}): {result}")
            failures += 1
            result = None
        blocks.append(result)
    return blocks[0], blocks[1], failures


@add_sync_version
async def analyze_location(
    latitude: float,
    longitude: float,
    name: Optional[str] = None,
    client: Optional[OpenMeteoClient] = None,
    profile: ClassificationProfile = DEFAULT_PROFILE,
) -> Optional[LocationAnalysis]:
    """
    Fetch and classify current conditions at one location.

    Weather and wave data are fetched concurrently.

    Args:
        latitude: Location latitude
        longitude: Location longitude
        name: Display name (port name, "Your Location", ...)
        client: Optional OpenMeteoClient instance
        profile: Classification thresholds

    Returns:
        LocationAnalysis, or None if neither weather nor wave data could be
        read. A failure on one side leaves that side unclassified.
    """
    if client is None:
        raise TypeError("client parameter is required")

    weather, waves, failures = await _fetch_conditions(client, latitude, longitude)
    if failures == 2:
        logger.warning(f"Failed to analyze location {name}: no provider data")
        return None

    weather_analysis = classify_weather(weather, profile)
    wave_analysis = classify_waves(waves, profile)
    return LocationAnalysis(
        location=name,
        lat=latitude,
        lng=longitude,
        timestamp=datetime.now(timezone.utc).isoformat(),
        weather=weather_analysis,
        waves=wave_analysis,
        recommendations=generate_recommendations(weather_analysis, wave_analysis),
    )


@add_sync_version
async def analyze_multiple_locations(
    locations: Sequence[Mapping[str, Any]],
    client: Optional[OpenMeteoClient] = None,
    profile: ClassificationProfile = DEFAULT_PROFILE,
) -> List[LocationAnalysis]:
    """
    Analyze several locations concurrently.

    Args:
        locations: Mappings with ``latitude``, ``longitude`` and a
            ``port_name`` or ``location`` name
        client: Optional OpenMeteoClient instance
        profile: Classification thresholds

    Returns:
        Analyses in input order; locations that failed are left out
    """
    if client is None:
        raise TypeError("client parameter is required")

    results = await asyncio.gather(
        *(
            analyze_location(
                loc["latitude"],
                loc["longitude"],
                loc.get("port_name") or loc.get("location"),
                client=client,
                profile=profile,
            )
            for loc in locations
        )
    )
    return [result for result in results if result is not None]


def get_alert_summary(analyses: Sequence[LocationAnalysis]) -> AlertSummary:
    """Count analyses per overall severity and list the critical ones."""
    critical = [
        CriticalLocation(
            name=analysis.location,
            severity=analysis.overall_severity,
            lat=analysis.lat,
            lng=analysis.lng,
        )
        for analysis in analyses
        if analysis.overall_severity in CRITICAL_SEVERITIES
    ]
    return AlertSummary(
        total=len(analyses),
        counts=severity_counts(analysis.overall_severity for analysis in analyses),
        critical_locations=critical,
        analyses=list(analyses),
    )


@add_sync_version
async def get_storm_details(
    latitude: float,
    longitude: float,
    client: Optional[OpenMeteoClient] = None,
) -> StormDetails:
    """
    Fetch weather and marine conditions for a storm marker.

    A provider failure on either side leaves that block empty.
    """
    if client is None:
        raise TypeError("client parameter is required")

    weather, marine, _ = await _fetch_conditions(client, latitude, longitude)

    return StormDetails(lat=latitude, lng=longitude, weather=weather, marine=marine)
