"""
Severity classification of weather and wave conditions.

Every metric rule reads its trigger from a ``ClassificationProfile`` by
attribute name, so the same rule table evaluates a reading against any
profile. A profile has three rungs (caution, warning, danger), each a
``ThresholdSet``; a metric takes the severity of the highest rung it reaches.

Weather codes act as categorical overrides on top of the numeric rules:

    95, 96, 99  thunderstorm      -> DANGER
    82          violent showers   -> at least WARNING
    45, 48      fog               -> at least CAUTION

All severities combine by ``max``.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .models import (
    VESSEL_THRESHOLDS,
    Issue,
    Recommendations,
    SeverityLevel,
    ThresholdSet,
    WaveAnalysis,
    WeatherAnalysis,
)
from .utils import round_half_up, to_float, to_int

ROUGH_SEA_WAVE_M = 1.5

# WMO weather interpretation codes as reported by Open-Meteo
WEATHER_CODE_DESCRIPTIONS = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snow fall",
    73: "Moderate snow fall",
    75: "Heavy snow fall",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}

COMPASS_POINTS = [
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
]


def describe_weather_code(code: Optional[int]) -> str:
    """Human-readable description of a WMO weather code."""
    if code is None:
        return "Unknown"
    return WEATHER_CODE_DESCRIPTIONS.get(code, "Unknown")


def degrees_to_compass(degrees: Optional[float]) -> str:
    """16-point compass label for a bearing, 'N/A' when missing."""
    value = to_float(degrees)
    if value is None:
        return "N/A"
    return COMPASS_POINTS[int((value % 360.0) / 22.5 + 0.5) % 16]


@dataclass(frozen=True)
class ClassificationProfile:
    """Caution, warning and danger rungs for every classified metric."""

    name: str
    caution: ThresholdSet
    warning: ThresholdSet
    danger: ThresholdSet

    def severity_for(self, attribute: str, value: float) -> SeverityLevel:
        """Highest rung whose trigger for ``attribute`` the value reaches."""
        for severity, rung in (
            (SeverityLevel.DANGER, self.danger),
            (SeverityLevel.WARNING, self.warning),
            (SeverityLevel.CAUTION, self.caution),
        ):
            if value >= getattr(rung, attribute):
                return severity
        return SeverityLevel.SAFE

    @classmethod
    def for_vessel(cls, thresholds: ThresholdSet) -> "ClassificationProfile":
        """Single-vessel profile: reaching the vessel's limits is a WARNING."""
        unreachable = ThresholdSet(name=f"{thresholds.name}-none")
        return cls(
            name=thresholds.name,
            caution=unreachable,
            warning=thresholds,
            danger=unreachable,
        )


# Small-craft limits raise caution, commercial limits mean danger.
DEFAULT_PROFILE = ClassificationProfile(
    name="maritime",
    caution=replace(
        VESSEL_THRESHOLDS["fishing"], name="maritime-caution", swell_height_m=2.0
    ),
    warning=ThresholdSet(
        name="maritime-warning",
        wind_speed_kmh=45.0,
        wind_gust_kmh=VESSEL_THRESHOLDS["fishing"].wind_gust_kmh,
        wave_height_m=2.0,
        precipitation_mm_h=VESSEL_THRESHOLDS["commercial"].precipitation_mm_h,
        swell_height_m=3.0,
    ),
    danger=replace(
        VESSEL_THRESHOLDS["commercial"],
        name="maritime-danger",
        precipitation_mm_h=float("inf"),
    ),
)


@dataclass(frozen=True)
class MetricRule:
    """Maps one provider field onto a profile attribute and issue messages."""

    issue_type: str
    field: str
    attribute: str
    message: str
    overrides: Tuple[Tuple[SeverityLevel, str], ...] = ()

    def evaluate(
        self, current: Mapping[str, Any], profile: ClassificationProfile
    ) -> Optional[Issue]:
        value = to_float(current.get(self.field)) or 0.0
        severity = profile.severity_for(self.attribute, value)
        if severity is SeverityLevel.SAFE:
            return None
        template = dict(self.overrides).get(severity, self.message)
        return Issue(
            type=self.issue_type,
            severity=severity,
            message=template.format(value=value, rounded=round_half_up(value)),
        )


WEATHER_RULES = (
    MetricRule(
        "wind",
        "wind_speed_10m",
        "wind_speed_kmh",
        "High winds: {rounded} km/h",
        ((SeverityLevel.DANGER, "Very high winds: {rounded} km/h"),),
    ),
    MetricRule(
        "gust",
        "wind_gusts_10m",
        "wind_gust_kmh",
        "Strong wind gusts: {rounded} km/h",
        ((SeverityLevel.DANGER, "Dangerous wind gusts: {rounded} km/h"),),
    ),
    MetricRule(
        "precipitation",
        "precipitation",
        "precipitation_mm_h",
        "Moderate rainfall: {value:.1f} mm/h",
        (
            (SeverityLevel.WARNING, "Heavy rainfall: {value:.1f} mm/h"),
            (SeverityLevel.DANGER, "Extreme rainfall: {value:.1f} mm/h"),
        ),
    ),
)

WAVE_RULES = (
    MetricRule(
        "wave",
        "wave_height",
        "wave_height_m",
        "High waves: {value:.1f}m",
        ((SeverityLevel.DANGER, "Very high waves: {value:.1f}m"),),
    ),
    MetricRule(
        "swell",
        "swell_wave_height",
        "swell_height_m",
        "Significant swell: {value:.1f}m",
    ),
)

WEATHER_CODE_OVERRIDES = (
    (frozenset({95, 96, 99}), SeverityLevel.DANGER, "storm", "Thunderstorm detected"),
    (frozenset({82}), SeverityLevel.WARNING, "storm", "Violent rain showers"),
    (frozenset({45, 48}), SeverityLevel.CAUTION, "visibility", "Fog - reduced visibility"),
)


def combine(*severities: Optional[SeverityLevel]) -> SeverityLevel:
    """Worst of the given severities; None and SAFE are neutral."""
    return max(
        (s for s in severities if s is not None), default=SeverityLevel.SAFE
    )


def _weather_code_issue(code: Optional[int]) -> Optional[Issue]:
    if code is None:
        return None
    for codes, severity, issue_type, message in WEATHER_CODE_OVERRIDES:
        if code in codes:
            return Issue(type=issue_type, severity=severity, message=message)
    return None


def _apply_rules(
    rules: Iterable[MetricRule],
    current: Mapping[str, Any],
    profile: ClassificationProfile,
) -> List[Issue]:
    issues = []
    for rule in rules:
        issue = rule.evaluate(current, profile)
        if issue is not None:
            issues.append(issue)
    return issues


def classify_weather(
    current: Optional[Mapping[str, Any]],
    profile: ClassificationProfile = DEFAULT_PROFILE,
) -> Optional[WeatherAnalysis]:
    """
    Classify atmospheric conditions.

    Args:
        current: Provider ``current`` weather block, or None when absent
        profile: Threshold rungs to classify against

    Returns:
        WeatherAnalysis, or None if there is no weather data
    """
    if current is None:
        return None

    issues = _apply_rules(WEATHER_RULES, current, profile)
    code = to_int(current.get("weather_code"))
    code_issue = _weather_code_issue(code)
    if code_issue is not None:
        issues.append(code_issue)

    return WeatherAnalysis(
        severity=combine(*(issue.severity for issue in issues)),
        issues=issues,
        temperature_c=to_float(current.get("temperature_2m")),
        humidity_pct=to_float(current.get("relative_humidity_2m")),
        weather_code=code,
        weather_description=describe_weather_code(code),
    )


def classify_waves(
    current: Optional[Mapping[str, Any]],
    profile: ClassificationProfile = DEFAULT_PROFILE,
) -> Optional[WaveAnalysis]:
    """
    Classify sea state.

    Args:
        current: Provider ``current`` marine block, or None when absent
        profile: Threshold rungs to classify against

    Returns:
        WaveAnalysis, or None if there is no marine data
    """
    if current is None:
        return None

    issues = _apply_rules(WAVE_RULES, current, profile)
    return WaveAnalysis(
        severity=combine(*(issue.severity for issue in issues)),
        issues=issues,
        wave_height_m=to_float(current.get("wave_height")) or 0.0,
        swell_height_m=to_float(current.get("swell_wave_height")) or 0.0,
        wave_direction_deg=to_float(current.get("wave_direction")),
    )


FISHING_ADVICE = {
    SeverityLevel.DANGER: [
        "DO NOT SAIL - Conditions are dangerous for fishing vessels",
        "Seek immediate shelter if already at sea",
        "Secure all equipment and vessels in port",
    ],
    SeverityLevel.WARNING: [
        "NOT RECOMMENDED - Conditions are hazardous for small vessels",
        "Only experienced crews with proper equipment should consider sailing",
        "Stay close to shore and monitor weather closely",
    ],
    SeverityLevel.CAUTION: [
        "CAUTION ADVISED - Exercise extreme care",
        "Ensure all safety equipment is functional",
        "Monitor weather updates regularly",
        "Avoid venturing too far from shore",
    ],
    SeverityLevel.SAFE: [
        "Conditions are generally safe for fishing",
        "Maintain standard safety precautions",
    ],
}

COMMERCIAL_ADVICE = {
    SeverityLevel.DANGER: [
        "EXTREME CAUTION - Hazardous conditions present",
        "Consider delaying departure if possible",
        "Ensure all cargo is properly secured",
        "Brief crew on emergency procedures",
    ],
    SeverityLevel.WARNING: [
        "PROCEED WITH CAUTION - Challenging conditions",
        "Reduce speed and maintain safe distances",
        "Secure all loose items on deck",
        "Monitor weather updates continuously",
    ],
    SeverityLevel.CAUTION: [
        "MINOR CAUTION - Some challenging conditions",
        "Maintain normal safety protocols",
        "Monitor weather for changes",
    ],
    SeverityLevel.SAFE: [
        "Conditions are favorable for sailing",
        "Maintain standard operational procedures",
    ],
}

ISSUE_ADVICE = [
    "Stay informed of weather updates",
    "Ensure communication equipment is operational",
    "Have emergency contacts readily available",
]

ROUGH_SEA_ADVICE = "Expect rough seas - secure all cargo and equipment"

VISIBILITY_ADVICE = [
    "Use navigation lights and sound signals",
    "Reduce speed in low visibility",
]


def recommend(
    severity: SeverityLevel,
    issue_types: Iterable[str] = (),
    wave_height: Optional[float] = None,
) -> Recommendations:
    """
    Advisory text for a combined severity.

    Args:
        severity: Combined weather and wave severity
        issue_types: Types of the issues found (e.g. {'wind', 'visibility'})
        wave_height: Current wave height in metres, if known

    Returns:
        Recommendations for fishing, commercial and general audiences
    """
    types = set(issue_types)
    general: List[str] = []
    if types:
        general.extend(ISSUE_ADVICE)
    if wave_height is not None and wave_height >= ROUGH_SEA_WAVE_M:
        general.append(ROUGH_SEA_ADVICE)
    if "visibility" in types:
        general.extend(VISIBILITY_ADVICE)

    return Recommendations(
        severity=severity,
        fishing=list(FISHING_ADVICE[severity]),
        commercial=list(COMMERCIAL_ADVICE[severity]),
        general=general,
    )


def generate_recommendations(
    weather: Optional[WeatherAnalysis],
    waves: Optional[WaveAnalysis],
) -> Recommendations:
    """Recommendations for the worse of the weather and wave severities."""
    severity = combine(
        weather.severity if weather else None,
        waves.severity if waves else None,
    )
    issue_types = set()
    if weather:
        issue_types |= weather.issue_types
    if waves:
        issue_types |= waves.issue_types
    return recommend(
        severity,
        issue_types,
        wave_height=waves.wave_height_m if waves else None,
    )


def severity_counts(severities: Iterable[SeverityLevel]) -> Dict[str, int]:
    """Count severities by key ('safe', 'caution', 'warning', 'danger')."""
    counts = {level.key: 0 for level in SeverityLevel}
    for severity in severities:
        counts[severity.key] += 1
    return counts
