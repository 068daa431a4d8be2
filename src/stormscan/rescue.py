"""
Rescue requests raised from a map location.

A request records where help is needed, why, and a snapshot of the weather
and sea state at that point when it was raised. Records are handed to a
``RescueRequestSink``; storage itself is the sink's concern.
"""

import asyncio
import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Protocol

from .client import OpenMeteoClient
from .exceptions import RescueSubmissionError, RescueValidationError
from .models import RescueRequest
from .utils import add_sync_version

logger = logging.getLogger(__name__)

WEATHER_SNAPSHOT_FIELDS = ("temperature_2m", "wind_speed_10m", "precipitation", "weather_code")
MARINE_SNAPSHOT_FIELDS = ("wave_height", "wave_direction")

_WHITESPACE = re.compile(r"\s+")


class RescueRequestSink(Protocol):
    """Persistence collaborator for rescue requests."""

    async def save(self, record: Dict[str, Any]) -> bool: ...


class InMemoryRescueSink:
    """Sink that keeps records in a list."""

    def __init__(self) -> None:
        self.records: List[Dict[str, Any]] = []

    async def save(self, record: Dict[str, Any]) -> bool:
        self.records.append(dict(record))
        return True


def normalize_reason(reason: str) -> str:
    """'Engine Failure' -> 'engine_failure'."""
    return _WHITESPACE.sub("_", reason.lower())


def _snapshot(current: Optional[Mapping[str, Any]], fields: tuple) -> Optional[Dict[str, Any]]:
    if current is None:
        return None
    return {name: current.get(name) for name in fields}


def validate_rescue_input(latitude: Any, longitude: Any, reason: Any) -> None:
    """
    Check a rescue request before anything is fetched or stored.

    Raises:
        RescueValidationError: On missing or out-of-range coordinates or a
            blank reason
    """
    for name, value, limit in (("latitude", latitude, 90.0), ("longitude", longitude, 180.0)):
        if (
            isinstance(value, bool)
            or not isinstance(value, (int, float))
            or not math.isfinite(value)
        ):
            raise RescueValidationError(f"Rescue {name} must be a finite number, got {value!r}")
        if not -limit <= value <= limit:
            raise RescueValidationError(f"Rescue {name}={value} is outside [-{limit:g}, {limit:g}]")

    if not isinstance(reason, str) or not reason.strip():
        raise RescueValidationError("Please select a reason for the rescue request")


def build_rescue_request(
    latitude: float,
    longitude: float,
    reason: str,
    weather: Optional[Mapping[str, Any]] = None,
    marine: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None,
) -> RescueRequest:
    """
    Build a pending rescue request.

    Args:
        latitude: Location latitude
        longitude: Location longitude
        reason: Free-text reason, normalized to snake case
        weather: Weather ``current`` block, or None
        marine: Marine ``current`` block, or None
        now: Request time (defaults to the current UTC time)

    Raises:
        RescueValidationError: If the input is invalid
    """
    validate_rescue_input(latitude, longitude, reason)
    now = now or datetime.now(timezone.utc)
    return RescueRequest(
        latitude=latitude,
        longitude=longitude,
        reason=normalize_reason(reason),
        timestamp=now.isoformat(),
        weather=_snapshot(weather, WEATHER_SNAPSHOT_FIELDS),
        marine=_snapshot(marine, MARINE_SNAPSHOT_FIELDS),
    )


@add_sync_version
async def submit_rescue_request(
    latitude: float,
    longitude: float,
    reason: str,
    client: Optional[OpenMeteoClient] = None,
    sink: Optional[RescueRequestSink] = None,
) -> RescueRequest:
    """
    Validate, snapshot conditions, and hand a rescue request to the sink.

    Conditions are fetched concurrently; a provider failure leaves the
    corresponding snapshot empty rather than blocking the request.

    Raises:
        RescueValidationError: If the input is invalid (nothing is fetched)
        RescueSubmissionError: If the sink rejects the record or fails
    """
    validate_rescue_input(latitude, longitude, reason)
    if client is None:
        raise TypeError("client parameter is required")
    if sink is None:
        raise TypeError("sink parameter is required")

    weather, marine = await asyncio.gather(
        client.get_current_weather(latitude, longitude),
        client.get_wave_data(latitude, longitude),
        return_exceptions=True,
    )
    for result in (weather, marine):
        if isinstance(result, BaseException) and not isinstance(result, Exception):
            raise result
    if isinstance(weather, Exception):
        logger.warning(f"Weather snapshot unavailable for rescue request: {weather}")
        weather = None
    if isinstance(marine, Exception):
        logger.warning(f"Marine snapshot unavailable for rescue request: {marine}")
        marine = None

    request = build_rescue_request(latitude, longitude, reason, weather, marine)
    record = request.to_record()

    try:
        saved = await sink.save(record)
    except Exception as e:
        raise RescueSubmissionError(f"Failed to submit rescue request: {e}") from e
    if not saved:
        raise RescueSubmissionError("Rescue request was not accepted by the sink")

    logger.info(
        f"Rescue request submitted at ({latitude}, {longitude}) reason={request.reason}"
    )
    return request
