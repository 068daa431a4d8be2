"""
Open-Meteo weather and marine client for stormscan.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from .cache import ReadingCache
from .exceptions import ProviderConnectionError, ProviderError, ProviderResponseError
from .models import DailyForecast
from .utils import to_float, to_int

logger = logging.getLogger(__name__)

WEATHER_CURRENT_FIELDS = [
    "temperature_2m",
    "relative_humidity_2m",
    "apparent_temperature",
    "is_day",
    "precipitation",
    "weather_code",
    "cloud_cover",
    "surface_pressure",
    "wind_speed_10m",
    "wind_direction_10m",
    "wind_gusts_10m",
]

WAVE_CURRENT_FIELDS = [
    "wave_height",
    "wave_direction",
    "swell_wave_height",
    "swell_wave_direction",
    "secondary_swell_wave_height",
    "secondary_swell_wave_period",
]

# The scan only needs the primary wave signal to decide whether to go on.
MARINE_SCAN_FIELDS = ["wave_height", "wave_direction"]

DAILY_FORECAST_FIELDS = [
    "weather_code",
    "temperature_2m_max",
    "temperature_2m_min",
    "precipitation_probability_max",
    "wind_speed_10m_max",
]

# Cache data types
WEATHER = "weather"
WAVES = "waves"
MARINE = "marine"


class OpenMeteoClient:
    """
    Async client for the Open-Meteo forecast and marine APIs.

    Current-condition reads return the provider's ``current`` block as a dict,
    or None when the provider has no data for the location (e.g. marine data
    over land). Transport and protocol failures raise ``ProviderError``
    subclasses.
    """

    WEATHER_BASE_URL = "https://api.open-meteo.com/v1"
    MARINE_BASE_URL = "https://marine-api.open-meteo.com/v1"

    def __init__(
        self,
        timeout: float = 30,
        weather_base_url: Optional[str] = None,
        marine_base_url: Optional[str] = None,
        cache: Optional[ReadingCache] = None,
    ):
        self.timeout = timeout
        self.weather_base_url = (weather_base_url or self.WEATHER_BASE_URL).rstrip("/")
        self.marine_base_url = (marine_base_url or self.MARINE_BASE_URL).rstrip("/")
        self.cache = cache
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={
                "User-Agent": "stormscan-client/0.1.0",
                "Accept": "application/json",
            },
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "OpenMeteoClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _make_request(self, url: str, params: Dict[str, Any]) -> Any:
        """Make a request to the provider with error handling."""
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
            return response.json()

        except httpx.TimeoutException as e:
            raise ProviderConnectionError(f"Request timeout after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 429:
                raise ProviderConnectionError("Rate limit exceeded") from e
            elif status >= 500:
                raise ProviderConnectionError(
                    "Weather provider temporarily unavailable"
                ) from e
            else:
                raise ProviderResponseError(f"HTTP error {status}: {e}") from e
        except httpx.RequestError as e:
            raise ProviderConnectionError(f"Network error: {e}") from e
        except ValueError as e:
            raise ProviderResponseError(f"Invalid JSON response: {e}") from e

    async def _get_current(
        self,
        url: str,
        fields: Sequence[str],
        latitude: float,
        longitude: float,
        data_type: str,
        extra_params: Optional[Dict[str, str]] = None,
    ) -> Optional[Dict[str, Any]]:
        if self.cache is not None:
            cached = self.cache.get(latitude, longitude, data_type)
            if cached is not None:
                return dict(cached)

        params: Dict[str, Any] = {
            "latitude": latitude,
            "longitude": longitude,
            "current": ",".join(fields),
            "timezone": "auto",
        }
        if extra_params:
            params.update(extra_params)

        data = await self._make_request(url, params)
        if not isinstance(data, dict):
            raise ProviderResponseError(
                f"Unexpected {data_type} response type: {type(data).__name__}"
            )

        current = data.get("current")
        if current is None:
            return None
        if not isinstance(current, dict):
            raise ProviderResponseError(f"Malformed 'current' block in {data_type} response")

        if self.cache is not None and current:
            self.cache.put(latitude, longitude, data_type, current)
        return current

    async def get_current_weather(
        self, latitude: float, longitude: float
    ) -> Optional[Dict[str, Any]]:
        """
        Get current atmospheric conditions.

        Returns:
            The ``current`` block (wind in km/h, precipitation in mm) or None
        """
        return await self._get_current(
            f"{self.weather_base_url}/forecast",
            WEATHER_CURRENT_FIELDS,
            latitude,
            longitude,
            WEATHER,
            extra_params={"wind_speed_unit": "kmh", "precipitation_unit": "mm"},
        )

    async def get_wave_data(
        self, latitude: float, longitude: float
    ) -> Optional[Dict[str, Any]]:
        """Get current wave and swell conditions (full marine field set)."""
        return await self._get_current(
            f"{self.marine_base_url}/marine",
            WAVE_CURRENT_FIELDS,
            latitude,
            longitude,
            WAVES,
        )

    async def get_marine_data(
        self, latitude: float, longitude: float
    ) -> Optional[Dict[str, Any]]:
        """Get the reduced marine field set used by viewport scans."""
        return await self._get_current(
            f"{self.marine_base_url}/marine",
            MARINE_SCAN_FIELDS,
            latitude,
            longitude,
            MARINE,
        )

    async def get_location_data(
        self, latitude: float, longitude: float, data_type: str
    ) -> Optional[Dict[str, Any]]:
        """
        Get current data of one kind for a clicked location.

        Args:
            data_type: 'weather' or 'waves'
        """
        if data_type == WEATHER:
            return await self.get_current_weather(latitude, longitude)
        if data_type == WAVES:
            return await self.get_wave_data(latitude, longitude)
        raise ValueError(f"Unknown data type '{data_type}'. Use 'weather' or 'waves'.")

    async def get_forecast(self, latitude: float, longitude: float) -> List[DailyForecast]:
        """
        Get the daily forecast for a location.

        Returns:
            List of DailyForecast objects, one per forecast day
        """
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "daily": ",".join(DAILY_FORECAST_FIELDS),
            "timezone": "auto",
        }

        try:
            data = await self._make_request(f"{self.weather_base_url}/forecast", params)
            daily = data.get("daily") if isinstance(data, dict) else None
            if not daily:
                return []

            def _column(name: str) -> List[Any]:
                values = daily.get(name)
                return values if isinstance(values, list) else []

            dates = _column("time")
            codes = _column("weather_code")
            t_max = _column("temperature_2m_max")
            t_min = _column("temperature_2m_min")
            precip = _column("precipitation_probability_max")
            wind = _column("wind_speed_10m_max")

            def _at(values: List[Any], i: int) -> Any:
                return values[i] if i < len(values) else None

            forecast = []
            for i, date in enumerate(dates):
                forecast.append(
                    DailyForecast(
                        date=str(date),
                        weather_code=to_int(_at(codes, i)),
                        temperature_max_c=to_float(_at(t_max, i)),
                        temperature_min_c=to_float(_at(t_min, i)),
                        precipitation_probability_max_pct=to_float(_at(precip, i)),
                        wind_speed_max_kmh=to_float(_at(wind, i)),
                    )
                )
            return forecast

        except ProviderError:
            raise
        except Exception as e:
            raise ProviderResponseError(f"Failed to parse daily forecast: {e}") from e
