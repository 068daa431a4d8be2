"""
Shared fixtures for stormscan tests.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from stormscan.client import OpenMeteoClient


@pytest.fixture
def calm_weather():
    return {
        "time": "2024-07-01T12:00",
        "temperature_2m": 28.4,
        "relative_humidity_2m": 78,
        "precipitation": 0.0,
        "weather_code": 1,
        "wind_speed_10m": 12.0,
        "wind_direction_10m": 90,
        "wind_gusts_10m": 20.0,
    }


@pytest.fixture
def rough_marine():
    return {
        "time": "2024-07-01T12:00",
        "wave_height": 2.6,
        "wave_direction": 225,
        "swell_wave_height": 1.1,
        "swell_wave_direction": 200,
    }


@pytest.fixture
def provider_client():
    """OpenMeteoClient stand-in with AsyncMock read methods."""
    client = Mock(spec=OpenMeteoClient)
    client.get_current_weather = AsyncMock(return_value=None)
    client.get_wave_data = AsyncMock(return_value=None)
    client.get_marine_data = AsyncMock(return_value=None)
    client.close = AsyncMock()
    return client
