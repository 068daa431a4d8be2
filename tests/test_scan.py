"""
Tests for the bounded-concurrency storm scan.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from stormscan.exceptions import InvalidBoundsError, ProviderConnectionError
from stormscan.models import (
    DEFAULT_THRESHOLDS,
    VESSEL_THRESHOLDS,
    BoundingBox,
    SamplePoint,
)
from stormscan.scan import build_summary, evaluate_conditions, scan_bounds, scan_points
from stormscan.utils import format_number

POINT = SamplePoint(8.0, 125.0)


class TestEvaluateConditions:
    """Test the per-point threshold test and summary."""

    def test_wind_only(self):
        flagged = evaluate_conditions(
            POINT,
            {"wave_height": 1.0},
            {"wind_speed_10m": 55, "wind_gusts_10m": 30, "precipitation": 0},
        )

        assert flagged is not None
        assert flagged.summary == "Wind 55 km/h"
        assert flagged.details == {
            "wind_speed": 55,
            "wind_gust": 30,
            "wave_height": 1.0,
            "precipitation": 0.0,
        }
        assert flagged.point == POINT

    def test_all_fragments_in_order(self):
        flagged = evaluate_conditions(
            POINT,
            {"wave_height": 2.26},
            {"wind_speed_10m": 52.5, "wind_gusts_10m": 71, "precipitation": 12.0},
        )

        assert flagged.summary == "Wind 53 km/h • Gust 71 km/h • Wave 2.3 m • Precip 12 mm"

    def test_fractional_precipitation(self):
        flagged = evaluate_conditions(POINT, {"wave_height": 0.5}, {"precipitation": 12.5})
        assert flagged.summary == "Precip 12.5 mm"

    def test_precipitation_not_truncated(self):
        flagged = evaluate_conditions(POINT, {"wave_height": 0.5}, {"precipitation": 10.1234567})
        assert flagged.summary == "Precip 10.1234567 mm"

    def test_below_thresholds(self):
        assert (
            evaluate_conditions(
                POINT,
                {"wave_height": 1.9},
                {"wind_speed_10m": 49.9, "wind_gusts_10m": 69, "precipitation": 9.9},
            )
            is None
        )

    def test_thresholds_are_inclusive(self):
        flagged = evaluate_conditions(POINT, {"wave_height": 2.0}, {})
        assert flagged.summary == "Wave 2.0 m"

    def test_missing_weather_defaults_to_zero(self):
        flagged = evaluate_conditions(POINT, {"wave_height": 2.1}, None)

        assert flagged.summary == "Wave 2.1 m"
        assert flagged.details["wind_speed"] == 0
        assert flagged.reading.wind_speed_kmh is None

    def test_no_wave_height(self):
        assert evaluate_conditions(POINT, {"wave_height": None}, {"wind_speed_10m": 90}) is None
        assert evaluate_conditions(POINT, None, {"wind_speed_10m": 90}) is None

    def test_other_thresholds(self):
        fishing = VESSEL_THRESHOLDS["fishing"]
        flagged = evaluate_conditions(POINT, {"wave_height": 1.5}, {}, fishing)
        assert flagged.summary == "Wave 1.5 m"

    def test_fallback_summary(self):
        assert build_summary(0, 0, 0, 0) == "Strong marine conditions"

    def test_reading_attached(self, calm_weather, rough_marine):
        flagged = evaluate_conditions(POINT, rough_marine, calm_weather)

        assert flagged.reading.wave_height_m == 2.6
        assert flagged.reading.temperature_c == 28.4
        assert flagged.reading.weather_code == 1


def _points(count):
    return [SamplePoint(float(i), 100.0) for i in range(count)]


class TestFormatNumber:
    @pytest.mark.parametrize(
        "value,expected",
        [(12.0, "12"), (12, "12"), (12.5, "12.5"), (10.1234567, "10.1234567"), (0.1, "0.1")],
    )
    def test_format_number(self, value, expected):
        assert format_number(value) == expected


class TestScanPoints:
    """Test batching, skipping and ordering."""

    @pytest.mark.asyncio
    async def test_skips_points_without_wave_data(self):
        """Weather is never requested for points without a wave height."""
        fetch_marine = AsyncMock(return_value={"wave_height": None})
        fetch_weather = AsyncMock(return_value={"wind_speed_10m": 90})

        flagged = await scan_points(_points(3), fetch_marine, fetch_weather)

        assert flagged == []
        assert fetch_marine.await_count == 3
        fetch_weather.assert_not_called()

    @pytest.mark.asyncio
    async def test_absent_marine_block(self):
        fetch_marine = AsyncMock(return_value=None)
        fetch_weather = AsyncMock()

        assert await scan_points(_points(2), fetch_marine, fetch_weather) == []
        fetch_weather.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrency_cap(self):
        """At most `concurrency` points are in flight at once."""
        active = 0
        peak = 0
        finished = []

        async def fetch_marine(lat, lng):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0)
            return {"wave_height": 3.0}

        async def fetch_weather(lat, lng):
            nonlocal active
            await asyncio.sleep(0)
            active -= 1
            finished.append(lat)
            return {}

        flagged = await scan_points(_points(12), fetch_marine, fetch_weather, concurrency=5)

        assert len(flagged) == 12
        assert peak == 5
        # Each batch completes before the next one starts
        assert sorted(finished[:5]) == [0.0, 1.0, 2.0, 3.0, 4.0]
        assert sorted(finished[5:10]) == [5.0, 6.0, 7.0, 8.0, 9.0]

    @pytest.mark.asyncio
    async def test_output_order_matches_input(self):
        """Later points finishing first does not reorder the results."""

        async def fetch_marine(lat, lng):
            await asyncio.sleep(0.001 * (10 - lat))
            return {"wave_height": 2.5}

        fetch_weather = AsyncMock(return_value={})
        points = _points(8)

        flagged = await scan_points(points, fetch_marine, fetch_weather, concurrency=4)

        assert [f.point for f in flagged] == points

    @pytest.mark.asyncio
    async def test_point_failures_are_not_flagged(self):
        async def fetch_marine(lat, lng):
            if lat == 1.0:
                raise ProviderConnectionError("Network error")
            return {"wave_height": 2.5}

        async def fetch_weather(lat, lng):
            if lat == 2.0:
                raise ValueError("bad payload")
            return {}

        flagged = await scan_points(_points(4), fetch_marine, fetch_weather)

        assert [f.lat for f in flagged] == [0.0, 3.0]

    @pytest.mark.asyncio
    async def test_repeatable(self):
        async def fetch_marine(lat, lng):
            return {"wave_height": lat}

        async def fetch_weather(lat, lng):
            return {"wind_speed_10m": 10 * lat}

        first = await scan_points(_points(6), fetch_marine, fetch_weather)
        second = await scan_points(_points(6), fetch_marine, fetch_weather)

        assert first == second
        assert [f.lat for f in first] == [2.0, 3.0, 4.0, 5.0]

    @pytest.mark.asyncio
    async def test_empty_points(self):
        fetch = AsyncMock()
        assert await scan_points([], fetch, fetch) == []
        fetch.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("concurrency", [0, -1])
    async def test_invalid_concurrency(self, concurrency):
        fetch = AsyncMock()
        with pytest.raises(ValueError, match="concurrency"):
            await scan_points(_points(1), fetch, fetch, concurrency=concurrency)


class TestScanBounds:
    """Test scanning a bounding box through a provider client."""

    @pytest.mark.asyncio
    async def test_scan_bounds(self, provider_client):
        provider_client.get_marine_data.return_value = {"wave_height": 2.4}
        provider_client.get_current_weather.return_value = {"wind_speed_10m": 20}
        bbox = BoundingBox(north=1.0, south=0.0, east=1.0, west=0.0)

        flagged = await scan_bounds(bbox, client=provider_client)

        assert [f.point.as_tuple() for f in flagged] == [
            (0.0, 0.0),
            (0.0, 1.0),
            (1.0, 0.0),
            (1.0, 1.0),
        ]
        assert provider_client.get_marine_data.await_count == 4
        assert all(f.summary == "Wave 2.4 m" for f in flagged)

    @pytest.mark.asyncio
    async def test_invalid_bounds_fail_before_fetching(self, provider_client):
        bbox = BoundingBox(north=0.0, south=5.0, east=1.0, west=0.0)

        with pytest.raises(InvalidBoundsError):
            await scan_bounds(bbox, client=provider_client)

        provider_client.get_marine_data.assert_not_called()

    @pytest.mark.asyncio
    async def test_client_required(self):
        bbox = BoundingBox(north=1.0, south=0.0, east=1.0, west=0.0)
        with pytest.raises(TypeError, match="client"):
            await scan_bounds(bbox)

    def test_default_thresholds(self):
        assert DEFAULT_THRESHOLDS.wind_speed_kmh == 50
        assert DEFAULT_THRESHOLDS.wind_gust_kmh == 70
        assert DEFAULT_THRESHOLDS.wave_height_m == 2.0
        assert DEFAULT_THRESHOLDS.precipitation_mm_h == 10
