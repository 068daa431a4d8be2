"""
Tests for the viewport controller and popup action registry.
"""

import asyncio
from unittest.mock import AsyncMock, Mock, patch

import pytest

from stormscan.config import ScanConfig
from stormscan.exceptions import InvalidBoundsError, UnknownActionError
from stormscan.models import BoundingBox
from stormscan.viewport import VIEW_STORM_DETAILS, ActionRegistry, ViewportScanner

SMALL_BOX = BoundingBox(north=1.0, south=0.0, east=1.0, west=0.0)


class RecordingSurface:
    """Marker surface that records every call in order."""

    def __init__(self):
        self.calls = []
        self.markers = []

    def clear_markers(self):
        self.calls.append("clear")
        self.markers = []

    def add_marker(self, point, summary, details):
        self.calls.append("add")
        self.markers.append((point.as_tuple(), summary))


class TestViewportScanner:
    """Test scanning, rendering and generation handling."""

    @pytest.fixture
    def surface(self):
        return RecordingSurface()

    @pytest.fixture
    def scanner(self, provider_client, surface):
        provider_client.get_marine_data.return_value = {"wave_height": 2.5}
        provider_client.get_current_weather.return_value = {}
        return ViewportScanner(provider_client, surface, ScanConfig(settle_delay_s=0))

    @pytest.mark.asyncio
    async def test_viewport_change_renders(self, scanner, surface):
        result = await scanner.on_viewport_changed(SMALL_BOX)

        assert result.applied
        assert result.generation == 1
        assert len(result.points) == 4
        assert len(result.flagged) == 4
        assert surface.calls == ["clear", "add", "add", "add", "add"]
        assert surface.markers[0] == ((0.0, 0.0), "Wave 2.5 m")

    @pytest.mark.asyncio
    async def test_previous_markers_replaced(self, scanner, surface, provider_client):
        await scanner.on_viewport_changed(SMALL_BOX)
        provider_client.get_marine_data.return_value = {"wave_height": 0.5}

        result = await scanner.on_viewport_changed(SMALL_BOX)

        assert result.applied
        assert result.flagged == []
        assert surface.markers == []
        assert surface.calls[-1] == "clear"

    @pytest.mark.asyncio
    async def test_map_ready_waits_for_settle_delay(self, provider_client, surface):
        provider_client.get_marine_data.return_value = None
        scanner = ViewportScanner(provider_client, surface, ScanConfig(settle_delay_s=1.2))

        with patch("stormscan.viewport.asyncio.sleep", new=AsyncMock()) as mock_sleep:
            result = await scanner.on_map_ready(SMALL_BOX)

        mock_sleep.assert_awaited_once_with(1.2)
        assert result.applied

    @pytest.mark.asyncio
    async def test_stale_generation_dropped(self, provider_client, surface):
        """A slow older scan finishing last does not overwrite the newer one."""
        release_first = asyncio.Event()

        async def fetch_marine(lat, lng):
            if lat >= 10.0:
                await release_first.wait()
                return {"wave_height": 5.0}
            return {"wave_height": 2.5}

        provider_client.get_marine_data.side_effect = fetch_marine
        provider_client.get_current_weather.return_value = {}
        scanner = ViewportScanner(provider_client, surface, ScanConfig(settle_delay_s=0))

        old_box = BoundingBox(north=10.0, south=10.0, east=0.0, west=0.0)
        old_scan = asyncio.ensure_future(scanner.on_viewport_changed(old_box))
        await asyncio.sleep(0)

        new_result = await scanner.on_viewport_changed(SMALL_BOX)
        release_first.set()
        old_result = await old_scan

        assert new_result.generation == 2
        assert new_result.applied
        assert old_result.generation == 1
        assert not old_result.applied
        assert len(old_result.flagged) == 1
        assert [m[0] for m in surface.markers] == [
            (0.0, 0.0),
            (0.0, 1.0),
            (1.0, 0.0),
            (1.0, 1.0),
        ]

    @pytest.mark.asyncio
    async def test_invalid_bounds(self, scanner, surface):
        with pytest.raises(InvalidBoundsError):
            await scanner.on_viewport_changed(BoundingBox(north=0.0, south=1.0, east=0.0, west=0.0))

        assert scanner.generation == 0
        assert surface.calls == []

    @pytest.mark.asyncio
    async def test_uses_config(self, provider_client, surface):
        provider_client.get_marine_data.return_value = None
        config = ScanConfig(settle_delay_s=0, max_points=3)
        scanner = ViewportScanner(provider_client, surface, config)

        result = await scanner.on_viewport_changed(SMALL_BOX)

        assert len(result.points) == 3
        assert provider_client.get_marine_data.await_count == 3


class TestActionRegistry:
    """Test explicit popup action dispatch."""

    def test_dispatch(self):
        registry = ActionRegistry()
        handler = Mock(return_value="shown")
        registry.register(VIEW_STORM_DETAILS, handler)

        assert registry.dispatch(VIEW_STORM_DETAILS, 8.0, 125.0) == "shown"
        handler.assert_called_once_with(8.0, 125.0)
        assert VIEW_STORM_DETAILS in registry
        assert registry.names == [VIEW_STORM_DETAILS]

    @pytest.mark.asyncio
    async def test_async_handler(self):
        registry = ActionRegistry()
        handler = AsyncMock(return_value={"ok": True})
        registry.register("request_rescue", handler)

        assert await registry.dispatch("request_rescue", 1.0, 2.0, reason="engine failure") == {
            "ok": True
        }
        handler.assert_awaited_once_with(1.0, 2.0, reason="engine failure")

    def test_unknown_action(self):
        registry = ActionRegistry()

        with pytest.raises(UnknownActionError, match="view_waves"):
            registry.dispatch("view_waves", 0.0, 0.0)

    def test_unknown_action_is_key_error(self):
        with pytest.raises(KeyError):
            ActionRegistry().dispatch("missing")

    def test_unregister(self):
        registry = ActionRegistry()
        registry.register("view_weather", Mock())
        registry.unregister("view_weather")

        assert "view_weather" not in registry

    def test_handler_must_be_callable(self):
        with pytest.raises(TypeError):
            ActionRegistry().register("view_weather", "not callable")
