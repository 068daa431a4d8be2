"""
Viewport controller: re-scans the visible map area and renders the results.

Every scan takes the next generation number. Scans may overlap (the user keeps
panning while earlier scans are still fetching) but only the newest started
generation is rendered; results of older generations are dropped when they
complete.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol

from .client import OpenMeteoClient
from .config import ScanConfig
from .exceptions import UnknownActionError
from .grid import sample_grid
from .models import BoundingBox, FlaggedPoint, SamplePoint
from .scan import scan_points

logger = logging.getLogger(__name__)

# Popup actions offered on storm markers
VIEW_STORM_DETAILS = "view_storm_details"
VIEW_WEATHER = "view_weather"
VIEW_WAVES = "view_waves"
REQUEST_RESCUE = "request_rescue"


class MarkerSurface(Protocol):
    """Rendering collaborator that displays storm markers."""

    def add_marker(
        self, point: SamplePoint, summary: str, details: Mapping[str, Any]
    ) -> None: ...

    def clear_markers(self) -> None: ...


@dataclass
class ScanResult:
    """Outcome of one viewport scan."""

    generation: int
    bbox: BoundingBox
    points: List[SamplePoint] = field(default_factory=list)
    flagged: List[FlaggedPoint] = field(default_factory=list)
    applied: bool = False


class ViewportScanner:
    """
    Runs storm scans for viewport changes and renders the newest one.

    Args:
        client: Provider client used for marine and weather reads
        surface: Marker surface the flagged points are rendered on
        config: Scan settings (defaults to ``ScanConfig()``)
    """

    def __init__(
        self,
        client: OpenMeteoClient,
        surface: MarkerSurface,
        config: Optional[ScanConfig] = None,
    ):
        self.client = client
        self.surface = surface
        self.config = config or ScanConfig()
        self._generation = 0

    @property
    def generation(self) -> int:
        """Generation number of the most recently started scan."""
        return self._generation

    async def on_map_ready(self, bbox: BoundingBox) -> ScanResult:
        """Initial scan, run once the map has had time to settle."""
        await asyncio.sleep(self.config.settle_delay_s)
        return await self.scan(bbox)

    async def on_viewport_changed(self, bbox: BoundingBox) -> ScanResult:
        """Re-scan after the user finished panning or zooming."""
        return await self.scan(bbox)

    async def scan(self, bbox: BoundingBox) -> ScanResult:
        """
        Scan ``bbox`` and render the result if no newer scan has started.

        Raises:
            InvalidBoundsError: If the bounding box is invalid
        """
        points = sample_grid(
            bbox, step_deg=self.config.step_deg, max_points=self.config.max_points
        )
        self._generation += 1
        generation = self._generation

        flagged = await scan_points(
            points,
            self.client.get_marine_data,
            self.client.get_current_weather,
            thresholds=self.config.thresholds,
            concurrency=self.config.concurrency,
        )

        result = ScanResult(
            generation=generation, bbox=bbox, points=points, flagged=flagged
        )
        if generation != self._generation:
            logger.info(
                f"Dropping results of scan {generation}; scan {self._generation} is newer"
            )
            return result

        self._render(flagged)
        result.applied = True
        logger.info(
            f"Scan {generation} rendered {len(flagged)} storm markers from {len(points)} points"
        )
        return result

    def _render(self, flagged: List[FlaggedPoint]) -> None:
        # No await between clear and add: observers never see a partial set.
        self.surface.clear_markers()
        for storm in flagged:
            self.surface.add_marker(storm.point, storm.summary, storm.details)


class ActionRegistry:
    """Named handlers for popup actions, dispatched explicitly."""

    def __init__(self) -> None:
        self._handlers: Dict[str, Callable[..., Any]] = {}

    def register(self, name: str, handler: Callable[..., Any]) -> None:
        """Register ``handler`` under ``name``, replacing any previous one."""
        if not callable(handler):
            raise TypeError(f"Handler for '{name}' is not callable")
        self._handlers[name] = handler

    def unregister(self, name: str) -> None:
        self._handlers.pop(name, None)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    @property
    def names(self) -> List[str]:
        return sorted(self._handlers)

    def dispatch(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """
        Invoke the handler registered under ``name``.

        Returns whatever the handler returns (a coroutine for async handlers).

        Raises:
            UnknownActionError: If no handler is registered under ``name``
        """
        try:
            handler = self._handlers[name]
        except KeyError:
            raise UnknownActionError(f"No handler registered for action '{name}'") from None
        logger.debug(f"Dispatching action '{name}'")
        return handler(*args, **kwargs)
