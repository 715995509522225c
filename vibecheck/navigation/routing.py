"""
Walking navigation to a venue.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Tuple

from vibecheck.config.engine_config import EngineConfig, get_default_config
from vibecheck.data.schemas import GeoPosition, Venue
from vibecheck.errors import RoutingError
from vibecheck.navigation.arrival import ArrivalState, NavigationArrivalTracker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WalkingRoute:
    polyline: List[Tuple[float, float]]  # (lat, lng) pairs, origin first
    distance_m: float
    duration_s: float


@dataclass
class RouteResult:
    ok: bool
    route: Optional[WalkingRoute] = None
    error: Optional[str] = None


class RoutingProvider(Protocol):
    async def get_walking_route(self, start: GeoPosition, end: GeoPosition) -> WalkingRoute:
        """Raises RoutingError when no route can be computed."""
        ...


@dataclass
class NavigationSession:
    """
    One navigation to a destination venue: fetches the route and drives
    the arrival tracker from position updates.
    """
    router: RoutingProvider
    config: EngineConfig = field(default_factory=get_default_config)
    destination: Optional[Venue] = None
    route: Optional[WalkingRoute] = None
    tracker: Optional[NavigationArrivalTracker] = None

    def __post_init__(self):
        if self.tracker is None:
            self.tracker = NavigationArrivalTracker(config=self.config)

    @property
    def is_navigating(self) -> bool:
        return self.destination is not None and self.tracker.state != ArrivalState.DONE

    async def start(self, origin: GeoPosition, destination: Venue) -> RouteResult:
        """
        Request a walking route and reset arrival detection.

        Arrival detection starts even if routing fails; the route is only
        needed for display.
        """
        if not destination.has_coordinates:
            return RouteResult(ok=False, error=f"Venue {destination.id} has no coordinates")

        self.destination = destination
        self.route = None
        self.tracker.start(destination)

        try:
            self.route = await self.router.get_walking_route(origin, destination.position)
        except RoutingError as exc:
            logger.warning("No walking route to %s: %s", destination.name, exc)
            return RouteResult(ok=False, error=str(exc))

        return RouteResult(ok=True, route=self.route)

    def update(self, position: GeoPosition) -> bool:
        """True once, when the user arrives."""
        return self.tracker.update(position)

    def cancel(self) -> None:
        self.tracker.cancel()
        self.route = None
