"""
Arrival detection while navigating to a venue.

idle -> ready (within the arrival threshold) -> shown (prompt displayed)
-> done (dismissed, confirmed or cancelled)
"""

import logging
from enum import Enum
from typing import Optional

from vibecheck.config.engine_config import EngineConfig, get_default_config
from vibecheck.data.schemas import GeoPosition, Venue
from vibecheck.geo.distance import distance_meters

logger = logging.getLogger(__name__)


class ArrivalState(str, Enum):
    IDLE = "idle"
    READY = "ready"
    SHOWN = "shown"
    DONE = "done"


class NavigationArrivalTracker:
    """
    Emits a one-shot "offer to check in" signal when the user reaches the
    destination. Once done, nothing changes until start() is called with a
    new destination.
    """

    def __init__(self, destination: Optional[Venue] = None, config: Optional[EngineConfig] = None):
        self.config = config or get_default_config()
        self.destination = destination
        self.state = ArrivalState.IDLE
        self.last_distance_m: Optional[float] = None
        self.outcome: Optional[str] = None  # dismissed / confirmed / cancelled

    def start(self, destination: Venue) -> None:
        """New navigation session; resets to idle."""
        self.destination = destination
        self.state = ArrivalState.IDLE
        self.last_distance_m = None
        self.outcome = None

    def update(self, position: GeoPosition) -> bool:
        """
        Feed a position sample.

        Returns:
            True only on the sample that moves idle -> ready
        """
        if self.destination is None or not self.destination.has_coordinates:
            return False

        self.last_distance_m = distance_meters(position, self.destination.position)
        if self.state != ArrivalState.IDLE:
            return False

        if self.last_distance_m <= self.config.ARRIVAL_THRESHOLD_M:
            self.state = ArrivalState.READY
            logger.info("Arrived at %s (%.0fm)", self.destination.name, self.last_distance_m)
            return True
        return False

    def acknowledge_shown(self) -> bool:
        """Caller displayed the arrival prompt."""
        if self.state != ArrivalState.READY:
            return False
        self.state = ArrivalState.SHOWN
        return True

    def _finish(self, outcome: str, allowed) -> bool:
        if self.state not in allowed:
            return False
        self.state = ArrivalState.DONE
        self.outcome = outcome
        return True

    def dismiss(self) -> bool:
        return self._finish("dismissed", (ArrivalState.READY, ArrivalState.SHOWN))

    def confirm(self) -> bool:
        """User accepted the check-in offer."""
        return self._finish("confirmed", (ArrivalState.READY, ArrivalState.SHOWN))

    def cancel(self) -> bool:
        """Navigation was cancelled."""
        return self._finish("cancelled", (ArrivalState.IDLE, ArrivalState.READY, ArrivalState.SHOWN))
