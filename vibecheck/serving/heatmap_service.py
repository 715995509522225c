import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from vibecheck.analytics.aggregator import TimeWindow, aggregate
from vibecheck.analytics.filters import ClientFilterPipeline, FilterSelection
from vibecheck.analytics.heatmap import heat_points, score_venues
from vibecheck.config.engine_config import EngineConfig, get_default_config
from vibecheck.data.repositories import CheckInStore, StoreResult, VenueStore
from vibecheck.data.schemas import CheckInEvent, HeatPoint, HeatmapVenue, Venue, VenueActivitySnapshot
from vibecheck.errors import StoreError
from vibecheck.serving.scheduler import PeriodicTask

logger = logging.getLogger(__name__)


class LiveHeatmapService:
    """
    Keeps the live heatmap inputs fresh.

    Two independent loops: the data refresh re-pulls check-ins in the
    rolling window and re-aggregates; the heatmap refresh re-pulls the
    venue list. A failed read keeps the last good data and records the
    error for that source until the same source reads successfully again.
    """

    def __init__(
        self,
        check_in_store: CheckInStore,
        venue_store: VenueStore,
        config: Optional[EngineConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.check_in_store = check_in_store
        self.venue_store = venue_store
        self.config = config or get_default_config()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self.venues: List[Venue] = []
        self.events: List[CheckInEvent] = []
        self.snapshots: Dict[str, VenueActivitySnapshot] = {}
        self.venue_error: Optional[str] = None
        self.check_in_error: Optional[str] = None
        self.refreshed_at: Optional[datetime] = None

        self._window: Optional[TimeWindow] = None
        self._issued = 0  # Snapshot refreshes started
        self._applied = 0  # Newest snapshot refresh whose result is live
        self._tasks: List[PeriodicTask] = []

    @property
    def last_error(self) -> Optional[str]:
        """First outstanding read error, venues before check-ins."""
        return self.venue_error or self.check_in_error

    async def refresh_venues(self) -> StoreResult[List[Venue]]:
        try:
            venues = await self.venue_store.fetch_venues()
        except StoreError as exc:
            logger.error("Venue refresh failed, keeping %d cached venues: %s", len(self.venues), exc)
            self.venue_error = str(exc)
            return StoreResult.failure(str(exc))

        self.venues = venues
        self.venue_error = None
        return StoreResult.success(venues)

    async def refresh_snapshots(self) -> StoreResult[Dict[str, VenueActivitySnapshot]]:
        self._issued += 1
        seq = self._issued
        now = self.clock()
        window = TimeWindow.rolling(self.config.LIVE_WINDOW_MINUTES, now)
        try:
            events = await self.check_in_store.fetch_check_ins(None, window.start, window.end)
        except StoreError as exc:
            logger.error("Check-in refresh failed, keeping last snapshot: %s", exc)
            if seq > self._applied:
                self.check_in_error = str(exc)
            return StoreResult.failure(str(exc))

        if seq < self._applied:
            # A refresh started later has already landed
            logger.debug("Dropping out-of-order check-in refresh #%d", seq)
            return StoreResult.success(self.snapshots)

        self._applied = seq
        self._window = window
        self.events = events
        self.snapshots = aggregate(events, window, self.venues or None)
        self.check_in_error = None
        self.refreshed_at = now
        logger.debug("Aggregated %d check-ins into %d venue snapshots", len(events), len(self.snapshots))
        return StoreResult.success(self.snapshots)

    async def refresh(self) -> bool:
        """Venues, then snapshots. True if both reads succeeded."""
        venues = await self.refresh_venues()
        snapshots = await self.refresh_snapshots()
        return venues.ok and snapshots.ok

    def filtered_events(self, selection: Optional[FilterSelection] = None) -> List[CheckInEvent]:
        """
        Live-window check-ins narrowed by the viewer's filters. A filter
        window longer than the live window cannot widen it.
        """
        if selection is None:
            return self.events
        outcome = ClientFilterPipeline(selection, self.refreshed_at or self.clock()).apply(self.events)
        logger.debug("Filters discarded %s", outcome.discarded)
        return outcome.events

    def view(self, display_mode: str, selection: Optional[FilterSelection] = None) -> List[HeatmapVenue]:
        snapshots = self.snapshots
        if selection is not None and self._window is not None:
            snapshots = aggregate(self.filtered_events(selection), self._window, self.venues or None)
        return score_venues(snapshots, self.venues, display_mode, self.config)

    def points(self, selection: Optional[FilterSelection] = None) -> List[HeatPoint]:
        return heat_points(self.filtered_events(selection), self.venues, self.clock(), self.config)

    def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            PeriodicTask("data-refresh", self.config.DATA_REFRESH_INTERVAL_S,
                         self.refresh_snapshots, run_immediately=False),
            PeriodicTask("heatmap-refresh", self.config.HEATMAP_REFRESH_INTERVAL_S,
                         self.refresh_venues, run_immediately=False),
        ]
        for task in self._tasks:
            task.start()

    async def stop(self) -> None:
        for task in self._tasks:
            await task.stop()
        self._tasks = []
