"""
Geofenced smart check-in engine.

Polls the device position, finds the nearest venue inside the geofence and
submits a check-in on the user's behalf, at most once per venue per
cooldown window.

disabled -> polling -> evaluating -> (cooldown-gated submit | idle)
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol

from vibecheck.checkin.cooldown import CooldownAnchor, has_cooldown_passed
from vibecheck.checkin.location import (
    GEO_ERROR_MESSAGES,
    PermissionState,
    PositionSource,
    permission_for_error,
)
from vibecheck.checkin.profile import age_band_from_birth_year, map_profile_relationship
from vibecheck.checkin.state_store import CheckinStateStore
from vibecheck.config.constants import VIBE_SCORE_TO_INT
from vibecheck.config.engine_config import EngineConfig, get_default_config
from vibecheck.data.repositories import SubmitResult
from vibecheck.data.schemas import (
    CheckInDraft,
    Demographics,
    GeoPosition,
    UserProfile,
    Venue,
)
from vibecheck.errors import GeoErrorKind, GeolocationError, StoreError
from vibecheck.geo.distance import find_nearest_venue_within_radius
from vibecheck.serving.scheduler import PeriodicTask

logger = logging.getLogger(__name__)


class CheckInSubmitter(Protocol):
    async def submit_check_in(self, draft: CheckInDraft) -> SubmitResult:
        ...


@dataclass
class SmartCheckinPreferences:
    """
    User preferences the engine runs with. Passed in, never read from
    global state.
    """
    enabled: bool
    user_id: Optional[str]
    profile: Optional[UserProfile] = None
    default_intent: Optional[str] = None
    default_ons_intent: Optional[str] = None

    @classmethod
    def from_profile(
        cls,
        profile: UserProfile,
        default_intent: Optional[str] = None,
        default_ons_intent: Optional[str] = None,
    ) -> "SmartCheckinPreferences":
        return cls(
            enabled=profile.smart_checkin_enabled,
            user_id=profile.user_id,
            profile=profile,
            default_intent=default_intent or profile.default_intent,
            default_ons_intent=default_ons_intent or profile.default_ons_intent,
        )

    @property
    def can_run(self) -> bool:
        return self.enabled and bool(self.user_id)


@dataclass
class SmartCheckinState:
    """Snapshot of the engine, safe to hand to a UI."""
    is_active: bool = False
    current_venue: Optional[Venue] = None
    current_distance_m: Optional[float] = None
    last_checkin_at: Optional[datetime] = None
    last_checkin_venue_id: Optional[str] = None
    geo_error: Optional[str] = None
    permission_state: PermissionState = PermissionState.PROMPT
    in_flight: bool = False


@dataclass
class SmartCheckinResult:
    success: bool
    venue_id: Optional[str] = None
    venue_name: Optional[str] = None
    error: Optional[str] = None


class GeofencedCheckinEngine:
    """
    Autonomous, cooldown-gated check-in loop.

    Args:
        preferences: Enable flag, user id and profile defaults
        venues: Candidate venues (venues without coordinates are ignored)
        position_source: Device position provider
        submitter: Check-in writer (usually the CheckInStore)
        state_store: Durable cooldown anchor
        config: Engine configuration
        clock: Returns the current UTC time
        on_checkin: Called with every submission outcome of a live session
    """

    def __init__(
        self,
        preferences: SmartCheckinPreferences,
        venues: List[Venue],
        position_source: PositionSource,
        submitter: CheckInSubmitter,
        state_store: CheckinStateStore,
        config: Optional[EngineConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
        on_checkin: Optional[Callable[[SmartCheckinResult], None]] = None,
    ):
        self.preferences = preferences
        self.venues = list(venues)
        self.position_source = position_source
        self.submitter = submitter
        self.state_store = state_store
        self.config = config or get_default_config()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.on_checkin = on_checkin

        self._anchor = state_store.load()
        self._state = SmartCheckinState(
            last_checkin_at=self._anchor.at,
            last_checkin_venue_id=self._anchor.venue_id,
        )
        self._in_flight = False
        self._generation = 0  # Bumped on start/stop; stale results are dropped
        self._submission: Optional[asyncio.Task] = None
        self._task: Optional[PeriodicTask] = None

    @property
    def state(self) -> SmartCheckinState:
        s = self._state
        return SmartCheckinState(
            is_active=s.is_active,
            current_venue=s.current_venue,
            current_distance_m=s.current_distance_m,
            last_checkin_at=self._anchor.at,
            last_checkin_venue_id=self._anchor.venue_id,
            geo_error=s.geo_error,
            permission_state=s.permission_state,
            in_flight=self._in_flight,
        )

    @property
    def is_polling(self) -> bool:
        return self._task is not None and self._task.is_running

    def set_venues(self, venues: List[Venue]) -> None:
        self.venues = list(venues)

    def set_preferences(self, preferences: SmartCheckinPreferences) -> None:
        self.preferences = preferences

    def has_cooldown_passed(self, venue_id: str, now: datetime) -> bool:
        return has_cooldown_passed(venue_id, self._anchor, now, self.config.smart_cooldown)

    def build_draft(self, venue: Venue, now: datetime) -> CheckInDraft:
        """Check-in filled from the profile defaults with the fixed smart-check-in mood."""
        prefs = self.preferences
        profile = prefs.profile

        demographics = Demographics(
            relationship_status=map_profile_relationship(profile.relationship_status) if profile else None,
            ons_intent=prefs.default_ons_intent,
            gender=profile.gender if profile else None,
            age_band=age_band_from_birth_year(profile.birth_year, now.year) if profile else None,
        )
        return CheckInDraft(
            venue_id=venue.id,
            user_id=prefs.user_id,
            vibe_score=VIBE_SCORE_TO_INT[self.config.SMART_CHECKIN_VIBE],
            intent=prefs.default_intent or self.config.SMART_CHECKIN_INTENT,
            demographics=demographics,
        )

    def _clear_current_venue(self) -> None:
        self._state.current_venue = None
        self._state.current_distance_m = None

    async def evaluate(
        self,
        position: GeoPosition,
        now: Optional[datetime] = None,
        token: Optional[int] = None,
    ) -> Optional[SmartCheckinResult]:
        """
        Process one position sample.

        Returns:
            The submission outcome, or None if nothing was submitted
            (disabled, no venue in range, cooldown, or a submission
            already in flight).
        """
        now = now or self.clock()

        if not self.preferences.can_run:
            self._clear_current_venue()
            return None

        nearest = find_nearest_venue_within_radius(position, self.venues, self.config.GEOFENCE_RADIUS_M)
        if nearest is None:
            self._clear_current_venue()
            return None

        venue = nearest.venue
        self._state.current_venue = venue
        self._state.current_distance_m = nearest.distance_m

        if self._in_flight:
            logger.debug("Submission in flight, skipping sample at %s", venue.id)
            return None
        if not self.has_cooldown_passed(venue.id, now):
            return None

        self._in_flight = True
        draft = self.build_draft(venue, now)
        # Shielded so a stop() mid-write still records the anchor
        self._submission = asyncio.create_task(self._submit(venue, draft, now, nearest.distance_m))
        result = await asyncio.shield(self._submission)

        if self.on_checkin is not None and (token is None or token == self._generation):
            self.on_checkin(result)
        return result

    async def _submit(self, venue: Venue, draft: CheckInDraft, now: datetime, distance_m: float) -> SmartCheckinResult:
        """Write one check-in and move the cooldown anchor if it landed."""
        try:
            submitted = await self.submitter.submit_check_in(draft)
        except StoreError as exc:
            submitted = SubmitResult(ok=False, error=str(exc))
        finally:
            self._in_flight = False

        if not submitted.ok:
            # Anchor stays put so the next eligible sample retries
            logger.warning("Smart check-in at %s failed: %s", venue.name, submitted.error)
            return SmartCheckinResult(success=False, venue_id=venue.id, venue_name=venue.name, error=submitted.error)

        self._anchor = CooldownAnchor(venue_id=venue.id, at=now)
        self.state_store.save(self._anchor)
        logger.info("Smart check-in at %s (%.0fm)", venue.name, distance_m)
        return SmartCheckinResult(success=True, venue_id=venue.id, venue_name=venue.name)

    async def _sample(self) -> Optional[SmartCheckinResult]:
        """Request one position fix and evaluate it."""
        token = self._generation
        try:
            position = await asyncio.wait_for(
                self.position_source.current_position(),
                timeout=self.config.GEO_REQUEST_TIMEOUT_S,
            )
        except asyncio.TimeoutError:
            error = GeolocationError(GeoErrorKind.TIMEOUT)
        except GeolocationError as exc:
            error = exc
        else:
            error = None

        if token != self._generation:
            logger.debug("Discarding position result from a stopped session")
            return None

        if error is not None:
            await self._handle_geo_error(error)
            return None

        self._state.geo_error = None
        self._state.permission_state = PermissionState.GRANTED
        self._state.is_active = self.is_polling
        return await self.evaluate(position, token=token)

    async def _handle_geo_error(self, error: GeolocationError) -> None:
        self._state.geo_error = GEO_ERROR_MESSAGES.get(error.kind, str(error))

        if error.kind.is_terminal:
            self._state.is_active = False
            # Needs the user to re-grant and re-enable; no automatic retry
            self._state.permission_state = permission_for_error(error.kind)
            logger.warning("Smart check-in halted: %s", error.kind.value)
            await self._halt_polling()
        else:
            logger.info("Transient geolocation error (%s), retrying next tick", error.kind.value)

    async def _halt_polling(self) -> None:
        if self._task is not None:
            await self._task.stop()
            self._task = None
        self._clear_current_venue()

    async def start(self) -> None:
        """Begin polling if enabled and location permission allows it."""
        if not self.preferences.can_run:
            logger.info("Smart check-in disabled, not starting")
            return
        if self.is_polling:
            return

        self._generation += 1
        permission = await self.position_source.permission_state()
        self._state.permission_state = permission

        if permission == PermissionState.DENIED:
            self._state.geo_error = GEO_ERROR_MESSAGES[GeoErrorKind.PERMISSION_DENIED]
            self._state.is_active = False
            return
        if permission == PermissionState.UNAVAILABLE:
            self._state.geo_error = GEO_ERROR_MESSAGES[GeoErrorKind.UNSUPPORTED]
            self._state.is_active = False
            return

        self._state.geo_error = None
        self._task = PeriodicTask("smart-checkin-geo", self.config.GEO_POLL_INTERVAL_S, self._sample)
        self._task.start()
        self._state.is_active = True

    async def stop(self) -> None:
        """
        Stop polling. Position results still in flight are discarded; a
        check-in already being written completes and moves the anchor, but
        its result is not reported.
        """
        self._generation += 1
        await self._halt_polling()
        self._state.is_active = False
        self._state.geo_error = None

    async def check_now(self) -> Optional[SmartCheckinResult]:
        """Force one position sample outside the poll schedule."""
        return await self._sample()
