"""
Heatmap scoring.

Turns per-venue activity snapshots into HeatmapVenue records: a derived
character label (mode), a base intensity and a display weight for the
viewer's selected display mode.
"""

import math
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from vibecheck.analytics.aggregator import ons_intensity
from vibecheck.config.constants import DEFAULT_DISPLAY_MODE, DISPLAY_MODES, VIBE_SCORE_WEIGHT
from vibecheck.config.engine_config import EngineConfig, get_default_config
from vibecheck.data.schemas import (
    CheckInEvent,
    HeatPoint,
    HeatmapVenue,
    Venue,
    VenueActivitySnapshot,
    ensure_utc,
)


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


def determine_mode(snapshot: VenueActivitySnapshot, config: Optional[EngineConfig] = None) -> str:
    """
    Derive the venue's character. First match wins:

    1. ons      if ons_ratio >= 0.4
    2. singles  if single_ratio >= 0.5
    3. party    if party_ratio >= 0.3 and party_ratio >= chill_ratio
    4. chill    if chill_ratio >= 0.3 and chill_ratio > party_ratio
    5. neutral

    The label does not depend on the selected display mode.
    """
    config = config or get_default_config()

    if snapshot.ons_ratio >= config.ONS_MODE_THRESHOLD:
        return "ons"
    if snapshot.single_ratio >= config.SINGLES_MODE_THRESHOLD:
        return "singles"
    if snapshot.party_ratio >= config.PARTY_MODE_THRESHOLD and snapshot.party_ratio >= snapshot.chill_ratio:
        return "party"
    if snapshot.chill_ratio >= config.CHILL_MODE_THRESHOLD and snapshot.chill_ratio > snapshot.party_ratio:
        return "chill"
    return "neutral"


def activity_score(count: int, config: Optional[EngineConfig] = None) -> float:
    """Linear 0 -> 0, saturation -> 1.0, clamped."""
    config = config or get_default_config()
    return _clamp(count / config.ACTIVITY_SATURATION)


def boost_score(snapshot: VenueActivitySnapshot, config: Optional[EngineConfig] = None) -> float:
    """
    Openness-to-casual-encounter score used by the ons_boost display mode.

    boost = ons_intensity * single_factor * 10 + log2(count + 1) * 0.5
    single_factor = 1 + 0.5 * single_ratio
    """
    config = config or get_default_config()
    single_factor = 1.0 + config.BOOST_SINGLE_BONUS * snapshot.single_ratio
    activity_bonus = math.log2(snapshot.total_checkins + 1)
    return (
        ons_intensity(snapshot) * single_factor * config.BOOST_ONS_SCALE
        + activity_bonus * config.BOOST_ACTIVITY_SCALE
    )


def _ratio_weight(ratio: float, intensity: float, config: EngineConfig) -> float:
    if ratio > config.RATIO_WEIGHT_THRESHOLD:
        return min(1.0, ratio * config.RATIO_WEIGHT_MULTIPLIER)
    return intensity


def display_weight(
    snapshot: VenueActivitySnapshot,
    display_mode: str,
    intensity: float,
    max_boost: float,
    config: Optional[EngineConfig] = None,
) -> float:
    """
    Weight of one venue for the selected display mode, in [0, 1].

    Args:
        snapshot: Venue snapshot
        display_mode: One of DISPLAY_MODES
        intensity: Base intensity (activity score)
        max_boost: Largest boost score among venues in scope (ons_boost only)
        config: Engine configuration
    """
    config = config or get_default_config()
    volume = math.sqrt(snapshot.total_checkins / config.ACTIVITY_SQRT_DIVISOR)

    if display_mode == "single":
        weight = min(1.0, volume * snapshot.single_ratio)
    elif display_mode == "ons":
        weight = min(1.0, volume * snapshot.ons_ratio)
    elif display_mode == "ons_boost":
        if max_boost <= 0:
            weight = 0.0
        else:
            weight = (boost_score(snapshot, config) / max_boost) ** config.BOOST_EXPONENT
    elif display_mode == "party":
        weight = _ratio_weight(snapshot.party_ratio, intensity, config)
    elif display_mode == "chill":
        weight = _ratio_weight(snapshot.chill_ratio, intensity, config)
    elif display_mode == "activity":
        weight = intensity
    else:
        raise ValueError(f"Unknown display mode {display_mode!r}, expected one of {DISPLAY_MODES}")

    return _clamp(weight)


def min_weight_for(display_mode: str, config: Optional[EngineConfig] = None) -> float:
    config = config or get_default_config()
    if display_mode == "ons_boost":
        return config.BOOST_MIN_WEIGHT
    return config.DEFAULT_MIN_WEIGHT


def score_venues(
    snapshots: Dict[str, VenueActivitySnapshot],
    venues: Iterable[Venue],
    display_mode: str = DEFAULT_DISPLAY_MODE,
    config: Optional[EngineConfig] = None,
) -> List[HeatmapVenue]:
    """
    Join snapshots with venue metadata and score them for a display mode.

    Venues without coordinates or without in-window activity are skipped.
    Venues whose weight does not exceed the mode's minimum weight are
    dropped. Output is sorted by weight, then activity score, descending;
    equal keys keep venue input order.
    """
    config = config or get_default_config()

    in_scope = []
    for venue in venues:
        snapshot = snapshots.get(venue.id)
        if not venue.has_coordinates or snapshot is None or snapshot.total_checkins <= 0:
            continue
        in_scope.append((venue, snapshot))

    boosts = {venue.id: boost_score(snapshot, config) for venue, snapshot in in_scope}
    max_boost = max(boosts.values(), default=0.0)
    min_weight = min_weight_for(display_mode, config)

    scored: List[HeatmapVenue] = []
    for venue, snapshot in in_scope:
        intensity = activity_score(snapshot.total_checkins, config)
        weight = display_weight(snapshot, display_mode, intensity, max_boost, config)
        if weight <= min_weight:
            continue

        scored.append(HeatmapVenue(
            venue_id=venue.id,
            name=venue.name,
            lat=venue.latitude,
            lng=venue.longitude,
            category=venue.category,
            total_checkins=snapshot.total_checkins,
            single_ratio=snapshot.single_ratio,
            ons_ratio=snapshot.ons_ratio,
            party_ratio=snapshot.party_ratio,
            chill_ratio=snapshot.chill_ratio,
            last_checkin_at=snapshot.last_checkin_at,
            activity_score=intensity,
            intensity=intensity,
            mode=determine_mode(snapshot, config),
            weight=weight,
            boost_score=boosts[venue.id],
        ))

    scored.sort(key=lambda v: (v.weight, v.activity_score), reverse=True)
    return scored


def recency_weight(created_at: datetime, now: datetime, max_age_minutes: float) -> float:
    """1.0 for a brand-new check-in, linearly down to 0 at max_age_minutes."""
    age_minutes = (ensure_utc(now) - ensure_utc(created_at)).total_seconds() / 60.0
    if age_minutes >= max_age_minutes:
        return 0.0
    if age_minutes <= 0:
        return 1.0
    return 1.0 - age_minutes / max_age_minutes


def event_heat_weight(event: CheckInEvent, now: datetime, max_age_minutes: float) -> float:
    """Vibe weight decayed by recency; an old check-in keeps half its vibe weight."""
    vibe = VIBE_SCORE_WEIGHT.get(event.vibe_label, VIBE_SCORE_WEIGHT["ok"])
    return vibe * (0.5 + 0.5 * recency_weight(event.created_at, now, max_age_minutes))


def heat_points(
    events: Iterable[CheckInEvent],
    venues: Iterable[Venue],
    now: datetime,
    config: Optional[EngineConfig] = None,
) -> List[HeatPoint]:
    """One weighted point per check-in at its venue's location."""
    config = config or get_default_config()
    located = {v.id: v for v in venues if v.has_coordinates}

    points = []
    for event in events:
        venue = located.get(event.venue_id)
        if venue is None:
            continue
        points.append(HeatPoint(
            latitude=venue.latitude,
            longitude=venue.longitude,
            weight=event_heat_weight(event, now, config.RECENCY_MAX_AGE_MINUTES),
        ))
    return points
