"""
Per-venue stats for the venue list, and the list's sort orders.

Every venue gets a row, including venues with no check-ins. Ratios are
None (not 0) when nobody answered, so the ratio sorts can push venues
without data to the end.
"""

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Dict, Iterable, List, Optional

from vibecheck.analytics.aggregator import age_distribution, build_snapshot, group_by_venue, intent_distribution
from vibecheck.analytics.heatmap import boost_score
from vibecheck.config.constants import INTENT_LABELS, VIBE_SCORES
from vibecheck.config.engine_config import EngineConfig, get_default_config
from vibecheck.data.schemas import CheckInEvent, IntentDistribution, Venue

SORT_MODES = ["activity", "single", "ons", "ons_boost", "age", "intent"]
DEFAULT_AGE_SORT_BANDS = ["25_30"]

# Dominant vibe ties go to the hotter vibe
_VIBE_PRIORITY = list(reversed(VIBE_SCORES))


@dataclass
class VenueStats:
    venue: Venue
    check_in_count: int
    dominant_vibe: Optional[str]
    heat_score: int  # 0-100, 10 points per check-in
    single_ratio: Optional[float]
    ons_ratio: Optional[float]
    boost_score: float
    age_percentages: Dict[str, int]
    age_answered: int
    intents: IntentDistribution

    @property
    def dominant_intent_label(self) -> Optional[str]:
        intent = self.intents.dominant_intent
        return INTENT_LABELS.get(intent) if intent else None


def dominant_vibe(events: Iterable[CheckInEvent]) -> Optional[str]:
    counts = {vibe: 0 for vibe in _VIBE_PRIORITY}
    for e in events:
        counts[e.vibe_label] += 1

    dominant, best = None, 0
    for vibe in _VIBE_PRIORITY:
        if counts[vibe] > best:
            dominant, best = vibe, counts[vibe]
    return dominant


def calculate_venue_stats(venue: Venue, events: List[CheckInEvent], config: Optional[EngineConfig] = None) -> VenueStats:
    config = config or get_default_config()
    snapshot = build_snapshot(venue.id, events)

    return VenueStats(
        venue=venue,
        check_in_count=len(events),
        dominant_vibe=dominant_vibe(events),
        heat_score=min(100, len(events) * 10),
        single_ratio=snapshot.single_ratio if snapshot.single_answered else None,
        ons_ratio=snapshot.ons_ratio if snapshot.ons_answered else None,
        boost_score=boost_score(snapshot, config),
        age_percentages={bucket.key: bucket.percentage for bucket in age_distribution(events)},
        age_answered=snapshot.age_answered,
        intents=intent_distribution(events),
    )


def calculate_all_venue_stats(
    venues: Iterable[Venue],
    events: Iterable[CheckInEvent],
    config: Optional[EngineConfig] = None,
) -> List[VenueStats]:
    """One row per venue, in venue order. Check-ins for unknown venues are ignored."""
    by_venue = group_by_venue(events)
    return [calculate_venue_stats(venue, by_venue.get(venue.id, []), config) for venue in venues]


def combined_age_pct(stats: VenueStats, bands: Iterable[str]) -> int:
    if stats.age_answered == 0:
        return 0
    return sum(stats.age_percentages.get(band, 0) for band in bands)


def combined_intent_pct(stats: VenueStats, intents: Iterable[str]) -> int:
    if stats.intents.total == 0:
        return 0
    return sum(stats.intents.percentages.get(intent, 0) for intent in intents)


def _ratio_key(ratio: Optional[float], count: int):
    # Answered venues first by ratio; unanswered ones after, busiest first
    if ratio is None:
        return (1, 0.0, -count)
    return (0, -ratio, 0)


def _by_share_then_count(share):
    """Comparator: higher share first; when both shares are 0, busier first."""
    def compare(a: VenueStats, b: VenueStats) -> int:
        a_pct, b_pct = share(a), share(b)
        if a_pct == 0 and b_pct == 0:
            return b.check_in_count - a.check_in_count
        return b_pct - a_pct
    return cmp_to_key(compare)


def sort_venues_by_mode(
    stats: List[VenueStats],
    sort_mode: str = "activity",
    age_bands: Optional[List[str]] = None,
    intents: Optional[List[str]] = None,
) -> List[VenueStats]:
    """
    Sort the venue list. Ties keep input order.

    - single / ons: ratio descending, venues without answers last
    - ons_boost: boost score descending
    - age: share of the target bands (default 25-30), else activity
    - intent: share of the target intents, else activity; without
      targets, the dominant intent's share
    - activity: check-in count descending
    """
    if sort_mode == "single":
        return sorted(stats, key=lambda s: _ratio_key(s.single_ratio, s.check_in_count))
    if sort_mode == "ons":
        return sorted(stats, key=lambda s: _ratio_key(s.ons_ratio, s.check_in_count))
    if sort_mode == "ons_boost":
        return sorted(stats, key=lambda s: -s.boost_score)
    if sort_mode == "age":
        bands = age_bands or DEFAULT_AGE_SORT_BANDS
        return sorted(stats, key=_by_share_then_count(lambda s: combined_age_pct(s, bands)))
    if sort_mode == "intent":
        if intents:
            return sorted(stats, key=_by_share_then_count(lambda s: combined_intent_pct(s, intents)))
        return sorted(stats, key=lambda s: -s.intents.dominant_pct)
    if sort_mode != "activity":
        raise ValueError(f"Unknown sort mode: {sort_mode}")
    return sorted(stats, key=lambda s: -s.check_in_count)
