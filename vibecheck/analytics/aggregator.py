"""
Venue activity aggregation.

Reduces raw check-ins to per-venue snapshots for a time window, and to
zero-filled daily series and demographic distributions for the insights
report. Everything here is pure and order-insensitive.
"""

import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

from vibecheck.config.constants import (
    AGE_BANDS, AGE_BAND_LABELS, INTENTS, ONS_INTENSITY_WEIGHTS, YOUTH_AGE_BAND,
)
from vibecheck.data.schemas import (
    ActivityPoint,
    CheckInEvent,
    DistributionBucket,
    IntentDistribution,
    IntentPoint,
    Venue,
    VenueActivitySnapshot,
    ensure_utc,
)

GENDER_BUCKETS = [("male", "Men"), ("female", "Women"), ("other", "Other")]
RELATIONSHIP_BUCKETS = [("single", "Single"), ("in_relationship", "In a relationship"), ("other", "Other")]


@dataclass(frozen=True)
class TimeWindow:
    """Half-open UTC interval [start, end)."""
    start: datetime
    end: datetime

    @classmethod
    def rolling(cls, minutes: int, now: datetime) -> "TimeWindow":
        """The last `minutes` minutes before now."""
        now = ensure_utc(now)
        return cls(start=now - timedelta(minutes=minutes), end=now)

    @classmethod
    def between(cls, start: datetime, end: datetime) -> "TimeWindow":
        return cls(start=ensure_utc(start), end=ensure_utc(end))

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, ts: datetime) -> bool:
        ts = ensure_utc(ts)
        return self.start <= ts < self.end


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator clamped to [0, 1]; 0 when nothing was answered."""
    if denominator <= 0:
        return 0.0
    return min(1.0, max(0.0, numerator / denominator))


def round_pct(value: float) -> int:
    """Round half up, the way percentages are shown on the dashboard."""
    return int(math.floor(value + 0.5))


def group_by_venue(events: Iterable[CheckInEvent]) -> Dict[str, List[CheckInEvent]]:
    by_venue: Dict[str, List[CheckInEvent]] = defaultdict(list)
    for event in events:
        by_venue[event.venue_id].append(event)
    return dict(by_venue)


def ons_intensity(snapshot: VenueActivitySnapshot) -> float:
    """
    Weighted openness over answered ONS responses (open=1.0, maybe=0.6).
    """
    if snapshot.ons_answered == 0:
        return 0.0
    weighted = (
        ONS_INTENSITY_WEIGHTS["open"] * snapshot.ons_open_count
        + ONS_INTENSITY_WEIGHTS["maybe"] * snapshot.ons_maybe_count
    )
    return min(1.0, weighted / snapshot.ons_answered)


def build_snapshot(venue_id: str, events: List[CheckInEvent]) -> VenueActivitySnapshot:
    """
    Reduce one venue's in-window check-ins.

    Each ratio only counts events where the field was answered, in both
    numerator and denominator.
    """
    single_count = single_answered = 0
    ons_open = ons_maybe = ons_answered = 0
    party = chill = intent_answered = 0
    youth = age_answered = 0
    last_checkin_at: Optional[datetime] = None

    for e in events:
        if e.relationship_status is not None:
            single_answered += 1
            if e.relationship_status == "single":
                single_count += 1

        if e.ons_intent is not None:
            ons_answered += 1
            if e.ons_intent == "open":
                ons_open += 1
            elif e.ons_intent == "maybe":
                ons_maybe += 1

        if e.intent is not None:
            intent_answered += 1
            if e.intent == "party":
                party += 1
            elif e.intent == "chill":
                chill += 1

        if e.age_band is not None:
            age_answered += 1
            if e.age_band == YOUTH_AGE_BAND:
                youth += 1

        created = ensure_utc(e.created_at)
        if last_checkin_at is None or created > last_checkin_at:
            last_checkin_at = created

    return VenueActivitySnapshot(
        venue_id=venue_id,
        total_checkins=len(events),
        single_ratio=safe_ratio(single_count, single_answered),
        ons_ratio=safe_ratio(ons_open + ons_maybe, ons_answered),
        party_ratio=safe_ratio(party, intent_answered),
        chill_ratio=safe_ratio(chill, intent_answered),
        single_count=single_count,
        single_answered=single_answered,
        ons_open_count=ons_open,
        ons_maybe_count=ons_maybe,
        ons_answered=ons_answered,
        party_count=party,
        chill_count=chill,
        intent_answered=intent_answered,
        youth_count=youth,
        age_answered=age_answered,
        last_checkin_at=last_checkin_at,
    )


def aggregate(
    events: Iterable[CheckInEvent],
    window: TimeWindow,
    venues: Optional[Iterable[Venue]] = None,
) -> Dict[str, VenueActivitySnapshot]:
    """
    One snapshot per venue with at least one check-in inside the window.

    Args:
        events: Raw check-ins, any order
        window: Rolling or explicit window
        venues: When given, check-ins for venue ids not in this list are dropped

    Returns:
        Dict of venue_id -> VenueActivitySnapshot. Venues without activity are absent.
    """
    known_ids = {v.id for v in venues} if venues is not None else None

    in_window = [
        e for e in events
        if window.contains(e.created_at)
        and (known_ids is None or e.venue_id in known_ids)
    ]

    return {
        venue_id: build_snapshot(venue_id, venue_events)
        for venue_id, venue_events in group_by_venue(in_window).items()
    }


def _period_days(days: int, today: date) -> List[date]:
    return [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def _utc_day(ts: datetime) -> date:
    return ensure_utc(ts).date()


def daily_activity_series(
    events: Iterable[CheckInEvent],
    days: int,
    today: date,
) -> List[ActivityPoint]:
    """
    Visits per UTC day for the `days` days ending today, oldest first.

    Every day is present; days without check-ins are explicit zeros.
    Events outside the period are ignored.
    """
    counts: Dict[date, int] = {day: 0 for day in _period_days(days, today)}
    for e in events:
        day = _utc_day(e.created_at)
        if day in counts:
            counts[day] += 1
    return [ActivityPoint(date=day, visits=visits) for day, visits in counts.items()]


def daily_intent_series(
    events: Iterable[CheckInEvent],
    days: int,
    today: date,
) -> List[IntentPoint]:
    """Per-day intent counts, zero-filled like daily_activity_series."""
    points: Dict[date, IntentPoint] = {day: IntentPoint(date=day) for day in _period_days(days, today)}
    for e in events:
        point = points.get(_utc_day(e.created_at))
        if point is None or e.intent not in INTENTS:
            continue
        setattr(point, e.intent, getattr(point, e.intent) + 1)
    return list(points.values())


def _distribution(counts: Dict[str, int], labels: List[tuple]) -> List[DistributionBucket]:
    total = sum(counts.values())
    return [
        DistributionBucket(
            key=key,
            label=label,
            percentage=round_pct(counts[key] / total * 100) if total else 0,
        )
        for key, label in labels
    ]


def age_distribution(events: Iterable[CheckInEvent]) -> List[DistributionBucket]:
    """Share of each age band over check-ins that answered the question."""
    counts = {band: 0 for band in AGE_BANDS}
    for e in events:
        if e.age_band in counts:
            counts[e.age_band] += 1
    return _distribution(counts, [(band, AGE_BAND_LABELS[band]) for band in AGE_BANDS])


def gender_distribution(events: Iterable[CheckInEvent]) -> List[DistributionBucket]:
    # "other" and "prefer_not_to_say" share a bucket
    counts = {key: 0 for key, _ in GENDER_BUCKETS}
    for e in events:
        if not e.gender:
            continue
        counts[e.gender if e.gender in ("male", "female") else "other"] += 1
    return _distribution(counts, GENDER_BUCKETS)


def relationship_distribution(events: Iterable[CheckInEvent]) -> List[DistributionBucket]:
    counts = {key: 0 for key, _ in RELATIONSHIP_BUCKETS}
    for e in events:
        if not e.relationship_status:
            continue
        key = e.relationship_status if e.relationship_status in ("single", "in_relationship") else "other"
        counts[key] += 1
    return _distribution(counts, RELATIONSHIP_BUCKETS)


def intent_distribution(events: Iterable[CheckInEvent]) -> IntentDistribution:
    """
    Intent percentages over check-ins with an intent, plus the dominant one.
    Ties go to the intent listed first in INTENTS.
    """
    counts = {intent: 0 for intent in INTENTS}
    for e in events:
        if e.intent in counts:
            counts[e.intent] += 1

    total = sum(counts.values())
    dominant: Optional[str] = None
    best = 0
    for intent in INTENTS:
        if counts[intent] > best:
            best = counts[intent]
            dominant = intent

    percentages = {
        intent: round_pct(counts[intent] / total * 100) if total else 0
        for intent in INTENTS
    }
    return IntentDistribution(
        percentages=percentages,
        total=total,
        dominant_intent=dominant,
        dominant_pct=percentages[dominant] if dominant else 0,
    )
