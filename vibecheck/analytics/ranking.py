"""
Area-wide venue ranking, period-over-period KPIs and the insights report.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from vibecheck.analytics.aggregator import (
    TimeWindow,
    age_distribution,
    build_snapshot,
    daily_activity_series,
    daily_intent_series,
    gender_distribution,
    group_by_venue,
    relationship_distribution,
    round_pct,
    safe_ratio,
)
from vibecheck.config.constants import AGE_BAND_LABELS, COMPARISON_METRICS, INSIGHTS_PERIODS
from vibecheck.data.repositories import CheckInStore, StoreResult
from vibecheck.data.schemas import (
    CheckInEvent,
    ComparisonMetric,
    InsightsReport,
    KPIData,
    KPIValue,
)
from vibecheck.errors import StoreError

logger = logging.getLogger(__name__)

# Reported when the current period has no age answers
FALLBACK_AGE_BAND = "25_30"


def compute_metric_values(events_by_venue: Dict[str, List[CheckInEvent]]) -> Dict[str, Dict[str, float]]:
    """
    Raw metric value per venue.

    Returns:
        Dict of metric key -> {venue_id: value}, venues in input order.
        activity is a count, the others are answered-only shares.
    """
    values: Dict[str, Dict[str, float]] = {key: {} for key, _ in COMPARISON_METRICS}

    for venue_id, events in events_by_venue.items():
        snapshot = build_snapshot(venue_id, events)
        values["activity"][venue_id] = float(snapshot.total_checkins)
        values["party"][venue_id] = snapshot.party_ratio
        values["singles"][venue_id] = snapshot.single_ratio
        values["youth"][venue_id] = snapshot.youth_ratio

    return values


def rank_metric(values: Dict[str, float], target_venue_id: str, label: str) -> ComparisonMetric:
    """
    Rank the target venue for one metric.

    Sorted descending; equal values keep input order. A target with no
    value is ranked last (rank == total). score is the target's value
    relative to the best venue, 0 when the best value is 0.
    """
    ranked = sorted(values.items(), key=lambda item: item[1], reverse=True)
    total = len(ranked)

    rank = total
    for idx, (venue_id, _) in enumerate(ranked):
        if venue_id == target_venue_id:
            rank = idx + 1
            break

    max_value = ranked[0][1] if ranked else 0.0
    target_value = values.get(target_venue_id, 0.0)
    score = target_value / max_value if max_value > 0 else 0.0

    return ComparisonMetric(
        label=label,
        rank=rank,
        total=total,
        score=min(1.0, max(0.0, score)),
    )


def compare(events: Iterable[CheckInEvent], target_venue_id: str) -> List[ComparisonMetric]:
    """Rank target_venue_id against every venue with check-ins in `events`."""
    values = compute_metric_values(group_by_venue(events))
    return [
        rank_metric(values[key], target_venue_id, label)
        for key, label in COMPARISON_METRICS
    ]


def percentage_change(current: float, previous: float) -> float:
    """
    (current - previous) / previous * 100.
    A zero previous value gives 100 for any nonzero current and 0 otherwise.
    """
    if previous == 0:
        return 100.0 if current != 0 else 0.0
    return (current - previous) / previous * 100.0


def previous_period(window: TimeWindow) -> TimeWindow:
    """The window of equal length that ends where `window` starts."""
    return TimeWindow(start=window.start - window.duration, end=window.start)


def _intent_share(events: List[CheckInEvent], intent: str) -> float:
    answered = [e for e in events if e.intent is not None]
    return safe_ratio(sum(1 for e in answered if e.intent == intent), len(answered))


def _single_share(events: List[CheckInEvent]) -> float:
    answered = [e for e in events if e.relationship_status is not None]
    return safe_ratio(sum(1 for e in answered if e.relationship_status == "single"), len(answered))


def build_kpis(current_events: List[CheckInEvent], previous_events: List[CheckInEvent]) -> KPIData:
    """
    KPI row for the insights dashboard.

    Values are percentages (visits are a count); deltas are rounded
    percentage changes against the previous period.
    """
    total_current = len(current_events)
    total_previous = len(previous_events)

    party_current = _intent_share(current_events, "party")
    party_previous = _intent_share(previous_events, "party")

    single_current = _single_share(current_events)
    single_previous = _single_share(previous_events)

    # Dominant age band (first band wins ties)
    current_age = age_distribution(current_events)
    previous_age = {b.key: b.percentage for b in age_distribution(previous_events)}
    if any(e.age_band is not None for e in current_events):
        top = max(current_age, key=lambda b: b.percentage)
        dominant_label = top.label
        delta_points = top.percentage - previous_age.get(top.key, 0)
    else:
        dominant_label = AGE_BAND_LABELS[FALLBACK_AGE_BAND]
        delta_points = 0

    return KPIData(
        total_visits=KPIValue(
            value=total_current,
            delta_pct=round_pct(percentage_change(total_current, total_previous)),
        ),
        party_intent_index=KPIValue(
            value=round_pct(party_current * 100),
            delta_pct=round_pct(percentage_change(party_current, party_previous)),
        ),
        single_rate=KPIValue(
            value=round_pct(single_current * 100),
            delta_pct=round_pct(percentage_change(single_current, single_previous)),
        ),
        dominant_age_band=dominant_label,
        dominant_age_delta_points=delta_points,
    )


class InsightsService:
    """
    Loads the insights report for one venue and period.
    """

    def __init__(self, store: CheckInStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def load(self, venue_id: str, period: str) -> StoreResult[InsightsReport]:
        """
        Fetch current, previous and area-wide check-ins and build the report.

        Returns:
            StoreResult with the report, or a failure if any store read failed
        """
        if period not in INSIGHTS_PERIODS:
            raise ValueError(f"Unknown period {period!r}, expected one of {list(INSIGHTS_PERIODS)}")

        days = INSIGHTS_PERIODS[period]
        now = self.clock()
        current_window = TimeWindow.rolling(days * 24 * 60, now)
        previous_window = previous_period(current_window)

        try:
            current, previous, area = await asyncio.gather(
                self.store.fetch_check_ins(venue_id, current_window.start, current_window.end),
                self.store.fetch_check_ins(venue_id, previous_window.start, previous_window.end),
                self.store.fetch_check_ins(None, current_window.start, current_window.end),
            )
        except StoreError as exc:
            logger.error("Insights load failed for venue %s (%s): %s", venue_id, period, exc)
            return StoreResult.failure(str(exc))

        today = current_window.end.date()
        report = InsightsReport(
            venue_id=venue_id,
            period=period,
            kpi=build_kpis(current, previous),
            activity_series=daily_activity_series(current, days, today),
            intent_series=daily_intent_series(current, days, today),
            age_distribution=age_distribution(current),
            gender_distribution=gender_distribution(current),
            relationship_distribution=relationship_distribution(current),
            comparison=compare(area, venue_id),
        )
        logger.info(
            "Insights for venue %s (%s): %d check-ins, %d area check-ins",
            venue_id, period, len(current), len(area),
        )
        return StoreResult.success(report)
