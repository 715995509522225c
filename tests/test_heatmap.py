import math
from datetime import timedelta

import pytest

from vibecheck.analytics.aggregator import TimeWindow, aggregate
from vibecheck.analytics.heatmap import (
    activity_score,
    boost_score,
    determine_mode,
    display_weight,
    event_heat_weight,
    heat_points,
    recency_weight,
    score_venues,
)
from vibecheck.data.schemas import Venue, VenueActivitySnapshot


def snapshot(count=10, single=0.0, ons=0.0, party=0.0, chill=0.0, **counts) -> VenueActivitySnapshot:
    return VenueActivitySnapshot(
        venue_id=counts.pop("venue_id", "v1"),
        total_checkins=count,
        single_ratio=single,
        ons_ratio=ons,
        party_ratio=party,
        chill_ratio=chill,
        **counts,
    )


def test_ons_beats_singles_when_both_qualify():
    assert determine_mode(snapshot(ons=0.5, single=0.6)) == "ons"


@pytest.mark.parametrize(
    "ratios, expected",
    [
        (dict(single=0.5), "singles"),
        (dict(party=0.3, chill=0.3), "party"),
        (dict(party=0.29, chill=0.3), "chill"),
        (dict(party=0.4, chill=0.5), "chill"),
        (dict(party=0.2, chill=0.2), "neutral"),
        (dict(), "neutral"),
    ],
)
def test_mode_priority(ratios, expected):
    assert determine_mode(snapshot(**ratios)) == expected


def test_activity_score_linear_and_saturates():
    assert activity_score(0) == 0.0
    assert activity_score(10) == pytest.approx(0.5)
    assert activity_score(20) == 1.0
    assert activity_score(55) == 1.0


def test_boost_increases_with_ons_intensity():
    low = snapshot(count=8, single=0.5, ons_open_count=1, ons_answered=4)
    high = snapshot(count=8, single=0.5, ons_open_count=3, ons_answered=4)
    assert boost_score(high) > boost_score(low)


def test_boost_increases_with_activity_log_damped():
    base = dict(single=0.5, ons_open_count=2, ons_answered=4)
    b1, b2, b3 = (boost_score(snapshot(count=n, **base)) for n in (3, 7, 15))
    assert b1 < b2 < b3
    # Doubling volume adds a constant, not a multiple
    assert b2 - b1 == pytest.approx(b3 - b2)


def test_boost_formula():
    snap = snapshot(count=10, single=4 / 6, ons_open_count=3, ons_maybe_count=1, ons_answered=5)
    expected = 0.72 * (1 + 0.5 * 4 / 6) * 10 + math.log2(11) * 0.5
    assert boost_score(snap) == pytest.approx(expected)


def test_single_and_ons_weights_scale_with_sqrt_volume():
    snap = snapshot(count=10, single=0.5, ons=0.8)
    assert display_weight(snap, "single", 0.5, 0.0) == pytest.approx(0.5)
    assert display_weight(snap, "ons", 0.5, 0.0) == pytest.approx(0.8)
    busy = snapshot(count=40, single=0.8)
    assert display_weight(busy, "single", 1.0, 0.0) == 1.0


def test_party_weight_boosted_above_threshold_else_intensity():
    assert display_weight(snapshot(party=0.35), "party", 0.5, 0.0) == pytest.approx(0.7)
    assert display_weight(snapshot(party=0.2), "party", 0.5, 0.0) == pytest.approx(0.5)
    assert display_weight(snapshot(chill=0.9), "chill", 0.1, 0.0) == 1.0


def test_ons_boost_weight_zero_when_max_is_zero():
    assert display_weight(snapshot(), "ons_boost", 0.5, 0.0) == 0.0


def test_unknown_display_mode_rejected():
    with pytest.raises(ValueError):
        display_weight(snapshot(), "rainbow", 0.5, 0.0)


def _venue(venue_id, lat=59.91, lng=10.75):
    return Venue(id=venue_id, name=venue_id, category="bar", latitude=lat, longitude=lng)


def test_score_venues_sorted_by_weight_then_activity():
    snapshots = {
        "a": snapshot(venue_id="a", count=4),
        "b": snapshot(venue_id="b", count=12),
        "c": snapshot(venue_id="c", count=4),
    }
    scored = score_venues(snapshots, [_venue("a"), _venue("b"), _venue("c")], "activity")
    assert [v.venue_id for v in scored] == ["b", "a", "c"]
    assert scored[0].intensity == pytest.approx(0.6)
    assert all(0.0 <= v.weight <= 1.0 for v in scored)


def test_score_venues_skips_missing_coordinates_and_no_activity():
    snapshots = {"a": snapshot(venue_id="a"), "b": snapshot(venue_id="b")}
    venues = [Venue(id="a", name="A"), _venue("b"), _venue("quiet")]
    scored = score_venues(snapshots, venues, "activity")
    assert [v.venue_id for v in scored] == ["b"]


def test_zero_weight_venues_excluded_for_ratio_modes():
    snapshots = {
        "singles": snapshot(venue_id="singles", single=0.6),
        "couples": snapshot(venue_id="couples", single=0.0),
    }
    scored = score_venues(snapshots, [_venue("singles"), _venue("couples")], "single")
    assert [v.venue_id for v in scored] == ["singles"]


def test_ons_boost_normalised_and_low_weights_dropped():
    snapshots = {
        "hot": snapshot(venue_id="hot", count=15, single=0.8, ons_open_count=8, ons_answered=10),
        "warm": snapshot(venue_id="warm", count=5, single=0.2, ons_open_count=1, ons_answered=5),
    }
    scored = score_venues(snapshots, [_venue("warm"), _venue("hot")], "ons_boost")
    assert scored[0].venue_id == "hot"
    assert scored[0].weight == pytest.approx(1.0)
    assert all(v.weight > 0.05 for v in scored)
    assert 0.0 < scored[1].weight < 1.0


def test_end_to_end_mode_is_ons(make_event, make_venue, now):
    relationship = ["single"] * 4 + ["in_relationship"] * 2 + [None] * 4
    ons = ["open"] * 3 + ["maybe"] + ["not_interested"] + [None] * 5
    events = [
        make_event(relationship_status=r, ons_intent=o, intent="with_friends")
        for r, o in zip(relationship, ons)
    ]
    venue = make_venue("v1")
    snapshots = aggregate(events, TimeWindow.rolling(90, now), [venue])
    snap = snapshots["v1"]

    assert snap.total_checkins == 10
    assert snap.single_ratio == pytest.approx(4 / 6)
    assert snap.ons_ratio == pytest.approx(0.8)

    [hv] = score_venues(snapshots, [venue], "ons_boost")
    assert hv.mode == "ons"
    assert hv.weight == pytest.approx(1.0)
    assert hv.intensity == pytest.approx(0.5)


def test_recency_weight_decays_linearly(now):
    assert recency_weight(now, now, 60) == 1.0
    assert recency_weight(now - timedelta(minutes=30), now, 60) == pytest.approx(0.5)
    assert recency_weight(now - timedelta(minutes=90), now, 60) == 0.0


def test_event_heat_weight_keeps_half_of_vibe_when_old(make_event, now):
    hot_fresh = make_event(vibe_score=3, minutes_ago=0)
    hot_old = make_event(vibe_score=3, minutes_ago=120)
    quiet_fresh = make_event(vibe_score=0, minutes_ago=0)
    assert event_heat_weight(hot_fresh, now, 60) == pytest.approx(1.0)
    assert event_heat_weight(hot_old, now, 60) == pytest.approx(0.5)
    assert event_heat_weight(quiet_fresh, now, 60) == pytest.approx(0.25)


def test_heat_points_only_for_located_venues(make_event, make_venue, now):
    events = [make_event(venue_id="v1"), make_event(venue_id="nowhere")]
    points = heat_points(events, [make_venue("v1"), Venue(id="nowhere", name="?")], now)
    assert len(points) == 1
    assert points[0].latitude == pytest.approx(59.9139)
