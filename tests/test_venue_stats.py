import math

import pytest

from vibecheck.analytics.venue_stats import (
    calculate_all_venue_stats,
    dominant_vibe,
    sort_venues_by_mode,
)


@pytest.fixture()
def venues(make_venue):
    return [make_venue("quiet"), make_venue("singles"), make_venue("open"), make_venue("young")]


@pytest.fixture()
def events(make_event):
    return [
        make_event(venue_id="singles", relationship_status="single", intent="chill"),
        make_event(venue_id="singles", relationship_status="single", intent="chill"),
        make_event(venue_id="singles", relationship_status="in_relationship", intent="party"),
        make_event(venue_id="open", ons_intent="open", relationship_status="single"),
        make_event(venue_id="young", age_band="18_25", intent=None),
        make_event(venue_id="young", age_band="25_30", intent=None),
        make_event(venue_id="ghost"),
    ]


def _ids(stats):
    return [s.venue.id for s in stats]


def test_every_venue_gets_a_row(venues, events):
    stats = calculate_all_venue_stats(venues, events)
    assert _ids(stats) == ["quiet", "singles", "open", "young"]

    quiet = stats[0]
    assert quiet.check_in_count == 0
    assert quiet.dominant_vibe is None
    assert quiet.single_ratio is None
    assert quiet.ons_ratio is None
    assert quiet.boost_score == 0.0
    assert quiet.intents.dominant_intent is None

    singles = stats[1]
    assert singles.single_ratio == pytest.approx(2 / 3)
    assert singles.heat_score == 30
    assert singles.intents.dominant_intent == "chill"
    assert singles.intents.dominant_pct == 67
    assert singles.dominant_intent_label == "Chill"

    opened = stats[2]
    assert opened.ons_ratio == 1.0
    assert opened.boost_score == pytest.approx(1.0 * 1.5 * 10 + math.log2(2) * 0.5)


def test_dominant_vibe_prefers_hotter_on_tie(make_event):
    events = [make_event(vibe_score=1), make_event(vibe_score=3), make_event(vibe_score=1), make_event(vibe_score=3)]
    assert dominant_vibe(events) == "hot"
    assert dominant_vibe([]) is None


def test_ratio_sorts_put_unanswered_last(venues, events):
    stats = calculate_all_venue_stats(venues, events)

    # Unanswered venues follow, busiest first
    assert _ids(sort_venues_by_mode(stats, "single")) == ["open", "singles", "young", "quiet"]
    assert _ids(sort_venues_by_mode(stats, "ons")) == ["open", "singles", "young", "quiet"]


def test_boost_and_activity_sorts(venues, events):
    stats = calculate_all_venue_stats(venues, events)

    assert _ids(sort_venues_by_mode(stats, "ons_boost"))[0] == "open"
    assert _ids(sort_venues_by_mode(stats, "activity")) == ["singles", "young", "open", "quiet"]


def test_age_sort(venues, events):
    stats = calculate_all_venue_stats(venues, events)

    assert _ids(sort_venues_by_mode(stats, "age", age_bands=["18_25"]))[0] == "young"
    # Default band is 25-30
    assert _ids(sort_venues_by_mode(stats, "age"))[0] == "young"
    # Nobody in the band: falls back to activity
    assert _ids(sort_venues_by_mode(stats, "age", age_bands=["40_plus"])) == ["singles", "young", "open", "quiet"]


def test_intent_sort(venues, events):
    stats = calculate_all_venue_stats(venues, events)

    by_party = sort_venues_by_mode(stats, "intent", intents=["party"])
    # open's single check-in is a party intent (the default)
    assert _ids(by_party)[:2] == ["open", "singles"]

    by_dominant = sort_venues_by_mode(stats, "intent")
    assert _ids(by_dominant)[0] == "open"


def test_unknown_sort_mode():
    with pytest.raises(ValueError):
        sort_venues_by_mode([], "rainbow")
