import itertools
import math
from datetime import datetime, timedelta, timezone

import pytest

from vibecheck.config.constants import EARTH_RADIUS_METERS
from vibecheck.data.schemas import CheckInEvent, GeoPosition, Venue

NOW = datetime(2025, 6, 14, 23, 0, tzinfo=timezone.utc)

_ids = itertools.count(1)


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def make_event():
    """Factory for check-ins; minutes_ago is relative to NOW."""
    def _make(
        venue_id: str = "v1",
        minutes_ago: float = 5,
        intent="party",
        relationship_status=None,
        ons_intent=None,
        gender=None,
        age_band=None,
        vibe_score: int = 2,
        user_id: str = "u1",
        created_at: datetime = None,
    ) -> CheckInEvent:
        return CheckInEvent(
            id=f"c{next(_ids)}",
            venue_id=venue_id,
            user_id=user_id,
            created_at=created_at or NOW - timedelta(minutes=minutes_ago),
            vibe_score=vibe_score,
            intent=intent,
            relationship_status=relationship_status,
            ons_intent=ons_intent,
            gender=gender,
            age_band=age_band,
        )
    return _make


@pytest.fixture()
def make_venue():
    def _make(venue_id: str = "v1", lat=59.9139, lng=10.7522, name=None, category="bar") -> Venue:
        return Venue(id=venue_id, name=name or venue_id.upper(), category=category,
                     latitude=lat, longitude=lng, city="Oslo")
    return _make


@pytest.fixture()
def north_of():
    """Position `meters` due north of a venue."""
    def _north(venue: Venue, meters: float) -> GeoPosition:
        d_lat = math.degrees(meters / EARTH_RADIUS_METERS)
        return GeoPosition(lat=venue.latitude + d_lat, lng=venue.longitude)
    return _north
