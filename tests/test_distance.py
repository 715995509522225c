import pytest

from vibecheck.data.schemas import GeoPosition, Venue
from vibecheck.geo.distance import (
    distance_meters,
    find_nearest_venue_within_radius,
    is_within_radius,
    venues_within_radius,
)


def test_distance_zero_for_same_point():
    p = GeoPosition(59.9139, 10.7522)
    assert distance_meters(p, p) == 0.0


def test_distance_oslo_bergen_city_scale():
    oslo = GeoPosition(59.9139, 10.7522)
    bergen = GeoPosition(60.3913, 5.3221)
    # ~305 km great-circle
    assert distance_meters(oslo, bergen) == pytest.approx(305_000, rel=0.01)


def test_distance_is_symmetric():
    a = GeoPosition(59.91, 10.75)
    b = GeoPosition(59.92, 10.76)
    assert distance_meters(a, b) == pytest.approx(distance_meters(b, a))


def test_short_distance_matches_offset(make_venue, north_of):
    venue = make_venue()
    assert distance_meters(north_of(venue, 35.0), venue.position) == pytest.approx(35.0, abs=1e-6)


def test_geofence_radius_is_exclusive(make_venue, north_of):
    venue = make_venue()
    at_edge = north_of(venue, 70.0)
    d = distance_meters(at_edge, venue.position)
    assert d == pytest.approx(70.0, abs=1e-6)

    assert find_nearest_venue_within_radius(at_edge, [venue], radius_m=d) is None
    assert find_nearest_venue_within_radius(north_of(venue, 70.01), [venue], radius_m=70.0) is None


def test_venue_just_inside_radius_is_found(make_venue, north_of):
    venue = make_venue()
    found = find_nearest_venue_within_radius(north_of(venue, 69.9), [venue], radius_m=70.0)
    assert found is not None
    assert found.venue.id == venue.id
    assert found.distance_m == pytest.approx(69.9, abs=1e-6)


def test_nearest_venue_wins(make_venue, north_of):
    a = make_venue("a")
    b = make_venue("b", lat=a.latitude + 0.0003)  # ~33 m north of a
    position = north_of(a, 30.0)
    found = find_nearest_venue_within_radius(position, [a, b], radius_m=70.0)
    assert found.venue.id == "b"


def test_tie_keeps_first_venue(make_venue, north_of):
    a = make_venue("a")
    twin = make_venue("twin")
    found = find_nearest_venue_within_radius(north_of(a, 10.0), [a, twin], radius_m=70.0)
    assert found.venue.id == "a"


def test_venues_without_coordinates_are_skipped(make_venue):
    nowhere = Venue(id="x", name="No location")
    venue = make_venue()
    found = find_nearest_venue_within_radius(venue.position, [nowhere, venue], radius_m=70.0)
    assert found.venue.id == venue.id
    assert venues_within_radius(venue.position, [nowhere], radius_m=10_000) == []


def test_area_filter_is_inclusive_and_keeps_order(make_venue, north_of):
    center = make_venue("center")
    near = make_venue("near", lat=north_of(center, 5_000).lat)
    far = make_venue("far", lat=north_of(center, 20_000).lat)
    result = venues_within_radius(center.position, [far, near, center], radius_m=10_000)
    assert [v.id for v in result] == ["near", "center"]
    assert is_within_radius(center.position, north_of(center, 100.0), 100.0 + 1e-6)
