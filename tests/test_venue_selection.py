import pytest

from vibecheck.checkin.profile import age_band_from_birth_year, map_profile_relationship
from vibecheck.checkin.venue_resolution import city_radius_km, resolve_checkin_venues
from vibecheck.data.schemas import GeoPosition


@pytest.mark.parametrize(
    "birth_year, expected",
    [
        (2010, None),
        (2007, "18_25"),
        (2001, "18_25"),
        (2000, "25_30"),
        (1991, "30_35"),
        (1986, "35_40"),
        (1985, "40_plus"),
        (None, None),
    ],
)
def test_age_band_from_birth_year(birth_year, expected):
    assert age_band_from_birth_year(birth_year, 2025) == expected


def test_profile_relationship_mapping():
    assert map_profile_relationship("open_relationship") == "complicated"
    assert map_profile_relationship("single") == "single"
    assert map_profile_relationship("married") is None
    assert map_profile_relationship(None) is None


def test_city_radius_lookup():
    assert city_radius_km("Bergen") == 25.0
    assert city_radius_km("Atlantis") == 10.0
    assert city_radius_km(None) == 10.0


def test_geo_filtered_venues_win(make_venue):
    oslo = make_venue("oslo")
    bergen = make_venue("bergen", lat=60.3913, lng=5.3221)
    chosen = resolve_checkin_venues([oslo, bergen], GeoPosition(59.91, 10.75), 45.0,
                                    city_api_venues=[bergen], city_api_loading=True)
    assert [v.id for v in chosen] == ["oslo"]


def test_unknown_center_uses_all_venues(make_venue):
    venues = [make_venue("a"), make_venue("b")]
    assert resolve_checkin_venues(venues, None, 10.0) == venues


def test_city_api_used_only_while_loading(make_venue):
    bergen = make_venue("bergen", lat=60.3913, lng=5.3221)
    from_api = make_venue("api")
    center = GeoPosition(69.65, 18.96)

    loading = resolve_checkin_venues([bergen], center, 15.0, city_api_venues=[from_api], city_api_loading=True)
    assert [v.id for v in loading] == ["api"]

    settled = resolve_checkin_venues([bergen], center, 15.0, city_api_venues=[from_api], city_api_loading=False)
    assert [v.id for v in settled] == ["bergen"]
