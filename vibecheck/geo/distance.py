"""
Great-circle distance and radius lookups.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional

from vibecheck.config.constants import EARTH_RADIUS_METERS
from vibecheck.data.schemas import GeoPosition, Venue


@dataclass(frozen=True)
class NearestVenue:
    venue: Venue
    distance_m: float


def distance_meters(a: GeoPosition, b: GeoPosition) -> float:
    """
    Haversine distance between two coordinates.

    Args:
        a: First position
        b: Second position

    Returns:
        Distance in meters
    """
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lambda = math.radians(b.lng - a.lng)

    h = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_METERS * c


def is_within_radius(a: GeoPosition, b: GeoPosition, radius_m: float) -> bool:
    """True when b lies within radius_m of a (inclusive)."""
    return distance_meters(a, b) <= radius_m


def find_nearest_venue_within_radius(
    position: GeoPosition,
    venues: Iterable[Venue],
    radius_m: float,
) -> Optional[NearestVenue]:
    """
    Nearest venue strictly inside the radius.

    Venues without coordinates are skipped. On equal distance the venue
    seen first wins.
    """
    nearest: Optional[NearestVenue] = None
    for venue in venues:
        if not venue.has_coordinates:
            continue
        d = distance_meters(position, venue.position)
        if d >= radius_m:
            continue
        if nearest is None or d < nearest.distance_m:
            nearest = NearestVenue(venue=venue, distance_m=d)
    return nearest


def venues_within_radius(
    center: GeoPosition,
    venues: Iterable[Venue],
    radius_m: float,
) -> List[Venue]:
    """Venues with coordinates inside radius_m of center, input order kept."""
    return [
        v for v in venues
        if v.has_coordinates and distance_meters(center, v.position) <= radius_m
    ]
