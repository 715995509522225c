"""
Generate synthetic venues.
"""

import math
from typing import List

import numpy as np

from vibecheck.config.constants import VENUE_CATEGORIES
from vibecheck.data.schemas import Venue
from vibecheck.synthetic.generator_config import SyntheticConfig

_KM_PER_DEG_LAT = 111.32


def generate_venue(venue_idx: int, config: SyntheticConfig, rng: np.random.Generator) -> Venue:
    """
    Generate a single synthetic venue.

    Args:
        venue_idx: Venue index (0 to N_VENUES-1)
        config: Generator configuration
        rng: Random number generator

    Returns:
        Venue
    """
    # 1. City and position (gaussian scatter around the center)
    cities = list(config.CITY_CENTERS)
    city = cities[rng.choice(len(cities), p=config.CITY_WEIGHTS)]
    center_lat, center_lng = config.CITY_CENTERS[city]

    d_north_km, d_east_km = rng.normal(0.0, config.VENUE_SPREAD_KM, size=2)
    lat = center_lat + d_north_km / _KM_PER_DEG_LAT
    lng = center_lng + d_east_km / (_KM_PER_DEG_LAT * math.cos(math.radians(center_lat)))

    # 2. Some imported venues have no location
    if rng.random() < config.MISSING_COORDINATES_PROB:
        lat = lng = None

    # 3. Category
    category = VENUE_CATEGORIES[rng.integers(0, len(VENUE_CATEGORIES))]

    return Venue(
        id=f"v-{venue_idx:04d}",
        name=f"{city} {category.title()} {venue_idx}",
        category=category,
        latitude=float(lat) if lat is not None else None,
        longitude=float(lng) if lng is not None else None,
        city=city,
    )


def generate_all_venues(config: SyntheticConfig) -> List[Venue]:
    """
    Generate all synthetic venues.

    Args:
        config: Generator configuration

    Returns:
        List of Venue
    """
    rng = np.random.default_rng(config.RANDOM_SEED)

    print(f"Generating {config.N_VENUES} venues...")
    venues = [generate_venue(idx, config, rng) for idx in range(config.N_VENUES)]

    missing = sum(1 for v in venues if not v.has_coordinates)
    print(f"Generated {len(venues)} venues ({missing} without coordinates)")
    return venues
