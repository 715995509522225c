"""
Venue list for the check-in form.
"""

import logging
from typing import List, Optional, Sequence

from vibecheck.config.constants import CITY_RADIUS_KM
from vibecheck.config.engine_config import EngineConfig, get_default_config
from vibecheck.data.schemas import GeoPosition, Venue
from vibecheck.geo.distance import venues_within_radius

logger = logging.getLogger(__name__)


def city_radius_km(city_name: Optional[str], config: Optional[EngineConfig] = None) -> float:
    """Area radius for a city, falling back to the configured default."""
    config = config or get_default_config()
    if not city_name:
        return config.DEFAULT_CITY_RADIUS_KM
    return float(CITY_RADIUS_KM.get(city_name, config.DEFAULT_CITY_RADIUS_KM))


def resolve_checkin_venues(
    all_venues: Sequence[Venue],
    city_center: Optional[GeoPosition],
    radius_km: float,
    city_api_venues: Sequence[Venue] = (),
    city_api_loading: bool = False,
) -> List[Venue]:
    """
    Pick the venues offered in the check-in form. First non-empty wins:

    1. all_venues within radius_km of the city center
       (all_venues unfiltered when the center is unknown)
    2. city_api_venues, only while that request is still loading
    3. all_venues

    Args:
        all_venues: Every venue known to the client
        city_center: Center of the active city, if resolved
        radius_km: Area radius around the center
        city_api_venues: Venues returned by the per-city lookup
        city_api_loading: Whether the per-city lookup is still in progress
    """
    if city_center is None:
        geo_filtered = list(all_venues)
    else:
        geo_filtered = venues_within_radius(city_center, all_venues, radius_km * 1000.0)

    if geo_filtered:
        chosen, source = geo_filtered, "geo"
    elif city_api_loading and city_api_venues:
        chosen, source = list(city_api_venues), "city_api"
    else:
        chosen, source = list(all_venues), "all"

    logger.debug("Check-in venues: %d from %s", len(chosen), source)
    return chosen
