"""
Configuration for synthetic data generation.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple


@dataclass
class SyntheticConfig:
    """Configuration for synthetic data generation."""

    # Scale
    N_USERS: int = 2_000
    N_VENUES: int = 300
    HISTORY_DAYS: int = 90

    # City centers (lat, lng) and share of venues per city
    CITY_CENTERS: Dict[str, Tuple[float, float]] = None
    CITY_WEIGHTS: List[float] = None
    VENUE_SPREAD_KM: float = 3.0  # Std dev of venue offsets from the center
    MISSING_COORDINATES_PROB: float = 0.02  # Venues imported without a location

    # Check-in volume
    CHECKINS_PER_DAY_RANGE: Tuple[int, int] = (80, 400)
    POPULARITY_SIGMA: float = 1.0  # Log-normal venue popularity
    NIGHT_HOURS: Tuple[int, ...] = (20, 21, 22, 23, 0, 1, 2)

    # Probability that an optional question is left unanswered
    SKIP_RELATIONSHIP_PROB: float = 0.3
    SKIP_ONS_PROB: float = 0.4
    SKIP_GENDER_PROB: float = 0.2
    SKIP_AGE_PROB: float = 0.2

    # Random seed for reproducibility
    RANDOM_SEED: int = 42

    def __post_init__(self):
        """Initialize derived parameters."""
        if self.CITY_CENTERS is None:
            self.CITY_CENTERS = {
                "Oslo": (59.9139, 10.7522),
                "Bergen": (60.3913, 5.3221),
                "Trondheim": (63.4305, 10.3951),
                "Stavanger": (58.9700, 5.7331),
            }
        if self.CITY_WEIGHTS is None:
            self.CITY_WEIGHTS = [0.5, 0.2, 0.18, 0.12]
        if len(self.CITY_WEIGHTS) != len(self.CITY_CENTERS):
            raise ValueError("CITY_WEIGHTS must have one weight per city")


def get_default_config() -> SyntheticConfig:
    """Get default configuration."""
    return SyntheticConfig()
