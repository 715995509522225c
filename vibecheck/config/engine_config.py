from dataclasses import dataclass
from datetime import timedelta


@dataclass
class EngineConfig:
    """
    Tunables for scoring, geofencing and refresh scheduling.
    Every component receives one of these instead of reading module globals.
    """
    # Live heatmap window
    LIVE_WINDOW_MINUTES: int = 90  # Rolling window for VenueActivitySnapshot
    ACTIVITY_SATURATION: int = 20  # Check-ins in window that map to intensity 1.0

    # Derived mode thresholds (first match wins: ons, singles, party, chill)
    ONS_MODE_THRESHOLD: float = 0.4
    SINGLES_MODE_THRESHOLD: float = 0.5
    PARTY_MODE_THRESHOLD: float = 0.3
    CHILL_MODE_THRESHOLD: float = 0.3

    # Display weights
    RATIO_WEIGHT_THRESHOLD: float = 0.2  # party/chill ratio above this gets boosted
    RATIO_WEIGHT_MULTIPLIER: float = 2.0
    ACTIVITY_SQRT_DIVISOR: float = 10.0  # single/ons: sqrt(count / divisor) * ratio
    BOOST_EXPONENT: float = 0.7
    BOOST_MIN_WEIGHT: float = 0.05
    DEFAULT_MIN_WEIGHT: float = 0.0

    # Boost score
    BOOST_ONS_SCALE: float = 10.0
    BOOST_SINGLE_BONUS: float = 0.5  # single_factor = 1 + bonus * single_ratio
    BOOST_ACTIVITY_SCALE: float = 0.5  # log2(count + 1) * scale

    # Per-check-in point layer
    RECENCY_MAX_AGE_MINUTES: int = 60

    # Geofencing
    GEOFENCE_RADIUS_M: float = 70.0
    SMART_CHECKIN_COOLDOWN_MINUTES: int = 45
    MANUAL_CHECKIN_COOLDOWN_HOURS: int = 3
    ARRIVAL_THRESHOLD_M: float = 35.0
    SMART_CHECKIN_VIBE: str = "good"  # Fixed mood for autonomous check-ins
    SMART_CHECKIN_INTENT: str = "chill"  # Used when the profile has no default

    # Scheduling (seconds)
    DATA_REFRESH_INTERVAL_S: float = 30.0
    HEATMAP_REFRESH_INTERVAL_S: float = 60.0
    GEO_POLL_INTERVAL_S: float = 30.0
    GEO_REQUEST_TIMEOUT_S: float = 10.0

    # Area filtering
    DEFAULT_CITY_RADIUS_KM: float = 10.0

    def __post_init__(self):
        if self.ACTIVITY_SATURATION <= 0:
            raise ValueError("ACTIVITY_SATURATION must be positive")
        if self.GEOFENCE_RADIUS_M <= 0:
            raise ValueError("GEOFENCE_RADIUS_M must be positive")

    @property
    def smart_cooldown(self) -> timedelta:
        return timedelta(minutes=self.SMART_CHECKIN_COOLDOWN_MINUTES)

    @property
    def manual_cooldown(self) -> timedelta:
        return timedelta(hours=self.MANUAL_CHECKIN_COOLDOWN_HOURS)


def get_default_config() -> EngineConfig:
    """Get default configuration."""
    return EngineConfig()
