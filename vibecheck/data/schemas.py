from dataclasses import dataclass, field
from typing import List, Dict, Optional
from datetime import datetime, timezone, date

from vibecheck.config.constants import VIBE_SCORES


def ensure_utc(ts: datetime) -> datetime:
    """Treat naive timestamps as UTC; convert aware ones to UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


@dataclass(frozen=True)
class GeoPosition:
    """Latitude/longitude pair for a device sample or a venue."""
    lat: float
    lng: float
    accuracy_m: Optional[float] = None  # Reported by the device, None for venues


@dataclass(frozen=True)
class Demographics:
    """
    Optional anonymous tags attached to a check-in.
    None means the question was not answered.
    """
    relationship_status: Optional[str] = None
    ons_intent: Optional[str] = None
    gender: Optional[str] = None
    age_band: Optional[str] = None


@dataclass(frozen=True)
class CheckInEvent:
    """
    Immutable check-in fact.
    Maps 1:1 to a row of the check_ins table.
    """
    # Identity
    id: str
    venue_id: str
    user_id: str

    # When (always UTC)
    created_at: datetime

    # Mood / intent
    vibe_score: int  # 0-3 (quiet, ok, good, hot)
    intent: Optional[str]  # One of INTENTS

    # Optional demographics
    relationship_status: Optional[str] = None
    ons_intent: Optional[str] = None
    gender: Optional[str] = None
    age_band: Optional[str] = None

    @property
    def vibe_label(self) -> str:
        if 0 <= self.vibe_score < len(VIBE_SCORES):
            return VIBE_SCORES[self.vibe_score]
        return "ok"


@dataclass(frozen=True)
class CheckInDraft:
    """Payload for submitting a new check-in."""
    venue_id: str
    user_id: str
    vibe_score: int
    intent: str
    demographics: Demographics = field(default_factory=Demographics)


@dataclass
class Venue:
    """
    Venue read from the store. Static relative to the engine.
    """
    id: str
    name: str
    category: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    city: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def position(self) -> Optional[GeoPosition]:
        if not self.has_coordinates:
            return None
        return GeoPosition(lat=self.latitude, lng=self.longitude)


@dataclass
class VenueActivitySnapshot:
    """
    Per-venue reduction of the check-ins inside one window.
    Ratios are computed over answered responses only and are always in [0, 1].
    """
    venue_id: str
    total_checkins: int

    # Ratios
    single_ratio: float = 0.0
    ons_ratio: float = 0.0  # open + maybe over answered
    party_ratio: float = 0.0
    chill_ratio: float = 0.0

    # Raw counts kept for scoring and ranking
    single_count: int = 0
    single_answered: int = 0
    ons_open_count: int = 0
    ons_maybe_count: int = 0
    ons_answered: int = 0
    party_count: int = 0
    chill_count: int = 0
    intent_answered: int = 0
    youth_count: int = 0
    age_answered: int = 0

    last_checkin_at: Optional[datetime] = None

    @property
    def youth_ratio(self) -> float:
        return self.youth_count / self.age_answered if self.age_answered else 0.0


@dataclass
class HeatmapVenue:
    """
    Snapshot joined with venue metadata and scored for one display mode.
    """
    venue_id: str
    name: str
    lat: float
    lng: float
    category: Optional[str]

    total_checkins: int
    single_ratio: float
    ons_ratio: float
    party_ratio: float
    chill_ratio: float
    last_checkin_at: Optional[datetime]

    # Derived
    activity_score: float  # 0-1, linear up to saturation
    intensity: float  # 0-1
    mode: str  # One of HEATMAP_MODES
    weight: float  # 0-1, for the selected display mode
    boost_score: float = 0.0


@dataclass(frozen=True)
class HeatPoint:
    """One weighted point for the per-check-in heat layer."""
    latitude: float
    longitude: float
    weight: float


@dataclass
class ComparisonMetric:
    """Rank of a target venue for one metric across an area."""
    label: str
    rank: int  # 1-based
    total: int
    score: float  # 0-1 relative to the best venue


@dataclass
class ActivityPoint:
    date: date
    visits: int


@dataclass
class IntentPoint:
    date: date
    party: int = 0
    chill: int = 0
    date_night: int = 0
    with_friends: int = 0
    solo: int = 0


@dataclass
class DistributionBucket:
    key: str
    label: str
    percentage: int  # Rounded, over answered responses


@dataclass
class IntentDistribution:
    percentages: Dict[str, int]
    total: int
    dominant_intent: Optional[str]
    dominant_pct: int


@dataclass
class KPIValue:
    value: float
    delta_pct: float


@dataclass
class KPIData:
    total_visits: KPIValue
    party_intent_index: KPIValue
    single_rate: KPIValue
    dominant_age_band: str
    dominant_age_delta_points: int


@dataclass
class InsightsReport:
    """Everything the insights dashboard needs for one venue and period."""
    venue_id: str
    period: str
    kpi: KPIData
    activity_series: List[ActivityPoint]
    intent_series: List[IntentPoint]
    age_distribution: List[DistributionBucket]
    gender_distribution: List[DistributionBucket]
    relationship_distribution: List[DistributionBucket]
    comparison: List[ComparisonMetric]


@dataclass
class UserProfile:
    """
    Stored profile defaults used to fill autonomous check-ins.
    """
    user_id: str
    birth_year: Optional[int] = None
    gender: Optional[str] = None
    relationship_status: Optional[str] = None  # Profile vocabulary (may include open_relationship)
    default_intent: Optional[str] = None
    default_ons_intent: Optional[str] = None
    smart_checkin_enabled: bool = False
    favorite_city: Optional[str] = None  # None means "auto" (GPS based)
