from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel

DisplayMode = Literal["activity", "single", "ons", "ons_boost", "party", "chill"]
Period = Literal["7d", "30d", "90d"]
Intent = Literal["party", "chill", "date_night", "with_friends", "solo"]
VibeScore = Literal["quiet", "ok", "good", "hot"]
AgeBand = Literal["18_25", "25_30", "30_35", "35_40", "40_plus"]
SortMode = Literal["activity", "single", "ons", "ons_boost", "age", "intent"]


class HeatmapVenueOut(BaseModel):
    """Single scored venue."""
    venue_id: str
    name: str
    lat: float
    lng: float
    category: Optional[str] = None
    total_checkins: int
    single_ratio: float
    ons_ratio: float
    party_ratio: float
    chill_ratio: float
    last_checkin_at: Optional[datetime] = None
    activity_score: float
    intensity: float
    mode: str  # neutral / singles / ons / party / chill
    weight: float
    boost_score: float


class HeatmapResponse(BaseModel):
    """Response with the live heatmap for one display mode."""
    display_mode: DisplayMode
    venues: List[HeatmapVenueOut]
    refreshed_at: Optional[datetime] = None
    error: Optional[str] = None  # Set when the last refresh failed; venues are the last good view


class HeatPointOut(BaseModel):
    latitude: float
    longitude: float
    weight: float


class HeatPointsResponse(BaseModel):
    points: List[HeatPointOut]


class KPIValueOut(BaseModel):
    value: float
    delta_pct: float


class KPIOut(BaseModel):
    total_visits: KPIValueOut
    party_intent_index: KPIValueOut
    single_rate: KPIValueOut
    dominant_age_band: str
    dominant_age_delta_points: int


class ActivityPointOut(BaseModel):
    date: date
    visits: int


class IntentPointOut(BaseModel):
    date: date
    party: int
    chill: int
    date_night: int
    with_friends: int
    solo: int


class DistributionBucketOut(BaseModel):
    key: str
    label: str
    percentage: int


class ComparisonMetricOut(BaseModel):
    label: str
    rank: int
    total: int
    score: float


class InsightsResponse(BaseModel):
    """Insights dashboard for one venue and period."""
    venue_id: str
    period: Period
    kpi: KPIOut
    activity_series: List[ActivityPointOut]
    intent_series: List[IntentPointOut]
    age_distribution: List[DistributionBucketOut]
    gender_distribution: List[DistributionBucketOut]
    relationship_distribution: List[DistributionBucketOut]
    comparison: List[ComparisonMetricOut]


class CheckInRequest(BaseModel):
    """Manual check-in from the check-in form."""
    venue_id: str
    user_id: str
    vibe_score: VibeScore
    intent: Intent
    relationship_status: Optional[str] = None
    ons_intent: Optional[str] = None
    gender: Optional[str] = None
    age_band: Optional[str] = None


class CheckInResponse(BaseModel):
    id: str
    venue_id: str
    created_at: datetime


class HealthResponse(BaseModel):
    status: str
    venues: int
    snapshots: int
    last_error: Optional[str] = None
    venue_error: Optional[str] = None
    check_in_error: Optional[str] = None


class IntentDistributionOut(BaseModel):
    percentages: Dict[str, int]
    total: int
    dominant_intent: Optional[str] = None
    dominant_pct: int


class VenueStatsOut(BaseModel):
    """One row of the venue list."""
    venue_id: str
    name: str
    category: Optional[str] = None
    check_in_count: int
    dominant_vibe: Optional[str] = None
    heat_score: int
    single_ratio: Optional[float] = None  # None when nobody answered
    ons_ratio: Optional[float] = None
    boost_score: float
    age_percentages: Dict[str, int]
    intents: IntentDistributionOut
    dominant_intent_label: Optional[str] = None


class VenueListResponse(BaseModel):
    sort: SortMode
    venues: List[VenueStatsOut]
