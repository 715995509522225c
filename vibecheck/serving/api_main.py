import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Callable, List, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from vibecheck.analytics.filters import FilterSelection
from vibecheck.analytics.ranking import InsightsService
from vibecheck.analytics.venue_stats import calculate_all_venue_stats, sort_venues_by_mode
from vibecheck.checkin.cooldown import CooldownAnchor, manual_cooldown_status
from vibecheck.config.constants import VIBE_SCORE_TO_INT
from vibecheck.data.repositories import CheckInRepository, CheckInStore, VenueRepository, VenueStore
from vibecheck.data.schemas import CheckInDraft, Demographics
from vibecheck.data.validators import validate_check_in_draft
from vibecheck.serving.api_schemas import (
    AgeBand,
    CheckInRequest,
    CheckInResponse,
    DisplayMode,
    HealthResponse,
    HeatmapResponse,
    HeatmapVenueOut,
    HeatPointOut,
    HeatPointsResponse,
    InsightsResponse,
    Intent,
    IntentDistributionOut,
    Period,
    SortMode,
    VenueListResponse,
    VenueStatsOut,
)
from vibecheck.serving.heatmap_service import LiveHeatmapService
from vibecheck.serving.settings import Settings, settings

logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

router = APIRouter()


def filter_selection(
    window_minutes: Optional[int] = Query(None, gt=0),
    single_only: bool = False,
    age_bands: List[AgeBand] = Query([]),
    intents: List[Intent] = Query([]),
) -> Optional[FilterSelection]:
    """Viewer filters from the query string; None when nothing is selected."""
    selection = FilterSelection(
        window_minutes=window_minutes,
        single_only=single_only,
        age_bands=frozenset(age_bands),
        intents=frozenset(intents),
    )
    if selection == FilterSelection():
        return None
    return selection


@router.get("/")
async def root(request: Request):
    return {"message": request.app.title, "status": "online"}


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    service: LiveHeatmapService = request.app.state.heatmap_service
    return HealthResponse(
        status="healthy" if service.last_error is None else "degraded",
        venues=len(service.venues),
        snapshots=len(service.snapshots),
        last_error=service.last_error,
        venue_error=service.venue_error,
        check_in_error=service.check_in_error,
    )


@router.get("/heatmap", response_model=HeatmapResponse)
async def get_heatmap(
    request: Request,
    mode: DisplayMode = "activity",
    selection: Optional[FilterSelection] = Depends(filter_selection),
):
    """
    Live heatmap for a display mode, optionally narrowed by viewer filters.

    Example: GET /heatmap?mode=single&age_bands=18_25&age_bands=25_30&window_minutes=60

    On a failed refresh the last good view is returned with `error` set.
    """
    service: LiveHeatmapService = request.app.state.heatmap_service
    venues = [HeatmapVenueOut(**asdict(v)) for v in service.view(mode, selection)]
    return HeatmapResponse(
        display_mode=mode,
        venues=venues,
        refreshed_at=service.refreshed_at,
        error=service.last_error,
    )


@router.get("/heatmap/points", response_model=HeatPointsResponse)
async def get_heat_points(request: Request, selection: Optional[FilterSelection] = Depends(filter_selection)):
    """Per-check-in points weighted by vibe and recency."""
    service: LiveHeatmapService = request.app.state.heatmap_service
    return HeatPointsResponse(points=[HeatPointOut(**asdict(p)) for p in service.points(selection)])


@router.get("/venues", response_model=VenueListResponse)
async def list_venues(
    request: Request,
    sort: SortMode = "activity",
    age_bands: List[AgeBand] = Query([]),
    intents: List[Intent] = Query([]),
):
    """
    Every venue with its live-window stats, in the selected order.
    age_bands and intents are the targets of the age and intent sorts.
    """
    service: LiveHeatmapService = request.app.state.heatmap_service
    stats = calculate_all_venue_stats(service.venues, service.events, service.config)
    ordered = sort_venues_by_mode(stats, sort, list(age_bands), list(intents))
    return VenueListResponse(
        sort=sort,
        venues=[
            VenueStatsOut(
                venue_id=s.venue.id,
                name=s.venue.name,
                category=s.venue.category,
                check_in_count=s.check_in_count,
                dominant_vibe=s.dominant_vibe,
                heat_score=s.heat_score,
                single_ratio=s.single_ratio,
                ons_ratio=s.ons_ratio,
                boost_score=s.boost_score,
                age_percentages=s.age_percentages,
                intents=IntentDistributionOut(**asdict(s.intents)),
                dominant_intent_label=s.dominant_intent_label,
            )
            for s in ordered
        ],
    )


@router.get("/venues/{venue_id}/insights", response_model=InsightsResponse)
async def get_insights(request: Request, venue_id: str, period: Period = "30d"):
    """
    Insights dashboard for a venue.

    Example: GET /venues/v-12/insights?period=7d
    """
    insights: InsightsService = request.app.state.insights_service
    result = await insights.load(venue_id, period)
    if not result.ok:
        raise HTTPException(status_code=503, detail=f"Could not load insights: {result.error}")
    return InsightsResponse(**asdict(result.data))


@router.post("/checkins", response_model=CheckInResponse, status_code=201)
async def create_check_in(request: Request, body: CheckInRequest):
    """
    Manual check-in. The same user cannot check in at the same venue
    again until the manual cooldown has passed.

    Example request:
    ```
    {
      "venue_id": "v-12",
      "user_id": "u-42",
      "vibe_score": "hot",
      "intent": "party",
      "relationship_status": "single"
    }
    ```
    """
    state = request.app.state
    service: LiveHeatmapService = state.heatmap_service
    now = state.clock()

    if service.venues and not any(v.id == body.venue_id for v in service.venues):
        raise HTTPException(status_code=404, detail=f"Unknown venue {body.venue_id}")

    last = state.manual_anchors.get(body.user_id, CooldownAnchor())
    cooldown = manual_cooldown_status(body.venue_id, last, now, state.engine_config)
    if not cooldown.allowed:
        raise HTTPException(
            status_code=429,
            detail=f"Already checked in here, try again after {cooldown.next_allowed_at.isoformat()}",
        )

    draft = CheckInDraft(
        venue_id=body.venue_id,
        user_id=body.user_id,
        vibe_score=VIBE_SCORE_TO_INT[body.vibe_score],
        intent=body.intent,
        demographics=Demographics(
            relationship_status=body.relationship_status,
            ons_intent=body.ons_intent,
            gender=body.gender,
            age_band=body.age_band,
        ),
    )
    try:
        validate_check_in_draft(draft)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    result = await state.check_in_store.submit_check_in(draft)
    if not result.ok:
        raise HTTPException(status_code=503, detail=f"Check-in failed: {result.error}")

    event = result.event
    state.manual_anchors[body.user_id] = CooldownAnchor(venue_id=event.venue_id, at=event.created_at)
    await service.refresh_snapshots()

    return CheckInResponse(id=event.id, venue_id=event.venue_id, created_at=event.created_at)


def create_app(
    check_in_store: Optional[CheckInStore] = None,
    venue_store: Optional[VenueStore] = None,
    app_settings: Optional[Settings] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """
    Build the API. Stores default to the Parquet repositories under DATA_DIR.
    """
    app_settings = app_settings or settings
    engine_config = app_settings.engine_config()
    clock = clock or (lambda: datetime.now(timezone.utc))

    if check_in_store is None:
        check_in_store = CheckInRepository(app_settings.DATA_DIR)
    if venue_store is None:
        venue_store = VenueRepository(app_settings.DATA_DIR)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {app_settings.APP_NAME} v{app_settings.APP_VERSION}")
        service: LiveHeatmapService = app.state.heatmap_service
        if not await service.refresh():
            logger.warning("Initial refresh failed: %s", service.last_error)
        if app_settings.BACKGROUND_REFRESH:
            service.start()
        logger.info("Server ready!")
        yield
        await service.stop()

    app = FastAPI(
        title=app_settings.APP_NAME,
        description="Venue activity heatmap, insights and check-ins",
        version=app_settings.APP_VERSION,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.clock = clock
    app.state.engine_config = engine_config
    app.state.check_in_store = check_in_store
    app.state.heatmap_service = LiveHeatmapService(check_in_store, venue_store, engine_config, clock)
    app.state.insights_service = InsightsService(check_in_store, clock)
    app.state.manual_anchors = {}

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "vibecheck.serving.api_main:app",
        host="0.0.0.0",
        port=8000,
        reload=False
    )
