import asyncio
from datetime import timedelta

from vibecheck.analytics.filters import FilterSelection
from vibecheck.data.repositories import InMemoryCheckInStore
from vibecheck.errors import StoreError
from vibecheck.serving.heatmap_service import LiveHeatmapService


def _service(make_event, make_venue, now):
    store = InMemoryCheckInStore(
        events=[
            make_event(venue_id="v1", minutes_ago=5, relationship_status="single"),
            make_event(venue_id="v1", minutes_ago=15, relationship_status="single"),
            make_event(venue_id="v2", minutes_ago=30),
            make_event(venue_id="v2", minutes_ago=120),
            make_event(venue_id="ghost", minutes_ago=5),
        ],
        venues=[make_venue("v1"), make_venue("v2", lat=59.92)],
    )
    return store, LiveHeatmapService(store, store, clock=lambda: now)


def test_refresh_builds_snapshots_for_known_venues(make_event, make_venue, now):
    store, service = _service(make_event, make_venue, now)

    assert asyncio.run(service.refresh())
    assert set(service.snapshots) == {"v1", "v2"}
    assert service.snapshots["v2"].total_checkins == 1
    assert service.refreshed_at == now
    assert service.last_error is None


def test_view_and_points(make_event, make_venue, now):
    store, service = _service(make_event, make_venue, now)
    asyncio.run(service.refresh())

    activity = service.view("activity")
    assert [v.venue_id for v in activity] == ["v1", "v2"]
    singles = service.view("single")
    assert [v.venue_id for v in singles] == ["v1"]
    assert len(service.points()) == 3


def test_failed_refresh_keeps_last_good_data(make_event, make_venue, now):
    store, service = _service(make_event, make_venue, now)
    asyncio.run(service.refresh())
    before = service.view("activity")

    store.fail_reads = True
    assert asyncio.run(service.refresh()) is False
    assert service.last_error
    assert service.view("activity") == before
    assert service.refreshed_at == now


def test_new_checkin_shows_after_refresh(make_event, make_venue, now):
    store, service = _service(make_event, make_venue, now)
    asyncio.run(service.refresh())
    store.events.append(make_event(venue_id="v2", created_at=now - timedelta(minutes=1)))

    asyncio.run(service.refresh_snapshots())
    assert service.snapshots["v2"].total_checkins == 2


def test_background_loops_start_and_stop(make_event, make_venue, now):
    store, service = _service(make_event, make_venue, now)

    async def scenario():
        service.start()
        running = [t.is_running for t in service._tasks]
        await service.stop()
        return running

    assert asyncio.run(scenario()) == [True, True]
    assert service._tasks == []


class VenueOutageStore(InMemoryCheckInStore):
    """Venue reads fail, check-in reads work."""

    async def fetch_venues(self):
        raise StoreError("venues table unavailable")


class SlowFirstReadStore(InMemoryCheckInStore):
    """The first check-in read returns its rows only after the gate opens."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.gate = asyncio.Event()
        self.reads = 0

    async def fetch_check_ins(self, venue_id, start, end=None):
        self.reads += 1
        events = await super().fetch_check_ins(venue_id, start, end)
        if self.reads == 1:
            await self.gate.wait()
        return events


def test_venue_error_survives_successful_checkin_refresh(make_event, now):
    store = VenueOutageStore(events=[make_event(venue_id="v1", minutes_ago=5)])
    service = LiveHeatmapService(store, store, clock=lambda: now)

    assert asyncio.run(service.refresh()) is False
    assert service.snapshots["v1"].total_checkins == 1
    assert service.check_in_error is None
    assert service.venue_error == "venues table unavailable"
    assert service.last_error == "venues table unavailable"

    asyncio.run(service.refresh_snapshots())
    assert service.last_error == "venues table unavailable"


def test_errors_clear_per_source(make_event, make_venue, now):
    store, service = _service(make_event, make_venue, now)
    store.fail_reads = True
    asyncio.run(service.refresh())
    assert service.venue_error and service.check_in_error

    store.fail_reads = False
    asyncio.run(service.refresh_snapshots())
    assert service.check_in_error is None
    assert service.last_error == service.venue_error

    asyncio.run(service.refresh_venues())
    assert service.last_error is None


def test_out_of_order_refresh_is_dropped(make_event, make_venue, now):
    store = SlowFirstReadStore(
        events=[make_event(venue_id="v1", minutes_ago=5)],
        venues=[make_venue("v1"), make_venue("v2", lat=59.92)],
    )
    service = LiveHeatmapService(store, store, clock=lambda: now)

    async def scenario():
        await service.refresh_venues()
        stale = asyncio.create_task(service.refresh_snapshots())
        await asyncio.sleep(0)
        store.events.append(make_event(venue_id="v2", minutes_ago=1))
        await service.refresh_snapshots()
        store.gate.set()
        await stale

    asyncio.run(scenario())
    assert set(service.snapshots) == {"v1", "v2"}
    assert len(service.events) == 2


def test_view_with_filters(make_event, make_venue, now):
    store, service = _service(make_event, make_venue, now)
    store.events.append(make_event(venue_id="v2", minutes_ago=10, intent="chill", age_band="30_35"))
    asyncio.run(service.refresh())

    singles_only = service.view("activity", FilterSelection(single_only=True))
    assert [v.venue_id for v in singles_only] == ["v1"]
    assert singles_only[0].total_checkins == 2

    chill = service.view("activity", FilterSelection(intents=frozenset({"chill"})))
    assert [(v.venue_id, v.total_checkins) for v in chill] == [("v2", 1)]

    recent = service.view("activity", FilterSelection(window_minutes=12))
    assert {v.venue_id: v.total_checkins for v in recent} == {"v1": 1, "v2": 1}

    assert len(service.points(FilterSelection(age_bands=frozenset({"30_35"})))) == 1
    # Unfiltered view is unchanged
    assert {v.venue_id: v.total_checkins for v in service.view("activity")} == {"v1": 2, "v2": 2}


def test_heatmap_timer_only_refreshes_venues(make_event, make_venue, now):
    store, service = _service(make_event, make_venue, now)

    async def scenario():
        service.start()
        callbacks = [t.callback for t in service._tasks]
        await service.stop()
        return callbacks

    assert asyncio.run(scenario()) == [service.refresh_snapshots, service.refresh_venues]
