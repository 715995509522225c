"""
Check-in and venue stores.

The engine talks to the store through two small async protocols. The
Parquet repositories are the reference adapters (one file per table); the
in-memory store backs tests and demos.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Generic, List, Optional, Protocol, TypeVar

import pandas as pd

from vibecheck.data.schemas import CheckInDraft, CheckInEvent, Venue, ensure_utc
from vibecheck.data.validators import validate_check_in_draft
from vibecheck.errors import StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

CHECK_IN_COLUMNS = [
    "id", "venue_id", "user_id", "created_at", "vibe_score", "intent",
    "relationship_status", "ons_intent", "gender", "age_band",
]
VENUE_COLUMNS = ["id", "name", "category", "latitude", "longitude", "city"]


@dataclass
class StoreResult(Generic[T]):
    """
    Outcome of a store read. Lets callers tell "no data" (ok, empty)
    from "request failed" (not ok).
    """
    ok: bool
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, data: T) -> "StoreResult[T]":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error: str) -> "StoreResult[T]":
        return cls(ok=False, error=error)


@dataclass
class SubmitResult:
    """Outcome of a check-in write."""
    ok: bool
    event: Optional[CheckInEvent] = None
    error: Optional[str] = None


class CheckInStore(Protocol):
    async def fetch_check_ins(
        self,
        venue_id: Optional[str],
        start: datetime,
        end: Optional[datetime] = None,
    ) -> List[CheckInEvent]:
        """Events with start <= created_at < end; all venues when venue_id is None."""
        ...

    async def submit_check_in(self, draft: CheckInDraft) -> SubmitResult:
        ...


class VenueStore(Protocol):
    async def fetch_venues(self) -> List[Venue]:
        ...


def _optional_str(value) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    return str(value)


def _optional_float(value) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def _draft_to_event(draft: CheckInDraft, created_at: datetime) -> CheckInEvent:
    demo = draft.demographics
    return CheckInEvent(
        id=str(uuid.uuid4()),
        venue_id=draft.venue_id,
        user_id=draft.user_id,
        created_at=created_at,
        vibe_score=draft.vibe_score,
        intent=draft.intent,
        relationship_status=demo.relationship_status,
        ons_intent=demo.ons_intent,
        gender=demo.gender,
        age_band=demo.age_band,
    )


def _in_range(event: CheckInEvent, venue_id: Optional[str], start: datetime, end: Optional[datetime]) -> bool:
    if venue_id is not None and event.venue_id != venue_id:
        return False
    if event.created_at < start:
        return False
    return end is None or event.created_at < end


class CheckInRepository:
    """Repository for loading and appending check-ins in parquet."""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self.path = Path(data_dir) / "check_ins.parquet"
        self.df = None

    def _load(self):
        if self.df is None:
            try:
                self.df = pd.read_parquet(self.path)
            except FileNotFoundError:
                # If file doesn't exist, start from an empty table
                self.df = pd.DataFrame(columns=CHECK_IN_COLUMNS)
            except Exception as exc:
                raise StoreError(f"Failed to read {self.path}: {exc}") from exc
            if not self.df.empty:
                self.df["created_at"] = pd.to_datetime(self.df["created_at"], utc=True)

    def _row_to_event(self, row) -> CheckInEvent:
        """Convert a dataframe row to CheckInEvent."""
        return CheckInEvent(
            id=str(row["id"]),
            venue_id=str(row["venue_id"]),
            user_id=str(row["user_id"]),
            created_at=row["created_at"].to_pydatetime(),
            vibe_score=int(row["vibe_score"]),
            intent=_optional_str(row["intent"]),
            relationship_status=_optional_str(row["relationship_status"]),
            ons_intent=_optional_str(row["ons_intent"]),
            gender=_optional_str(row["gender"]),
            age_band=_optional_str(row["age_band"]),
        )

    def _query(self, venue_id: Optional[str], start: datetime, end: Optional[datetime]) -> List[CheckInEvent]:
        self._load()
        if self.df.empty:
            return []

        mask = self.df["created_at"] >= pd.Timestamp(ensure_utc(start))
        if end is not None:
            mask &= self.df["created_at"] < pd.Timestamp(ensure_utc(end))
        if venue_id is not None:
            mask &= self.df["venue_id"] == venue_id

        return [self._row_to_event(row) for _, row in self.df[mask].iterrows()]

    def _append(self, event: CheckInEvent) -> None:
        self._load()
        row = {
            "id": event.id,
            "venue_id": event.venue_id,
            "user_id": event.user_id,
            "created_at": pd.Timestamp(event.created_at),
            "vibe_score": event.vibe_score,
            "intent": event.intent,
            "relationship_status": event.relationship_status,
            "ons_intent": event.ons_intent,
            "gender": event.gender,
            "age_band": event.age_band,
        }
        new_row = pd.DataFrame([row], columns=CHECK_IN_COLUMNS)
        updated = new_row if self.df.empty else pd.concat([self.df, new_row], ignore_index=True)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        updated.to_parquet(self.path, index=False)
        self.df = updated

    async def fetch_check_ins(
        self,
        venue_id: Optional[str],
        start: datetime,
        end: Optional[datetime] = None,
    ) -> List[CheckInEvent]:
        return await asyncio.to_thread(self._query, venue_id, start, end)

    async def submit_check_in(self, draft: CheckInDraft) -> SubmitResult:
        try:
            validate_check_in_draft(draft)
        except ValueError as exc:
            return SubmitResult(ok=False, error=str(exc))

        event = _draft_to_event(draft, datetime.now(timezone.utc))
        try:
            await asyncio.to_thread(self._append, event)
        except (OSError, StoreError) as exc:
            logger.error("Check-in write failed for venue %s: %s", draft.venue_id, exc)
            return SubmitResult(ok=False, error=str(exc))
        return SubmitResult(ok=True, event=event)


class VenueRepository:
    """Repository for loading venues from parquet."""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self.df = None

    def _load(self):
        if self.df is None:
            path = Path(self.data_dir) / "venues.parquet"
            try:
                self.df = pd.read_parquet(path)
            except FileNotFoundError:
                self.df = pd.DataFrame(columns=VENUE_COLUMNS)
            except Exception as exc:
                raise StoreError(f"Failed to read {path}: {exc}") from exc

    def _row_to_venue(self, row) -> Venue:
        """Convert a dataframe row to Venue."""
        return Venue(
            id=str(row["id"]),
            name=str(row["name"]),
            category=_optional_str(row.get("category")),
            latitude=_optional_float(row.get("latitude")),
            longitude=_optional_float(row.get("longitude")),
            city=_optional_str(row.get("city")),
        )

    def get_all_venues(self) -> List[Venue]:
        self._load()
        return [self._row_to_venue(row) for _, row in self.df.iterrows()]

    async def fetch_venues(self) -> List[Venue]:
        return await asyncio.to_thread(self.get_all_venues)


class InMemoryCheckInStore:
    """
    Store backed by plain lists. Failures can be injected to exercise the
    error paths of callers.
    """

    def __init__(self, events: Optional[List[CheckInEvent]] = None, venues: Optional[List[Venue]] = None):
        self.events: List[CheckInEvent] = list(events or [])
        self.venues: List[Venue] = list(venues or [])
        self.fail_reads = False
        self.fail_writes = False
        self.clock = lambda: datetime.now(timezone.utc)
        self.submitted: List[CheckInDraft] = []

    async def fetch_check_ins(
        self,
        venue_id: Optional[str],
        start: datetime,
        end: Optional[datetime] = None,
    ) -> List[CheckInEvent]:
        if self.fail_reads:
            raise StoreError("check_ins query failed")
        start = ensure_utc(start)
        end = ensure_utc(end) if end is not None else None
        return [e for e in self.events if _in_range(e, venue_id, start, end)]

    async def submit_check_in(self, draft: CheckInDraft) -> SubmitResult:
        self.submitted.append(draft)
        if self.fail_writes:
            return SubmitResult(ok=False, error="check_ins insert failed")
        try:
            validate_check_in_draft(draft)
        except ValueError as exc:
            return SubmitResult(ok=False, error=str(exc))
        event = _draft_to_event(draft, self.clock())
        self.events.append(event)
        return SubmitResult(ok=True, event=event)

    async def fetch_venues(self) -> List[Venue]:
        if self.fail_reads:
            raise StoreError("venues query failed")
        return list(self.venues)
