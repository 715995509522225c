"""
Durable storage for the smart check-in cooldown anchor.

Only the last check-in time and venue id survive a restart; the rest of
the engine state is rebuilt each session.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Protocol

from vibecheck.checkin.cooldown import CooldownAnchor

logger = logging.getLogger(__name__)


class CheckinStateStore(Protocol):
    def load(self) -> CooldownAnchor:
        ...

    def save(self, anchor: CooldownAnchor) -> None:
        ...


class InMemoryCheckinStateStore:
    def __init__(self, anchor: CooldownAnchor = CooldownAnchor()):
        self.anchor = anchor
        self.saves = 0

    def load(self) -> CooldownAnchor:
        return self.anchor

    def save(self, anchor: CooldownAnchor) -> None:
        self.anchor = anchor
        self.saves += 1


class JsonCheckinStateStore:
    """
    Keeps the anchor in a small JSON file:
    {"last_checkin_at": "<iso>", "last_checkin_venue_id": "<id>"}
    """

    def __init__(self, path: str):
        self.path = Path(path)

    def load(self) -> CooldownAnchor:
        if not self.path.exists():
            return CooldownAnchor()

        try:
            payload = json.loads(self.path.read_text())
            at = payload.get("last_checkin_at")
            return CooldownAnchor(
                venue_id=payload.get("last_checkin_venue_id"),
                at=datetime.fromisoformat(at) if at else None,
            )
        except (OSError, ValueError, AttributeError, TypeError) as exc:
            # Unreadable state only costs one cooldown window
            logger.warning("Ignoring unreadable check-in state %s: %s", self.path, exc)
            return CooldownAnchor()

    def save(self, anchor: CooldownAnchor) -> None:
        payload = {
            "last_checkin_at": anchor.at.isoformat() if anchor.at else None,
            "last_checkin_venue_id": anchor.venue_id,
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload))
