"""
Per-venue check-in cooldowns.

Both the autonomous engine (45 minutes) and the manual check-in form
(3 hours) gate on the last check-in's venue and time. A check-in at a
different venue is never blocked.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from vibecheck.config.engine_config import EngineConfig, get_default_config
from vibecheck.data.schemas import ensure_utc


@dataclass(frozen=True)
class CooldownAnchor:
    """Venue and time of the last successful check-in."""
    venue_id: Optional[str] = None
    at: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        return self.venue_id is None or self.at is None


@dataclass(frozen=True)
class CooldownStatus:
    allowed: bool
    next_allowed_at: Optional[datetime] = None


def cooldown_status(
    venue_id: str,
    anchor: CooldownAnchor,
    now: datetime,
    cooldown: timedelta,
) -> CooldownStatus:
    """
    Whether venue_id may be checked into at `now`.

    Allowed when there is no previous check-in, the previous one was at
    another venue, or at least `cooldown` has elapsed since it.
    """
    if anchor.is_empty or anchor.venue_id != venue_id:
        return CooldownStatus(allowed=True)

    last = ensure_utc(anchor.at)
    if ensure_utc(now) - last >= cooldown:
        return CooldownStatus(allowed=True)
    return CooldownStatus(allowed=False, next_allowed_at=last + cooldown)


def has_cooldown_passed(
    venue_id: str,
    anchor: CooldownAnchor,
    now: datetime,
    cooldown: timedelta,
) -> bool:
    return cooldown_status(venue_id, anchor, now, cooldown).allowed


def manual_cooldown_status(
    venue_id: str,
    last: CooldownAnchor,
    now: datetime,
    config: Optional[EngineConfig] = None,
) -> CooldownStatus:
    """Cooldown check for the manual check-in form."""
    config = config or get_default_config()
    return cooldown_status(venue_id, last, now, config.manual_cooldown)
