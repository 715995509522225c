"""
Generate synthetic check-ins.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

import numpy as np

from vibecheck.checkin.profile import age_band_from_birth_year, map_profile_relationship
from vibecheck.config.constants import INTENTS, ONS_INTENTS, VIBE_SCORES
from vibecheck.data.schemas import CheckInEvent, UserProfile, Venue
from vibecheck.synthetic.generator_config import SyntheticConfig

VIBE_PROBS = [0.1, 0.3, 0.35, 0.25]


@dataclass
class VenueCharacter:
    """Latent crowd profile that biases the check-ins a venue receives."""
    popularity: float
    intent_probs: np.ndarray  # Over INTENTS
    ons_bias: float  # 0-0.5, higher means more open/maybe answers


def sample_venue_character(config: SyntheticConfig, rng: np.random.Generator) -> VenueCharacter:
    return VenueCharacter(
        popularity=float(rng.lognormal(mean=0.0, sigma=config.POPULARITY_SIGMA)),
        intent_probs=rng.dirichlet([2.0] * len(INTENTS)),
        ons_bias=float(rng.uniform(0.0, 0.5)),
    )


def _maybe(value: Optional[str], skip_prob: float, rng: np.random.Generator) -> Optional[str]:
    """Drop an answer with probability skip_prob."""
    if value is None or rng.random() < skip_prob:
        return None
    return value


def generate_checkin(
    user: UserProfile,
    venue: Venue,
    character: VenueCharacter,
    created_at: datetime,
    config: SyntheticConfig,
    rng: np.random.Generator,
) -> CheckInEvent:
    """
    Generate a single check-in by `user` at `venue`.

    Demographics come from the user's profile; each optional question is
    skipped with its configured probability.
    """
    ons_probs = np.array([0.1 + character.ons_bias, 0.2, 0.6 - 0.5 * character.ons_bias, 0.1])
    ons_probs = ons_probs / ons_probs.sum()

    return CheckInEvent(
        id=str(uuid.UUID(int=int(rng.integers(0, 2**63)))),
        venue_id=venue.id,
        user_id=user.user_id,
        created_at=created_at,
        vibe_score=int(rng.choice(len(VIBE_SCORES), p=VIBE_PROBS)),
        intent=INTENTS[rng.choice(len(INTENTS), p=character.intent_probs)],
        relationship_status=_maybe(map_profile_relationship(user.relationship_status),
                                   config.SKIP_RELATIONSHIP_PROB, rng),
        ons_intent=_maybe(ONS_INTENTS[rng.choice(len(ONS_INTENTS), p=ons_probs)], config.SKIP_ONS_PROB, rng),
        gender=_maybe(user.gender, config.SKIP_GENDER_PROB, rng),
        age_band=_maybe(age_band_from_birth_year(user.birth_year, created_at.year), config.SKIP_AGE_PROB, rng),
    )


def generate_all_checkins(
    users: List[UserProfile],
    venues: List[Venue],
    config: SyntheticConfig,
    end: datetime,
) -> List[CheckInEvent]:
    """
    Generate HISTORY_DAYS of night-time check-ins ending at `end`.

    Args:
        users: User pool
        venues: Venue pool
        config: Generator configuration
        end: Timezone-aware UTC upper bound (exclusive)

    Returns:
        List of CheckInEvent, oldest first
    """
    rng = np.random.default_rng(config.RANDOM_SEED + 2)

    characters = [sample_venue_character(config, rng) for _ in venues]
    popularity = np.array([c.popularity for c in characters])
    venue_probs = popularity / popularity.sum()

    first_day = (end - timedelta(days=config.HISTORY_DAYS)).replace(hour=0, minute=0, second=0, microsecond=0)
    low, high = config.CHECKINS_PER_DAY_RANGE

    checkins = []
    print(f"Generating check-ins for {config.HISTORY_DAYS} days...")

    for day in range(config.HISTORY_DAYS + 1):
        day_start = first_day + timedelta(days=day)
        n_today = int(rng.integers(low, high + 1))

        venue_idx = rng.choice(len(venues), size=n_today, p=venue_probs)
        user_idx = rng.integers(0, len(users), size=n_today)

        for v_idx, u_idx in zip(venue_idx, user_idx):
            hour = int(rng.choice(config.NIGHT_HOURS))
            # Small hours belong to the next calendar day
            offset = timedelta(days=1 if hour < 12 else 0, hours=hour, minutes=int(rng.integers(0, 60)))
            created_at = day_start + offset
            if created_at >= end:
                continue
            checkins.append(generate_checkin(users[u_idx], venues[v_idx], characters[v_idx], created_at, config, rng))

    checkins.sort(key=lambda c: c.created_at)
    print(f"Generated {len(checkins)} check-ins")
    return checkins
