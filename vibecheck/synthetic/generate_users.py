"""
Generate synthetic user profiles.
"""

from typing import List

import numpy as np

from vibecheck.config.constants import GENDERS, INTENTS, ONS_INTENTS
from vibecheck.data.schemas import UserProfile
from vibecheck.synthetic.generator_config import SyntheticConfig

# Profile vocabulary includes open_relationship, mapped on check-in
PROFILE_RELATIONSHIPS = ["single", "in_relationship", "complicated", "open_relationship", "prefer_not_to_say"]
RELATIONSHIP_PROBS = [0.5, 0.3, 0.08, 0.04, 0.08]
GENDER_PROBS = [0.47, 0.47, 0.03, 0.03]


def generate_user(user_idx: int, config: SyntheticConfig, rng: np.random.Generator, current_year: int) -> UserProfile:
    """
    Generate a single synthetic user.

    Args:
        user_idx: User index (0 to N_USERS-1)
        config: Generator configuration
        rng: Random number generator
        current_year: Used to draw birth years (ages 18-55, skewed young)

    Returns:
        UserProfile
    """
    age = 18 + int(min(37, rng.gamma(shape=2.0, scale=4.5)))

    return UserProfile(
        user_id=f"u-{user_idx:05d}",
        birth_year=current_year - age,
        gender=GENDERS[rng.choice(len(GENDERS), p=GENDER_PROBS)],
        relationship_status=PROFILE_RELATIONSHIPS[rng.choice(len(PROFILE_RELATIONSHIPS), p=RELATIONSHIP_PROBS)],
        default_intent=INTENTS[rng.integers(0, len(INTENTS))],
        default_ons_intent=ONS_INTENTS[rng.integers(0, len(ONS_INTENTS))],
        smart_checkin_enabled=bool(rng.random() < 0.25),
    )


def generate_all_users(config: SyntheticConfig, current_year: int) -> List[UserProfile]:
    """
    Generate all synthetic users.

    Args:
        config: Generator configuration
        current_year: Calendar year used for birth years

    Returns:
        List of UserProfile
    """
    rng = np.random.default_rng(config.RANDOM_SEED + 1)

    users = []
    print(f"Generating {config.N_USERS} users...")

    for user_idx in range(config.N_USERS):
        if (user_idx + 1) % 1000 == 0:
            print(f"  Generated {user_idx + 1}/{config.N_USERS} users")
        users.append(generate_user(user_idx, config, rng, current_year))

    print(f"Generated {len(users)} users")
    return users
