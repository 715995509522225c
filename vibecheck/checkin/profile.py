"""
Profile -> check-in field mapping for autonomous check-ins.
"""

from typing import Optional

from vibecheck.config.constants import PROFILE_RELATIONSHIP_MAP, RELATIONSHIP_STATUSES

# (max age inclusive, band), youngest first
_AGE_BAND_LIMITS = [
    (24, "18_25"),
    (29, "25_30"),
    (34, "30_35"),
    (39, "35_40"),
]


def age_band_from_birth_year(birth_year: Optional[int], current_year: int) -> Optional[str]:
    """
    Age band for a birth year, or None if unknown or under 18.

    Args:
        birth_year: Year of birth from the profile
        current_year: Calendar year to compute the age in
    """
    if not birth_year:
        return None

    age = current_year - birth_year
    if age < 18:
        return None
    for max_age, band in _AGE_BAND_LIMITS:
        if age <= max_age:
            return band
    return "40_plus"


def map_profile_relationship(status: Optional[str]) -> Optional[str]:
    """
    Translate a profile relationship status to the check-in vocabulary.
    open_relationship becomes complicated; unknown values are dropped.
    """
    if not status:
        return None
    status = PROFILE_RELATIONSHIP_MAP.get(status, status)
    return status if status in RELATIONSHIP_STATUSES else None
