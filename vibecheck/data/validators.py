from vibecheck.data.schemas import CheckInDraft, Venue
from vibecheck.config.constants import (
    INTENTS, RELATIONSHIP_STATUSES, ONS_INTENTS, GENDERS, AGE_BANDS, VIBE_SCORES
)


def _check_optional(value, allowed, name: str) -> None:
    if value is not None and value not in allowed:
        raise ValueError(f"{name} must be one of {allowed} or None, got {value!r}")


def validate_check_in_draft(draft: CheckInDraft) -> None:
    """Validate a check-in before it is written to the store."""
    if not draft.venue_id:
        raise ValueError("venue_id is required")
    if not draft.user_id:
        raise ValueError("user_id is required")
    if not 0 <= draft.vibe_score < len(VIBE_SCORES):
        raise ValueError(f"vibe_score must be in 0..{len(VIBE_SCORES) - 1}")
    if draft.intent not in INTENTS:
        raise ValueError(f"intent must be one of {INTENTS}, got {draft.intent!r}")

    demo = draft.demographics
    _check_optional(demo.relationship_status, RELATIONSHIP_STATUSES, "relationship_status")
    _check_optional(demo.ons_intent, ONS_INTENTS, "ons_intent")
    _check_optional(demo.gender, GENDERS, "gender")
    _check_optional(demo.age_band, AGE_BANDS, "age_band")


def validate_venue(venue: Venue) -> None:
    """Validate venue coordinates when present."""
    if not venue.id:
        raise ValueError("venue id is required")
    if venue.latitude is not None and not -90.0 <= venue.latitude <= 90.0:
        raise ValueError(f"latitude out of range: {venue.latitude}")
    if venue.longitude is not None and not -180.0 <= venue.longitude <= 180.0:
        raise ValueError(f"longitude out of range: {venue.longitude}")
