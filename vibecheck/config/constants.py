# File: vibecheck/config/constants.py

# Earth radius used by every distance calculation
EARTH_RADIUS_METERS = 6_371_000.0

# Intent tags (what the user is out for tonight)
INTENTS = [
    "party",
    "chill",
    "date_night",
    "with_friends",
    "solo",
]

INTENT_LABELS = {
    "party": "Party",
    "chill": "Chill",
    "date_night": "Date Night",
    "with_friends": "With Friends",
    "solo": "Solo",
}

# Vibe (mood) score, ordinal 0-3 as stored in the check_ins table
VIBE_SCORES = ["quiet", "ok", "good", "hot"]
VIBE_SCORE_TO_INT = {name: idx for idx, name in enumerate(VIBE_SCORES)}

# Heat contribution per vibe score for the per-check-in point layer
VIBE_SCORE_WEIGHT = {
    "hot": 1.0,
    "good": 0.75,
    "ok": 0.5,
    "quiet": 0.25,
}

# Anonymous demographic vocabularies (all optional on a check-in)
RELATIONSHIP_STATUSES = ["single", "in_relationship", "complicated", "prefer_not_to_say"]
ONS_INTENTS = ["open", "maybe", "not_interested", "prefer_not_to_say"]
GENDERS = ["male", "female", "other", "prefer_not_to_say"]

# Age bands (0-indexed, youngest first)
AGE_BANDS = ["18_25", "25_30", "30_35", "35_40", "40_plus"]
YOUTH_AGE_BAND = AGE_BANDS[0]

AGE_BAND_LABELS = {
    "18_25": "18-25",
    "25_30": "25-30",
    "30_35": "30-35",
    "35_40": "35-40",
    "40_plus": "40+",
}

# Profile relationship values that differ from the check-in vocabulary
PROFILE_RELATIONSHIP_MAP = {
    "open_relationship": "complicated",
}

# Venue categories
VENUE_CATEGORIES = ["bar", "club", "lounge", "pub", "rooftop"]

# Heatmap display modes selectable by the viewer
DISPLAY_MODES = ["activity", "single", "ons", "ons_boost", "party", "chill"]
DEFAULT_DISPLAY_MODE = "activity"

# Derived venue character, independent of the display mode
HEATMAP_MODES = ["neutral", "singles", "ons", "party", "chill"]

# ONS openness weights used by the boost score
ONS_INTENSITY_WEIGHTS = {
    "open": 1.0,
    "maybe": 0.6,
}

# Insights periods (days)
INSIGHTS_PERIODS = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
}

# Comparison metric labels, in report order
COMPARISON_METRICS = [
    ("activity", "Activity"),
    ("party", "Party intensity"),
    ("singles", "Single rate"),
    ("youth", "18-25 share"),
]

# Area radius used to filter venues around a city center (km)
CITY_RADIUS_KM = {
    "Oslo": 45,
    "Bergen": 25,
    "Trondheim": 20,
    "Stavanger": 20,
    "Kristiansand": 15,
    "Tromsø": 15,
    "Drammen": 15,
    "Fredrikstad": 12,
    "Ålesund": 15,
    "Bodø": 12,
    "Moss": 10,
    "Lillehammer": 10,
    "Narvik": 8,
}
