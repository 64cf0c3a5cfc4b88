"""Compatibility scoring constants.

Weights, compatibility tables and the timezone offset table used by the
scorer and by circle balance checks. Tables are plain data keyed by enum
values; nothing here is computed at runtime.
"""

from __future__ import annotations

# ── Enumerations ──────────────────────────────────────────────────────

PROJECT_STAGES: tuple[str, ...] = ("idea", "building", "launched", "growing", "scaling", "paused")
ARCHETYPES: tuple[str, ...] = (
    "builder",
    "strategist",
    "connector",
    "specialist",
    "generalist",
    "mentor",
    "explorer",
)
AVAILABILITIES: tuple[str, ...] = ("open", "limited", "focused", "unavailable")
INTENT_SIGNALS: tuple[str, ...] = (
    "seeking_cofounder",
    "open_to_collaboration",
    "looking_for_feedback",
    "wants_accountability",
    "seeking_mentorship",
    "willing_to_mentor",
    "interested_in_circles",
)

# ── Dimension weights (sum 110, normalized to 0..100) ─────────────────

MATCH_WEIGHTS: dict[str, int] = {
    "needs_offers": 30,
    "stage": 20,
    "archetype": 15,
    "timezone": 15,
    "availability": 10,
    "intent": 10,
    "trust": 10,
}
MAX_RAW_SCORE: int = sum(MATCH_WEIGHTS.values())

# Needs/offers: matched-need count saturates at 6; one-way exchange worth 60%
NEEDS_SATURATION: int = 6
ONE_WAY_FACTOR: float = 0.6

# Neutral factor when stage or archetype is missing on either side
NEUTRAL_FACTOR: float = 0.5

# Intent: cap on overlap + bonuses
INTENT_CAP: int = 5
MENTORSHIP_BONUS: int = 2
COLLABORATION_BONUS: int = 1

# ── Stage compatibility (ordered pairs, 0..1) ─────────────────────────

STAGE_COMPATIBILITY: dict[str, dict[str, float]] = {
    "idea": {
        "idea": 0.7,
        "building": 0.9,
        "launched": 0.6,
        "growing": 0.4,
        "scaling": 0.3,
        "paused": 0.5,
    },
    "building": {
        "idea": 0.9,
        "building": 1.0,
        "launched": 0.8,
        "growing": 0.5,
        "scaling": 0.4,
        "paused": 0.6,
    },
    "launched": {
        "idea": 0.6,
        "building": 0.8,
        "launched": 1.0,
        "growing": 0.9,
        "scaling": 0.6,
        "paused": 0.5,
    },
    "growing": {
        "idea": 0.4,
        "building": 0.5,
        "launched": 0.9,
        "growing": 1.0,
        "scaling": 0.8,
        "paused": 0.4,
    },
    "scaling": {
        "idea": 0.3,
        "building": 0.4,
        "launched": 0.6,
        "growing": 0.8,
        "scaling": 1.0,
        "paused": 0.3,
    },
    "paused": {
        "idea": 0.5,
        "building": 0.6,
        "launched": 0.5,
        "growing": 0.4,
        "scaling": 0.3,
        "paused": 0.7,
    },
}

# ── Archetype compatibility (identical pairs low, complements high) ───

ARCHETYPE_COMPATIBILITY: dict[str, dict[str, float]] = {
    "builder": {
        "builder": 0.6,
        "strategist": 0.9,
        "connector": 0.7,
        "specialist": 0.8,
        "generalist": 0.7,
        "mentor": 0.8,
        "explorer": 0.6,
    },
    "strategist": {
        "builder": 0.9,
        "strategist": 0.5,
        "connector": 0.8,
        "specialist": 0.7,
        "generalist": 0.6,
        "mentor": 0.7,
        "explorer": 0.7,
    },
    "connector": {
        "builder": 0.7,
        "strategist": 0.8,
        "connector": 0.4,
        "specialist": 0.6,
        "generalist": 0.7,
        "mentor": 0.8,
        "explorer": 0.8,
    },
    "specialist": {
        "builder": 0.8,
        "strategist": 0.7,
        "connector": 0.6,
        "specialist": 0.5,
        "generalist": 0.8,
        "mentor": 0.7,
        "explorer": 0.7,
    },
    "generalist": {
        "builder": 0.7,
        "strategist": 0.6,
        "connector": 0.7,
        "specialist": 0.8,
        "generalist": 0.6,
        "mentor": 0.7,
        "explorer": 0.8,
    },
    "mentor": {
        "builder": 0.8,
        "strategist": 0.7,
        "connector": 0.8,
        "specialist": 0.7,
        "generalist": 0.7,
        "mentor": 0.4,
        "explorer": 0.9,
    },
    "explorer": {
        "builder": 0.6,
        "strategist": 0.7,
        "connector": 0.8,
        "specialist": 0.7,
        "generalist": 0.8,
        "mentor": 0.9,
        "explorer": 0.7,
    },
}

# ── Availability compatibility ────────────────────────────────────────

AVAILABILITY_COMPATIBILITY: dict[str, dict[str, float]] = {
    "open": {"open": 1.0, "limited": 0.8, "focused": 0.5, "unavailable": 0.1},
    "limited": {"open": 0.8, "limited": 0.9, "focused": 0.6, "unavailable": 0.2},
    "focused": {"open": 0.5, "limited": 0.6, "focused": 0.7, "unavailable": 0.3},
    "unavailable": {"open": 0.1, "limited": 0.2, "focused": 0.3, "unavailable": 0.0},
}

# ── Timezones ─────────────────────────────────────────────────────────

# Standard-time UTC offsets (hours). Unknown zones resolve to 0.
TIMEZONE_OFFSETS: dict[str, float] = {
    "UTC": 0,
    "Etc/UTC": 0,
    "America/New_York": -5,
    "America/Toronto": -5,
    "America/Chicago": -6,
    "America/Mexico_City": -6,
    "America/Denver": -7,
    "America/Los_Angeles": -8,
    "America/Sao_Paulo": -3,
    "Europe/London": 0,
    "Europe/Lisbon": 0,
    "Europe/Paris": 1,
    "Europe/Berlin": 1,
    "Europe/Amsterdam": 1,
    "Africa/Lagos": 1,
    "Africa/Accra": 0,
    "Africa/Nairobi": 3,
    "Asia/Dubai": 4,
    "Asia/Kolkata": 5.5,
    "Asia/Singapore": 8,
    "Asia/Tokyo": 9,
    "Australia/Sydney": 11,
}

# (max hour difference, factor), checked in order
TIMEZONE_BANDS: tuple[tuple[float, float], ...] = (
    (2, 1.0),
    (4, 0.8),
    (6, 0.6),
    (8, 0.4),
    (10, 0.2),
)
TIMEZONE_FLOOR_FACTOR: float = 0.1

# ── Reason thresholds (fraction of dimension weight) ─────────────────

REASON_THRESHOLDS: dict[str, float] = {
    "needs_offers_strong": 0.7,
    "needs_offers_partial": 0.4,
    "stage": 0.8,
    "archetype": 0.8,
    "timezone": 0.8,
    "availability": 0.8,
    "intent": 0.7,
    "trust": 0.7,
}


def timezone_offset(tz: str | None) -> float:
    """Return the UTC offset in hours for an IANA zone (0 when unknown)."""
    if not tz:
        return 0
    return TIMEZONE_OFFSETS.get(tz, 0)


def timezone_spread(timezones: list[str | None]) -> float:
    """Return hours between the westernmost and easternmost zones."""
    if not timezones:
        return 0
    offsets = [timezone_offset(tz) for tz in timezones]
    return max(offsets) - min(offsets)
