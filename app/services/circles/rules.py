"""Circle governance constants."""

from __future__ import annotations

# Size
MIN_MEMBERS: int = 4
MAX_MEMBERS: int = 6
IDEAL_MEMBERS: int = 5

# Rotation cadence (days)
STANDARD_CADENCE_DAYS: int = 90
MINIMUM_CADENCE_DAYS: int = 60
MAXIMUM_CADENCE_DAYS: int = 120

# Balance
MIN_ARCHETYPE_DIVERSITY: int = 3
MAX_SAME_STAGE: int = 3
MAX_SAME_ARCHETYPE: int = 2  # soft limit: warning only
MAX_TIMEZONE_SPREAD_HOURS: int = 8

# Diversity bonus per distinct value inside a circle
ARCHETYPE_DIVERSITY_POINTS: int = 3
STAGE_DIVERSITY_POINTS: int = 2

# Trust
MIN_INDIVIDUAL_TRUST: int = 20
MIN_CIRCLE_AVERAGE_TRUST: int = 40
FACILITATOR_MIN_TRUST: int = 60

# Engagement (days)
WARNING_INACTIVE_DAYS: int = 14
REMOVAL_INACTIVE_DAYS: int = 30

# Exit grace periods (days)
TRUST_DECAY_GRACE_DAYS: int = 7
UNAVAILABLE_GRACE_DAYS: int = 14

# A rotation where at least this share of members leaves is "full"
FULL_ROTATION_SHARE: float = 0.5

# Facilitator scoring
FACILITATOR_TRUST_WEIGHT: float = 0.4
FACILITATOR_BONUSES: dict[str, int] = {
    "mentor_archetype": 20,
    "connector_archetype": 15,
    "advanced_stage": 10,
    "open_availability": 10,
    "willing_to_mentor": 15,
}
ADVANCED_STAGES: frozenset[str] = frozenset({"growing", "scaling"})

# States
CIRCLE_STATES: tuple[str, ...] = (
    "forming",
    "active",
    "warning",
    "paused",
    "rotating",
    "dissolving",
    "completed",
)
TERMINAL_STATES: frozenset[str] = frozenset({"dissolving", "completed"})
# States that hold a founder's single circle seat
OCCUPYING_STATES: frozenset[str] = frozenset({"forming", "active"})

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "forming": frozenset({"active", "dissolving"}),
    "active": frozenset({"warning", "paused", "rotating", "dissolving"}),
    "warning": frozenset({"active", "paused", "rotating", "dissolving"}),
    "paused": frozenset({"active", "rotating", "dissolving"}),
    "rotating": frozenset({"active", "completed", "dissolving"}),
    "dissolving": frozenset(),
    "completed": frozenset(),
}

NAME_PREFIXES: tuple[str, ...] = ("Forge", "Craft", "Build", "Shape", "Form", "Create", "Design")
