"""Trust score decay and boost rules.

Pure functions over a current score, a last-activity timestamp and counts of
recent positive actions. Persistence is the caller's job (see
app.services.jobs.trust_decay).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal

TrustAction = Literal["match_accepted", "circle_joined", "meeting_attended", "feedback_given"]
TrustUpdateKind = Literal["boost", "decay", "none"]

MIN_TRUST_SCORE: int = 0
MAX_TRUST_SCORE: int = 100
DEFAULT_TRUST_SCORE: int = 50

# Days since last activity reported for founders who were never active
NEVER_ACTIVE_DAYS: int = 999


class UnknownTrustActionError(ValueError):
    """Raised when a boost is requested for an action with no point value."""


@dataclass(frozen=True)
class TrustConfig:
    """Decay and boost parameters."""

    decay_per_inactive_day: float = 0.5
    max_decay_per_run: float = 5.0
    grace_period_days: int = 7
    boost_window_days: int = 30
    match_accepted_boost: int = 3
    circle_joined_boost: int = 5
    meeting_attended_boost: int = 2
    feedback_given_boost: int = 1

    def boost_for(self, action: str) -> int:
        values = {
            "match_accepted": self.match_accepted_boost,
            "circle_joined": self.circle_joined_boost,
            "meeting_attended": self.meeting_attended_boost,
            "feedback_given": self.feedback_given_boost,
        }
        if action not in values:
            raise UnknownTrustActionError(f"Unknown trust action: {action}")
        return values[action]


@dataclass(frozen=True)
class ActivityCounts:
    """Qualifying positive actions inside the boost window."""

    matches_accepted: int = 0
    circles_joined: int = 0
    meetings_attended: int = 0
    feedback_given: int = 0


@dataclass(frozen=True)
class TrustUpdate:
    """Result of one evaluation: new score and what happened."""

    previous_score: int
    new_score: int
    kind: TrustUpdateKind
    amount: float
    days_inactive: int

    @property
    def changed(self) -> bool:
        return self.new_score != self.previous_score


def clamp_trust(value: float) -> int:
    """Clamp to [0, 100] and floor to an integer score."""
    return int(max(MIN_TRUST_SCORE, min(MAX_TRUST_SCORE, math.floor(value))))


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def days_since(value: datetime | None, now: datetime | None = None) -> int:
    """Whole days elapsed since ``value``; NEVER_ACTIVE_DAYS when unknown."""
    if value is None:
        return NEVER_ACTIVE_DAYS
    now = as_utc(now or datetime.now(UTC))
    return max(0, (now - as_utc(value)).days)


class TrustEngine:
    """Computes decay and boost deltas. Stateless apart from its config."""

    def __init__(self, config: TrustConfig | None = None) -> None:
        self.config = config or TrustConfig()

    def days_inactive(self, last_active_at: datetime | None, now: datetime | None = None) -> int:
        return days_since(last_active_at, now)

    def calculate_decay(self, days_inactive: int) -> float:
        """No decay within the grace period; then 0.5/day, capped per run."""
        cfg = self.config
        if days_inactive <= cfg.grace_period_days:
            return 0.0
        decay = (days_inactive - cfg.grace_period_days) * cfg.decay_per_inactive_day
        return min(decay, cfg.max_decay_per_run)

    def calculate_boost(self, counts: ActivityCounts) -> int:
        cfg = self.config
        return (
            counts.matches_accepted * cfg.match_accepted_boost
            + counts.circles_joined * cfg.circle_joined_boost
            + counts.meetings_attended * cfg.meeting_attended_boost
            + counts.feedback_given * cfg.feedback_given_boost
        )

    def evaluate(
        self,
        current_score: int,
        last_active_at: datetime | None,
        counts: ActivityCounts,
        now: datetime | None = None,
    ) -> TrustUpdate:
        """One job-cycle update. A boost pre-empts decay; never both."""
        days = self.days_inactive(last_active_at, now)
        boost = self.calculate_boost(counts)
        if boost > 0:
            return TrustUpdate(
                previous_score=current_score,
                new_score=clamp_trust(current_score + boost),
                kind="boost",
                amount=boost,
                days_inactive=days,
            )

        decay = self.calculate_decay(days)
        if decay > 0:
            return TrustUpdate(
                previous_score=current_score,
                new_score=clamp_trust(current_score - decay),
                kind="decay",
                amount=decay,
                days_inactive=days,
            )

        return TrustUpdate(
            previous_score=current_score,
            new_score=clamp_trust(current_score),
            kind="none",
            amount=0.0,
            days_inactive=days,
        )

    def apply_action(self, current_score: int, action: str) -> int:
        """Immediate single-action boost, clamped. Raises UnknownTrustActionError."""
        return clamp_trust(current_score + self.config.boost_for(action))

    def is_below_floor(self, score: int, floor: int) -> bool:
        return score < floor


def trust_bucket(score: int) -> str:
    """Distribution bucket for reporting."""
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "average"
    if score >= 20:
        return "low"
    return "critical"
