"""Value types shared by the matching and circle engines."""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Skill:
    """Declared skill; only willing_to_help skills can satisfy a need."""

    name: str
    proficiency: str = "competent"
    willing_to_help: bool = True


@dataclass(frozen=True)
class Need:
    """Declared need; fulfilled needs no longer count."""

    name: str
    priority: str = "medium"
    fulfilled: bool = False


@dataclass(frozen=True)
class MatchableFounder:
    """Read-only snapshot of a founder profile used by the pure engines."""

    id: Hashable
    email: str
    availability: str = "limited"
    timezone: str = "UTC"
    trust_score: int = 50
    status: str = "active"
    project_stage: str | None = None
    archetype: str | None = None
    intent_signals: frozenset[str] = frozenset()
    skills: tuple[Skill, ...] = ()
    needs: tuple[Need, ...] = ()
    last_active_at: datetime | None = None
    onboarding_completed: bool = True


@dataclass
class MatchResult:
    """Outcome of scoring one ordered founder pair."""

    founder_id: Hashable
    matched_founder_id: Hashable
    score: int
    breakdown: dict[str, int]
    reasons: list[str] = field(default_factory=list)
    disqualified: bool = False
    disqualify_reason: str | None = None
