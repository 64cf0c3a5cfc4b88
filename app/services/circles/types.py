"""Value types for circle formation and lifecycle decisions."""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from app.services.matching.types import MatchableFounder

ExitReason = Literal["voluntary", "inactivity", "trust_decay", "rotation", "dissolution"]
RotationType = Literal["partial", "full", "renewal"]
HealthStatus = Literal["healthy", "at_risk", "critical"]


@dataclass(frozen=True)
class CircleSnapshot:
    """Read-only view of a circle for the pure engines."""

    id: Hashable
    status: str
    member_ids: tuple[Hashable, ...] = ()
    name: str = ""
    rotation_date: datetime | None = None
    rotation_cadence_days: int = 90
    formed_at: datetime | None = None
    last_rotation_at: datetime | None = None


@dataclass(frozen=True)
class MembershipSnapshot:
    founder_id: Hashable
    active: bool = True
    role: str = "member"
    joined_at: datetime | None = None
    exit_flagged_at: datetime | None = None


@dataclass
class FormationResult:
    """Proposed circle produced by the formation engine."""

    name: str
    members: list[MatchableFounder]
    score: int
    rotation_date: datetime
    metadata: dict
    status: str = "forming"

    @property
    def member_ids(self) -> list[Hashable]:
        return [m.id for m in self.members]


@dataclass
class EntryDecision:
    allowed: bool
    reason: str | None = None
    warnings: list[str] = field(default_factory=list)


@dataclass
class ExitDecision:
    should_exit: bool
    reason: ExitReason | None = None
    grace_period_days: int | None = None


@dataclass
class RotationPlan:
    circle_id: Hashable
    members_to_rotate_out: list[Hashable]
    exit_reasons: dict[Hashable, ExitDecision]
    suggested_replacements: list[Hashable]
    rotation_type: RotationType
    reason: str


@dataclass
class DissolutionCheck:
    should_dissolve: bool
    can_recover: bool
    reason: str | None = None
    recovery_actions: list[str] = field(default_factory=list)


@dataclass
class FacilitatorSelection:
    founder_id: Hashable
    score: float
    reasons: list[str]


@dataclass
class CircleHealthMetrics:
    member_count: int
    active_members: int
    average_trust_score: float
    archetype_diversity: int
    stage_diversity: int
    timezone_spread: float
    last_activity_at: datetime | None
    cohesion_score: float
    health_status: HealthStatus
