"""Circle lifecycle rules: entry, exit, rotation, dissolution, facilitation.

States: forming → active → {warning, paused} → rotating → {dissolving,
completed}. dissolving and completed are terminal. Transitions are applied by
the batch jobs, never by direct user action on the circle row.

The manager receives the formation engine (and through it the scorer) and the
trust engine at construction so each engine can be swapped in tests.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Sequence
from datetime import UTC, datetime

from app.services.circles.formation import (
    CircleFormationEngine,
    archetype_counts,
    distinct_archetypes,
    distinct_stages,
    stage_counts,
)
from app.services.circles.rules import (
    ADVANCED_STAGES,
    ALLOWED_TRANSITIONS,
    FACILITATOR_BONUSES,
    FACILITATOR_MIN_TRUST,
    FACILITATOR_TRUST_WEIGHT,
    FULL_ROTATION_SHARE,
    IDEAL_MEMBERS,
    MAX_MEMBERS,
    MAX_SAME_ARCHETYPE,
    MAX_SAME_STAGE,
    MAX_TIMEZONE_SPREAD_HOURS,
    MIN_CIRCLE_AVERAGE_TRUST,
    MIN_INDIVIDUAL_TRUST,
    MIN_MEMBERS,
    REMOVAL_INACTIVE_DAYS,
    STANDARD_CADENCE_DAYS,
    TERMINAL_STATES,
    TRUST_DECAY_GRACE_DAYS,
    UNAVAILABLE_GRACE_DAYS,
    WARNING_INACTIVE_DAYS,
)
from app.services.circles.types import (
    CircleHealthMetrics,
    CircleSnapshot,
    DissolutionCheck,
    EntryDecision,
    ExitDecision,
    FacilitatorSelection,
    HealthStatus,
    MembershipSnapshot,
    RotationPlan,
    RotationType,
)
from app.services.matching.constants import timezone_spread
from app.services.matching.types import MatchableFounder
from app.services.trust.trust_engine import TrustEngine, as_utc, days_since

logger = logging.getLogger(__name__)


class InvalidTransitionError(ValueError):
    """Raised for a circle status change the state machine does not allow."""


def classify_health(member_count: int) -> HealthStatus:
    """healthy ≥ IDEAL, at_risk in [MIN, IDEAL), critical < MIN."""
    if member_count >= IDEAL_MEMBERS:
        return "healthy"
    if member_count >= MIN_MEMBERS:
        return "at_risk"
    return "critical"


class CircleLifecycleManager:
    """Stateless rule set over circle snapshots and founder snapshots."""

    def __init__(
        self,
        formation: CircleFormationEngine | None = None,
        trust_engine: TrustEngine | None = None,
    ) -> None:
        self.formation = formation or CircleFormationEngine()
        self.trust_engine = trust_engine or TrustEngine()

    # ── State machine ─────────────────────────────────────────────────

    def can_transition(self, current: str, target: str) -> bool:
        return target in ALLOWED_TRANSITIONS.get(current, frozenset())

    def transition(self, current: str, target: str) -> str:
        """Return ``target`` if allowed from ``current``; raise otherwise."""
        if not self.can_transition(current, target):
            raise InvalidTransitionError(f"Circle cannot move from {current!r} to {target!r}")
        return target

    def is_terminal(self, status: str) -> bool:
        return status in TERMINAL_STATES

    def is_rotation_due(self, circle: CircleSnapshot, now: datetime | None = None) -> bool:
        """Cadence elapsed since the last rotation (or formation when never rotated)."""
        anchor = circle.last_rotation_at or circle.formed_at
        if anchor is None:
            return False
        cadence = circle.rotation_cadence_days or STANDARD_CADENCE_DAYS
        return days_since(anchor, now) >= cadence

    # ── Entry ─────────────────────────────────────────────────────────

    def can_join_circle(
        self,
        founder: MatchableFounder,
        circle: CircleSnapshot,
        current_members: Sequence[MatchableFounder],
    ) -> EntryDecision:
        """Hard entry rules; a crowded archetype is only a warning."""
        if len(current_members) >= MAX_MEMBERS:
            return EntryDecision(allowed=False, reason="Circle is at maximum capacity")
        if self.trust_engine.is_below_floor(founder.trust_score, MIN_INDIVIDUAL_TRUST):
            return EntryDecision(allowed=False, reason="Trust score below minimum threshold")
        if founder.availability == "unavailable":
            return EntryDecision(allowed=False, reason="Founder is currently unavailable")
        if founder.status != "active":
            return EntryDecision(allowed=False, reason="Founder profile is not active")

        if founder.project_stage and (
            stage_counts(current_members)[founder.project_stage] >= MAX_SAME_STAGE
        ):
            return EntryDecision(allowed=False, reason="Too many members at the same stage")

        timezones = [m.timezone for m in current_members] + [founder.timezone]
        if timezone_spread(timezones) > MAX_TIMEZONE_SPREAD_HOURS:
            return EntryDecision(allowed=False, reason="Timezone spread would exceed maximum")

        warnings: list[str] = []
        if founder.archetype and (
            archetype_counts(current_members)[founder.archetype] >= MAX_SAME_ARCHETYPE
        ):
            warnings.append("Adding this member reduces archetype diversity")
        return EntryDecision(allowed=True, warnings=warnings)

    # ── Exit ──────────────────────────────────────────────────────────

    def should_exit_circle(
        self,
        member: MatchableFounder,
        membership: MembershipSnapshot,
        circle: CircleSnapshot,
        now: datetime | None = None,
    ) -> ExitDecision:
        """First matching reason wins: inactivity, trust_decay, voluntary, rotation."""
        now = now or datetime.now(UTC)
        if member.last_active_at is not None:
            if self.trust_engine.days_inactive(member.last_active_at, now) >= REMOVAL_INACTIVE_DAYS:
                return ExitDecision(should_exit=True, reason="inactivity")

        if self.trust_engine.is_below_floor(member.trust_score, MIN_INDIVIDUAL_TRUST):
            return ExitDecision(
                should_exit=True, reason="trust_decay", grace_period_days=TRUST_DECAY_GRACE_DAYS
            )

        if member.availability == "unavailable":
            return ExitDecision(
                should_exit=True, reason="voluntary", grace_period_days=UNAVAILABLE_GRACE_DAYS
            )

        if circle.rotation_date is not None and as_utc(circle.rotation_date) <= as_utc(now):
            return ExitDecision(should_exit=True, reason="rotation")

        return ExitDecision(should_exit=False)

    # ── Rotation ──────────────────────────────────────────────────────

    def plan_rotation(
        self,
        circle: CircleSnapshot,
        members: Sequence[MatchableFounder],
        memberships: Sequence[MembershipSnapshot],
        available_pool: Sequence[MatchableFounder],
        now: datetime | None = None,
    ) -> RotationPlan:
        """Evaluate every member's exit rule and suggest trust-ranked replacements."""
        by_founder = {m.founder_id: m for m in memberships}
        rotate_out: list[Hashable] = []
        exit_reasons: dict[Hashable, ExitDecision] = {}
        notes: list[str] = []

        for member in members:
            membership = by_founder.get(member.id)
            if membership is None:
                continue
            decision = self.should_exit_circle(member, membership, circle, now)
            if decision.should_exit:
                rotate_out.append(member.id)
                exit_reasons[member.id] = decision
                notes.append(f"{member.email}: {decision.reason}")

        rotation_type: RotationType
        if not rotate_out:
            rotation_type = "renewal"
        elif len(rotate_out) >= len(members) * FULL_ROTATION_SHARE:
            rotation_type = "full"
        else:
            rotation_type = "partial"

        remaining_ids = {m.id for m in members if m.id not in exit_reasons}
        replacements = self.find_replacements(remaining_ids, available_pool, len(rotate_out))

        return RotationPlan(
            circle_id=circle.id,
            members_to_rotate_out=rotate_out,
            exit_reasons=exit_reasons,
            suggested_replacements=replacements,
            rotation_type=rotation_type,
            reason="; ".join(notes) or "Scheduled rotation",
        )

    def find_replacements(
        self,
        remaining_ids: set,
        pool: Sequence[MatchableFounder],
        count: int,
    ) -> list[Hashable]:
        """Highest-trust pool founders not already remaining; ties keep pool order."""
        if count <= 0:
            return []
        available = [p for p in pool if p.id not in remaining_ids]
        ranked = sorted(available, key=lambda p: p.trust_score, reverse=True)
        return [p.id for p in ranked[:count]]

    # ── Dissolution ───────────────────────────────────────────────────

    def should_dissolve_circle(
        self,
        circle: CircleSnapshot,
        members: Sequence[MatchableFounder],
        memberships: Sequence[MembershipSnapshot],
        now: datetime | None = None,
    ) -> DissolutionCheck:
        now = now or datetime.now(UTC)
        active_members = sum(1 for m in memberships if m.active)

        if active_members < MIN_MEMBERS:
            return DissolutionCheck(
                should_dissolve=True,
                can_recover=active_members >= 2,
                reason="Below minimum member count",
                recovery_actions=["Add new members to reach minimum"],
            )

        if members and all(
            m.last_active_at is not None
            and self.trust_engine.days_inactive(m.last_active_at, now) > WARNING_INACTIVE_DAYS
            for m in members
        ):
            return DissolutionCheck(
                should_dissolve=True, can_recover=False, reason="All members inactive"
            )

        if members:
            avg_trust = sum(m.trust_score for m in members) / len(members)
            if avg_trust < MIN_CIRCLE_AVERAGE_TRUST * 0.5:
                return DissolutionCheck(
                    should_dissolve=True,
                    can_recover=False,
                    reason="Average trust score critically low",
                )

        return DissolutionCheck(should_dissolve=False, can_recover=True)

    # ── Facilitation ──────────────────────────────────────────────────

    def select_facilitator(
        self, members: Sequence[MatchableFounder]
    ) -> FacilitatorSelection | None:
        """Best-scoring member above the trust floor; first in input order wins ties."""
        best: FacilitatorSelection | None = None
        for member in members:
            if member.trust_score < FACILITATOR_MIN_TRUST:
                continue

            score = member.trust_score * FACILITATOR_TRUST_WEIGHT
            reasons = [f"Trust: {member.trust_score}"]
            if member.archetype == "mentor":
                score += FACILITATOR_BONUSES["mentor_archetype"]
                reasons.append("Mentor archetype")
            if member.archetype == "connector":
                score += FACILITATOR_BONUSES["connector_archetype"]
                reasons.append("Connector archetype")
            if member.project_stage in ADVANCED_STAGES:
                score += FACILITATOR_BONUSES["advanced_stage"]
                reasons.append("Experienced stage")
            if member.availability == "open":
                score += FACILITATOR_BONUSES["open_availability"]
                reasons.append("High availability")
            if "willing_to_mentor" in member.intent_signals:
                score += FACILITATOR_BONUSES["willing_to_mentor"]
                reasons.append("Willing to mentor")

            if best is None or score > best.score:
                best = FacilitatorSelection(founder_id=member.id, score=score, reasons=reasons)
        return best

    # ── Health ────────────────────────────────────────────────────────

    def classify_health(self, member_count: int) -> HealthStatus:
        return classify_health(member_count)

    def health_metrics(
        self,
        members: Sequence[MatchableFounder],
        memberships: Sequence[MembershipSnapshot],
    ) -> CircleHealthMetrics:
        """Reporting snapshot; cohesion is mean pairwise compatibility."""
        active = sum(1 for m in memberships if m.active)
        activity = [as_utc(m.last_active_at) for m in members if m.last_active_at is not None]
        return CircleHealthMetrics(
            member_count=len(members),
            active_members=active,
            average_trust_score=(
                sum(m.trust_score for m in members) / len(members) if members else 0.0
            ),
            archetype_diversity=distinct_archetypes(members),
            stage_diversity=distinct_stages(members),
            timezone_spread=timezone_spread([m.timezone for m in members]),
            last_activity_at=max(activity) if activity else None,
            cohesion_score=self.formation.average_pairwise_score(members),
            health_status=classify_health(active),
        )
