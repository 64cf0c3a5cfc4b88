"""Circle rotation job.

For every live circle: activate full forming circles, dissolve circles the
lifecycle check condemns (always when below the minimum size), apply member
exits whose grace period has elapsed and backfill the vacancies (dissolving the
circle when it is still below the minimum), then rotate when the cadence has
elapsed since the last rotation or formation. Founders released by a
dissolution can fill vacancies in circles processed later in the same run.

Each circle is committed on its own; a failure in one circle does not stop the
run.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session

from app.models import Circle, CircleMembership
from app.services import repository
from app.services.circles import CircleLifecycleManager, RotationPlan
from app.services.circles.rules import MAX_MEMBERS, MIN_INDIVIDUAL_TRUST, MIN_MEMBERS
from app.services.circles.types import DissolutionCheck
from app.services.jobs.executor import fail_job_run, finish_job_run, start_job_run
from app.services.matching import MatchableFounder
from app.services.override_policy import EMPTY_POLICY, OverridePolicy
from app.services.trust import days_since

logger = logging.getLogger(__name__)

JOB_TYPE = "circle_rotation"

# Circles the rotation job looks at
LIVE_STATES: tuple[str, ...] = ("forming", "active", "warning")
# Circles counted by the health report
REPORTED_STATES: tuple[str, ...] = ("active", "warning")


def replacement_pool(
    founders: list[MatchableFounder], occupied: set, policy: OverridePolicy
) -> list[MatchableFounder]:
    """Unseated founders who could take a vacancy."""
    pool = []
    for founder in founders:
        if founder.id in occupied or founder.availability == "unavailable":
            continue
        if founder.trust_score < MIN_INDIVIDUAL_TRUST and not policy.is_exempt(founder.email):
            continue
        pool.append(founder)
    return pool


def release_seats(
    founder_ids: list,
    eligible: dict,
    pool: list[MatchableFounder],
    occupied: set,
    policy: OverridePolicy,
) -> None:
    """Free the seats of a dissolved circle and offer its members to later vacancies."""
    occupied.difference_update(founder_ids)
    pooled = {f.id for f in pool}
    released = [eligible[i] for i in founder_ids if i in eligible and i not in pooled]
    pool.extend(replacement_pool(released, occupied, policy))


def dissolve_circle(
    db: Session,
    circle: Circle,
    memberships: list[CircleMembership],
    check: DissolutionCheck,
    lifecycle: CircleLifecycleManager,
    now: datetime,
) -> None:
    """Flip to dissolving, release every seat and log the reason. Caller commits."""
    circle.status = lifecycle.transition(circle.status, "dissolving")
    circle.dissolved_at = now
    circle.dissolution_reason = check.reason
    for membership in memberships:
        membership.active = False
        membership.left_at = now
        membership.exit_reason = "dissolution"
    repository.log_activity(
        db,
        "circle_dissolved",
        circle_id=circle.id,
        details={
            "reason": check.reason,
            "can_recover": check.can_recover,
            "recovery_actions": check.recovery_actions,
            "member_count": len(memberships),
        },
        created_at=now,
    )


def apply_member_exits(
    memberships: list[CircleMembership],
    members: list[MatchableFounder],
    plan: RotationPlan,
    policy: OverridePolicy,
    now: datetime,
) -> tuple[list[CircleMembership], int]:
    """Deactivate seats whose exit is due; flag the ones still in grace.

    The scheduled "rotation" reason renews the circle as a whole and never
    removes a member. Returns (removed memberships, pending flagged count).
    """
    emails = {m.id: m.email for m in members}
    removed: list[CircleMembership] = []
    pending = 0
    for membership in memberships:
        decision = plan.exit_reasons.get(membership.founder_id)
        if (
            decision is None
            or decision.reason == "rotation"
            or policy.is_exempt(emails.get(membership.founder_id))
        ):
            membership.exit_flagged_at = None
            continue

        if decision.grace_period_days:
            if membership.exit_flagged_at is None:
                membership.exit_flagged_at = now
                pending += 1
                continue
            if days_since(membership.exit_flagged_at, now) < decision.grace_period_days:
                pending += 1
                continue

        membership.active = False
        membership.left_at = now
        membership.exit_reason = decision.reason
        removed.append(membership)
    return removed, pending


def backfill_vacancies(
    db: Session,
    circle: Circle,
    remaining: list[MatchableFounder],
    pool: list[MatchableFounder],
    occupied: set,
    vacancies: int,
    lifecycle: CircleLifecycleManager,
    policy: OverridePolicy,
    now: datetime,
) -> list:
    """Seat the highest-trust pool founders that pass the entry rules."""
    if vacancies <= 0:
        return []
    available = [f for f in pool if f.id not in occupied]
    ranked = lifecycle.find_replacements({m.id for m in remaining}, available, len(available))
    by_id = {f.id: f for f in available}
    snapshot = repository.circle_snapshot(circle, [])

    joined = []
    for founder_id in ranked:
        if len(joined) >= vacancies:
            break
        candidate = by_id[founder_id]
        if policy.is_exempt(candidate.email):
            allowed = len(remaining) < MAX_MEMBERS
        else:
            allowed = lifecycle.can_join_circle(candidate, snapshot, remaining).allowed
        if not allowed:
            continue
        db.add(
            CircleMembership(circle_id=circle.id, founder_id=founder_id, role="member", joined_at=now)
        )
        remaining.append(candidate)
        occupied.add(founder_id)
        joined.append(founder_id)
    return joined


def reassign_facilitator(
    memberships: list[CircleMembership],
    remaining: list[MatchableFounder],
    lifecycle: CircleLifecycleManager,
) -> None:
    """Pick a new facilitator when the current one has left."""
    live = [m for m in memberships if m.active]
    if any(m.role == "facilitator" for m in live):
        return
    selection = lifecycle.select_facilitator(remaining)
    if selection is None:
        return
    for membership in live:
        if membership.founder_id == selection.founder_id:
            membership.role = "facilitator"


def rotate_circle(
    db: Session,
    circle: Circle,
    plan: RotationPlan,
    exited: list,
    joined: list,
    lifecycle: CircleLifecycleManager,
    now: datetime,
) -> None:
    """Stamp the rotation, schedule the next one and log the plan. Caller commits."""
    circle.status = lifecycle.transition(circle.status, "rotating")
    circle.last_rotation_at = now
    circle.rotation_date = now + timedelta(days=circle.rotation_cadence_days)
    circle.status = lifecycle.transition(circle.status, "active")
    repository.log_activity(
        db,
        "circle_rotated",
        circle_id=circle.id,
        details={
            "rotation_type": plan.rotation_type,
            "reason": plan.reason,
            "members_to_rotate_out": [str(i) for i in plan.members_to_rotate_out],
            "suggested_replacements": [str(i) for i in plan.suggested_replacements],
            "members_exited": [str(i) for i in exited],
            "members_joined": [str(i) for i in joined],
            "next_rotation_date": circle.rotation_date.isoformat(),
        },
        created_at=now,
    )


def run_circle_rotation(
    db: Session,
    policy: OverridePolicy = EMPTY_POLICY,
    lifecycle: CircleLifecycleManager | None = None,
    now: datetime | None = None,
    idempotency_key: str | None = None,
) -> dict:
    """Run the rotation / dissolution pass over all live circles.

    Returns:
        dict with success, processed, activated, rotated, dissolved,
        members_exited, members_joined, errors, timestamp, job_run_id
    """
    lifecycle = lifecycle or CircleLifecycleManager()
    now = now or datetime.now(UTC)
    job = start_job_run(db, JOB_TYPE, idempotency_key)

    counts = {
        "processed": 0,
        "activated": 0,
        "rotated": 0,
        "dissolved": 0,
        "members_exited": 0,
        "members_joined": 0,
    }
    errors: list[str] = []

    try:
        try:
            circles = repository.load_circles(db, LIVE_STATES)
            occupied = repository.occupied_founder_ids(db)
            founders = repository.load_matchable_founders(db, policy)
            eligible = {f.id: f for f in founders}
            pool = replacement_pool(founders, occupied, policy)
        except Exception as exc:
            logger.exception("Failed to fetch circles for rotation")
            db.rollback()
            return finish_job_run(
                db,
                job,
                {
                    "success": False,
                    **counts,
                    "errors": [f"Failed to fetch circles: {exc}"],
                    "timestamp": now.isoformat(),
                },
            )

        logger.info("Starting circle rotation: circles=%d pool=%d", len(circles), len(pool))
        for circle in circles:
            counts["processed"] += 1
            circle_id = circle.id
            try:
                memberships = repository.active_memberships(db, circle_id)
                members = repository.members_for(db, memberships)
                snapshot = repository.circle_snapshot(circle, memberships)
                membership_snaps = [repository.membership_snapshot(m) for m in memberships]

                if circle.status == "forming" and len(memberships) >= MIN_MEMBERS:
                    circle.status = lifecycle.transition(circle.status, "active")
                    repository.log_activity(
                        db,
                        "circle_activated",
                        circle_id=circle_id,
                        details={"member_count": len(memberships)},
                        created_at=now,
                    )
                    db.commit()
                    counts["activated"] += 1
                    continue

                check = lifecycle.should_dissolve_circle(snapshot, members, membership_snaps, now)
                if check.should_dissolve:
                    dissolve_circle(db, circle, memberships, check, lifecycle, now)
                    db.commit()
                    release_seats(
                        [m.founder_id for m in memberships], eligible, pool, occupied, policy
                    )
                    counts["dissolved"] += 1
                    logger.info("Dissolved circle %s: %s", circle_id, check.reason)
                    continue

                plan = lifecycle.plan_rotation(snapshot, members, membership_snaps, pool, now)
                removed, pending = apply_member_exits(memberships, members, plan, policy, now)
                exited = [m.founder_id for m in removed]
                joined: list = []
                if removed:
                    occupied.difference_update(exited)
                    remaining = [f for f in members if f.id not in set(exited)]
                    joined = backfill_vacancies(
                        db,
                        circle,
                        remaining,
                        pool,
                        occupied,
                        len(removed),
                        lifecycle,
                        policy,
                        now,
                    )
                    db.flush()
                    live = repository.active_memberships(db, circle_id)
                    if len(live) < MIN_MEMBERS:
                        check = lifecycle.should_dissolve_circle(
                            repository.circle_snapshot(circle, live),
                            remaining,
                            [repository.membership_snapshot(m) for m in live],
                            now,
                        )
                        dissolve_circle(db, circle, live, check, lifecycle, now)
                        db.commit()
                        release_seats(
                            [m.founder_id for m in live], eligible, pool, occupied, policy
                        )
                        counts["dissolved"] += 1
                        counts["members_exited"] += len(exited)
                        counts["members_joined"] += len(joined)
                        logger.info(
                            "Dissolved circle %s after member exits: %s", circle_id, check.reason
                        )
                        continue
                    reassign_facilitator(live, remaining, lifecycle)

                if lifecycle.is_rotation_due(snapshot, now):
                    rotate_circle(db, circle, plan, exited, joined, lifecycle, now)
                    counts["rotated"] += 1

                target = "warning" if pending else "active"
                if circle.status != target:
                    circle.status = lifecycle.transition(circle.status, target)
                db.commit()
                counts["members_exited"] += len(exited)
                counts["members_joined"] += len(joined)
            except Exception as exc:
                db.rollback()
                logger.exception("Rotation failed for circle %s", circle_id)
                errors.append(f"Circle {circle_id}: {exc}")

        logger.info(
            "Circle rotation completed: processed=%d rotated=%d dissolved=%d errors=%d",
            counts["processed"],
            counts["rotated"],
            counts["dissolved"],
            len(errors),
        )
        return finish_job_run(
            db,
            job,
            {"success": True, **counts, "errors": errors, "timestamp": now.isoformat()},
        )
    except Exception as exc:
        logger.exception("Circle rotation job failed")
        return fail_job_run(db, job, exc, now, counts=counts)


def check_circle_health(db: Session, now: datetime | None = None) -> dict:
    """Count live circles per health class from their live member counts."""
    lifecycle = CircleLifecycleManager()
    now = now or datetime.now(UTC)
    summary = {"healthy": 0, "at_risk": 0, "critical": 0}
    for circle in repository.load_circles(db, REPORTED_STATES):
        count = repository.count_active_members(db, circle.id)
        summary[lifecycle.classify_health(count)] += 1
    return {**summary, "total": sum(summary.values()), "timestamp": now.isoformat()}
