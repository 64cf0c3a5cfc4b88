"""Persistence contract used by the batch jobs.

Thin query/insert helpers over the SQLAlchemy session plus conversions from
ORM rows to the immutable snapshots the pure engines consume. Writes here do
not commit unless stated; jobs commit once per record.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.models import Activity, Circle, CircleMembership, FounderProfile, Match, pair_key
from app.services.circles.rules import TERMINAL_STATES
from app.services.circles.types import CircleSnapshot, MembershipSnapshot
from app.services.matching.types import MatchableFounder, MatchResult, Need, Skill
from app.services.override_policy import EMPTY_POLICY, OverridePolicy
from app.services.trust.trust_engine import ActivityCounts

logger = logging.getLogger(__name__)


# ── Founders ──────────────────────────────────────────────────────────


def to_matchable(profile: FounderProfile) -> MatchableFounder:
    """Snapshot a profile row (with skills/needs) for the engines."""
    signals = profile.intent_signals or {}
    return MatchableFounder(
        id=profile.id,
        email=profile.email,
        availability=profile.availability,
        timezone=profile.timezone or "UTC",
        trust_score=profile.trust_score if profile.trust_score is not None else 50,
        status=profile.status,
        project_stage=profile.project_stage,
        archetype=profile.archetype,
        intent_signals=frozenset(k for k, v in signals.items() if v),
        skills=tuple(
            Skill(name=s.name, proficiency=s.proficiency, willing_to_help=s.willing_to_help)
            for s in profile.skills
        ),
        needs=tuple(
            Need(name=n.name, priority=n.priority, fulfilled=n.fulfilled) for n in profile.needs
        ),
        last_active_at=profile.last_active_at,
        onboarding_completed=profile.onboarding_completed,
    )


def load_active_profiles(db: Session) -> list[FounderProfile]:
    """Active profiles with skills and needs eagerly loaded, in creation order."""
    return (
        db.query(FounderProfile)
        .options(selectinload(FounderProfile.skills), selectinload(FounderProfile.needs))
        .filter(FounderProfile.status == "active")
        .order_by(FounderProfile.created_at.asc(), FounderProfile.email.asc())
        .all()
    )


def load_matchable_founders(
    db: Session,
    policy: OverridePolicy = EMPTY_POLICY,
    onboarded_only: bool = True,
) -> list[MatchableFounder]:
    """Active founders; onboarding gating is waived for override identities."""
    founders = []
    for profile in load_active_profiles(db):
        if onboarded_only and not profile.onboarding_completed and not policy.is_exempt(
            profile.email
        ):
            continue
        founders.append(to_matchable(profile))
    return founders


def get_founder(db: Session, founder_id: uuid.UUID) -> FounderProfile | None:
    return db.query(FounderProfile).filter(FounderProfile.id == founder_id).first()


# ── Matches ───────────────────────────────────────────────────────────


def count_pending_matches(db: Session, founder_id: uuid.UUID) -> int:
    """Suggested matches where the founder is on either side."""
    return (
        db.query(func.count(Match.id))
        .filter(
            or_(Match.subject_id == founder_id, Match.candidate_id == founder_id),
            Match.status == "suggested",
        )
        .scalar()
        or 0
    )


def match_exists(db: Session, founder_a: uuid.UUID, founder_b: uuid.UUID) -> bool:
    """Any match (any status) for the unordered pair."""
    key = pair_key(founder_a, founder_b)
    return db.query(Match.id).filter(Match.pair_key == key).first() is not None


def insert_match(db: Session, result: MatchResult, suggested_at: datetime) -> Match | None:
    """Insert and commit a suggested match; None if the pair already exists.

    The unique index on pair_key is the real guarantee; a concurrent insert
    that wins the race surfaces here as IntegrityError.
    """
    row = Match(
        subject_id=result.founder_id,
        candidate_id=result.matched_founder_id,
        pair_key=pair_key(result.founder_id, result.matched_founder_id),
        score=result.score,
        breakdown=dict(result.breakdown),
        reasons=list(result.reasons),
        status="suggested",
        suggested_at=suggested_at,
    )
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info(
            "Match already exists for pair %s (unique constraint)",
            pair_key(result.founder_id, result.matched_founder_id),
        )
        return None
    return row


# ── Circles ───────────────────────────────────────────────────────────


def load_circles(db: Session, statuses: Iterable[str]) -> list[Circle]:
    return (
        db.query(Circle)
        .filter(Circle.status.in_(list(statuses)))
        .order_by(Circle.formed_at.asc())
        .all()
    )


def active_memberships(db: Session, circle_id: uuid.UUID) -> list[CircleMembership]:
    return (
        db.query(CircleMembership)
        .filter(CircleMembership.circle_id == circle_id, CircleMembership.active.is_(True))
        .order_by(CircleMembership.joined_at.asc(), CircleMembership.id.asc())
        .all()
    )


def count_active_members(db: Session, circle_id: uuid.UUID) -> int:
    return (
        db.query(func.count(CircleMembership.id))
        .filter(CircleMembership.circle_id == circle_id, CircleMembership.active.is_(True))
        .scalar()
        or 0
    )


def occupied_founder_ids(db: Session) -> set[uuid.UUID]:
    """Founders holding an active seat in any circle that is not yet terminal."""
    rows = (
        db.query(CircleMembership.founder_id)
        .join(Circle, Circle.id == CircleMembership.circle_id)
        .filter(CircleMembership.active.is_(True), Circle.status.notin_(list(TERMINAL_STATES)))
        .all()
    )
    return {row[0] for row in rows}


def circle_snapshot(circle: Circle, memberships: Iterable[CircleMembership]) -> CircleSnapshot:
    return CircleSnapshot(
        id=circle.id,
        status=circle.status,
        member_ids=tuple(m.founder_id for m in memberships if m.active),
        name=circle.name,
        rotation_date=circle.rotation_date,
        rotation_cadence_days=circle.rotation_cadence_days,
        formed_at=circle.formed_at,
        last_rotation_at=circle.last_rotation_at,
    )


def membership_snapshot(membership: CircleMembership) -> MembershipSnapshot:
    return MembershipSnapshot(
        founder_id=membership.founder_id,
        active=membership.active,
        role=membership.role,
        joined_at=membership.joined_at,
        exit_flagged_at=membership.exit_flagged_at,
    )


def members_for(
    db: Session, memberships: Iterable[CircleMembership]
) -> list[MatchableFounder]:
    """Founder snapshots for the given memberships, in membership order."""
    ids = [m.founder_id for m in memberships]
    if not ids:
        return []
    profiles = (
        db.query(FounderProfile)
        .options(selectinload(FounderProfile.skills), selectinload(FounderProfile.needs))
        .filter(FounderProfile.id.in_(ids))
        .all()
    )
    by_id = {p.id: p for p in profiles}
    return [to_matchable(by_id[i]) for i in ids if i in by_id]


# ── Activity log ──────────────────────────────────────────────────────


def log_activity(
    db: Session,
    activity_type: str,
    founder_id: uuid.UUID | None = None,
    circle_id: uuid.UUID | None = None,
    details: dict | None = None,
    created_at: datetime | None = None,
) -> Activity:
    """Stage an activity row; committed with the caller's record."""
    row = Activity(
        activity_type=activity_type,
        founder_id=founder_id,
        circle_id=circle_id,
        details=details or {},
    )
    if created_at is not None:
        row.created_at = created_at
    db.add(row)
    return row


def count_recent_actions(db: Session, founder_id: uuid.UUID, since: datetime) -> ActivityCounts:
    """Positive actions since ``since`` that earn a trust boost."""
    matches_accepted = (
        db.query(func.count(Match.id))
        .filter(
            or_(Match.subject_id == founder_id, Match.candidate_id == founder_id),
            Match.status == "accepted",
            Match.responded_at >= since,
        )
        .scalar()
        or 0
    )
    circles_joined = (
        db.query(func.count(CircleMembership.id))
        .filter(
            CircleMembership.founder_id == founder_id,
            CircleMembership.active.is_(True),
            CircleMembership.joined_at >= since,
        )
        .scalar()
        or 0
    )
    activity_counts = dict(
        db.query(Activity.activity_type, func.count(Activity.id))
        .filter(
            Activity.founder_id == founder_id,
            Activity.activity_type.in_(["meeting_attended", "feedback_given"]),
            Activity.created_at >= since,
        )
        .group_by(Activity.activity_type)
        .all()
    )
    return ActivityCounts(
        matches_accepted=matches_accepted,
        circles_joined=circles_joined,
        meetings_attended=activity_counts.get("meeting_attended", 0),
        feedback_given=activity_counts.get("feedback_given", 0),
    )
