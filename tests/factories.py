"""Builders for founder snapshots and persisted rows used across tests."""

from __future__ import annotations

import itertools
import uuid
from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session

from app.models import Circle, CircleMembership, FounderNeed, FounderProfile, FounderSkill
from app.services.matching import MatchableFounder, Need, Skill

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)

_sequence = itertools.count(1)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def make_founder(**overrides) -> MatchableFounder:
    """Active, available founder snapshot; override any field by keyword."""
    n = next(_sequence)
    defaults = dict(
        id=uuid.uuid4(),
        email=f"founder{n}@example.com",
        availability="open",
        timezone="America/New_York",
        trust_score=50,
        status="active",
        project_stage="building",
        archetype="builder",
        intent_signals=frozenset({"open_to_collaboration"}),
        skills=(),
        needs=(),
        last_active_at=days_ago(1),
        onboarding_completed=True,
    )
    defaults.update(overrides)
    if isinstance(defaults["intent_signals"], (set, list, tuple)):
        defaults["intent_signals"] = frozenset(defaults["intent_signals"])
    if defaults["skills"] and isinstance(defaults["skills"][0], str):
        defaults["skills"] = tuple(Skill(name=s) for s in defaults["skills"])
    if defaults["needs"] and isinstance(defaults["needs"][0], str):
        defaults["needs"] = tuple(Need(name=s) for s in defaults["needs"])
    return MatchableFounder(**defaults)


def diverse_pool(size: int = 6, **overrides) -> list[MatchableFounder]:
    """Pool that satisfies every balance rule: distinct archetypes, ≤2 per stage, ≤1h spread."""
    archetypes = ["builder", "strategist", "connector", "specialist", "generalist", "mentor"]
    stages = ["building", "launched", "idea", "building", "launched", "idea"]
    timezones = ["America/New_York", "America/Chicago"]
    return [
        make_founder(
            archetype=archetypes[i % len(archetypes)],
            project_stage=stages[i % len(stages)],
            timezone=timezones[i % len(timezones)],
            trust_score=90 - i * 5,
            **overrides,
        )
        for i in range(size)
    ]


def add_founder(
    db: Session,
    email: str | None = None,
    skills: tuple[str, ...] = (),
    needs: tuple[str, ...] = (),
    **fields,
) -> FounderProfile:
    """Persist a founder profile (active and onboarded unless overridden)."""
    n = next(_sequence)
    defaults = dict(
        email=email or f"member{n}@example.com",
        availability="open",
        timezone="America/New_York",
        trust_score=50,
        status="active",
        onboarding_completed=True,
        project_stage="building",
        archetype="builder",
        intent_signals={"open_to_collaboration": True},
        last_active_at=days_ago(1),
        created_at=NOW - timedelta(days=365) + timedelta(seconds=n),
    )
    defaults.update(fields)
    profile = FounderProfile(**defaults)
    profile.skills = [FounderSkill(name=s) for s in skills]
    profile.needs = [FounderNeed(name=s) for s in needs]
    db.add(profile)
    db.commit()
    return profile


def add_diverse_founders(db: Session, size: int = 6, **fields) -> list[FounderProfile]:
    """Persist founders mirroring diverse_pool: one circle's worth of balanced profiles."""
    return [
        add_founder(
            db,
            archetype=f.archetype,
            project_stage=f.project_stage,
            timezone=f.timezone,
            trust_score=f.trust_score,
            **fields,
        )
        for f in diverse_pool(size)
    ]


def add_circle(
    db: Session,
    founders: list[FounderProfile],
    status: str = "active",
    formed_at: datetime | None = None,
    last_rotation_at: datetime | None = None,
    rotation_cadence_days: int = 90,
    facilitator: FounderProfile | None = None,
) -> Circle:
    """Persist a circle with one active membership per founder."""
    formed_at = formed_at or days_ago(10)
    anchor = last_rotation_at or formed_at
    circle = Circle(
        name=f"Test Circle {next(_sequence)}",
        status=status,
        rotation_cadence_days=rotation_cadence_days,
        rotation_date=anchor + timedelta(days=rotation_cadence_days),
        formed_at=formed_at,
        last_rotation_at=last_rotation_at,
        meta={},
    )
    db.add(circle)
    db.flush()
    for founder in founders:
        db.add(
            CircleMembership(
                circle_id=circle.id,
                founder_id=founder.id,
                role="facilitator" if founder is facilitator else "member",
                joined_at=formed_at,
            )
        )
    db.commit()
    return circle
