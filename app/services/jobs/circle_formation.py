"""Circle formation job: build circles from unseated founders until none forms."""

from __future__ import annotations

import logging
import random
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from app.config import get_settings
from app.models import Circle, CircleMembership
from app.services import repository
from app.services.circles import CircleFormationEngine, CircleLifecycleManager, FormationResult
from app.services.circles.rules import (
    MAXIMUM_CADENCE_DAYS,
    MIN_INDIVIDUAL_TRUST,
    MINIMUM_CADENCE_DAYS,
)
from app.services.jobs.executor import fail_job_run, finish_job_run, start_job_run
from app.services.matching import MatchableFounder
from app.services.override_policy import EMPTY_POLICY, OverridePolicy

logger = logging.getLogger(__name__)

JOB_TYPE = "circle_formation"


def clamp_cadence(days: int) -> int:
    return max(MINIMUM_CADENCE_DAYS, min(days, MAXIMUM_CADENCE_DAYS))


def formation_pool(
    founders: list[MatchableFounder], occupied: set, policy: OverridePolicy
) -> list[MatchableFounder]:
    """Unseated, available founders above the individual trust floor (overrides exempt)."""
    pool = []
    for founder in founders:
        if founder.id in occupied or founder.availability == "unavailable":
            continue
        if founder.trust_score < MIN_INDIVIDUAL_TRUST and not policy.is_exempt(founder.email):
            continue
        pool.append(founder)
    return pool


def persist_circle(
    db: Session,
    result: FormationResult,
    lifecycle: CircleLifecycleManager,
    cadence_days: int,
    now: datetime,
) -> Circle:
    """Write the circle, its memberships and a circle_formed activity, then commit."""
    facilitator = lifecycle.select_facilitator(result.members)
    circle = Circle(
        name=result.name,
        status=result.status,
        rotation_cadence_days=cadence_days,
        rotation_date=result.rotation_date,
        formed_at=now,
        formation_score=result.score,
        meta=result.metadata,
    )
    db.add(circle)
    db.flush()

    for member in result.members:
        is_facilitator = facilitator is not None and member.id == facilitator.founder_id
        db.add(
            CircleMembership(
                circle_id=circle.id,
                founder_id=member.id,
                role="facilitator" if is_facilitator else "member",
                joined_at=now,
            )
        )
    repository.log_activity(
        db,
        "circle_formed",
        circle_id=circle.id,
        details={
            "name": result.name,
            "formation_score": result.score,
            "member_ids": [str(i) for i in result.member_ids],
            "facilitator_id": str(facilitator.founder_id) if facilitator else None,
        },
        created_at=now,
    )
    db.commit()
    return circle


def run_circle_formation(
    db: Session,
    policy: OverridePolicy = EMPTY_POLICY,
    formation: CircleFormationEngine | None = None,
    lifecycle: CircleLifecycleManager | None = None,
    rng: random.Random | None = None,
    now: datetime | None = None,
    idempotency_key: str | None = None,
) -> dict:
    """Form up to MAX_CIRCLES_PER_RUN circles.

    Returns:
        dict with success, processed, created, circle_ids, errors, timestamp, job_run_id
    """
    settings = get_settings()
    cadence = clamp_cadence(settings.rotation_cadence_days)
    formation = formation or CircleFormationEngine(rng=rng, cadence_days=cadence)
    lifecycle = lifecycle or CircleLifecycleManager(formation=formation)
    now = now or datetime.now(UTC)
    job = start_job_run(db, JOB_TYPE, idempotency_key)

    created: list[str] = []
    errors: list[str] = []

    try:
        try:
            occupied = repository.occupied_founder_ids(db)
            pool = formation_pool(
                repository.load_matchable_founders(db, policy), occupied, policy
            )
        except Exception as exc:
            logger.exception("Failed to fetch founders for circle formation")
            db.rollback()
            return finish_job_run(
                db,
                job,
                {
                    "success": False,
                    "processed": 0,
                    "created": 0,
                    "circle_ids": [],
                    "errors": [f"Failed to fetch founders: {exc}"],
                    "timestamp": now.isoformat(),
                },
            )

        processed = len(pool)
        logger.info("Starting circle formation: pool=%d", processed)
        for _ in range(settings.max_circles_per_run):
            result = formation.form_circle(pool, now=now)
            if result is None:
                break
            seated = set(result.member_ids)
            # Drop the members either way so a failed write cannot loop on the same group
            pool = [f for f in pool if f.id not in seated]
            try:
                circle = persist_circle(
                    db, result, lifecycle, cadence, now
                )
                created.append(str(circle.id))
            except Exception as exc:
                db.rollback()
                logger.exception("Failed to persist circle %s", result.name)
                errors.append(f"Circle {result.name}: {exc}")

        logger.info(
            "Circle formation completed: created=%d remaining_pool=%d errors=%d",
            len(created),
            len(pool),
            len(errors),
        )
        return finish_job_run(
            db,
            job,
            {
                "success": True,
                "processed": processed,
                "created": len(created),
                "circle_ids": created,
                "errors": errors,
                "timestamp": now.isoformat(),
            },
        )
    except Exception as exc:
        logger.exception("Circle formation job failed")
        return fail_job_run(
            db, job, exc, now, counts={"created": len(created), "circle_ids": created}
        )
