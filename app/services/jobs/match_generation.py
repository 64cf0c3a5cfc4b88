"""Match generation job.

Full mode scores every active, onboarded founder against the same pool;
targeted mode does the same for one founder. Suggested matches below the
minimum score, or for a pair that already has a match, are never persisted.
Override identities bypass both the onboarding gate and the pending cap.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from app.config import get_settings
from app.services import repository
from app.services.jobs.executor import fail_job_run, finish_job_run, start_job_run
from app.services.matching import CompatibilityScorer, MatchableFounder
from app.services.override_policy import EMPTY_POLICY, OverridePolicy

logger = logging.getLogger(__name__)

JOB_TYPE = "match_generation"


def generate_matches_for_founder(
    db: Session,
    founder: MatchableFounder,
    pool: list[MatchableFounder],
    policy: OverridePolicy,
    scorer: CompatibilityScorer,
    min_score: int,
    max_pending: int,
    now: datetime,
) -> int | None:
    """Persist new suggested matches for one founder.

    Returns the number created, or None when the founder is already at the
    pending cap and was skipped.
    """
    exempt = policy.is_exempt(founder.email)
    pending = repository.count_pending_matches(db, founder.id)
    if not exempt and pending >= max_pending:
        logger.debug("Founder %s at pending cap (%d)", founder.id, pending)
        return None

    limit = max_pending if exempt else max_pending - pending
    created = 0
    for result in scorer.find_best_matches(founder, pool, limit=limit):
        if result.score < min_score:
            # Results are sorted best first
            break
        if repository.match_exists(db, founder.id, result.matched_founder_id):
            continue
        if repository.insert_match(db, result, suggested_at=now) is not None:
            created += 1
    return created


def run_match_generation(
    db: Session,
    policy: OverridePolicy = EMPTY_POLICY,
    founder_id: uuid.UUID | None = None,
    scorer: CompatibilityScorer | None = None,
    now: datetime | None = None,
    idempotency_key: str | None = None,
) -> dict:
    """Generate suggested matches (all founders, or only ``founder_id``).

    One founder failure does not stop the run. Creates a JobRun record for audit.

    Returns:
        dict with success, processed, created, skipped, errors, timestamp, job_run_id
    """
    settings = get_settings()
    scorer = scorer or CompatibilityScorer()
    now = now or datetime.now(UTC)
    job = start_job_run(db, JOB_TYPE, idempotency_key)

    processed = 0
    created = 0
    skipped = 0
    errors: list[str] = []

    try:
        try:
            pool = repository.load_matchable_founders(db, policy)
        except Exception as exc:
            logger.exception("Failed to fetch founders for match generation")
            db.rollback()
            return finish_job_run(
                db,
                job,
                {
                    "success": False,
                    "processed": 0,
                    "created": 0,
                    "skipped": 0,
                    "errors": [f"Failed to fetch founders: {exc}"],
                    "timestamp": now.isoformat(),
                },
            )

        subjects = pool
        if founder_id is not None:
            subjects = [f for f in pool if f.id == founder_id]
            if not subjects:
                return finish_job_run(
                    db,
                    job,
                    {
                        "success": False,
                        "processed": 0,
                        "created": 0,
                        "skipped": 0,
                        "errors": [f"Founder {founder_id} not found or not eligible"],
                        "timestamp": now.isoformat(),
                    },
                )

        logger.info(
            "Starting match generation: founders=%d pool=%d targeted=%s",
            len(subjects),
            len(pool),
            founder_id is not None,
        )
        for founder in subjects:
            processed += 1
            try:
                result = generate_matches_for_founder(
                    db,
                    founder,
                    pool,
                    policy,
                    scorer,
                    min_score=settings.min_match_score,
                    max_pending=settings.max_pending_matches,
                    now=now,
                )
                if result is None:
                    skipped += 1
                else:
                    created += result
            except Exception as exc:
                db.rollback()
                logger.exception("Match generation failed for founder %s", founder.id)
                errors.append(f"Founder {founder.id}: {exc}")

        logger.info(
            "Match generation completed: processed=%d created=%d skipped=%d errors=%d",
            processed,
            created,
            skipped,
            len(errors),
        )
        return finish_job_run(
            db,
            job,
            {
                "success": True,
                "processed": processed,
                "created": created,
                "skipped": skipped,
                "errors": errors,
                "timestamp": now.isoformat(),
            },
        )
    except Exception as exc:
        logger.exception("Match generation job failed")
        return fail_job_run(
            db, job, exc, now, counts={"processed": processed, "created": created, "skipped": skipped}
        )
