"""Trust decay / boost job and the immediate single-action boost.

Boosts count positive actions since the later of (now - boost window) and the
founder's previous evaluation, so an action is credited by one run only.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session

from app.models import FounderProfile
from app.services import repository
from app.services.jobs.executor import fail_job_run, finish_job_run, start_job_run
from app.services.override_policy import EMPTY_POLICY, OverridePolicy
from app.services.trust import TrustEngine, trust_bucket
from app.services.trust.trust_engine import as_utc

logger = logging.getLogger(__name__)

JOB_TYPE = "trust_decay"


def boost_window_start(
    engine: TrustEngine, evaluated_at: datetime | None, now: datetime
) -> datetime:
    window_start = now - timedelta(days=engine.config.boost_window_days)
    if evaluated_at is None:
        return window_start
    return max(window_start, as_utc(evaluated_at))


def run_trust_decay(
    db: Session,
    policy: OverridePolicy = EMPTY_POLICY,
    engine: TrustEngine | None = None,
    now: datetime | None = None,
    idempotency_key: str | None = None,
) -> dict:
    """Apply one decay-or-boost step to every active, non-override founder.

    Returns:
        dict with success, processed, boosted, decayed, unchanged, skipped,
        errors, timestamp, job_run_id
    """
    engine = engine or TrustEngine()
    now = now or datetime.now(UTC)
    job = start_job_run(db, JOB_TYPE, idempotency_key)

    counts = {"processed": 0, "boosted": 0, "decayed": 0, "unchanged": 0, "skipped": 0}
    errors: list[str] = []

    try:
        try:
            founders = (
                db.query(FounderProfile)
                .filter(FounderProfile.status == "active")
                .order_by(FounderProfile.created_at.asc())
                .all()
            )
        except Exception as exc:
            logger.exception("Failed to fetch founders for trust decay")
            db.rollback()
            return finish_job_run(
                db,
                job,
                {
                    "success": False,
                    **counts,
                    "errors": [f"Failed to fetch founders: {exc}"],
                    "timestamp": now.isoformat(),
                },
            )

        logger.info("Starting trust decay: founders=%d", len(founders))
        for founder in founders:
            counts["processed"] += 1
            founder_id = founder.id
            if policy.is_exempt(founder.email):
                counts["skipped"] += 1
                continue
            try:
                since = boost_window_start(engine, founder.trust_evaluated_at, now)
                actions = repository.count_recent_actions(db, founder_id, since)
                update = engine.evaluate(founder.trust_score, founder.last_active_at, actions, now)
                founder.trust_score = update.new_score
                founder.trust_evaluated_at = now
                if update.kind == "boost":
                    repository.log_activity(
                        db,
                        "trust_boost",
                        founder_id=founder_id,
                        details={
                            "source": "batch",
                            "previous_score": update.previous_score,
                            "new_score": update.new_score,
                            "amount": update.amount,
                        },
                        created_at=now,
                    )
                db.commit()

                if update.kind == "boost":
                    counts["boosted"] += 1
                elif update.kind == "decay":
                    counts["decayed"] += 1
                else:
                    counts["unchanged"] += 1
            except Exception as exc:
                db.rollback()
                logger.exception("Trust update failed for founder %s", founder_id)
                errors.append(f"Founder {founder_id}: {exc}")

        logger.info(
            "Trust decay completed: processed=%d boosted=%d decayed=%d skipped=%d errors=%d",
            counts["processed"],
            counts["boosted"],
            counts["decayed"],
            counts["skipped"],
            len(errors),
        )
        return finish_job_run(
            db,
            job,
            {"success": True, **counts, "errors": errors, "timestamp": now.isoformat()},
        )
    except Exception as exc:
        logger.exception("Trust decay job failed")
        return fail_job_run(db, job, exc, now, counts=counts)


def boost_trust_for_action(
    db: Session,
    founder_id: uuid.UUID,
    action: str,
    engine: TrustEngine | None = None,
    now: datetime | None = None,
) -> dict | None:
    """Credit one action immediately and stamp ``last_active_at``.

    Returns None when the founder does not exist. Raises
    UnknownTrustActionError for an action with no point value.
    """
    engine = engine or TrustEngine()
    now = now or datetime.now(UTC)
    founder = repository.get_founder(db, founder_id)
    if founder is None:
        return None

    previous = founder.trust_score
    founder.trust_score = engine.apply_action(previous, action)
    founder.last_active_at = now
    repository.log_activity(
        db,
        "trust_boost",
        founder_id=founder.id,
        details={
            "source": "action",
            "action": action,
            "previous_score": previous,
            "new_score": founder.trust_score,
        },
        created_at=now,
    )
    db.commit()
    logger.info(
        "Trust boost for founder %s: %s %d -> %d", founder_id, action, previous, founder.trust_score
    )
    return {
        "founder_id": str(founder.id),
        "action": action,
        "previous_score": previous,
        "new_score": founder.trust_score,
    }


def get_trust_distribution(db: Session, now: datetime | None = None) -> dict:
    """Active founders per trust bucket."""
    now = now or datetime.now(UTC)
    buckets = {"excellent": 0, "good": 0, "average": 0, "low": 0, "critical": 0}
    rows = db.query(FounderProfile.trust_score).filter(FounderProfile.status == "active").all()
    for (score,) in rows:
        buckets[trust_bucket(score)] += 1
    return {"distribution": buckets, "total": len(rows), "timestamp": now.isoformat()}
