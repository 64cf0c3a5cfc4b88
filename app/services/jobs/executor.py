"""Job executor: JobRun audit rows and idempotency replay."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from app.models.job_run import JobRun

logger = logging.getLogger(__name__)


def start_job_run(db: Session, job_type: str, idempotency_key: str | None = None) -> JobRun:
    """Create and commit a ``running`` JobRun row."""
    job = JobRun(job_type=job_type, status="running", idempotency_key=idempotency_key)
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def finish_job_run(db: Session, job: JobRun, result: dict) -> dict:
    """Close the JobRun from a job summary and return the summary with ``job_run_id``."""
    errors = result.get("errors") or []
    job.finished_at = datetime.now(UTC)
    job.status = "completed" if result.get("success") else "failed"
    job.records_processed = result.get("processed", 0)
    job.error_message = "; ".join(errors[:10]) if errors else None
    result["job_run_id"] = job.id
    job.summary = json.dumps(result, default=str)
    db.commit()
    return result


def fail_job_run(
    db: Session,
    job: JobRun,
    exc: Exception,
    now: datetime | None = None,
    counts: dict | None = None,
) -> dict:
    """Mark the JobRun failed after an unexpected exception and build the failure summary.

    ``counts`` holds the job's own summary keys; records committed before the
    failure stay counted.
    """
    db.rollback()
    result = {
        "success": False,
        "processed": 0,
        **(counts or {}),
        "errors": [str(exc)],
        "timestamp": (now or datetime.now(UTC)).isoformat(),
    }
    return finish_job_run(db, job, result)


def find_completed_run(db: Session, job_type: str, idempotency_key: str) -> JobRun | None:
    return (
        db.query(JobRun)
        .filter(
            JobRun.idempotency_key == idempotency_key,
            JobRun.job_type == job_type,
            JobRun.status == "completed",
        )
        .order_by(JobRun.started_at.desc())
        .first()
    )


def _cached_result(job: JobRun) -> dict:
    """Stored summary of a completed run, flagged as a replay."""
    cached = json.loads(job.summary) if job.summary else {"success": True}
    cached["job_run_id"] = job.id
    cached["idempotent_replay"] = True
    return cached


def run_job(
    db: Session,
    job_type: str,
    idempotency_key: str | None = None,
    **kwargs,
) -> dict:
    """Dispatch a job by type, replaying a completed run for a repeated idempotency key.

    Raises ValueError for an unknown job type.
    """
    from app.services.jobs.registry import JOB_REGISTRY

    job_fn = JOB_REGISTRY.get(job_type)
    if job_fn is None:
        raise ValueError(f"Unknown job_type: {job_type}")

    if idempotency_key:
        existing = find_completed_run(db, job_type, idempotency_key)
        if existing is not None:
            logger.info(
                "Idempotent skip: job_type=%s idempotency_key=%s job_run_id=%s",
                job_type,
                idempotency_key,
                existing.id,
            )
            return _cached_result(existing)

    return job_fn(db, idempotency_key=idempotency_key, **kwargs)
