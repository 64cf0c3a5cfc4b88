"""Internal job endpoints for cron/scripts.

These endpoints are secured with a static token (X-Internal-Token header),
NOT user auth.  They are meant for automated triggers only.
"""

from __future__ import annotations

import logging
import secrets
from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from app.config import get_settings
from app.db.session import get_db
from app.schemas.jobs import TrustBoostRequest
from app.services.override_policy import get_override_policy

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/internal", include_in_schema=False)

# Readiness probe name → job_type
JOB_ENDPOINTS: dict[str, str] = {
    "matches": "match_generation",
    "circles/rotate": "circle_rotation",
    "circles/form": "circle_formation",
    "trust": "trust_decay",
}


# ── Token dependency ────────────────────────────────────────────────


def _require_internal_token(x_internal_token: str = Header(...)) -> None:
    """Validate the internal job token from the request header.

    Uses constant-time comparison to prevent timing attacks.
    Raises 403 if the token is empty or does not match the configured value.
    """
    expected = get_settings().internal_job_token
    if not expected or not secrets.compare_digest(x_internal_token, expected):
        logger.warning("Internal endpoint auth failed: invalid or missing token")
        raise HTTPException(status_code=403, detail="Invalid internal token")


def _parse_uuid_or_422(value: str | None, param_name: str) -> UUID | None:
    """Parse an optional UUID; raise HTTPException 422 if malformed."""
    if not value or not value.strip():
        return None
    try:
        return UUID(value.strip())
    except (ValueError, TypeError):
        raise HTTPException(
            status_code=422,
            detail=f"Invalid {param_name}: must be a valid UUID",
        ) from None


def _failed(exc: Exception) -> dict:
    return {
        "success": False,
        "errors": [str(exc)],
        "timestamp": datetime.now(UTC).isoformat(),
    }


# ── Jobs ────────────────────────────────────────────────────────────


@router.post("/jobs/matches")
async def run_match_generation_endpoint(
    db: Session = Depends(get_db),
    _token: None = Depends(_require_internal_token),
    x_idempotency_key: str | None = Header(None, alias="X-Idempotency-Key"),
    founder_id: str | None = Query(
        None, description="Founder UUID; generates for every eligible founder if omitted"
    ),
):
    """Generate suggested matches (full run, or targeted at one founder).

    Idempotency: Pass X-Idempotency-Key to replay a completed run instead of
    running again.
    """
    from app.services.jobs.executor import run_job

    target = _parse_uuid_or_422(founder_id, "founder_id")
    try:
        return run_job(
            db,
            "match_generation",
            idempotency_key=x_idempotency_key,
            policy=get_override_policy(),
            founder_id=target,
        )
    except Exception as exc:
        logger.exception("Internal match generation failed")
        return _failed(exc)


@router.post("/jobs/circles/rotate")
async def run_circle_rotation_endpoint(
    db: Session = Depends(get_db),
    _token: None = Depends(_require_internal_token),
    x_idempotency_key: str | None = Header(None, alias="X-Idempotency-Key"),
):
    """Rotate circles whose cadence elapsed; dissolve circles below minimum size."""
    from app.services.jobs.executor import run_job

    try:
        return run_job(
            db,
            "circle_rotation",
            idempotency_key=x_idempotency_key,
            policy=get_override_policy(),
        )
    except Exception as exc:
        logger.exception("Internal circle rotation failed")
        return _failed(exc)


@router.post("/jobs/circles/form")
async def run_circle_formation_endpoint(
    db: Session = Depends(get_db),
    _token: None = Depends(_require_internal_token),
    x_idempotency_key: str | None = Header(None, alias="X-Idempotency-Key"),
):
    """Form new circles from unseated eligible founders."""
    from app.services.jobs.executor import run_job

    try:
        return run_job(
            db,
            "circle_formation",
            idempotency_key=x_idempotency_key,
            policy=get_override_policy(),
        )
    except Exception as exc:
        logger.exception("Internal circle formation failed")
        return _failed(exc)


@router.post("/jobs/trust")
async def run_trust_decay_endpoint(
    db: Session = Depends(get_db),
    _token: None = Depends(_require_internal_token),
    x_idempotency_key: str | None = Header(None, alias="X-Idempotency-Key"),
):
    """Apply trust decay (inactive founders) or boost (recent positive actions)."""
    from app.services.jobs.executor import run_job

    try:
        return run_job(
            db,
            "trust_decay",
            idempotency_key=x_idempotency_key,
            policy=get_override_policy(),
        )
    except Exception as exc:
        logger.exception("Internal trust decay failed")
        return _failed(exc)


@router.get("/jobs/{name:path}")
async def job_readiness(
    name: str,
    _token: None = Depends(_require_internal_token),
):
    """Readiness probe for a job endpoint. 404 for an unknown job."""
    if name not in JOB_ENDPOINTS:
        raise HTTPException(status_code=404, detail=f"Unknown job: {name}")
    return {"job": name, "status": "ready", "timestamp": datetime.now(UTC).isoformat()}


# ── Trust ───────────────────────────────────────────────────────────


@router.post("/trust/boost")
async def trust_boost(
    body: TrustBoostRequest,
    db: Session = Depends(get_db),
    _token: None = Depends(_require_internal_token),
):
    """Apply a single-action trust boost immediately. 404 if the founder is unknown."""
    from app.services.jobs.trust_decay import boost_trust_for_action

    try:
        result = boost_trust_for_action(db, body.founder_id, body.action)
    except Exception as exc:
        logger.exception("Internal trust boost failed")
        return _failed(exc)
    if result is None:
        raise HTTPException(status_code=404, detail="Founder not found")
    return {"success": True, **result}


# ── Reports ─────────────────────────────────────────────────────────


@router.get("/reports/circle-health")
async def circle_health_report(
    db: Session = Depends(get_db),
    _token: None = Depends(_require_internal_token),
):
    """healthy / at_risk / critical counts over live circles."""
    from app.services.jobs.circle_rotation import check_circle_health

    try:
        return {"success": True, **check_circle_health(db)}
    except Exception as exc:
        logger.exception("Circle health report failed")
        return _failed(exc)


@router.get("/reports/trust-distribution")
async def trust_distribution_report(
    db: Session = Depends(get_db),
    _token: None = Depends(_require_internal_token),
):
    """Active founders bucketed by trust score."""
    from app.services.jobs.trust_decay import get_trust_distribution

    try:
        return {"success": True, **get_trust_distribution(db)}
    except Exception as exc:
        logger.exception("Trust distribution report failed")
        return _failed(exc)
