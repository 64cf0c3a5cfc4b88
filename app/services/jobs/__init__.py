"""Batch jobs run by the internal endpoints and scripts/run_*.py."""

from app.services.jobs.circle_formation import run_circle_formation
from app.services.jobs.circle_rotation import check_circle_health, run_circle_rotation
from app.services.jobs.executor import run_job
from app.services.jobs.match_generation import run_match_generation
from app.services.jobs.trust_decay import (
    boost_trust_for_action,
    get_trust_distribution,
    run_trust_decay,
)

__all__ = [
    "boost_trust_for_action",
    "check_circle_health",
    "get_trust_distribution",
    "run_circle_formation",
    "run_circle_rotation",
    "run_job",
    "run_match_generation",
    "run_trust_decay",
]
