"""Job type → callable. Keys are the ``job_type`` values stored on JobRun."""

from __future__ import annotations

from collections.abc import Callable

from app.services.jobs.circle_formation import run_circle_formation
from app.services.jobs.circle_rotation import run_circle_rotation
from app.services.jobs.match_generation import run_match_generation
from app.services.jobs.trust_decay import run_trust_decay

JOB_REGISTRY: dict[str, Callable[..., dict]] = {
    "match_generation": run_match_generation,
    "circle_rotation": run_circle_rotation,
    "trust_decay": run_trust_decay,
    "circle_formation": run_circle_formation,
}
