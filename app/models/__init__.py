"""SQLAlchemy models."""

from app.models.activity import Activity
from app.models.circle import Circle, CircleMembership
from app.models.founder import FounderNeed, FounderProfile, FounderSkill
from app.models.job_run import JobRun
from app.models.match import Match, pair_key

__all__ = [
    "Activity",
    "Circle",
    "CircleMembership",
    "FounderNeed",
    "FounderProfile",
    "FounderSkill",
    "JobRun",
    "Match",
    "pair_key",
]
