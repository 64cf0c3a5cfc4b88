"""Compatibility scoring between founders."""

from app.services.matching.scorer import CompatibilityScorer, check_disqualifiers
from app.services.matching.types import MatchableFounder, MatchResult, Need, Skill

__all__ = [
    "CompatibilityScorer",
    "MatchResult",
    "MatchableFounder",
    "Need",
    "Skill",
    "check_disqualifiers",
]
