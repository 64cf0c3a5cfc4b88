"""Circle formation: greedy, constraint-checked group building.

Deterministic apart from the circle name, which draws from an injected
``random.Random``. Local optimum only; cost is O(pool × MAX_MEMBERS) scorer
calls per circle.
"""

from __future__ import annotations

import logging
import random
import string
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta

from app.services.circles.rules import (
    ARCHETYPE_DIVERSITY_POINTS,
    MAX_MEMBERS,
    MAX_SAME_STAGE,
    MAX_TIMEZONE_SPREAD_HOURS,
    MIN_ARCHETYPE_DIVERSITY,
    MIN_MEMBERS,
    NAME_PREFIXES,
    OCCUPYING_STATES,
    STAGE_DIVERSITY_POINTS,
    STANDARD_CADENCE_DAYS,
)
from app.services.circles.types import CircleSnapshot, FormationResult
from app.services.matching.constants import timezone_spread
from app.services.matching.scorer import CompatibilityScorer, round_half_up
from app.services.matching.types import MatchableFounder

logger = logging.getLogger(__name__)

_NAME_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


def stage_counts(members: Iterable[MatchableFounder]) -> Counter:
    return Counter(m.project_stage or "unknown" for m in members)


def archetype_counts(members: Iterable[MatchableFounder]) -> Counter:
    return Counter(m.archetype or "unknown" for m in members)


def distinct_archetypes(members: Iterable[MatchableFounder]) -> int:
    return len({m.archetype for m in members if m.archetype})


def distinct_stages(members: Iterable[MatchableFounder]) -> int:
    return len({m.project_stage for m in members if m.project_stage})


def maintains_balance(members: Sequence[MatchableFounder]) -> bool:
    """Hard balance rules: ≤3 per stage, timezone spread ≤8h."""
    if any(count > MAX_SAME_STAGE for count in stage_counts(members).values()):
        return False
    return timezone_spread([m.timezone for m in members]) <= MAX_TIMEZONE_SPREAD_HOURS


def diversity_bonus(members: Sequence[MatchableFounder]) -> int:
    return (
        distinct_archetypes(members) * ARCHETYPE_DIVERSITY_POINTS
        + distinct_stages(members) * STAGE_DIVERSITY_POINTS
    )


def occupied_founder_ids(circles: Iterable[CircleSnapshot]) -> set:
    """Founders holding a seat in a forming or active circle."""
    occupied: set = set()
    for circle in circles:
        if circle.status in OCCUPYING_STATES:
            occupied.update(circle.member_ids)
    return occupied


class CircleFormationEngine:
    """Builds one circle at a time from a pool of eligible founders."""

    def __init__(
        self,
        scorer: CompatibilityScorer | None = None,
        rng: random.Random | None = None,
        cadence_days: int = STANDARD_CADENCE_DAYS,
    ) -> None:
        self.scorer = scorer or CompatibilityScorer()
        self.rng = rng or random.Random()
        self.cadence_days = cadence_days

    def form_circle(
        self,
        pool: Sequence[MatchableFounder],
        existing_circles: Iterable[CircleSnapshot] = (),
        now: datetime | None = None,
    ) -> FormationResult | None:
        """Return a proposed circle, or None when no viable circle exists.

        None is a normal outcome (pool too small or too homogeneous).
        """
        now = now or datetime.now(UTC)
        occupied = occupied_founder_ids(existing_circles)
        available = [f for f in pool if f.id not in occupied]
        if len(available) < MIN_MEMBERS:
            logger.info(
                "Formation skipped: %d available founders (< %d)", len(available), MIN_MEMBERS
            )
            return None

        # Seed: highest trust; sorted() is stable so ties keep input order
        seed = sorted(available, key=lambda f: f.trust_score, reverse=True)[0]
        members = [seed]
        remaining = [f for f in available if f is not seed]

        while len(members) < MAX_MEMBERS and remaining:
            best = self._best_candidate(members, remaining)
            if best is None:
                break
            members.append(best)
            remaining.remove(best)

        if len(members) < MIN_MEMBERS:
            logger.info("Formation failed: only %d compatible founders", len(members))
            return None
        if distinct_archetypes(members) < MIN_ARCHETYPE_DIVERSITY or not maintains_balance(
            members
        ):
            logger.info("Formation failed: balance constraints not met")
            return None

        score = self.circle_score(members)
        return FormationResult(
            name=self.generate_name(),
            members=members,
            score=score,
            rotation_date=now + timedelta(days=self.cadence_days),
            metadata={
                "formation_score": score,
                "archetype_distribution": dict(archetype_counts(members)),
                "stage_distribution": dict(stage_counts(members)),
            },
        )

    def _best_candidate(
        self,
        members: list[MatchableFounder],
        candidates: Sequence[MatchableFounder],
    ) -> MatchableFounder | None:
        """Highest (mean compatibility + diversity bonus); first in input order wins ties."""
        best: MatchableFounder | None = None
        best_score: float | None = None
        for candidate in candidates:
            tentative = [*members, candidate]
            if not maintains_balance(tentative):
                continue
            total = 0
            for member in members:
                result = self.scorer.calculate_match(member, candidate)
                if not result.disqualified:
                    total += result.score
            score = total / len(members) + diversity_bonus(tentative)
            if best_score is None or score > best_score:
                best, best_score = candidate, score
        return best

    def average_pairwise_score(self, members: Sequence[MatchableFounder]) -> float:
        """Mean compatibility over all non-disqualified member pairs (0 if none)."""
        total = 0
        count = 0
        for i, a in enumerate(members):
            for b in members[i + 1 :]:
                result = self.scorer.calculate_match(a, b)
                if not result.disqualified:
                    total += result.score
                    count += 1
        return total / count if count else 0.0

    def circle_score(self, members: Sequence[MatchableFounder]) -> int:
        """Quality score for reporting: mean pairwise compatibility + diversity bonus."""
        return round_half_up(self.average_pairwise_score(members) + diversity_bonus(members))

    def generate_name(self) -> str:
        prefix = self.rng.choice(NAME_PREFIXES)
        suffix = "".join(self.rng.choice(_NAME_SUFFIX_ALPHABET) for _ in range(4))
        return f"{prefix} Circle {suffix}"
