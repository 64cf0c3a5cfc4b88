"""Compatibility scorer: two founder snapshots → score, breakdown, reasons.

Pure and synchronous. Disqualifiers run first in a fixed order and
short-circuit; otherwise seven weighted dimensions are computed, each rounded
half-up to an integer, summed (max 110) and normalized to 0..100.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence

from app.services.matching.constants import (
    ARCHETYPE_COMPATIBILITY,
    AVAILABILITY_COMPATIBILITY,
    COLLABORATION_BONUS,
    INTENT_CAP,
    MATCH_WEIGHTS,
    MAX_RAW_SCORE,
    MENTORSHIP_BONUS,
    NEEDS_SATURATION,
    NEUTRAL_FACTOR,
    ONE_WAY_FACTOR,
    REASON_THRESHOLDS,
    STAGE_COMPATIBILITY,
    TIMEZONE_BANDS,
    TIMEZONE_FLOOR_FACTOR,
    timezone_offset,
)
from app.services.matching.types import MatchableFounder, MatchResult, Need, Skill

DisqualifyCheck = Callable[[MatchableFounder, MatchableFounder], "str | None"]


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative scores (banker's rounding skews 2.5 → 2)."""
    return int(math.floor(value + 0.5))


def empty_breakdown() -> dict[str, int]:
    """Breakdown with every dimension at zero (used for disqualified pairs)."""
    return {dimension: 0 for dimension in MATCH_WEIGHTS}


# ── Disqualifiers ─────────────────────────────────────────────────────


def _same_person(a: MatchableFounder, b: MatchableFounder) -> str | None:
    if a.id == b.id:
        return "Cannot match with self"
    return None


def _inactive(a: MatchableFounder, b: MatchableFounder) -> str | None:
    if a.status != "active" or b.status != "active":
        return "One or both founders are not active"
    return None


def _both_unavailable(a: MatchableFounder, b: MatchableFounder) -> str | None:
    if a.availability == "unavailable" and b.availability == "unavailable":
        return "Both founders are unavailable"
    return None


def _no_intent_overlap(a: MatchableFounder, b: MatchableFounder) -> str | None:
    if a.intent_signals and b.intent_signals and not (a.intent_signals & b.intent_signals):
        return "No overlapping intents"
    return None


# Order matters: first hit wins.
DISQUALIFIERS: tuple[DisqualifyCheck, ...] = (
    _same_person,
    _inactive,
    _both_unavailable,
    _no_intent_overlap,
)


def check_disqualifiers(a: MatchableFounder, b: MatchableFounder) -> str | None:
    """Return the first disqualification reason, or None when the pair is scorable."""
    for check in DISQUALIFIERS:
        reason = check(a, b)
        if reason is not None:
            return reason
    return None


# ── Dimensions ────────────────────────────────────────────────────────


def count_needs_met(needs: Iterable[Need], skills: Iterable[Skill]) -> int:
    """Count open needs whose name matches an offered skill (case-insensitive)."""
    offered = {s.name.strip().lower() for s in skills if s.willing_to_help}
    return sum(1 for n in needs if not n.fulfilled and n.name.strip().lower() in offered)


def needs_offers_score(a: MatchableFounder, b: MatchableFounder) -> int:
    """Needs↔offers (0..30). Mutual exchange scales fully; one-way capped at 60%."""
    weight = MATCH_WEIGHTS["needs_offers"]
    a_met = count_needs_met(a.needs, b.skills)
    b_met = count_needs_met(b.needs, a.skills)

    if a_met > 0 and b_met > 0:
        score = min(a_met + b_met, NEEDS_SATURATION) / NEEDS_SATURATION * weight
    elif a_met > 0 or b_met > 0:
        one_way = min(max(a_met, b_met), NEEDS_SATURATION)
        score = one_way / NEEDS_SATURATION * weight * ONE_WAY_FACTOR
    else:
        score = 0.0
    return round_half_up(score)


def stage_score(a: MatchableFounder, b: MatchableFounder) -> int:
    weight = MATCH_WEIGHTS["stage"]
    row = STAGE_COMPATIBILITY.get(a.project_stage or "")
    if row is None or b.project_stage not in row:
        return round_half_up(weight * NEUTRAL_FACTOR)
    return round_half_up(row[b.project_stage] * weight)


def archetype_score(a: MatchableFounder, b: MatchableFounder) -> int:
    weight = MATCH_WEIGHTS["archetype"]
    row = ARCHETYPE_COMPATIBILITY.get(a.archetype or "")
    if row is None or b.archetype not in row:
        return round_half_up(weight * NEUTRAL_FACTOR)
    return round_half_up(row[b.archetype] * weight)


def timezone_factor(tz_a: str | None, tz_b: str | None) -> float:
    """Return 0.1..1.0 from the absolute UTC offset difference."""
    diff = abs(timezone_offset(tz_a) - timezone_offset(tz_b))
    for max_hours, factor in TIMEZONE_BANDS:
        if diff <= max_hours:
            return factor
    return TIMEZONE_FLOOR_FACTOR


def timezone_score(a: MatchableFounder, b: MatchableFounder) -> int:
    return round_half_up(timezone_factor(a.timezone, b.timezone) * MATCH_WEIGHTS["timezone"])


def availability_score(a: MatchableFounder, b: MatchableFounder) -> int:
    weight = MATCH_WEIGHTS["availability"]
    factor = AVAILABILITY_COMPATIBILITY.get(a.availability, {}).get(b.availability, 0.0)
    return round_half_up(factor * weight)


def intent_score(a: MatchableFounder, b: MatchableFounder) -> int:
    """Shared intents + mentorship complement (+2) + mutual collaboration (+1), capped at 5."""
    total = len(a.intent_signals & b.intent_signals)
    if ("seeking_mentorship" in a.intent_signals and "willing_to_mentor" in b.intent_signals) or (
        "willing_to_mentor" in a.intent_signals and "seeking_mentorship" in b.intent_signals
    ):
        total += MENTORSHIP_BONUS
    if "open_to_collaboration" in a.intent_signals and "open_to_collaboration" in b.intent_signals:
        total += COLLABORATION_BONUS
    return round_half_up(min(total, INTENT_CAP) / INTENT_CAP * MATCH_WEIGHTS["intent"])


def trust_score(a: MatchableFounder, b: MatchableFounder) -> int:
    avg = (a.trust_score + b.trust_score) / 2
    normalized = max(0.0, min(avg / 100, 1.0))
    return round_half_up(normalized * MATCH_WEIGHTS["trust"])


def calculate_breakdown(a: MatchableFounder, b: MatchableFounder) -> dict[str, int]:
    """Compute all seven dimensions for a non-disqualified pair."""
    return {
        "needs_offers": needs_offers_score(a, b),
        "stage": stage_score(a, b),
        "archetype": archetype_score(a, b),
        "timezone": timezone_score(a, b),
        "availability": availability_score(a, b),
        "intent": intent_score(a, b),
        "trust": trust_score(a, b),
    }


def generate_match_reasons(
    a: MatchableFounder, b: MatchableFounder, breakdown: dict[str, int]
) -> list[str]:
    """Human-readable reasons for dimensions above threshold. Advisory only."""
    reasons: list[str] = []

    def clears(dimension: str, threshold_key: str) -> bool:
        return breakdown[dimension] >= MATCH_WEIGHTS[dimension] * REASON_THRESHOLDS[threshold_key]

    if clears("needs_offers", "needs_offers_strong"):
        reasons.append("Strong mutual value exchange potential")
    elif clears("needs_offers", "needs_offers_partial"):
        reasons.append("Complementary skills and needs")
    if clears("stage", "stage"):
        reasons.append(f"Both at compatible stages ({a.project_stage}/{b.project_stage})")
    if clears("archetype", "archetype"):
        reasons.append(f"Complementary archetypes ({a.archetype} + {b.archetype})")
    if clears("timezone", "timezone"):
        reasons.append("Great timezone overlap for meetings")
    if clears("availability", "availability"):
        reasons.append("Similar availability to meet regularly")
    if clears("intent", "intent"):
        reasons.append("Aligned goals and intentions")
    if clears("trust", "trust"):
        reasons.append("Both have established trust in the network")
    return reasons


class CompatibilityScorer:
    """Stateless scorer; passed into formation and jobs so tests can substitute it."""

    def calculate_match(
        self, founder: MatchableFounder, candidate: MatchableFounder
    ) -> MatchResult:
        """Score one ordered pair. Disqualified pairs get score 0 and an empty breakdown."""
        reason = check_disqualifiers(founder, candidate)
        if reason is not None:
            return MatchResult(
                founder_id=founder.id,
                matched_founder_id=candidate.id,
                score=0,
                breakdown=empty_breakdown(),
                reasons=[],
                disqualified=True,
                disqualify_reason=reason,
            )

        breakdown = calculate_breakdown(founder, candidate)
        raw = sum(breakdown.values())
        score = round_half_up(raw / MAX_RAW_SCORE * 100)
        return MatchResult(
            founder_id=founder.id,
            matched_founder_id=candidate.id,
            score=max(0, min(score, 100)),
            breakdown=breakdown,
            reasons=generate_match_reasons(founder, candidate, breakdown),
        )

    def find_best_matches(
        self,
        founder: MatchableFounder,
        pool: Sequence[MatchableFounder],
        limit: int = 10,
    ) -> list[MatchResult]:
        """Top ``limit`` non-disqualified, non-zero matches, best first.

        Equal scores keep pool order (sorted() is stable).
        """
        if limit <= 0:
            return []
        results = [
            self.calculate_match(founder, candidate)
            for candidate in pool
            if candidate.id != founder.id
        ]
        viable = [r for r in results if not r.disqualified and r.score > 0]
        return sorted(viable, key=lambda r: r.score, reverse=True)[:limit]
