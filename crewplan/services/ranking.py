"""Suggestion ranking: candidate totals, cost estimate and best-first ordering."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List

from crewplan.domain.types import AssignmentCandidate


def candidate_total_score(candidate: AssignmentCandidate) -> float:
    """
    Quantity-weighted mean of member scores.

    Every required unit counts once; units nobody fills count as zero, so a
    short-staffed candidate never ties a complete one on score alone.
    """
    if not candidate.workers:
        return 0.0
    units = max(candidate.required_units, len(candidate.workers))
    return round(sum(w.score for w in candidate.workers) / units, 2)


def candidate_cost(candidate: AssignmentCandidate) -> float:
    """Sum of suggested rate x job duration over assigned workers."""
    return round(sum(w.suggested_rate * candidate.duration_hours for w in candidate.workers), 2)


def finalize(candidate: AssignmentCandidate) -> AssignmentCandidate:
    return replace(
        candidate,
        total_score=candidate_total_score(candidate),
        estimated_cost=candidate_cost(candidate),
    )


def rank(candidates: Iterable[AssignmentCandidate]) -> List[AssignmentCandidate]:
    """
    Order candidates best first without touching the input.

    Sort: highest total score, then lowest estimated cost, then creation
    order. Crew and individual candidates compete on the same terms.
    """
    finalized = [finalize(c) for c in candidates]
    return sorted(finalized, key=lambda c: (-c.total_score, c.estimated_cost, c.sequence))
