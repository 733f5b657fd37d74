"""Per-worker scoring for a job role: shift fit, rating, proficiency and rate."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from crewplan.config import DEFAULT_CONFIG, EngineConfig
from crewplan.domain.types import (
    Commitment,
    Conflict,
    JobRequirement,
    JobRole,
    TimeWindow,
    Worker,
)

from .conflicts import find_conflicts
from .schedule import is_available_for_window, shift_margin_minutes
from .timeplan import localize_window

logger = logging.getLogger(__name__)


@dataclass
class WorkerAssessment:
    """Role-independent facts about one worker for one job window."""

    worker: Worker
    index: int
    window: TimeWindow
    available: bool
    margin_minutes: Optional[int] = None
    conflicts: List[Conflict] = field(default_factory=list)
    reason: str = ""

    @property
    def eligible(self) -> bool:
        return self.available and not self.conflicts


@dataclass
class ScoredWorker:
    worker: Worker
    index: int
    role_id: str
    score: float
    availability_fit: float
    rating: float
    proficiency_level: int
    suggested_rate: Optional[float]
    reasons: List[str] = field(default_factory=list)


def availability_fit(margin_minutes: int, cfg: EngineConfig = DEFAULT_CONFIG) -> float:
    """
    Score how comfortably a job sits inside the shift.

    100 once the job is at least ``comfort_margin_minutes`` away from both
    shift edges, falling linearly to ``edge_fit_floor`` at the edge.
    """
    if cfg.comfort_margin_minutes <= 0:
        return 100.0
    ratio = min(1.0, max(0, margin_minutes) / cfg.comfort_margin_minutes)
    return cfg.edge_fit_floor + (100.0 - cfg.edge_fit_floor) * ratio


def rating_normalized(rating: Optional[float], cfg: EngineConfig = DEFAULT_CONFIG) -> float:
    value = cfg.default_rating if rating is None else rating
    return max(0.0, min(100.0, value / cfg.max_rating * 100.0))


def proficiency_normalized(level: int, cfg: EngineConfig = DEFAULT_CONFIG) -> float:
    return max(0.0, min(100.0, level / cfg.max_proficiency * 100.0))


def composite_score(fit: float, rating: float, proficiency: float, cfg: EngineConfig = DEFAULT_CONFIG) -> float:
    w = cfg.weights
    return round(w.availability * fit + w.rating * rating + w.proficiency * proficiency, 2)


def suggested_rate(worker: Worker, role: Optional[JobRole], cfg: EngineConfig = DEFAULT_CONFIG) -> Optional[float]:
    """Worker's rate, raised to the role's base rate when that is higher."""
    rates = [r for r in (worker.hourly_rate, role.base_rate if role else None) if r is not None]
    if not rates:
        return cfg.default_hourly_rate
    return max(rates)


def qualified_level(worker: Worker, requirement: JobRequirement) -> Optional[int]:
    """Proficiency the worker brings to the requirement, or None if unqualified."""
    qualification = worker.qualification_for(requirement.job_role_id)
    if qualification is None:
        return None
    minimum = requirement.min_proficiency_level
    if minimum is not None and qualification.proficiency_level < minimum:
        return None
    return qualification.proficiency_level


def assess_worker(
    worker: Worker,
    index: int,
    window: TimeWindow,
    commitments: Iterable[Commitment] = (),
    exclude_job_id: Optional[str] = None,
) -> WorkerAssessment:
    """
    Check schedule fit and conflicts for one worker.

    Args:
        worker: Worker snapshot
        index: Position in the caller's pool (used for deterministic ordering)
        window: Job window; aware datetimes are converted to the worker's zone
        commitments: Existing bookings (any worker; filtered by id)
        exclude_job_id: Job being edited

    Returns:
        WorkerAssessment
    """
    local = localize_window(window, worker.timezone)

    if not worker.is_active:
        return WorkerAssessment(worker, index, local, available=False, reason="inactive")

    conflicts = find_conflicts(worker, local, commitments, exclude_job_id)
    available = is_available_for_window(worker, local)
    margin = shift_margin_minutes(worker, local) if available else None

    reason = ""
    if conflicts:
        reason = "; ".join(c.message for c in conflicts)
    elif not available:
        reason = "outside weekly schedule"
    return WorkerAssessment(worker, index, local, available, margin, conflicts, reason)


def score_worker(
    assessment: WorkerAssessment,
    role_id: str,
    proficiency_level: int,
    role: Optional[JobRole] = None,
    cfg: EngineConfig = DEFAULT_CONFIG,
) -> ScoredWorker:
    """Weighted composite of shift fit, rating and proficiency, each on 0-100."""
    worker = assessment.worker
    fit = availability_fit(assessment.margin_minutes or 0, cfg)
    rating = rating_normalized(worker.rating, cfg)
    proficiency = proficiency_normalized(proficiency_level, cfg)
    role_name = role.name if role else role_id

    reasons = [f"Proficiency {proficiency_level}/{cfg.max_proficiency} in {role_name}"]
    if worker.rating is not None:
        reasons.append(f"Rating {worker.rating:g}/{cfg.max_rating:g}")
    else:
        reasons.append("No rating on file")
    if fit >= 100.0:
        reasons.append("Job sits comfortably inside shift")
    else:
        reasons.append(f"Job runs close to shift edge (fit {fit:.0f})")

    result_score = composite_score(fit, rating, proficiency, cfg)
    logger.debug("Worker %s scored %.2f for role %s", worker.id, result_score, role_id)

    return ScoredWorker(
        worker=worker,
        index=assessment.index,
        role_id=role_id,
        score=result_score,
        availability_fit=fit,
        rating=rating,
        proficiency_level=proficiency_level,
        suggested_rate=suggested_rate(worker, role, cfg),
        reasons=reasons,
    )


def rank_workers(scored: Iterable[ScoredWorker]) -> List[ScoredWorker]:
    """Best first; ties on score go to the higher rating, then pool order."""
    return sorted(scored, key=lambda s: (-s.score, -s.rating, s.index))
