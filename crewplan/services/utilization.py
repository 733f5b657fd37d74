"""Weekly utilization: booked hours against scheduled hours, and fairness."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from crewplan.config import DEFAULT_CONFIG, EngineConfig
from crewplan.domain.errors import MalformedInputError
from crewplan.domain.types import Commitment, Worker

from .conflicts import group_commitments
from .schedule import weekly_hours
from .timeplan import localize_commitment

logger = logging.getLogger(__name__)


class UtilizationStatus(str, Enum):
    LOW = "low"
    BALANCED = "balanced"
    HIGH = "high"
    OVERLOADED = "overloaded"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    UtilizationStatus.LOW: "Available",
    UtilizationStatus.BALANCED: "Balanced",
    UtilizationStatus.HIGH: "Busy",
    UtilizationStatus.OVERLOADED: "Overloaded",
}


@dataclass(frozen=True)
class WorkerUtilization:
    worker_id: str
    name: str
    booked_hours: float
    target_hours: float
    utilization_percentage: float
    bookings: int
    fairness_score: float
    status: UtilizationStatus
    is_active: bool = True

    def __str__(self) -> str:
        return (
            f"{self.booked_hours:.1f}h / {self.target_hours:g}h "
            f"({self.utilization_percentage:.0f}%)"
        )


@dataclass(frozen=True)
class UtilizationSummary:
    total_workers: int
    average_utilization: float
    most_utilized: Optional[WorkerUtilization]
    least_utilized: Optional[WorkerUtilization]
    on_target_count: int


def week_range(day: date) -> Tuple[datetime, datetime]:
    """Monday 00:00 of ``day``'s week and the following Monday 00:00."""
    monday = day - timedelta(days=day.weekday())
    start = datetime.combine(monday, time(0, 0))
    return start, start + timedelta(days=7)


def utilization_status(percentage: float, cfg: EngineConfig = DEFAULT_CONFIG) -> UtilizationStatus:
    bands = cfg.utilization
    if percentage < bands.low_below:
        return UtilizationStatus.LOW
    if percentage < bands.balanced_below:
        return UtilizationStatus.BALANCED
    if percentage < bands.busy_below:
        return UtilizationStatus.HIGH
    return UtilizationStatus.OVERLOADED


def fairness_adjusted_score(
    base_score: float,
    utilization_percentage: float,
    weight: Optional[float] = None,
    cfg: EngineConfig = DEFAULT_CONFIG,
) -> float:
    """
    Blend a score with a bonus for lightly booked workers.

    Args:
        base_score: Score on 0-100
        utilization_percentage: Booked share of scheduled hours
        weight: Share given to the fairness bonus; defaults to config

    Returns:
        Score clamped to 0-100
    """
    if weight is None:
        weight = cfg.utilization.fairness_weight
    bonus = max(0.0, 100.0 - utilization_percentage)
    blended = base_score * (1.0 - weight) + bonus * weight
    return round(min(100.0, max(0.0, blended)), 2)


def worker_utilization(
    worker: Worker,
    commitments: Iterable[Commitment],
    week_of: date,
    cfg: EngineConfig = DEFAULT_CONFIG,
) -> WorkerUtilization:
    """
    Booked hours for one worker in the week containing ``week_of``.

    A booking counts toward the week its local start falls in, with its full
    duration. Target hours are the net hours of the weekly schedule.
    """
    if worker is None:
        raise MalformedInputError("Worker is required")
    start, end = week_range(week_of)

    booked = 0.0
    count = 0
    for commitment in commitments:
        if commitment.worker_id != worker.id:
            continue
        local = localize_commitment(commitment, worker.timezone)
        if start <= local.start < end:
            booked += local.window.duration_hours
            count += 1

    target = weekly_hours(worker.weekly_schedule) or cfg.utilization.default_target_hours
    percentage = round(booked / target * 100.0, 2)
    return WorkerUtilization(
        worker_id=worker.id,
        name=worker.name,
        booked_hours=round(booked, 2),
        target_hours=target,
        utilization_percentage=percentage,
        bookings=count,
        fairness_score=round(max(0.0, 100.0 - percentage), 2),
        status=utilization_status(percentage, cfg),
        is_active=worker.is_active,
    )


def team_utilization(
    workers: Iterable[Worker],
    commitments: Iterable[Commitment],
    week_of: date,
    cfg: EngineConfig = DEFAULT_CONFIG,
) -> List[WorkerUtilization]:
    """Active workers, least utilized first; ties keep pool order."""
    by_worker = group_commitments(commitments)
    result = [
        worker_utilization(worker, by_worker.get(worker.id, []), week_of, cfg)
        for worker in workers
        if worker is not None and worker.is_active
    ]
    result.sort(key=lambda u: u.utilization_percentage)
    logger.debug("Computed utilization for %d workers", len(result))
    return result


def summarize_utilization(
    utilizations: List[WorkerUtilization],
    cfg: EngineConfig = DEFAULT_CONFIG,
) -> UtilizationSummary:
    """Team summary over the output of ``team_utilization``."""
    if not utilizations:
        return UtilizationSummary(0, 0.0, None, None, 0)

    average = sum(u.utilization_percentage for u in utilizations) / len(utilizations)
    ordered = sorted(utilizations, key=lambda u: u.utilization_percentage)
    # Between the balanced and busy band edges, inclusive
    on_target = sum(
        1 for u in utilizations
        if cfg.utilization.balanced_below <= u.utilization_percentage <= cfg.utilization.busy_below
    )
    return UtilizationSummary(
        total_workers=len(utilizations),
        average_utilization=round(average, 2),
        most_utilized=ordered[-1],
        least_utilized=ordered[0],
        on_target_count=on_target,
    )
