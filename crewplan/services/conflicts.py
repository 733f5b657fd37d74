"""Conflict detection between a proposed window and a worker's commitments."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set

from crewplan.domain.errors import MalformedInputError
from crewplan.domain.types import Commitment, Conflict, ConflictKind, TimeWindow, Worker

from .ledger import active_exceptions_on
from .timeplan import localize_commitment, localize_window, window_on


def exception_conflicts(worker: Worker, window: TimeWindow) -> List[Conflict]:
    """Approved exceptions that remove or overlap any part of ``window``."""
    conflicts: List[Conflict] = []
    seen: Set[str] = set()

    for day in window.dates():
        for exc in active_exceptions_on(worker, day):
            if exc.id in seen:
                continue
            if exc.is_full_day:
                hit = True
            else:
                hit = window_on(day, exc.start_time, exc.end_time).overlaps(window)
            if hit:
                seen.add(exc.id)
                conflicts.append(Conflict(
                    kind=ConflictKind.EXCEPTION,
                    message=f"{exc.type.value.capitalize()} on {day.isoformat()}: {exc.title}",
                    source_id=exc.id,
                ))
    return conflicts


def commitment_conflicts(
    worker: Worker,
    window: TimeWindow,
    commitments: Iterable[Commitment],
    exclude_job_id: Optional[str] = None,
) -> List[Conflict]:
    """Existing bookings of this worker that overlap ``window``."""
    conflicts: List[Conflict] = []
    for commitment in commitments:
        if commitment.worker_id != worker.id:
            continue
        if exclude_job_id is not None and commitment.job_id == exclude_job_id:
            continue
        booked = commitment.window
        if booked.overlaps(window):
            label = commitment.label or commitment.job_id or commitment.kind
            conflicts.append(Conflict(
                kind=ConflictKind.COMMITMENT,
                message=(
                    f"Already assigned to {commitment.kind} {label} "
                    f"({booked.start:%Y-%m-%d %H:%M}-{booked.end:%H:%M})"
                ),
                source_id=commitment.job_id,
            ))
    return conflicts


def find_conflicts(
    worker: Worker,
    window: TimeWindow,
    commitments: Iterable[Commitment] = (),
    exclude_job_id: Optional[str] = None,
) -> List[Conflict]:
    """
    Report every reason ``worker`` cannot take ``window``.

    Both checks always run, so a worker may carry several conflicts at once.
    An empty list means no conflict.

    Args:
        worker: Worker snapshot with its exception ledger
        window: Proposed window, half-open; aware datetimes are converted
            to the worker's zone, naive ones are taken as local
        commitments: Existing bookings supplied by the caller, converted the
            same way
        exclude_job_id: Job being edited; its own bookings are ignored

    Raises:
        MalformedInputError: Missing worker/window or an inverted commitment
    """
    if worker is None:
        raise MalformedInputError("Worker is required")
    if window is None:
        raise MalformedInputError("Time window is required")

    local = localize_window(window, worker.timezone)
    own = [
        localize_commitment(c, worker.timezone)
        for c in commitments
        if c.worker_id == worker.id
    ]
    return (
        exception_conflicts(worker, local)
        + commitment_conflicts(worker, local, own, exclude_job_id)
    )


def group_commitments(commitments: Iterable[Commitment]) -> Dict[str, List[Commitment]]:
    """Index commitments by worker id."""
    by_worker: Dict[str, List[Commitment]] = defaultdict(list)
    for commitment in commitments:
        by_worker[commitment.worker_id].append(commitment)
    return dict(by_worker)
