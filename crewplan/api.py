"""External interface of the engine.

Four pure entry points for the surrounding application. Inputs are
read-only snapshots supplied by the caller; nothing here touches storage.
Aware datetimes are accepted and converted to each worker's local time before
any comparison with a schedule; naive datetimes are taken as already local.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from crewplan.config import EngineConfig
from crewplan.domain.errors import MalformedInputError, ValidationResult
from crewplan.domain.types import (
    Commitment,
    Conflict,
    Crew,
    JobData,
    JobRequirement,
    JobRole,
    SuggestionResult,
    TimeWindow,
    Worker,
)
from crewplan.engine.orchestrator import SuggestionEngine
from crewplan.services import conflicts as _conflicts
from crewplan.services import ledger as _ledger
from crewplan.services import schedule as _schedule
from crewplan.services.timeplan import to_local_naive

WorkerPool = Union[Mapping[str, Worker], Sequence[Worker]]


def _lookup(workers: WorkerPool, worker_id: str) -> Worker:
    if workers is None:
        raise MalformedInputError("Worker pool is required")
    if isinstance(workers, Mapping):
        worker = workers.get(worker_id)
    else:
        worker = next((w for w in workers if w is not None and w.id == worker_id), None)
    if worker is None:
        raise MalformedInputError(f"Unknown worker {worker_id!r}")
    return worker


def validate_and_normalize_schedule(raw: Any, config: EngineConfig | None = None) -> ValidationResult:
    """Validate a raw weekly schedule; returns the schedule or every error."""
    return _schedule.validate_and_normalize_schedule(raw, config)


def add_exception(
    workers: WorkerPool,
    worker_id: str,
    draft: Mapping[str, Any],
    now: datetime,
    config: EngineConfig | None = None,
) -> ValidationResult:
    """Add a pending exception to a worker's ledger; returns it or every error."""
    worker = _lookup(workers, worker_id)
    return _ledger.add_exception(worker, draft, to_local_naive(now, worker.timezone), config)


def find_conflicts(
    workers: WorkerPool,
    worker_id: str,
    window: TimeWindow,
    commitments: Iterable[Commitment] = (),
    exclude_job_id: Optional[str] = None,
) -> List[Conflict]:
    """Every exception and booking that collides with ``window`` for one worker."""
    worker = _lookup(workers, worker_id)
    if window is None:
        raise MalformedInputError("Time window is required")
    return _conflicts.find_conflicts(worker, window, commitments, exclude_job_id)


def generate_assignment_suggestions(
    job: JobData,
    requirements: Sequence[JobRequirement] | None,
    worker_pool: Sequence[Worker],
    crew_pool: Iterable[Crew] = (),
    commitments: Iterable[Commitment] = (),
    roles: Mapping[str, JobRole] | None = None,
    config: EngineConfig | None = None,
) -> SuggestionResult:
    """Ranked individual and crew candidates for one job."""
    if isinstance(worker_pool, Mapping):
        worker_pool = list(worker_pool.values())
    return SuggestionEngine(config).generate(
        job, requirements, worker_pool, crew_pool, commitments, roles
    )
