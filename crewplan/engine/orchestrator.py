"""Orchestrator - scores a worker pool against one job and ranks the resulting candidates."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from crewplan.config import DEFAULT_CONFIG, EngineConfig
from crewplan.domain.errors import MalformedInputError
from crewplan.domain.types import (
    AssignmentCandidate,
    Commitment,
    Crew,
    JobData,
    JobRequirement,
    JobRole,
    SuggestionResult,
    UnsatisfiableRole,
    Worker,
)
from crewplan.services.ranking import rank
from crewplan.services.scoring import (
    ScoredWorker,
    WorkerAssessment,
    assess_worker,
    qualified_level,
    rank_workers,
    score_worker,
)

from .base import BaseCandidateBuilder, ScoringContext
from .crew import CrewCandidateBuilder
from .individual import IndividualCandidateBuilder

logger = logging.getLogger(__name__)


def check_request(
    job: JobData,
    requirements: Sequence[JobRequirement],
    workers: Sequence[Worker],
) -> None:
    """
    Reject malformed input before any scoring starts.

    Raises:
        MalformedInputError: Missing job, inverted window, empty or invalid
            requirements, missing or duplicate workers
    """
    if job is None:
        raise MalformedInputError("Job is required")
    _ = job.window  # raises on a missing or inverted window

    if not requirements:
        raise MalformedInputError("Job has no role requirements")
    for req in requirements:
        if req is None or not req.job_role_id:
            raise MalformedInputError("Requirement without a job role")
        if isinstance(req.quantity, bool) or not isinstance(req.quantity, int) or req.quantity <= 0:
            raise MalformedInputError(f"Quantity for role {req.job_role_id} must be a positive integer")
        if req.min_proficiency_level is not None and req.min_proficiency_level < 0:
            raise MalformedInputError(f"Minimum proficiency for role {req.job_role_id} is negative")

    if workers is None:
        raise MalformedInputError("Worker pool is required")
    seen = set()
    for worker in workers:
        if worker is None:
            raise MalformedInputError("Worker pool contains an empty entry")
        if worker.id in seen:
            raise MalformedInputError(f"Worker {worker.id} appears twice in the pool")
        seen.add(worker.id)


class SuggestionEngine:
    """
    Coordinates per-worker scoring and the candidate builders for one job.

    Scoring of individual workers is independent and runs on a thread pool;
    results are merged in pool order, so the outcome never depends on which
    task finished first. Any failure aborts the whole request.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        builders: List[BaseCandidateBuilder] | None = None,
    ):
        """
        Args:
            config: Engine configuration (default: built-in defaults)
            builders: Candidate builders in creation order
                (default: individual bundles, then named crews)
        """
        self.config = config or DEFAULT_CONFIG
        self.builders = builders or [IndividualCandidateBuilder(), CrewCandidateBuilder()]

    def _assess_all(
        self,
        job: JobData,
        workers: Sequence[Worker],
        commitments: List[Commitment],
        exclude_job_id: Optional[str],
    ) -> List[WorkerAssessment]:
        window = job.window

        def _assess(item: Tuple[int, Worker]) -> WorkerAssessment:
            index, worker = item
            return assess_worker(worker, index, window, commitments, exclude_job_id)

        items = list(enumerate(workers))
        if self.config.max_workers <= 1 or len(items) <= 1:
            return [_assess(item) for item in items]
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
            return list(pool.map(_assess, items))

    def _rank_for_requirement(
        self,
        requirement: JobRequirement,
        role: Optional[JobRole],
        context: ScoringContext,
    ) -> List[ScoredWorker]:
        scored: List[ScoredWorker] = []
        for assessment in context.assessments:
            if not assessment.eligible:
                continue
            level = qualified_level(assessment.worker, requirement)
            if level is None:
                continue
            result = score_worker(assessment, requirement.job_role_id, level, role, self.config)
            if result.suggested_rate is None:
                context.exclude(assessment.worker.id, "no hourly rate and no role base rate")
                continue
            scored.append(result)
        return rank_workers(scored)

    def score_candidates(
        self,
        job: JobData,
        requirements: Sequence[JobRequirement] | None,
        workers: Sequence[Worker],
        crews: Iterable[Crew] = (),
        commitments: Iterable[Commitment] = (),
        roles: Mapping[str, JobRole] | None = None,
        exclude_job_id: Optional[str] = None,
    ) -> Tuple[List[AssignmentCandidate], ScoringContext]:
        """
        Build unranked candidates for a job.

        Args:
            job: Job window and location
            requirements: Role slots to fill (default: job.requirements)
            workers: Worker pool snapshot
            crews: Crew pool snapshot
            commitments: Existing bookings for any worker in the pool
            roles: Job role catalog (names, base rates) keyed by id
            exclude_job_id: Job being edited (default: job.id)

        Returns:
            (candidates, context) - context carries per-requirement rankings
            and the workers that could not be scored
        """
        requirements = list(requirements if requirements is not None else (job.requirements if job else ()))
        check_request(job, requirements, workers)
        commitments = list(commitments)
        for commitment in commitments:
            _ = commitment.window  # raises on an inverted booking
        if exclude_job_id is None:
            exclude_job_id = job.id

        assessments = self._assess_all(job, workers, commitments, exclude_job_id)
        for assessment in assessments:
            if not assessment.eligible:
                logger.debug("Worker %s unavailable: %s", assessment.worker.id, assessment.reason)

        context = ScoringContext(
            job=job,
            requirements=requirements,
            roles=dict(roles or {}),
            crews=list(crews),
            assessments=assessments,
            ranked=[],
            duration_hours=job.window.duration_hours,
        )
        context.ranked = [
            self._rank_for_requirement(req, context.role(req.job_role_id), context)
            for req in requirements
        ]

        candidates: List[AssignmentCandidate] = []
        for builder in self.builders:
            built = builder.build(context, self.config)
            logger.debug("%s builder produced %d candidates", builder.get_kind(), len(built))
            candidates.extend(built)
        return candidates, context

    def generate(
        self,
        job: JobData,
        requirements: Sequence[JobRequirement] | None,
        workers: Sequence[Worker],
        crews: Iterable[Crew] = (),
        commitments: Iterable[Commitment] = (),
        roles: Mapping[str, JobRole] | None = None,
        exclude_job_id: Optional[str] = None,
    ) -> SuggestionResult:
        """Score, compose and rank; the full suggestion pipeline for one job."""
        candidates, context = self.score_candidates(
            job, requirements, workers, crews, commitments, roles, exclude_job_id
        )

        unsatisfiable = [
            UnsatisfiableRole(
                job_role_id=req.job_role_id,
                role_name=context.role_name(req.job_role_id),
                required=req.quantity,
                available=len(ranked),
            )
            for req, ranked in zip(context.requirements, context.ranked)
            if len(ranked) < req.quantity
        ]

        result = SuggestionResult(
            candidates=rank(candidates),
            unsatisfiable=unsatisfiable,
            excluded=list(context.excluded.values()),
        )
        logger.info(
            "Scored %d workers and %d crews: %d candidates, %d unsatisfiable roles, %d excluded",
            len(context.assessments),
            len(context.crews),
            len(result.candidates),
            len(result.unsatisfiable),
            len(result.excluded),
        )
        return result


def score_candidates(
    job: JobData,
    requirements: Sequence[JobRequirement] | None,
    workers: Sequence[Worker],
    crews: Iterable[Crew] = (),
    commitments: Iterable[Commitment] = (),
    roles: Mapping[str, JobRole] | None = None,
    config: EngineConfig | None = None,
) -> List[AssignmentCandidate]:
    """Convenience wrapper returning unranked candidates only."""
    candidates, _ = SuggestionEngine(config).score_candidates(
        job, requirements, workers, crews, commitments, roles
    )
    return candidates


def generate_assignment_suggestions(
    job: JobData,
    requirements: Sequence[JobRequirement] | None,
    workers: Sequence[Worker],
    crews: Iterable[Crew] = (),
    commitments: Iterable[Commitment] = (),
    roles: Mapping[str, JobRole] | None = None,
    config: EngineConfig | None = None,
    exclude_job_id: Optional[str] = None,
) -> SuggestionResult:
    """
    Convenience function to run the suggestion engine once.

    Returns:
        SuggestionResult with candidates ranked best first
    """
    engine = SuggestionEngine(config)
    return engine.generate(job, requirements, workers, crews, commitments, roles, exclude_job_id)
