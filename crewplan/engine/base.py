"""Base candidate builder interface that all builders must implement."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from crewplan.config import EngineConfig
from crewplan.domain.types import (
    AssignedWorker,
    AssignmentCandidate,
    Crew,
    ExcludedWorker,
    JobData,
    JobRequirement,
    JobRole,
)
from crewplan.services.scoring import ScoredWorker, WorkerAssessment


@dataclass
class ScoringContext:
    """Everything the builders need for one job, computed once per request."""

    job: JobData
    requirements: List[JobRequirement]
    roles: Mapping[str, JobRole]
    crews: List[Crew]
    assessments: List[WorkerAssessment]
    # ranked[i] holds the eligible, scored workers for requirements[i]
    ranked: List[List[ScoredWorker]]
    duration_hours: float
    excluded: Dict[str, ExcludedWorker] = field(default_factory=dict)
    _sequence: int = 0

    def next_sequence(self) -> int:
        value = self._sequence
        self._sequence += 1
        return value

    def role(self, job_role_id: str) -> Optional[JobRole]:
        return self.roles.get(job_role_id)

    def role_name(self, job_role_id: str) -> str:
        role = self.roles.get(job_role_id)
        return role.name if role else job_role_id

    def assessment_for(self, worker_id: str) -> Optional[WorkerAssessment]:
        for assessment in self.assessments:
            if assessment.worker.id == worker_id:
                return assessment
        return None

    def exclude(self, worker_id: str, reason: str) -> None:
        self.excluded.setdefault(worker_id, ExcludedWorker(worker_id, reason))


def assigned_worker(scored: ScoredWorker, role_name: str, is_lead: bool) -> AssignedWorker:
    return AssignedWorker(
        worker_id=scored.worker.id,
        role_id=scored.role_id,
        is_lead=is_lead,
        score=scored.score,
        suggested_rate=scored.suggested_rate,
        name=scored.worker.name,
        role_name=role_name,
        reasons=tuple(scored.reasons),
    )


class BaseCandidateBuilder(ABC):
    """
    Abstract base class for candidate builders.

    Each builder turns the shared scoring context into zero or more
    assignment candidates of one kind (individual bundles, named crews).
    """

    kind: str | None = None  # Override in subclasses ("individual", "crew")

    @abstractmethod
    def build(self, context: ScoringContext, cfg: EngineConfig) -> List[AssignmentCandidate]:
        """
        Produce candidates for the job in ``context``.

        Args:
            context: Scored workers per requirement, crews, roles
            cfg: EngineConfig with composition limits

        Returns:
            Unranked candidates; totals are filled in by the ranker
        """
        pass

    def get_kind(self) -> str:
        return self.kind or "UNKNOWN"
