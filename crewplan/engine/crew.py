"""Crew builder - named crews evaluated as a unit against the job's requirements."""

from __future__ import annotations

import logging
from typing import List, Optional, Set, Tuple

from crewplan.config import EngineConfig
from crewplan.domain.types import (
    AssignedWorker,
    AssignmentCandidate,
    CandidateType,
    Crew,
    JobRequirement,
    RoleCapability,
)
from crewplan.services.ranking import finalize
from crewplan.services.scoring import ScoredWorker, rank_workers, score_worker

from .base import BaseCandidateBuilder, ScoringContext, assigned_worker

logger = logging.getLogger(__name__)


class CrewCandidateBuilder(BaseCandidateBuilder):
    """
    One candidate per crew that can staff at least part of the job.

    A crew satisfies a requirement only when its declared capability covers
    the quantity at the required proficiency and enough of its members are
    individually available and conflict-free. Anything short of that is
    recorded as a conflict on the candidate.
    """

    kind = "crew"

    def build(self, context: ScoringContext, cfg: EngineConfig) -> List[AssignmentCandidate]:
        required_units = sum(req.quantity for req in context.requirements)
        built: List[AssignmentCandidate] = []

        for crew in context.crews:
            workers, conflicts = self._staff_crew(crew, context, cfg)
            if not workers:
                logger.debug("Crew %s cannot staff any requirement: %s", crew.id, conflicts)
                continue
            built.append(AssignmentCandidate(
                type=CandidateType.CREW,
                workers=tuple(workers),
                required_units=required_units,
                duration_hours=context.duration_hours,
                sequence=context.next_sequence(),
                crew_id=crew.id,
                crew_name=crew.name,
                conflicts=tuple(conflicts),
            ))

        # Keep the strongest crews only; final ordering is the ranker's job
        preview = sorted(
            (finalize(c) for c in built),
            key=lambda c: (-c.total_score, c.estimated_cost, c.sequence),
        )
        keep = {c.sequence for c in preview[:cfg.max_crew_candidates]}
        return [c for c in built if c.sequence in keep]

    def _staff_crew(
        self,
        crew: Crew,
        context: ScoringContext,
        cfg: EngineConfig,
    ) -> Tuple[List[AssignedWorker], List[str]]:
        used: Set[str] = set()
        workers: List[AssignedWorker] = []
        conflicts: List[str] = []

        for requirement in context.requirements:
            role_name = context.role_name(requirement.job_role_id)
            capability = crew.capability_for(requirement.job_role_id)

            problem = self._capability_problem(crew, capability, requirement, role_name)
            if capability is None or (
                requirement.min_proficiency_level is not None
                and capability.proficiency_level < requirement.min_proficiency_level
            ):
                conflicts.append(problem)
                continue

            members = self._available_members(crew, capability, requirement, context, cfg, used)
            slots = min(requirement.quantity, capability.capacity)
            picks = members[:slots]
            for scored in picks:
                workers.append(assigned_worker(scored, role_name, is_lead=not workers))
                used.add(scored.worker.id)

            if problem:
                conflicts.append(problem)
            elif len(picks) < requirement.quantity:
                conflicts.append(
                    f"Unfilled role {role_name}: crew {crew.name} has {len(picks)} of "
                    f"{requirement.quantity} members available"
                )
        return workers, conflicts

    @staticmethod
    def _capability_problem(
        crew: Crew,
        capability: Optional[RoleCapability],
        requirement: JobRequirement,
        role_name: str,
    ) -> str:
        if capability is None:
            return f"Unfilled role {role_name}: crew {crew.name} has no capability for this role"
        minimum = requirement.min_proficiency_level
        if minimum is not None and capability.proficiency_level < minimum:
            return (
                f"Unfilled role {role_name}: crew {crew.name} proficiency "
                f"{capability.proficiency_level} below required {minimum}"
            )
        if capability.capacity < requirement.quantity:
            return (
                f"Unfilled role {role_name}: crew {crew.name} capacity "
                f"{capability.capacity} below required {requirement.quantity}"
            )
        return ""

    @staticmethod
    def _available_members(
        crew: Crew,
        capability: RoleCapability,
        requirement: JobRequirement,
        context: ScoringContext,
        cfg: EngineConfig,
        used: Set[str],
    ) -> List[ScoredWorker]:
        """Eligible members scored at the better of their own and the crew's proficiency."""
        scored: List[ScoredWorker] = []
        for member_id in crew.members:
            if member_id in used:
                continue
            assessment = context.assessment_for(member_id)
            if assessment is None or not assessment.eligible:
                continue
            own = assessment.worker.qualification_for(requirement.job_role_id)
            level = max(capability.proficiency_level, own.proficiency_level if own else 0)
            result = score_worker(
                assessment,
                requirement.job_role_id,
                level,
                context.role(requirement.job_role_id),
                cfg,
            )
            if result.suggested_rate is None:
                context.exclude(member_id, "no hourly rate and no role base rate")
                continue
            scored.append(result)
        return rank_workers(scored)
