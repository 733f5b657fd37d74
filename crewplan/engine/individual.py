"""Individual builder - ad-hoc teams assembled from the best available workers."""

from __future__ import annotations

import logging
from typing import List, Set, Tuple

from crewplan.config import EngineConfig
from crewplan.domain.types import AssignedWorker, AssignmentCandidate, CandidateType

from .base import BaseCandidateBuilder, ScoringContext, assigned_worker

logger = logging.getLogger(__name__)


class IndividualCandidateBuilder(BaseCandidateBuilder):
    """
    Greedy per-requirement picks, one worker per slot, nobody used twice.

    The first candidate takes the top-ranked workers. Each alternative drops
    the lead of every earlier candidate, giving a genuinely different team.
    """

    kind = "individual"

    def build(self, context: ScoringContext, cfg: EngineConfig) -> List[AssignmentCandidate]:
        candidates: List[AssignmentCandidate] = []
        seen: Set[Tuple[Tuple[str, str], ...]] = set()
        banned: Set[str] = set()
        required_units = sum(req.quantity for req in context.requirements)

        for _ in range(cfg.max_individual_candidates):
            workers, conflicts = self._assemble(context, banned)
            if not workers:
                break

            signature = tuple(sorted((w.worker_id, w.role_id) for w in workers))
            if signature in seen:
                break
            seen.add(signature)

            candidates.append(AssignmentCandidate(
                type=CandidateType.INDIVIDUAL,
                workers=tuple(workers),
                required_units=required_units,
                duration_hours=context.duration_hours,
                sequence=context.next_sequence(),
                conflicts=tuple(conflicts),
            ))
            banned.add(workers[0].worker_id)

        logger.debug("Individual builder produced %d candidates", len(candidates))
        return candidates

    def _assemble(self, context: ScoringContext, banned: Set[str]) -> Tuple[List[AssignedWorker], List[str]]:
        used: Set[str] = set()
        workers: List[AssignedWorker] = []
        conflicts: List[str] = []

        for requirement, ranked in zip(context.requirements, context.ranked):
            role_name = context.role_name(requirement.job_role_id)
            picks = [
                s for s in ranked
                if s.worker.id not in used and s.worker.id not in banned
            ][:requirement.quantity]

            for scored in picks:
                workers.append(assigned_worker(scored, role_name, is_lead=not workers))
                used.add(scored.worker.id)

            if len(picks) < requirement.quantity:
                conflicts.append(
                    f"Unfilled role {role_name}: needs {requirement.quantity}, "
                    f"{len(picks)} qualified and available"
                )
        return workers, conflicts
