"""Suggestion engine with individual and crew candidate builders."""

from .base import BaseCandidateBuilder, ScoringContext
from .crew import CrewCandidateBuilder
from .individual import IndividualCandidateBuilder
from .orchestrator import SuggestionEngine, generate_assignment_suggestions, score_candidates

__all__ = [
    "BaseCandidateBuilder",
    "ScoringContext",
    "IndividualCandidateBuilder",
    "CrewCandidateBuilder",
    "SuggestionEngine",
    "generate_assignment_suggestions",
    "score_candidates",
]
