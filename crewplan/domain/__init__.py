"""Domain types, errors, models and data access layer."""

from .errors import (
    ExceptionTransitionError,
    MalformedInputError,
    StaleScheduleError,
    ValidationError,
    ValidationResult,
)
from .models import Base, CommitmentRecord, CrewRecord, ExceptionRecord, JobRoleRecord, WorkerRecord
from .repositories import (
    CommitmentRepository,
    CrewRepository,
    ExceptionRepository,
    JobRoleRepository,
    WorkerRepository,
    load_snapshot,
)

__all__ = [
    "ExceptionTransitionError",
    "MalformedInputError",
    "StaleScheduleError",
    "ValidationError",
    "ValidationResult",
    "Base",
    "CommitmentRecord",
    "CrewRecord",
    "ExceptionRecord",
    "JobRoleRecord",
    "WorkerRecord",
    "CommitmentRepository",
    "CrewRepository",
    "ExceptionRepository",
    "JobRoleRepository",
    "WorkerRepository",
    "load_snapshot",
]
