"""Repository classes for the snapshot store and record -> domain conversion."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from .errors import ExceptionTransitionError, StaleScheduleError
from .models import (
    CapabilityRecord,
    CommitmentRecord,
    CrewRecord,
    ExceptionRecord,
    JobRoleRecord,
    WorkerRecord,
)
from .types import (
    Commitment,
    Crew,
    ExceptionStatus,
    ExceptionType,
    JobRole,
    Qualification,
    RoleCapability,
    ScheduleException,
    TimeOfDay,
    WeeklySchedule,
    Worker,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Record -> domain conversion
# ---------------------------------------------------------------------------

def _schedule_from_json(raw: dict, worker_id: str) -> WeeklySchedule:
    # Imported here: services depend on the domain package, not the reverse
    from crewplan.services.schedule import validate_and_normalize_schedule

    result = validate_and_normalize_schedule(raw)
    if not result.ok:
        raise ValueError(f"Stored schedule for worker {worker_id} is invalid: {result.messages()}")
    return result.value


def exception_to_domain(record: ExceptionRecord) -> ScheduleException:
    return ScheduleException(
        id=record.id,
        type=ExceptionType(record.type),
        title=record.title,
        start_date=record.start_date,
        end_date=record.end_date,
        is_full_day=bool(record.is_full_day),
        status=ExceptionStatus(record.status),
        created_at=record.created_at,
        start_time=TimeOfDay.parse(record.start_time) if record.start_time else None,
        end_time=TimeOfDay.parse(record.end_time) if record.end_time else None,
        notes=record.notes,
        decided_at=record.decided_at,
    )


def exception_to_record(worker_id: str, exc: ScheduleException) -> ExceptionRecord:
    return ExceptionRecord(
        id=exc.id,
        worker_id=worker_id,
        type=exc.type.value,
        title=exc.title,
        start_date=exc.start_date,
        end_date=exc.end_date,
        is_full_day=exc.is_full_day,
        start_time=str(exc.start_time) if exc.start_time else None,
        end_time=str(exc.end_time) if exc.end_time else None,
        status=exc.status.value,
        notes=exc.notes,
        created_at=exc.created_at,
        decided_at=exc.decided_at,
    )


def worker_to_domain(record: WorkerRecord) -> Worker:
    return Worker(
        id=record.id,
        name=record.name,
        weekly_schedule=_schedule_from_json(record.schedule, record.id),
        exceptions=[exception_to_domain(e) for e in record.exceptions],
        rating=record.rating,
        hourly_rate=record.hourly_rate,
        is_active=bool(record.is_active),
        qualifications=[
            Qualification(c.job_role_id, int(c.proficiency_level), bool(c.is_active))
            for c in record.capabilities
        ],
        timezone=record.timezone or "UTC",
    )


def crew_to_domain(record: CrewRecord) -> Crew:
    return Crew(
        id=record.id,
        name=record.name,
        members=tuple(m.worker_id for m in record.members),
        role_capabilities=tuple(
            RoleCapability(c.job_role_id, int(c.capacity), int(c.proficiency_level))
            for c in record.capabilities
        ),
    )


def commitment_to_domain(record: CommitmentRecord) -> Commitment:
    return Commitment(
        worker_id=record.worker_id,
        start=record.start_time,
        end=record.end_time,
        job_id=record.job_id,
        label=record.label or "",
        kind=record.kind or "job",
    )


def role_to_domain(record: JobRoleRecord) -> JobRole:
    return JobRole(id=record.id, name=record.name, base_rate=record.base_rate)


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------

class WorkerRepository:
    """Repository for worker data access."""

    @staticmethod
    def get_all(session: Session) -> List[WorkerRecord]:
        """Get all workers."""
        return session.query(WorkerRecord).order_by(WorkerRecord.id).all()

    @staticmethod
    def get_active(session: Session) -> List[WorkerRecord]:
        """Get active workers only."""
        return (
            session.query(WorkerRecord)
            .filter(WorkerRecord.is_active.is_(True))
            .order_by(WorkerRecord.id)
            .all()
        )

    @staticmethod
    def get_by_id(session: Session, worker_id: str) -> Optional[WorkerRecord]:
        """Get worker by ID."""
        return session.query(WorkerRecord).filter(WorkerRecord.id == worker_id).first()

    @staticmethod
    def create(session: Session, worker: WorkerRecord) -> WorkerRecord:
        """Create a new worker."""
        session.add(worker)
        session.commit()
        session.refresh(worker)
        return worker

    @staticmethod
    def bulk_create(session: Session, workers: List[WorkerRecord]) -> None:
        """Create multiple workers."""
        session.add_all(workers)
        session.commit()

    @staticmethod
    def save_schedule(
        session: Session,
        worker_id: str,
        schedule: WeeklySchedule,
        expected_version: int,
    ) -> int:
        """
        Persist a validated schedule if nobody else wrote since it was read.

        Args:
            session: Database session
            worker_id: Worker to update
            schedule: Already validated WeeklySchedule
            expected_version: schedule_version the caller read

        Returns:
            The new schedule_version

        Raises:
            StaleScheduleError: Version moved on, or unknown worker
        """
        updated = (
            session.query(WorkerRecord)
            .filter(WorkerRecord.id == worker_id, WorkerRecord.schedule_version == expected_version)
            .update(
                {
                    WorkerRecord.schedule: schedule.to_dict(),
                    WorkerRecord.schedule_version: expected_version + 1,
                },
                synchronize_session="fetch",
            )
        )
        if updated != 1:
            session.rollback()
            raise StaleScheduleError(
                f"Schedule for worker {worker_id} changed since version {expected_version}"
            )
        session.commit()
        return expected_version + 1


class ExceptionRepository:
    """Repository for schedule exceptions."""

    @staticmethod
    def get_by_worker(session: Session, worker_id: str) -> List[ExceptionRecord]:
        return (
            session.query(ExceptionRecord)
            .filter(ExceptionRecord.worker_id == worker_id)
            .order_by(ExceptionRecord.start_date, ExceptionRecord.created_at)
            .all()
        )

    @staticmethod
    def create(session: Session, worker_id: str, exc: ScheduleException) -> ExceptionRecord:
        record = exception_to_record(worker_id, exc)
        session.add(record)
        session.commit()
        return record

    @staticmethod
    def update_status(session: Session, exc: ScheduleException) -> None:
        """Store a status decision made by ``services.ledger.set_status``."""
        record = session.get(ExceptionRecord, exc.id)
        if record is None:
            raise ExceptionTransitionError(f"Unknown exception {exc.id}")
        record.status = exc.status.value
        record.decided_at = exc.decided_at or datetime.utcnow()
        session.commit()


class JobRoleRepository:
    """Repository for the job role catalog."""

    @staticmethod
    def get_all(session: Session) -> List[JobRoleRecord]:
        return session.query(JobRoleRecord).order_by(JobRoleRecord.id).all()

    @staticmethod
    def bulk_create(session: Session, roles: List[JobRoleRecord]) -> None:
        session.add_all(roles)
        session.commit()


class CrewRepository:
    """Repository for crews with members and role capabilities."""

    @staticmethod
    def get_active(session: Session) -> List[CrewRecord]:
        return (
            session.query(CrewRecord)
            .filter(CrewRecord.is_active.is_(True))
            .order_by(CrewRecord.id)
            .all()
        )

    @staticmethod
    def create(session: Session, crew: CrewRecord) -> CrewRecord:
        session.add(crew)
        session.commit()
        session.refresh(crew)
        return crew


class CommitmentRepository:
    """Repository for existing bookings."""

    @staticmethod
    def get_overlapping(session: Session, start: datetime, end: datetime) -> List[CommitmentRecord]:
        """Bookings overlapping [start, end), any worker."""
        return (
            session.query(CommitmentRecord)
            .filter(CommitmentRecord.start_time < end, CommitmentRecord.end_time > start)
            .order_by(CommitmentRecord.worker_id, CommitmentRecord.start_time)
            .all()
        )

    @staticmethod
    def get_by_worker(session: Session, worker_id: str) -> List[CommitmentRecord]:
        return (
            session.query(CommitmentRecord)
            .filter(CommitmentRecord.worker_id == worker_id)
            .order_by(CommitmentRecord.start_time)
            .all()
        )

    @staticmethod
    def bulk_create(session: Session, commitments: List[CommitmentRecord]) -> None:
        session.add_all(commitments)
        session.commit()


@dataclass
class PoolSnapshot:
    """Read-only inputs for one suggestion request."""

    workers: List[Worker] = field(default_factory=list)
    crews: List[Crew] = field(default_factory=list)
    commitments: List[Commitment] = field(default_factory=list)
    roles: Dict[str, JobRole] = field(default_factory=dict)


def load_snapshot(session: Session, start: datetime, end: datetime) -> PoolSnapshot:
    """
    Load everything the engine needs for a job window.

    Args:
        session: Database session
        start: Job start (naive local)
        end: Job end (naive local)

    Returns:
        PoolSnapshot of active workers, active crews, overlapping bookings and roles
    """
    snapshot = PoolSnapshot(
        workers=[worker_to_domain(r) for r in WorkerRepository.get_active(session)],
        crews=[crew_to_domain(r) for r in CrewRepository.get_active(session)],
        commitments=[commitment_to_domain(r) for r in CommitmentRepository.get_overlapping(session, start, end)],
        roles={r.id: role_to_domain(r) for r in JobRoleRepository.get_all(session)},
    )
    logger.info(
        "Loaded snapshot: %d workers, %d crews, %d commitments, %d roles",
        len(snapshot.workers),
        len(snapshot.crews),
        len(snapshot.commitments),
        len(snapshot.roles),
    )
    return snapshot
