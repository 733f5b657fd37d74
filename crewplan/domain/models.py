"""SQLAlchemy models for the worker/crew snapshot store."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class WorkerRecord(Base):
    """Worker with weekly schedule, rating and default rate."""

    __tablename__ = "workers"

    id = Column(String(36), primary_key=True)
    name = Column(String(200), nullable=False)
    rating = Column(Float, nullable=True)  # 0-5 scale
    hourly_rate = Column(Float, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    timezone = Column(String(64), nullable=False, default="UTC")

    # Weekly schedule: {"monday": {"available", "start", "end", "break"}, ...}
    schedule = Column(JSON, nullable=False)
    schedule_version = Column(Integer, nullable=False, default=1)

    # Relationships
    exceptions = relationship("ExceptionRecord", back_populates="worker", cascade="all, delete-orphan")
    capabilities = relationship("CapabilityRecord", back_populates="worker", cascade="all, delete-orphan")
    commitments = relationship("CommitmentRecord", back_populates="worker", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<WorkerRecord(id={self.id}, name='{self.name}', active={self.is_active})>"


class JobRoleRecord(Base):
    """Named skill/position category with an optional base rate."""

    __tablename__ = "job_roles"

    id = Column(String(36), primary_key=True)
    name = Column(String(100), nullable=False)
    base_rate = Column(Float, nullable=True)

    def __repr__(self) -> str:
        return f"<JobRoleRecord(id={self.id}, name='{self.name}', base_rate={self.base_rate})>"


class CapabilityRecord(Base):
    """A worker's qualification for a job role."""

    __tablename__ = "worker_capabilities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    worker_id = Column(String(36), ForeignKey("workers.id"), nullable=False)
    job_role_id = Column(String(36), ForeignKey("job_roles.id"), nullable=False)
    proficiency_level = Column(Integer, nullable=False, default=1)  # 1-5
    is_active = Column(Boolean, nullable=False, default=True)

    worker = relationship("WorkerRecord", back_populates="capabilities")

    def __repr__(self) -> str:
        return f"<CapabilityRecord(worker={self.worker_id}, role={self.job_role_id}, level={self.proficiency_level})>"


class ExceptionRecord(Base):
    """Dated time-off/holiday entry with approval status."""

    __tablename__ = "worker_exceptions"

    id = Column(String(36), primary_key=True)
    worker_id = Column(String(36), ForeignKey("workers.id"), nullable=False)
    type = Column(String(20), nullable=False)  # vacation, sick, personal, holiday, emergency
    title = Column(String(100), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_full_day = Column(Boolean, nullable=False, default=True)
    start_time = Column(String(5), nullable=True)  # HH:MM, partial-day only
    end_time = Column(String(5), nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    decided_at = Column(DateTime, nullable=True)

    worker = relationship("WorkerRecord", back_populates="exceptions")

    def __repr__(self) -> str:
        return f"<ExceptionRecord(id={self.id}, worker={self.worker_id}, type={self.type}, status={self.status})>"


class CrewRecord(Base):
    """Reusable named bundle of workers."""

    __tablename__ = "crews"

    id = Column(String(36), primary_key=True)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    members = relationship("CrewMemberRecord", back_populates="crew", cascade="all, delete-orphan",
                           order_by="CrewMemberRecord.position")
    capabilities = relationship("CrewCapabilityRecord", back_populates="crew", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<CrewRecord(id={self.id}, name='{self.name}')>"


class CrewMemberRecord(Base):
    __tablename__ = "crew_workers"

    crew_id = Column(String(36), ForeignKey("crews.id"), primary_key=True)
    worker_id = Column(String(36), ForeignKey("workers.id"), primary_key=True)
    position = Column(Integer, nullable=False, default=0)

    crew = relationship("CrewRecord", back_populates="members")


class CrewCapabilityRecord(Base):
    __tablename__ = "crew_role_capabilities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    crew_id = Column(String(36), ForeignKey("crews.id"), nullable=False)
    job_role_id = Column(String(36), ForeignKey("job_roles.id"), nullable=False)
    capacity = Column(Integer, nullable=False, default=1)
    proficiency_level = Column(Integer, nullable=False, default=1)

    crew = relationship("CrewRecord", back_populates="capabilities")


class CommitmentRecord(Base):
    """Existing job or crew booking held by a worker."""

    __tablename__ = "commitments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    worker_id = Column(String(36), ForeignKey("workers.id"), nullable=False)
    job_id = Column(String(36), nullable=True)
    label = Column(String(200), nullable=True)
    kind = Column(String(20), nullable=False, default="job")  # job, crew
    start_time = Column(DateTime, nullable=False)  # naive, worker-local
    end_time = Column(DateTime, nullable=False)

    worker = relationship("WorkerRecord", back_populates="commitments")

    def __repr__(self) -> str:
        return f"<CommitmentRecord(worker={self.worker_id}, job={self.job_id}, {self.start_time}-{self.end_time})>"
