"""CSV import utilities to load data into database."""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
from sqlalchemy.orm import Session

from crewplan.domain.models import (
    CapabilityRecord,
    CommitmentRecord,
    CrewCapabilityRecord,
    CrewMemberRecord,
    CrewRecord,
    JobRoleRecord,
    WorkerRecord,
)
from crewplan.services.schedule import schedule_template

logger = logging.getLogger(__name__)

_TRUE_VALUES = ["TRUE", "T", "1", "YES", "Y"]


def _read(csv_path: str | Path) -> pd.DataFrame:
    df = pd.read_csv(csv_path, dtype=str)
    # Normalize column names
    df.columns = df.columns.str.lower().str.strip()
    return df


def _optional_float(row: pd.Series, column: str) -> float | None:
    value = row.get(column)
    return float(value) if pd.notna(value) and str(value).strip() != "" else None


def _flag(row: pd.Series, column: str, default: bool = True) -> bool:
    value = row.get(column)
    if pd.isna(value):
        return default
    return str(value).strip().upper() in _TRUE_VALUES


def import_job_roles_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import the job role catalog.

    Columns: job_role_id, name, base_rate (optional)

    Returns:
        Number of roles imported
    """
    df = _read(csv_path)
    roles = [
        JobRoleRecord(
            id=str(row["job_role_id"]).strip(),
            name=str(row["name"]).strip(),
            base_rate=_optional_float(row, "base_rate"),
        )
        for _, row in df.iterrows()
    ]
    session.add_all(roles)
    session.commit()
    logger.info("Imported %d job roles from %s", len(roles), csv_path)
    return len(roles)


def import_workers_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import workers from CSV into database.

    Columns: worker_id, name, rating, hourly_rate, timezone, schedule_template,
    is_active. The weekly schedule comes from one of the stock templates
    (default: fulltime).

    Args:
        session: Database session
        csv_path: Path to workers CSV

    Returns:
        Number of workers imported

    Raises:
        ValueError: Unknown schedule template
    """
    df = _read(csv_path)
    if "schedule_template" in df.columns:
        df["schedule_template"] = df["schedule_template"].fillna("fulltime").str.lower().str.strip()

    workers = []
    for _, row in df.iterrows():
        template = row.get("schedule_template", "fulltime")
        if pd.isna(template):
            template = "fulltime"
        tz = row.get("timezone")
        workers.append(
            WorkerRecord(
                id=str(row["worker_id"]).strip(),
                name=str(row["name"]).strip(),
                rating=_optional_float(row, "rating"),
                hourly_rate=_optional_float(row, "hourly_rate"),
                is_active=_flag(row, "is_active"),
                timezone=str(tz).strip() if pd.notna(tz) else "UTC",
                schedule=schedule_template(template).to_dict(),
                schedule_version=1,
            )
        )

    # Bulk insert
    session.add_all(workers)
    session.commit()
    logger.info("Imported %d workers from %s", len(workers), csv_path)
    return len(workers)


def import_capabilities_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import worker qualifications.

    Columns: worker_id, job_role_id, proficiency_level, is_active (optional)

    Returns:
        Number of capabilities imported
    """
    df = _read(csv_path)
    # Keep the last row per (worker, role) pair
    df = df.drop_duplicates(subset=["worker_id", "job_role_id"], keep="last")

    capabilities = [
        CapabilityRecord(
            worker_id=str(row["worker_id"]).strip(),
            job_role_id=str(row["job_role_id"]).strip(),
            proficiency_level=int(row["proficiency_level"]),
            is_active=_flag(row, "is_active"),
        )
        for _, row in df.iterrows()
    ]
    session.add_all(capabilities)
    session.commit()
    logger.info("Imported %d capabilities from %s", len(capabilities), csv_path)
    return len(capabilities)


def import_crews_csv(
    session: Session,
    csv_path: str | Path,
    capabilities_path: str | Path | None = None,
) -> int:
    """
    Import crews and, optionally, their role capabilities.

    Crew columns: crew_id, name, members (worker ids separated by ';')
    Capability columns: crew_id, job_role_id, capacity, proficiency_level

    Returns:
        Number of crews imported
    """
    df = _read(csv_path)
    crews = {}
    for _, row in df.iterrows():
        crew_id = str(row["crew_id"]).strip()
        members = row.get("members")
        member_ids = [m.strip() for m in str(members).split(";") if m.strip()] if pd.notna(members) else []
        crews[crew_id] = CrewRecord(
            id=crew_id,
            name=str(row["name"]).strip(),
            is_active=_flag(row, "is_active"),
            members=[
                CrewMemberRecord(worker_id=worker_id, position=position)
                for position, worker_id in enumerate(member_ids)
            ],
        )

    if capabilities_path is not None:
        caps = _read(capabilities_path)
        for _, row in caps.iterrows():
            crew = crews.get(str(row["crew_id"]).strip())
            if crew is None:
                logger.warning("Skipping capability for unknown crew %s", row["crew_id"])
                continue
            crew.capabilities.append(
                CrewCapabilityRecord(
                    job_role_id=str(row["job_role_id"]).strip(),
                    capacity=int(row["capacity"]),
                    proficiency_level=int(row["proficiency_level"]),
                )
            )

    session.add_all(list(crews.values()))
    session.commit()
    logger.info("Imported %d crews from %s", len(crews), csv_path)
    return len(crews)


def import_commitments_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import existing bookings.

    Columns: worker_id, job_id, label, kind, start, end (local times)

    Returns:
        Number of commitments imported
    """
    df = _read(csv_path)

    # Convert datetimes
    df["start"] = pd.to_datetime(df["start"])
    df["end"] = pd.to_datetime(df["end"])

    commitments = []
    for _, row in df.iterrows():
        job_id = row.get("job_id")
        label = row.get("label")
        kind = row.get("kind")
        commitments.append(
            CommitmentRecord(
                worker_id=str(row["worker_id"]).strip(),
                job_id=str(job_id).strip() if pd.notna(job_id) else None,
                label=str(label) if pd.notna(label) else None,
                kind=str(kind).strip().lower() if pd.notna(kind) else "job",
                start_time=row["start"].to_pydatetime(),
                end_time=row["end"].to_pydatetime(),
            )
        )

    session.add_all(commitments)
    session.commit()
    logger.info("Imported %d commitments from %s", len(commitments), csv_path)
    return len(commitments)
