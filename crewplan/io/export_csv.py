"""CSV export utilities."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from pathlib import Path

import pandas as pd
from sqlalchemy.orm import Session

from crewplan.config import DEFAULT_CONFIG, EngineConfig
from crewplan.domain.repositories import WorkerRepository, load_snapshot, worker_to_domain
from crewplan.domain.types import SuggestionResult
from crewplan.report import suggestions_frame, utilization_frame
from crewplan.services.schedule import average_daily_hours, weekly_hours, working_days
from crewplan.services.utilization import team_utilization, week_range

logger = logging.getLogger(__name__)


def export_suggestions_csv(result: SuggestionResult, out_path: str | Path) -> int:
    """
    Write ranked suggestions, one row per assigned worker.

    Args:
        result: Output of the suggestion engine
        out_path: Destination CSV

    Returns:
        Number of rows written
    """
    df = suggestions_frame(result)
    df.to_csv(out_path, index=False)
    logger.info("Exported %d suggestion rows to %s", len(df), out_path)
    return len(df)


def export_workers_csv(session: Session, out_path: str | Path) -> int:
    """
    Export workers with their schedule summary.

    Returns:
        Number of workers exported
    """
    rows = []
    for record in WorkerRepository.get_all(session):
        worker = worker_to_domain(record)
        schedule = worker.weekly_schedule
        rows.append({
            "worker_id": worker.id,
            "name": worker.name,
            "rating": worker.rating,
            "hourly_rate": worker.hourly_rate,
            "is_active": worker.is_active,
            "timezone": worker.timezone,
            "weekly_hours": weekly_hours(schedule),
            "working_days": working_days(schedule),
            "average_daily_hours": round(average_daily_hours(schedule), 2),
            "schedule_version": record.schedule_version,
        })

    df = pd.DataFrame(rows)
    df.to_csv(out_path, index=False)
    logger.info("Exported %d workers to %s", len(df), out_path)
    return len(df)


def export_utilization_csv(
    session: Session,
    out_path: str | Path,
    week_of: date,
    config: EngineConfig | None = None,
) -> int:
    """
    Export booked hours against scheduled hours for the week containing ``week_of``.

    Args:
        session: Database session
        out_path: Destination CSV
        week_of: Any date inside the week (weeks start on Monday)
        config: Engine configuration (status bands)

    Returns:
        Number of workers exported
    """
    cfg = config or DEFAULT_CONFIG
    start, end = week_range(week_of)
    # Stored bookings are naive; pad a day so every zone's week is covered
    pad = timedelta(days=1)
    snapshot = load_snapshot(session, start - pad, end + pad)

    utilizations = team_utilization(snapshot.workers, snapshot.commitments, week_of, cfg)
    df = utilization_frame(utilizations)
    df.to_csv(out_path, index=False)
    logger.info("Exported utilization for %d workers to %s", len(df), out_path)
    return len(df)
