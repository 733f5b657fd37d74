"""Command-line interface for the crew planning engine."""

from __future__ import annotations

import argparse
import json
import logging
from datetime import date, timedelta
from pathlib import Path

import pandas as pd
import yaml

from crewplan.api import find_conflicts
from crewplan.config import DEFAULT_CONFIG
from crewplan.domain.db import get_session, init_database, reset_database
from crewplan.domain.repositories import (
    CommitmentRepository,
    WorkerRepository,
    commitment_to_domain,
    load_snapshot,
    worker_to_domain,
)
from crewplan.domain.types import JobData, JobRequirement, TimeWindow
from crewplan.engine.orchestrator import generate_assignment_suggestions
from crewplan.io.config import load_config
from crewplan.io.export_csv import export_suggestions_csv, export_utilization_csv, export_workers_csv
from crewplan.io.import_csv import (
    import_capabilities_csv,
    import_commitments_csv,
    import_crews_csv,
    import_job_roles_csv,
    import_workers_csv,
)
from crewplan.report import summarize_suggestions, summarize_team_utilization
from crewplan.services.schedule import (
    average_daily_hours,
    schedule_template,
    validate_and_normalize_schedule,
    weekly_hours,
    working_days,
)
from crewplan.services.utilization import UtilizationStatus, team_utilization, week_range

DEFAULT_DB = "sqlite:///crewplan.db"


def _parse_requirement(text: str) -> JobRequirement:
    """ROLE:QTY or ROLE:QTY:MIN_LEVEL"""
    parts = text.split(":")
    if len(parts) not in (2, 3):
        raise argparse.ArgumentTypeError(f"Expected ROLE:QTY[:MIN], got {text!r}")
    try:
        quantity = int(parts[1])
        min_level = int(parts[2]) if len(parts) == 3 else None
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid requirement {text!r}: {e}") from e
    return JobRequirement(parts[0], quantity, min_level)


def _parse_moment(text: str):
    return pd.Timestamp(text).to_pydatetime()


def _store_range(job: JobData):
    """Naive lookup range for stored bookings, padded a day for zone offsets."""
    pad = timedelta(days=1)
    return job.start.replace(tzinfo=None) - pad, job.finish.replace(tzinfo=None) + pad


def _cmd_init_db(args: argparse.Namespace) -> None:
    """Initialize the database."""
    db_url = args.db or DEFAULT_DB
    if args.reset:
        reset_database(db_url)
        print(f"[WARN] Database reset, all data removed: {db_url}")
        return
    init_database(db_url)
    print(f"[OK] Database initialized: {db_url}")


def _cmd_import_csv(args: argparse.Namespace) -> None:
    """Import CSV data into database."""
    db_url = args.db or DEFAULT_DB
    session = get_session(db_url)

    try:
        # Roles first: capabilities reference them
        if args.roles:
            count = import_job_roles_csv(session, args.roles)
            print(f"[OK] Imported {count} job roles")

        if args.workers:
            count = import_workers_csv(session, args.workers)
            print(f"[OK] Imported {count} workers")

        if args.capabilities:
            count = import_capabilities_csv(session, args.capabilities)
            print(f"[OK] Imported {count} capabilities")

        if args.crews:
            count = import_crews_csv(session, args.crews, args.crew_capabilities)
            print(f"[OK] Imported {count} crews")

        if args.commitments:
            count = import_commitments_csv(session, args.commitments)
            print(f"[OK] Imported {count} commitments")

        session.close()
        print("[OK] CSV import complete")

    except Exception as e:
        session.rollback()
        session.close()
        print(f"[ERROR] Import failed: {e}")
        raise


def _cmd_suggest(args: argparse.Namespace) -> None:
    """Suggest workers and crews for one job."""
    db_url = args.db or DEFAULT_DB
    session = get_session(db_url)

    try:
        cfg = load_config(args.config) if args.config else DEFAULT_CONFIG
        job = JobData(
            start=_parse_moment(args.start),
            finish=_parse_moment(args.finish),
            location=args.location or "",
            requirements=tuple(args.require),
            id=args.job_id,
        )
        snapshot = load_snapshot(session, *_store_range(job))
        session.close()

        result = generate_assignment_suggestions(
            job,
            None,
            snapshot.workers,
            snapshot.crews,
            snapshot.commitments,
            snapshot.roles,
            config=cfg,
        )
        print(summarize_suggestions(result))
        for role in result.unsatisfiable:
            print(f"[WARN] {role.message}")

        if args.out:
            count = export_suggestions_csv(result, args.out)
            print(f"[OK] Exported {count} rows to {args.out}")

        print(f"[OK] {len(result)} candidates for job {job.id or '(new)'}")

    except Exception as e:
        session.close()
        print(f"[ERROR] Suggestion failed: {e}")
        raise


def _cmd_conflicts(args: argparse.Namespace) -> None:
    """List conflicts for one worker and time window."""
    db_url = args.db or DEFAULT_DB
    session = get_session(db_url)

    try:
        record = WorkerRepository.get_by_id(session, args.worker)
        if record is None:
            print(f"[ERROR] Unknown worker {args.worker}")
            session.close()
            return
        worker = worker_to_domain(record)
        commitments = [commitment_to_domain(c) for c in CommitmentRepository.get_by_worker(session, worker.id)]
        session.close()

        window = TimeWindow(_parse_moment(args.start), _parse_moment(args.finish))
        conflicts = find_conflicts([worker], worker.id, window, commitments, args.exclude_job)
        if not conflicts:
            print(f"[OK] No conflicts for {worker.name}")
            return
        for conflict in conflicts:
            print(f"[WARN] {conflict}")

    except Exception as e:
        session.close()
        print(f"[ERROR] Conflict check failed: {e}")
        raise


def _cmd_check_schedule(args: argparse.Namespace) -> None:
    """Validate a weekly schedule file (JSON or YAML) or a stock template."""
    cfg = load_config(args.config) if args.config else DEFAULT_CONFIG
    if args.template:
        raw = schedule_template(args.template).to_dict()
    else:
        path = Path(args.file)
        with path.open("r", encoding="utf-8") as f:
            if path.suffix.lower() in {".yaml", ".yml"}:
                raw = yaml.safe_load(f)
            else:
                raw = json.load(f)

    result = validate_and_normalize_schedule(raw, cfg)
    if not result.ok:
        for error in result.errors:
            print(f"[ERROR] {error}")
        raise SystemExit(1)

    schedule = result.value
    print(f"[INFO] Weekly hours: {weekly_hours(schedule):g}")
    print(f"[INFO] Working days: {working_days(schedule)}")
    print(f"[INFO] Average daily hours: {average_daily_hours(schedule):.2f}")
    print("[OK] Schedule is valid")


def _cmd_utilization(args: argparse.Namespace) -> None:
    """Report weekly utilization and fairness for active workers."""
    db_url = args.db or DEFAULT_DB
    session = get_session(db_url)

    try:
        cfg = load_config(args.config) if args.config else DEFAULT_CONFIG
        week_of = date.fromisoformat(args.week) if args.week else date.today()
        start, end = week_range(week_of)
        snapshot = load_snapshot(session, start - timedelta(days=1), end + timedelta(days=1))

        utilizations = team_utilization(snapshot.workers, snapshot.commitments, week_of, cfg)
        print(f"[INFO] Week of {start:%Y-%m-%d}")
        print(summarize_team_utilization(utilizations))
        for u in utilizations:
            if u.status is UtilizationStatus.OVERLOADED:
                print(f"[WARN] {u.name} is overloaded: {u}")

        if args.out:
            count = export_utilization_csv(session, args.out, week_of, cfg)
            print(f"[OK] Exported {count} workers to {args.out}")
        session.close()

    except Exception as e:
        session.close()
        print(f"[ERROR] Utilization report failed: {e}")
        raise


def _cmd_export(args: argparse.Namespace) -> None:
    """Export workers with schedule summaries."""
    db_url = args.db or DEFAULT_DB
    session = get_session(db_url)

    try:
        count = export_workers_csv(session, args.workers)
        session.close()
        print(f"[OK] Exported {count} workers to {args.workers}")

    except Exception as e:
        session.close()
        print(f"[ERROR] Export failed: {e}")
        raise


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="crewplan",
        description="Worker availability and job assignment suggestions",
    )

    # Global options
    parser.add_argument("--db", help=f"Database URL (default: {DEFAULT_DB})")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-v INFO, -vv DEBUG)")

    sub = parser.add_subparsers(dest="command", required=True)

    # init-db command
    init = sub.add_parser("init-db", help="Initialize database")
    init.add_argument("--reset", action="store_true", help="Drop and recreate all tables")
    init.set_defaults(func=_cmd_init_db)

    # import-csv command
    imp = sub.add_parser("import-csv", help="Import CSV data into database")
    imp.add_argument("--roles", help="Path to job roles CSV")
    imp.add_argument("--workers", help="Path to workers CSV")
    imp.add_argument("--capabilities", help="Path to worker capabilities CSV")
    imp.add_argument("--crews", help="Path to crews CSV")
    imp.add_argument("--crew-capabilities", help="Path to crew role capabilities CSV")
    imp.add_argument("--commitments", help="Path to existing bookings CSV")
    imp.set_defaults(func=_cmd_import_csv)

    # suggest command
    sug = sub.add_parser("suggest", help="Suggest assignments for a job")
    sug.add_argument("--start", required=True, help="Job start (ISO datetime, offset optional)")
    sug.add_argument("--finish", required=True, help="Job finish (ISO datetime, offset optional)")
    sug.add_argument("--require", required=True, action="append", type=_parse_requirement,
                     help="Role requirement ROLE:QTY[:MIN_LEVEL] (repeatable)")
    sug.add_argument("--location", help="Job location")
    sug.add_argument("--job-id", help="Id of the job being edited (its bookings are ignored)")
    sug.add_argument("--config", help="Path to config YAML/JSON")
    sug.add_argument("--out", help="Optional: export suggestions to CSV")
    sug.set_defaults(func=_cmd_suggest)

    # conflicts command
    con = sub.add_parser("conflicts", help="List conflicts for a worker")
    con.add_argument("--worker", required=True, help="Worker ID")
    con.add_argument("--start", required=True, help="Window start (ISO datetime)")
    con.add_argument("--finish", required=True, help="Window finish (ISO datetime)")
    con.add_argument("--exclude-job", help="Ignore bookings for this job")
    con.set_defaults(func=_cmd_conflicts)

    # check-schedule command
    chk = sub.add_parser("check-schedule", help="Validate a weekly schedule")
    src = chk.add_mutually_exclusive_group(required=True)
    src.add_argument("--file", help="Schedule JSON/YAML file")
    src.add_argument("--template", help="Stock template (fulltime, parttime, weekend, flexible)")
    chk.add_argument("--config", help="Path to config YAML/JSON")
    chk.set_defaults(func=_cmd_check_schedule)

    # utilization command
    utl = sub.add_parser("utilization", help="Booked hours against scheduled hours for one week")
    utl.add_argument("--week", help="Any date in the week (YYYY-MM-DD, default: today)")
    utl.add_argument("--config", help="Path to config YAML/JSON")
    utl.add_argument("--out", help="Optional: export utilization to CSV")
    utl.set_defaults(func=_cmd_utilization)

    # export command
    exp = sub.add_parser("export", help="Export workers to CSV")
    exp.add_argument("--workers", required=True, help="Path to export workers CSV")
    exp.set_defaults(func=_cmd_export)

    args = parser.parse_args(argv)
    level = logging.WARNING if args.verbose == 0 else logging.INFO if args.verbose == 1 else logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    args.func(args)


if __name__ == "__main__":
    main()
