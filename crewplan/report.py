"""Tabular views of suggestion results and team utilization (pandas)."""

from __future__ import annotations

from typing import List

import pandas as pd

from crewplan.domain.types import SuggestionResult
from crewplan.services.utilization import WorkerUtilization, summarize_utilization

SUGGESTION_COLUMNS = [
    "rank",
    "type",
    "crew_id",
    "crew_name",
    "total_score",
    "estimated_cost",
    "worker_id",
    "name",
    "role_id",
    "role_name",
    "is_lead",
    "score",
    "suggested_rate",
    "reasons",
    "conflicts",
]


def suggestions_frame(result: SuggestionResult) -> pd.DataFrame:
    """One row per assigned worker per candidate, in rank order."""
    rows = []
    for rank, candidate in enumerate(result.candidates, start=1):
        for member in candidate.workers:
            rows.append({
                "rank": rank,
                "type": candidate.type.value,
                "crew_id": candidate.crew_id,
                "crew_name": candidate.crew_name,
                "total_score": candidate.total_score,
                "estimated_cost": candidate.estimated_cost,
                "worker_id": member.worker_id,
                "name": member.name,
                "role_id": member.role_id,
                "role_name": member.role_name,
                "is_lead": member.is_lead,
                "score": member.score,
                "suggested_rate": member.suggested_rate,
                "reasons": "; ".join(member.reasons),
                "conflicts": "; ".join(candidate.conflicts),
            })
    return pd.DataFrame(rows, columns=SUGGESTION_COLUMNS)


def summarize_suggestions(result: SuggestionResult) -> str:
    if not result.candidates and not result.unsatisfiable:
        return "No suggestions."
    lines = []

    if result.candidates:
        df = suggestions_frame(result)
        overview = df.groupby("rank").agg(
            type=("type", "first"),
            crew=("crew_name", lambda s: next((str(x) for x in s if pd.notna(x)), "")),
            workers=("worker_id", "count"),
            total_score=("total_score", "first"),
            estimated_cost=("estimated_cost", "first"),
        )
        lines.append("Candidates (best first):")
        lines.append(overview.to_string())
        lines.append("")
        lines.append("Members:")
        lines.append(df[["rank", "name", "role_name", "is_lead", "score", "suggested_rate"]].to_string(index=False))

    if result.unsatisfiable:
        lines.append("")
        lines.append("Unfilled roles:")
        lines.extend(f"  {u.message}" for u in result.unsatisfiable)

    if result.excluded:
        lines.append("")
        lines.append("Excluded workers:")
        lines.extend(f"  {e.worker_id}: {e.reason}" for e in result.excluded)
    return "\n".join(lines)


UTILIZATION_COLUMNS = [
    "worker_id",
    "name",
    "booked_hours",
    "target_hours",
    "utilization_percentage",
    "bookings",
    "fairness_score",
    "status",
]


def utilization_frame(utilizations: List[WorkerUtilization]) -> pd.DataFrame:
    """One row per worker, in the order given (least utilized first)."""
    rows = [
        {
            "worker_id": u.worker_id,
            "name": u.name,
            "booked_hours": u.booked_hours,
            "target_hours": u.target_hours,
            "utilization_percentage": u.utilization_percentage,
            "bookings": u.bookings,
            "fairness_score": u.fairness_score,
            "status": u.status.label,
        }
        for u in utilizations
    ]
    return pd.DataFrame(rows, columns=UTILIZATION_COLUMNS)


def summarize_team_utilization(utilizations: List[WorkerUtilization]) -> str:
    if not utilizations:
        return "No active workers."
    summary = summarize_utilization(utilizations)
    df = utilization_frame(utilizations)

    lines = [
        df.to_string(index=False),
        "",
        f"Workers: {summary.total_workers}",
        f"Average utilization: {summary.average_utilization:.0f}%",
        f"Most utilized: {summary.most_utilized.name} {summary.most_utilized}",
        f"Least utilized: {summary.least_utilized.name} {summary.least_utilized}",
        f"On target: {summary.on_target_count}",
    ]
    by_status = df.groupby("status")["worker_id"].count()
    lines.append("By status: " + ", ".join(f"{status} {count}" for status, count in by_status.items()))
    return "\n".join(lines)
