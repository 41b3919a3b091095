"""CSV export and text summaries of stored schedules."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

import pandas as pd
from sqlalchemy.orm import Session

from shiftplanner.domain.repositories import AssignmentRepository

logger = logging.getLogger(__name__)

ASSIGNMENT_COLUMNS = [
    "id",
    "team_id",
    "week_start",
    "date",
    "shift_name",
    "employee_id",
    "employee_name",
    "status",
    "conversation_influenced",
    "reasoning",
]


def assignments_frame(session: Session, team_id: int, week_start: date) -> pd.DataFrame:
    rows = []
    for a in AssignmentRepository.list_for_week(session, team_id, week_start):
        rows.append(
            {
                "id": a.id,
                "team_id": a.team_id,
                "week_start": a.week_start,
                "date": a.date,
                "shift_name": getattr(a.shift_name, "value", a.shift_name),
                "employee_id": a.employee_id,
                "employee_name": a.employee.name if a.employee is not None else None,
                "status": getattr(a.status, "value", a.status),
                "conversation_influenced": bool(a.conversation_influenced),
                "reasoning": " | ".join(a.reasoning or []),
            }
        )
    return pd.DataFrame(rows, columns=ASSIGNMENT_COLUMNS)


def export_assignments_csv(session: Session, csv_path: str | Path, team_id: int, week_start: date) -> int:
    """
    Export a team week's assignments to CSV.

    Returns:
        Number of exported rows
    """
    df = assignments_frame(session, team_id, week_start)
    df.to_csv(csv_path, index=False)
    logger.info("Exported %d assignments to %s", len(df), csv_path)
    return len(df)


def summarize_assignments(assignments_df: pd.DataFrame) -> str:
    """Coverage per day and shift, and shifts per employee."""
    if assignments_df.empty:
        return "No assignments."

    coverage = assignments_df.groupby(["date", "shift_name"]).size().unstack(fill_value=0)
    per_employee = (
        assignments_df.groupby("employee_name")["id"].count().sort_values(ascending=False)
    )

    lines = ["Coverage per day per shift:"]
    lines.append(coverage.to_string())
    lines.append("")
    lines.append("Shifts per employee (week):")
    lines.append(per_employee.to_string())
    return "\n".join(lines)
