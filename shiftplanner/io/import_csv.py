"""CSV import utilities to load roster, templates and availability into the database."""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
from sqlalchemy.orm import Session

from shiftplanner.domain.enums import Availability, ConstraintType, RatingCategory, ShiftName
from shiftplanner.domain.repositories import (
    ConstraintRepository,
    EmployeeRepository,
    TeamRepository,
    TemplateRepository,
)
from shiftplanner.domain.models import (
    AvailabilityConstraint,
    Employee,
    EmployeeTag,
    Rating,
    ShiftTemplate,
    Team,
)

logger = logging.getLogger(__name__)


def _read(csv_path: str | Path) -> pd.DataFrame:
    df = pd.read_csv(csv_path)
    # Normalize column names
    df.columns = df.columns.str.lower().str.strip()
    return df


def _split_list(value) -> list:
    """Split a ``;``-separated cell into a list; empty cells give []."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return []
    return [part.strip() for part in str(value).split(";") if part.strip()]


def _require_columns(df: pd.DataFrame, columns, csv_path) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"{csv_path} is missing required columns: {missing}")


def import_employees_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import employees (with tags and ratings) from CSV into the database.

    Expected columns: id, name, team_id; optional seniority, swap_points,
    tags (``;``-separated) and one column per rating category.
    Teams referenced but not yet stored are created.

    Args:
        session: Database session
        csv_path: Path to employees CSV

    Returns:
        Number of employees imported
    """
    df = _read(csv_path)
    _require_columns(df, ["id", "name", "team_id"], csv_path)

    for team_id in sorted(set(int(t) for t in df["team_id"].dropna())):
        if TeamRepository.get_by_id(session, team_id) is None:
            TeamRepository.create(session, Team(id=team_id, name=f"Team {team_id}"))

    employees = []
    for _, row in df.iterrows():
        emp = Employee(
            id=int(row["id"]),
            name=str(row["name"]),
            team_id=int(row["team_id"]),
            seniority=int(row["seniority"]) if pd.notna(row.get("seniority")) else 0,
            swap_points=int(row["swap_points"]) if pd.notna(row.get("swap_points")) else 0,
        )
        emp.tags = [EmployeeTag(tag=tag) for tag in _split_list(row.get("tags"))]
        emp.ratings = [
            Rating(category=category, score=int(row[category.value]))
            for category in RatingCategory
            if category.value in df.columns and pd.notna(row.get(category.value))
        ]
        employees.append(emp)

    EmployeeRepository.bulk_create(session, employees)
    session.commit()

    logger.info("Imported %d employees from %s", len(employees), csv_path)
    return len(employees)


def import_templates_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import shift templates from CSV.

    Expected columns: team_id, day_of_week (0 = Sunday), shift_name,
    required_count; optional start_time, end_time, required_tags.

    Returns:
        Number of templates imported
    """
    df = _read(csv_path)
    _require_columns(df, ["team_id", "day_of_week", "shift_name", "required_count"], csv_path)
    df["shift_name"] = df["shift_name"].str.lower().str.strip()

    templates = []
    for _, row in df.iterrows():
        day = int(row["day_of_week"])
        if not 0 <= day <= 6:
            raise ValueError(f"day_of_week must be 0-6, got {day}")
        required = int(row["required_count"])
        if required < 1:
            raise ValueError(f"required_count must be >= 1, got {required}")
        templates.append(
            ShiftTemplate(
                team_id=int(row["team_id"]),
                day_of_week=day,
                shift_name=ShiftName(row["shift_name"]),
                start_time=str(row["start_time"]) if pd.notna(row.get("start_time")) else "00:00",
                end_time=str(row["end_time"]) if pd.notna(row.get("end_time")) else "00:00",
                required_count=required,
                required_tags=_split_list(row.get("required_tags")),
            )
        )

    TemplateRepository.bulk_create(session, templates)
    session.commit()

    logger.info("Imported %d shift templates from %s", len(templates), csv_path)
    return len(templates)


def import_availability_csv(session: Session, csv_path: str | Path, week_start=None) -> int:
    """
    Import availability constraints from CSV.

    Expected columns: employee_id, week_start, date, type, availability;
    optional reason. Existing constraints of the same employee and week are
    replaced.

    Args:
        session: Database session
        csv_path: Path to availability CSV
        week_start: Optional week (date or ``YYYY-MM-DD``) to filter

    Returns:
        Number of constraints imported
    """
    df = _read(csv_path)
    _require_columns(df, ["employee_id", "week_start", "date", "type", "availability"], csv_path)

    df["week_start"] = pd.to_datetime(df["week_start"]).dt.date
    df["date"] = pd.to_datetime(df["date"]).dt.date
    df["type"] = df["type"].str.lower().str.strip()
    df["availability"] = df["availability"].str.lower().str.strip()

    if week_start is not None:
        df = df[df["week_start"] == pd.Timestamp(week_start).date()].copy()

    # Replace previous declarations for the same employee week
    for (emp_id, week), _ in df.groupby(["employee_id", "week_start"]):
        (
            session.query(AvailabilityConstraint)
            .filter(AvailabilityConstraint.employee_id == int(emp_id))
            .filter(AvailabilityConstraint.week_start == week)
            .delete(synchronize_session=False)
        )

    constraints = []
    for _, row in df.iterrows():
        constraints.append(
            AvailabilityConstraint(
                employee_id=int(row["employee_id"]),
                week_start=row["week_start"],
                date=row["date"],
                type=ConstraintType(row["type"]),
                availability=Availability(row["availability"]),
                reason=str(row["reason"]) if pd.notna(row.get("reason")) else None,
            )
        )

    ConstraintRepository.bulk_create(session, constraints)
    session.commit()

    logger.info("Imported %d availability constraints from %s", len(constraints), csv_path)
    return len(constraints)
