"""Expansion of recurring shift templates into the concrete slots of one week."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Tuple

from shiftplanner.domain.enums import SHIFT_ORDER, ShiftName
from shiftplanner.domain.models import ShiftTemplate
from shiftplanner.errors import ScheduleInputError

DAYS_IN_WEEK = 7


@dataclass(frozen=True)
class Slot:
    """A concrete (date, shift) demand for ``required_count`` employees."""

    date: date
    day_index: int  # 0 = Sunday
    shift_name: ShiftName
    required_count: int
    required_tags: Tuple[str, ...] = ()

    @property
    def key(self) -> Tuple[date, ShiftName]:
        return (self.date, self.shift_name)


def day_index_of(day: date) -> int:
    """Day-of-week index with Sunday as 0."""
    return (day.weekday() + 1) % 7


def week_dates(week_start: date) -> List[date]:
    return [week_start + timedelta(days=i) for i in range(DAYS_IN_WEEK)]


def validate_week_start(week_start: date | None) -> date:
    if week_start is None:
        raise ScheduleInputError("week_start is required")
    if not isinstance(week_start, date):
        raise ScheduleInputError(f"week_start must be a date, got {week_start!r}")
    if day_index_of(week_start) != 0:
        raise ScheduleInputError(
            f"week_start must be a Sunday, got {week_start.isoformat()} ({week_start.strftime('%A')})"
        )
    return week_start


def build_slots(week_start: date, templates: Iterable[ShiftTemplate]) -> List[Slot]:
    """
    Expand shift templates into the slots of the week starting at ``week_start``.

    Slots are ordered by day, then by shift (morning, evening, night).
    """
    validate_week_start(week_start)
    by_day = {}
    for template in templates:
        by_day.setdefault(template.day_of_week, []).append(template)

    slots: List[Slot] = []
    for day_index, day in enumerate(week_dates(week_start)):
        day_templates = sorted(
            by_day.get(day_index, []),
            key=lambda t: SHIFT_ORDER[ShiftName(t.shift_name)],
        )
        for template in day_templates:
            slots.append(
                Slot(
                    date=day,
                    day_index=day_index,
                    shift_name=ShiftName(template.shift_name),
                    required_count=template.required_count,
                    required_tags=tuple(template.required_tags or ()),
                )
            )
    return slots


def default_templates(team_id: int, cfg) -> List[ShiftTemplate]:
    """Default demand: every shift of every day, ``cfg.default_required_count`` people each."""
    return [
        ShiftTemplate(
            team_id=team_id,
            day_of_week=day_index,
            shift_name=ShiftName(window.name),
            start_time=window.start,
            end_time=window.end,
            required_count=cfg.default_required_count,
            required_tags=[],
        )
        for day_index in range(DAYS_IN_WEEK)
        for window in cfg.default_shifts
    ]
