"""Tests for week slot expansion."""

from datetime import date

import pytest

from shiftplanner.config import SchedulerConfig
from shiftplanner.domain.enums import ShiftName
from shiftplanner.domain.models import ShiftTemplate
from shiftplanner.errors import ScheduleInputError
from shiftplanner.services.slots import (
    build_slots,
    day_index_of,
    default_templates,
    validate_week_start,
    week_dates,
)

WEEK = date(2025, 9, 7)


def _template(day, shift, required=2, tags=None):
    return ShiftTemplate(
        team_id=1, day_of_week=day, shift_name=ShiftName(shift), required_count=required, required_tags=tags or []
    )


def test_day_index_starts_on_sunday():
    """Test Sunday is day 0 and Saturday is day 6."""
    assert day_index_of(date(2025, 9, 7)) == 0
    assert day_index_of(date(2025, 9, 8)) == 1
    assert day_index_of(date(2025, 9, 13)) == 6


def test_week_dates():
    dates = week_dates(WEEK)
    assert len(dates) == 7
    assert dates[0] == WEEK
    assert dates[-1] == date(2025, 9, 13)


def test_validate_week_start_rejects_non_sunday():
    """Test a Monday week start is rejected before anything is computed."""
    with pytest.raises(ScheduleInputError, match="Sunday"):
        validate_week_start(date(2025, 9, 8))


def test_validate_week_start_rejects_missing_and_malformed():
    with pytest.raises(ScheduleInputError):
        validate_week_start(None)
    with pytest.raises(ScheduleInputError):
        validate_week_start("2025-09-07")


def test_build_slots_orders_by_day_then_shift():
    """Test slots come out in calendar order whatever the template order."""
    templates = [
        _template(1, "night"),
        _template(1, "morning"),
        _template(0, "evening", required=3),
        _template(1, "evening"),
    ]

    slots = build_slots(WEEK, templates)

    assert [(s.day_index, s.shift_name) for s in slots] == [
        (0, ShiftName.EVENING),
        (1, ShiftName.MORNING),
        (1, ShiftName.EVENING),
        (1, ShiftName.NIGHT),
    ]
    assert slots[0].date == WEEK
    assert slots[0].required_count == 3
    assert slots[1].date == date(2025, 9, 8)


def test_build_slots_carries_required_tags():
    slots = build_slots(WEEK, [_template(2, "morning", tags=["opener"])])

    assert len(slots) == 1
    assert slots[0].required_tags == ("opener",)
    assert slots[0].key == (date(2025, 9, 9), ShiftName.MORNING)


def test_build_slots_without_templates_is_empty():
    assert build_slots(WEEK, []) == []


def test_default_templates_cover_every_shift_of_the_week():
    """Test default demand is all 21 (day, shift) pairs."""
    cfg = SchedulerConfig(default_required_count=3)

    templates = default_templates(5, cfg)

    assert len(templates) == 21
    assert {(t.day_of_week, t.shift_name) for t in templates} == {
        (day, shift) for day in range(7) for shift in ShiftName
    }
    assert all(t.required_count == 3 and t.team_id == 5 for t in templates)
