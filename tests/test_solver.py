"""Tests for the greedy most-constrained-first solver."""

from datetime import date, timedelta

from shiftplanner.domain.enums import DirectiveCategory, DirectiveType, ShiftName
from shiftplanner.domain.models import ConversationConstraint
from shiftplanner.engine.solver import (
    GreedySolver,
    SolverContext,
    exceeds_consecutive_cap,
    violates_rest_rule,
)
from shiftplanner.services.directives import parse_directives
from shiftplanner.services.scoring import Candidate
from shiftplanner.services.slots import Slot

WEEK = date(2025, 9, 7)


def _slot(day_index, shift="morning", required=1):
    return Slot(
        date=WEEK + timedelta(days=day_index),
        day_index=day_index,
        shift_name=ShiftName(shift),
        required_count=required,
    )


def _ranked(*emp_ids):
    # descending scores in the given order
    return [Candidate(employee_id=e, score=1.0 - i * 0.1, availability=2) for i, e in enumerate(emp_ids)]


def _directives(*specs):
    rows = [
        ConversationConstraint(
            id=i,
            type=DirectiveType(type_),
            category=DirectiveCategory(category),
            affected_employees=list(employees),
            parameters=parameters,
            approved=True,
        )
        for i, (type_, category, employees, parameters) in enumerate(specs, start=1)
    ]
    return parse_directives(rows)


def test_fills_up_to_required_count():
    """Test a slot never gets more than its required count."""
    slot = _slot(0, required=2)

    decisions = GreedySolver().solve([slot], {slot: _ranked(1, 2, 3, 4)})

    assert decisions[0].accepted == [1, 2]
    assert decisions[0].shortage == 0
    assert decisions[0].candidate_count == 4


def test_shortage_when_candidates_run_out():
    slot = _slot(0, required=3)

    decisions = GreedySolver().solve([slot], {slot: _ranked(1)})

    assert decisions[0].accepted == [1]
    assert decisions[0].shortage == 2


def test_most_constrained_slot_is_decided_first():
    """Test MRV ordering lets the single-candidate slot keep its only employee."""
    open_slot = _slot(0)
    tight_slot = _slot(1)
    directives = _directives(("hard", "workload", [1], {"max_shifts": 1}))
    candidates = {open_slot: _ranked(1, 2, 3), tight_slot: _ranked(1)}

    decisions = GreedySolver(directives).solve([open_slot, tight_slot], candidates)

    assert [d.slot for d in decisions] == [tight_slot, open_slot]
    assert decisions[0].accepted == [1]
    assert decisions[1].accepted == [2]


def test_order_slots_ties_keep_calendar_order():
    slots = [_slot(0), _slot(1), _slot(2)]
    candidates = {slots[0]: _ranked(1, 2), slots[1]: _ranked(1, 2), slots[2]: _ranked(1)}

    assert GreedySolver.order_slots(slots, candidates) == [slots[2], slots[0], slots[1]]


def test_hard_separation_skips_second_employee():
    """Test the higher-ranked employee wins and the separated one is skipped."""
    slot = _slot(1, required=2)
    directives = _directives(("hard", "separation", [1, 2], {}))

    decisions = GreedySolver(directives).solve([slot], {slot: _ranked(1, 2, 3)})

    assert decisions[0].accepted == [1, 3]


def test_hard_separation_limited_to_shift_types():
    slot = _slot(1, "morning", required=2)
    directives = _directives(("hard", "separation", [1, 2], {"shift_types": ["closing"]}))

    decisions = GreedySolver(directives).solve([slot], {slot: _ranked(1, 2, 3)})

    assert decisions[0].accepted == [1, 2]


def test_soft_separation_does_not_block():
    slot = _slot(1, required=2)
    directives = _directives(("soft", "separation", [1, 2], {}))

    decisions = GreedySolver(directives).solve([slot], {slot: _ranked(1, 2, 3)})

    assert decisions[0].accepted == [1, 2]


def test_rest_rule_night_then_morning():
    """Test a night on day d blocks the morning of day d+1."""
    ctx = SolverContext()
    ctx.record(1, _slot(2, "night"))

    assert violates_rest_rule(ctx, 1, _slot(3, "morning"))
    assert not violates_rest_rule(ctx, 1, _slot(3, "evening"))
    assert not violates_rest_rule(ctx, 1, _slot(2, "morning"))
    assert not violates_rest_rule(ctx, 2, _slot(3, "morning"))


def test_rest_rule_checked_when_morning_was_decided_first():
    ctx = SolverContext()
    ctx.record(1, _slot(3, "morning"))

    assert violates_rest_rule(ctx, 1, _slot(2, "night"))
    assert not violates_rest_rule(ctx, 1, _slot(3, "night"))


def test_solver_applies_rest_rule():
    night = _slot(2, "night")
    morning = _slot(3, "morning")
    # the night slot is the most constrained one, so it is decided first
    candidates = {night: _ranked(1), morning: _ranked(1, 2)}

    decisions = GreedySolver().solve([night, morning], candidates)

    by_slot = {d.slot: d.accepted for d in decisions}
    assert by_slot[night] == [1]
    assert by_slot[morning] == [2]


def test_consecutive_days_cap():
    """Test a seventh straight day is refused with the default cap of six."""
    ctx = SolverContext()
    for day in range(6):
        ctx.record(1, _slot(day, "evening"))

    assert exceeds_consecutive_cap(ctx, 1, _slot(6, "evening"), 6)
    assert not exceeds_consecutive_cap(ctx, 1, _slot(6, "evening"), 7)
    # another shift on a day already worked does not extend the run
    assert not exceeds_consecutive_cap(ctx, 1, _slot(5, "morning"), 6)


def test_consecutive_days_cap_counts_days_after_the_slot():
    ctx = SolverContext()
    for day in (0, 1, 2, 4, 5, 6):
        ctx.record(1, _slot(day))

    assert exceeds_consecutive_cap(ctx, 1, _slot(3), 6)
    assert not exceeds_consecutive_cap(ctx, 1, _slot(3), 7)


def test_solver_never_exceeds_consecutive_days():
    slots = [_slot(day) for day in range(7)]
    candidates = {slot: _ranked(1, 2) for slot in slots}

    decisions = GreedySolver(max_consecutive_days=6).solve(slots, candidates)

    days_for_1 = sorted(d.slot.day_index for d in decisions if 1 in d.accepted)
    assert days_for_1 == [0, 1, 2, 3, 4, 5]
    assert [d.accepted for d in decisions if d.slot.day_index == 6] == [[2]]


def test_workload_cap_rechecked_during_solve():
    """Test a hard max_shifts cap holds even when the employee is ranked first everywhere."""
    slots = [_slot(day) for day in range(4)]
    directives = _directives(("hard", "workload", [1], {"max_shifts": 2}))
    candidates = {slot: _ranked(1, 2) for slot in slots}

    decisions = GreedySolver(directives).solve(slots, candidates)

    assert sum(1 in d.accepted for d in decisions) == 2
    assert all(len(d.accepted) == 1 for d in decisions)


def test_context_seeded_with_prior_assignments():
    ctx = SolverContext()
    ctx.record(1, _slot(0, "night"))
    slot = _slot(1, "morning")

    decisions = GreedySolver().solve([slot], {slot: _ranked(1, 2)}, ctx)

    assert decisions[0].accepted == [2]
    assert ctx.running_counts[2] == 1


def test_hard_separation_counts_employees_already_holding_the_slot():
    """Test an employee kept from an earlier run still blocks a separated partner."""
    slot = _slot(1, required=1)
    directives = _directives(("hard", "separation", [1, 2], {}))

    decisions = GreedySolver(directives).solve([slot], {slot: _ranked(2, 3)}, kept={slot.key: [1]})

    assert decisions[0].accepted == [3]
