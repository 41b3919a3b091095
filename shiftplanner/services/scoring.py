"""Scoring functions for candidate desirability per slot."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from shiftplanner.config import ConversationBonuses, RatingWeights, SchedulerConfig, ScoringWeights
from shiftplanner.domain.enums import RESTRICTED_TO, Availability, ConstraintType, DirectiveCategory, ShiftName
from shiftplanner.domain.models import AvailabilityConstraint, Employee

from .directives import (
    DevelopmentDirective,
    Directive,
    UtilizationDirective,
    WorkloadDirective,
)
from .slots import Slot

DEFAULT_AVAILABILITY = 2
MAX_AVAILABILITY = 3

AvailabilityIndex = Dict[Tuple[int, date], AvailabilityConstraint]


@dataclass(frozen=True)
class Candidate:
    """An eligible employee for one slot with its composite score."""

    employee_id: int
    score: float
    availability: int


def index_availability(constraints: Iterable[AvailabilityConstraint]) -> AvailabilityIndex:
    """Map (employee_id, date) -> constraint. The first declaration for a date wins."""
    index: AvailabilityIndex = {}
    for constraint in constraints:
        index.setdefault((constraint.employee_id, constraint.date), constraint)
    return index


def calculate_availability_score(
    constraint: Optional[AvailabilityConstraint],
    shift_name: ShiftName,
) -> int:
    """
    Availability score on a 0-3 scale for one shift.

    0 means the employee is excluded from the slot; 2 is the default when
    nothing was declared.
    """
    if constraint is None:
        return DEFAULT_AVAILABILITY

    hard = constraint.type == ConstraintType.HARD
    availability = Availability(constraint.availability)

    if availability == Availability.UNAVAILABLE:
        return 0 if hard else 1
    if availability in RESTRICTED_TO:
        if RESTRICTED_TO[availability] != shift_name:
            return 0 if hard else 1
        return DEFAULT_AVAILABILITY
    if availability == Availability.AVAILABLE_EXTRA:
        return MAX_AVAILABILITY
    return DEFAULT_AVAILABILITY


def is_soft_violation(constraint: Optional[AvailabilityConstraint], shift_name: ShiftName) -> bool:
    """True when a soft declaration is overridden by working this shift."""
    if constraint is None or constraint.type != ConstraintType.SOFT:
        return False
    return calculate_availability_score(constraint, shift_name) == 1


def calculate_rating_score(employee: Employee, weights: RatingWeights | None = None) -> float:
    """Weighted sum of category ratings (1-5 scale), or the default when unrated."""
    weights = weights or RatingWeights()
    if not employee.ratings:
        return weights.default_rating
    total = 0.0
    for rating in employee.ratings:
        category = getattr(rating.category, "value", rating.category)
        total += rating.score * getattr(weights, category, 0.0)
    return total


def calculate_fairness_score(employee_id: int, history: Mapping[int, int]) -> float:
    """
    Fairness in [0, 1]: ``1 - own / team average`` of trailing assignment counts.

    Under-worked employees score higher; everyone scores 1 when the team has
    no history.
    """
    if not history:
        return 1.0
    average = sum(history.values()) / len(history)
    if average <= 0:
        return 1.0
    fairness = 1.0 - (history.get(employee_id, 0) / average)
    return max(0.0, min(1.0, fairness))


def calculate_swap_score(employee: Employee, max_swap_points: int) -> float:
    return (employee.swap_points or 0) / max(max_swap_points, 1)


def calculate_tag_match(employee: Employee, required_tags: Sequence[str]) -> int:
    if not required_tags:
        return 1
    held = {t.tag for t in employee.tags}
    return 1 if any(tag in held for tag in required_tags) else 0


def conversation_adjustment(
    employee_id: int,
    shift_name: ShiftName,
    availability: int,
    directives: Iterable[Directive],
    bonuses: ConversationBonuses | None = None,
) -> Tuple[float, int]:
    """
    Apply conversation directives to one (employee, shift) pair.

    Returns:
        (additive bonus, adjusted availability score)
    """
    bonuses = bonuses or ConversationBonuses()
    bonus = 0.0
    for directive in directives:
        if employee_id not in directive.employees:
            continue
        if isinstance(directive, UtilizationDirective):
            bonus += bonuses.utilization
        elif isinstance(directive, DevelopmentDirective):
            if shift_name in directive.shift_types:
                bonus += bonuses.development
        elif isinstance(directive, WorkloadDirective):
            if directive.is_soft and directive.category == DirectiveCategory.BURNOUT:
                bonus += bonuses.soft_burnout
            if directive.is_hard and directive.preferred_types and shift_name not in directive.preferred_types:
                availability = max(1, availability - 1)
    return bonus, availability


def is_capped(employee_id: int, running_count: int, directives: Iterable[Directive]) -> bool:
    """True when a hard workload/burnout cap already excludes the employee."""
    return any(
        isinstance(d, WorkloadDirective) and d.caps(employee_id, running_count)
        for d in directives
    )


def calculate_employee_score(
    rating: float,
    fairness: float,
    availability: int,
    swap: float,
    tag_match: int,
    bonus: float = 0.0,
    weights: ScoringWeights | None = None,
) -> float:
    """Composite desirability score. Higher = better candidate."""
    weights = weights or ScoringWeights()
    return (
        weights.rating * (rating / 5)
        + weights.fairness * max(0.0, min(1.0, fairness))
        + weights.availability * (availability / MAX_AVAILABILITY)
        + weights.swap * swap
        + weights.tag_match * tag_match
        + bonus
        + weights.floor
    )


def rank_candidates(
    slot: Slot,
    employees: Sequence[Employee],
    availability: AvailabilityIndex,
    history: Mapping[int, int],
    directives: Sequence[Directive] = (),
    running_counts: Mapping[int, int] | None = None,
    cfg: SchedulerConfig | None = None,
) -> List[Candidate]:
    """
    Score every team member for a slot and rank the eligible ones.

    Args:
        slot: Slot being filled
        employees: Team roster in discovery order (ties keep this order)
        availability: Index built by ``index_availability``
        history: Trailing assignment counts per employee
        directives: Approved conversation directives
        running_counts: Assignments already made this week per employee
        cfg: SchedulerConfig with weights and bonuses

    Returns:
        Candidates sorted by descending score
    """
    cfg = cfg or SchedulerConfig()
    running_counts = running_counts or {}
    max_swap_points = max([e.swap_points or 0 for e in employees] + [1])

    candidates: List[Candidate] = []
    for employee in employees:
        emp_id = employee.id
        if is_capped(emp_id, running_counts.get(emp_id, 0), directives):
            continue

        avail = calculate_availability_score(availability.get((emp_id, slot.date)), slot.shift_name)
        if avail == 0:
            continue

        bonus, avail = conversation_adjustment(emp_id, slot.shift_name, avail, directives, cfg.bonuses)
        score = calculate_employee_score(
            rating=calculate_rating_score(employee, cfg.rating_weights),
            fairness=calculate_fairness_score(emp_id, history),
            availability=avail,
            swap=calculate_swap_score(employee, max_swap_points),
            tag_match=calculate_tag_match(employee, slot.required_tags),
            bonus=bonus,
            weights=cfg.weights,
        )
        candidates.append(Candidate(employee_id=emp_id, score=score, availability=avail))

    # sorted() is stable: equal scores keep roster order
    return sorted(candidates, key=lambda c: c.score, reverse=True)
