"""Per-assignment justifications and schedule warnings.

``build_warnings`` is the one derivation used both right after solving and
when warnings are requested later for a stored schedule, so both paths
produce the same strings in the same order.
"""

from __future__ import annotations

from itertools import combinations
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from shiftplanner.domain.enums import DirectiveCategory, ShiftName
from shiftplanner.domain.models import AvailabilityConstraint

from .directives import Directive, SeparationDirective, separation_conflict
from .scoring import AvailabilityIndex, is_soft_violation
from .slots import Slot

DAY_LABELS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

CATEGORY_LABELS = {
    DirectiveCategory.SEPARATION: "Separation",
    DirectiveCategory.DEVELOPMENT: "Development",
    DirectiveCategory.UTILIZATION: "Utilization",
    DirectiveCategory.WORKLOAD: "Workload",
    DirectiveCategory.BURNOUT: "Workload",
    DirectiveCategory.PAIRING: "Pairing",
}


def day_label(day_index: int) -> str:
    return DAY_LABELS[day_index % 7]


def shift_label(shift_name: ShiftName) -> str:
    return ShiftName(shift_name).value


def describe_availability(constraint: Optional[AvailabilityConstraint]) -> str:
    if constraint is None:
        return "Available (no constraint declared)"
    text = (
        f"Availability: {getattr(constraint.availability, 'value', constraint.availability)} "
        f"({getattr(constraint.type, 'value', constraint.type)})"
    )
    if constraint.reason:
        text += f" - {constraint.reason}"
    return text


def describe_directive(directive: Directive) -> str:
    label = CATEGORY_LABELS[directive.category]
    description = directive.description or f"{directive.type.value} {directive.category.value} constraint"
    return f"{label}: {description}"


def build_reasoning(
    employee_id: int,
    constraint: Optional[AvailabilityConstraint],
    directives: Iterable[Directive],
) -> Tuple[List[str], bool]:
    """
    Justification lines for one assignment.

    Returns:
        (lines, conversation_influenced) where the flag is set when any line
        comes from a conversation directive
    """
    lines = [describe_availability(constraint)]
    influenced = False
    for directive in directives:
        if employee_id in directive.employees:
            lines.append(describe_directive(directive))
            influenced = True
    return lines, influenced


def shortage_warning(slot: Slot, missing: int) -> str:
    return f"{shift_label(slot.shift_name)} shift on {day_label(slot.day_index)}: missing {missing} employees"


def soft_violation_warning(name: str, slot: Slot) -> str:
    return (
        f"{name} assigned to {day_label(slot.day_index)} {shift_label(slot.shift_name)} "
        f"despite preferring not to"
    )


def soft_separation_warning(first: str, second: str, slot: Slot) -> str:
    return (
        f"{first} and {second} share the {day_label(slot.day_index)} {shift_label(slot.shift_name)} "
        f"shift despite a separation preference"
    )


def missing_tag_warning(tag: str, slot: Slot) -> str:
    return f"No employee with tag '{tag}' on the {day_label(slot.day_index)} {shift_label(slot.shift_name)} shift"


def slot_warnings(
    slot: Slot,
    occupants: Sequence[int],
    names: Mapping[int, str],
    tags: Mapping[int, Set[str]],
    availability: AvailabilityIndex,
    directives: Sequence[Directive],
) -> List[str]:
    """Shortage, soft availability, soft separation and missing-tag warnings for one slot."""
    warnings: List[str] = []

    missing = slot.required_count - len(occupants)
    if missing > 0:
        warnings.append(shortage_warning(slot, missing))

    for emp_id in occupants:
        if is_soft_violation(availability.get((emp_id, slot.date)), slot.shift_name):
            warnings.append(soft_violation_warning(names.get(emp_id, str(emp_id)), slot))

    if any(isinstance(d, SeparationDirective) and d.is_soft for d in directives):
        for first, second in combinations(occupants, 2):
            if separation_conflict(first, [second], slot.shift_name, directives, hard=False):
                warnings.append(
                    soft_separation_warning(names.get(first, str(first)), names.get(second, str(second)), slot)
                )

    for tag in slot.required_tags:
        if not any(tag in tags.get(emp_id, set()) for emp_id in occupants):
            warnings.append(missing_tag_warning(tag, slot))

    return warnings


def build_warnings(
    slots: Sequence[Slot],
    occupants: Mapping[Tuple, Sequence[int]],
    names: Mapping[int, str],
    tags: Mapping[int, Set[str]],
    availability: AvailabilityIndex,
    directives: Sequence[Directive] = (),
) -> List[str]:
    """
    Warnings for a whole week, slot by slot in calendar order.

    Args:
        slots: Week slots in calendar order
        occupants: (date, shift_name) -> employee ids in acceptance order
        names: employee_id -> display name
        tags: employee_id -> capability tags
        availability: Availability index for the week
        directives: Approved conversation directives

    Returns:
        Warning strings
    """
    warnings: List[str] = []
    for slot in slots:
        warnings.extend(
            slot_warnings(slot, occupants.get(slot.key, []), names, tags, availability, directives)
        )
    return warnings


def occupants_by_slot(rows: Iterable) -> Dict[Tuple, List[int]]:
    """Group (date, shift_name, employee_id) carriers by slot key, keeping row order."""
    grouped: Dict[Tuple, List[int]] = {}
    for row in rows:
        grouped.setdefault((row.date, ShiftName(row.shift_name)), []).append(row.employee_id)
    return grouped
