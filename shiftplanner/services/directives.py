"""Typed view of manager-approved conversation constraints.

Each stored ``ConversationConstraint`` row is parsed once into one of the
directive dataclasses below; scoring, solving and reasoning then match on the
directive class instead of on category strings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Union

from shiftplanner.domain.enums import DirectiveCategory, DirectiveType, ShiftName
from shiftplanner.domain.models import ConversationConstraint

logger = logging.getLogger(__name__)

DEFAULT_SHIFT_ALIASES = {
    "morning": "morning",
    "evening": "evening",
    "night": "night",
    "closing": "evening",
}


@dataclass(frozen=True)
class _DirectiveBase:
    constraint_id: Optional[int]
    type: DirectiveType
    category: DirectiveCategory
    description: str
    employees: FrozenSet[int]

    @property
    def is_hard(self) -> bool:
        return self.type == DirectiveType.HARD

    @property
    def is_soft(self) -> bool:
        return self.type == DirectiveType.SOFT

    def names(self, employee_id: int) -> bool:
        return employee_id in self.employees


@dataclass(frozen=True)
class SeparationDirective(_DirectiveBase):
    """Named employees must not share a slot. Empty shift_types means every shift."""

    shift_types: FrozenSet[ShiftName] = frozenset()

    def applies_to(self, shift_name: ShiftName) -> bool:
        return not self.shift_types or shift_name in self.shift_types


@dataclass(frozen=True)
class WorkloadDirective(_DirectiveBase):
    """Covers both the ``workload`` and ``burnout`` categories."""

    max_shifts: Optional[int] = None
    preferred_types: FrozenSet[ShiftName] = frozenset()

    def caps(self, employee_id: int, running_count: int) -> bool:
        """True when a hard cap excludes the employee at this running count."""
        return (
            self.is_hard
            and self.max_shifts is not None
            and employee_id in self.employees
            and running_count >= self.max_shifts
        )


@dataclass(frozen=True)
class DevelopmentDirective(_DirectiveBase):
    shift_types: FrozenSet[ShiftName] = frozenset()


@dataclass(frozen=True)
class PairingDirective(_DirectiveBase):
    pass


@dataclass(frozen=True)
class UtilizationDirective(_DirectiveBase):
    pass


Directive = Union[
    SeparationDirective,
    WorkloadDirective,
    DevelopmentDirective,
    PairingDirective,
    UtilizationDirective,
]


def map_shift_types(values, aliases: Mapping[str, str] | None = None) -> FrozenSet[ShiftName]:
    """Map free-form shift words (e.g. "closing") onto the shift catalog, dropping unknown words."""
    aliases = aliases or DEFAULT_SHIFT_ALIASES
    if values is None:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    mapped = set()
    for value in values:
        target = aliases.get(str(value).strip().lower())
        if target is None:
            logger.debug("Ignoring unknown shift type %r in directive parameters", value)
            continue
        mapped.add(ShiftName(target))
    return frozenset(mapped)


def _max_shifts(parameters: Dict) -> Optional[int]:
    value = parameters.get("max_shifts")
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric max_shifts=%r", value)
        return None


def parse_directive(
    row: ConversationConstraint,
    team_ids: Iterable[int] | None = None,
    aliases: Mapping[str, str] | None = None,
) -> Directive:
    """
    Parse one stored conversation constraint into its typed directive.

    Args:
        row: Stored constraint
        team_ids: Ids of the team's members; other ids are dropped
        aliases: Shift-word mapping for ``shift_types`` / ``preferred_types``

    Returns:
        The directive matching the row's category

    Raises:
        ValueError: If the category is not one the scheduler handles
    """
    category = DirectiveCategory(row.category)
    parameters = dict(row.parameters or {})
    affected = {int(emp_id) for emp_id in (row.affected_employees or [])}
    if team_ids is not None:
        team_ids = set(team_ids)
        dropped = affected - team_ids
        if dropped:
            logger.debug("Constraint %s names non-members %s; ignoring them", row.id, sorted(dropped))
        affected &= team_ids

    common = dict(
        constraint_id=row.id,
        type=DirectiveType(row.type),
        category=category,
        description=row.description or "",
        employees=frozenset(affected),
    )

    if category == DirectiveCategory.SEPARATION:
        return SeparationDirective(shift_types=map_shift_types(parameters.get("shift_types"), aliases), **common)
    if category in (DirectiveCategory.WORKLOAD, DirectiveCategory.BURNOUT):
        return WorkloadDirective(
            max_shifts=_max_shifts(parameters),
            preferred_types=map_shift_types(parameters.get("preferred_types"), aliases),
            **common,
        )
    if category == DirectiveCategory.DEVELOPMENT:
        return DevelopmentDirective(shift_types=map_shift_types(parameters.get("shift_types"), aliases), **common)
    if category == DirectiveCategory.PAIRING:
        return PairingDirective(**common)
    if category == DirectiveCategory.UTILIZATION:
        return UtilizationDirective(**common)
    raise ValueError(f"Unhandled directive category: {category}")


def parse_directives(
    rows: Iterable[ConversationConstraint],
    team_ids: Iterable[int] | None = None,
    aliases: Mapping[str, str] | None = None,
) -> List[Directive]:
    """Parse approved rows; unapproved rows are skipped."""
    team_ids = None if team_ids is None else set(team_ids)
    return [parse_directive(row, team_ids, aliases) for row in rows if row.approved]


def directives_for(employee_id: int, directives: Iterable[Directive]) -> List[Directive]:
    return [d for d in directives if d.names(employee_id)]


def separation_conflict(
    employee_id: int,
    others: Iterable[int],
    shift_name: ShiftName,
    directives: Iterable[Directive],
    hard: bool,
) -> Optional[SeparationDirective]:
    """First separation directive of the requested strength pairing ``employee_id`` with any of ``others``."""
    wanted = DirectiveType.HARD if hard else DirectiveType.SOFT
    others = [o for o in others if o != employee_id]
    for directive in directives:
        if not isinstance(directive, SeparationDirective) or directive.type != wanted:
            continue
        if not directive.applies_to(shift_name) or employee_id not in directive.employees:
            continue
        if any(other in directive.employees for other in others):
            return directive
    return None
