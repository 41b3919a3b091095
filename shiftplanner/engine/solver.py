"""Greedy constructive solver with most-constrained-slot-first ordering."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Set, Tuple

from shiftplanner.domain.enums import ShiftName
from shiftplanner.services.directives import Directive, separation_conflict
from shiftplanner.services.scoring import Candidate, is_capped
from shiftplanner.services.slots import Slot

from .base import BaseSolver, SlotDecision

logger = logging.getLogger(__name__)

# Rejection reasons, also used in debug logs
CAPPED = "workload cap"
SEPARATED = "hard separation"
REST = "rest rule"
CONSECUTIVE = "consecutive days"


@dataclass
class SolverContext:
    """Per-employee running state threaded through one scheduling run."""

    running_counts: Dict[int, int] = field(default_factory=lambda: defaultdict(int))
    worked_dates: Dict[int, Set[date]] = field(default_factory=lambda: defaultdict(set))
    shifts_by_day: Dict[Tuple[int, int], Set[ShiftName]] = field(default_factory=lambda: defaultdict(set))

    def record(self, employee_id: int, slot: Slot) -> None:
        self.running_counts[employee_id] += 1
        self.worked_dates[employee_id].add(slot.date)
        self.shifts_by_day[(employee_id, slot.day_index)].add(slot.shift_name)

    def worked(self, employee_id: int, day_index: int, shift_name: ShiftName) -> bool:
        return shift_name in self.shifts_by_day.get((employee_id, day_index), ())

    def consecutive_before(self, employee_id: int, day: date) -> int:
        """Worked days immediately preceding ``day``, walking back until a gap."""
        worked = self.worked_dates.get(employee_id, set())
        count = 0
        current = day - timedelta(days=1)
        while current in worked:
            count += 1
            current -= timedelta(days=1)
        return count

    def consecutive_after(self, employee_id: int, day: date) -> int:
        worked = self.worked_dates.get(employee_id, set())
        count = 0
        current = day + timedelta(days=1)
        while current in worked:
            count += 1
            current += timedelta(days=1)
        return count


def violates_rest_rule(ctx: SolverContext, employee_id: int, slot: Slot) -> bool:
    """
    Night on day d forbids morning on day d+1.

    Slots are not decided in calendar order, so both neighbours are checked.
    """
    if slot.shift_name == ShiftName.MORNING:
        return ctx.worked(employee_id, slot.day_index - 1, ShiftName.NIGHT)
    if slot.shift_name == ShiftName.NIGHT:
        return ctx.worked(employee_id, slot.day_index + 1, ShiftName.MORNING)
    return False


def exceeds_consecutive_cap(ctx: SolverContext, employee_id: int, slot: Slot, max_days: int) -> bool:
    """True when working ``slot.date`` would create a run longer than ``max_days``."""
    if slot.date in ctx.worked_dates.get(employee_id, ()):
        return False
    before = ctx.consecutive_before(employee_id, slot.date)
    if before >= max_days:
        return True
    return before + 1 + ctx.consecutive_after(employee_id, slot.date) > max_days


class GreedySolver(BaseSolver):
    """
    Single forward pass over the week, most constrained slot first.

    Decisions are never revisited: a slot solved early may take someone a
    later slot needed, which then shows up as a shortage warning.
    """

    name = "greedy"

    def __init__(self, directives: Sequence[Directive] = (), max_consecutive_days: int = 6):
        self.directives = list(directives)
        self.max_consecutive_days = max_consecutive_days

    @staticmethod
    def order_slots(slots: Sequence[Slot], candidates: Dict[Slot, List[Candidate]]) -> List[Slot]:
        """Ascending candidate-list size; ties keep calendar order."""
        return sorted(slots, key=lambda s: len(candidates.get(s, [])))

    def rejection_reason(
        self,
        ctx: SolverContext,
        employee_id: int,
        slot: Slot,
        accepted: List[int],
    ) -> Optional[str]:
        """Checks in order: running cap, hard separation, rest rule, consecutive days."""
        if is_capped(employee_id, ctx.running_counts.get(employee_id, 0), self.directives):
            return CAPPED
        if separation_conflict(employee_id, accepted, slot.shift_name, self.directives, hard=True):
            return SEPARATED
        if violates_rest_rule(ctx, employee_id, slot):
            return REST
        if exceeds_consecutive_cap(ctx, employee_id, slot, self.max_consecutive_days):
            return CONSECUTIVE
        return None

    def solve(
        self,
        slots: Sequence[Slot],
        candidates: Dict[Slot, List[Candidate]],
        ctx: SolverContext | None = None,
        kept: Dict[Tuple, List[int]] | None = None,
    ) -> List[SlotDecision]:
        """
        Fill each slot from its ranked candidates.

        ``kept`` maps slot keys to employees already holding the slot from an
        earlier run; they count for hard separation but are never re-added.
        """
        ctx = ctx if ctx is not None else SolverContext()
        kept = kept or {}
        ordered = self.order_slots(slots, candidates)
        if ordered:
            logger.debug(
                "Solving %d slots; most constrained first: %s %s (%d candidates)",
                len(ordered), ordered[0].date, ordered[0].shift_name.value,
                len(candidates.get(ordered[0], [])),
            )

        decisions: List[SlotDecision] = []
        for slot in ordered:
            ranked = candidates.get(slot, [])
            holders = kept.get(slot.key, [])
            decision = SlotDecision(slot=slot, candidate_count=len(ranked))
            for candidate in ranked:
                if len(decision.accepted) >= slot.required_count:
                    break
                emp_id = candidate.employee_id
                reason = self.rejection_reason(ctx, emp_id, slot, holders + decision.accepted)
                if reason is not None:
                    logger.debug("Skipping employee %s for %s %s: %s", emp_id, slot.date, slot.shift_name.value, reason)
                    continue
                decision.accepted.append(emp_id)
                ctx.record(emp_id, slot)

            if decision.shortage:
                logger.info(
                    "Slot %s %s short by %d (%d candidates)",
                    slot.date, slot.shift_name.value, decision.shortage, len(ranked),
                )
            decisions.append(decision)
        return decisions
