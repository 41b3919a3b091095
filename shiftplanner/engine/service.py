"""Schedule service - generates, explains, publishes and edits weekly schedules."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shiftplanner.config import SchedulerConfig
from shiftplanner.domain.db import session_scope
from shiftplanner.domain.enums import AssignmentStatus, ShiftName, SwapStatus
from shiftplanner.domain.models import Conversation, Employee, ShiftAssignment, SwapRequest, utcnow
from shiftplanner.domain.repositories import (
    AssignmentRepository,
    ConstraintRepository,
    EmployeeRepository,
    SwapRepository,
    TeamRepository,
    TemplateRepository,
)
from shiftplanner.errors import (
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ScheduleInputError,
    SchedulingError,
)
from shiftplanner.services.directives import Directive, parse_directives
from shiftplanner.services.reasoning import build_reasoning, build_warnings, occupants_by_slot
from shiftplanner.services.scoring import (
    AvailabilityIndex,
    calculate_availability_score,
    index_availability,
    rank_candidates,
)
from shiftplanner.services.slots import Slot, build_slots, default_templates, validate_week_start

from .base import SlotDecision
from .solver import GreedySolver, SolverContext

logger = logging.getLogger(__name__)

_SCOPE_LOCKS: Dict[Tuple[int, date], threading.Lock] = {}
_SCOPE_LOCKS_GUARD = threading.Lock()


def scope_lock(team_id: int, week_start: date) -> threading.Lock:
    """One lock per (team, week): generations of the same week never interleave."""
    with _SCOPE_LOCKS_GUARD:
        return _SCOPE_LOCKS.setdefault((team_id, week_start), threading.Lock())


def _require(value, name: str):
    if value is None or value == "":
        raise ScheduleInputError(f"{name} is required")
    return value


def _shift(value) -> ShiftName:
    try:
        return ShiftName(getattr(value, "value", value))
    except ValueError:
        raise ScheduleInputError(
            f"Unknown shift name {value!r}; expected one of {[s.value for s in ShiftName]}"
        ) from None


@dataclass
class WeekInputs:
    """Everything the scheduler reads for one team week."""

    employees: List[Employee]
    availability: AvailabilityIndex
    directives: List[Directive]
    conversation: Optional[Conversation] = None

    @property
    def names(self) -> Dict[int, str]:
        return {e.id: e.name for e in self.employees}

    @property
    def tags(self) -> Dict[int, set]:
        return {e.id: e.tag_set for e in self.employees}


@dataclass
class ScheduleResult:
    assignments: List[ShiftAssignment] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def load_week_inputs(
    session: Session,
    team_id: int,
    week_start: date,
    cfg: SchedulerConfig,
    conversation_id: int | None = None,
) -> WeekInputs:
    employees = EmployeeRepository.list_for_team(session, team_id)
    availability = index_availability(ConstraintRepository.list_availability(session, team_id, week_start))
    conversation = ConstraintRepository.find_completed_conversation(session, team_id, week_start, conversation_id)
    if conversation is None and conversation_id is not None:
        logger.warning(
            "Conversation %s is not a completed conversation for team %s week %s; "
            "using the latest preparation conversation instead",
            conversation_id, team_id, week_start,
        )
        conversation = ConstraintRepository.find_completed_conversation(session, team_id, week_start)
    directives: List[Directive] = []
    if conversation is not None:
        rows = ConstraintRepository.list_approved_directives(session, team_id, week_start, conversation.id)
        directives = parse_directives(rows, [e.id for e in employees], cfg.shift_type_aliases)
    return WeekInputs(employees, availability, directives, conversation)


def plan_week(
    slots: Sequence[Slot],
    inputs: WeekInputs,
    history: Dict[int, int],
    cfg: SchedulerConfig,
    locked: Sequence[ShiftAssignment] = (),
) -> Tuple[List[SlotDecision], Dict[Tuple, List[int]]]:
    """
    Score, order and solve the week.

    Args:
        slots: Week slots in calendar order
        inputs: Roster, availability and directives
        history: Trailing assignment counts per employee
        cfg: SchedulerConfig
        locked: Non-draft assignments of the week that regeneration keeps

    Returns:
        (solver decisions, occupants per slot key with locked rows first)
    """
    ctx = SolverContext()
    locked_by_slot = occupants_by_slot(locked)
    slot_by_key = {s.key: s for s in slots}
    for key, emp_ids in locked_by_slot.items():
        slot = slot_by_key.get(key)
        if slot is None:
            continue
        for emp_id in emp_ids:
            ctx.record(emp_id, slot)

    residual: List[Slot] = []
    candidates: Dict[Slot, list] = {}
    for slot in slots:
        kept = locked_by_slot.get(slot.key, [])
        open_slot = replace(slot, required_count=max(0, slot.required_count - len(kept)))
        ranked = rank_candidates(
            open_slot,
            inputs.employees,
            inputs.availability,
            history,
            inputs.directives,
            ctx.running_counts,
            cfg,
        )
        candidates[open_slot] = [c for c in ranked if c.employee_id not in kept]
        residual.append(open_slot)

    solver = GreedySolver(inputs.directives, cfg.max_consecutive_days)
    logger.debug("Running %s solver over %d slots (%d locked assignments)", solver.get_name(), len(residual), len(locked))
    decisions = solver.solve(residual, candidates, ctx, kept=locked_by_slot)

    occupants: Dict[Tuple, List[int]] = {key: list(ids) for key, ids in locked_by_slot.items()}
    for decision in decisions:
        occupants.setdefault(decision.slot.key, []).extend(decision.accepted)
    return decisions, occupants


class ScheduleService:
    """
    Entry point for callers (CLI, HTTP layer).

    Each public method runs in its own session and transaction obtained from
    ``session_factory``.
    """

    def __init__(self, session_factory, cfg: SchedulerConfig | None = None):
        self.session_factory = session_factory
        self.cfg = cfg or SchedulerConfig()

    # -- generation -----------------------------------------------------

    def generate(self, team_id: int, week_start: date, conversation_id: int | None = None) -> ScheduleResult:
        """
        Build the week's draft schedule, replacing previous drafts of the same scope.

        Published and swapped assignments are kept and count towards their slots.

        Raises:
            ScheduleInputError: If team/week are missing or malformed
            NotFoundError: If the team does not exist
            PersistenceError: If the transactional write fails (nothing is kept)
        """
        _require(team_id, "team_id")
        validate_week_start(_require(week_start, "week_start"))

        with scope_lock(team_id, week_start):
            session = self.session_factory()
            try:
                result = self._generate(session, team_id, week_start, conversation_id)
                session.commit()
            except SchedulingError:
                session.rollback()
                raise
            except SQLAlchemyError as e:
                session.rollback()
                logger.exception("Schedule generation failed for team %s week %s", team_id, week_start)
                raise PersistenceError(f"Failed to store schedule for team {team_id} week {week_start}: {e}") from e
            finally:
                session.close()

        logger.info(
            "Generated %d assignments for team %s week %s (%d warnings)",
            len(result.assignments), team_id, week_start, len(result.warnings),
        )
        return result

    def _generate(
        self,
        session: Session,
        team_id: int,
        week_start: date,
        conversation_id: int | None,
    ) -> ScheduleResult:
        if TeamRepository.get_by_id(session, team_id) is None:
            raise NotFoundError(f"Team {team_id} not found")

        templates = TemplateRepository.list_for_team(session, team_id)
        if not templates:
            TemplateRepository.bulk_create(session, default_templates(team_id, self.cfg))
            templates = TemplateRepository.list_for_team(session, team_id)
            logger.info("Created %d default shift templates for team %s", len(templates), team_id)

        slots = build_slots(week_start, templates)
        inputs = load_week_inputs(session, team_id, week_start, self.cfg, conversation_id)
        history = EmployeeRepository.trailing_assignment_counts(
            session, team_id, week_start, self.cfg.fairness_lookback_days
        )

        deleted = AssignmentRepository.delete_drafts(session, team_id, week_start)
        if deleted:
            logger.info("Deleted %d existing draft assignments for team %s week %s", deleted, team_id, week_start)
        locked = AssignmentRepository.list_for_week(session, team_id, week_start)

        decisions, occupants = plan_week(slots, inputs, history, self.cfg, locked)
        accepted = {d.slot.key: d.accepted for d in decisions}

        rows: List[ShiftAssignment] = []
        conversation_ref = inputs.conversation.id if inputs.conversation is not None else None
        for slot in slots:
            for emp_id in accepted.get(slot.key, []):
                lines, influenced = build_reasoning(
                    emp_id, inputs.availability.get((emp_id, slot.date)), inputs.directives
                )
                rows.append(
                    ShiftAssignment(
                        team_id=team_id,
                        week_start=week_start,
                        employee_id=emp_id,
                        date=slot.date,
                        shift_name=slot.shift_name,
                        status=AssignmentStatus.DRAFT,
                        reasoning=lines,
                        conversation_influenced=influenced,
                        conversation_id=conversation_ref,
                    )
                )
        AssignmentRepository.bulk_create(session, rows)

        warnings = build_warnings(
            slots,
            occupants,
            self._names(session, inputs, occupants),
            self._tags(session, inputs, occupants),
            inputs.availability,
            inputs.directives,
        )
        return ScheduleResult(assignments=rows, warnings=warnings)

    # -- read side ------------------------------------------------------

    def get_schedule(self, team_id: int, week_start: date) -> List[ShiftAssignment]:
        _require(team_id, "team_id")
        validate_week_start(_require(week_start, "week_start"))
        session = self.session_factory()
        try:
            return AssignmentRepository.list_for_week(session, team_id, week_start)
        finally:
            session.close()

    def get_warnings(self, team_id: int, week_start: date) -> List[str]:
        """Re-derive warnings from the stored schedule without solving again."""
        _require(team_id, "team_id")
        validate_week_start(_require(week_start, "week_start"))
        session = self.session_factory()
        try:
            rows = AssignmentRepository.list_for_week(session, team_id, week_start)
            # The newest row belongs to the latest generation
            latest = max(rows, key=lambda r: r.id, default=None)
            conversation_id = latest.conversation_id if latest is not None else None
            inputs = load_week_inputs(session, team_id, week_start, self.cfg, conversation_id)
            slots = build_slots(week_start, TemplateRepository.list_for_team(session, team_id))
            occupants = occupants_by_slot(rows)
            return build_warnings(
                slots,
                occupants,
                self._names(session, inputs, occupants),
                self._tags(session, inputs, occupants),
                inputs.availability,
                inputs.directives,
            )
        finally:
            session.close()

    # -- manual edits and publishing -------------------------------------

    def move(self, assignment_id: int, new_date: date, new_shift_name) -> ShiftAssignment:
        """Move an assignment to another slot. Hard rules are not re-checked."""
        _require(assignment_id, "assignment_id")
        _require(new_date, "new_date")
        shift_name = _shift(_require(new_shift_name, "new_shift_name"))
        with self._transaction() as session:
            assignment = self._assignment(session, assignment_id)
            assignment.date = new_date
            assignment.shift_name = shift_name
            session.flush()
            return assignment

    def publish(self, team_id: int, week_start: date) -> int:
        """Publish a team week's drafts. Returns the number of published assignments."""
        _require(team_id, "team_id")
        validate_week_start(_require(week_start, "week_start"))
        with self._transaction() as session:
            count = AssignmentRepository.publish_drafts(session, team_id, week_start)
        logger.info("Published %d assignments for team %s week %s", count, team_id, week_start)
        return count

    # -- swap status transitions ------------------------------------------

    def request_swap(self, assignment_id: int, requester_id: int) -> SwapRequest:
        with self._transaction() as session:
            assignment = self._assignment(session, assignment_id)
            if assignment.employee_id != requester_id:
                raise InvalidTransitionError(
                    f"Assignment {assignment_id} does not belong to employee {requester_id}"
                )
            self._expect(assignment, AssignmentStatus.PUBLISHED)
            swap = SwapRepository.create(
                session,
                SwapRequest(assignment_id=assignment.id, requester_id=requester_id, status=SwapStatus.OPEN),
            )
            assignment.status = AssignmentStatus.SWAP_REQUESTED
            return swap

    def cover_swap(self, swap_id: int, coverer_id: int) -> SwapRequest:
        with self._transaction() as session:
            swap = self._swap(session, swap_id, SwapStatus.OPEN)
            assignment = self._assignment(session, swap.assignment_id)
            if coverer_id == assignment.employee_id:
                raise InvalidTransitionError("An employee cannot cover their own shift")
            if coverer_id not in {e.id for e in self.eligible_coverers(assignment.id, session=session)}:
                raise InvalidTransitionError(
                    f"Employee {coverer_id} cannot cover assignment {assignment.id}"
                )
            swap.coverer_id = coverer_id
            swap.status = SwapStatus.COVERED
            assignment.status = AssignmentStatus.COVERED
            return swap

    def approve_swap(self, swap_id: int) -> ShiftAssignment:
        """Hand the shift to the coverer and settle swap points."""
        with self._transaction() as session:
            swap = self._swap(session, swap_id, SwapStatus.COVERED)
            assignment = self._assignment(session, swap.assignment_id)
            assignment.employee_id = swap.coverer_id
            assignment.status = AssignmentStatus.SWAPPED
            swap.status = SwapStatus.APPROVED
            swap.resolved_at = utcnow()

            coverer = EmployeeRepository.get_by_id(session, swap.coverer_id)
            if coverer is not None:
                coverer.swap_points = (coverer.swap_points or 0) + 1
            requester = EmployeeRepository.get_by_id(session, swap.requester_id)
            if requester is not None and (requester.swap_points or 0) > 0:
                requester.swap_points -= 1
            session.flush()
            return assignment

    def reject_swap(self, swap_id: int) -> ShiftAssignment:
        with self._transaction() as session:
            swap = self._swap(session, swap_id, SwapStatus.OPEN, SwapStatus.COVERED)
            assignment = self._assignment(session, swap.assignment_id)
            swap.status = SwapStatus.REJECTED
            swap.resolved_at = utcnow()
            assignment.status = AssignmentStatus.PUBLISHED
            session.flush()
            return assignment

    def eligible_coverers(self, assignment_id: int, session: Session | None = None) -> List[Employee]:
        """Team members who could take over an assignment."""
        if session is None:
            session = self.session_factory()
            try:
                return self.eligible_coverers(assignment_id, session=session)
            finally:
                session.close()

        assignment = self._assignment(session, assignment_id)
        shift_name = ShiftName(assignment.shift_name)
        busy = {
            a.employee_id
            for a in AssignmentRepository.list_for_slot(session, assignment.team_id, assignment.date, shift_name)
        }
        availability = index_availability(
            ConstraintRepository.list_availability(session, assignment.team_id, assignment.week_start)
        )
        return [
            e
            for e in EmployeeRepository.list_for_team(session, assignment.team_id)
            if e.id != assignment.employee_id
            and e.id not in busy
            and calculate_availability_score(availability.get((e.id, assignment.date)), shift_name) > 0
        ]

    # -- helpers ----------------------------------------------------------

    def _transaction(self):
        return session_scope(self.session_factory)

    @staticmethod
    def _assignment(session: Session, assignment_id: int) -> ShiftAssignment:
        assignment = AssignmentRepository.get_by_id(session, assignment_id)
        if assignment is None:
            raise NotFoundError(f"Assignment {assignment_id} not found")
        return assignment

    @staticmethod
    def _swap(session: Session, swap_id: int, *allowed: SwapStatus) -> SwapRequest:
        swap = SwapRepository.get_by_id(session, swap_id)
        if swap is None:
            raise NotFoundError(f"Swap request {swap_id} not found")
        if SwapStatus(swap.status) not in allowed:
            raise InvalidTransitionError(
                f"Swap request {swap_id} is {SwapStatus(swap.status).value}; "
                f"expected {' or '.join(s.value for s in allowed)}"
            )
        return swap

    @staticmethod
    def _expect(assignment: ShiftAssignment, *allowed: AssignmentStatus) -> None:
        if AssignmentStatus(assignment.status) not in allowed:
            raise InvalidTransitionError(
                f"Assignment {assignment.id} is {AssignmentStatus(assignment.status).value}; "
                f"expected {' or '.join(s.value for s in allowed)}"
            )

    @staticmethod
    def _outsiders(inputs: WeekInputs, occupants: Dict[Tuple, List[int]]) -> List[int]:
        known = {e.id for e in inputs.employees}
        return sorted({emp_id for ids in occupants.values() for emp_id in ids} - known)

    def _names(self, session: Session, inputs: WeekInputs, occupants) -> Dict[int, str]:
        names = inputs.names
        for emp_id in self._outsiders(inputs, occupants):
            employee = EmployeeRepository.get_by_id(session, emp_id)
            names[emp_id] = employee.name if employee is not None else str(emp_id)
        return names

    def _tags(self, session: Session, inputs: WeekInputs, occupants) -> Dict[int, set]:
        tags = inputs.tags
        for emp_id in self._outsiders(inputs, occupants):
            employee = EmployeeRepository.get_by_id(session, emp_id)
            tags[emp_id] = employee.tag_set if employee is not None else set()
        return tags
