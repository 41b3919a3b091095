"""Repository classes for data access.

Repositories add and flush but never commit; the caller owns the transaction.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from .enums import AssignmentStatus, ConversationKind, ConversationStatus
from .models import (
    AvailabilityConstraint,
    Conversation,
    ConversationConstraint,
    Employee,
    ShiftAssignment,
    ShiftTemplate,
    SwapRequest,
    Team,
)

logger = logging.getLogger(__name__)


class TeamRepository:
    """Repository for team data access."""

    @staticmethod
    def get_by_id(session: Session, team_id: int) -> Optional[Team]:
        return session.get(Team, team_id)

    @staticmethod
    def create(session: Session, team: Team) -> Team:
        session.add(team)
        session.flush()
        return team


class EmployeeRepository:
    """Roster access: team members with tags, ratings and recent workload."""

    @staticmethod
    def get_by_id(session: Session, employee_id: int) -> Optional[Employee]:
        return session.get(Employee, employee_id)

    @staticmethod
    def list_for_team(session: Session, team_id: int) -> List[Employee]:
        """Get team members in a stable (id) order with tags and ratings loaded."""
        return (
            session.query(Employee)
            .options(selectinload(Employee.tags), selectinload(Employee.ratings))
            .filter(Employee.team_id == team_id)
            .order_by(Employee.id)
            .all()
        )

    @staticmethod
    def trailing_assignment_counts(
        session: Session,
        team_id: int,
        week_start: date,
        days: int = 30,
    ) -> Dict[int, int]:
        """
        Count each team member's assignments in the window before a week.

        Args:
            session: Database session
            team_id: Team whose members are counted
            week_start: First day of the target week (excluded from the window)
            days: Window length in days

        Returns:
            Dict of employee_id -> assignment count (0 for members with none)
        """
        member_ids = [
            emp_id for (emp_id,) in session.query(Employee.id).filter(Employee.team_id == team_id)
        ]
        counts = Counter({emp_id: 0 for emp_id in member_ids})
        if not member_ids:
            return dict(counts)
        window_start = week_start - timedelta(days=days)
        rows = (
            session.query(ShiftAssignment.employee_id)
            .filter(ShiftAssignment.employee_id.in_(member_ids))
            .filter(ShiftAssignment.date >= window_start)
            .filter(ShiftAssignment.date < week_start)
            .all()
        )
        counts.update(emp_id for (emp_id,) in rows)
        return dict(counts)

    @staticmethod
    def bulk_create(session: Session, employees: List[Employee]) -> None:
        session.add_all(employees)
        session.flush()


class TemplateRepository:
    """Repository for recurring shift templates."""

    @staticmethod
    def list_for_team(session: Session, team_id: int) -> List[ShiftTemplate]:
        return (
            session.query(ShiftTemplate)
            .filter(ShiftTemplate.team_id == team_id)
            .order_by(ShiftTemplate.day_of_week, ShiftTemplate.id)
            .all()
        )

    @staticmethod
    def bulk_create(session: Session, templates: List[ShiftTemplate]) -> None:
        session.add_all(templates)
        session.flush()


class ConstraintRepository:
    """Constraint store: availability declarations and approved conversation directives."""

    @staticmethod
    def list_availability(session: Session, team_id: int, week_start: date) -> List[AvailabilityConstraint]:
        return (
            session.query(AvailabilityConstraint)
            .join(Employee, AvailabilityConstraint.employee_id == Employee.id)
            .filter(Employee.team_id == team_id)
            .filter(AvailabilityConstraint.week_start == week_start)
            .order_by(AvailabilityConstraint.date, AvailabilityConstraint.id)
            .all()
        )

    @staticmethod
    def find_completed_conversation(
        session: Session,
        team_id: int,
        week_start: date,
        conversation_id: int | None = None,
    ) -> Optional[Conversation]:
        """Get the completed preparation conversation for a team week (or the given one)."""
        query = (
            session.query(Conversation)
            .filter(Conversation.team_id == team_id)
            .filter(Conversation.week_start == week_start)
            .filter(Conversation.status == ConversationStatus.COMPLETED)
        )
        if conversation_id is not None:
            return query.filter(Conversation.id == conversation_id).first()
        return (
            query.filter(Conversation.kind == ConversationKind.PREPARATION)
            .order_by(Conversation.completed_at.desc(), Conversation.id.desc())
            .first()
        )

    @staticmethod
    def list_approved_directives(
        session: Session,
        team_id: int,
        week_start: date,
        conversation_id: int | None = None,
    ) -> List[ConversationConstraint]:
        """Approved constraints of the team week's completed conversation, in creation order."""
        conversation = ConstraintRepository.find_completed_conversation(
            session, team_id, week_start, conversation_id
        )
        if conversation is None:
            if conversation_id is not None:
                logger.warning(
                    "Conversation %s is not a completed conversation for team %s week %s; ignoring it",
                    conversation_id, team_id, week_start,
                )
            return []
        return (
            session.query(ConversationConstraint)
            .filter(ConversationConstraint.conversation_id == conversation.id)
            .filter(ConversationConstraint.approved.is_(True))
            .order_by(ConversationConstraint.id)
            .all()
        )

    @staticmethod
    def bulk_create(session: Session, constraints: List[AvailabilityConstraint]) -> None:
        session.add_all(constraints)
        session.flush()


class AssignmentRepository:
    """Repository for shift assignments."""

    @staticmethod
    def get_by_id(session: Session, assignment_id: int) -> Optional[ShiftAssignment]:
        return session.get(ShiftAssignment, assignment_id)

    @staticmethod
    def list_for_week(session: Session, team_id: int, week_start: date) -> List[ShiftAssignment]:
        return (
            session.query(ShiftAssignment)
            .filter(ShiftAssignment.team_id == team_id)
            .filter(ShiftAssignment.week_start == week_start)
            .order_by(ShiftAssignment.date, ShiftAssignment.id)
            .all()
        )

    @staticmethod
    def list_for_slot(session: Session, team_id: int, slot_date: date, shift_name) -> List[ShiftAssignment]:
        return (
            session.query(ShiftAssignment)
            .filter(ShiftAssignment.team_id == team_id)
            .filter(ShiftAssignment.date == slot_date)
            .filter(ShiftAssignment.shift_name == shift_name)
            .all()
        )

    @staticmethod
    def bulk_create(session: Session, assignments: List[ShiftAssignment]) -> None:
        session.add_all(assignments)
        session.flush()

    @staticmethod
    def delete_drafts(session: Session, team_id: int, week_start: date) -> int:
        """Delete only draft assignments of a team week. Returns number of deleted rows."""
        return (
            session.query(ShiftAssignment)
            .filter(ShiftAssignment.team_id == team_id)
            .filter(ShiftAssignment.week_start == week_start)
            .filter(ShiftAssignment.status == AssignmentStatus.DRAFT)
            .delete(synchronize_session=False)
        )

    @staticmethod
    def publish_drafts(session: Session, team_id: int, week_start: date) -> int:
        """Move a team week's draft assignments to published. Returns number of updated rows."""
        return (
            session.query(ShiftAssignment)
            .filter(ShiftAssignment.team_id == team_id)
            .filter(ShiftAssignment.week_start == week_start)
            .filter(ShiftAssignment.status == AssignmentStatus.DRAFT)
            .update({ShiftAssignment.status: AssignmentStatus.PUBLISHED}, synchronize_session=False)
        )


class SwapRepository:
    """Repository for swap requests."""

    @staticmethod
    def get_by_id(session: Session, swap_id: int) -> Optional[SwapRequest]:
        return session.get(SwapRequest, swap_id)

    @staticmethod
    def create(session: Session, swap: SwapRequest) -> SwapRequest:
        session.add(swap)
        session.flush()
        return swap
