"""SQLAlchemy models for team shift scheduling."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship

from .enums import (
    AssignmentStatus,
    Availability,
    ConstraintType,
    ConversationKind,
    ConversationStatus,
    DirectiveCategory,
    DirectiveType,
    RatingCategory,
    ShiftName,
    SwapStatus,
)


def _enum(enum_cls):
    """Store enum values (not member names) as plain strings."""
    return Enum(
        enum_cls,
        native_enum=False,
        values_callable=lambda members: [m.value for m in members],
        length=20,
    )


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)

    employees = relationship("Employee", back_populates="team")
    templates = relationship("ShiftTemplate", back_populates="team")

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, name='{self.name}')>"


class Employee(Base):
    """Team member with capability tags, manager ratings and swap points."""

    __tablename__ = "employees"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    seniority = Column(Integer, nullable=False, default=0)  # years
    swap_points = Column(Integer, nullable=False, default=0)

    team = relationship("Team", back_populates="employees")
    tags = relationship("EmployeeTag", back_populates="employee", cascade="all, delete-orphan")
    ratings = relationship("Rating", back_populates="employee", cascade="all, delete-orphan")
    assignments = relationship("ShiftAssignment", back_populates="employee")

    @property
    def tag_set(self) -> set:
        return {t.tag for t in self.tags}

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, name='{self.name}', team={self.team_id})>"


class EmployeeTag(Base):
    __tablename__ = "employee_tags"
    __table_args__ = (UniqueConstraint("employee_id", "tag"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    tag = Column(String(50), nullable=False)  # e.g. "opener", "nights_ok"

    employee = relationship("Employee", back_populates="tags")


class Rating(Base):
    __tablename__ = "ratings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    category = Column(_enum(RatingCategory), nullable=False)
    score = Column(Integer, nullable=False)  # 1-5

    employee = relationship("Employee", back_populates="ratings")


class ShiftTemplate(Base):
    """Recurring weekly demand for one shift on one day of the week."""

    __tablename__ = "shift_templates"
    __table_args__ = (UniqueConstraint("team_id", "day_of_week", "shift_name"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday ... 6 = Saturday
    shift_name = Column(_enum(ShiftName), nullable=False)
    start_time = Column(String(5), nullable=False, default="07:00")
    end_time = Column(String(5), nullable=False, default="15:00")
    required_count = Column(Integer, nullable=False, default=2)
    required_tags = Column(JSON, nullable=False, default=list)

    team = relationship("Team", back_populates="templates")

    def __repr__(self) -> str:
        return (
            f"<ShiftTemplate(team={self.team_id}, day={self.day_of_week}, "
            f"shift='{self.shift_name}', required={self.required_count})>"
        )


class AvailabilityConstraint(Base):
    """An employee's declared availability for one date of a target week."""

    __tablename__ = "availability_constraints"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    week_start = Column(Date, nullable=False)
    date = Column(Date, nullable=False)
    type = Column(_enum(ConstraintType), nullable=False)
    availability = Column(_enum(Availability), nullable=False)
    reason = Column(Text, nullable=True)

    employee = relationship("Employee")

    def __repr__(self) -> str:
        return f"<AvailabilityConstraint(emp={self.employee_id}, date={self.date}, {self.type}/{self.availability})>"


class Conversation(Base):
    """Manager advisory conversation; only completed ones feed the scheduler."""

    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    week_start = Column(Date, nullable=False)
    kind = Column(_enum(ConversationKind), nullable=False, default=ConversationKind.PREPARATION)
    status = Column(_enum(ConversationStatus), nullable=False, default=ConversationStatus.ACTIVE)
    completed_at = Column(DateTime, nullable=True)

    constraints = relationship("ConversationConstraint", back_populates="conversation")


class ConversationConstraint(Base):
    """Structured scheduling directive extracted from a manager conversation."""

    __tablename__ = "conversation_constraints"

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id"), nullable=False)
    type = Column(_enum(DirectiveType), nullable=False)
    category = Column(_enum(DirectiveCategory), nullable=False)
    description = Column(Text, nullable=False, default="")
    affected_employees = Column(JSON, nullable=False, default=list)  # employee ids
    parameters = Column(JSON, nullable=False, default=dict)
    approved = Column(Boolean, nullable=False, default=False)

    conversation = relationship("Conversation", back_populates="constraints")

    def __repr__(self) -> str:
        return f"<ConversationConstraint(id={self.id}, {self.type}/{self.category}, approved={self.approved})>"


class ShiftAssignment(Base):
    """One employee occupying one (date, shift) slot of a team week."""

    __tablename__ = "shift_assignments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    week_start = Column(Date, nullable=False)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    date = Column(Date, nullable=False)
    shift_name = Column(_enum(ShiftName), nullable=False)
    status = Column(_enum(AssignmentStatus), nullable=False, default=AssignmentStatus.DRAFT)
    reasoning = Column(JSON, nullable=True)  # list of justification strings
    conversation_influenced = Column(Boolean, nullable=False, default=False)
    conversation_id = Column(Integer, ForeignKey("conversations.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    employee = relationship("Employee", back_populates="assignments")

    def __repr__(self) -> str:
        return (
            f"<ShiftAssignment(id={self.id}, emp={self.employee_id}, date={self.date}, "
            f"shift='{self.shift_name}', status='{self.status}')>"
        )


class SwapRequest(Base):
    __tablename__ = "swap_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    assignment_id = Column(Integer, ForeignKey("shift_assignments.id"), nullable=False)
    requester_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    coverer_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    status = Column(_enum(SwapStatus), nullable=False, default=SwapStatus.OPEN)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    assignment = relationship("ShiftAssignment")
