"""Pytest configuration and shared fixtures."""

from datetime import date, timedelta

import pytest

from shiftplanner.config import SchedulerConfig
from shiftplanner.domain.db import create_db_engine, get_session_factory
from shiftplanner.domain.enums import (
    AssignmentStatus,
    Availability,
    ConstraintType,
    ConversationKind,
    ConversationStatus,
    DirectiveCategory,
    DirectiveType,
    RatingCategory,
    ShiftName,
)
from shiftplanner.domain.models import (
    AvailabilityConstraint,
    Base,
    Conversation,
    ConversationConstraint,
    Employee,
    EmployeeTag,
    Rating,
    ShiftAssignment,
    ShiftTemplate,
    Team,
)
from shiftplanner.engine.service import ScheduleService

WEEK = date(2025, 9, 7)  # a Sunday


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (deselect with '-m \"not integration\"')"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


class Seeder:
    """Adds and commits fixture rows one at a time."""

    def __init__(self, session, week_start=WEEK):
        self.session = session
        self.week_start = week_start

    def _save(self, obj):
        self.session.add(obj)
        self.session.commit()
        return obj

    def day(self, day_index):
        return self.week_start + timedelta(days=day_index)

    def team(self, team_id=1, name="Ops"):
        return self._save(Team(id=team_id, name=name))

    def employee(self, emp_id, name, team_id=1, swap_points=0, tags=(), rating=None, seniority=0):
        emp = Employee(id=emp_id, name=name, team_id=team_id, swap_points=swap_points, seniority=seniority)
        emp.tags = [EmployeeTag(tag=t) for t in tags]
        if rating is not None:
            emp.ratings = [Rating(category=c, score=rating) for c in RatingCategory]
        return self._save(emp)

    def template(self, day_index, shift, required=2, tags=(), team_id=1):
        return self._save(
            ShiftTemplate(
                team_id=team_id,
                day_of_week=day_index,
                shift_name=ShiftName(shift),
                start_time="07:00",
                end_time="15:00",
                required_count=required,
                required_tags=list(tags),
            )
        )

    def availability(self, emp_id, day_index, type_, availability, reason=None):
        return self._save(
            AvailabilityConstraint(
                employee_id=emp_id,
                week_start=self.week_start,
                date=self.day(day_index),
                type=ConstraintType(type_),
                availability=Availability(availability),
                reason=reason,
            )
        )

    def conversation(self, team_id=1, status="completed", kind="preparation"):
        return self._save(
            Conversation(
                team_id=team_id,
                week_start=self.week_start,
                kind=ConversationKind(kind),
                status=ConversationStatus(status),
            )
        )

    def directive(self, conversation, type_, category, employees, parameters=None, approved=True, description=""):
        return self._save(
            ConversationConstraint(
                conversation_id=conversation.id,
                type=DirectiveType(type_),
                category=DirectiveCategory(category),
                description=description,
                affected_employees=list(employees),
                parameters=parameters or {},
                approved=approved,
            )
        )

    def assignment(self, emp_id, on, shift="morning", status="published", team_id=1, week_start=None):
        return self._save(
            ShiftAssignment(
                team_id=team_id,
                week_start=week_start or self.week_start,
                employee_id=emp_id,
                date=on,
                shift_name=ShiftName(shift),
                status=AssignmentStatus(status),
                reasoning=[],
                conversation_influenced=False,
            )
        )


@pytest.fixture
def db_engine():
    """In-memory database shared by every session of one test."""
    engine = create_db_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return get_session_factory(engine=db_engine)


@pytest.fixture
def db_session(session_factory):
    """Create in-memory database session for testing."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seed(db_session):
    return Seeder(db_session)


@pytest.fixture
def cfg():
    return SchedulerConfig()


@pytest.fixture
def service(session_factory, cfg):
    return ScheduleService(session_factory, cfg)
