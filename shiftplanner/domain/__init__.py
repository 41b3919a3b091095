"""Domain models and data access layer."""

from .models import (
    AvailabilityConstraint,
    Base,
    Conversation,
    ConversationConstraint,
    Employee,
    EmployeeTag,
    Rating,
    ShiftAssignment,
    ShiftTemplate,
    SwapRequest,
    Team,
)
from .repositories import (
    AssignmentRepository,
    ConstraintRepository,
    EmployeeRepository,
    SwapRepository,
    TeamRepository,
    TemplateRepository,
)

__all__ = [
    "AvailabilityConstraint",
    "Base",
    "Conversation",
    "ConversationConstraint",
    "Employee",
    "EmployeeTag",
    "Rating",
    "ShiftAssignment",
    "ShiftTemplate",
    "SwapRequest",
    "Team",
    "AssignmentRepository",
    "ConstraintRepository",
    "EmployeeRepository",
    "SwapRepository",
    "TeamRepository",
    "TemplateRepository",
]
