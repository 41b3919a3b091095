"""Closed value sets shared by the models and the scheduling services."""

from __future__ import annotations

from enum import Enum


class ShiftName(str, Enum):
    """Shift catalog. Declaration order is the within-day order."""

    MORNING = "morning"
    EVENING = "evening"
    NIGHT = "night"


SHIFT_ORDER = {shift: i for i, shift in enumerate(ShiftName)}


class ConstraintType(str, Enum):
    HARD = "hard"
    SOFT = "soft"


class Availability(str, Enum):
    UNAVAILABLE = "unavailable"
    MORNING_ONLY = "morning_only"
    EVENING_ONLY = "evening_only"
    NIGHT_ONLY = "night_only"
    AVAILABLE = "available"
    AVAILABLE_EXTRA = "available_extra"


# Shift-restricted availability values and the shift each one allows
RESTRICTED_TO = {
    Availability.MORNING_ONLY: ShiftName.MORNING,
    Availability.EVENING_ONLY: ShiftName.EVENING,
    Availability.NIGHT_ONLY: ShiftName.NIGHT,
}


class DirectiveType(str, Enum):
    """Strength of a manager-approved conversation constraint."""

    HARD = "hard"
    SOFT = "soft"
    OPPORTUNITY = "opportunity"


class DirectiveCategory(str, Enum):
    SEPARATION = "separation"
    WORKLOAD = "workload"
    DEVELOPMENT = "development"
    PAIRING = "pairing"
    UTILIZATION = "utilization"
    BURNOUT = "burnout"


class ConversationKind(str, Enum):
    PREPARATION = "preparation"
    RETROSPECTIVE = "retrospective"


class ConversationStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class AssignmentStatus(str, Enum):
    """
    Assignment lifecycle.

    draft -> published -> swap_requested -> covered -> swapped
    A rejected swap sends the assignment back to published.
    """

    DRAFT = "draft"
    PUBLISHED = "published"
    SWAP_REQUESTED = "swap_requested"
    COVERED = "covered"
    SWAPPED = "swapped"


class SwapStatus(str, Enum):
    OPEN = "open"
    COVERED = "covered"
    APPROVED = "approved"
    REJECTED = "rejected"


class RatingCategory(str, Enum):
    RELIABILITY = "reliability"
    FLEXIBILITY = "flexibility"
    PERFORMANCE = "performance"
    TEAMWORK = "teamwork"
