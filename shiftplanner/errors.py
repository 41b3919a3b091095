"""Exceptions raised by the scheduling services.

Infeasibility (short-staffed slots, soft violations) is never an error; it is
reported as warnings next to a best-effort schedule.
"""

from __future__ import annotations


class SchedulingError(Exception):
    """Base class for all scheduling errors."""


class ScheduleInputError(SchedulingError, ValueError):
    """Missing or malformed request input, rejected before any computation."""


class NotFoundError(SchedulingError, LookupError):
    """A referenced team, assignment or swap request does not exist."""


class InvalidTransitionError(SchedulingError):
    """An assignment or swap request is not in a state that allows the action."""


class PersistenceError(SchedulingError):
    """The transactional write of a generated schedule failed and was rolled back."""
