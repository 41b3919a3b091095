"""Scheduling engine: solver and schedule service."""

from .base import BaseSolver, SlotDecision
from .service import ScheduleResult, ScheduleService, plan_week
from .solver import GreedySolver, SolverContext

__all__ = [
    "BaseSolver",
    "SlotDecision",
    "GreedySolver",
    "SolverContext",
    "ScheduleResult",
    "ScheduleService",
    "plan_week",
]
