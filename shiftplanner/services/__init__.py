"""Services for scheduling logic."""

from .directives import parse_directive, parse_directives
from .reasoning import build_reasoning, build_warnings
from .scoring import calculate_employee_score, rank_candidates
from .slots import Slot, build_slots

__all__ = [
    "parse_directive",
    "parse_directives",
    "build_reasoning",
    "build_warnings",
    "calculate_employee_score",
    "rank_candidates",
    "Slot",
    "build_slots",
]
