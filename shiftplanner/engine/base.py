"""Base solver interface that assignment strategies implement."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from shiftplanner.services.scoring import Candidate
from shiftplanner.services.slots import Slot


@dataclass
class SlotDecision:
    """Outcome for one slot: who was accepted, in acceptance order."""

    slot: Slot
    accepted: List[int] = field(default_factory=list)
    candidate_count: int = 0

    @property
    def shortage(self) -> int:
        return max(0, self.slot.required_count - len(self.accepted))


class BaseSolver(ABC):
    """
    Abstract base class for assignment strategies.

    A solver turns ranked candidate lists into per-slot decisions. It never
    raises for infeasibility; under-filled slots are reported via
    ``SlotDecision.shortage``.
    """

    name: str | None = None  # Override in subclasses

    @abstractmethod
    def solve(
        self,
        slots: Sequence[Slot],
        candidates: Dict[Slot, List[Candidate]],
        ctx,
        kept=None,
    ) -> List[SlotDecision]:
        """
        Decide the occupants of every slot.

        Args:
            slots: Slots of the week in calendar order
            candidates: Ranked candidate list per slot
            ctx: Mutable SolverContext shared across the whole run
            kept: Employees already holding each slot key, if any

        Returns:
            One SlotDecision per slot, in the order slots were decided
        """
        pass

    def get_name(self) -> str:
        return self.name or type(self).__name__
