# coverage_engine/core/gateway.py

"""Boundary the run orchestrator uses to read and write persisted state."""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Dict, Protocol, Sequence, runtime_checkable

from .problem_model import ContextSnapshot, PlannedAssignment


@dataclass(frozen=True)
class AssignmentCount:
    total: int = 0
    has_supervisor: bool = False
    has_assistant: bool = False

    @property
    def is_fully_staffed(self) -> bool:
        return self.has_supervisor and self.has_assistant


def assignment_count_key(room_number: str, exam_date: date) -> str:
    return f"{room_number}|{exam_date.isoformat()}"


@runtime_checkable
class PersistenceGateway(Protocol):
    async def prefetch_context(self, dates: Sequence[date]) -> ContextSnapshot:
        """Load teacher pools, busy sets and room links for ``dates``."""
        ...

    async def batch_commit(self, planned: Sequence[PlannedAssignment]) -> None:
        """Persist every planned assignment or none of them."""
        ...

    async def get_existing_assignment_counts(self) -> Dict[str, AssignmentCount]:
        ...
