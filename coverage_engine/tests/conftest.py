# coverage_engine/tests/conftest.py

"""
Pytest configuration and fixtures for coverage engine tests.
"""

import logging
from datetime import date
from typing import Callable, Dict, Iterable, Optional, Set

import pytest

from coverage_engine.config import CoverageEngineConfig
from coverage_engine.core.problem_model import (
    ContextSnapshot,
    CoverageSlot,
    SlotLinkage,
    Teacher,
)

# Configure logging for tests
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

D1 = date(2025, 1, 6)
D2 = date(2025, 1, 7)
D3 = date(2025, 1, 8)
D4 = date(2025, 1, 9)


@pytest.fixture
def engine_config() -> CoverageEngineConfig:
    return CoverageEngineConfig()


@pytest.fixture
def exam_dates():
    return D1, D2, D3, D4


@pytest.fixture
def make_teacher() -> Callable[..., Teacher]:
    """Factory for teachers; names default to '<rank> <id>'."""

    def _make(
        teacher_id: int,
        rank: str,
        periods: int = 0,
        name: Optional[str] = None,
        unavailable: Iterable[date] = (),
    ) -> Teacher:
        return Teacher(
            id=teacher_id,
            name=name or f"{rank} {teacher_id}",
            rank=rank,
            total_periods_assigned=periods,
            unavailable_dates=set(unavailable),
        )

    return _make


@pytest.fixture
def make_snapshot(engine_config) -> Callable[..., ContextSnapshot]:
    """
    Factory building a snapshot with one exam-room link per room/date pair.
    Exam room ids are assigned in (date, room) order starting at 1.
    """

    def _make(
        teachers: Iterable[Teacher],
        rooms: Iterable[str] = ("R101",),
        dates: Iterable[date] = (D1,),
        busy_by_date: Optional[Dict[date, Set[int]]] = None,
    ) -> ContextSnapshot:
        rooms = list(rooms)
        links = {}
        next_id = 1
        for d in sorted(set(dates)):
            for room in rooms:
                links[(room, d)] = SlotLinkage(exam_room_id=next_id)
                next_id += 1
        return ContextSnapshot.from_teachers(
            teachers,
            supervisor_ranks=engine_config.supervisor_ranks,
            assistant_ranks=engine_config.assistant_ranks,
            busy_by_date=busy_by_date,
            room_links=links,
        )

    return _make


@pytest.fixture
def slot() -> Callable[..., CoverageSlot]:
    def _make(room: str, exam_date: date = D1, **kwargs) -> CoverageSlot:
        return CoverageSlot(room_number=room, exam_date=exam_date, **kwargs)

    return _make
