# coverage_engine/core/problem_model.py

from __future__ import annotations
import copy
from typing import Dict, List, Set, Optional, Any, Iterable, Tuple
from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
import logging


logger = logging.getLogger(__name__)

RankLimits = Dict[str, int]


class TeacherRole(str, Enum):
    SUPERVISOR = "Supervisor"
    ASSISTANT = "Assistant"


class ExamSession(str, Enum):
    MORNING = "Morning"
    AFTERNOON = "Afternoon"
    EVENING = "Evening"


SESSION_TIME_RANGES: Dict[ExamSession, Tuple[time, time]] = {
    ExamSession.MORNING: (time(8, 0), time(12, 0)),
    ExamSession.AFTERNOON: (time(13, 0), time(17, 0)),
    ExamSession.EVENING: (time(18, 0), time(21, 0)),
}

DEFAULT_SESSION = ExamSession.MORNING


def workload_level(periods: Optional[int]) -> str:
    p = periods or 0
    if p >= 18:
        return "High"
    if p >= 12:
        return "Medium"
    return "Light"


@dataclass
class Teacher:
    id: int
    name: str
    rank: str
    total_periods_assigned: int = 0
    department: Optional[str] = None
    unavailable_dates: Set[date] = field(default_factory=set)

    def is_available_on(self, exam_date: date) -> bool:
        return exam_date not in self.unavailable_dates

    @property
    def workload_level(self) -> str:
        return workload_level(self.total_periods_assigned)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "rank": self.rank,
            "department": self.department,
            "total_periods_assigned": self.total_periods_assigned,
            "workload_level": self.workload_level,
        }


@dataclass(frozen=True)
class SlotLinkage:
    """Persisted exam-room row a coverage slot resolves to"""

    exam_room_id: int
    room_id: Optional[int] = None


@dataclass(frozen=True)
class CoverageSlot:
    room_number: str
    exam_date: date
    session: Optional[ExamSession] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    group_label: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.room_number}|{self.exam_date.isoformat()}|{self.effective_session.value}"

    @property
    def history_key(self) -> str:
        # Recurring student group identity, falling back to the room itself
        return self.group_label or self.room_number

    @property
    def effective_session(self) -> ExamSession:
        return self.session or DEFAULT_SESSION

    @property
    def time_window(self) -> Tuple[Optional[time], Optional[time]]:
        if self.start_time is not None or self.end_time is not None:
            return self.start_time, self.end_time
        return SESSION_TIME_RANGES[self.effective_session]


@dataclass(frozen=True)
class PairRecord:
    supervisor_id: Optional[int]
    assistant_id: Optional[int]

    def __post_init__(self):
        if (
            self.supervisor_id is not None
            and self.supervisor_id == self.assistant_id
        ):
            raise ValueError("supervisor and assistant must be different teachers")


@dataclass(frozen=True)
class PlannedAssignment:
    exam_room_id: int
    teacher_id: int
    teacher_name: str
    teacher_rank: str
    role: TeacherRole
    exam_date: date
    session: ExamSession
    shift_start: Optional[time] = None
    shift_end: Optional[time] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exam_room_id": self.exam_room_id,
            "teacher_id": self.teacher_id,
            "teacher_name": self.teacher_name,
            "teacher_rank": self.teacher_rank,
            "role": self.role.value,
            "exam_date": self.exam_date.isoformat(),
            "session": self.session.value,
            "shift_start": self.shift_start.isoformat() if self.shift_start else None,
            "shift_end": self.shift_end.isoformat() if self.shift_end else None,
        }


@dataclass
class SlotPreview:
    slot: CoverageSlot
    exam_room_id: Optional[int]
    ok: bool
    msg: Optional[str] = None
    supervisor: Optional[Teacher] = None
    assistant: Optional[Teacher] = None
    pair_label: Optional[str] = None
    scarce_pairing: bool = False
    supervisor_reason: Optional[str] = None
    assistant_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slot_key": self.slot.key,
            "room_number": self.slot.room_number,
            "exam_date": self.slot.exam_date.isoformat(),
            "session": self.slot.effective_session.value,
            "exam_room_id": self.exam_room_id,
            "ok": self.ok,
            "msg": self.msg,
            "supervisor": self.supervisor.to_dict() if self.supervisor else None,
            "assistant": self.assistant.to_dict() if self.assistant else None,
            "pair_label": self.pair_label,
            "scarce_pairing": self.scarce_pairing,
            "supervisor_reason": self.supervisor_reason,
            "assistant_reason": self.assistant_reason,
        }


class ContextSnapshot:
    """
    Run-scoped, in-memory copy of the teacher pools and busy-date sets.

    Teachers live once in an id-indexed arena; the supervisor and assistant
    pools are ordered id lists over that arena, so a workload increment is
    visible through both pools immediately.
    """

    def __init__(
        self,
        teachers: Iterable[Teacher],
        supervisor_ids: Iterable[int],
        assistant_ids: Iterable[int],
        busy_by_date: Optional[Dict[date, Set[int]]] = None,
        room_links: Optional[Dict[Tuple[str, date], SlotLinkage]] = None,
    ):
        self.teachers: Dict[int, Teacher] = {}
        for teacher in teachers:
            if teacher.id in self.teachers:
                raise ValueError(f"Duplicate teacher id {teacher.id} in snapshot")
            self.teachers[teacher.id] = teacher

        self._pools: Dict[TeacherRole, List[int]] = {
            TeacherRole.SUPERVISOR: self._checked_ids(supervisor_ids),
            TeacherRole.ASSISTANT: self._checked_ids(assistant_ids),
        }
        self.busy_by_date: Dict[date, Set[int]] = {
            d: set(ids) for d, ids in (busy_by_date or {}).items()
        }
        self.room_links: Dict[Tuple[str, date], SlotLinkage] = dict(room_links or {})

    def _checked_ids(self, ids: Iterable[int]) -> List[int]:
        checked = []
        for teacher_id in ids:
            if teacher_id not in self.teachers:
                raise KeyError(f"Pool references unknown teacher {teacher_id}")
            if teacher_id not in checked:
                checked.append(teacher_id)
        return checked

    @classmethod
    def from_teachers(
        cls,
        teachers: Iterable[Teacher],
        supervisor_ranks: Iterable[str],
        assistant_ranks: Iterable[str],
        busy_by_date: Optional[Dict[date, Set[int]]] = None,
        room_links: Optional[Dict[Tuple[str, date], SlotLinkage]] = None,
    ) -> "ContextSnapshot":
        """Partition teachers into role pools by rank, keeping input order."""
        teachers = list(teachers)
        supervisor_ranks = set(supervisor_ranks)
        assistant_ranks = set(assistant_ranks)
        return cls(
            teachers,
            supervisor_ids=[t.id for t in teachers if t.rank in supervisor_ranks],
            assistant_ids=[t.id for t in teachers if t.rank in assistant_ranks],
            busy_by_date=busy_by_date,
            room_links=room_links,
        )

    def pool(self, role: TeacherRole) -> List[Teacher]:
        return [self.teachers[tid] for tid in self._pools[role]]

    def candidates(
        self, role: TeacherRole, exam_date: date, used_today: Set[int]
    ) -> List[Teacher]:
        """Pool members available on the date and not yet placed that day."""
        return [
            t
            for t in self.pool(role)
            if t.is_available_on(exam_date) and t.id not in used_today
        ]

    def busy_on(self, exam_date: date) -> Set[int]:
        return set(self.busy_by_date.get(exam_date, set()))

    def increment_periods(self, teacher_id: int) -> int:
        teacher = self.teachers[teacher_id]
        teacher.total_periods_assigned = (teacher.total_periods_assigned or 0) + 1
        return teacher.total_periods_assigned

    def resolve_slot_linkage(
        self, room_number: str, exam_date: date
    ) -> Optional[SlotLinkage]:
        return self.room_links.get((room_number, exam_date))

    def copy(self) -> "ContextSnapshot":
        """Independent deep copy, for re-running a calculation from the same seed."""
        return copy.deepcopy(self)

    def __repr__(self) -> str:
        return (
            f"ContextSnapshot(teachers={len(self.teachers)}, "
            f"supervisors={len(self._pools[TeacherRole.SUPERVISOR])}, "
            f"assistants={len(self._pools[TeacherRole.ASSISTANT])}, "
            f"dates={len(self.busy_by_date)}, links={len(self.room_links)})"
        )
