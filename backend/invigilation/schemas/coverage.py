# backend/invigilation/schemas/coverage.py
from __future__ import annotations
from datetime import date, time
from typing import Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from coverage_engine.core.problem_model import CoverageSlot, ExamSession

MODEL_CONFIG = ConfigDict(from_attributes=True)


class CoverageSlotIn(BaseModel):
    room_number: str = Field(..., min_length=1)
    exam_date: date
    session: Optional[ExamSession] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    group_label: Optional[str] = None

    def to_slot(self) -> CoverageSlot:
        return CoverageSlot(
            room_number=self.room_number,
            exam_date=self.exam_date,
            session=self.session,
            start_time=self.start_time,
            end_time=self.end_time,
            group_label=self.group_label,
        )


class CoverageRunCreate(BaseModel):
    slots: List[CoverageSlotIn]
    # Omitted means the configured defaults; ranks left out are unrestricted
    rank_limits: Optional[Dict[str, int]] = None
    scope: Literal["all", "selected"] = "all"
    selected_keys: List[str] = Field(default_factory=list)


class TeacherRead(BaseModel):
    model_config = MODEL_CONFIG

    id: int
    name: str
    rank: str
    department: Optional[str] = None
    total_periods_assigned: int
    workload_level: str


class SlotPreviewRead(BaseModel):
    slot_key: str
    room_number: str
    exam_date: date
    session: str
    exam_room_id: Optional[int] = None
    ok: bool
    msg: Optional[str] = None
    supervisor: Optional[TeacherRead] = None
    assistant: Optional[TeacherRead] = None
    pair_label: Optional[str] = None
    scarce_pairing: bool = False
    supervisor_reason: Optional[str] = None
    assistant_reason: Optional[str] = None


class PlannedAssignmentRead(BaseModel):
    exam_room_id: int
    teacher_id: int
    teacher_name: str
    teacher_rank: str
    role: str
    exam_date: date
    session: str
    shift_start: Optional[time] = None
    shift_end: Optional[time] = None


class SaveResultRead(BaseModel):
    model_config = MODEL_CONFIG

    slot_key: str
    ok: bool
    msg: Optional[str] = None


class RunSummaryRead(BaseModel):
    model_config = MODEL_CONFIG

    rooms_total: int
    rooms_saved: int
    assignable_rooms: int
    teachers_planned: int


class CoverageRunRead(BaseModel):
    run_id: UUID
    phase: str
    scope: str
    status_message: Optional[str] = None
    error: Optional[str] = None
    cancelled: bool = False
    commit_failed: bool = False
    rank_limits: Dict[str, int]
    rank_limit_summary: str
    summary: RunSummaryRead
    previews: List[SlotPreviewRead] = Field(default_factory=list)
    planned: List[PlannedAssignmentRead] = Field(default_factory=list)
    save_results: List[SaveResultRead] = Field(default_factory=list)

    @classmethod
    def from_handle(cls, handle) -> "CoverageRunRead":
        run = handle.run
        return cls(
            run_id=handle.run_id,
            phase=run.phase.value,
            scope=handle.scope,
            status_message=run.status_message,
            error=run.error,
            cancelled=run.cancelled,
            commit_failed=run.commit_failed,
            rank_limits=run.rank_limits,
            rank_limit_summary=run.rank_limit_summary(),
            summary=RunSummaryRead.model_validate(run.summary()),
            previews=[p.to_dict() for p in run.previews],
            planned=[p.to_dict() for p in run.planned],
            save_results=[SaveResultRead.model_validate(r) for r in run.save_results],
        )


class RankLimitDefaultsRead(BaseModel):
    supervisor_rank: str
    assistant_rank_preference: List[str]
    rank_limits: Dict[str, int]


class AssignmentCountRead(BaseModel):
    model_config = MODEL_CONFIG

    total: int
    has_supervisor: bool
    has_assistant: bool
    is_fully_staffed: bool
