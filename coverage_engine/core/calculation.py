# coverage_engine/core/calculation.py

"""
Pure assignment calculation over a context snapshot. No I/O: every lookup goes
through the snapshot, and all run state lives in the trackers passed in.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence, Set
import logging

from ..config import CoverageEngineConfig, config as default_config
from .eligibility import describe_vacancy
from .pair_selector import pick_paired_teachers
from .problem_model import (
    ContextSnapshot,
    CoverageSlot,
    PlannedAssignment,
    RankLimits,
    SlotPreview,
    Teacher,
    TeacherRole,
)
from .trackers import PairHistory, PairTypeUsage, QuotaTracker

logger = logging.getLogger(__name__)

ROOM_NOT_FOUND = "Room not found for this date"
NO_AVAILABLE_TEACHERS = "No available teachers"
ROOM_ALREADY_COVERED = "Room already covered in this batch"
SCARCE_QUOTA_REACHED = "Senior pairing quota reached for this date window"


@dataclass
class CalculationResult:
    previews: List[SlotPreview] = field(default_factory=list)
    planned: List[PlannedAssignment] = field(default_factory=list)

    @property
    def assignable_count(self) -> int:
        return sum(1 for p in self.previews if p.ok)

    @property
    def scarce_pairings(self) -> int:
        return sum(1 for p in self.previews if p.scarce_pairing)


def _plan(
    slot: CoverageSlot, exam_room_id: int, teacher: Teacher, role: TeacherRole
) -> PlannedAssignment:
    shift_start, shift_end = slot.time_window
    return PlannedAssignment(
        exam_room_id=exam_room_id,
        teacher_id=teacher.id,
        teacher_name=teacher.name,
        teacher_rank=teacher.rank,
        role=role,
        exam_date=slot.exam_date,
        session=slot.effective_session,
        shift_start=shift_start,
        shift_end=shift_end,
    )


def calculate_assignments(
    slots: Sequence[CoverageSlot],
    rank_limits: RankLimits,
    snapshot: ContextSnapshot,
    *,
    engine_config: Optional[CoverageEngineConfig] = None,
    pair_history: Optional[PairHistory] = None,
    quota: Optional[QuotaTracker] = None,
) -> CalculationResult:
    """
    Compute previews and planned assignments for ``slots`` in the order given.

    Mutates only ``snapshot`` running totals and the trackers; one preview is
    emitted per slot, planned assignments only for filled roles.
    """
    cfg = engine_config or default_config
    history = pair_history if pair_history is not None else PairHistory()
    if quota is None:
        quota = QuotaTracker(
            (s.exam_date for s in slots),
            window_size=cfg.quota_window_dates,
            max_per_window=cfg.max_scarce_pairings_per_window,
        )

    used_by_date: Dict[date, Set[int]] = {}
    # Exam rooms already claimed by an earlier slot in this batch
    claimed_exam_rooms: Set[int] = set()
    usage_by_date: Dict[date, PairTypeUsage] = {}
    result = CalculationResult()

    for slot in slots:
        exam_date = slot.exam_date
        if exam_date not in used_by_date:
            used_by_date[exam_date] = snapshot.busy_on(exam_date)
            usage_by_date[exam_date] = PairTypeUsage()
        used_today = used_by_date[exam_date]

        linkage = snapshot.resolve_slot_linkage(slot.room_number, exam_date)
        if linkage is None:
            logger.info(f"No exam room for {slot.room_number} on {exam_date}")
            result.previews.append(
                SlotPreview(slot=slot, exam_room_id=None, ok=False, msg=ROOM_NOT_FOUND)
            )
            continue
        if linkage.exam_room_id in claimed_exam_rooms:
            logger.warning(
                f"{slot.key} resolves to exam room {linkage.exam_room_id}, "
                f"already covered in this batch"
            )
            result.previews.append(
                SlotPreview(
                    slot=slot,
                    exam_room_id=linkage.exam_room_id,
                    ok=False,
                    msg=ROOM_ALREADY_COVERED,
                )
            )
            continue
        claimed_exam_rooms.add(linkage.exam_room_id)

        supervisors = snapshot.candidates(TeacherRole.SUPERVISOR, exam_date, used_today)
        assistants = snapshot.candidates(TeacherRole.ASSISTANT, exam_date, used_today)
        scarce_allowed = quota.is_allowed(exam_date)
        past_pairs = history.get(slot.history_key)

        selection = pick_paired_teachers(
            supervisors,
            assistants,
            rank_limits,
            used_today,
            exam_date,
            past_pairs,
            usage_by_date[exam_date],
            scarce_allowed,
            engine_config=cfg,
        )

        if selection.scarce_pairing:
            quota.record_use(exam_date)

        for teacher, role in (
            (selection.supervisor, TeacherRole.SUPERVISOR),
            (selection.assistant, TeacherRole.ASSISTANT),
        ):
            if teacher is None:
                continue
            used_today.add(teacher.id)
            snapshot.increment_periods(teacher.id)
            result.planned.append(_plan(slot, linkage.exam_room_id, teacher, role))

        history.record(slot.history_key, selection.to_record())

        preview = SlotPreview(
            slot=slot,
            exam_room_id=linkage.exam_room_id,
            ok=not selection.is_empty,
            msg=NO_AVAILABLE_TEACHERS if selection.is_empty else None,
            supervisor=selection.supervisor,
            assistant=selection.assistant,
            pair_label=selection.pair_label,
            scarce_pairing=selection.scarce_pairing,
        )
        if selection.supervisor is None:
            seniors = [
                t
                for t in snapshot.pool(TeacherRole.SUPERVISOR)
                if t.rank == cfg.supervisor_rank
            ]
            preview.supervisor_reason = describe_vacancy(
                cfg.supervisor_rank,
                seniors,
                rank_limits,
                used_today,
                exam_date,
            )
        if selection.assistant is None:
            preview.assistant_reason = _assistant_vacancy(
                snapshot, cfg, rank_limits, used_today, exam_date, scarce_allowed
            )
        result.previews.append(preview)

    logger.info(
        f"Calculated {len(result.planned)} assignments for "
        f"{result.assignable_count}/{len(slots)} slots "
        f"({result.scarce_pairings} scarce pairings)"
    )
    return result


def _assistant_vacancy(
    snapshot: ContextSnapshot,
    cfg: CoverageEngineConfig,
    rank_limits: RankLimits,
    used_today: Set[int],
    exam_date: date,
    scarce_allowed: bool,
) -> str:
    ordinary = [
        t
        for t in snapshot.pool(TeacherRole.ASSISTANT)
        if t.rank != cfg.supervisor_rank
    ]
    reason = describe_vacancy("assistant", ordinary, rank_limits, used_today, exam_date)
    if not scarce_allowed:
        return f"{reason}; {SCARCE_QUOTA_REACHED}"
    return reason
