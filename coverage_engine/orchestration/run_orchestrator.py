# coverage_engine/orchestration/run_orchestrator.py

"""
Bulk assignment run: prefetch -> calculate -> operator preview -> commit.

The run is a plain state machine with no rendering concerns. Each transition
method returns the next phase and the message an operator should see.
"""

from __future__ import annotations
import asyncio
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional
import logging

from ..config import CoverageEngineConfig, config as default_config
from ..core.calculation import calculate_assignments
from ..core.gateway import PersistenceGateway
from ..core.problem_model import (
    CoverageSlot,
    PlannedAssignment,
    RankLimits,
    SlotPreview,
)

logger = logging.getLogger(__name__)

DB_WRITE_FAILED = "DB write failed"


class RunPhase(str, Enum):
    CALCULATING = "calculating"
    PREVIEW = "preview"
    SAVING = "saving"
    DONE = "done"


class InvalidRunTransition(Exception):
    def __init__(self, phase: RunPhase, action: str):
        super().__init__(f"Cannot {action} while the run is {phase.value}")
        self.phase = phase
        self.action = action


@dataclass(frozen=True)
class RunTransition:
    phase: RunPhase
    message: Optional[str] = None


@dataclass(frozen=True)
class SaveResult:
    slot_key: str
    ok: bool
    msg: Optional[str] = None


@dataclass(frozen=True)
class RunSummary:
    rooms_total: int
    rooms_saved: int
    assignable_rooms: int
    teachers_planned: int


def _reason(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__ or "Unknown error"


class BulkAssignRun:
    def __init__(
        self,
        slots: Iterable[CoverageSlot],
        rank_limits: RankLimits,
        gateway: PersistenceGateway,
        engine_config: Optional[CoverageEngineConfig] = None,
    ):
        self.slots: List[CoverageSlot] = list(slots)
        self.rank_limits: RankLimits = dict(rank_limits)
        self.gateway = gateway
        self.engine_config = engine_config or default_config

        self.phase = RunPhase.CALCULATING
        self.status_message: Optional[str] = "Pre-fetching data..."
        self.error: Optional[str] = None
        self.previews: List[SlotPreview] = []
        self.planned: List[PlannedAssignment] = []
        self.save_results: List[SaveResult] = []
        self.cancelled = False
        self.commit_failed = False
        self._calculated = False

    @property
    def dates(self) -> List[date]:
        return sorted({s.exam_date for s in self.slots})

    async def begin_calculation(self) -> RunTransition:
        if self.phase is not RunPhase.CALCULATING or self._calculated:
            raise InvalidRunTransition(self.phase, "begin calculation")
        self._calculated = True

        self.status_message = "Pre-fetching data from database..."
        try:
            snapshot = await self.gateway.prefetch_context(self.dates)
        except Exception as exc:
            logger.error(f"Prefetch failed for {len(self.dates)} dates: {exc}", exc_info=True)
            self.error = f"Failed to fetch data: {_reason(exc)}"
            return self._finish(self.error)

        self.status_message = "Calculating best assignments..."
        # Let other tasks run before the synchronous calculation
        await asyncio.sleep(0)

        result = calculate_assignments(
            self.slots, self.rank_limits, snapshot, engine_config=self.engine_config
        )
        self.previews = result.previews
        self.planned = result.planned
        self.phase = RunPhase.PREVIEW
        self.status_message = (
            f"{result.assignable_count} of {len(self.slots)} rooms can be covered "
            f"with {len(self.planned)} teacher assignments"
        )
        return RunTransition(self.phase, self.status_message)

    async def confirm_and_save(self) -> RunTransition:
        retrying = self.phase is RunPhase.DONE and self.commit_failed
        if self.phase is not RunPhase.PREVIEW and not retrying:
            raise InvalidRunTransition(self.phase, "save")

        self.phase = RunPhase.SAVING
        self.status_message = f"Saving {len(self.planned)} assignments..."
        self.error = None

        failed = False
        if self.planned:
            try:
                await self.gateway.batch_commit(self.planned)
            except Exception as exc:
                logger.error(
                    f"Batch commit of {len(self.planned)} assignments failed: {exc}",
                    exc_info=True,
                )
                self.error = f"Database write failed: {_reason(exc)}"
                failed = True

        self.commit_failed = failed
        self.save_results = [self._save_result(pv, failed) for pv in self.previews]
        summary = self.summary()
        message = self.error or (
            f"Saved {summary.rooms_saved} of {summary.rooms_total} rooms"
        )
        return self._finish(message)

    def cancel(self) -> RunTransition:
        if self.phase is not RunPhase.PREVIEW:
            raise InvalidRunTransition(self.phase, "cancel")
        self.cancelled = True
        self.planned = []
        return self._finish("Assignment cancelled; nothing was saved")

    def _finish(self, message: Optional[str]) -> RunTransition:
        self.phase = RunPhase.DONE
        self.status_message = message
        return RunTransition(self.phase, message)

    @staticmethod
    def _save_result(preview: SlotPreview, failed: bool) -> SaveResult:
        key = preview.slot.key
        if preview.exam_room_id is None:
            return SaveResult(key, ok=False, msg=preview.msg or "Room not found")
        if failed:
            return SaveResult(key, ok=False, msg=DB_WRITE_FAILED)
        return SaveResult(key, ok=preview.ok, msg=preview.msg)

    def summary(self) -> RunSummary:
        return RunSummary(
            rooms_total=len(self.previews) or len(self.slots),
            rooms_saved=sum(1 for r in self.save_results if r.ok),
            assignable_rooms=sum(1 for p in self.previews if p.ok),
            teachers_planned=len(self.planned),
        )

    def previews_by_date(self) -> Dict[date, List[SlotPreview]]:
        grouped: Dict[date, List[SlotPreview]] = OrderedDict()
        for preview in sorted(self.previews, key=lambda p: p.slot.exam_date):
            grouped.setdefault(preview.slot.exam_date, []).append(preview)
        return grouped

    def rank_limit_summary(self) -> str:
        return " · ".join(
            f"{rank} (max {limit})" for rank, limit in self.rank_limits.items()
        )
