# backend/invigilation/services/coverage/coverage_assignment_service.py

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence
import logging

from sqlalchemy.ext.asyncio import async_sessionmaker

from coverage_engine.core.gateway import AssignmentCount, PersistenceGateway
from coverage_engine.core.problem_model import CoverageSlot, RankLimits
from coverage_engine.orchestration.run_orchestrator import (
    BulkAssignRun,
    InvalidRunTransition,
)

from ...config import Settings, get_settings
from ...core.exceptions import (
    AppError,
    CoverageRunError,
    RankLimitValidationError,
    RunNotFoundError,
    RunStateError,
)
from ..tracking_mixin import TrackingMixin
from .persistence_gateway import SqlAlchemyCoverageGateway

logger = logging.getLogger(__name__)

SCOPE_ALL = "all"
SCOPE_SELECTED = "selected"


@dataclass
class CoverageRunHandle:
    run_id: uuid.UUID
    run: BulkAssignRun
    scope: str = SCOPE_ALL
    created_at: float = field(default_factory=time.monotonic)


class RunRegistry:
    """In-memory store of live runs, keyed by run id and expired after a TTL."""

    def __init__(
        self, ttl_seconds: int = 3600, clock: Callable[[], float] = time.monotonic
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._runs: Dict[uuid.UUID, CoverageRunHandle] = {}
        self._lock = asyncio.Lock()

    def _expired(self, handle: CoverageRunHandle) -> bool:
        return self._clock() - handle.created_at > self.ttl_seconds

    async def add(self, run: BulkAssignRun, scope: str = SCOPE_ALL) -> CoverageRunHandle:
        async with self._lock:
            self._purge_locked()
            handle = CoverageRunHandle(
                run_id=uuid.uuid4(), run=run, scope=scope, created_at=self._clock()
            )
            self._runs[handle.run_id] = handle
            return handle

    async def get(self, run_id: uuid.UUID) -> CoverageRunHandle:
        async with self._lock:
            handle = self._runs.get(run_id)
            if handle is None:
                raise RunNotFoundError(str(run_id))
            if self._expired(handle):
                del self._runs[run_id]
                raise RunNotFoundError(
                    str(run_id), message=f"Coverage run {run_id} has expired"
                )
            return handle

    async def discard(self, run_id: uuid.UUID) -> bool:
        async with self._lock:
            return self._runs.pop(run_id, None) is not None

    async def purge_expired(self) -> int:
        async with self._lock:
            return self._purge_locked()

    def _purge_locked(self) -> int:
        stale = [rid for rid, handle in self._runs.items() if self._expired(handle)]
        for rid in stale:
            del self._runs[rid]
        if stale:
            logger.info(f"Purged {len(stale)} expired coverage runs")
        return len(stale)

    def __len__(self) -> int:
        return len(self._runs)


class CoverageAssignmentService(TrackingMixin):
    """
    Creates, confirms and cancels bulk coverage runs on behalf of the API.

    The run itself is held in the registry between requests; the gateway opens
    a fresh database session for each prefetch or commit.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker],
        registry: RunRegistry,
        settings: Optional[Settings] = None,
        gateway: Optional[PersistenceGateway] = None,
    ):
        super().__init__()
        self.settings = settings or get_settings()
        self.engine_config = self.settings.engine_config()
        self.registry = registry
        if gateway is None:
            if session_factory is None:
                raise ValueError("A session factory or a gateway is required")
            gateway = SqlAlchemyCoverageGateway(session_factory, self.engine_config)
        self.gateway = gateway

    def default_rank_limits(self) -> RankLimits:
        return dict(self.engine_config.default_rank_limits)

    def resolve_rank_limits(self, rank_limits: Optional[RankLimits]) -> RankLimits:
        """Request limits as given, or the configured defaults when omitted."""
        if rank_limits is None:
            return self.default_rank_limits()

        invalid = [
            rank
            for rank, limit in rank_limits.items()
            if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1
        ]
        if invalid:
            raise RankLimitValidationError(
                "Rank limits must be whole numbers of at least 1",
                invalid_ranks=invalid,
                details={rank: rank_limits[rank] for rank in invalid},
            )
        return dict(rank_limits)

    def select_slots(
        self,
        slots: Sequence[CoverageSlot],
        scope: str = SCOPE_ALL,
        selected_keys: Optional[Iterable[str]] = None,
    ) -> List[CoverageSlot]:
        if scope == SCOPE_ALL:
            return list(slots)
        if scope != SCOPE_SELECTED:
            raise CoverageRunError(f"Unknown run scope '{scope}'").with_context(
                scope=scope
            )

        wanted = set(selected_keys or ())
        chosen = [s for s in slots if s.key in wanted]
        unknown = wanted - {s.key for s in chosen}
        if unknown:
            logger.warning(f"Ignoring {len(unknown)} selected keys with no matching slot")
        return chosen

    async def start_run(
        self,
        slots: Sequence[CoverageSlot],
        rank_limits: Optional[RankLimits] = None,
        scope: str = SCOPE_ALL,
        selected_keys: Optional[Iterable[str]] = None,
    ) -> CoverageRunHandle:
        action_id = self._start_action(
            "coverage_run",
            f"Bulk coverage run over {len(slots)} slots",
            {"scope": scope},
        )
        try:
            limits = self.resolve_rank_limits(rank_limits)
            chosen = self.select_slots(slots, scope, selected_keys)

            run = BulkAssignRun(chosen, limits, self.gateway, self.engine_config)
            handle = await self.registry.add(run, scope)
            self.current_run_id = handle.run_id

            await run.begin_calculation()
        except AppError:
            self._end_action(action_id, "failed")
            raise
        except Exception as exc:
            self._end_action(action_id, "failed", {"error": str(exc)})
            raise CoverageRunError(
                f"Coverage calculation failed: {exc}",
                run_id=self.current_run_id,
                phase="calculating",
                cause=exc,
            ) from exc

        summary = run.summary()
        await self._log_operation(
            "coverage_run_calculated",
            {
                "slots": len(chosen),
                "assignable_rooms": summary.assignable_rooms,
                "teachers_planned": summary.teachers_planned,
                "rank_limits": run.rank_limit_summary(),
            },
            level="WARNING" if run.error else "INFO",
            error=run.error,
        )
        self._end_action(
            action_id,
            "failed" if run.error else "completed",
            {"phase": run.phase.value},
        )
        return handle

    async def get_run(self, run_id: uuid.UUID) -> CoverageRunHandle:
        return await self.registry.get(run_id)

    async def confirm_run(self, run_id: uuid.UUID) -> CoverageRunHandle:
        handle = await self.registry.get(run_id)
        self.current_run_id = run_id
        action_id = self._start_action("coverage_commit", f"Saving run {run_id}")
        try:
            await handle.run.confirm_and_save()
        except InvalidRunTransition as exc:
            self._end_action(action_id, "rejected")
            raise RunStateError(
                str(exc), action="confirm", run_id=str(run_id), phase=exc.phase.value
            ) from exc

        summary = handle.run.summary()
        await self._log_operation(
            "coverage_run_saved",
            {"rooms_saved": summary.rooms_saved, "rooms_total": summary.rooms_total},
            level="ERROR" if handle.run.commit_failed else "INFO",
            error=handle.run.error,
        )
        self._end_action(
            action_id, "failed" if handle.run.commit_failed else "completed"
        )
        return handle

    async def cancel_run(self, run_id: uuid.UUID) -> CoverageRunHandle:
        handle = await self.registry.get(run_id)
        self.current_run_id = run_id
        try:
            handle.run.cancel()
        except InvalidRunTransition as exc:
            raise RunStateError(
                str(exc), action="cancel", run_id=str(run_id), phase=exc.phase.value
            ) from exc
        await self._log_operation("coverage_run_cancelled")
        return handle

    async def get_assignment_counts(self) -> Dict[str, AssignmentCount]:
        return await self.gateway.get_existing_assignment_counts()
