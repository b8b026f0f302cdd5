# backend/invigilation/services/coverage/persistence_gateway.py

"""
SQLAlchemy implementation of the coverage engine's persistence gateway.

Each call opens its own session from the factory, so a run can outlive the
HTTP request that created it.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import DefaultDict, Dict, List, Optional, Sequence, Set, Tuple
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from coverage_engine.config import CoverageEngineConfig, config as default_config
from coverage_engine.core.gateway import AssignmentCount, assignment_count_key
from coverage_engine.core.problem_model import (
    ContextSnapshot,
    PlannedAssignment,
    SlotLinkage,
    Teacher,
    TeacherRole,
)

from ...models import ExamRoom, Room, TeacherAssignment, TeacherUnavailability
from ...models import Teacher as TeacherRow

logger = logging.getLogger(__name__)


class SqlAlchemyCoverageGateway:
    """Reads teacher pools and room links, writes assignment batches."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        engine_config: Optional[CoverageEngineConfig] = None,
    ):
        self.session_factory = session_factory
        self.engine_config = engine_config or default_config

    async def prefetch_context(self, dates: Sequence[date]) -> ContextSnapshot:
        dates = sorted(set(dates))
        cfg = self.engine_config
        ranks = set(cfg.supervisor_ranks) | set(cfg.assistant_ranks)

        async with self.session_factory() as session:
            teachers = await self._load_teachers(session, ranks, dates)
            busy_by_date = await self._load_busy(session, dates)
            room_links = await self._load_room_links(session, dates)

        logger.info(
            f"Prefetched {len(teachers)} teachers, {len(room_links)} exam rooms "
            f"and {sum(len(ids) for ids in busy_by_date.values())} busy slots "
            f"for {len(dates)} dates"
        )
        return ContextSnapshot.from_teachers(
            teachers,
            supervisor_ranks=cfg.supervisor_ranks,
            assistant_ranks=cfg.assistant_ranks,
            busy_by_date=busy_by_date,
            room_links=room_links,
        )

    async def _load_teachers(
        self, session: AsyncSession, ranks: Set[str], dates: List[date]
    ) -> List[Teacher]:
        # Pool order: lightest load first, then name, then id
        rows = (
            await session.execute(
                select(TeacherRow)
                .where(TeacherRow.is_active.is_(True), TeacherRow.rank.in_(ranks))
                .order_by(
                    TeacherRow.total_periods_assigned, TeacherRow.name, TeacherRow.id
                )
            )
        ).scalars().all()

        unavailable: DefaultDict[int, Set[date]] = defaultdict(set)
        if dates:
            result = await session.execute(
                select(
                    TeacherUnavailability.teacher_id,
                    TeacherUnavailability.unavailable_date,
                ).where(TeacherUnavailability.unavailable_date.in_(dates))
            )
            for teacher_id, unavailable_date in result.all():
                unavailable[teacher_id].add(unavailable_date)

        return [
            Teacher(
                id=row.id,
                name=row.name,
                rank=row.rank,
                total_periods_assigned=row.total_periods_assigned or 0,
                department=row.department,
                unavailable_dates=set(unavailable.get(row.id, ())),
            )
            for row in rows
        ]

    async def _load_busy(
        self, session: AsyncSession, dates: List[date]
    ) -> Dict[date, Set[int]]:
        busy: DefaultDict[date, Set[int]] = defaultdict(set)
        if not dates:
            return {}
        result = await session.execute(
            select(TeacherAssignment.teacher_id, ExamRoom.exam_date)
            .join(ExamRoom, TeacherAssignment.exam_room_id == ExamRoom.id)
            .where(ExamRoom.exam_date.in_(dates))
        )
        for teacher_id, exam_date in result.all():
            busy[exam_date].add(teacher_id)
        return dict(busy)

    async def _load_room_links(
        self, session: AsyncSession, dates: List[date]
    ) -> Dict[Tuple[str, date], SlotLinkage]:
        links: Dict[Tuple[str, date], SlotLinkage] = {}
        if not dates:
            return links
        result = await session.execute(
            select(ExamRoom.id, ExamRoom.room_id, Room.room_number, ExamRoom.exam_date)
            .join(Room, ExamRoom.room_id == Room.id)
            .where(ExamRoom.exam_date.in_(dates))
            .order_by(ExamRoom.id)
        )
        for exam_room_id, room_id, room_number, exam_date in result.all():
            key = (room_number, exam_date)
            if key in links:
                logger.warning(
                    f"Room {room_number} has more than one exam room on {exam_date}; "
                    f"keeping {links[key].exam_room_id}"
                )
                continue
            links[key] = SlotLinkage(exam_room_id=exam_room_id, room_id=room_id)
        return links

    async def batch_commit(self, planned: Sequence[PlannedAssignment]) -> None:
        """
        Write every planned assignment in one transaction.

        An existing assignment for the same exam room and role is replaced, and
        teacher running totals move with the assignment.
        """
        if not planned:
            return

        async with self.session_factory() as session:
            async with session.begin():
                existing = await self._existing_for(session, planned)
                teachers = await self._teachers_for(session, planned, existing)

                for item in planned:
                    key = (item.exam_room_id, item.role.value)
                    current = existing.get(key)
                    if current is None:
                        current = TeacherAssignment(
                            exam_room_id=item.exam_room_id,
                            teacher_id=item.teacher_id,
                            role=item.role.value,
                        )
                        session.add(current)
                        existing[key] = current
                        teachers[item.teacher_id].total_periods_assigned += 1
                    elif current.teacher_id != item.teacher_id:
                        previous = teachers[current.teacher_id]
                        previous.total_periods_assigned = max(
                            0, previous.total_periods_assigned - 1
                        )
                        current.teacher_id = item.teacher_id
                        teachers[item.teacher_id].total_periods_assigned += 1

                    current.session = item.session.value
                    current.shift_start = item.shift_start
                    current.shift_end = item.shift_end

                await session.flush()

        logger.info(f"Committed {len(planned)} teacher assignments")

    async def _existing_for(
        self, session: AsyncSession, planned: Sequence[PlannedAssignment]
    ) -> Dict[Tuple[int, str], TeacherAssignment]:
        exam_room_ids = {p.exam_room_id for p in planned}
        rows = (
            await session.execute(
                select(TeacherAssignment).where(
                    TeacherAssignment.exam_room_id.in_(exam_room_ids)
                )
            )
        ).scalars().all()
        return {(row.exam_room_id, row.role): row for row in rows}

    async def _teachers_for(
        self,
        session: AsyncSession,
        planned: Sequence[PlannedAssignment],
        existing: Dict[Tuple[int, str], TeacherAssignment],
    ) -> Dict[int, TeacherRow]:
        ids = {p.teacher_id for p in planned} | {
            row.teacher_id for row in existing.values()
        }
        rows = (
            await session.execute(select(TeacherRow).where(TeacherRow.id.in_(ids)))
        ).scalars().all()
        teachers = {row.id: row for row in rows}
        missing = ids - set(teachers)
        if missing:
            raise LookupError(f"Unknown teacher ids in plan: {sorted(missing)}")
        return teachers

    async def get_existing_assignment_counts(self) -> Dict[str, AssignmentCount]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Room.room_number, ExamRoom.exam_date, TeacherAssignment.role)
                .join(ExamRoom, TeacherAssignment.exam_room_id == ExamRoom.id)
                .join(Room, ExamRoom.room_id == Room.id)
            )
            rows = result.all()

        roles: DefaultDict[str, List[str]] = defaultdict(list)
        for room_number, exam_date, role in rows:
            roles[assignment_count_key(room_number, exam_date)].append(role)

        return {
            key: AssignmentCount(
                total=len(found),
                has_supervisor=TeacherRole.SUPERVISOR.value in found,
                has_assistant=TeacherRole.ASSISTANT.value in found,
            )
            for key, found in roles.items()
        }
