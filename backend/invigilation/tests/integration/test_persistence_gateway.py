# backend/invigilation/tests/integration/test_persistence_gateway.py

from datetime import date, time

import pytest
from sqlalchemy import func, select

from coverage_engine.core.gateway import PersistenceGateway
from coverage_engine.core.problem_model import (
    CoverageSlot,
    ExamSession,
    PlannedAssignment,
    TeacherRole,
)
from coverage_engine.orchestration.run_orchestrator import BulkAssignRun, RunPhase
from backend.invigilation.models import Teacher, TeacherAssignment
from backend.invigilation.services.coverage import SqlAlchemyCoverageGateway

D1, D2 = date(2025, 1, 6), date(2025, 1, 7)

LIMITS = {"Senior": 5, "Lecturer": 7, "Assistant Lecturer": 8, "Tutor": 10}


def _planned(exam_room_id, teacher_id, role, exam_date=D1):
    return PlannedAssignment(
        exam_room_id=exam_room_id,
        teacher_id=teacher_id,
        teacher_name="",
        teacher_rank="",
        role=role,
        exam_date=exam_date,
        session=ExamSession.MORNING,
        shift_start=time(8, 0),
        shift_end=time(12, 0),
    )


async def _totals(session_factory):
    async with session_factory() as session:
        rows = (await session.execute(select(Teacher.id, Teacher.total_periods_assigned))).all()
    return dict(rows)


async def _assignment_count(session_factory):
    async with session_factory() as session:
        return (await session.execute(select(func.count(TeacherAssignment.id)))).scalar_one()


class TestPrefetchContext:
    """Tests for loading a context snapshot from the database"""

    @pytest.mark.asyncio
    async def test_gateway_satisfies_protocol(self, session_factory):
        assert isinstance(SqlAlchemyCoverageGateway(session_factory), PersistenceGateway)

    @pytest.mark.asyncio
    async def test_pools_ordered_by_workload(self, session_factory, seeded):
        ids = seeded["teachers"]
        snapshot = await SqlAlchemyCoverageGateway(session_factory).prefetch_context([D2, D1])

        supervisors = [t.id for t in snapshot.pool(TeacherRole.SUPERVISOR)]
        assistants = [t.id for t in snapshot.pool(TeacherRole.ASSISTANT)]
        assert supervisors == [ids["ada"], ids["chidi"], ids["bola"]]
        assert assistants == [ids["ada"], ids["lara"], ids["chidi"], ids["bola"], ids["tayo"]]
        assert ids["xena"] not in snapshot.teachers

    @pytest.mark.asyncio
    async def test_busy_unavailable_and_links(self, session_factory, seeded):
        ids = seeded["teachers"]
        snapshot = await SqlAlchemyCoverageGateway(session_factory).prefetch_context([D1, D2])

        assert snapshot.busy_on(D1) == {ids["tayo"]}
        assert snapshot.busy_on(D2) == set()
        assert snapshot.teachers[ids["lara"]].unavailable_dates == {D2}
        link = snapshot.resolve_slot_linkage("R101", D2)
        assert link.exam_room_id == seeded["exam_rooms"][("R101", D2)]
        assert link.room_id == seeded["rooms"]["R101"]
        assert snapshot.resolve_slot_linkage("R103", D2) is None

    @pytest.mark.asyncio
    async def test_only_requested_dates_loaded(self, session_factory, seeded):
        snapshot = await SqlAlchemyCoverageGateway(session_factory).prefetch_context([D2])
        assert snapshot.resolve_slot_linkage("R101", D1) is None
        assert snapshot.busy_on(D1) == set()


class TestBatchCommit:
    """Tests for all-or-nothing assignment writes"""

    @pytest.mark.asyncio
    async def test_commit_writes_rows_and_totals(self, session_factory, seeded):
        ids, rooms = seeded["teachers"], seeded["exam_rooms"]
        gateway = SqlAlchemyCoverageGateway(session_factory)

        await gateway.batch_commit(
            [
                _planned(rooms[("R101", D1)], ids["ada"], TeacherRole.SUPERVISOR),
                _planned(rooms[("R101", D1)], ids["lara"], TeacherRole.ASSISTANT),
            ]
        )

        totals = await _totals(session_factory)
        assert totals[ids["ada"]] == 1
        assert totals[ids["lara"]] == 1
        assert await _assignment_count(session_factory) == 3

    @pytest.mark.asyncio
    async def test_commit_replaces_same_room_and_role(self, session_factory, seeded):
        ids, rooms = seeded["teachers"], seeded["exam_rooms"]
        gateway = SqlAlchemyCoverageGateway(session_factory)

        await gateway.batch_commit(
            [_planned(rooms[("R103", D1)], ids["lara"], TeacherRole.ASSISTANT)]
        )

        totals = await _totals(session_factory)
        assert totals[ids["tayo"]] == 2
        assert totals[ids["lara"]] == 1
        assert await _assignment_count(session_factory) == 1

    @pytest.mark.asyncio
    async def test_failed_commit_writes_nothing(self, session_factory, seeded):
        ids, rooms = seeded["teachers"], seeded["exam_rooms"]
        gateway = SqlAlchemyCoverageGateway(session_factory)
        before = await _totals(session_factory)

        with pytest.raises(LookupError):
            await gateway.batch_commit(
                [
                    _planned(rooms[("R101", D1)], ids["ada"], TeacherRole.SUPERVISOR),
                    _planned(rooms[("R101", D1)], 9999, TeacherRole.ASSISTANT),
                ]
            )

        assert await _totals(session_factory) == before
        assert await _assignment_count(session_factory) == 1

    @pytest.mark.asyncio
    async def test_empty_batch_is_noop(self, session_factory, seeded):
        await SqlAlchemyCoverageGateway(session_factory).batch_commit([])
        assert await _assignment_count(session_factory) == 1


class TestAssignmentCounts:
    @pytest.mark.asyncio
    async def test_counts_keyed_by_room_and_date(self, session_factory, seeded):
        counts = await SqlAlchemyCoverageGateway(session_factory).get_existing_assignment_counts()

        assert set(counts) == {"R103|2025-01-06"}
        count = counts["R103|2025-01-06"]
        assert count.total == 1
        assert count.has_assistant and not count.has_supervisor
        assert not count.is_fully_staffed


class TestRunAgainstDatabase:
    """A whole run through the orchestrator with the SQLAlchemy gateway"""

    @pytest.mark.asyncio
    async def test_run_calculates_and_commits(self, session_factory, seeded):
        ids = seeded["teachers"]
        gateway = SqlAlchemyCoverageGateway(session_factory)
        slots = [
            CoverageSlot("R101", D1),
            CoverageSlot("R102", D1),
            CoverageSlot("R101", D2, session=ExamSession.AFTERNOON),
        ]
        run = BulkAssignRun(slots, LIMITS, gateway)

        await run.begin_calculation()
        assert run.phase is RunPhase.PREVIEW

        first, second, third = run.previews
        assert (first.supervisor.id, first.assistant.id) == (ids["ada"], ids["lara"])
        assert (second.supervisor.id, second.assistant.id) == (ids["chidi"], ids["bola"])
        assert second.scarce_pairing
        assert (third.supervisor.id, third.assistant.id) == (ids["chidi"], ids["tayo"])
        assert third.pair_label == "Senior + Tutor"

        transition = await run.confirm_and_save()
        assert transition.message == "Saved 3 of 3 rooms"

        totals = await _totals(session_factory)
        assert totals[ids["ada"]] == 1
        assert totals[ids["bola"]] == 3
        assert totals[ids["chidi"]] == 3
        assert totals[ids["lara"]] == 1
        assert totals[ids["tayo"]] == 4

        counts = await gateway.get_existing_assignment_counts()
        assert counts["R101|2025-01-06"].is_fully_staffed
        assert counts["R101|2025-01-07"].is_fully_staffed

        async with session_factory() as session:
            afternoon = (
                await session.execute(
                    select(TeacherAssignment.shift_start).where(
                        TeacherAssignment.exam_room_id == seeded["exam_rooms"][("R101", D2)]
                    )
                )
            ).scalars().all()
        assert set(afternoon) == {time(13, 0)}

    @pytest.mark.asyncio
    async def test_second_run_sees_committed_busy_teachers(self, session_factory, seeded):
        ids = seeded["teachers"]
        gateway = SqlAlchemyCoverageGateway(session_factory)

        first = BulkAssignRun([CoverageSlot("R101", D1)], LIMITS, gateway)
        await first.begin_calculation()
        await first.confirm_and_save()

        second = BulkAssignRun([CoverageSlot("R102", D1)], LIMITS, gateway)
        await second.begin_calculation()
        planned_ids = {p.teacher_id for p in second.planned}
        assert not planned_ids & {ids["ada"], ids["lara"], ids["tayo"]}

    @pytest.mark.asyncio
    async def test_two_sessions_on_one_exam_room_keep_every_assignment(
        self, session_factory, seeded
    ):
        ids = seeded["teachers"]
        gateway = SqlAlchemyCoverageGateway(session_factory)
        slots = [
            CoverageSlot("R101", D1, session=ExamSession.MORNING),
            CoverageSlot("R101", D1, session=ExamSession.AFTERNOON),
        ]
        run = BulkAssignRun(slots, LIMITS, gateway)
        await run.begin_calculation()

        morning, afternoon = run.previews
        assert (morning.supervisor.id, morning.assistant.id) == (ids["ada"], ids["lara"])
        assert not afternoon.ok
        assert afternoon.msg == "Room already covered in this batch"

        transition = await run.confirm_and_save()
        assert transition.message == "Saved 1 of 2 rooms"
        assert [r.ok for r in run.save_results] == [True, False]

        async with session_factory() as session:
            rows = (
                await session.execute(
                    select(TeacherAssignment.teacher_id, TeacherAssignment.session).where(
                        TeacherAssignment.exam_room_id == seeded["exam_rooms"][("R101", D1)]
                    )
                )
            ).all()
        # Every planned assignment reached the database
        assert len(rows) == len(run.planned) == 2
        assert {s for _, s in rows} == {"Morning"}
        totals = await _totals(session_factory)
        assert totals[ids["ada"]] == 1
        assert totals[ids["lara"]] == 1
