# coverage_engine/tests/unit/test_run_orchestrator.py

from datetime import date

import pytest

from coverage_engine.core.gateway import PersistenceGateway
from coverage_engine.core.problem_model import CoverageSlot
from coverage_engine.orchestration.run_orchestrator import (
    DB_WRITE_FAILED,
    BulkAssignRun,
    InvalidRunTransition,
    RunPhase,
)

D1, D2 = date(2025, 1, 6), date(2025, 1, 7)
LIMITS = {"Senior": 5, "Lecturer": 7}


class FakeGateway:
    """In-memory gateway recording what the run asks of it."""

    def __init__(self, snapshot_factory, prefetch_error=None, commit_error=None):
        self.snapshot_factory = snapshot_factory
        self.prefetch_error = prefetch_error
        self.commit_error = commit_error
        self.prefetched = []
        self.commits = []

    async def prefetch_context(self, dates):
        self.prefetched.append(list(dates))
        if self.prefetch_error:
            raise self.prefetch_error
        return self.snapshot_factory()

    async def batch_commit(self, planned):
        if self.commit_error:
            raise self.commit_error
        self.commits.append(list(planned))

    async def get_existing_assignment_counts(self):
        return {}


@pytest.fixture
def gateway(make_teacher, make_snapshot):
    def factory():
        teachers = [
            make_teacher(1, "Senior"),
            make_teacher(2, "Senior", 1),
            make_teacher(3, "Lecturer"),
        ]
        return make_snapshot(teachers, rooms=("R101", "R102"), dates=(D1, D2))

    return FakeGateway(factory)


@pytest.fixture
def slots():
    return [
        CoverageSlot("R101", D2),
        CoverageSlot("R101", D1),
        CoverageSlot("R999", D1),
    ]


class TestBulkAssignRun:
    """Tests for the preview-then-commit run"""

    def test_fake_gateway_satisfies_protocol(self, gateway):
        assert isinstance(gateway, PersistenceGateway)

    @pytest.mark.asyncio
    async def test_calculation_reaches_preview(self, gateway, slots):
        run = BulkAssignRun(slots, LIMITS, gateway)
        assert run.phase is RunPhase.CALCULATING

        transition = await run.begin_calculation()

        assert transition.phase is RunPhase.PREVIEW
        assert gateway.prefetched == [[D1, D2]]
        assert len(run.previews) == 3
        assert run.summary().assignable_rooms == 2
        assert "2 of 3 rooms" in transition.message
        assert gateway.commits == []

    @pytest.mark.asyncio
    async def test_confirm_commits_whole_plan(self, gateway, slots):
        run = BulkAssignRun(slots, LIMITS, gateway)
        await run.begin_calculation()

        transition = await run.confirm_and_save()

        assert transition.phase is RunPhase.DONE
        assert transition.message == "Saved 2 of 3 rooms"
        assert gateway.commits == [run.planned]
        results = {r.slot_key: r for r in run.save_results}
        assert not results["R999|2025-01-06|Morning"].ok
        assert results["R101|2025-01-06|Morning"].ok

    @pytest.mark.asyncio
    async def test_prefetch_failure_ends_run(self, gateway, slots):
        gateway.prefetch_error = ConnectionError("db down")
        run = BulkAssignRun(slots, LIMITS, gateway)

        transition = await run.begin_calculation()

        assert transition.phase is RunPhase.DONE
        assert run.error == "Failed to fetch data: db down"
        assert run.previews == []
        with pytest.raises(InvalidRunTransition):
            await run.confirm_and_save()

    @pytest.mark.asyncio
    async def test_commit_failure_marks_every_room_and_allows_retry(self, gateway, slots):
        gateway.commit_error = RuntimeError("deadlock detected")
        run = BulkAssignRun(slots, LIMITS, gateway)
        await run.begin_calculation()

        transition = await run.confirm_and_save()

        assert transition.phase is RunPhase.DONE
        assert transition.message == "Database write failed: deadlock detected"
        assert run.commit_failed
        assert run.summary().rooms_saved == 0
        linked = [r for r in run.save_results if not r.slot_key.startswith("R999")]
        assert all(r.msg == DB_WRITE_FAILED for r in linked)

        gateway.commit_error = None
        transition = await run.confirm_and_save()
        assert transition.message == "Saved 2 of 3 rooms"
        assert not run.commit_failed
        assert len(gateway.commits) == 1

    @pytest.mark.asyncio
    async def test_cancel_discards_plan(self, gateway, slots):
        run = BulkAssignRun(slots, LIMITS, gateway)
        await run.begin_calculation()

        transition = run.cancel()

        assert transition.phase is RunPhase.DONE
        assert run.cancelled
        assert run.planned == []
        assert gateway.commits == []
        with pytest.raises(InvalidRunTransition):
            await run.confirm_and_save()

    @pytest.mark.asyncio
    async def test_calculation_runs_once(self, gateway, slots):
        run = BulkAssignRun(slots, LIMITS, gateway)
        await run.begin_calculation()
        with pytest.raises(InvalidRunTransition):
            await run.begin_calculation()

    def test_cancel_before_preview_rejected(self, gateway, slots):
        run = BulkAssignRun(slots, LIMITS, gateway)
        with pytest.raises(InvalidRunTransition) as exc_info:
            run.cancel()
        assert exc_info.value.action == "cancel"

    @pytest.mark.asyncio
    async def test_empty_plan_skips_commit(self, gateway):
        run = BulkAssignRun([CoverageSlot("R999", D1)], LIMITS, gateway)
        await run.begin_calculation()

        transition = await run.confirm_and_save()

        assert gateway.commits == []
        assert transition.message == "Saved 0 of 1 rooms"

    @pytest.mark.asyncio
    async def test_previews_grouped_by_date(self, gateway, slots):
        run = BulkAssignRun(slots, LIMITS, gateway)
        await run.begin_calculation()
        grouped = run.previews_by_date()
        assert list(grouped) == [D1, D2]
        assert [p.slot.room_number for p in grouped[D1]] == ["R101", "R999"]

    def test_rank_limit_summary(self, gateway, slots):
        run = BulkAssignRun(slots, LIMITS, gateway)
        assert run.rank_limit_summary() == "Senior (max 5) · Lecturer (max 7)"
