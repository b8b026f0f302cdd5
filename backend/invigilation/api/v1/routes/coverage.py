# backend/invigilation/api/v1/routes/coverage.py
"""API endpoints for bulk invigilator coverage runs."""

from typing import Dict
from uuid import UUID

from fastapi import APIRouter, Depends, status

from ....api.deps import coverage_service
from ....schemas.coverage import (
    AssignmentCountRead,
    CoverageRunCreate,
    CoverageRunRead,
    RankLimitDefaultsRead,
)
from ....services.coverage import CoverageAssignmentService

router = APIRouter()


@router.get("/rank-limits/defaults", response_model=RankLimitDefaultsRead)
async def get_default_rank_limits(
    service: CoverageAssignmentService = Depends(coverage_service),
):
    """Default per-rank period limits, used to restore the editable table."""
    cfg = service.engine_config
    return RankLimitDefaultsRead(
        supervisor_rank=cfg.supervisor_rank,
        assistant_rank_preference=list(cfg.assistant_rank_preference),
        rank_limits=service.default_rank_limits(),
    )


@router.post(
    "/runs", response_model=CoverageRunRead, status_code=status.HTTP_201_CREATED
)
async def create_run(
    run_in: CoverageRunCreate,
    service: CoverageAssignmentService = Depends(coverage_service),
):
    """Prefetch, calculate and hold a coverage plan for preview."""
    handle = await service.start_run(
        [slot.to_slot() for slot in run_in.slots],
        rank_limits=run_in.rank_limits,
        scope=run_in.scope,
        selected_keys=run_in.selected_keys,
    )
    return CoverageRunRead.from_handle(handle)


@router.get("/runs/{run_id}", response_model=CoverageRunRead)
async def get_run(
    run_id: UUID,
    service: CoverageAssignmentService = Depends(coverage_service),
):
    """Current state of a coverage run."""
    return CoverageRunRead.from_handle(await service.get_run(run_id))


@router.post("/runs/{run_id}/confirm", response_model=CoverageRunRead)
async def confirm_run(
    run_id: UUID,
    service: CoverageAssignmentService = Depends(coverage_service),
):
    """Commit the previewed plan; a failed commit can be confirmed again."""
    return CoverageRunRead.from_handle(await service.confirm_run(run_id))


@router.post("/runs/{run_id}/cancel", response_model=CoverageRunRead)
async def cancel_run(
    run_id: UUID,
    service: CoverageAssignmentService = Depends(coverage_service),
):
    """Discard the previewed plan without writing anything."""
    return CoverageRunRead.from_handle(await service.cancel_run(run_id))


@router.get("/assignment-counts", response_model=Dict[str, AssignmentCountRead])
async def get_assignment_counts(
    service: CoverageAssignmentService = Depends(coverage_service),
):
    """Existing assignments per "room|date", for staffing badges."""
    counts = await service.get_assignment_counts()
    return {key: AssignmentCountRead.model_validate(c) for key, c in counts.items()}
