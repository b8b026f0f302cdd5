# coverage_engine/orchestration/__init__.py

from .run_orchestrator import (
    BulkAssignRun,
    InvalidRunTransition,
    RunPhase,
    RunSummary,
    RunTransition,
    SaveResult,
)

__all__ = [
    "BulkAssignRun",
    "InvalidRunTransition",
    "RunPhase",
    "RunSummary",
    "RunTransition",
    "SaveResult",
]
