# coverage_engine/__init__.py

"""
Coverage Engine Package Initialization

Greedy, deterministic invigilator coverage assignment: picks a supervisor and
an assistant for every exam room slot, balancing workload and rank pairings,
and runs the plan through a preview-then-commit state machine.
"""

from .config import CoverageEngineConfig, config
from .core import (
    ContextSnapshot,
    CoverageSlot,
    PlannedAssignment,
    SlotPreview,
    Teacher,
    TeacherRole,
    calculate_assignments,
    pick_paired_teachers,
)
from .orchestration import BulkAssignRun, RunPhase

__version__ = "1.0.0"

__all__ = [
    "CoverageEngineConfig",
    "config",
    "ContextSnapshot",
    "CoverageSlot",
    "PlannedAssignment",
    "SlotPreview",
    "Teacher",
    "TeacherRole",
    "calculate_assignments",
    "pick_paired_teachers",
    "BulkAssignRun",
    "RunPhase",
]
