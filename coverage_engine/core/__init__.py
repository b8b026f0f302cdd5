# coverage_engine/core/__init__.py

from .problem_model import (
    ContextSnapshot,
    CoverageSlot,
    ExamSession,
    PairRecord,
    PlannedAssignment,
    RankLimits,
    SlotLinkage,
    SlotPreview,
    Teacher,
    TeacherRole,
    workload_level,
)
from .eligibility import is_eligible, describe_vacancy
from .trackers import PairHistory, PairTypeUsage, QuotaTracker
from .pair_selector import PairSelection, pick_paired_teachers
from .calculation import CalculationResult, calculate_assignments
from .gateway import AssignmentCount, PersistenceGateway, assignment_count_key

__all__ = [
    "ContextSnapshot",
    "CoverageSlot",
    "ExamSession",
    "PairRecord",
    "PlannedAssignment",
    "RankLimits",
    "SlotLinkage",
    "SlotPreview",
    "Teacher",
    "TeacherRole",
    "workload_level",
    "is_eligible",
    "describe_vacancy",
    "PairHistory",
    "PairTypeUsage",
    "QuotaTracker",
    "PairSelection",
    "pick_paired_teachers",
    "CalculationResult",
    "calculate_assignments",
    "AssignmentCount",
    "PersistenceGateway",
    "assignment_count_key",
]
