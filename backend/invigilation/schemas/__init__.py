# backend/invigilation/schemas/__init__.py
from .coverage import (
    AssignmentCountRead,
    CoverageRunCreate,
    CoverageRunRead,
    CoverageSlotIn,
    PlannedAssignmentRead,
    RankLimitDefaultsRead,
    SaveResultRead,
    SlotPreviewRead,
    TeacherRead,
)

__all__ = [
    "AssignmentCountRead",
    "CoverageRunCreate",
    "CoverageRunRead",
    "CoverageSlotIn",
    "PlannedAssignmentRead",
    "RankLimitDefaultsRead",
    "SaveResultRead",
    "SlotPreviewRead",
    "TeacherRead",
]
