# backend/invigilation/services/coverage/__init__.py
from .persistence_gateway import SqlAlchemyCoverageGateway
from .coverage_assignment_service import (
    SCOPE_ALL,
    SCOPE_SELECTED,
    CoverageAssignmentService,
    CoverageRunHandle,
    RunRegistry,
)

__all__ = [
    "SqlAlchemyCoverageGateway",
    "CoverageAssignmentService",
    "CoverageRunHandle",
    "RunRegistry",
    "SCOPE_ALL",
    "SCOPE_SELECTED",
]
