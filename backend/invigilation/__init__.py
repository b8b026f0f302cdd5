# backend/invigilation/__init__.py

"""Invigilator coverage service: API, persistence and run management."""

from .core import (
    AppError,
    CoverageRunError,
    RankLimitValidationError,
    RunNotFoundError,
    RunStateError,
)
from .services import coverage, data_management

__all__ = [
    "AppError",
    "CoverageRunError",
    "RunNotFoundError",
    "RunStateError",
    "RankLimitValidationError",
    "coverage",
    "data_management",
]
