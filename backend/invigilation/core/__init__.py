# backend/invigilation/core/__init__.py
from .exceptions import (
    AppError,
    CoverageRunError,
    RunNotFoundError,
    RunStateError,
    RankLimitValidationError,
)

__all__ = [
    "AppError",
    "CoverageRunError",
    "RunNotFoundError",
    "RunStateError",
    "RankLimitValidationError",
]
