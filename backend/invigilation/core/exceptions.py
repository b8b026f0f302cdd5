# backend/invigilation/core/exceptions.py
"""Application-level exceptions used across services.

Each exception carries a machine friendly ``code``, a suggested HTTP
``status_code`` and a small ``context`` dict, and serializes via ``to_dict``
for API responses and logs.
"""
from __future__ import annotations

from typing import Optional, Any, Dict, List
from datetime import datetime, timezone


class AppError(Exception):
    """Base application exception with structured metadata.

    Attributes
    ----------
    message
        Human readable message.
    code
        Machine friendly error code (snake_case).
    status_code
        Suggested HTTP status code for API responses.
    details
        Arbitrary extra data useful for debugging or UX.
    timestamp
        UTC ISO timestamp when the exception was created.
    cause
        Optional underlying exception instance.
    context
        Optional lightweight context dict (ids, phase names, counts).
    """

    code: str = "app_error"
    status_code: int = 500

    def __init__(
        self,
        message: str = "An application error occurred",
        *,
        details: Optional[Any] = None,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.cause = cause
        self.context = context or {}
        self.timestamp = (
            datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z"
        )

    def __str__(self) -> str:
        base = f"{self.__class__.__name__}({self.code}): {self.message}"
        if self.context:
            base += f" | context={self.context}"
        if self.details is not None:
            base += f" | details={self.details}"
        if self.cause is not None:
            base += f" | cause={repr(self.cause)}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Return a serializable representation suitable for API responses.

        Note: Do not include large or sensitive objects inside ``details``
        when sending to untrusted clients.
        """
        return {
            "error": {
                "type": self.__class__.__name__,
                "code": self.code,
                "message": self.message,
                "status_code": self.status_code,
                "details": self.details,
                "context": self.context,
                "timestamp": self.timestamp,
            }
        }

    def with_context(self, **ctx: Any) -> "AppError":
        """Return self after extending the context dict. Useful for chaining.

        Example:
        raise err.with_context(run_id=run_id)
        """
        self.context.update({k: v for k, v in ctx.items() if v is not None})
        return self

    @classmethod
    def from_exception(
        cls, exc: BaseException, message: Optional[str] = None
    ) -> "AppError":
        """Wrap a generic exception into an AppError preserving the cause."""
        return cls(message or str(exc), cause=exc)


class CoverageRunError(AppError):
    """Generic coverage run failure.

    Base for failures while preparing, calculating or saving a bulk
    assignment run.
    """

    code = "coverage_run_error"
    status_code = 500

    def __init__(
        self,
        message: str = "Coverage run failed",
        *,
        run_id: Optional[str] = None,
        phase: Optional[str] = None,
        details: Optional[Any] = None,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, cause=cause, context=context)
        if run_id is not None:
            self.context.setdefault("run_id", str(run_id))
        if phase:
            self.context.setdefault("phase", phase)


class RunNotFoundError(CoverageRunError):
    """Raised when a run id is unknown or its run has expired."""

    code = "run_not_found"
    status_code = 404

    def __init__(
        self,
        run_id: Optional[str] = None,
        message: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        msg = message or (
            f"Coverage run {run_id} not found" if run_id else "Coverage run not found"
        )
        super().__init__(msg, run_id=run_id, **kwargs)


class RunStateError(CoverageRunError):
    """Raised when an action is not allowed in the run's current phase."""

    code = "run_state_conflict"
    status_code = 409

    def __init__(
        self,
        message: str = "Action not allowed in the current run phase",
        *,
        action: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        if action:
            self.context.setdefault("action", action)


class RankLimitValidationError(AppError):
    """Raised for a rank limit table that cannot be used for a run."""

    code = "invalid_rank_limits"
    status_code = 422

    def __init__(
        self,
        message: str = "Invalid rank limits",
        *,
        invalid_ranks: Optional[List[str]] = None,
        details: Optional[Any] = None,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, cause=cause, context=context)
        self.invalid_ranks = invalid_ranks or []

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["error"].update({"invalid_ranks": self.invalid_ranks})
        return data


__all__ = [
    "AppError",
    "CoverageRunError",
    "RunNotFoundError",
    "RunStateError",
    "RankLimitValidationError",
]
