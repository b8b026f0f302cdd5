# backend/invigilation/services/tracking_mixin.py

"""
Action tracking for service operations: a stack of named actions with ids,
durations and outcomes, plus structured operation logging.
"""

import uuid
from typing import Optional, Dict, Any, List
from datetime import datetime, timezone
import logging
import threading

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TrackingMixin:
    """
    Mixin class that provides action and run id tracking for service
    operations.
    """

    def __init__(self):
        self.current_run_id: Optional[uuid.UUID] = None
        self.current_action_id: Optional[uuid.UUID] = None
        self._action_stack: List[Dict[str, Any]] = []
        self._completed_actions: List[Dict[str, Any]] = []

        self._action_lock = threading.RLock()
        self._action_counter = 0

    def generate_action_id(self) -> uuid.UUID:
        """Generate a new unique action ID."""
        return uuid.uuid4()

    def _start_action(
        self,
        action_type: str,
        description: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> uuid.UUID:
        """
        Start tracking a new action.

        Args:
            action_type: Type of action being performed
            description: Human-readable description
            metadata: Additional metadata for the action

        Returns:
            Generated action ID
        """
        with self._action_lock:
            action_id = self.generate_action_id()
            self._action_counter += 1

            action_info = {
                "action_id": action_id,
                "action_type": action_type,
                "description": description,
                "metadata": metadata or {},
                "started_at": _utcnow(),
                "parent_action_id": self.current_action_id,
                "sequence_number": self._action_counter,
                "status": "running",
            }

            if len(self._action_stack) > 50:
                logger.warning(
                    f"Action stack is getting large ({len(self._action_stack)} actions)"
                )

            self._action_stack.append(action_info)

            previous_action_id = self.current_action_id
            self.current_action_id = action_id

            logger.info(
                f"Started action '{action_type}' with ID {action_id} "
                f"(parent: {previous_action_id}, seq: {self._action_counter})"
            )

            return action_id

    def _end_action(
        self, action_id: uuid.UUID, status: str = "completed", result: Any = None
    ):
        """End tracking of an action and pop it off the stack."""
        with self._action_lock:
            action_index = None
            for i in range(len(self._action_stack) - 1, -1, -1):
                if self._action_stack[i]["action_id"] == action_id:
                    action_index = i
                    break

            if action_index is None:
                logger.error(f"Action {action_id} not found in action stack")
                return

            if action_index != len(self._action_stack) - 1:
                logger.warning(
                    f"Ending action {action_id} that is not the most recent "
                    f"(index {action_index}, stack size {len(self._action_stack)})"
                )

            current_action = self._action_stack.pop(action_index)
            end_time = _utcnow()
            current_action.update(
                {
                    "ended_at": end_time,
                    "status": status,
                    "result": result,
                    "duration_ms": (
                        end_time - current_action["started_at"]
                    ).total_seconds()
                    * 1000,
                }
            )
            self._completed_actions.append(current_action)

            self.current_action_id = (
                self._action_stack[-1]["action_id"] if self._action_stack else None
            )

            logger.info(
                f"Ended action '{current_action['action_type']}' with ID {action_id} - "
                f"Status: {status}, Duration: {current_action['duration_ms']:.1f}ms"
            )

    def _get_current_context(self) -> Dict[str, Any]:
        """Current tracking context for logs."""
        with self._action_lock:
            return {
                "run_id": self.current_run_id,
                "action_id": self.current_action_id,
                "action_stack_depth": len(self._action_stack),
                "action_counter": self._action_counter,
            }

    def recent_actions(self, limit: int = 20) -> List[Dict[str, Any]]:
        """Most recently finished actions, newest last."""
        with self._action_lock:
            return [
                {
                    "action_id": str(a["action_id"]),
                    "action_type": a["action_type"],
                    "status": a["status"],
                    "duration_ms": a["duration_ms"],
                }
                for a in self._completed_actions[-limit:]
            ]

    async def _log_operation(
        self,
        operation: str,
        details: Optional[Dict[str, Any]] = None,
        level: str = "INFO",
        error: Optional[str] = None,
    ):
        """
        Log an operation with current tracking context.

        Args:
            operation: Description of the operation
            details: Additional details to log
            level: Log level
            error: Error message if applicable
        """
        context = self._get_current_context()

        log_data = {
            "operation": operation,
            "details": details or {},
            "error": error,
            "run_id": str(context["run_id"]) if context["run_id"] else "-",
        }

        log_msg = f"{operation} (Run: {context['run_id']}, Action: {context['action_id']})"
        if error:
            log_msg = f"{log_msg} - Error: {error}"

        if level.upper() == "ERROR":
            logger.error(log_msg, extra=log_data)
        elif level.upper() == "WARNING":
            logger.warning(log_msg, extra=log_data)
        else:
            logger.info(log_msg, extra=log_data)
