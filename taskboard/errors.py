"""
Error taxonomy for the taskboard.

Transition outcomes are values (``TransitionErrorKind``) because the
transition endpoint always answers with a structured verdict. Everything
else raises a ``TaskboardError`` subclass that the routers translate into
an ``HTTPException``.
"""
import enum
from typing import Any, Dict, Optional


class TransitionErrorKind(str, enum.Enum):
    BLOCKED = "Blocked"
    SPRINT_LOCKED = "SprintLocked"
    WIP_EXCEEDED = "WipExceeded"
    NOT_FOUND = "NotFound"
    UNAUTHORIZED = "Unauthorized"
    SYSTEM_ERROR = "SystemError"

    @property
    def retryable(self) -> bool:
        """Only infrastructure failures may be retried with the same inputs."""
        return self is TransitionErrorKind.SYSTEM_ERROR


class TaskboardError(Exception):
    """Base exception for all taskboard errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class NotFoundError(TaskboardError):
    """A task, column, sprint or project does not exist (or is soft-deleted)."""


class PermissionDeniedError(TaskboardError):
    """The caller's role does not allow the operation."""


class ConflictError(TaskboardError):
    """The operation conflicts with current board state."""


class StoreUnavailable(TaskboardError):
    """A backing store lookup failed; callers must fail closed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class InvalidInputError(TaskboardError):
    """Input is well-formed but violates a board rule (e.g. a zero WIP limit)."""
