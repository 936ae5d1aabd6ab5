"""Error taxonomy for the task board client.

Every failure of a remote call is converted into one of these kinds at the
boundary of the operation that issued it.  Local store operations never raise
for missing entries.
"""

from __future__ import annotations

from typing import Optional


class TaskBoardError(Exception):
    """Base class for all client errors."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class AuthError(TaskBoardError):
    """Credential missing or rejected; the session must end."""


class ValidationError(TaskBoardError):
    """A draft or comment was rejected by the client or the server."""


class ConflictError(TaskBoardError):
    """A status transition was rejected or the task no longer exists."""


class NotFoundError(TaskBoardError):
    """The requested task does not exist."""


class NetworkError(TaskBoardError):
    """Transport failure, server error, or a malformed response body."""
