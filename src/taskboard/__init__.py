"""Provide the public `taskboard` package exports."""

from __future__ import annotations

from .board import TaskBoard
from .config import ClientConfig, load_client_config
from .detail import DetailOverlay
from .errors import (
    AuthError,
    ConflictError,
    NetworkError,
    NotFoundError,
    TaskBoardError,
    ValidationError,
)
from .filters import TaskFilter
from .gateway import TaskGateway
from .models import Comment, Priority, Task, TaskDraft, TaskStatus, User
from .session import Identity, Session
from .store import TaskStore, TransitionOutcome, TransitionResult

__all__ = [
    "AuthError",
    "ClientConfig",
    "Comment",
    "ConflictError",
    "DetailOverlay",
    "Identity",
    "NetworkError",
    "NotFoundError",
    "Priority",
    "Session",
    "Task",
    "TaskBoard",
    "TaskBoardError",
    "TaskDraft",
    "TaskFilter",
    "TaskGateway",
    "TaskStatus",
    "TaskStore",
    "TransitionOutcome",
    "TransitionResult",
    "User",
    "ValidationError",
    "load_client_config",
]
