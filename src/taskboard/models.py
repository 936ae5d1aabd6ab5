"""Wire models for the task board service.

Payloads cross the boundary in camelCase (``dueDate``, ``createdAt``); the
Python side uses snake_case attributes with aliases.  Server-owned objects
(:class:`Task`, :class:`User`, :class:`Comment`) are immutable pydantic models,
so the store replaces entries instead of mutating them.  :class:`TaskDraft`
is the client-side input for task creation and validates itself before any
request is made.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .constants import MIN_DUE_DATE_LENGTH, STATUS_TITLES
from .errors import ValidationError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TaskStatus(str, Enum):
    """Workflow status; one board column per value."""

    BACKLOG = "BACKLOG"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "REVIEW"
    DONE = "DONE"

    @property
    def label(self) -> str:
        return STATUS_TITLES[self.value]


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


def coerce_status(raw: Union[TaskStatus, str]) -> Optional[TaskStatus]:
    """Return the :class:`TaskStatus` for *raw*, or ``None`` if it is unknown."""
    if isinstance(raw, TaskStatus):
        return raw
    try:
        return TaskStatus(str(raw).strip().upper())
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Server objects
# ---------------------------------------------------------------------------

_WIRE_CONFIG = ConfigDict(
    populate_by_name=True,
    extra="ignore",
    frozen=True,
    coerce_numbers_to_str=True,
)


class User(BaseModel):
    model_config = _WIRE_CONFIG

    id: str
    email: str = ""


class Task(BaseModel):
    """A task as returned by the service."""

    model_config = _WIRE_CONFIG

    id: str
    title: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    # Unknown statuses are kept as raw strings so a contract violation never
    # breaks the store; such tasks simply land in no column.
    status: Union[TaskStatus, str] = Field(default=TaskStatus.BACKLOG, union_mode="left_to_right")
    assignee: Optional[User] = None
    due_date: Optional[datetime] = Field(default=None, alias="dueDate")
    badge: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @property
    def assignee_id(self) -> Optional[str]:
        return self.assignee.id if self.assignee else None

    def with_status(self, status: TaskStatus) -> "Task":
        return self.model_copy(update={"status": status})


class Comment(BaseModel):
    model_config = _WIRE_CONFIG

    id: str
    body: str
    author: Optional[User] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class AuthResult(BaseModel):
    """Response of ``/auth/login`` and ``/auth/signup``."""

    model_config = _WIRE_CONFIG

    token: str
    user: Optional[User] = None


# ---------------------------------------------------------------------------
# Draft
# ---------------------------------------------------------------------------

def to_iso_instant(value: datetime) -> str:
    """Format *value* as a UTC instant with millisecond precision (``...Z``).

    Naive datetimes are taken as local wall-clock time.
    """
    if value.tzinfo is None:
        value = value.astimezone()
    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def _parse_due(raw: Union[datetime, str, None]) -> tuple[Optional[datetime], Optional[str]]:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None, "Due date and time are required"
    if isinstance(raw, datetime):
        return raw, None
    text = raw.strip()
    if len(text) < MIN_DUE_DATE_LENGTH:
        return None, "Please select a complete date and time"
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text), None
    except ValueError:
        return None, "Invalid date format"


@dataclass
class TaskDraft:
    """Input for task creation."""

    title: str = ""
    description: str = ""
    priority: Union[Priority, str] = Priority.MEDIUM
    assignee_id: Optional[str] = None
    due_date: Union[datetime, str, None] = None

    def _check(self) -> tuple[list[str], Optional[datetime]]:
        errors: list[str] = []
        if not (self.title or "").strip():
            errors.append("Title is required")
        if not (self.description or "").strip():
            errors.append("Description is required")
        due, due_error = _parse_due(self.due_date)
        if due_error:
            errors.append(due_error)
        try:
            Priority(str(getattr(self.priority, "value", self.priority)).upper())
        except ValueError:
            valid = [p.value for p in Priority]
            errors.append(f"Priority must be one of {valid}, got '{self.priority}'")
        return errors, due

    def validate(self) -> list[str]:
        """Return a list of error strings (empty = valid)."""
        errors, _ = self._check()
        return errors

    def to_payload(self) -> dict[str, Any]:
        """Validate and build the request body.

        Raises:
            ValidationError: if any field is missing or malformed.
        """
        errors, due = self._check()
        if errors or due is None:
            raise ValidationError("; ".join(errors) or "Due date and time are required")
        assignee = (self.assignee_id or "").strip() or None
        return {
            "title": self.title.strip(),
            "description": self.description.strip(),
            "priority": Priority(str(getattr(self.priority, "value", self.priority)).upper()).value,
            "assigneeId": assignee,
            "dueDate": to_iso_instant(due),
        }
