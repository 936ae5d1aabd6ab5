"""Filter state: the assignee/priority constraint applied to the task listing."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional


def _normalize(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(getattr(value, "value", value)).strip()
    return text or None


@dataclass(frozen=True)
class TaskFilter:
    """Immutable filter value.

    Blank strings and ``None`` both mean "no constraint", so
    ``TaskFilter(assignee_id="  ") == TaskFilter()``.
    """

    assignee_id: Optional[str] = None
    priority: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "assignee_id", _normalize(self.assignee_id))
        priority = _normalize(self.priority)
        object.__setattr__(self, "priority", priority.upper() if priority else None)

    @property
    def is_empty(self) -> bool:
        return self.assignee_id is None and self.priority is None

    def with_changes(self, **changes: Any) -> "TaskFilter":
        """Return a copy with *changes* applied (normalization re-runs)."""
        return replace(self, **changes)

    def to_params(self) -> dict[str, str]:
        """Query parameters for ``GET /tasks``; unset constraints are omitted."""
        params: dict[str, str] = {}
        if self.assignee_id:
            params["assigneeId"] = self.assignee_id
        if self.priority:
            params["priority"] = self.priority
        return params
