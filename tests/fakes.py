"""Hand-driven gateway fakes for ordering tests.

Every remote call parks on a future the test resolves explicitly, so tests
decide the order in which responses land.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional

from taskboard.filters import TaskFilter
from taskboard.models import Comment, Task, TaskStatus, User


@dataclass
class PendingCall:
    name: str
    args: tuple[Any, ...]
    future: asyncio.Future = field(repr=False)

    def resolve(self, value: Any) -> None:
        self.future.set_result(value)

    def fail(self, error: BaseException) -> None:
        self.future.set_exception(error)


class DeferredGateway:
    """Gateway double whose calls complete only when the test says so.

    ``list_users`` answers immediately with :attr:`users` unless
    :attr:`users_error` is set.
    """

    def __init__(self) -> None:
        self.calls: list[PendingCall] = []
        self.users: list[User] = []
        self.users_error: Optional[BaseException] = None
        self.closed = False

    def _park(self, name: str, *args: Any) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        self.calls.append(PendingCall(name, args, future))
        return future

    def pending(self, name: str) -> list[PendingCall]:
        return [c for c in self.calls if c.name == name and not c.future.done()]

    def named(self, name: str) -> list[PendingCall]:
        return [c for c in self.calls if c.name == name]

    async def list_tasks(self, task_filter: Optional[TaskFilter] = None) -> list[Task]:
        return await self._park("list_tasks", task_filter)

    async def list_users(self) -> list[User]:
        if self.users_error is not None:
            raise self.users_error
        return list(self.users)

    async def get_task(self, task_id: str) -> Task:
        return await self._park("get_task", task_id)

    async def list_comments(self, task_id: str) -> list[Comment]:
        return await self._park("list_comments", task_id)

    async def update_status(self, task_id: str, status: TaskStatus) -> Task:
        return await self._park("update_status", task_id, status)

    async def add_comment(self, task_id: str, body: str) -> Comment:
        return await self._park("add_comment", task_id, body)

    async def aclose(self) -> None:
        self.closed = True


async def wait_for_calls(gateway: DeferredGateway, name: str, count: int) -> list[PendingCall]:
    """Yield to the loop until *count* calls named *name* have been made."""
    for _ in range(200):
        calls = gateway.named(name)
        if len(calls) >= count:
            return calls
        await asyncio.sleep(0)
    raise AssertionError(f"expected {count} {name} calls, saw {len(gateway.named(name))}")


def make_task(
    task_id: str,
    status: str = "BACKLOG",
    *,
    title: Optional[str] = None,
    priority: str = "MEDIUM",
    assignee: Optional[dict[str, str]] = None,
    badge: Optional[str] = None,
    **extra: Any,
) -> Task:
    """Build a Task from wire-shaped fields."""
    payload: dict[str, Any] = {
        "id": task_id,
        "title": title or f"Task {task_id}",
        "description": "something to do",
        "priority": priority,
        "status": status,
        "assignee": assignee,
        "dueDate": "2024-08-24T15:30:00Z",
        "badge": badge,
        "createdAt": "2024-08-01T09:00:00Z",
    }
    payload.update(extra)
    return Task.model_validate(payload)
