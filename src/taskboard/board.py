"""Application state for one board client.

:class:`TaskBoard` owns exactly one session, gateway, store, overlay and
filter, and wires the flows between them: filter change → listing fetch →
store merge, move → optimistic transition → reconcile, card open → overlay.
Any :class:`~taskboard.errors.AuthError` ends the session before it
propagates, which in turn discards every cached task, user and overlay.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Optional, TypeVar, Union

import httpx
from loguru import logger

from .config import ClientConfig
from .detail import DetailOverlay
from .errors import AuthError, TaskBoardError, ValidationError
from .filters import TaskFilter
from .gateway import TaskGateway
from .models import Comment, Task, TaskDraft, TaskStatus, User
from .session import Identity, Session
from .store import TaskStore, TransitionResult

T = TypeVar("T")

_UNSET: Any = object()


class TaskBoard:
    """Explicit application state; nothing here is module-global."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        gateway: Optional[TaskGateway] = None,
        session: Optional[Session] = None,
    ) -> None:
        self.config = config or ClientConfig()
        self.session = session or Session()
        self.gateway = gateway or TaskGateway(self.session, self.config, transport=transport)
        self.store = TaskStore()
        self.overlay = DetailOverlay()
        self.filter = TaskFilter()
        self._epoch = 0
        # Filter of the last applied listing; None until one lands.
        self._listed_filter: Optional[TaskFilter] = None
        self.session.on_end(self._discard_session_state)

    async def aclose(self) -> None:
        await self.gateway.aclose()

    async def __aenter__(self) -> "TaskBoard":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def _discard_session_state(self) -> None:
        self._epoch += 1
        self._listed_filter = None
        self.store.clear()
        self.overlay.close()

    async def _guard(self, call: Awaitable[T]) -> T:
        try:
            return await call
        except AuthError:
            logger.warning("Credential rejected; signing out")
            self.session.clear()
            raise

    def _require_session(self) -> None:
        if not self.session.is_authenticated:
            raise AuthError("Not signed in")

    @property
    def identity(self) -> Optional[Identity]:
        return self.session.identity

    async def login(self, email: str, password: str) -> Identity:
        result = await self.gateway.login(email, password)
        identity = self.session.set_credential(result.token, result.user)
        await self.refresh()
        return identity

    async def signup(self, email: str, password: str) -> Identity:
        result = await self.gateway.signup(email, password)
        identity = self.session.set_credential(result.token, result.user)
        await self.refresh()
        return identity

    def logout(self) -> None:
        self.session.clear()

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def refresh(self) -> bool:
        """Fetch tasks (under the current filter) and users.

        Returns:
            True if this call's task listing was applied, False if a newer
            listing superseded it (a superseded failure is discarded too).
        """
        self._require_session()
        generation = self.store.begin_fetch()
        epoch = self._epoch
        task_filter = self.filter
        tasks_result, users_result = await asyncio.gather(
            self.gateway.list_tasks(task_filter),
            self.gateway.list_users(),
            return_exceptions=True,
        )

        for result in (tasks_result, users_result):
            if isinstance(result, AuthError):
                logger.warning("Credential rejected; signing out")
                self.session.clear()
                raise result
        if isinstance(tasks_result, TaskBoardError) and self._superseded(generation):
            logger.debug("Discarding failed listing (generation {}): {}", generation, tasks_result)
            return False
        if isinstance(tasks_result, BaseException):
            raise tasks_result
        applied = self.store.apply_fetch(generation, tasks_result)
        if applied:
            self._listed_filter = task_filter

        # The user listing is a bonus: failing it only means no new users.
        if isinstance(users_result, TaskBoardError):
            logger.warning("Failed to fetch users: {}", users_result)
        elif isinstance(users_result, BaseException):
            raise users_result
        elif epoch == self._epoch:
            self.store.merge_users(users_result)
        return applied

    async def set_filter(
        self,
        *,
        assignee_id: Optional[str] = _UNSET,
        priority: Union[str, None] = _UNSET,
    ) -> bool:
        """Change the filter and refetch.

        Returns False without a request when the filter is unchanged and its
        listing is already shown; a filter whose refetch failed is retried.
        """
        changes: dict[str, Any] = {}
        if assignee_id is not _UNSET:
            changes["assignee_id"] = assignee_id
        if priority is not _UNSET:
            changes["priority"] = priority
        new_filter = self.filter.with_changes(**changes)
        # An unchanged filter is refetched only if its last listing never landed.
        if new_filter == self.filter and new_filter == self._listed_filter:
            return False
        self.filter = new_filter
        logger.debug("Filter changed to {}", new_filter.to_params())
        await self.refresh()
        return True

    def _superseded(self, generation: int) -> bool:
        return generation < self.store.latest_fetch or self.store.is_stale(generation)

    def columns(self) -> dict[TaskStatus, list[Task]]:
        return self.store.group_by_status()

    @property
    def users(self) -> list[User]:
        return self.store.users

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def move_task(self, task_id: str, status: Union[TaskStatus, str]) -> TransitionResult:
        """Drop *task_id* onto the *status* column."""
        self._require_session()
        result = await self.store.apply_status_transition(task_id, status, self.gateway.update_status)
        if isinstance(result.error, AuthError):
            self.session.clear()
            raise result.error
        if result.task is not None:
            self.overlay.refresh_task(result.task)
        return result

    async def create_task(self, draft: TaskDraft) -> Task:
        self._require_session()
        task = await self._guard(self.gateway.create_task(draft))
        self.store.upsert(task, prepend=True)
        return task

    # ------------------------------------------------------------------
    # Overlay
    # ------------------------------------------------------------------

    async def open_task(self, task_id: str) -> bool:
        self._require_session()
        return await self._guard(self.overlay.open(task_id, self.gateway))

    def close_task(self) -> None:
        self.overlay.close()

    async def add_comment(self, body: str) -> Comment:
        """Post *body* on the open task and append it to the thread."""
        self._require_session()
        task = self.overlay.task
        if task is None:
            raise ValidationError("Open a task before commenting")
        comment = await self._guard(self.gateway.add_comment(task.id, body))
        self.overlay.append_comment(task.id, comment)
        return comment
