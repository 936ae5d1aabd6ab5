"""Typed async wrapper over the remote task-and-comment service.

The gateway owns request construction and response validation.  It never
touches local state: every method returns data for the caller to merge.
Failures are converted into the :mod:`taskboard.errors` taxonomy here, at the
boundary of the call that issued them.
"""

from __future__ import annotations

from typing import Any, Optional, TypeVar

import httpx
from loguru import logger
from pydantic import TypeAdapter
from pydantic import ValidationError as ModelValidationError

from .config import ClientConfig
from .errors import (
    AuthError,
    ConflictError,
    NetworkError,
    NotFoundError,
    TaskBoardError,
    ValidationError,
)
from .filters import TaskFilter
from .models import AuthResult, Comment, Task, TaskDraft, TaskStatus, User
from .session import Session

T = TypeVar("T")

_TASK = TypeAdapter(Task)
_TASKS = TypeAdapter(list[Task])
_USERS = TypeAdapter(list[User])
_COMMENT = TypeAdapter(Comment)
_COMMENTS = TypeAdapter(list[Comment])
_AUTH = TypeAdapter(AuthResult)


def _error_detail(response: httpx.Response, fallback: str) -> str:
    """Pull the human-readable message out of an error body."""
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return text[:240] if text else fallback
    if isinstance(body, dict):
        for key in ("error", "details", "message", "detail"):
            value = body.get(key)
            if value:
                return value if isinstance(value, str) else str(value)
    return fallback


class TaskGateway:
    """Client for the task board HTTP API.

    Parameters
    ----------
    session:
        Supplies the bearer credential for every authenticated call.
    config:
        Base URL and timeout.
    transport:
        Optional httpx transport (tests mount an in-process ASGI app here).
    """

    def __init__(
        self,
        session: Session,
        config: Optional[ClientConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._session = session
        self._config = config or ClientConfig()
        self._client = httpx.AsyncClient(
            base_url=self._config.api_url,
            timeout=self._config.timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "TaskGateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict[str, str]] = None,
        authenticated: bool = True,
    ) -> httpx.Response:
        headers = self._session.auth_headers() if authenticated else {}
        logger.debug("{} {} params={}", method, path, params or {})
        try:
            return await self._client.request(method, path, json=json, params=params, headers=headers)
        except httpx.TransportError as exc:
            logger.warning("{} {} failed: {}", method, path, exc)
            raise NetworkError(f"Could not reach the task service: {exc}") from exc

    @staticmethod
    def _raise_for_status(
        response: httpx.Response,
        *,
        fallback: str,
        mapping: Optional[dict[int, type[TaskBoardError]]] = None,
    ) -> None:
        status = response.status_code
        if status < 400:
            return
        message = _error_detail(response, fallback)
        if mapping and status in mapping:
            raise mapping[status](message, status_code=status)
        if status in (401, 403):
            raise AuthError(message, status_code=status)
        raise NetworkError(f"{fallback} (HTTP {status}): {message}", status_code=status)

    @staticmethod
    def _parse(adapter: TypeAdapter[T], response: httpx.Response) -> T:
        try:
            return adapter.validate_python(response.json())
        except (ValueError, ModelValidationError) as exc:
            raise NetworkError(f"Malformed response from {response.request.url.path}: {exc}") from exc

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def _authenticate(self, path: str, email: str, password: str) -> AuthResult:
        resp = await self._send("POST", path, json={"email": email, "password": password}, authenticated=False)
        self._raise_for_status(
            resp,
            fallback="Authentication failed",
            mapping={400: AuthError, 401: AuthError, 403: AuthError, 409: AuthError, 422: AuthError},
        )
        return self._parse(_AUTH, resp)

    async def login(self, email: str, password: str) -> AuthResult:
        return await self._authenticate("/auth/login", email, password)

    async def signup(self, email: str, password: str) -> AuthResult:
        return await self._authenticate("/auth/signup", email, password)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def list_tasks(self, task_filter: Optional[TaskFilter] = None) -> list[Task]:
        params = (task_filter or TaskFilter()).to_params()
        resp = await self._send("GET", "/tasks", params=params)
        self._raise_for_status(resp, fallback="Failed to load tasks")
        tasks = self._parse(_TASKS, resp)
        logger.debug("Fetched {} tasks", len(tasks))
        return tasks

    async def list_users(self) -> list[User]:
        resp = await self._send("GET", "/tasks/users")
        self._raise_for_status(resp, fallback="Failed to load users")
        return self._parse(_USERS, resp)

    async def get_task(self, task_id: str) -> Task:
        resp = await self._send("GET", f"/tasks/{task_id}")
        self._raise_for_status(resp, fallback=f"Task {task_id} not found", mapping={404: NotFoundError})
        return self._parse(_TASK, resp)

    async def create_task(self, draft: TaskDraft) -> Task:
        payload = draft.to_payload()
        resp = await self._send("POST", "/tasks", json=payload)
        self._raise_for_status(
            resp,
            fallback="Failed to create task",
            mapping={400: ValidationError, 422: ValidationError},
        )
        task = self._parse(_TASK, resp)
        logger.info("Created task {}: {}", task.id, task.title)
        return task

    async def update_status(self, task_id: str, status: TaskStatus) -> Task:
        value = getattr(status, "value", status)
        resp = await self._send("PUT", f"/tasks/{task_id}", json={"status": value})
        self._raise_for_status(
            resp,
            fallback=f"Failed to move task {task_id} to {value}",
            mapping={400: ConflictError, 404: ConflictError, 409: ConflictError, 422: ConflictError},
        )
        return self._parse(_TASK, resp)

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    async def list_comments(self, task_id: str) -> list[Comment]:
        resp = await self._send("GET", f"/tasks/{task_id}/comments")
        self._raise_for_status(resp, fallback=f"Task {task_id} not found", mapping={404: NotFoundError})
        return self._parse(_COMMENTS, resp)

    async def add_comment(self, task_id: str, body: str) -> Comment:
        text = (body or "").strip()
        if not text:
            raise ValidationError("Comment body must not be empty")
        resp = await self._send("POST", f"/tasks/{task_id}/comments", json={"body": text})
        self._raise_for_status(
            resp,
            fallback="Failed to add comment",
            mapping={400: ValidationError, 422: ValidationError, 404: NotFoundError},
        )
        return self._parse(_COMMENT, resp)
