"""Detail overlay: the task currently inspected plus its comment thread."""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol

from loguru import logger

from .models import Comment, Task


class DetailSource(Protocol):
    async def get_task(self, task_id: str) -> Task: ...

    async def list_comments(self, task_id: str) -> list[Comment]: ...


class DetailOverlay:
    """Holds at most one open task and its comments.

    Every :meth:`open` and :meth:`close` bumps a generation counter; a fetch
    only lands if no other open/close happened while it was in flight, so
    the last user action always wins.
    """

    def __init__(self) -> None:
        self._task: Optional[Task] = None
        self._comments: list[Comment] = []
        self._generation = 0

    @property
    def task(self) -> Optional[Task]:
        return self._task

    @property
    def comments(self) -> list[Comment]:
        return list(self._comments)

    @property
    def is_open(self) -> bool:
        return self._task is not None

    def is_open_for(self, task_id: str) -> bool:
        return self._task is not None and self._task.id == task_id

    async def open(self, task_id: str, source: DetailSource) -> bool:
        """Fetch *task_id* and its comments, then show both at once.

        Returns:
            True if the overlay now shows the task, False if a later
            open/close superseded this call while it was fetching.

        Raises:
            TaskBoardError: if either fetch fails while this call is still
                current; the overlay is left closed.
        """
        self._generation += 1
        generation = self._generation
        # Switching tasks hides the previous one immediately.
        self._task = None
        self._comments = []
        try:
            task, comments = await asyncio.gather(
                source.get_task(task_id),
                source.list_comments(task_id),
            )
        except Exception as exc:
            if generation != self._generation:
                logger.debug("Discarding superseded detail failure for {}: {}", task_id, exc)
                return False
            self._task = None
            self._comments = []
            raise
        if generation != self._generation:
            logger.debug("Discarding superseded detail fetch for {}", task_id)
            return False
        self._task = task
        self._comments = list(comments)
        return True

    def append_comment(self, task_id: str, comment: Comment) -> bool:
        """Append *comment* if the overlay is still open on *task_id*."""
        if not self.is_open_for(task_id):
            logger.debug("Dropping comment {} for {}; overlay moved on", comment.id, task_id)
            return False
        self._comments.append(comment)
        return True

    def refresh_task(self, task: Task) -> bool:
        """Show a newer version of the open task, if it is the one open."""
        if not self.is_open_for(task.id):
            return False
        self._task = task
        return True

    def close(self) -> None:
        self._generation += 1
        self._task = None
        self._comments = []
