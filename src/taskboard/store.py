"""Task collection store: the client-side reconciliation core.

The store is the single source of truth for the tasks and users visible on
the board.  All mutation goes through it:

* :meth:`TaskStore.replace_all` applies a filtered listing,
* :meth:`TaskStore.merge_users` applies the dedicated user listing,
* :meth:`TaskStore.upsert` applies a created or confirmed task,
* :meth:`TaskStore.apply_status_transition` runs the optimistic move protocol.

Listing fetches are sequenced with generation numbers so a slow, superseded
response can never overwrite the result of a newer one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Iterable, Iterator, Optional, Union

from loguru import logger

from .errors import TaskBoardError
from .models import Task, TaskStatus, User, coerce_status

StatusUpdate = Callable[[str, TaskStatus], Awaitable[Task]]


# ---------------------------------------------------------------------------
# Transition results
# ---------------------------------------------------------------------------

class TransitionOutcome(str, Enum):
    UNCHANGED = "unchanged"      # unknown task or already in the target column
    PENDING = "pending"          # optimistic update shown, server not answered
    APPLIED = "applied"          # server confirmed; entry replaced wholesale
    ROLLED_BACK = "rolled_back"  # server rejected; previous status restored


@dataclass
class PendingTransition:
    """An optimistic move waiting for the server's answer."""

    task_id: str
    previous_status: Union[TaskStatus, str]
    target_status: TaskStatus
    seq: int
    outcome: TransitionOutcome = TransitionOutcome.PENDING


@dataclass
class TransitionResult:
    outcome: TransitionOutcome
    task_id: str
    target_status: Optional[TaskStatus] = None
    task: Optional[Task] = None
    error: Optional[TaskBoardError] = None

    @property
    def ok(self) -> bool:
        return self.outcome != TransitionOutcome.ROLLED_BACK

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class TaskStore:
    """In-memory tasks and users for one authenticated session."""

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}
        self._users: dict[str, User] = {}
        # Ids whose entry came from the dedicated user listing.
        self._listed_user_ids: set[str] = set()
        self._pending: dict[str, list[PendingTransition]] = {}
        self._transition_seq = 0
        self._fetch_issued = 0
        self._fetch_applied = 0

    # -- lookups ------------------------------------------------------------

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks.values())

    @property
    def users(self) -> list[User]:
        return sorted(self._users.values(), key=lambda u: (u.email.lower(), u.id))

    def get(self, task_id: str) -> Optional[Task]:
        return self._tasks.get(task_id)

    def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def __iter__(self) -> Iterator[Task]:
        return iter(list(self._tasks.values()))

    def group_by_status(self) -> dict[TaskStatus, list[Task]]:
        """Partition the collection into the four board columns.

        Every status key is present, in board order.  Within a column tasks
        keep collection order.  A task whose status is not a known value is
        left out of every column.
        """
        groups: dict[TaskStatus, list[Task]] = {status: [] for status in TaskStatus}
        for task in self._tasks.values():
            status = coerce_status(task.status)
            if status is None:
                logger.debug("Task {} has unknown status {!r}; not shown", task.id, task.status)
                continue
            groups[status].append(task)
        return groups

    # -- merges -------------------------------------------------------------

    def _learn_assignees(self, tasks: Iterable[Task]) -> None:
        for task in tasks:
            user = task.assignee
            if user is None or user.id in self._listed_user_ids:
                continue
            self._users[user.id] = user

    def replace_all(self, tasks: Iterable[Task]) -> None:
        """Replace the whole collection with a fetched listing.

        The listing was already filtered server-side, so nothing is filtered
        here.  A repeated id replaces the earlier entry in place.
        """
        fresh: dict[str, Task] = {}
        for task in tasks:
            fresh[task.id] = task
        self._tasks = fresh
        self._learn_assignees(fresh.values())

    def merge_users(self, users: Iterable[User]) -> None:
        """Union *users* into the known set; listing entries win on conflict."""
        for user in users:
            self._users[user.id] = user
            self._listed_user_ids.add(user.id)

    def upsert(self, task: Task, *, prepend: bool = False) -> None:
        """Insert or replace *task* by id.

        Replacement keeps the entry's position.  New entries go to the end,
        or to the front with ``prepend=True``.
        """
        if task.id in self._tasks or not prepend:
            self._tasks[task.id] = task
        else:
            self._tasks = {task.id: task, **self._tasks}
        self._learn_assignees([task])

    def clear(self) -> None:
        """Drop everything and invalidate in-flight fetches and transitions."""
        self._tasks = {}
        self._users = {}
        self._listed_user_ids = set()
        self._pending = {}
        self._fetch_applied = self._fetch_issued

    # -- fetch sequencing ---------------------------------------------------

    def begin_fetch(self) -> int:
        """Reserve the generation number for a listing request about to be issued."""
        self._fetch_issued += 1
        return self._fetch_issued

    @property
    def latest_fetch(self) -> int:
        return self._fetch_issued

    def is_stale(self, generation: int) -> bool:
        return generation <= self._fetch_applied

    def apply_fetch(self, generation: int, tasks: Iterable[Task]) -> bool:
        """Apply a listing result unless a newer one has already landed.

        Returns:
            True if the result was applied, False if it was discarded.
        """
        if self.is_stale(generation):
            logger.debug(
                "Discarding stale task listing (generation {}, applied {})",
                generation,
                self._fetch_applied,
            )
            return False
        self._fetch_applied = generation
        self.replace_all(tasks)
        return True

    # -- status transitions -------------------------------------------------

    def begin_transition(
        self, task_id: str, new_status: Union[TaskStatus, str]
    ) -> Optional[PendingTransition]:
        """Phase one: show the move locally.

        Returns ``None`` when there is nothing to do (unknown task or already
        in *new_status*).

        Raises:
            ValueError: if *new_status* is not a board status.
        """
        target = coerce_status(new_status)
        if target is None:
            raise ValueError(f"Unknown status {new_status!r}")
        task = self._tasks.get(task_id)
        if task is None or coerce_status(task.status) == target:
            return None
        self._transition_seq += 1
        pending = PendingTransition(
            task_id=task_id,
            previous_status=task.status,
            target_status=target,
            seq=self._transition_seq,
        )
        self._tasks[task_id] = task.with_status(target)
        self._pending.setdefault(task_id, []).append(pending)
        logger.debug("Optimistically moved {} {} -> {}", task_id, task.status, target.value)
        return pending

    def _unlink(self, pending: PendingTransition) -> list[PendingTransition]:
        """Remove *pending* from its chain, returning the transitions started after it."""
        chain = self._pending.get(pending.task_id, [])
        if pending not in chain:
            return []
        idx = chain.index(pending)
        later = chain[idx + 1:]
        del chain[idx]
        if not chain:
            self._pending.pop(pending.task_id, None)
        return later

    def confirm_transition(self, pending: PendingTransition, task: Task) -> TransitionResult:
        """Phase two (success): adopt the server's task wholesale.

        If a newer move of the same task is still in flight its optimistic
        status stays visible on top of the server's fields.  A task that has
        left the collection meanwhile is not re-inserted.
        """
        later = self._unlink(pending)
        pending.outcome = TransitionOutcome.APPLIED
        current = self._tasks.get(pending.task_id)
        if current is not None:
            if later:
                self._tasks[pending.task_id] = task.with_status(current.status)
            else:
                self._tasks[pending.task_id] = task
            self._learn_assignees([task])
        return TransitionResult(
            outcome=TransitionOutcome.APPLIED,
            task_id=pending.task_id,
            target_status=pending.target_status,
            task=self._tasks.get(pending.task_id, task),
        )

    def rollback_transition(
        self, pending: PendingTransition, error: Optional[TaskBoardError] = None
    ) -> TransitionResult:
        """Phase two (failure): restore the pre-move status.

        When a newer move of the same task is still pending, that move now
        rolls back to this one's starting point instead.
        """
        later = self._unlink(pending)
        pending.outcome = TransitionOutcome.ROLLED_BACK
        current = self._tasks.get(pending.task_id)
        if later:
            later[0].previous_status = pending.previous_status
        elif current is not None and coerce_status(current.status) == pending.target_status:
            self._tasks[pending.task_id] = current.with_status(pending.previous_status)
        logger.warning(
            "Rolled back {} to {}: {}",
            pending.task_id,
            getattr(pending.previous_status, "value", pending.previous_status),
            error,
        )
        return TransitionResult(
            outcome=TransitionOutcome.ROLLED_BACK,
            task_id=pending.task_id,
            target_status=pending.target_status,
            task=self._tasks.get(pending.task_id),
            error=error,
        )

    async def apply_status_transition(
        self,
        task_id: str,
        new_status: Union[TaskStatus, str],
        update: StatusUpdate,
    ) -> TransitionResult:
        """Move a task: optimistic local update, remote call, then reconcile.

        Args:
            task_id: Task to move.
            new_status: Destination column.
            update: Remote call, normally ``gateway.update_status``.

        Returns:
            ``UNCHANGED`` (no remote call made), ``APPLIED`` or
            ``ROLLED_BACK`` with the error attached.
        """
        pending = self.begin_transition(task_id, new_status)
        if pending is None:
            return TransitionResult(
                outcome=TransitionOutcome.UNCHANGED,
                task_id=task_id,
                target_status=coerce_status(new_status),
                task=self._tasks.get(task_id),
            )
        try:
            confirmed = await update(task_id, pending.target_status)
        except TaskBoardError as exc:
            return self.rollback_transition(pending, exc)
        except BaseException:
            self.rollback_transition(pending)
            raise
        return self.confirm_transition(pending, confirmed)
