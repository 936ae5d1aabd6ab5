"""Interactive terminal front-end for the task board.

Presentation only: every command reads or drives :class:`TaskBoard` and
renders the result with rich.
"""

from __future__ import annotations

import argparse
import asyncio
import shlex
from datetime import datetime
from itertools import zip_longest
from pathlib import Path
from typing import Awaitable, Callable, Optional

from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .board import TaskBoard
from .config import load_client_config
from .constants import PRIORITIES
from .errors import AuthError, TaskBoardError
from .logging_utils import configure_logging
from .models import Task, TaskDraft, TaskStatus, coerce_status
from .store import TransitionOutcome

HELP_TEXT = """\
login <email> [password]      sign in
signup <email> [password]     create an account
board                         show the board
filter [assignee=<id|email>] [priority=<LOW|MEDIUM|HIGH>] | filter clear
users                         list known users
create                        create a task (prompts for fields)
move <task-id> <status>       move a task (BACKLOG, IN_PROGRESS, REVIEW, DONE)
open <task-id>                show a task with its comments
comment <text>                comment on the open task
close                         close the open task
logout                        sign out
quit                          leave
"""


def format_due(value: Optional[datetime]) -> str:
    """``Aug 24, 15:30`` in local time, or ``-`` when unset."""
    if value is None:
        return "-"
    local = value.astimezone() if value.tzinfo else value
    return f"{local:%b} {local.day}, {local:%H:%M}"


def _card(task: Task) -> str:
    assignee = task.assignee.email if task.assignee and task.assignee.email else "-"
    lines = [
        f"[bold]{escape(task.title)}[/bold] [dim]({escape(task.id)})[/dim]",
        f"Priority: {getattr(task.priority, 'value', task.priority)}",
        f"Assignee: {escape(assignee)}",
        f"Due: {format_due(task.due_date)}",
    ]
    if task.badge:
        lines.append(f"[reverse] {escape(task.badge)} [/reverse]")
    return "\n".join(lines)


def render_board(board: TaskBoard) -> Table:
    groups = board.columns()
    table = Table(title="Team Task Board", show_lines=True, expand=True)
    for status in TaskStatus:
        table.add_column(f"{status.label} ({len(groups[status])})")
    for row in zip_longest(*(groups[status] for status in TaskStatus)):
        table.add_row(*(_card(task) if task is not None else "" for task in row))
    return table


def render_overlay(board: TaskBoard) -> Panel:
    task = board.overlay.task
    if task is None:
        return Panel("[dim]No task open[/dim]")
    lines = [escape(task.description or ""), "", _card(task), "", "[bold]Comments[/bold]"]
    comments = board.overlay.comments
    if not comments:
        lines.append("[dim]No comments yet[/dim]")
    for comment in comments:
        author = comment.author.email if comment.author else "?"
        lines.append(f"[dim]{escape(author)} • {format_due(comment.created_at)}[/dim]")
        lines.append(escape(comment.body))
    return Panel("\n".join(lines), title=escape(task.title))


class BoardShell:
    """Read-eval-print loop over a :class:`TaskBoard`."""

    def __init__(self, board: TaskBoard, console: Optional[Console] = None) -> None:
        self.board = board
        self.console = console or Console()
        self.running = True
        self._commands: dict[str, Callable[[list[str]], Awaitable[None]]] = {
            "login": self._login,
            "signup": self._signup,
            "board": self._board,
            "filter": self._filter,
            "users": self._users,
            "create": self._create,
            "move": self._move,
            "open": self._open,
            "comment": self._comment,
            "close": self._close,
            "logout": self._logout,
            "help": self._help,
            "quit": self._quit,
            "exit": self._quit,
        }

    # -- loop ---------------------------------------------------------------

    async def run(self) -> None:
        self.console.print("[bold]Team Task Board[/bold]  (type 'help')")
        while self.running:
            try:
                line = self.console.input("[cyan]board>[/cyan] ")
            except (EOFError, KeyboardInterrupt):
                break
            await self.dispatch(line)

    async def dispatch(self, line: str) -> None:
        try:
            parts = shlex.split(line)
        except ValueError as exc:
            self._error(str(exc))
            return
        if not parts:
            return
        handler = self._commands.get(parts[0].lower())
        if handler is None:
            self._error(f"Unknown command {parts[0]!r}; type 'help'")
            return
        try:
            await handler(parts[1:])
        except AuthError as exc:
            self._error(f"{exc}. Please log in.")
        except TaskBoardError as exc:
            self._error(str(exc))

    def _error(self, message: str) -> None:
        self.console.print(f"[red]Error: {escape(message)}[/red]")

    def _ask(self, prompt: str, *, password: bool = False) -> str:
        return self.console.input(prompt, password=password)

    # -- commands -----------------------------------------------------------

    async def _authenticate(self, args: list[str], signup: bool) -> None:
        if not args:
            self._error("Usage: login <email> [password]")
            return
        email = args[0]
        password = args[1] if len(args) > 1 else self._ask("Password: ", password=True)
        if signup:
            identity = await self.board.signup(email, password)
        else:
            identity = await self.board.login(email, password)
        self.console.print(f"Signed in as [bold]{identity.email or identity.subject}[/bold]")
        await self._board([])

    async def _login(self, args: list[str]) -> None:
        await self._authenticate(args, signup=False)

    async def _signup(self, args: list[str]) -> None:
        await self._authenticate(args, signup=True)

    async def _board(self, args: list[str]) -> None:
        if not self.board.session.is_authenticated:
            raise AuthError("Not signed in")
        if args and args[0] == "refresh":
            await self.board.refresh()
        self.console.print(render_board(self.board))

    def _resolve_assignee(self, value: str) -> str:
        for user in self.board.users:
            if user.email.lower() == value.lower():
                return user.id
        return value

    async def _filter(self, args: list[str]) -> None:
        if args == ["clear"]:
            changed = await self.board.set_filter(assignee_id=None, priority=None)
        else:
            changes: dict[str, Optional[str]] = {}
            for arg in args:
                key, _, value = arg.partition("=")
                if key == "assignee":
                    changes["assignee_id"] = self._resolve_assignee(value) if value.strip() else None
                elif key == "priority":
                    if value.strip() and value.strip().upper() not in PRIORITIES:
                        self._error(f"Priority must be one of {list(PRIORITIES)}")
                        return
                    changes["priority"] = value
                else:
                    self._error(f"Unknown filter {key!r}")
                    return
            changed = await self.board.set_filter(**changes)
        if not changed:
            self.console.print("[dim]Filter unchanged[/dim]")
        await self._board([])

    async def _users(self, args: list[str]) -> None:
        table = Table(title="Users")
        table.add_column("ID")
        table.add_column("Email")
        for user in self.board.users:
            table.add_row(user.id, user.email)
        self.console.print(table)

    async def _create(self, args: list[str]) -> None:
        assignee = self._ask("Assignee (id or email, blank for none): ").strip()
        draft = TaskDraft(
            title=self._ask("Title: "),
            description=self._ask("Description: "),
            priority=(self._ask("Priority [MEDIUM]: ").strip() or "MEDIUM").upper(),
            assignee_id=self._resolve_assignee(assignee) if assignee else None,
            due_date=self._ask("Due (YYYY-MM-DDTHH:MM): "),
        )
        task = await self.board.create_task(draft)
        self.console.print(f"[green]Task created successfully![/green] ({task.id})")

    async def _move(self, args: list[str]) -> None:
        if len(args) != 2 or coerce_status(args[1]) is None:
            self._error("Usage: move <task-id> <BACKLOG|IN_PROGRESS|REVIEW|DONE>")
            return
        result = await self.board.move_task(args[0], args[1])
        if result.outcome == TransitionOutcome.ROLLED_BACK:
            self._error(f"Failed to update task status: {result.error}")
        elif result.outcome == TransitionOutcome.UNCHANGED:
            self.console.print("[dim]Nothing to move[/dim]")
        await self._board([])

    async def _open(self, args: list[str]) -> None:
        if len(args) != 1:
            self._error("Usage: open <task-id>")
            return
        if await self.board.open_task(args[0]):
            self.console.print(render_overlay(self.board))

    async def _comment(self, args: list[str]) -> None:
        await self.board.add_comment(" ".join(args))
        self.console.print(render_overlay(self.board))

    async def _close(self, args: list[str]) -> None:
        self.board.close_task()

    async def _logout(self, args: list[str]) -> None:
        self.board.logout()
        self.console.print("Signed out")

    async def _help(self, args: list[str]) -> None:
        self.console.print(HELP_TEXT, markup=False)

    async def _quit(self, args: list[str]) -> None:
        self.running = False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Team task board terminal client")
    parser.add_argument("--api-url", default=None, help="Task service base URL (overrides config)")
    parser.add_argument("--config", type=Path, default=None, help="Config file (default: ~/.taskboard/config.yaml)")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )
    return parser


async def _run_shell(board: TaskBoard) -> None:
    async with board:
        await BoardShell(board).run()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config, err = load_client_config(args.config)
    if args.api_url:
        config.api_url = args.api_url.rstrip("/")
    if args.log_level:
        config.log_level = args.log_level
    configure_logging(config.log_level)
    if err:
        logger.warning("Ignoring config file: {}", err)
    asyncio.run(_run_shell(TaskBoard(config)))
    return 0
