"""Interactive console session driving a TaskTimer."""

import logging
import shlex
import time
from typing import Callable, Optional

from rich.console import Console, Group
from rich.live import Live
from rich.markup import escape

from task_timer.cli.views import group_table, task_table, toggle_label
from task_timer.core.models import InvalidArgument, Task, TaskGroup
from task_timer.core.timer import TaskTimer

logger = logging.getLogger(__name__)

HELP_TEXT = """[bold]Commands[/bold]
  new [NAME]                 Create a task (named after its id by default)
  rename TASK_ID NAME        Rename a task
  activate TASK_ID           Credit time to this task
  delete TASK_ID             Delete a task
  toggle                     Start, pause or resume the timer
  group new [NAME]           Create a group
  group rename GROUP_ID NAME Rename a group
  group add GROUP_ID TASK_ID Add a task to a group
  group remove GROUP_ID TASK_ID
                             Remove a task from a group
  group delete GROUP_ID      Delete a group (its tasks are kept)
  list                       Show tasks and groups
  watch [SECONDS]            Live view, Ctrl+C to stop
  help                       Show this help
  quit                       Leave the session"""


class SessionError(Exception):
    """User input the session cannot act on."""

    pass


class TimerSession:
    """Translate typed commands into TaskTimer calls and render the result."""

    def __init__(
        self,
        timer: TaskTimer,
        console: Optional[Console] = None,
        confirm: Optional[Callable[[str], bool]] = None,
        confirm_delete: bool = True,
        show_groups: bool = True,
        refresh_interval: float = 0.5,
    ):
        """Initialize session.

        Args:
            timer: Timer to drive
            console: Console for output (default: stdout)
            confirm: Asks a yes/no question; required when confirm_delete is set
            confirm_delete: Ask before deleting a task
            show_groups: Render the group table in list/watch
            refresh_interval: Seconds between redraws in watch mode
        """
        self.timer = timer
        self.console = console or Console()
        self.confirm = confirm
        self.confirm_delete = confirm_delete
        self.show_groups = show_groups
        self.refresh_interval = refresh_interval
        self._started = timer.is_running()

    def execute(self, line: str) -> bool:
        """Run one command line.

        Args:
            line: Raw input line

        Returns:
            False when the session should end, True otherwise
        """
        try:
            args = shlex.split(line)
        except ValueError as e:
            self._error(str(e))
            return True
        if not args:
            return True

        command, rest = args[0].lower(), args[1:]
        if command in ("quit", "exit"):
            return False

        handler = self._handlers().get(command)
        if handler is None:
            self._error(f"Unknown command: {command}. Type 'help' for a list.")
            return True

        try:
            handler(rest)
        except (SessionError, InvalidArgument) as e:
            self._error(str(e))
        return True

    def render(self) -> Group:
        """Build the current view of tasks (and groups)."""
        if self.show_groups:
            return Group(task_table(self.timer), group_table(self.timer))
        return Group(task_table(self.timer))

    def _handlers(self) -> dict[str, Callable[[list[str]], None]]:
        return {
            "new": self._cmd_new,
            "rename": self._cmd_rename,
            "activate": self._cmd_activate,
            "delete": self._cmd_delete,
            "toggle": self._cmd_toggle,
            "group": self._cmd_group,
            "list": self._cmd_list,
            "watch": self._cmd_watch,
            "help": self._cmd_help,
        }

    def _error(self, message: str) -> None:
        self.console.print(f"[red]Error:[/red] {message}")

    def _task(self, task_id: str) -> Task:
        task = self.timer.get_task_by_id(task_id)
        if task is None or task.is_flushable():
            raise SessionError(f"Task not found: {task_id}")
        return task

    def _group(self, group_id: str) -> TaskGroup:
        group = self.timer.get_group_by_id(group_id)
        if group is None or group.is_flushable():
            raise SessionError(f"Group not found: {group_id}")
        return group

    @staticmethod
    def _expect(args: list[str], count: int, usage: str) -> None:
        if len(args) < count:
            raise SessionError(f"Usage: {usage}")

    def _cmd_new(self, args: list[str]) -> None:
        task = self.timer.create_task()
        task.set_name(" ".join(args) if args else task.get_id())
        self.console.print(f"[green]✓[/green] Created {task.get_id()}: {escape(task.get_name())}")

    def _cmd_rename(self, args: list[str]) -> None:
        self._expect(args, 2, "rename TASK_ID NAME")
        task = self._task(args[0])
        task.set_name(" ".join(args[1:]))
        self.console.print(f"[green]✓[/green] Renamed {task.get_id()}: {escape(task.get_name())}")

    def _cmd_activate(self, args: list[str]) -> None:
        self._expect(args, 1, "activate TASK_ID")
        task = self._task(args[0])
        self.timer.activate_task(task)
        self.console.print(f"[green]▶[/green]  Active: {escape(task.get_name())}")
        if not self.timer.is_running():
            self.console.print("  Timer is paused, use [cyan]toggle[/cyan] to start it")

    def _cmd_delete(self, args: list[str]) -> None:
        self._expect(args, 1, "delete TASK_ID")
        task = self._task(args[0])
        if self.confirm_delete and self.confirm is not None:
            question = (
                f"Are you sure you want to delete the task named '{task.get_name()}'? "
                "You cannot undo this."
            )
            if not self.confirm(question):
                self.console.print("Cancelled")
                return
        task.delete()
        self.console.print(f"[yellow]✗[/yellow] Deleted {task.get_id()}")

    def _cmd_toggle(self, args: list[str]) -> None:
        if self.timer.is_running():
            self.timer.pause_timer()
            self.console.print("[yellow]⏸[/yellow]  Timer paused")
        else:
            self.timer.resume_timer()
            self._started = True
            self.console.print("[green]▶[/green]  Timer running")
        self.console.print(f"  [dim]Next:[/dim] {toggle_label(self.timer, self._started)}")

    def _cmd_group(self, args: list[str]) -> None:
        self._expect(args, 1, "group new|rename|add|remove|delete ...")
        action, rest = args[0].lower(), args[1:]

        if action == "new":
            group = self.timer.create_group()
            group.set_name(" ".join(rest) if rest else group.get_id())
            self.console.print(
                f"[green]✓[/green] Created {group.get_id()}: {escape(group.get_name())}"
            )
        elif action == "rename":
            self._expect(rest, 2, "group rename GROUP_ID NAME")
            group = self._group(rest[0])
            group.set_name(" ".join(rest[1:]))
            self.console.print(
                f"[green]✓[/green] Renamed {group.get_id()}: {escape(group.get_name())}"
            )
        elif action == "add":
            self._expect(rest, 2, "group add GROUP_ID TASK_ID")
            group = self._group(rest[0])
            task = self._task(rest[1])
            group.add_task(task)
            self.console.print(f"[green]✓[/green] Added {task.get_id()} to {group.get_id()}")
        elif action == "remove":
            self._expect(rest, 2, "group remove GROUP_ID TASK_ID")
            group = self._group(rest[0])
            task = self._task(rest[1])
            group.remove_task(task)
            self.console.print(
                f"[green]✓[/green] Removed {task.get_id()} from {group.get_id()}"
            )
        elif action == "delete":
            self._expect(rest, 1, "group delete GROUP_ID")
            group = self._group(rest[0])
            group.delete()
            self.console.print(f"[yellow]✗[/yellow] Deleted {group.get_id()}")
        else:
            raise SessionError(f"Unknown group command: {action}")

    def _cmd_list(self, args: list[str]) -> None:
        self.console.print(self.render())
        state = "running" if self.timer.is_running() else "paused"
        self.console.print(f"Timer {state}")

    def _cmd_watch(self, args: list[str]) -> None:
        duration: Optional[float] = None
        if args:
            try:
                duration = float(args[0])
            except ValueError:
                raise SessionError(f"Not a number of seconds: {args[0]}")

        deadline = time.monotonic() + duration if duration is not None else None
        try:
            with Live(self.render(), console=self.console, auto_refresh=False) as live:
                while deadline is None or time.monotonic() < deadline:
                    time.sleep(self.refresh_interval)
                    live.update(self.render(), refresh=True)
        except KeyboardInterrupt:
            logger.debug("Watch interrupted")

    def _cmd_help(self, args: list[str]) -> None:
        self.console.print(HELP_TEXT)
