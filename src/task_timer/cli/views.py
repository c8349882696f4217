"""Rich renderables for the timer state."""

from rich.markup import escape
from rich.table import Table

from task_timer.core.timer import TaskTimer
from task_timer.formatting import format_duration


def task_table(timer: TaskTimer) -> Table:
    """Build the task list with an active marker and a total row.

    The total covers the listed rows only, so a task marked for deletion
    drops out of it at once rather than on the next tick.
    """
    active = timer.get_active_task()
    tasks = [task for task in timer.list_tasks() if not task.is_flushable()]

    table = Table(title="Tasks", show_footer=True)
    table.add_column("Active", justify="center", footer="")
    table.add_column("ID", style="cyan", footer="")
    table.add_column("Task name", footer="Total time spent")
    table.add_column(
        "Time spent",
        justify="right",
        style="green",
        footer=format_duration(sum(task.get_time_spent() for task in tasks)),
    )

    for task in tasks:
        marker = "[bold green]●[/bold green]" if task is active else ""
        table.add_row(
            marker,
            task.get_id(),
            escape(task.get_name()) or "[dim]Add task name[/dim]",
            format_duration(task.get_time_spent()),
        )
    return table


def group_table(timer: TaskTimer) -> Table:
    """Build the group list with member counts and combined time."""
    table = Table(title="Groups")
    table.add_column("ID", style="cyan")
    table.add_column("Group name")
    table.add_column("Tasks", justify="right")
    table.add_column("Time spent", justify="right", style="green")

    for group in timer.list_groups():
        if group.is_flushable():
            continue
        members = [task.get_id() for task in group.get_tasks() if not task.is_flushable()]
        table.add_row(
            group.get_id(),
            escape(group.get_name()),
            ", ".join(members) or "-",
            format_duration(group.get_time_spent()),
        )
    return table


def toggle_label(timer: TaskTimer, started: bool) -> str:
    """Label of the start/pause control for the current timer state."""
    if timer.is_running():
        return "Pause timer"
    return "Resume timer" if started else "Start timer"
