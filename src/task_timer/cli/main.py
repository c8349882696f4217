"""Main CLI application."""

import logging
import sys
from typing import Optional

import click
from rich.console import Console

from task_timer import __version__
from task_timer.cli.config_commands import config, load_config
from task_timer.cli.session import TimerSession
from task_timer.core.timer import TaskTimer
from task_timer.formatting import format_duration
from task_timer.logging_setup import setup_logging

logger = logging.getLogger(__name__)

console = Console()
error_console = Console(stderr=True)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", help="Custom config file", type=click.Path())
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Override advanced.log_level",
)
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def cli(
    ctx: click.Context, config_path: Optional[str], log_level: Optional[str], no_color: bool
) -> None:
    """Task Timer - track time spent on tasks from the terminal.

    Create tasks, pick the one you are working on, and let the timer
    count the seconds.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["log_level"] = log_level

    if no_color:
        console.no_color = True
        error_console.no_color = True


cli.add_command(config)


@cli.command()
@click.option("--autostart/--no-autostart", default=None, help="Start the timer right away")
@click.pass_context
def run(ctx: click.Context, autostart: Optional[bool]) -> None:
    """Open an interactive timer session.

    Example:
        task-timer run
        task-timer run --autostart
    """
    config_mgr = load_config(ctx)
    setup_logging(
        ctx.obj.get("log_level") or config_mgr.get("advanced.log_level", "INFO"),
        config_mgr.get("advanced.log_file"),
    )

    timer = TaskTimer(tick_interval=config_mgr.get("timer.tick_interval", 1.0))
    session = TimerSession(
        timer,
        console=console,
        confirm=lambda question: click.confirm(question, default=False),
        confirm_delete=config_mgr.get("display.confirm_delete", True),
        show_groups=config_mgr.get("display.show_groups", True),
        refresh_interval=config_mgr.get("display.refresh_interval", 0.5),
    )

    if autostart is None:
        autostart = config_mgr.get("timer.autostart", False)
    if autostart:
        timer.start_timer()

    console.print("[bold]Task Timer[/bold] - type [cyan]help[/cyan] for commands")
    try:
        while True:
            try:
                line = click.prompt("task-timer", default="", show_default=False)
            except click.Abort:
                break
            if not session.execute(line):
                break
    finally:
        timer.pause_timer()

    console.print(f"Total time spent: {format_duration(timer.get_total_time_spent())}")


@cli.command("format")
@click.argument("seconds", type=click.IntRange(min=0))
def format_command(seconds: int) -> None:
    """Format a number of seconds the way the timer displays it.

    Example:
        task-timer format 93784
    """
    click.echo(format_duration(seconds))


def main() -> None:
    """Console script entry point."""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        error_console.print("Interrupted")
        sys.exit(130)


if __name__ == "__main__":
    main()
