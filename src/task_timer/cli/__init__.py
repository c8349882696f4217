"""Command-line interface for Task Timer."""

from task_timer.cli.main import cli, main

__all__ = ["cli", "main"]
