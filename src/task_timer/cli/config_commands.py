"""CLI commands for configuration management."""

import json
import shutil
import sys
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console
from rich.table import Table

from task_timer.core.config import ConfigManager

console = Console()
error_console = Console(stderr=True)


def load_config(ctx: click.Context) -> ConfigManager:
    """Load the configuration selected by the global --config option."""
    config_path: Optional[str] = (ctx.obj or {}).get("config_path")
    try:
        return ConfigManager(Path(config_path) if config_path else None)
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


def convert_value(value: str) -> Any:
    """Convert a command-line string to bool, None, int or float when it looks like one."""
    lowered = value.lower()
    if lowered in ("true", "yes"):
        return True
    if lowered in ("false", "no"):
        return False
    if lowered == "null":
        return None
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


@click.group()
def config() -> None:
    """Manage Task Timer configuration.

    Configuration is stored in ~/.task-timer/config.yml
    """
    pass


@config.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Show all configuration settings.

    Example:
        task-timer config show
        task-timer config show --json
    """
    config_mgr = load_config(ctx)

    if as_json:
        click.echo(json.dumps(config_mgr.to_dict(), indent=2))
        return

    table = Table(title="Task Timer Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    def add_rows(prefix: str, data: dict[str, Any]) -> None:
        for key, value in data.items():
            full_key = f"{prefix}.{key}" if prefix else key
            if isinstance(value, dict):
                add_rows(full_key, value)
            else:
                table.add_row(full_key, str(value))

    add_rows("", config_mgr.to_dict())
    console.print(table)
    console.print(f"\nConfig file: {config_mgr.config_path}")


@config.command("get")
@click.argument("key")
@click.pass_context
def config_get(ctx: click.Context, key: str) -> None:
    """Get a specific configuration value.

    Example:
        task-timer config get timer.tick_interval
    """
    try:
        value = load_config(ctx).lookup(key)
    except KeyError:
        error_console.print(f"[red]Error:[/red] Configuration key '{key}' not found")
        sys.exit(1)

    if value is None:
        click.echo("null")
    elif isinstance(value, dict):
        click.echo(json.dumps(value, indent=2))
    else:
        click.echo(str(value))


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set a configuration value.

    Use 'true'/'false' for booleans and plain numbers for intervals.

    Example:
        task-timer config set display.refresh_interval 1
        task-timer config set timer.autostart true
    """
    config_mgr = load_config(ctx)
    converted_value = convert_value(value)

    try:
        config_mgr.set(key, converted_value)
        console.print(f"[green]✓[/green] Set {key} = {converted_value}")
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


@config.command("reset")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def config_reset(ctx: click.Context, yes: bool) -> None:
    """Reset configuration to defaults.

    Example:
        task-timer config reset --yes
    """
    config_mgr = load_config(ctx)

    if not yes:
        console.print("[yellow]Warning:[/yellow] This will reset all configuration to defaults.")
        if not click.confirm("Continue?"):
            console.print("Cancelled")
            return

    backup_path = config_mgr.config_path.with_suffix(".yml.backup")
    if config_mgr.config_path.exists():
        shutil.copy(config_mgr.config_path, backup_path)
        console.print(f"Backed up current config to {backup_path}")

    config_mgr.reset()
    console.print("[green]✓[/green] Configuration reset to defaults")


@config.command("path")
@click.pass_context
def config_path(ctx: click.Context) -> None:
    """Show path to configuration file."""
    click.echo(str(load_config(ctx).config_path))
