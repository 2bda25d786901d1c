"""Helpers shared by ironcast CLI commands."""
from __future__ import annotations

from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape

from ironcast.client import OpenStackCLIClient
from ironcast.config import IroncastConfig, load_config
from ironcast.credentials import load_openrc
from ironcast.errors import IroncastError
from ironcast.logging_config import configure_logging

console = Console()

CONFIG_OPTION = typer.Option(
    None,
    "--config",
    envvar="IRONCAST_CONFIG",
    help="Path to ironcast.yaml (default: nearest ironcast.yaml, then ~/.ironcast/config.yaml)",
)
OPENRC_OPTION = typer.Option(
    None,
    "--openrc",
    envvar="OPENRC_PATH",
    help="Path to an openrc.sh with OS_* credentials",
)
LOG_LEVEL_OPTION = typer.Option(
    None,
    "--log-level",
    help="Log level (default: IRONCAST_LOG_LEVEL, then config, then INFO)",
)


def fail(error: IroncastError) -> NoReturn:
    """Print an error and exit with its exit code."""
    console.print(f"[red]Error:[/red] {escape(str(error))}")
    raise typer.Exit(error.exit_code) from error


def load_settings(config_path: Optional[Path], log_level: Optional[str]) -> IroncastConfig:
    """Load config and set up logging from it."""
    config = load_config(config_path)
    configure_logging(log_level, fallback=config.log_level)
    return config


def build_client(config: IroncastConfig, openrc: Optional[Path]) -> OpenStackCLIClient:
    """Create the control-plane client, with openrc variables if given."""
    extra_env = load_openrc(openrc) if openrc is not None else None
    return OpenStackCLIClient(
        command=config.openstack_command,
        extra_env=extra_env,
        timeout=config.command_timeout,
    )
