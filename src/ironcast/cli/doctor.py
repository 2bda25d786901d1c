"""ironcast doctor command."""
from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from ironcast.cli.common import CONFIG_OPTION, OPENRC_OPTION, console
from ironcast.config import find_config_file, load_config
from ironcast.credentials import load_openrc
from ironcast.errors import EXIT_FAILURE, IroncastError

CREDENTIAL_VARS = ("OS_AUTH_URL", "OS_USERNAME", "OS_PROJECT_NAME")


def doctor(
    openrc: Optional[Path] = OPENRC_OPTION,
    config_path: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Check ironcast setup and diagnose issues.

    Verifies:
    - configuration file loads
    - the openstack client is installed
    - OpenStack credentials are present (environment, openrc or clouds.yaml)
    """
    issues: list[str] = []
    warnings: list[str] = []

    # Check configuration
    try:
        config = load_config(config_path)
    except IroncastError as e:
        console.print(f"[red]\u2717[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_FAILURE) from e

    found = config_path or find_config_file()
    if found is not None:
        console.print(f"[green]\u2713[/green] Config: {found}")
    else:
        console.print("[dim]\u2022[/dim] No ironcast.yaml found, using defaults")
    console.print(
        f"[dim]\u2022[/dim] poll_interval={config.poll_interval:g}s "
        f"command_timeout={config.command_timeout:g}s"
    )

    # Check openstack client
    openstack = shutil.which(config.openstack_command)
    if openstack:
        console.print(f"[green]\u2713[/green] openstack client: {openstack}")
    else:
        console.print(f"[red]\u2717[/red] Missing command: {config.openstack_command}")
        issues.append(f"{config.openstack_command} not found in PATH")

    # Check credentials
    env = dict(os.environ)
    if openrc is not None:
        try:
            env.update(load_openrc(openrc))
            console.print(f"[green]\u2713[/green] openrc: {openrc}")
        except IroncastError as e:
            console.print(f"[red]\u2717[/red] {escape(str(e))}")
            issues.append(str(e))

    if env.get("OS_CLOUD"):
        console.print(f"[green]\u2713[/green] Credentials: OS_CLOUD={env['OS_CLOUD']}")
    else:
        missing = [name for name in CREDENTIAL_VARS if not env.get(name)]
        if missing:
            console.print(f"[yellow]\u26a0[/yellow] Credentials: missing {', '.join(missing)}")
            warnings.append("OpenStack credentials incomplete (pass --openrc or set OS_*)")
        else:
            console.print(f"[green]\u2713[/green] Credentials: {env['OS_AUTH_URL']}")

    # Summary
    console.print()
    if issues:
        console.print(f"[red]Found {len(issues)} issue(s)[/red]")
        for issue in issues:
            console.print(f"  - {issue}")
        raise typer.Exit(EXIT_FAILURE)
    if warnings:
        console.print(f"[yellow]Found {len(warnings)} warning(s)[/yellow]")
        for warning in warnings:
            console.print(f"  - {warning}")
    else:
        console.print("[green]All checks passed[/green]")
