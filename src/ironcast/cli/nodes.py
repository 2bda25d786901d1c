"""ironcast nodes command."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ironcast.cli.common import (
    CONFIG_OPTION,
    LOG_LEVEL_OPTION,
    OPENRC_OPTION,
    build_client,
    console,
    fail,
    load_settings,
)
from ironcast.errors import IroncastError
from ironcast.selector import select_nodes


def nodes(
    resource_class: Optional[str] = typer.Option(
        None,
        "--resource-class",
        envvar="RESOURCE_CLASS",
        help="Only show nodes with this resource class",
    ),
    openrc: Optional[Path] = OPENRC_OPTION,
    config_path: Optional[Path] = CONFIG_OPTION,
    log_level: Optional[str] = LOG_LEVEL_OPTION,
    json_output: bool = typer.Option(
        False,
        "--json", "-j",
        help="Output in JSON format",
    ),
) -> None:
    """List bare-metal nodes that are available for provisioning."""
    try:
        config = load_settings(config_path, log_level)
        client = build_client(config, openrc)
        candidates = select_nodes(client, resource_class)
    except IroncastError as e:
        fail(e)

    if json_output:
        typer.echo(json.dumps([node.model_dump(mode="json") for node in candidates], indent=2))
        return

    if not candidates:
        console.print("[dim]No available nodes[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("UUID", style="dim")
    table.add_column("Name")
    table.add_column("Resource Class")

    for node in candidates:
        table.add_row(node.id, node.name or "-", node.resource_class or "-")

    console.print(table)
    console.print(f"[dim]{len(candidates)} node(s) available[/dim]")
