"""ironcast provision command."""
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
from ironcast.config import build_request
from ironcast.errors import EXIT_INVALID_INPUT, IroncastError
from ironcast.models.outcome import InstanceOutcome, RunResult
from ironcast.models.request import (
    DEFAULT_DEPLOY_INTERFACE,
    DEFAULT_INSTANCE_PREFIX,
    DEFAULT_PARALLELISM,
    DEFAULT_TIMEOUT_SECONDS,
)
from ironcast.orchestrator import ProvisionPlan, execute, prepare

OUTCOME_STYLES = {
    "created": "green",
    "error": "red",
    "timed_out": "yellow",
}


def format_elapsed(seconds: float) -> str:
    """Format elapsed seconds as a short duration."""
    total = int(seconds)
    if total < 60:
        return f"{total}s"
    if total < 3600:
        m, s = divmod(total, 60)
        return f"{m}m {s}s"
    h, rem = divmod(total, 3600)
    m, _ = divmod(rem, 60)
    return f"{h}h {m}m"


def provision(
    count: int = typer.Option(
        1,
        "--count", "-n",
        envvar="COUNT",
        help="Number of servers to provision",
    ),
    image: Optional[str] = typer.Option(
        None,
        "--image",
        envvar="IMAGE",
        help="Glance image name or ID",
    ),
    network: Optional[str] = typer.Option(
        None,
        "--network",
        envvar="NETWORK",
        help="Neutron network name or ID",
    ),
    resource_class: Optional[str] = typer.Option(
        None,
        "--resource-class",
        envvar="RESOURCE_CLASS",
        help="Only use Ironic nodes with this resource class",
    ),
    deploy_interface: str = typer.Option(
        DEFAULT_DEPLOY_INTERFACE,
        "--deploy-interface",
        envvar="DEPLOY_INTERFACE",
        help="Ironic deploy interface to set on each node (empty to skip)",
    ),
    ssh_key: Optional[str] = typer.Option(
        None,
        "--ssh-key",
        envvar="SSH_KEY",
        help="Nova keypair name to inject",
    ),
    instance_prefix: str = typer.Option(
        DEFAULT_INSTANCE_PREFIX,
        "--instance-prefix",
        envvar="INSTANCE_PREFIX",
        help="Name prefix for instances (names are PREFIX-N)",
    ),
    timeout_seconds: int = typer.Option(
        DEFAULT_TIMEOUT_SECONDS,
        "--timeout-seconds",
        envvar="TIMEOUT_SECONDS",
        help="Per-instance deploy timeout in seconds",
    ),
    parallelism: int = typer.Option(
        DEFAULT_PARALLELISM,
        "--parallelism", "-p",
        envvar="PARALLELISM",
        help="Maximum deployments in flight",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        envvar="DRY_RUN",
        help="Resolve and allocate, but create nothing",
    ),
    openrc: Optional[Path] = OPENRC_OPTION,
    config_path: Optional[Path] = CONFIG_OPTION,
    log_level: Optional[str] = LOG_LEVEL_OPTION,
    json_output: bool = typer.Option(
        False,
        "--json", "-j",
        help="Print the run result as JSON",
    ),
) -> None:
    """
    Provision bare-metal servers on available Ironic nodes.

    Each server is pinned to its own available node, created in parallel
    and polled until ACTIVE, ERROR or timeout.

    Examples:

        ironcast provision --count 4 --image ubuntu-22.04 --network provisioning

        ironcast provision --count 2 --image ubuntu-22.04 --network prov --dry-run
    """
    if not image:
        console.print("[red]Error:[/red] --image or IMAGE env is required")
        raise typer.Exit(EXIT_INVALID_INPUT)
    if not network:
        console.print("[red]Error:[/red] --network or NETWORK env is required")
        raise typer.Exit(EXIT_INVALID_INPUT)

    try:
        config = load_settings(config_path, log_level)
        request = build_request(
            count=count,
            image=image,
            network=network,
            resource_class=resource_class,
            deploy_interface=deploy_interface,
            ssh_key=ssh_key,
            instance_prefix=instance_prefix,
            timeout_seconds=timeout_seconds,
            parallelism=parallelism,
            poll_interval=config.poll_interval,
            dry_run=dry_run,
        )
        client = build_client(config, openrc)
        plan = prepare(request, client)
    except IroncastError as e:
        fail(e)

    if not json_output:
        _show_plan(plan, request.dry_run)

    result = execute(
        plan,
        request,
        client,
        on_outcome=None if json_output else _report_outcome,
    )

    if json_output:
        payload = result.model_dump(mode="json")
        payload["succeeded"] = result.succeeded
        typer.echo(json.dumps(payload, indent=2))
    else:
        _show_summary(result)

    raise typer.Exit(result.exit_code)


def _show_plan(plan: ProvisionPlan, dry_run: bool) -> None:
    mode = " [yellow](dry run)[/yellow]" if dry_run else ""
    console.print(
        f"[blue]Provisioning {len(plan.allocations)} server(s)[/blue]{mode} "
        f"from {len(plan.candidates)} available node(s)"
    )
    console.print(f"  [dim]image:[/dim] {plan.image_id}")
    console.print(f"  [dim]network:[/dim] {plan.network_id}")


def _report_outcome(outcome: InstanceOutcome) -> None:
    """Print one line as each instance reaches a terminal state."""
    elapsed = format_elapsed(outcome.elapsed_seconds)
    if outcome.kind == "created":
        if outcome.dry_run:
            console.print(
                f"[green]\u2713[/green] {outcome.name} would be provisioned on {outcome.node_id}"
            )
        else:
            console.print(
                f"[green]\u2713[/green] {outcome.name} ACTIVE "
                f"(id={outcome.instance_id}, node={outcome.node_id}, {elapsed})"
            )
    elif outcome.kind == "timed_out":
        console.print(f"[yellow]\u231b[/yellow] {outcome.name} {outcome.reason}")
    else:
        console.print(f"[red]\u2717[/red] {outcome.name} failed: {outcome.reason}")


def _show_summary(result: RunResult) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Slot", style="dim")
    table.add_column("Name")
    table.add_column("Node")
    table.add_column("Result")
    table.add_column("Instance")
    table.add_column("Detail")

    for outcome in result.outcomes:
        style = OUTCOME_STYLES[outcome.kind]
        table.add_row(
            str(outcome.slot),
            outcome.name,
            outcome.node_id,
            f"[{style}]{outcome.state.value}[/{style}]",
            outcome.instance_id or "-",
            outcome.reason or "",
        )

    console.print()
    console.print(table)
    console.print(
        f"[green]{result.created} succeeded[/green], "
        f"[red]{result.errors} failed[/red], "
        f"[yellow]{result.timed_out} timed out[/yellow]"
    )

    if result.timed_out:
        console.print(
            "[yellow]Note:[/yellow] timed-out servers were not deleted and "
            "may still be building"
        )
