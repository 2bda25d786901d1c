# Copyright (c) Syntropy Systems
"""Main CLI entry point for ironcast."""

import typer

from ironcast.cli.doctor import doctor
from ironcast.cli.nodes import nodes
from ironcast.cli.provision import provision

app = typer.Typer(
    name="ironcast",
    help=(
        "Provision batches of bare-metal servers on OpenStack Ironic, "
        "in parallel."
    ),
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

# Register commands
_ = app.command()(provision)
_ = app.command()(nodes)
_ = app.command()(doctor)


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
