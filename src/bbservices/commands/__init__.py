"""Subcommand modules for the bbservices CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all commands on the root CLI group (deferred imports)."""
    from bbservices.commands.run import chain, run

    cli.add_command(run)
    cli.add_command(chain)
