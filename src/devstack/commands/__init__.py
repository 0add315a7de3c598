"""Subcommand modules for devstack.

Provides register_commands() which uses deferred imports to keep
``devstack --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the standalone commands on the root CLI group."""
    from devstack.commands.discover import discover
    from devstack.commands.run import run
    from devstack.commands.up import up

    cli.add_command(discover)
    cli.add_command(up)
    cli.add_command(run)
