"""Command: provision every service the app needs."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import click

from devstack.commands._base import DevCommand, entry_option

if TYPE_CHECKING:
    from devstack.commands._context import AppContext


@click.command(
    cls=DevCommand,
    examples="""\
  devstack up
  devstack up --app src/worker.ts
  eval "$(devstack up --export)"
  devstack --json up""",
)
@click.argument("entry", required=False)
@entry_option
@click.option(
    "--export",
    "export_env",
    is_flag=True,
    help="Print shell export lines for the connection variables.",
)
@click.pass_obj
def up(app: AppContext, entry: str | None, app_entry: str | None, export_env: bool) -> None:
    """Start (or reuse) containers for every required service."""
    result = asyncio.run(app.stack.provision(entry or app_entry))

    if export_env and result.ok:
        from devstack.output.formatters import format_exports

        exports = format_exports(result.data.get("env", {}))
        if exports:
            click.echo(exports)
        app.emit_warnings(result)
        return

    app.emit(result)
