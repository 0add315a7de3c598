"""Command: report the constructs and infrastructure an app uses."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from devstack.commands._base import DevCommand, entry_option

if TYPE_CHECKING:
    from devstack.commands._context import AppContext


@click.command(
    cls=DevCommand,
    examples="""\
  devstack discover
  devstack discover src/server.ts
  devstack --json discover
  devstack -q discover""",
)
@click.argument("entry", required=False)
@entry_option
@click.pass_obj
def discover(app: AppContext, entry: str | None, app_entry: str | None) -> None:
    """Scan the app's imports and list the services it needs."""
    app.emit(app.stack.discover(entry or app_entry))
