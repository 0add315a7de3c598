"""Command: provision services, then run a command with their env."""

from __future__ import annotations

import asyncio
import logging
import os
import subprocess
from typing import TYPE_CHECKING

import click

from devstack.commands._base import DevCommand, entry_option
from devstack.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from devstack.commands._context import AppContext

logger = logging.getLogger(__name__)


@click.command(
    cls=DevCommand,
    context_settings={"ignore_unknown_options": True},
    examples="""\
  devstack run -- bun run src/index.ts
  devstack run --app src/worker.ts -- node dist/worker.js
  devstack run -- npm test""",
)
@entry_option
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_obj
def run(app: AppContext, app_entry: str | None, command: tuple[str, ...]) -> None:
    """Provision required services, then run COMMAND with their variables.

    Exits with COMMAND's exit code.
    """
    result = asyncio.run(app.stack.provision(app_entry))
    if not result.ok:
        app.emit(result)
        return

    app.emit_warnings(result)
    env = {**os.environ, **result.data.get("env", {})}
    logger.debug("Running %s", " ".join(command))
    try:
        completed = subprocess.run(list(command), env=env, check=False)
    except OSError as exc:
        app.emit(
            ServiceResult(
                ok=False,
                op="run",
                error=ServiceError(
                    code="COMMAND_FAILED",
                    message=f"Could not run {command[0]}: {exc}",
                    detail={"command": list(command)},
                ),
            )
        )
        return
    raise SystemExit(completed.returncode)
