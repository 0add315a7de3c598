"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Owns the single InfrastructureManager for the
process and centralizes result emission (stdout/stderr routing + exit
codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from devstack.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from devstack.config.settings import DevstackSettings
    from devstack.services.result import ServiceResult
    from devstack.services.stack import StackService


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The stack service (and the manager inside it) is created lazily on
    first use so ``--help`` and ``--version`` never probe for engines.
    """

    def __init__(self, settings: DevstackSettings) -> None:
        self.settings = settings
        self._stack: StackService | None = None

        from devstack.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose,
            quiet=settings.quiet,
            log_json=settings.log_json,
        )

        if settings.verbose:
            from devstack.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def stack(self) -> StackService:
        """The stack service (created lazily on first access)."""
        if self._stack is None:
            from devstack.services.stack import StackService

            self._stack = StackService(self.settings)
        return self._stack

    @property
    def output_settings(self) -> OutputSettings:
        return OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )

    def emit_warnings(self, result: ServiceResult) -> None:
        for warning in result.warnings:
            click.echo(f"WARNING: {warning}", err=True)

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = self.output_settings
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                self.emit_warnings(result)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
