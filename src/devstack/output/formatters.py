"""Rich/JSON output helpers.

The CLI renders ServiceResult for humans (Rich tables and status lines)
or machines (--json). This module picks the mode; the per-op renderers
live in :mod:`devstack.output.renderers`.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import TYPE_CHECKING

from devstack.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from devstack.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display.

    JSON wins over quiet; quiet wins over the Rich renderers.
    """
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)


def format_exports(env: dict[str, str]) -> str:
    """Render *env* as POSIX shell ``export`` lines, safely quoted."""
    return "\n".join(f"export {key}={shlex.quote(value)}" for key, value in env.items())
