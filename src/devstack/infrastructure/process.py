"""Async subprocess helper shared by the container engines.

Every external command goes through :func:`run_command` so tests can
replace a single seam instead of patching asyncio internals.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Exit status and decoded output of a finished command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def on_path(binary: str) -> bool:
    """True if *binary* resolves on the executable search path."""
    return shutil.which(binary) is not None


async def run_command(*args: str, timeout: float | None = None) -> CommandResult:
    """Run *args* without a shell and capture stdout/stderr.

    Raises:
        OSError: The executable could not be started.
        TimeoutError: *timeout* elapsed; the process is killed first.
    """
    logger.debug("exec: %s", " ".join(args))
    proc = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except TimeoutError:
        proc.kill()
        await proc.wait()
        raise

    result = CommandResult(
        args=tuple(args),
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
    if not result.ok:
        logger.debug("exit %d: %s", result.returncode, result.stderr.strip())
    return result
