"""Tests for the async subprocess helper."""

from __future__ import annotations

import sys

import pytest

from devstack.infrastructure.process import CommandResult, on_path, run_command


class TestCommandResult:
    def test_ok(self) -> None:
        assert CommandResult(args=("x",), returncode=0).ok
        assert not CommandResult(args=("x",), returncode=2).ok


class TestOnPath:
    def test_python_is_on_path(self) -> None:
        assert on_path(sys.executable)

    def test_missing_binary(self) -> None:
        assert not on_path("devstack-no-such-binary-xyz")


class TestRunCommand:
    @pytest.mark.asyncio
    async def test_captures_output(self) -> None:
        result = await run_command(sys.executable, "-c", "print('hi')")
        assert result.ok
        assert result.stdout.strip() == "hi"

    @pytest.mark.asyncio
    async def test_nonzero_exit(self) -> None:
        result = await run_command(
            sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"
        )
        assert result.returncode == 3
        assert result.stderr == "bad"

    @pytest.mark.asyncio
    async def test_missing_executable_raises_oserror(self) -> None:
        with pytest.raises(OSError):
            await run_command("devstack-no-such-binary-xyz")

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        with pytest.raises(TimeoutError):
            await run_command(sys.executable, "-c", "import time; time.sleep(5)", timeout=0.1)
