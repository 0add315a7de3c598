"""Shared pytest fixtures and test helpers for devstack tests."""

from __future__ import annotations

import logging
from collections.abc import Generator, Mapping, Sequence
from pathlib import Path

import pytest
from click.testing import CliRunner

from devstack.domain.types import EngineKind
from devstack.infrastructure.containers import (
    ContainerError,
    ContainerInfo,
    ContainerRuntime,
    ExecResult,
    PortMapping,
)
from devstack.services.telemetry import disable_telemetry


@pytest.fixture(autouse=True)
def _restore_process_state() -> Generator[None]:
    """Undo logging and telemetry changes made by CLI invocations."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    app_level = logging.getLogger("devstack").level
    yield
    disable_telemetry()
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("devstack").setLevel(app_level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def app_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Temporary app directory used as CWD, isolated from ambient config.

    Connection-string variables are cleared so provisioning never picks
    up the developer's own services.
    """
    for var in ("DATABASE_URL", "REDIS_URL", "MYSQL_URL", "DEVSTACK_CONFIG"):
        monkeypatch.delenv(var, raising=False)
    (tmp_path / "src").mkdir()
    monkeypatch.chdir(tmp_path)
    return tmp_path


def write_source(root: Path, relpath: str, content: str) -> Path:
    """Write a source file under *root*, creating parent directories."""
    path = root / relpath
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Fake container engine
# ---------------------------------------------------------------------------


class FakeRuntime(ContainerRuntime):
    """In-memory engine that records every call.

    ``fail_run`` makes ``run`` raise, and ``fail_names`` does so only for
    the named containers; ``unhealthy`` makes every exec return a nonzero
    exit code.
    """

    kind = EngineKind.DOCKER
    binary = "fake"

    def __init__(
        self,
        *,
        address: str = "localhost",
        fail_run: bool = False,
        unhealthy: bool = False,
    ) -> None:
        self.address = address
        self.fail_run = fail_run
        self.fail_names: set[str] = set()
        self.unhealthy = unhealthy
        self.containers: dict[str, bool] = {}
        self.runs: list[tuple[str, str, dict[str, str], list[PortMapping]]] = []
        self.execs: list[tuple[str, tuple[str, ...]]] = []

    async def run(
        self,
        name: str,
        image: str,
        env: Mapping[str, str] | None = None,
        ports: Sequence[PortMapping] = (),
    ) -> str:
        self.runs.append((name, image, dict(env or {}), list(ports)))
        if self.fail_run or name in self.fail_names:
            raise ContainerError(f"{self.binary} run failed: boom")
        self.containers[name] = True
        return self.address

    async def start(self, name: str) -> None:
        self.containers[name] = True

    async def inspect(self, name: str) -> ContainerInfo | None:
        if name not in self.containers:
            return None
        return ContainerInfo(name=name, running=self.containers[name])

    async def exec(self, name: str, command: Sequence[str]) -> ExecResult:
        self.execs.append((name, tuple(command)))
        return ExecResult(exit_code=1 if self.unhealthy else 0, output="")

    def _create_args(self, name, image, env, ports):  # type: ignore[no-untyped-def]
        return []

    def _parse_inspect(self, name, data):  # type: ignore[no-untyped-def]
        return ContainerInfo(name=name, running=True)

    async def _address(self, name: str) -> str:
        return self.address


def probe_returning(kind: EngineKind):  # type: ignore[no-untyped-def]
    """Engine probe coroutine that always reports *kind* and counts calls."""
    calls: list[None] = []

    async def probe() -> EngineKind:
        calls.append(None)
        return kind

    probe.calls = calls  # type: ignore[attr-defined]
    return probe


@pytest.fixture
def fake_docker(monkeypatch: pytest.MonkeyPatch) -> FakeRuntime:
    """Make every CLI-built manager provision into one in-memory engine.

    Service specs still come from the CLI settings. The probe always
    reports Docker and health checks make a single attempt. Tests flip
    ``fail_run`` or ``unhealthy`` on the returned runtime to simulate
    failures.
    """
    from devstack.services import stack
    from devstack.services.manager import InfrastructureManager

    runtime = FakeRuntime()

    def build_manager(settings):  # type: ignore[no-untyped-def]
        return InfrastructureManager(
            environ={},
            probe=probe_returning(EngineKind.DOCKER),
            spec_for=settings.service_spec,
            runtime_factory=lambda kind: runtime,
            max_attempts=1,
            interval_ms=0,
        )

    monkeypatch.setattr(stack, "build_manager", build_manager)
    return runtime
