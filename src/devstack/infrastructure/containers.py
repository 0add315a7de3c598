"""Container engine detection and a uniform capability interface.

Two engines are supported:

* Apple ``container`` (platform-native, macOS only). Containers get their
  own IP address on a virtual network; no port publishing is needed.
* Docker (cross-platform). Ports are published on the host, so services
  are reached via ``localhost``.

Callers select an engine once with :func:`detect_runtime`, obtain an
implementation with :func:`runtime_for`, and never branch on engine
identity afterwards.

INVARIANT: ``run`` is idempotent by container name. An existing container
is reused (started if stopped), never recreated.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar

from devstack.domain.types import EngineKind
from devstack.infrastructure.process import CommandResult, on_path, run_command

logger = logging.getLogger(__name__)

LOCALHOST = "localhost"

DEFAULT_PROBE_TIMEOUT = 10.0
DEFAULT_HEALTH_ATTEMPTS = 30
DEFAULT_HEALTH_INTERVAL_MS = 1000


class ContainerError(RuntimeError):
    """An engine command failed or no engine is available."""


class HealthCheckError(ContainerError):
    """A container never passed its health check."""

    def __init__(self, name: str, attempts: int) -> None:
        super().__init__(f"Container {name} health check failed after {attempts} attempts")
        self.name = name
        self.attempts = attempts


@dataclass(frozen=True)
class PortMapping:
    host: int
    container: int


@dataclass(frozen=True)
class ContainerInfo:
    """Subset of ``inspect`` output that provisioning relies on."""

    name: str
    running: bool
    address: str | None = None


@dataclass(frozen=True)
class ExecResult:
    exit_code: int
    output: str


# ---------------------------------------------------------------------------
# Capability interface
# ---------------------------------------------------------------------------


class ContainerRuntime(ABC):
    """Uniform {run, start, inspect, exec} surface over one engine."""

    kind: ClassVar[EngineKind]
    binary: ClassVar[str]
    inspect_command: ClassVar[tuple[str, ...]] = ("inspect",)

    async def _engine(self, *args: str, check: bool = True) -> CommandResult:
        """Invoke the engine CLI. Raises ContainerError on failure if *check*."""
        try:
            result = await run_command(self.binary, *args)
        except OSError as exc:
            raise ContainerError(f"{self.binary} could not be started: {exc}") from exc
        if check and not result.ok:
            detail = result.stderr.strip() or result.stdout.strip() or f"exit {result.returncode}"
            raise ContainerError(f"{self.binary} {args[0]} failed: {detail}")
        return result

    async def run(
        self,
        name: str,
        image: str,
        env: Mapping[str, str] | None = None,
        ports: Sequence[PortMapping] = (),
    ) -> str:
        """Create-or-reuse-and-start container *name*; return its address."""
        info = await self.inspect(name)
        if info is None:
            try:
                await self._engine(*self._create_args(name, image, env or {}, ports))
                logger.debug("Created container %s from %s", name, image)
            except ContainerError:
                # A concurrent caller may have created it between inspect and run.
                info = await self.inspect(name)
                if info is None:
                    raise
        if info is not None and not info.running:
            await self.start(name)
            logger.debug("Started existing container %s", name)
        return await self._address(name)

    async def start(self, name: str) -> None:
        await self._engine("start", name)

    async def inspect(self, name: str) -> ContainerInfo | None:
        """Return container state, or None if no container has that name."""
        result = await self._engine(*self.inspect_command, name, check=False)
        if not result.ok:
            return None
        try:
            payload = json.loads(result.stdout or "[]")
        except json.JSONDecodeError as exc:
            raise ContainerError(f"{self.binary} inspect returned invalid JSON: {exc}") from exc
        if not isinstance(payload, list) or not payload:
            return None
        try:
            return self._parse_inspect(name, payload[0])
        except (AttributeError, KeyError, TypeError) as exc:
            raise ContainerError(f"{self.binary} inspect returned unexpected data: {exc}") from exc

    async def exec(self, name: str, command: Sequence[str]) -> ExecResult:
        result = await self._engine("exec", name, *command, check=False)
        return ExecResult(exit_code=result.returncode, output=result.stdout)

    @abstractmethod
    def _create_args(
        self,
        name: str,
        image: str,
        env: Mapping[str, str],
        ports: Sequence[PortMapping],
    ) -> list[str]: ...

    @abstractmethod
    def _parse_inspect(self, name: str, data: dict[str, Any]) -> ContainerInfo: ...

    @abstractmethod
    async def _address(self, name: str) -> str: ...


def _env_args(env: Mapping[str, str]) -> list[str]:
    args: list[str] = []
    for key, value in env.items():
        args.extend(["-e", f"{key}={value}"])
    return args


class AppleContainerRuntime(ContainerRuntime):
    """Apple ``container`` CLI. Addresses come from the container's network."""

    kind = EngineKind.APPLE
    binary = "container"

    def _create_args(
        self,
        name: str,
        image: str,
        env: Mapping[str, str],
        ports: Sequence[PortMapping],
    ) -> list[str]:
        # Each container has its own IP; ports are reached directly.
        return ["run", "-d", "--name", name, *_env_args(env), image]

    def _parse_inspect(self, name: str, data: dict[str, Any]) -> ContainerInfo:
        networks = data.get("networks") or []
        address = networks[0].get("address", "") if networks else ""
        return ContainerInfo(
            name=name,
            running=str(data.get("status", "")).lower() == "running",
            address=address.split("/")[0] or None,
        )

    async def _address(self, name: str) -> str:
        info = await self.inspect(name)
        if info is None or not info.address:
            return LOCALHOST
        return info.address


class DockerRuntime(ContainerRuntime):
    """Docker CLI. Ports are published on the host; address is localhost."""

    kind = EngineKind.DOCKER
    binary = "docker"
    # Plain `docker inspect` would also match an image of the same name.
    inspect_command = ("container", "inspect")

    def _create_args(
        self,
        name: str,
        image: str,
        env: Mapping[str, str],
        ports: Sequence[PortMapping],
    ) -> list[str]:
        args = ["run", "-d", "--name", name]
        for port in ports:
            args.extend(["-p", f"{port.host}:{port.container}"])
        return [*args, *_env_args(env), image]

    def _parse_inspect(self, name: str, data: dict[str, Any]) -> ContainerInfo:
        state = data.get("State") or {}
        return ContainerInfo(name=name, running=bool(state.get("Running")))

    async def _address(self, name: str) -> str:
        return LOCALHOST


_RUNTIMES: dict[EngineKind, type[ContainerRuntime]] = {
    EngineKind.APPLE: AppleContainerRuntime,
    EngineKind.DOCKER: DockerRuntime,
}


def runtime_for(kind: EngineKind | None) -> ContainerRuntime:
    """Return the capability implementation for *kind*."""
    if kind is None or kind is EngineKind.NONE:
        raise ContainerError("No container runtime available")
    return _RUNTIMES[kind]()


def _as_runtime(runtime: EngineKind | ContainerRuntime | None) -> ContainerRuntime:
    if isinstance(runtime, ContainerRuntime):
        return runtime
    return runtime_for(runtime)


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


def _is_macos() -> bool:
    return sys.platform == "darwin"


async def _succeeds(*args: str, timeout: float) -> bool:
    try:
        result = await run_command(*args, timeout=timeout)
    except (OSError, TimeoutError) as exc:
        logger.debug("%s failed: %s", " ".join(args), exc)
        return False
    return result.ok


async def detect_runtime(
    *,
    prefer: str = "auto",
    timeout: float = DEFAULT_PROBE_TIMEOUT,
) -> EngineKind:
    """Pick the container engine to use on this machine.

    Apple ``container`` is preferred on macOS when its system service is
    up, or can be started. Otherwise Docker is used if its CLI is on PATH.
    Each probe command is bounded by *timeout* seconds.

    Args:
        prefer: ``"auto"``, or ``"docker"`` to skip the native probe.
            ``"apple"`` behaves like ``"auto"``; Docker remains the fallback.
        timeout: Per-command limit for the native engine's system checks.
    """
    if prefer != "docker" and _is_macos() and on_path(AppleContainerRuntime.binary):
        if await _succeeds("container", "system", "info", timeout=timeout):
            logger.debug("Using Apple container runtime")
            return EngineKind.APPLE
        if await _succeeds("container", "system", "start", timeout=timeout):
            logger.debug("Started Apple container system")
            return EngineKind.APPLE
        logger.debug("Apple container system unavailable; checking Docker")

    if on_path(DockerRuntime.binary):
        logger.debug("Using Docker runtime")
        return EngineKind.DOCKER

    logger.debug("No container runtime found")
    return EngineKind.NONE


# ---------------------------------------------------------------------------
# Exec and health checks
# ---------------------------------------------------------------------------


async def exec_in_container(
    runtime: EngineKind | ContainerRuntime | None,
    name: str,
    command: Sequence[str],
) -> ExecResult:
    """Run *command* inside container *name*. Fails fast without a runtime."""
    return await _as_runtime(runtime).exec(name, command)


async def wait_for_healthy(
    runtime: EngineKind | ContainerRuntime | None,
    name: str,
    command: Sequence[str],
    max_attempts: int = DEFAULT_HEALTH_ATTEMPTS,
    interval_ms: int = DEFAULT_HEALTH_INTERVAL_MS,
) -> None:
    """Poll *command* in *name* until it exits 0.

    Fixed interval between attempts; no sleep after the last one.

    Raises:
        HealthCheckError: *max_attempts* exhausted.
    """
    engine = _as_runtime(runtime)
    for attempt in range(1, max_attempts + 1):
        result = await engine.exec(name, command)
        if result.exit_code == 0:
            logger.debug("Container %s healthy after %d attempt(s)", name, attempt)
            return
        if attempt < max_attempts:
            await asyncio.sleep(interval_ms / 1000)
    raise HealthCheckError(name, max_attempts)
