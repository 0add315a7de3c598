"""Service provisioners — one per infra kind.

``ensure()`` policy, strictly ordered:

1. The kind's connection variable (``DATABASE_URL``, ``REDIS_URL``) is
   already set: trust it and touch no container engine.
2. No container engine on this machine: return None.
3. Provision with the detected engine. If that engine is the
   platform-native one and anything fails, retry once with Docker.
4. Return a Connection only after the health check passes.

No local state is written. Idempotency is delegated to the engine's
named containers.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, ClassVar

from devstack.domain.models import USER_PROVIDED_HOST, Connection
from devstack.domain.services import SERVICE_SPECS, ServiceSpec
from devstack.domain.types import EngineKind, InfraKind
from devstack.infrastructure.containers import (
    DEFAULT_HEALTH_ATTEMPTS,
    DEFAULT_HEALTH_INTERVAL_MS,
    ContainerError,
    ContainerRuntime,
    PortMapping,
    detect_runtime,
    runtime_for,
    wait_for_healthy,
)
from devstack.services.telemetry import trace_span

logger = logging.getLogger(__name__)

RuntimeProbe = Callable[[], Awaitable[EngineKind]]
RuntimeFactory = Callable[[EngineKind], ContainerRuntime]

FALLBACK_ENGINE = EngineKind.DOCKER


class ServiceProvisioner(ABC):
    """Ensure one backing service is reachable.

    Args:
        spec: Image, container name, port, and credentials. Defaults to the
            built-in table entry for :attr:`kind`.
        runtime: An engine already chosen by the caller. When None, the
            provisioner probes for one itself.
        environ: Where to look for an override connection string.
        probe: Engine detection coroutine, used only when *runtime* is None.
        runtime_factory: Maps an engine kind to its capability object.
        max_attempts: Health-check attempts before giving up.
        interval_ms: Delay between health-check attempts.
    """

    kind: ClassVar[InfraKind]

    def __init__(
        self,
        spec: ServiceSpec | None = None,
        *,
        runtime: EngineKind | None = None,
        environ: Mapping[str, str] | None = None,
        probe: RuntimeProbe | None = None,
        runtime_factory: RuntimeFactory | None = None,
        max_attempts: int = DEFAULT_HEALTH_ATTEMPTS,
        interval_ms: int = DEFAULT_HEALTH_INTERVAL_MS,
    ) -> None:
        self.spec = spec or SERVICE_SPECS[self.kind]
        self._runtime = runtime
        self._environ = os.environ if environ is None else environ
        self._probe = probe or detect_runtime
        self._runtime_factory = runtime_factory or runtime_for
        self._max_attempts = max_attempts
        self._interval_ms = interval_ms
        self.last_error: str | None = None

    async def ensure(self) -> Connection | None:
        override = self._environ.get(self.spec.env_var)
        if override:
            logger.debug("Using %s from environment for %s", self.spec.env_var, self.kind)
            return Connection(
                url=override,
                host=USER_PROVIDED_HOST,
                port=self.spec.port,
                runtime=None,
            )

        runtime = self._runtime if self._runtime is not None else await self._probe()
        if runtime is EngineKind.NONE:
            self.last_error = "no container runtime available"
            return None

        try:
            return await self._provision(runtime)
        except ContainerError as exc:
            self.last_error = str(exc)
            logger.warning("%s via %s failed: %s", self.kind, runtime, exc)
            if runtime is FALLBACK_ENGINE:
                return None

        logger.info("Retrying %s with %s", self.kind, FALLBACK_ENGINE)
        try:
            return await self._provision(FALLBACK_ENGINE)
        except ContainerError as exc:
            self.last_error = str(exc)
            logger.warning("%s via %s failed: %s", self.kind, FALLBACK_ENGINE, exc)
            return None

    async def _provision(self, runtime: EngineKind) -> Connection:
        spec = self.spec
        engine = self._runtime_factory(runtime)
        with trace_span(f"provision.{self.kind}.{runtime}") as span:
            host = await engine.run(
                spec.container_name,
                spec.image,
                env=self.container_env(),
                ports=[PortMapping(host=spec.port, container=spec.port)],
            )
            await wait_for_healthy(
                engine,
                spec.container_name,
                spec.health_check,
                max_attempts=self._max_attempts,
                interval_ms=self._interval_ms,
            )
            if span:
                span.annotate("host", host)
        return Connection(url=self.build_url(host), host=host, port=spec.port, runtime=runtime)

    def container_env(self) -> dict[str, str]:
        """Environment passed to a newly created container."""
        return {}

    @abstractmethod
    def build_url(self, host: str) -> str: ...


class PostgresProvisioner(ServiceProvisioner):
    kind = InfraKind.POSTGRESQL

    def container_env(self) -> dict[str, str]:
        creds = self.spec.credentials
        return {
            "POSTGRES_USER": creds.user,
            "POSTGRES_PASSWORD": creds.password,
            "POSTGRES_DB": creds.database,
        }

    def build_url(self, host: str) -> str:
        creds = self.spec.credentials
        return f"postgres://{creds.user}:{creds.password}@{host}:{self.spec.port}/{creds.database}"


class RedisProvisioner(ServiceProvisioner):
    kind = InfraKind.REDIS

    def build_url(self, host: str) -> str:
        return f"redis://{host}:{self.spec.port}"


class MySQLProvisioner(ServiceProvisioner):
    """Declared so MySQL shows up in discovery; provisioning is not built yet."""

    kind = InfraKind.MYSQL

    async def ensure(self) -> Connection | None:
        raise NotImplementedError("MySQL provisioning not yet implemented")

    def build_url(self, host: str) -> str:
        creds = self.spec.credentials
        return f"mysql://{creds.user}:{creds.password}@{host}:{self.spec.port}/{creds.database}"


PROVISIONERS: dict[InfraKind, type[ServiceProvisioner]] = {
    InfraKind.POSTGRESQL: PostgresProvisioner,
    InfraKind.REDIS: RedisProvisioner,
    InfraKind.MYSQL: MySQLProvisioner,
}


def provisioner_for(kind: InfraKind, **kwargs: Any) -> ServiceProvisioner:
    return PROVISIONERS[kind](**kwargs)
