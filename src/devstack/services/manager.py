"""Infrastructure manager — provision every required kind concurrently.

INVARIANT: One failing kind never aborts its siblings. Each provisioning
task catches its own failure and records one kind-qualified message.
INVARIANT: A kind in ``services`` never also appears as unmet in ``errors``.

The only short-circuit is the pre-flight check: with no container engine,
any kind lacking an override connection string fails the whole call
before a container is touched.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Iterable, Mapping

from devstack.domain.models import Connection, ProvisionResult, ServiceDescriptor
from devstack.domain.services import SERVICE_SPECS, ServiceSpec
from devstack.domain.types import EngineKind, InfraKind
from devstack.infrastructure.containers import (
    DEFAULT_HEALTH_ATTEMPTS,
    DEFAULT_HEALTH_INTERVAL_MS,
    detect_runtime,
)
from devstack.services.provisioners import RuntimeFactory, RuntimeProbe, provisioner_for
from devstack.services.telemetry import trace_span

logger = logging.getLogger(__name__)

SpecResolver = Callable[[InfraKind], ServiceSpec]


class InfrastructureManager:
    """Provision required services and remember what came up.

    One instance is created per process and handed to whatever needs it.
    Services and errors accumulate across :meth:`provision` calls, so a
    second call re-provisions safely and reports everything known so far.

    Args:
        environ: Source of override connection strings (default ``os.environ``).
        probe: Engine detection coroutine, called at most once per
            :meth:`provision` call.
        spec_for: Resolves the service spec for a kind (config overrides).
        runtime_factory: Maps an engine kind to its capability object.
        max_attempts: Health-check attempts per service.
        interval_ms: Delay between health-check attempts.
    """

    def __init__(
        self,
        *,
        environ: Mapping[str, str] | None = None,
        probe: RuntimeProbe | None = None,
        spec_for: SpecResolver | None = None,
        runtime_factory: RuntimeFactory | None = None,
        max_attempts: int = DEFAULT_HEALTH_ATTEMPTS,
        interval_ms: int = DEFAULT_HEALTH_INTERVAL_MS,
    ) -> None:
        self._environ = os.environ if environ is None else environ
        self._probe = probe or detect_runtime
        self._spec_for = spec_for or SERVICE_SPECS.__getitem__
        self._runtime_factory = runtime_factory
        self._max_attempts = max_attempts
        self._interval_ms = interval_ms
        self._services: dict[InfraKind, ServiceDescriptor] = {}
        # each message is tagged with the kinds it reports as unmet
        self._errors: list[tuple[frozenset[InfraKind], str]] = []

    @property
    def errors(self) -> list[str]:
        return [message for _, message in self._errors]

    @property
    def services(self) -> list[ServiceDescriptor]:
        return list(self._services.values())

    def get_service(self, kind: InfraKind) -> ServiceDescriptor | None:
        return self._services.get(kind)

    def has_service(self, kind: InfraKind) -> bool:
        return kind in self._services

    async def provision(self, requirements: Iterable[InfraKind]) -> ProvisionResult:
        """Ensure every kind in *requirements* is reachable.

        Returns the environment to merge into the application process, the
        services that are reachable, and every error recorded so far.
        """
        kinds = list(dict.fromkeys(InfraKind(k) for k in requirements))
        if not kinds:
            return ProvisionResult()

        with trace_span("runtime.detect") as span:
            runtime = await self._probe()
            if span:
                span.annotate("runtime", str(runtime))

        if runtime is EngineKind.NONE:
            unsatisfied = [k for k in kinds if not self._environ.get(self._spec_for(k).env_var)]
            if unsatisfied:
                names = ", ".join(str(k) for k in unsatisfied)
                self._record_error(
                    unsatisfied,
                    f"No container runtime found (Docker or Apple Container). Cannot provision: {names}",
                )
                return ProvisionResult(errors=self.errors)

        results = await asyncio.gather(*(self._provision_one(kind, runtime) for kind in kinds))

        failed = [kind for kind, connection in results if connection is None]
        for kind in failed:
            self._services.pop(kind, None)

        env: dict[str, str] = {}
        for kind, connection in results:
            if connection is None:
                continue
            env[self._spec_for(kind).env_var] = connection.url
            self._services[kind] = ServiceDescriptor(
                kind=kind,
                url=connection.url,
                host=connection.host,
                port=connection.port,
                runtime=connection.runtime,
            )

        self._clear_resolved_errors()
        return ProvisionResult(env=env, services=self.services, errors=self.errors)

    async def _provision_one(
        self,
        kind: InfraKind,
        runtime: EngineKind,
    ) -> tuple[InfraKind, Connection | None]:
        provisioner = provisioner_for(
            kind,
            spec=self._spec_for(kind),
            runtime=runtime,
            environ=self._environ,
            runtime_factory=self._runtime_factory,
            max_attempts=self._max_attempts,
            interval_ms=self._interval_ms,
        )
        try:
            connection = await provisioner.ensure()
        except NotImplementedError as exc:
            self._record_error([kind], str(exc))
            return kind, None
        except Exception as exc:
            logger.debug("Provisioning %s raised", kind, exc_info=True)
            self._record_error([kind], f"Failed to provision {kind}: {exc}")
            return kind, None

        if connection is None:
            reason = provisioner.last_error or "no container could be started"
            self._record_error([kind], f"Failed to provision {kind}: {reason}")
            return kind, None

        logger.debug("%s ready at %s (%s)", kind, connection.host, connection.runtime or "external")
        return kind, connection

    def _record_error(self, kinds: Iterable[InfraKind], message: str) -> None:
        self._errors.append((frozenset(kinds), message))

    def _clear_resolved_errors(self) -> None:
        """Drop errors whose kinds are all reachable now."""
        up = set(self._services)
        self._errors = [(kinds, msg) for kinds, msg in self._errors if not kinds or not kinds <= up]
