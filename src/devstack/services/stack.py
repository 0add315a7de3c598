"""StackService — discovery and provisioning wrapped as ServiceResult.

This is the seam the command layer talks to. It resolves the entrypoint,
runs the scanner, hands required kinds to the InfrastructureManager, and
translates partial failures into warnings or structured errors.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING, Any

from devstack.domain.models import DiscoveryResult, ProvisionResult, infrastructure_kinds
from devstack.domain.types import SkipReason
from devstack.infrastructure.containers import detect_runtime
from devstack.services.entrypoint import EntrypointInfo, detect_entrypoint, validate_entrypoint
from devstack.services.manager import InfrastructureManager
from devstack.services.result import ServiceError, ServiceResult
from devstack.services.scanner import SourceScanner
from devstack.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from devstack.config.settings import DevstackSettings

logger = logging.getLogger(__name__)


def build_manager(settings: DevstackSettings) -> InfrastructureManager:
    """Construct the process-wide manager from settings."""
    return InfrastructureManager(
        probe=partial(
            detect_runtime,
            prefer=settings.runtime.prefer,
            timeout=settings.runtime.probe_timeout,
        ),
        spec_for=settings.service_spec,
        max_attempts=settings.health.max_attempts,
        interval_ms=settings.health.interval_ms,
    )


def _scan_warnings(result: DiscoveryResult) -> list[str]:
    warnings: list[str] = []
    for skipped in result.skipped:
        if skipped.reason is SkipReason.DEPTH:
            warnings.append(f"Import depth limit reached; not scanned: {skipped.path}")
        elif skipped.reason is SkipReason.UNREADABLE:
            warnings.append(f"Could not read {skipped.path}")
    return warnings


def _discovery_data(entry: EntrypointInfo, result: DiscoveryResult) -> dict[str, Any]:
    return {
        "entrypoint": result.entrypoint,
        "source": entry.source,
        "files": result.analyzed_files,
        "primitives": [p.model_dump(mode="json") for p in result.primitives],
        "infrastructure": [r.model_dump(mode="json") for r in result.infrastructure],
        "duration_ms": round(result.duration_ms, 2),
    }


def _provision_data(result: ProvisionResult) -> dict[str, Any]:
    return {
        "env": result.env,
        "services": [s.model_dump(mode="json") for s in result.services],
        "errors": result.errors,
    }


class StackService:
    """Discover and provision the backing services an app needs.

    Args:
        settings: Resolved CLI settings.
        manager: The process-wide manager. Created from *settings* when
            omitted; pass one explicitly to share it between calls.
    """

    def __init__(
        self,
        settings: DevstackSettings,
        manager: InfrastructureManager | None = None,
    ) -> None:
        self._settings = settings
        self._manager = manager or build_manager(settings)

    @property
    def manager(self) -> InfrastructureManager:
        return self._manager

    def resolve_entrypoint(self, entry: str | None = None) -> EntrypointInfo:
        return detect_entrypoint(
            self._settings.project_root,
            flag_value=entry,
            configured=self._settings.scan.entrypoint,
        )

    def _scan(self, entry: EntrypointInfo) -> DiscoveryResult:
        scanner = SourceScanner(max_depth=self._settings.scan.max_depth)
        with trace_span("scan") as span:
            result = scanner.scan(entry.path)
            if span:
                span.annotate("files", len(result.analyzed_files))
        return result

    @staticmethod
    def _missing_entrypoint(op: str, entry: EntrypointInfo, message: str) -> ServiceResult:
        return ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(
                code="ENTRYPOINT_NOT_FOUND",
                message=message,
                detail={"path": str(entry.path), "source": entry.source},
            ),
        )

    @traced
    def discover(self, entry: str | None = None) -> ServiceResult:
        """Scan the app's import graph and report constructs and infra needs."""
        info = self.resolve_entrypoint(entry)
        error = validate_entrypoint(info.path)
        if error:
            return self._missing_entrypoint("discover", info, error)

        result = self._scan(info)
        return ServiceResult(
            ok=True,
            op="discover",
            data=_discovery_data(info, result),
            warnings=_scan_warnings(result),
        )

    @traced
    async def provision(self, entry: str | None = None) -> ServiceResult:
        """Discover required infra, then provision it.

        * Nothing required: ok, empty env.
        * Pre-flight failure (no engine, unmet kinds): ``NO_RUNTIME``.
        * Every kind failed: ``PROVISION_FAILED``.
        * Some kinds failed: ok, one warning per error.
        """
        info = self.resolve_entrypoint(entry)
        error = validate_entrypoint(info.path)
        if error:
            return self._missing_entrypoint("provision", info, error)

        discovery = self._scan(info)
        kinds = infrastructure_kinds(discovery)
        logger.debug("Required infrastructure: %s", ", ".join(kinds) or "none")
        result = await self._manager.provision(kinds)

        data = {
            "entrypoint": discovery.entrypoint,
            "required": [str(k) for k in kinds],
            **_provision_data(result),
        }
        warnings = _scan_warnings(discovery)

        if kinds and not result.services:
            no_runtime = any(e.startswith("No container runtime found") for e in result.errors)
            return ServiceResult(
                ok=False,
                op="provision",
                data=data,
                warnings=warnings,
                error=ServiceError(
                    code="NO_RUNTIME" if no_runtime else "PROVISION_FAILED",
                    message="; ".join(result.errors) or "No services could be provisioned",
                    detail={"required": data["required"]},
                ),
            )

        return ServiceResult(
            ok=True,
            op="provision",
            data=data,
            warnings=[*warnings, *result.errors],
        )
