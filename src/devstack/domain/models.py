"""Value models produced by discovery and provisioning.

Both a DiscoveryResult and a ProvisionResult are built once per startup
and never mutated afterwards.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from devstack.domain.types import EngineKind, InfraKind, SkipReason

USER_PROVIDED_HOST = "user-provided"


# --- Discovery ---


class DiscoveredPrimitive(BaseModel):
    """One matching line for one catalog pattern."""

    model_config = {"frozen": True}

    name: str
    file: str
    line: int
    infra_kind: InfraKind | None = None
    reason: str | None = None


class InfrastructureRequirement(BaseModel):
    """Aggregated need for one infra kind across the whole scan."""

    model_config = {"frozen": True}

    kind: InfraKind
    requested_by: list[str] = Field(default_factory=list)
    reasons: list[str] = Field(default_factory=list)


class SkippedPath(BaseModel):
    """A scan branch that ended without contributing a file."""

    model_config = {"frozen": True}

    path: str
    reason: SkipReason
    depth: int


class DiscoveryResult(BaseModel):
    model_config = {"frozen": True}

    entrypoint: str
    analyzed_files: list[str] = Field(default_factory=list)
    primitives: list[DiscoveredPrimitive] = Field(default_factory=list)
    infrastructure: list[InfrastructureRequirement] = Field(default_factory=list)
    duration_ms: float = 0.0
    skipped: list[SkippedPath] = Field(default_factory=list)


def infrastructure_kinds(result: DiscoveryResult) -> list[InfraKind]:
    """Infra kinds required by a discovery result, in first-seen order."""
    return [req.kind for req in result.infrastructure]


# --- Provisioning ---


class Connection(BaseModel):
    """How to reach a provisioned service.

    ``runtime`` is None for a user-supplied connection string.
    """

    model_config = {"frozen": True}

    url: str
    host: str
    port: int
    runtime: EngineKind | None = None

    @property
    def user_provided(self) -> bool:
        return self.runtime is None


class ServiceDescriptor(BaseModel):
    model_config = {"frozen": True}

    kind: InfraKind
    url: str
    host: str
    port: int
    runtime: EngineKind | None = None


class ProvisionResult(BaseModel):
    """Environment variables, reachable services, and per-kind failures."""

    model_config = {"frozen": True}

    env: dict[str, str] = Field(default_factory=dict)
    services: list[ServiceDescriptor] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
