"""Tests for discovery and provisioning value models."""

from __future__ import annotations

import pytest

from devstack.domain.models import (
    Connection,
    DiscoveryResult,
    InfrastructureRequirement,
    ProvisionResult,
    infrastructure_kinds,
)
from devstack.domain.types import EngineKind, InfraKind


class TestDiscoveryResult:
    def test_defaults(self) -> None:
        result = DiscoveryResult(entrypoint="src/index.ts")
        assert result.analyzed_files == []
        assert result.infrastructure == []
        assert result.skipped == []

    def test_frozen(self) -> None:
        result = DiscoveryResult(entrypoint="src/index.ts")
        with pytest.raises(Exception):
            result.entrypoint = "other"  # type: ignore[misc]

    def test_infrastructure_kinds_preserves_order(self) -> None:
        result = DiscoveryResult(
            entrypoint="x",
            infrastructure=[
                InfrastructureRequirement(kind=InfraKind.REDIS, requested_by=["redis"]),
                InfrastructureRequirement(kind=InfraKind.POSTGRESQL, requested_by=["cron"]),
            ],
        )
        assert infrastructure_kinds(result) == [InfraKind.REDIS, InfraKind.POSTGRESQL]


class TestConnection:
    def test_user_provided(self) -> None:
        conn = Connection(url="redis://r:6379", host="user-provided", port=6379)
        assert conn.user_provided

    def test_provisioned(self) -> None:
        conn = Connection(url="redis://localhost:6379", host="localhost", port=6379, runtime=EngineKind.DOCKER)
        assert not conn.user_provided


class TestProvisionResult:
    def test_empty(self) -> None:
        result = ProvisionResult()
        assert result.env == {}
        assert result.services == []
        assert result.errors == []
