"""Per-kind service table for auto-provisioning.

A closed, read-only mapping from :class:`InfraKind` to a frozen
:class:`ServiceSpec`. Project config may override image, container name,
and port through :func:`resolve_spec`; everything else is fixed.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, Field

from devstack.domain.types import InfraKind


class Credentials(BaseModel):
    """Default development credentials baked into a container."""

    model_config = {"frozen": True}

    user: str = ""
    password: str = ""
    database: str = ""


class ServiceSpec(BaseModel):
    """Everything needed to run and reach one kind of backing service."""

    model_config = {"frozen": True}

    kind: InfraKind
    image: str
    container_name: str
    port: int
    env_var: str
    health_check: tuple[str, ...]
    credentials: Credentials = Field(default_factory=Credentials)


SERVICE_SPECS: MappingProxyType[InfraKind, ServiceSpec] = MappingProxyType(
    {
        InfraKind.POSTGRESQL: ServiceSpec(
            kind=InfraKind.POSTGRESQL,
            image="postgres:18-alpine",
            container_name="devstack-postgres",
            port=5432,
            env_var="DATABASE_URL",
            health_check=("pg_isready", "-U", "postgres"),
            credentials=Credentials(user="postgres", password="postgres", database="devstack"),
        ),
        InfraKind.REDIS: ServiceSpec(
            kind=InfraKind.REDIS,
            image="redis:7-alpine",
            container_name="devstack-redis",
            port=6379,
            env_var="REDIS_URL",
            health_check=("redis-cli", "ping"),
        ),
        InfraKind.MYSQL: ServiceSpec(
            kind=InfraKind.MYSQL,
            image="mysql:8",
            container_name="devstack-mysql",
            port=3306,
            env_var="MYSQL_URL",
            health_check=("mysqladmin", "ping", "-h", "localhost"),
            credentials=Credentials(user="root", password="mysql", database="devstack"),
        ),
    }
)


def resolve_spec(kind: InfraKind, overrides: dict[str, Any] | None = None) -> ServiceSpec:
    """Return the spec for *kind* with non-None *overrides* applied."""
    spec = SERVICE_SPECS[kind]
    if not overrides:
        return spec
    update = {key: value for key, value in overrides.items() if value is not None}
    return spec.model_copy(update=update) if update else spec
