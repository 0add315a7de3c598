"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, devstack.toml only contains
overrides. An empty file (or no file at all) is a valid configuration.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel

# --- devstack.toml sections ---


class ScanConfig(BaseModel):
    """[scan] section."""

    model_config = {"frozen": True}

    max_depth: int = 10
    entrypoint: str | None = None


class HealthConfig(BaseModel):
    """[health] section."""

    model_config = {"frozen": True}

    max_attempts: int = 30
    interval_ms: int = 1000


class RuntimeConfig(BaseModel):
    """[runtime] section."""

    model_config = {"frozen": True}

    prefer: Literal["auto", "docker", "apple"] = "auto"
    probe_timeout: float = 10.0


class ServiceOverride(BaseModel):
    """[services.<kind>] table. Unset fields keep the built-in spec."""

    model_config = {"frozen": True}

    image: str | None = None
    container_name: str | None = None
    port: int | None = None

    def as_update(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
