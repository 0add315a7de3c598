"""ServiceResult and ServiceError — the contract between services and the CLI.

INVARIANT: Every CLI-facing service method returns ServiceResult.
Core components (scanner, provisioners, manager) return domain models;
:mod:`devstack.services.stack` wraps them for the command layer.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Universal return type for CLI-facing operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (``"discover"``, ``"provision"``, ``"run"``).
        data: Operation-specific payload.
        warnings: Non-fatal issues, e.g. truncated scan branches or a
            single service that failed while others came up.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (telemetry spans when ``--verbose``).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None
