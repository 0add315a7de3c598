"""Tests for ServiceResult and ServiceError."""

from __future__ import annotations

import json

import pytest

from devstack.services.result import ServiceError, ServiceResult


class TestServiceResult:
    def test_success_construction(self) -> None:
        result = ServiceResult(ok=True, op="discover", data={"files": ["a.ts"]})
        assert result.ok is True
        assert result.warnings == []
        assert result.error is None
        assert result.meta is None

    def test_error_construction(self) -> None:
        error = ServiceError(code="NO_RUNTIME", message="No container runtime found")
        result = ServiceResult(ok=False, op="provision", error=error)
        assert result.error is not None
        assert result.error.code == "NO_RUNTIME"
        assert result.error.detail == {}

    def test_json_serialization(self) -> None:
        result = ServiceResult(ok=True, op="provision", data={"env": {"REDIS_URL": "redis://x"}})
        parsed = json.loads(result.model_dump_json())
        assert parsed["data"]["env"]["REDIS_URL"] == "redis://x"

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="test")
        with pytest.raises(Exception):
            result.ok = False  # type: ignore[misc]
