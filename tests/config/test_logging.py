"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
import structlog

from devstack.config.logging import configure_logging


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    app = logging.getLogger("devstack")
    app_level = app.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    app.setLevel(app_level)


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("devstack").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_default_is_warning(self) -> None:
        configure_logging()
        assert logging.getLogger("devstack").level == logging.WARNING

    def test_quiet_only_errors(self) -> None:
        configure_logging(quiet=True)
        assert logging.getLogger("devstack").level == logging.ERROR

    def test_verbose_beats_quiet(self) -> None:
        configure_logging(verbose=True, quiet=True)
        assert logging.getLogger("devstack").level == logging.DEBUG

    def test_json_mode_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        structlog.get_logger("devstack.test").warning("json test", kind="redis")
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "json test"
        assert parsed["kind"] == "redis"
        assert parsed["level"] == "warning"
        assert parsed["logger"] == "devstack.test"
        assert "timestamp" in parsed

    def test_stdlib_records_are_structured(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("devstack.services.scanner").debug("Skipped %s", "./gone")
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "Skipped ./gone"
        assert parsed["level"] == "debug"

    def test_stdout_stays_clean(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True)
        logging.getLogger("devstack.x").warning("to stderr")
        assert capfd.readouterr().out == ""

    def test_idempotent_calls(self) -> None:
        configure_logging(verbose=True)
        configure_logging(verbose=True, log_json=True)
        assert len(logging.getLogger().handlers) == 1
