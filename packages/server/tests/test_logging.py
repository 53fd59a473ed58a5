"""
structlog configuration tests.
"""

from __future__ import annotations

import json

import pytest
import structlog

from app.core.config import get_settings
from app.core.logging import configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)


class TestConfigureLogging:
    @pytest.mark.parametrize("level", ["debug", "info", "WARNING", "error"])
    def test_accepts_level_names(self, level):
        configure_logging(level, "text")

    def test_json_lines_respect_level(self, capsys):
        configure_logging("warning", "json")
        log = structlog.get_logger()

        log.info("project.picked", project_id="p1")
        log.warning("store.slow", elapsed_ms=900)

        lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
        assert len(lines) == 1
        record = json.loads(lines[0])
        assert record["event"] == "store.slow"
        assert record["level"] == "warning"
        assert record["elapsed_ms"] == 900
        assert "timestamp" in record

    def test_context_vars_are_merged(self, capsys):
        configure_logging("info", "json")
        structlog.contextvars.bind_contextvars(request_id="abc123")
        try:
            structlog.get_logger().info("payment.added")
        finally:
            structlog.contextvars.clear_contextvars()

        record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert record["request_id"] == "abc123"
