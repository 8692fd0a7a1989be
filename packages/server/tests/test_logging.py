"""
Tests for structlog configuration.

Tests cover:
- Accepted level names configure without error
- Level filtering drops events below the configured level
- JSON rendering carries the bound service and environment tags
"""

from __future__ import annotations

import json

import pytest
import structlog

from orgkeeper.core.logging import configure_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    configure_logging("warning", "text")


class TestConfigureLogging:
    @pytest.mark.parametrize("level", ["debug", "info", "warning", "error", "INFO"])
    def test_accepts_level_names(self, level):
        configure_logging(level, "json")
        configure_logging(level, "text")

    def test_info_level_emits_json_with_tags(self, capsys):
        configure_logging("info", "json", service="orgkeeper", environment="test")
        structlog.get_logger().info("org.created", organization_id="org-1")

        event = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert event["event"] == "org.created"
        assert event["level"] == "info"
        assert event["organization_id"] == "org-1"
        assert event["service"] == "orgkeeper"
        assert event["environment"] == "test"
        assert "timestamp" in event

    def test_warning_level_drops_info(self, capsys):
        configure_logging("warning", "json")
        log = structlog.get_logger()
        log.info("quiet")
        log.warning("loud")

        lines = capsys.readouterr().out.strip().splitlines()
        assert [json.loads(line)["event"] for line in lines] == ["loud"]

    def test_tags_reset_between_calls(self):
        configure_logging("info", "json", service="orgkeeper")
        configure_logging("info", "json")
        assert "service" not in structlog.contextvars.get_contextvars()
