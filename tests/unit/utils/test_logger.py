"""
Module: test_logger.py
Description: Unit tests for structlog configuration.
"""

import json

import pytest

from sqs_lifecycle.config.settings import settings
from sqs_lifecycle.utils.logger import configure_logging, get_logger


@pytest.fixture
def restore_logging():
    yield
    configure_logging(settings.log_level)


class TestLogger:
    """Test cases for JSON log output."""

    def test_json_output_with_level_filter(self, capsys, restore_logging):
        configure_logging("WARNING")
        logger = get_logger("sqs_lifecycle.test")

        logger.info("Visibility changed", visibility_timeout=40)
        logger.warning("Queue attribute fetch degraded", degraded=True)

        lines = [line for line in capsys.readouterr().out.splitlines() if line]
        assert len(lines) == 1

        entry = json.loads(lines[0])
        assert entry["event"] == "Queue attribute fetch degraded"
        assert entry["level"] == "WARNING"
        assert entry["degraded"] is True
        assert "timestamp" in entry
