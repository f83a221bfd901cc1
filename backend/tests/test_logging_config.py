"""
Tests for logging configuration
"""
import json
import logging

import pytest

from bricks_builder.core.logging_config import (ContextualFormatter,
                                                LoggingConfig,
                                                SensitiveDataFilter)


def _record(msg, args=None, **extra):
    record = logging.LogRecord("bricks_builder.test", logging.INFO, __file__, 10, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestSensitiveDataFilter:

    @pytest.mark.parametrize("message,secret", [
        ("password=hunter2", "hunter2"),
        ('{"token": "abc123"}', "abc123"),
        ("api_key: k-999", "k-999"),
        ("Authorization: Bearer eyJhbGciOi", "eyJhbGciOi"),
        ("using key sk-ant-api03-XYZ_123", "api03-XYZ_123"),
    ])
    def test_masks(self, message, secret):
        record = _record(message)
        SensitiveDataFilter().filter(record)
        assert secret not in record.getMessage()

    def test_masks_args(self):
        record = _record("Calling with %s", ("token=abc123",))
        SensitiveDataFilter().filter(record)
        assert "abc123" not in record.getMessage()

    def test_disabled(self):
        record = _record("password=hunter2")
        SensitiveDataFilter(enabled=False).filter(record)
        assert record.getMessage() == "password=hunter2"


class TestContextualFormatter:

    def test_json_with_extra_and_context(self):
        LoggingConfig.set_context(session_id="session_abc")
        try:
            output = ContextualFormatter().format(_record("Execution completed", agent_id="agent_1", confidence=0.8))
        finally:
            LoggingConfig.clear_context()

        payload = json.loads(output)
        assert payload["message"] == "Execution completed"
        assert payload["level"] == "INFO"
        assert payload["session_id"] == "session_abc"
        assert payload["agent_id"] == "agent_1"
        assert payload["confidence"] == 0.8

    def test_non_serializable_extra(self):
        payload = json.loads(ContextualFormatter().format(_record("x", thing=object())))
        assert payload["thing"].startswith("<object object")


class TestLoggingConfig:

    def test_get_logger(self):
        logger = LoggingConfig.get_logger("bricks_builder.tests")
        assert logger.name == "bricks_builder.tests"

    def test_metrics_count_levels(self):
        LoggingConfig.reset_metrics()
        logger = LoggingConfig.get_logger("bricks_builder.tests")
        logger.warning("first")
        logger.error("second")

        metrics = LoggingConfig.get_metrics()
        assert metrics["WARNING"] == 1
        assert metrics["ERROR"] == 1

    def test_set_module_level(self):
        LoggingConfig.set_module_level("bricks_builder.tests.verbose", "DEBUG")
        assert logging.getLogger("bricks_builder.tests.verbose").level == logging.DEBUG
