"""
Unit tests for structured logging setup.
"""

import logging

import pytest

from shared.logging import configure_logging
from shared.logging.structured_logger import QUIET_LOGGERS, add_app_context


@pytest.fixture(autouse=True)
def restore_logger_levels():
    names = ("",) + QUIET_LOGGERS
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


class TestAppContext:
    """Tests for the app/environment processor."""

    def test_tags_entries(self):
        processor = add_app_context("shop-api", "production")

        event = processor(None, "info", {"event": "user_registered"})

        assert event == {"event": "user_registered", "app": "shop-api", "environment": "production"}

    def test_explicit_values_are_kept(self):
        """Test a value bound by the caller is not overwritten."""
        processor = add_app_context("shop-api", "production")

        event = processor(None, "info", {"event": "x", "environment": "staging"})

        assert event["environment"] == "staging"


class TestConfigureLogging:
    """Tests for logger levels after configuration."""

    def test_driver_loggers_quieted(self):
        """Test driver and access logs stay at WARNING when the app logs at INFO."""
        configure_logging(log_level="INFO", json_logs=True)

        assert logging.getLogger().level == logging.INFO
        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_debug_enables_driver_loggers(self):
        configure_logging(log_level="DEBUG", json_logs=False)

        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.DEBUG

    def test_stricter_level_applies_to_driver_loggers(self):
        """Test an ERROR root level is not loosened to WARNING for quiet loggers."""
        configure_logging(log_level="ERROR")

        assert logging.getLogger("pymongo").level == logging.ERROR
