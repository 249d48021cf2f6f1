"""Tests for logging configuration."""

import json
import logging

import pytest
import structlog

from soundness_installer.config.logging import (
    configure_logging,
    get_logger,
    sanitize_log_data,
)


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, "_soundness_installer", False):
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(logging.WARNING)
    structlog.reset_defaults()


def installer_handlers():
    return [
        h for h in logging.getLogger().handlers if getattr(h, "_soundness_installer", False)
    ]


def test_configure_logging_sets_level():
    """Test the root level follows the requested level."""
    configure_logging(level="DEBUG")
    assert logging.getLogger().level == logging.DEBUG


def test_unknown_level_falls_back_to_warning():
    """Test an unknown level name is treated as WARNING."""
    configure_logging(level="chatty")
    assert logging.getLogger().level == logging.WARNING


def test_reconfiguring_replaces_handlers():
    """Test repeated configuration does not stack console handlers."""
    configure_logging(level="INFO")
    configure_logging(level="INFO")
    assert len(installer_handlers()) == 1


def test_configure_logging_with_file(tmp_path):
    """Test records are written to the log file as JSON."""
    log_file = tmp_path / "logs" / "installer.log"

    logger = configure_logging(level="INFO", log_file=str(log_file))
    logger.info("Test message", key="value")

    record = json.loads(log_file.read_text().strip().splitlines()[-1])
    assert record["event"] == "Test message"
    assert record["key"] == "value"
    assert record["level"] == "info"


def test_records_below_level_are_dropped(tmp_path):
    """Test debug records are filtered at INFO level."""
    log_file = tmp_path / "installer.log"

    logger = configure_logging(level="INFO", log_file=str(log_file))
    logger.debug("Hidden")
    logger.info("Shown")

    content = log_file.read_text()
    assert "Hidden" not in content
    assert "Shown" in content


def test_get_logger_with_context(tmp_path):
    """Test bound context is carried into records."""
    log_file = tmp_path / "installer.log"
    configure_logging(level="INFO", log_file=str(log_file))

    get_logger("soundness_installer.test", step="remove_keys").info("Step done")

    record = json.loads(log_file.read_text().strip().splitlines()[-1])
    assert record["step"] == "remove_keys"
    assert record["logger"] == "soundness_installer.test"


def test_sanitize_log_data():
    """Test sensitive data sanitization."""
    data = {
        "key_name": "my-key",
        "mnemonic": "word word word",
        "helper_url": "https://example.invalid/soundnessup",
        "nested": {"token": "secret_token", "safe_field": "safe_value"},
    }

    sanitized = sanitize_log_data(data)

    assert sanitized["key_name"] == "my-key"
    assert sanitized["mnemonic"] == "[REDACTED]"
    assert sanitized["helper_url"] == data["helper_url"]
    assert sanitized["nested"]["token"] == "[REDACTED]"
    assert sanitized["nested"]["safe_field"] == "safe_value"
    assert data["mnemonic"] == "word word word"
