"""Tests for error log file handler."""

import logging
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from clipvault.observability.error_log_file import (
    setup_error_log_file,
    teardown_error_log_file,
)


@pytest.fixture
def temp_log_dir():
    """Create a temporary directory for log files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_config(temp_log_dir):
    """Create a mock config with error log settings."""
    config = MagicMock()
    config.error_log_file_enabled = True
    config.error_log_file_path = str(temp_log_dir / "logs" / "errors.log")
    config.error_log_level = "WARNING"
    config.error_log_max_bytes = 1024 * 1024  # 1 MB
    config.error_log_backup_count = 3
    return config


@pytest.fixture(autouse=True)
def cleanup_handlers():
    """Remove the handler after each test to avoid interference."""
    yield
    teardown_error_log_file()


class TestSetupErrorLogFile:
    """Tests for setup_error_log_file function."""

    def test_creates_log_directory(self, mock_config, temp_log_dir):
        handler = setup_error_log_file(mock_config)

        assert handler is not None
        assert (temp_log_dir / "logs").is_dir()
        assert handler in logging.getLogger().handlers

    def test_returns_none_when_disabled(self, mock_config):
        mock_config.error_log_file_enabled = False

        assert setup_error_log_file(mock_config) is None

    def test_sets_configured_level(self, mock_config):
        mock_config.error_log_level = "ERROR"

        handler = setup_error_log_file(mock_config)

        assert handler is not None
        assert handler.level == logging.ERROR

    def test_repeated_setup_replaces_handler(self, mock_config):
        first = setup_error_log_file(mock_config)
        second = setup_error_log_file(mock_config)

        handlers = logging.getLogger().handlers
        assert second in handlers
        assert first not in handlers

    def test_teardown_detaches_handler(self, mock_config):
        handler = setup_error_log_file(mock_config)

        teardown_error_log_file()

        assert handler not in logging.getLogger().handlers


class TestErrorLogFileWriting:
    """Tests that the right records reach the file."""

    def test_writes_warnings_and_errors_only(self, mock_config, temp_log_dir):
        handler = setup_error_log_file(mock_config)
        test_logger = logging.getLogger("clipvault.test_error_log")
        test_logger.setLevel(logging.DEBUG)

        test_logger.info("routine upload")
        test_logger.warning("cleanup failed for /m/x.mp4")
        test_logger.error("concat failed")
        handler.flush()

        content = (temp_log_dir / "logs" / "errors.log").read_text()
        assert "routine upload" not in content
        assert "cleanup failed for /m/x.mp4" in content
        assert "concat failed" in content
        assert "clipvault.test_error_log" in content
