"""
Tests for logging configuration module.

Tests cover:
- Log directory and file creation
- Log level configuration via environment variables
- Per-module logger naming
- Logging set up from the TOML configuration at startup
- Manager operations reaching the log file
"""

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

import pytest

from tasktree.logging_config import (
    setup_logging,
    get_logger,
    MAX_BYTES,
    BACKUP_COUNT
)
from tasktree.services.task_manager import TaskManager


@pytest.fixture
def mock_log_dir(tmp_path, monkeypatch):
    """Mock the LOG_DIR and LOG_FILE to use temporary directory."""
    log_dir = tmp_path / ".tasktree" / "logs"
    log_file = log_dir / "tasktree.log"

    monkeypatch.setattr("tasktree.logging_config.LOG_DIR", log_dir)
    monkeypatch.setattr("tasktree.logging_config.LOG_FILE", log_file)

    return log_dir, log_file


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging handlers before and after each test."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.WARNING)

    yield

    for handler in root_logger.handlers:
        if isinstance(handler, RotatingFileHandler):
            handler.close()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.WARNING)


def flush_handlers():
    for handler in logging.getLogger().handlers:
        handler.flush()


class TestLogFileCreation:
    """Test suite for log directory and file creation."""

    def test_log_directory_created_automatically(self, mock_log_dir):
        """Test that log directory is created if it doesn't exist."""
        log_dir, log_file = mock_log_dir
        assert not log_dir.exists()

        setup_logging()

        assert log_dir.is_dir()

    def test_log_messages_written_to_file(self, mock_log_dir):
        """Test that log messages are actually written to the file."""
        log_dir, log_file = mock_log_dir

        setup_logging()
        get_logger("test_module").info("This is a test log message")
        flush_handlers()

        content = log_file.read_text()
        assert "This is a test log message" in content
        assert "test_module" in content
        assert "INFO" in content

    def test_log_format_includes_timestamp(self, mock_log_dir):
        """Test that log lines start with a timestamp."""
        log_dir, log_file = mock_log_dir

        setup_logging()
        get_logger("my_module").warning("Test warning message")
        flush_handlers()

        content = log_file.read_text()
        assert re.search(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} - my_module - WARNING", content)

    def test_setup_twice_keeps_single_handler(self, mock_log_dir):
        """Repeated setup replaces handlers instead of stacking them."""
        setup_logging()
        setup_logging()

        assert len(logging.getLogger().handlers) == 1

    def test_manager_operations_are_logged(self, mock_log_dir):
        """Mutations and rejected operations reach the log file."""
        log_dir, log_file = mock_log_dir
        setup_logging(log_level="DEBUG")

        manager = TaskManager()
        manager.add("Buy milk")
        manager.add_list("Work")
        manager.add_list("Work")
        flush_handlers()

        content = log_file.read_text()
        assert "Added task: id=1, name='Buy milk'" in content
        assert "name already exists: 'Work'" in content


class TestPerModuleLogger:
    """Test suite for per-module logger naming."""

    def test_logger_name_matches_provided_name(self):
        """Test that logger has the correct name."""
        module_name = "tasktree.services.task_manager"
        logger = get_logger(module_name)
        assert isinstance(logger, logging.Logger)
        assert logger.name == module_name


class TestLogLevelConfiguration:
    """Test suite for log level configuration via environment variables."""

    def test_default_log_level_is_info(self, mock_log_dir):
        """Test that default log level is INFO when no env var is set."""
        with patch.dict(os.environ, {}, clear=True):
            setup_logging()

        assert logging.getLogger().level == logging.INFO

    @pytest.mark.parametrize("env_value,expected", [
        ("DEBUG", logging.DEBUG),
        ("WARNING", logging.WARNING),
        ("ERROR", logging.ERROR),
        ("debug", logging.DEBUG),
        ("INVALID", logging.INFO),
    ])
    def test_env_var_sets_level(self, mock_log_dir, env_value, expected):
        """Test that TASKTREE_LOG_LEVEL selects the level, case-insensitively."""
        with patch.dict(os.environ, {"TASKTREE_LOG_LEVEL": env_value}):
            setup_logging()

        assert logging.getLogger().level == expected

    def test_parameter_overrides_env_var(self, mock_log_dir):
        """Test that log_level parameter overrides environment variable."""
        with patch.dict(os.environ, {"TASKTREE_LOG_LEVEL": "INFO"}):
            setup_logging(log_level="DEBUG")

        assert logging.getLogger().level == logging.DEBUG


class TestStartupFromConfig:
    """Test suite for logging set up by TaskManager.from_config."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        monkeypatch.delenv("TASKTREE_LOG_LEVEL", raising=False)
        monkeypatch.delenv("TASKTREE_UPCOMING_DAYS", raising=False)

    def test_from_config_loads_settings(self, mock_log_dir, tmp_path):
        """The manager carries the values read from the TOML file."""
        config_path = tmp_path / "config.toml"
        config_path.write_text("[tasktree]\nupcoming_days = 3\n")

        manager = TaskManager.from_config(config_path)

        assert manager.config.upcoming_days == 3

    def test_from_config_applies_configured_level(self, mock_log_dir, tmp_path):
        """The configured log level reaches the root logger and log file."""
        log_dir, log_file = mock_log_dir
        config_path = tmp_path / "config.toml"
        config_path.write_text('[tasktree]\nlog_level = "debug"\n')

        manager = TaskManager.from_config(config_path)
        manager.add("Buy milk")
        manager.delete(1)
        flush_handlers()

        assert logging.getLogger().level == logging.DEBUG
        content = log_file.read_text()
        assert "Logging initialized: level=DEBUG" in content
        assert "Deleted task: id=1" in content

    def test_rotating_file_handler_configured(self, mock_log_dir, tmp_path):
        """Startup installs one rotating handler with the module limits."""
        TaskManager.from_config(tmp_path / "missing.toml")

        rotating_handlers = [
            h for h in logging.getLogger().handlers
            if isinstance(h, RotatingFileHandler)
        ]
        assert len(rotating_handlers) == 1
        assert rotating_handlers[0].maxBytes == MAX_BYTES
        assert rotating_handlers[0].backupCount == BACKUP_COUNT
