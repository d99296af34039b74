"""
Tests for Configuration.

Requires Python 3.11+.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from utils.config import (
    FILE_PATTERN,
    BuildSettings,
    LoggingSettings,
    RunSettings,
    Settings,
    WatcherSettings,
)


class TestDefaults:
    """Test cases for default settings."""

    def test_defaults(self, monkeypatch):
        """Defaults match the daemon's documented behaviour."""
        for name in ("BUILD_COMMAND", "BUILD_DELAY_MS", "RUN_COMMAND", "RUN_GRACEFUL_KILL", "WATCHER_DIRECTORY"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.watcher.directory == Path(".")
        assert settings.watcher.recursive is True
        assert settings.watcher.pattern == FILE_PATTERN
        assert settings.build.command == "go build"
        assert settings.build.delay_ms == 900
        assert settings.run.command == ""
        assert settings.run.graceful_kill is True
        assert settings.run.graceful_timeout_seconds == 3.0
        assert settings.build_only is True

    def test_build_only_follows_run_command(self):
        """Only a blank run command means build-only mode."""
        assert Settings(run=RunSettings(command="  ")).build_only is True
        assert Settings(run=RunSettings(command="./server")).build_only is False


class TestEnvironment:
    """Test cases for environment variables."""

    def test_prefixed_variables(self, monkeypatch):
        """Each sub-settings group reads its own prefix."""
        monkeypatch.setenv("BUILD_COMMAND", "make all")
        monkeypatch.setenv("BUILD_DELAY_MS", "250")
        monkeypatch.setenv("RUN_COMMAND", "./server -port 8080")
        monkeypatch.setenv("RUN_GRACEFUL_KILL", "false")
        monkeypatch.setenv("LOG_FORMAT", "json")

        settings = Settings()

        assert settings.build.command == "make all"
        assert settings.build.delay_ms == 250
        assert settings.run.command == "./server -port 8080"
        assert settings.run.graceful_kill is False
        assert settings.logging.format == "json"

    def test_comma_separated_globs(self, monkeypatch):
        """Glob lists accept comma-separated environment values."""
        monkeypatch.setenv("WATCHER_EXCLUDE_DIRS", ".git, node_modules")
        monkeypatch.setenv("WATCHER_INCLUDE", "Makefile,*.tmpl")

        settings = WatcherSettings()

        assert settings.exclude_dirs == [".git", "node_modules"]
        assert settings.include == ["Makefile", "*.tmpl"]


class TestValidation:
    """Test cases for rejected values."""

    def test_bad_pattern(self):
        """Patterns must compile."""
        with pytest.raises(ValidationError, match="invalid pattern"):
            WatcherSettings(pattern="(unclosed")

    def test_negative_delay(self):
        """The quiet period cannot be negative."""
        with pytest.raises(ValidationError):
            BuildSettings(delay_ms=-1)

    def test_zero_graceful_timeout(self):
        """The graceful timeout must be positive."""
        with pytest.raises(ValidationError):
            RunSettings(graceful_timeout_seconds=0)

    def test_unknown_log_format(self):
        """Only console and json output exist."""
        with pytest.raises(ValidationError):
            LoggingSettings(format="xml")
