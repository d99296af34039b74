"""
BuildWatch Configuration Module.

Centralizes all configuration settings using Pydantic Settings.
Requires Python 3.11+.
"""

import re
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Load .env file into os.environ at module import time
# This ensures nested BaseSettings classes can read the values
load_dotenv()


# Milliseconds to wait for the next build to begin after a file change
WORK_DELAY_MS = 900

# Default pattern to match files which trigger a build
FILE_PATTERN = r"(.+\.go|.+\.c)$"


def _split_list(v: str | list[str]) -> list[str]:
    """Parse a comma-separated string or list into a list of patterns."""
    if isinstance(v, str):
        return [p.strip() for p in v.split(",") if p.strip()]
    return v


class WatcherSettings(BaseSettings):
    """File selection settings."""

    model_config = SettingsConfigDict(env_prefix="WATCHER_")

    directory: Path = Field(default=Path("."), description="Directory to watch for changes")
    recursive: bool = Field(default=True, description="Watch all directories recursively")
    pattern: str = Field(default=FILE_PATTERN, description="Regex matched against changed paths")
    # NoDecode keeps env values as raw comma-separated strings
    include: Annotated[list[str], NoDecode] = Field(default_factory=list, description="Base name globs to watch")
    exclude: Annotated[list[str], NoDecode] = Field(default_factory=list, description="Base name globs to ignore")
    exclude_dirs: Annotated[list[str], NoDecode] = Field(
        default_factory=list, description="Directory name globs to ignore"
    )

    @field_validator("include", "exclude", "exclude_dirs", mode="before")
    @classmethod
    def parse_globs(cls, v: str | list[str]) -> list[str]:
        """Parse glob lists from comma-separated string or list."""
        return _split_list(v)

    @field_validator("pattern")
    @classmethod
    def check_pattern(cls, v: str) -> str:
        """Reject patterns that do not compile."""
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid pattern {v!r}: {e}") from e
        return v


class BuildSettings(BaseSettings):
    """Build command settings."""

    model_config = SettingsConfigDict(env_prefix="BUILD_")

    command: str = Field(default="go build", description="Command to rebuild after changes")
    delay_ms: int = Field(default=WORK_DELAY_MS, ge=0, le=60000, description="Quiet period before building")


class RunSettings(BaseSettings):
    """Managed process settings."""

    model_config = SettingsConfigDict(env_prefix="RUN_")

    command: str = Field(default="", description="Command to run and restart after build")
    graceful_kill: bool = Field(
        default=True,
        description="Send SIGTERM first and wait before killing the child process",
    )
    graceful_timeout_seconds: float = Field(default=3.0, gt=0.0)


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO")
    format: str = Field(default="console")  # "console" or "json"
    colors: bool = Field(default=True)
    prefix: bool = Field(default=True, description="Label child output with its stream")

    @field_validator("format")
    @classmethod
    def check_format(cls, v: str) -> str:
        """Only console and json renderers exist."""
        if v not in ("console", "json"):
            raise ValueError("format must be 'console' or 'json'")
        return v


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="BuildWatch")
    app_version: str = Field(default="0.1.0")

    # Sub-settings
    watcher: WatcherSettings = Field(default_factory=WatcherSettings)
    build: BuildSettings = Field(default_factory=BuildSettings)
    run: RunSettings = Field(default_factory=RunSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def build_only(self) -> bool:
        """True when no run command is configured."""
        return not self.run.command.strip()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns singleton instance of Settings.
    """
    return Settings()
