"""
BuildWatch Utilities Package.

Common utilities shared across all backend modules.
Requires Python 3.11+.
"""

from utils.config import Settings, get_settings
from utils.errors import BuildWatchError, ConfigurationError, FatalError
from utils.logger import (
    LoggerMixin,
    LogSink,
    Sink,
    StreamKind,
    configure_logging,
    get_logger,
    logger,
)

__all__ = [
    "Settings",
    "get_settings",
    "BuildWatchError",
    "ConfigurationError",
    "FatalError",
    "configure_logging",
    "get_logger",
    "logger",
    "LoggerMixin",
    "LogSink",
    "Sink",
    "StreamKind",
]
