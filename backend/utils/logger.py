"""
BuildWatch Structured Logging Module.

Provides consistent, structured logging throughout the application and
the presentation sink used for build and child process output.
Requires Python 3.11+.
"""

import logging
import sys
from collections.abc import Callable
from enum import Enum
from typing import Any

import structlog
from structlog.types import Processor

from utils.config import Settings, get_settings


class StreamKind(str, Enum):
    """Origin of a line handed to the presentation sink."""

    STATUS = "status"
    BUILD_OK = "build-output-ok"
    BUILD_FAIL = "build-output-fail"
    CHILD_STDOUT = "child-stdout"
    CHILD_STDERR = "child-stderr"


# Sink signature: (text line, stream kind)
Sink = Callable[[str, StreamKind], None]


def _app_context(settings: Settings) -> Processor:
    """Build a processor adding application context to all log entries."""

    def add_app_context(
        logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict["app"] = settings.app_name
        event_dict["version"] = settings.app_version
        return event_dict

    return add_app_context


def configure_logging(settings: Settings | None = None) -> None:
    """
    Configure structured logging for the application.

    Call this once at application startup.

    Args:
        settings: Settings to configure from, defaults to get_settings()
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.logging.level.upper())

    # Common processors for all output formats
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="%H:%M:%S"),
    ]

    if settings.logging.format == "json":
        # JSON format for log collectors
        processors: list[Processor] = [
            *shared_processors,
            _app_context(settings),
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # Console format for interactive use
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(
                colors=settings.logging.colors,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure standard library logging to use structlog
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    # Suppress noisy loggers
    logging.getLogger("watchdog").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


# Pre-configured logger for quick imports
logger = get_logger("buildwatch")


class LoggerMixin:
    """
    Mixin class to add logging capability to any class.

    Usage:
        class MyClass(LoggerMixin):
            def my_method(self):
                self.log.info("doing something", key="value")
    """

    @property
    def log(self) -> structlog.stdlib.BoundLogger:
        """Get logger bound to this class name."""
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger


class LogSink:
    """
    Presentation sink writing lines through structlog.

    Success-styled kinds log at info, failure-styled kinds at error, so the
    console renderer colors them accordingly.
    """

    LEVELS: dict[StreamKind, int] = {
        StreamKind.STATUS: logging.INFO,
        StreamKind.BUILD_OK: logging.INFO,
        StreamKind.BUILD_FAIL: logging.ERROR,
        StreamKind.CHILD_STDOUT: logging.INFO,
        StreamKind.CHILD_STDERR: logging.ERROR,
    }

    LABELS: dict[StreamKind, str] = {
        StreamKind.CHILD_STDOUT: "stdout",
        StreamKind.CHILD_STDERR: "stderr",
    }

    def __init__(self, prefix: bool = True, name: str = "output") -> None:
        """
        Initialize the sink.

        Args:
            prefix: Label child process lines with their stream name
            name: Logger name used for emitted lines
        """
        self._prefix = prefix
        self._log = get_logger(name)

    def __call__(self, line: str, kind: StreamKind) -> None:
        fields: dict[str, Any] = {}
        if self._prefix and kind in self.LABELS:
            fields["stream"] = self.LABELS[kind]
        self._log.log(self.LEVELS[kind], line, **fields)
