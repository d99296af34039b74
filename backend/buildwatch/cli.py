"""
BuildWatch Command Line Interface.

Watches a directory, rebuilds on changes and restarts the run command
after each successful build.
Requires Python 3.11+.

Usage:
    buildwatch
    buildwatch --command="./myprogram -my-options"
    buildwatch --exclude-dir=.git --exclude=".#*"
    buildwatch --include=Makefile --include="*.tmpl"
"""

import argparse
import asyncio
import sys
from pathlib import Path

from pydantic import ValidationError

from buildwatch.orchestrator import Daemon
from utils.config import BuildSettings, LoggingSettings, RunSettings, Settings, WatcherSettings
from utils.errors import ConfigurationError, FatalError
from utils.logger import configure_logging, get_logger

logger = get_logger("buildwatch")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line flags. Unset flags stay None and fall back to settings."""
    parser = argparse.ArgumentParser(
        prog="buildwatch",
        description="Rebuild on file changes and restart the built program",
    )

    selection = parser.add_argument_group("file selection")
    selection.add_argument("--directory", type=Path, help="Directory to watch for changes")
    selection.add_argument(
        "--recursive",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Watch all directories recursively",
    )
    selection.add_argument("--pattern", help="Regex matched against changed file paths")
    selection.add_argument(
        "--exclude-dir",
        action="append",
        dest="exclude_dirs",
        help="Don't watch directories matching this glob (repeatable)",
    )
    selection.add_argument(
        "--exclude",
        action="append",
        help="Don't watch files whose base name matches this glob (repeatable)",
    )
    selection.add_argument(
        "--include",
        action="append",
        help="Watch files whose base name matches this glob (repeatable)",
    )

    actions = parser.add_argument_group("actions")
    actions.add_argument("--build", help="Command to rebuild after changes")
    actions.add_argument("--command", help="Command to run and restart after a successful build")
    actions.add_argument("--delay-ms", type=int, help="Quiet period before building")
    actions.add_argument(
        "--graceful-kill",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Send SIGTERM and wait before killing the child process",
    )

    misc = parser.add_argument_group("misc")
    misc.add_argument(
        "--color",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Colorize output",
    )
    misc.add_argument(
        "--log-prefix",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Label child output with stdout/stderr",
    )
    misc.add_argument("--log-level", help="Log level (DEBUG, INFO, ...)")
    misc.add_argument("--log-format", choices=["console", "json"], help="Log output format")

    return parser.parse_args(argv)


def _overrides(args: argparse.Namespace, mapping: dict[str, str]) -> dict[str, object]:
    """Collect flags that were given, keyed by settings field name."""
    values = {}
    for flag, field_name in mapping.items():
        value = getattr(args, flag)
        if value is not None:
            values[field_name] = value
    return values


def build_settings(args: argparse.Namespace) -> Settings:
    """
    Build settings from environment and .env, with flags taking precedence.

    Raises:
        pydantic.ValidationError: A value is invalid
    """
    watcher = _overrides(
        args,
        {
            "directory": "directory",
            "recursive": "recursive",
            "pattern": "pattern",
            "include": "include",
            "exclude": "exclude",
            "exclude_dirs": "exclude_dirs",
        },
    )
    build = _overrides(args, {"build": "command", "delay_ms": "delay_ms"})
    run = _overrides(args, {"command": "command", "graceful_kill": "graceful_kill"})
    logging_ = _overrides(
        args,
        {"log_level": "level", "log_format": "format", "color": "colors", "log_prefix": "prefix"},
    )

    return Settings(
        watcher=WatcherSettings(**watcher),
        build=BuildSettings(**build),
        run=RunSettings(**run),
        logging=LoggingSettings(**logging_),
    )


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    try:
        settings = build_settings(args)
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(settings)

    try:
        daemon = Daemon(settings)
        logger.info(
            "watching",
            directory=str(settings.watcher.directory),
            build=settings.build.command,
            command=settings.run.command or None,
        )
        asyncio.run(daemon.run())
    except ConfigurationError as e:
        logger.error("configuration_error", error=str(e))
        sys.exit(1)
    except FatalError as e:
        logger.error("fatal_error", error=str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("stopped_by_user")


if __name__ == "__main__":
    main()
