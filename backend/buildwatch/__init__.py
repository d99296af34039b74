"""
BuildWatch Package.

Orchestration and command line entry point.
Requires Python 3.11+.
"""

from buildwatch.cli import build_settings, main, parse_args
from buildwatch.orchestrator import Daemon, validate_settings

__all__ = ["Daemon", "build_settings", "main", "parse_args", "validate_settings"]
