"""
BuildWatch Error Types.

Requires Python 3.11+.
"""


class BuildWatchError(Exception):
    """Base class for all BuildWatch errors."""


class FatalError(BuildWatchError):
    """
    The daemon can no longer guarantee a single managed process.

    Raised when a child cannot be started, killed or reaped. Never retried:
    the daemon logs the message and exits.
    """


class ConfigurationError(BuildWatchError):
    """Configuration rejected at startup."""
