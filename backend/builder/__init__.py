"""
BuildWatch Builder Package.

Debounced invocation of the external build command.
Requires Python 3.11+.
"""

from builder.build_runner import run_build, split_command
from builder.debouncer import BuildDebouncer
from builder.models import BuildDoneSignal, BuildOutcome, ChangeNotification

__all__ = [
    "BuildDebouncer",
    "BuildDoneSignal",
    "BuildOutcome",
    "ChangeNotification",
    "run_build",
    "split_command",
]
