"""
BuildWatch Runner Package.

Managed child process lifecycle and output forwarding.
Requires Python 3.11+.
"""

from runner.models import ManagedProcess, SupervisorState
from runner.output import OutputMultiplexer
from runner.process_supervisor import ProcessSupervisor, drain_build_signals
from runner.termination import (
    GRACEFUL_TIMEOUT_SECONDS,
    TerminationStrategy,
    graceful_termination_possible,
)

__all__ = [
    "GRACEFUL_TIMEOUT_SECONDS",
    "ManagedProcess",
    "OutputMultiplexer",
    "ProcessSupervisor",
    "SupervisorState",
    "TerminationStrategy",
    "drain_build_signals",
    "graceful_termination_possible",
]
