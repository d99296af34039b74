"""
BuildWatch Supervisor Models.

Requires Python 3.11+.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum


class SupervisorState(str, Enum):
    """Lifecycle state of the process supervisor."""

    NO_PROCESS = "no_process"
    RUNNING = "running"


@dataclass
class ManagedProcess:
    """The child process currently under supervision."""

    process: asyncio.subprocess.Process
    argv: list[str] = field(default_factory=list)
    generation: int = 0

    @property
    def pid(self) -> int:
        """OS process id."""
        return self.process.pid

    @property
    def stdout(self) -> asyncio.StreamReader | None:
        """Primary output stream."""
        return self.process.stdout

    @property
    def stderr(self) -> asyncio.StreamReader | None:
        """Secondary output stream."""
        return self.process.stderr

    @property
    def returncode(self) -> int | None:
        """Exit status once reaped, None while running."""
        return self.process.returncode
