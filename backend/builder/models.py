"""
BuildWatch Builder Models.

Events passed between the watcher, the debouncer and the supervisor.
Requires Python 3.11+.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ChangeNotification:
    """Some watched file changed. The path is informational only."""

    path: Path | None = None


@dataclass(frozen=True)
class BuildOutcome:
    """Result of one build command invocation."""

    success: bool
    output: str = ""
    returncode: int | None = None
    duration_seconds: float = 0.0

    @property
    def lines(self) -> list[str]:
        """Captured output split into lines."""
        return self.output.splitlines()


@dataclass(frozen=True)
class BuildDoneSignal:
    """A build finished with zero exit status. Carries no payload."""
