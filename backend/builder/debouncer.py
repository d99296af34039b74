"""
BuildWatch Build Debouncer.

Coalesces bursts of file changes into single builds.
Requires Python 3.11+.
"""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path

from builder.build_runner import run_build
from builder.models import BuildDoneSignal, BuildOutcome, ChangeNotification
from utils.config import WORK_DELAY_MS
from utils.logger import LoggerMixin, Sink, StreamKind

BuildRunner = Callable[[str, Path | None], Awaitable[BuildOutcome]]


class BuildDebouncer(LoggerMixin):
    """
    Accepts change notifications and builds once changes stop rushing in.

    A single quiet-period timer is the serialization point: every incoming
    notification pushes the deadline out by delay_ms, and the build only
    runs when the deadline passes. The timer is armed when the loop starts,
    so the first build happens without any change. Builds run inside the
    loop, so two builds never overlap; notifications arriving during a build
    wait in the queue and re-arm the timer afterwards.
    """

    def __init__(
        self,
        build_command: str,
        build_done: asyncio.Queue[BuildDoneSignal],
        delay_ms: int = WORK_DELAY_MS,
        sink: Sink | None = None,
        runner: BuildRunner = run_build,
        cwd: Path | None = None,
    ) -> None:
        """
        Initialize the debouncer.

        Args:
            build_command: Command to rebuild after changes
            build_done: Queue receiving one signal per successful build
            delay_ms: Quiet period in milliseconds
            sink: Presentation sink for status and build output
            runner: Coroutine running the build command
            cwd: Working directory for the build
        """
        self._build_command = build_command
        self._build_done = build_done
        self._delay = delay_ms / 1000.0
        self._sink = sink
        self._runner = runner
        self._cwd = cwd
        self._changes: asyncio.Queue[ChangeNotification] = asyncio.Queue()
        self._builds_run = 0
        self._builds_succeeded = 0

    def submit(self, notification: ChangeNotification) -> None:
        """Queue a change notification without blocking."""
        self._changes.put_nowait(notification)

    async def run(self) -> None:
        """Debounce loop. Runs until cancelled."""
        loop = asyncio.get_running_loop()
        deadline: float | None = loop.time() + self._delay

        while True:
            if deadline is None:
                await self._changes.get()
                deadline = loop.time() + self._delay
                continue

            try:
                async with asyncio.timeout_at(deadline):
                    notification = await self._changes.get()
            except TimeoutError:
                deadline = None
                await self._build()
                continue

            self.log.debug("change_received", path=str(notification.path))
            deadline = loop.time() + self._delay

    async def _build(self) -> None:
        """Run one build and signal downstream on success."""
        self._emit("Running build command!", StreamKind.STATUS)
        outcome = await self._runner(self._build_command, self._cwd)
        self._builds_run += 1

        self.log.debug(
            "build_finished",
            success=outcome.success,
            returncode=outcome.returncode,
            duration_seconds=round(outcome.duration_seconds, 3),
        )

        if outcome.success:
            self._builds_succeeded += 1
            self._emit("Build ok.", StreamKind.BUILD_OK)
            for line in outcome.lines:
                self._emit(line, StreamKind.BUILD_OK)
            await self._build_done.put(BuildDoneSignal())
        else:
            self._emit("Error while building:", StreamKind.BUILD_FAIL)
            for line in outcome.lines:
                self._emit(line, StreamKind.BUILD_FAIL)

    def _emit(self, line: str, kind: StreamKind) -> None:
        if self._sink is not None:
            self._sink(line, kind)

    @property
    def builds_run(self) -> int:
        """Number of builds run so far."""
        return self._builds_run

    @property
    def builds_succeeded(self) -> int:
        """Number of builds that exited with status zero."""
        return self._builds_succeeded

    @property
    def pending_count(self) -> int:
        """Number of notifications waiting in the queue."""
        return self._changes.qsize()
