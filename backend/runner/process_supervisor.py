"""
BuildWatch Process Supervisor.

Restarts the run command once per successful build.
Requires Python 3.11+.
"""

import asyncio
from pathlib import Path

from builder.build_runner import split_command
from builder.models import BuildDoneSignal
from runner.models import ManagedProcess, SupervisorState
from runner.output import OutputMultiplexer
from runner.termination import TerminationStrategy
from utils.errors import FatalError
from utils.logger import LoggerMixin, Sink, StreamKind, get_logger

logger = get_logger("supervisor")


class ProcessSupervisor(LoggerMixin):
    """
    Owns the single managed process.

    On every build-done signal the current process (if any) is stopped and
    reaped through the termination strategy before a replacement is
    started, so two managed processes never run at the same time. Only the
    supervisor task touches the current process.
    """

    def __init__(
        self,
        termination: TerminationStrategy,
        output: OutputMultiplexer,
        graceful: bool = True,
        sink: Sink | None = None,
        cwd: Path | None = None,
    ) -> None:
        """
        Initialize the supervisor.

        Args:
            termination: Strategy used to stop the previous process
            output: Multiplexer receiving each new process's streams
            graceful: Request graceful termination before killing
            sink: Presentation sink for status lines
            cwd: Working directory for the run command
        """
        self._termination = termination
        self._output = output
        self._graceful = graceful
        self._sink = sink
        self._cwd = cwd
        self._current: ManagedProcess | None = None
        self._generation = 0

    async def run(self, run_command: str, build_done: asyncio.Queue[BuildDoneSignal]) -> None:
        """
        Restart the run command after every successful build.

        Runs until cancelled.

        Args:
            run_command: Whitespace separated command to run
            build_done: Queue of build-done signals

        Raises:
            FatalError: The command could not be started or stopped
            ValueError: The run command is empty
        """
        argv = split_command(run_command)
        if not argv:
            raise ValueError("run command is empty; use drain_build_signals for build-only mode")

        try:
            while True:
                await build_done.get()
                await self.restart(argv)
        except asyncio.CancelledError:
            await self.shutdown()
            raise

    async def restart(self, argv: list[str]) -> ManagedProcess:
        """Stop the current process, then start a new one from argv."""
        if self._current is not None:
            await self._stop_current()

        self._emit("Restarting the given command.")
        self._current = await self._start(argv)
        self._output.attach(self._current.stdout, self._current.stderr)
        return self._current

    async def shutdown(self) -> None:
        """Stop the current process, if any."""
        if self._current is not None:
            await self._stop_current()

    async def _stop_current(self) -> None:
        current = self._current
        returncode = await self._termination.stop(current.process, graceful=self._graceful)
        self.log.debug(
            "process_reaped",
            pid=current.pid,
            generation=current.generation,
            returncode=returncode,
        )
        self._current = None

    async def _start(self, argv: list[str]) -> ManagedProcess:
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=self._cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (OSError, ValueError) as e:
            raise FatalError(f"Could not start command: {e}") from e

        self._generation += 1
        self.log.info("process_started", pid=process.pid, generation=self._generation)
        return ManagedProcess(process=process, argv=list(argv), generation=self._generation)

    def _emit(self, line: str) -> None:
        if self._sink is not None:
            self._sink(line, StreamKind.STATUS)

    @property
    def current(self) -> ManagedProcess | None:
        """The managed process, None in build-only or before the first build."""
        return self._current

    @property
    def generation(self) -> int:
        """Number of processes started so far."""
        return self._generation

    @property
    def state(self) -> SupervisorState:
        """Current lifecycle state."""
        if self._current is None:
            return SupervisorState.NO_PROCESS
        return SupervisorState.RUNNING


async def drain_build_signals(build_done: asyncio.Queue[BuildDoneSignal]) -> None:
    """Consume build-done signals without managing a process (build-only mode)."""
    while True:
        await build_done.get()
        logger.debug("build_signal_drained")
