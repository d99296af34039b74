"""
BuildWatch Daemon Orchestrator.

Wires the file watcher, build debouncer and process supervisor together
and owns the lifecycle of the watch loop.
Requires Python 3.11+.
"""

import asyncio
from pathlib import Path

from builder.debouncer import BuildDebouncer
from builder.models import BuildDoneSignal, ChangeNotification
from runner.output import OutputMultiplexer
from runner.process_supervisor import ProcessSupervisor, drain_build_signals
from runner.termination import TerminationStrategy, graceful_termination_possible
from utils.config import Settings
from utils.errors import ConfigurationError, FatalError
from utils.logger import LoggerMixin, LogSink, Sink
from watcher.file_watcher import ChangeFilter, FileWatcher

# Seconds between checks that the observer thread is still running
WATCHER_CHECK_INTERVAL = 1.0


def validate_settings(settings: Settings) -> None:
    """
    Reject configurations the daemon cannot honour.

    Raises:
        ConfigurationError: The configuration is unusable
    """
    directory = settings.watcher.directory
    if not str(directory):
        raise ConfigurationError("a directory to watch is required")
    if not directory.is_dir():
        raise ConfigurationError(f"not a directory: {directory}")

    if not settings.build_only and settings.run.graceful_kill and not graceful_termination_possible():
        raise ConfigurationError("Graceful termination is not supported on your platform.")


class Daemon(LoggerMixin):
    """
    Runs the watch, build and restart loops until cancelled.

    File events flow from the watchdog observer thread into the debouncer
    queue; successful builds flow through the build-done queue into the
    supervisor, or into a drain in build-only mode. A FatalError from any
    loop stops the whole daemon.
    """

    def __init__(self, settings: Settings, sink: Sink | None = None) -> None:
        """
        Initialize the daemon.

        Args:
            settings: Validated application settings
            sink: Presentation sink, defaults to a LogSink

        Raises:
            ConfigurationError: The configuration is unusable
        """
        validate_settings(settings)
        self._settings = settings
        self._sink = sink or LogSink(prefix=settings.logging.prefix)

        if not settings.build.command.strip():
            self.log.warning(
                "empty_build_command",
                detail="every change counts as a successful build without running anything",
            )

        self._build_done: asyncio.Queue[BuildDoneSignal] = asyncio.Queue()
        self.debouncer = BuildDebouncer(
            build_command=settings.build.command,
            build_done=self._build_done,
            delay_ms=settings.build.delay_ms,
            sink=self._sink,
        )
        self.output = OutputMultiplexer(self._sink)
        self.supervisor: ProcessSupervisor | None = None
        if not settings.build_only:
            self.supervisor = ProcessSupervisor(
                termination=TerminationStrategy(settings.run.graceful_timeout_seconds),
                output=self.output,
                graceful=settings.run.graceful_kill,
                sink=self._sink,
            )

    async def run(self) -> None:
        """
        Watch, build and restart until cancelled.

        Raises:
            FatalError: A managed process could not be started, killed or
                reaped, or the file watcher died
        """
        loop = asyncio.get_running_loop()

        def notify(notification: ChangeNotification) -> None:
            loop.call_soon_threadsafe(self.debouncer.submit, notification)

        watcher_settings = self._settings.watcher
        watcher = FileWatcher(
            root_path=Path(watcher_settings.directory),
            notify=notify,
            change_filter=ChangeFilter.from_settings(watcher_settings),
            recursive=watcher_settings.recursive,
        )

        watcher.start()
        try:
            async with asyncio.TaskGroup() as tg:
                tg.create_task(self.debouncer.run(), name="debouncer")
                if self.supervisor is not None:
                    tg.create_task(
                        self.supervisor.run(self._settings.run.command, self._build_done),
                        name="supervisor",
                    )
                else:
                    tg.create_task(drain_build_signals(self._build_done), name="drain")
                tg.create_task(self._check_watcher(watcher), name="watcher")
        except ExceptionGroup as group:
            fatal = group.subgroup(FatalError)
            if fatal is not None:
                raise fatal.exceptions[0] from None
            raise
        finally:
            watcher.stop()
            await self.output.close()

    async def _check_watcher(self, watcher: FileWatcher) -> None:
        while True:
            await asyncio.sleep(WATCHER_CHECK_INTERVAL)
            if not watcher.is_alive:
                raise FatalError("File watcher stopped unexpectedly.")
