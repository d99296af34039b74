"""
BuildWatch Termination Strategy.

Stops a child process either immediately or with a graceful request
followed by a forced kill.
Requires Python 3.11+.
"""

import asyncio
import sys

from utils.errors import FatalError
from utils.logger import LoggerMixin

# Seconds a child gets to exit after SIGTERM before it is killed
GRACEFUL_TIMEOUT_SECONDS = 3.0

KILL_FAILED = "Could not kill child process. Aborting due to danger of infinite forks."
WAIT_FAILED = "Could not wait for child process. Aborting due to danger of infinite forks."


def graceful_termination_possible() -> bool:
    """
    Check whether the platform has a cooperative termination signal.

    On Windows terminate() is TerminateProcess, which is already a hard kill.
    """
    return sys.platform != "win32"


class TerminationStrategy(LoggerMixin):
    """
    Stops a process and waits until it has been reaped.

    Hard stop sends SIGKILL and waits. Graceful stop sends SIGTERM and races
    the exit against a timeout; on timeout it escalates to a hard stop once
    and still awaits the pending wait. Any failure to kill or reap raises
    FatalError.
    """

    def __init__(self, graceful_timeout: float = GRACEFUL_TIMEOUT_SECONDS) -> None:
        """
        Initialize the strategy.

        Args:
            graceful_timeout: Seconds to wait after SIGTERM before killing
        """
        self._graceful_timeout = graceful_timeout

    @property
    def graceful_timeout(self) -> float:
        """Seconds granted to a graceful stop."""
        return self._graceful_timeout

    async def stop(self, process: asyncio.subprocess.Process, graceful: bool) -> int:
        """
        Stop the process and wait until it is reaped.

        Args:
            process: Running child process
            graceful: Try SIGTERM before SIGKILL

        Returns:
            The process exit status

        Raises:
            FatalError: The process could not be killed or reaped
        """
        if process.returncode is not None:
            self.log.debug("process_already_reaped", pid=process.pid, returncode=process.returncode)
            return process.returncode

        if graceful:
            return await self._stop_gracefully(process)
        return await self._stop_hard(process)

    async def _stop_hard(self, process: asyncio.subprocess.Process) -> int:
        self.log.info("hard_stopping_process", pid=process.pid)

        try:
            process.kill()
        except ProcessLookupError:
            # Exited on its own; still needs reaping
            self.log.debug("process_already_exited", pid=process.pid)
        except OSError as e:
            raise FatalError(KILL_FAILED) from e

        try:
            return await process.wait()
        except OSError as e:
            raise FatalError(WAIT_FAILED) from e

    async def _stop_gracefully(self, process: asyncio.subprocess.Process) -> int:
        self.log.info("gracefully_stopping_process", pid=process.pid)

        try:
            process.terminate()
        except ProcessLookupError:
            self.log.debug("process_already_exited", pid=process.pid)
        except OSError as e:
            raise FatalError(KILL_FAILED) from e

        waiter = asyncio.ensure_future(process.wait())
        try:
            return await asyncio.wait_for(asyncio.shield(waiter), self._graceful_timeout)
        except TimeoutError:
            self.log.warning(
                "graceful_stop_timed_out",
                pid=process.pid,
                timeout_seconds=self._graceful_timeout,
            )
            await self._stop_hard(process)
            try:
                return await waiter
            except OSError as e:
                raise FatalError(WAIT_FAILED) from e
        except OSError as e:
            raise FatalError(WAIT_FAILED) from e
        finally:
            if not waiter.done():
                waiter.cancel()
