"""
BuildWatch Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

import asyncio
import sys
import textwrap
from collections.abc import Awaitable, Callable, Generator
from pathlib import Path

import pytest
import structlog

from utils.logger import StreamKind


class RecordingSink:
    """Presentation sink that keeps every line it receives."""

    def __init__(self) -> None:
        self.records: list[tuple[str, StreamKind]] = []

    def __call__(self, line: str, kind: StreamKind) -> None:
        self.records.append((line, kind))

    def lines(self, kind: StreamKind) -> list[str]:
        """Lines received with the given kind, in order."""
        return [line for line, k in self.records if k == kind]


class FakeProcess:
    """
    Stand-in for asyncio.subprocess.Process with controllable exit.

    returncode is only set once wait() has returned, like a reaped child.
    """

    def __init__(
        self,
        pid: int = 4242,
        exits_on_terminate: bool = True,
        terminate_error: BaseException | None = None,
        kill_error: BaseException | None = None,
        wait_error: BaseException | None = None,
    ) -> None:
        self.pid = pid
        self.returncode: int | None = None
        self.exits_on_terminate = exits_on_terminate
        self.terminate_error = terminate_error
        self.kill_error = kill_error
        self.wait_error = wait_error
        self.terminate_calls = 0
        self.kill_calls = 0
        self.wait_calls = 0
        self._exit_code: int | None = None
        self._exited = asyncio.Event()

    def exit(self, code: int) -> None:
        """Make the process exit on its own."""
        if self._exit_code is None:
            self._exit_code = code
            self._exited.set()

    def terminate(self) -> None:
        self.terminate_calls += 1
        if self.terminate_error is not None:
            raise self.terminate_error
        if self.exits_on_terminate:
            self.exit(-15)

    def kill(self) -> None:
        self.kill_calls += 1
        if self.kill_error is not None:
            raise self.kill_error
        self.exit(-9)

    async def wait(self) -> int:
        self.wait_calls += 1
        await self._exited.wait()
        if self.wait_error is not None:
            raise self.wait_error
        self.returncode = self._exit_code
        return self.returncode


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo any logging configuration a test installed."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def sink() -> RecordingSink:
    """A recording presentation sink."""
    return RecordingSink()


@pytest.fixture
def python_command(tmp_path: Path) -> Callable[[str], str]:
    """
    Write a Python script and return a command string running it.

    The command is split on whitespace, so the script lives in a file
    instead of being passed with -c.
    """
    counter = {"n": 0}

    def make(source: str) -> str:
        counter["n"] += 1
        script = tmp_path / f"script_{counter['n']}.py"
        script.write_text(textwrap.dedent(source))
        return f"{sys.executable} {script}"

    return make


@pytest.fixture
def eventually() -> Callable[..., Awaitable[None]]:
    """Poll a predicate until it holds or the timeout expires."""

    async def wait(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.01) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(interval)

    return wait


@pytest.fixture
def fake_process() -> type[FakeProcess]:
    """Factory for fake child processes."""
    return FakeProcess
