"""
BuildWatch Output Multiplexer.

Streams a child's stdout and stderr to the presentation sink.
Requires Python 3.11+.
"""

import asyncio

from utils.logger import LoggerMixin, Sink, StreamKind


class OutputMultiplexer(LoggerMixin):
    """
    Forwards lines from child process streams to a sink.

    Every attach() starts a fresh pair of reader tasks bound only to the
    streams passed in, so output of successive process generations never
    mixes. A reader ends by itself when its stream reaches EOF.
    """

    def __init__(self, sink: Sink) -> None:
        """
        Initialize the multiplexer.

        Args:
            sink: Receives (line, stream kind) pairs
        """
        self._sink = sink
        self._readers: set[asyncio.Task[None]] = set()

    def attach(
        self,
        primary: asyncio.StreamReader | None,
        secondary: asyncio.StreamReader | None,
    ) -> list[asyncio.Task[None]]:
        """
        Start reading both streams concurrently.

        Args:
            primary: Child stdout, forwarded as CHILD_STDOUT
            secondary: Child stderr, forwarded as CHILD_STDERR

        Returns:
            The reader tasks started by this call
        """
        tasks = []
        for stream, kind in ((primary, StreamKind.CHILD_STDOUT), (secondary, StreamKind.CHILD_STDERR)):
            if stream is None:
                continue
            task = asyncio.create_task(self._pump(stream, kind))
            self._readers.add(task)
            task.add_done_callback(self._readers.discard)
            tasks.append(task)
        return tasks

    async def _pump(self, stream: asyncio.StreamReader, kind: StreamKind) -> None:
        """Read lines until EOF."""
        while True:
            try:
                line = await stream.readline()
            except ValueError:
                # Line exceeded the reader limit and was discarded
                self.log.warning("output_line_too_long", stream=kind.value)
                continue

            if not line:
                break
            self._sink(line.decode(errors="replace").rstrip("\r\n"), kind)

    async def join(self) -> None:
        """Wait until every reader started so far has reached EOF."""
        if self._readers:
            await asyncio.gather(*list(self._readers))

    async def close(self) -> None:
        """Cancel all running readers."""
        readers = list(self._readers)
        for task in readers:
            task.cancel()
        await asyncio.gather(*readers, return_exceptions=True)

    @property
    def active_readers(self) -> int:
        """Number of readers that have not reached EOF."""
        return len(self._readers)
