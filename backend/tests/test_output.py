"""
Tests for the Output Multiplexer.

Requires Python 3.11+.
"""

import asyncio

import pytest
from structlog.testing import capture_logs

from runner.output import OutputMultiplexer
from utils.logger import LogSink, StreamKind


def make_stream(data: bytes = b"", eof: bool = True) -> asyncio.StreamReader:
    """Create a stream reader preloaded with data."""
    stream = asyncio.StreamReader()
    if data:
        stream.feed_data(data)
    if eof:
        stream.feed_eof()
    return stream


class TestOutputMultiplexer:
    """Test cases for OutputMultiplexer."""

    @pytest.mark.asyncio
    async def test_lines_tagged_by_stream(self, sink):
        """Stdout lines and stderr lines keep their origin."""
        output = OutputMultiplexer(sink)

        output.attach(make_stream(b"one\ntwo\n"), make_stream(b"oops\n"))
        await output.join()

        assert sink.lines(StreamKind.CHILD_STDOUT) == ["one", "two"]
        assert sink.lines(StreamKind.CHILD_STDERR) == ["oops"]

    @pytest.mark.asyncio
    async def test_trailing_partial_line_forwarded(self, sink):
        """A last line without newline is forwarded at EOF."""
        output = OutputMultiplexer(sink)

        output.attach(make_stream(b"first\nlast"), make_stream())
        await output.join()

        assert sink.lines(StreamKind.CHILD_STDOUT) == ["first", "last"]

    @pytest.mark.asyncio
    async def test_crlf_and_invalid_utf8(self, sink):
        """Line endings are stripped and undecodable bytes replaced."""
        output = OutputMultiplexer(sink)

        output.attach(make_stream(b"win\r\n\xffbad\n"), make_stream())
        await output.join()

        assert sink.lines(StreamKind.CHILD_STDOUT) == ["win", "\ufffdbad"]

    @pytest.mark.asyncio
    async def test_readers_end_independently(self, sink):
        """One stream reaching EOF does not stop the other."""
        output = OutputMultiplexer(sink)
        stdout = make_stream(b"done\n")
        stderr = make_stream(eof=False)

        stdout_task, stderr_task = output.attach(stdout, stderr)
        await stdout_task

        assert output.active_readers == 1
        assert not stderr_task.done()

        stderr.feed_data(b"late\n")
        stderr.feed_eof()
        await output.join()

        assert sink.lines(StreamKind.CHILD_STDERR) == ["late"]
        assert output.active_readers == 0

    @pytest.mark.asyncio
    async def test_generations_do_not_mix(self, sink):
        """Each attach reads only its own streams."""
        output = OutputMultiplexer(sink)
        old_stdout = make_stream(b"old\n", eof=False)
        new_stdout = make_stream(b"new\n", eof=False)

        old_tasks = output.attach(old_stdout, make_stream())
        new_tasks = output.attach(new_stdout, make_stream())
        assert set(old_tasks).isdisjoint(new_tasks)

        old_stdout.feed_eof()
        await asyncio.gather(*old_tasks)
        assert sink.lines(StreamKind.CHILD_STDOUT) == ["old", "new"]

        new_stdout.feed_data(b"newer\n")
        new_stdout.feed_eof()
        await output.join()

        assert sink.lines(StreamKind.CHILD_STDOUT) == ["old", "new", "newer"]

    @pytest.mark.asyncio
    async def test_missing_stream_skipped(self, sink):
        """A None stream starts no reader."""
        output = OutputMultiplexer(sink)

        tasks = output.attach(make_stream(b"only\n"), None)
        await output.join()

        assert len(tasks) == 1
        assert sink.records == [("only", StreamKind.CHILD_STDOUT)]

    @pytest.mark.asyncio
    async def test_close_cancels_readers(self, sink):
        """close() stops readers that never saw EOF."""
        output = OutputMultiplexer(sink)
        tasks = output.attach(make_stream(eof=False), make_stream(eof=False))

        await output.close()

        assert all(task.cancelled() for task in tasks)
        assert output.active_readers == 0


class TestLogSink:
    """Test cases for LogSink."""

    def test_levels_follow_stream_kind(self):
        """Failure-styled kinds log at error, the rest at info."""
        sink = LogSink()

        with capture_logs() as logs:
            sink("hello", StreamKind.CHILD_STDOUT)
            sink("broken", StreamKind.CHILD_STDERR)
            sink("Build ok.", StreamKind.BUILD_OK)
            sink("syntax error", StreamKind.BUILD_FAIL)

        assert [(entry["event"], entry["log_level"]) for entry in logs] == [
            ("hello", "info"),
            ("broken", "error"),
            ("Build ok.", "info"),
            ("syntax error", "error"),
        ]

    def test_stream_prefix(self):
        """Child lines carry their stream label when prefixing is on."""
        with capture_logs() as logs:
            LogSink(prefix=True)("hello", StreamKind.CHILD_STDOUT)
            LogSink(prefix=True)("status", StreamKind.STATUS)
            LogSink(prefix=False)("bare", StreamKind.CHILD_STDERR)

        assert logs[0]["stream"] == "stdout"
        assert "stream" not in logs[1]
        assert "stream" not in logs[2]
