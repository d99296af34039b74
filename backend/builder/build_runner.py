"""
BuildWatch Build Runner.

Invokes the external build command and captures its combined output.
Requires Python 3.11+.
"""

import asyncio
import time
from pathlib import Path

from builder.models import BuildOutcome
from utils.logger import get_logger

logger = get_logger("builder.build_runner")


def split_command(command: str) -> list[str]:
    """
    Split a command string into argv.

    Tokens are separated by whitespace. There is no shell quoting: the
    first token is the executable, the rest are literal arguments.
    """
    return command.split()


async def run_build(command: str, cwd: Path | None = None) -> BuildOutcome:
    """
    Run the build command to completion.

    An empty command is a successful no-op build. A command that cannot be
    executed is a failed build carrying the OS error as its output.

    Args:
        command: Build command string
        cwd: Working directory, defaults to the current directory

    Returns:
        BuildOutcome with the combined stdout/stderr text
    """
    args = split_command(command)
    if not args:
        return BuildOutcome(success=True)

    start = time.perf_counter()
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        logger.debug("build_exec_failed", command=command, error=str(e))
        return BuildOutcome(
            success=False,
            output=f"{args[0]}: {e.strerror or e}",
            duration_seconds=time.perf_counter() - start,
        )

    try:
        stdout, _ = await process.communicate()
    except asyncio.CancelledError:
        # Daemon shutdown; do not leave the build running
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise

    return BuildOutcome(
        success=process.returncode == 0,
        output=stdout.decode(errors="replace"),
        returncode=process.returncode,
        duration_seconds=time.perf_counter() - start,
    )
