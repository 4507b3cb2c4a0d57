"""Async subprocess utilities.

Provides non-blocking subprocess execution for use in async contexts.

This module offers two functions:
    - run_command: Execute a command and collect its output once it exits
    - stream_command: Execute a command, feed it stdin and forward each
      output line to a callback as it arrives

Example:
    >>> from todo_goblin.utils.async_subprocess import run_command
    >>> stdout, stderr, code = await run_command("git", "status", cwd="/repo", check=False)
    >>> if code == 0:
    ...     print(stdout)
"""

import asyncio
import subprocess
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

OutputCallback = Callable[[str, str], None]


async def run_command(
    *args: str,
    cwd: Path | str | None = None,
    check: bool = True,
    timeout: float | None = None,
    capture_output: bool = True,
) -> tuple[str, str, int]:
    """Run a command asynchronously without shell interpolation.

    Args:
        *args: Command and arguments as separate strings
        cwd: Working directory for command execution
        check: If True, raise CalledProcessError on a non-zero exit code
        timeout: Maximum seconds to wait; the process is killed if exceeded
        capture_output: If True, capture stdout and stderr as strings

    Returns:
        Tuple of (stdout, stderr, return_code)

    Raises:
        subprocess.CalledProcessError: If check=True and command returns non-zero
        TimeoutError: If timeout is exceeded. The process is killed first.
        FileNotFoundError: If the command executable is not found
    """
    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE if capture_output else None,
        stderr=asyncio.subprocess.PIPE if capture_output else None,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(),
            timeout=timeout,
        )
    except TimeoutError:
        process.kill()
        await process.wait()
        raise

    stdout = (stdout_bytes or b"").decode("utf-8", errors="replace")
    stderr = (stderr_bytes or b"").decode("utf-8", errors="replace")

    if check and process.returncode != 0:
        raise subprocess.CalledProcessError(
            process.returncode,
            args,
            stdout,
            stderr,
        )

    return stdout, stderr, process.returncode or 0


@dataclass
class StreamedRun:
    """Collected result of :func:`stream_command`."""

    return_code: int | None
    timed_out: bool = False
    stdout_lines: list[str] = field(default_factory=list)
    stderr_lines: list[str] = field(default_factory=list)


async def _pump(
    stream: asyncio.StreamReader,
    name: str,
    sink: list[str],
    on_line: OutputCallback | None,
) -> None:
    while True:
        raw = await stream.readline()
        if not raw:
            break
        line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
        sink.append(line)
        if on_line is not None:
            on_line(name, line)


async def stream_command(
    *args: str,
    cwd: Path | str | None = None,
    input_text: str | None = None,
    timeout: float | None = None,
    on_line: OutputCallback | None = None,
) -> StreamedRun:
    """Run a command, forwarding output lines while it runs.

    Both output streams are drained concurrently so neither can fill its pipe
    and stall the child. Each line is passed to ``on_line(stream, line)``
    where ``stream`` is ``"stdout"`` or ``"stderr"``.

    When ``timeout`` elapses the process is killed and the lines read so far
    are returned with ``timed_out`` set.

    Raises:
        FileNotFoundError: If the command executable is not found
    """
    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=cwd,
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    result = StreamedRun(return_code=None)

    async def feed_and_drain() -> None:
        assert process.stdin is not None
        assert process.stdout is not None
        assert process.stderr is not None
        if input_text is not None:
            process.stdin.write(input_text.encode("utf-8"))
        try:
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError):
            # Child exited without reading its input; its output still counts.
            pass
        process.stdin.close()
        await asyncio.gather(
            _pump(process.stdout, "stdout", result.stdout_lines, on_line),
            _pump(process.stderr, "stderr", result.stderr_lines, on_line),
        )
        await process.wait()

    try:
        await asyncio.wait_for(feed_and_drain(), timeout=timeout)
    except TimeoutError:
        process.kill()
        await process.wait()
        result.timed_out = True

    result.return_code = process.returncode
    return result
