"""The external AI delegate, driven as a subprocess.

The delegate is any command that reads an instruction prompt on stdin and
edits files in its working directory, such as ``claude --print``. Its argv is
configurable; the first element is probed with ``--version`` before use.
"""

from pathlib import Path

import structlog

from todo_goblin.providers.base import AgentRunner
from todo_goblin.utils.async_subprocess import OutputCallback, StreamedRun, run_command, stream_command

log = structlog.get_logger(__name__)

VERSION_PROBE_TIMEOUT = 30.0


class AgentCLI(AgentRunner):
    """Runs a delegate command line such as ``claude --print``."""

    def __init__(self, command: list[str]) -> None:
        if not command:
            raise ValueError("Agent command must not be empty")
        self.command = list(command)

    async def version_probe(self) -> bool:
        try:
            _, _, code = await run_command(
                self.command[0], "--version", check=False, timeout=VERSION_PROBE_TIMEOUT
            )
        except (OSError, TimeoutError) as e:
            log.warning("agent_probe_failed", command=self.command[0], error=str(e))
            return False
        return code == 0

    async def run(
        self,
        working_dir: Path,
        prompt: str,
        timeout: float | None = None,
        on_line: OutputCallback | None = None,
    ) -> StreamedRun:
        log.info("agent_started", command=self.command[0], cwd=str(working_dir), timeout=timeout)
        return await stream_command(
            *self.command,
            cwd=working_dir,
            input_text=prompt,
            timeout=timeout,
            on_line=on_line,
        )
