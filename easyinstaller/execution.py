"""Async command execution for optional steps."""

import asyncio
import logging
from pathlib import Path
from typing import Tuple

from easyinstaller.errors import StepExecutionError
from easyinstaller.logsinks import LogSink
from easyinstaller.manifests import OptionalStep

DEFAULT_TIMEOUT = 30
STEP_TIMEOUT = 600

_logging = logging.getLogger(__name__)


async def run_command_async(
    command: str,
    timeout: int = DEFAULT_TIMEOUT,
    cwd: Path | None = None,
    debug: bool = False,
) -> Tuple[str, int]:
    """Run a shell command and return its combined output and return code."""
    process = None
    try:
        if debug:
            _logging.debug(f"Running command: {command} (cwd: {cwd})")
        process = await asyncio.create_subprocess_shell(
            command,
            cwd=str(cwd) if cwd is not None else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
            output = stdout.decode(errors="replace").strip()
            return output, process.returncode if process.returncode is not None else 1
        except asyncio.TimeoutError:
            process.kill()
            _ = await process.wait()
            _logging.error(f"Command timed out after {timeout} seconds: {command}")
            return f"Command timed out after {timeout} seconds", 1
    except OSError as e:
        _logging.error(f"Command execution failed: {type(e).__name__}: {e} | Command: {command}")
        return f"Error: {str(e)}", 1


class ShellStepRunner:
    """Runs optional steps through the shell, one at a time.

    Output is copied into the install log at Verbose level. A non-zero exit
    raises :class:`StepExecutionError`, which fails the run.
    """

    def __init__(self, timeout: int = STEP_TIMEOUT, debug: bool = False):
        self.timeout = timeout
        self.debug = debug

    async def run_step(
        self, step: OptionalStep, working_directory: Path, log: LogSink
    ) -> None:
        working_directory.mkdir(parents=True, exist_ok=True)
        log.info("Running optional step %s", step.id)

        output, returncode = await run_command_async(
            step.shell, timeout=self.timeout, cwd=working_directory, debug=self.debug
        )
        for line in output.splitlines():
            log.verbose("%s", line)

        if returncode != 0:
            raise StepExecutionError(step.id, returncode, output)


__all__ = [
    "DEFAULT_TIMEOUT",
    "STEP_TIMEOUT",
    "run_command_async",
    "ShellStepRunner",
]
