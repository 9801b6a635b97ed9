"""Command runner used for installs, framework bootstrap and test runs.

Wraps :func:`ferzcli.utils.run_command` and turns non-zero exits into
:class:`~ferzcli.errors.ExternalProcessError`.  Commands are never retried
and their output is never inspected here; it is only handed back to the
caller.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from ferzcli.errors import ExternalProcessError
from ferzcli.utils import run_command

logger = logging.getLogger(__name__)


class CommandResult(BaseModel):
    """Outcome of one shell command."""

    command: str = Field(..., description="The command line as executed")
    exit_code: int = Field(default=0)
    stdout: str = Field(default="")
    stderr: str = Field(default="")

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CommandRunner:
    """Runs shell commands in a project directory."""

    def __init__(self, timeout: int = 600, capture: bool = True) -> None:
        self.timeout = timeout
        self.capture = capture

    async def run(
        self,
        command: str,
        cwd: str | Path,
        *,
        check: bool = True,
    ) -> CommandResult:
        """Run *command* in *cwd* and wait for it to finish.

        Args:
            command: Shell command line.
            cwd: Working directory for the child process.
            check: Raise :class:`ExternalProcessError` on a non-zero exit.

        Returns:
            The captured :class:`CommandResult`.
        """
        logger.info("Running %s (cwd=%s)", command, cwd)
        code, stdout, stderr = await run_command(
            command, cwd=cwd, timeout=self.timeout, capture=self.capture
        )
        result = CommandResult(command=command, exit_code=code, stdout=stdout, stderr=stderr)
        if check and not result.ok:
            raise ExternalProcessError(command, code, stderr)
        return result
