from __future__ import annotations

import asyncio
from typing import Optional, Protocol

from provisioner.services.errors import ProvisionerError


class SetupCommandError(ProvisionerError):
    def __init__(self, message: str, *, command: str, exit_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code


class CommandRunner(Protocol):
    async def run(self, command: str) -> int:
        """Run a shell command to completion and return its exit status."""
        ...


class SubprocessCommandRunner:
    """Runs commands through the system shell.

    stdout/stderr are inherited, so command output goes straight to the
    provisioner's own streams.
    """

    async def run(self, command: str) -> int:
        try:
            process = await asyncio.create_subprocess_shell(command)
        except OSError as exc:
            raise SetupCommandError(f"Failed to start setup command {command!r}: {exc}", command=command) from exc
        return await process.wait()
