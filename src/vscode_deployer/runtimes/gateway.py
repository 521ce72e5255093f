"""Container engine gateway.

The provisioner talks to docker/podman only through EngineGateway, so tests
can substitute a fake and no engine is required. CliEngineGateway executes the
engine CLI with an argument vector; nothing passes through a shell.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from vscode_deployer.metrics import DEPLOYER_ENGINE_ERRORS

logger = logging.getLogger(__name__)

COMMAND_NOT_FOUND = 127
COMMAND_NOT_EXECUTABLE = 126


class CommandResult(BaseModel):
    """Completed engine CLI invocation."""

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""


class EngineCommandError(Exception):
    """Raised when an engine CLI invocation exits non-zero or cannot start."""

    def __init__(self, result: CommandResult) -> None:
        self.result = result
        message = result.stderr.strip() or result.stdout.strip()
        if not message:
            message = f"exit code {result.returncode}"
        super().__init__(message)


@runtime_checkable
class EngineGateway(Protocol):
    """Narrow interface to a container engine."""

    runtime: str

    async def invoke(self, args: Sequence[str]) -> CommandResult: ...
    async def query_status(self, instance_name: str) -> str: ...
    async def is_installed(self) -> bool: ...
    async def is_responsive(self) -> bool: ...


class CliEngineGateway:
    """EngineGateway backed by the engine's command line client."""

    def __init__(self, runtime: str, binary: str | None = None) -> None:
        self.runtime = runtime
        self._binary = binary or runtime

    async def invoke(self, args: Sequence[str]) -> CommandResult:
        """Run ``<binary> *args`` and return its output.

        Raises:
            EngineCommandError: Non-zero exit, or the binary is missing or
                cannot be executed.
        """
        argv = [self._binary, *args]
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise EngineCommandError(
                CommandResult(
                    args=argv,
                    returncode=COMMAND_NOT_FOUND,
                    stderr=f"{self._binary}: command not found",
                )
            ) from e
        except OSError as e:
            # Present but not runnable (permissions, bad interpreter, ...)
            raise EngineCommandError(
                CommandResult(
                    args=argv,
                    returncode=COMMAND_NOT_EXECUTABLE,
                    stderr=f"{self._binary}: {e.strerror or e}",
                )
            ) from e

        stdout, stderr = await proc.communicate()
        result = CommandResult(
            args=argv,
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
        )
        if result.returncode != 0:
            operation = args[0] if args else ""
            DEPLOYER_ENGINE_ERRORS.labels(runtime=self.runtime, operation=operation).inc()
            raise EngineCommandError(result)
        return result

    async def query_status(self, instance_name: str) -> str:
        """Return the engine's status string for a container, empty if absent."""
        result = await self.invoke(
            ["ps", "--filter", f"name={instance_name}", "--format", "{{.Status}}"]
        )
        return result.stdout.strip()

    async def is_installed(self) -> bool:
        try:
            await self.invoke(["--version"])
        except EngineCommandError:
            return False
        return True

    async def is_responsive(self) -> bool:
        try:
            await self.invoke(["ps"])
        except EngineCommandError as e:
            logger.debug("%s ps failed: %s", self._binary, e)
            return False
        return True
