"""Run helper commands (lsof, netstat, kill, taskkill...) under a deadline."""

from __future__ import annotations

import asyncio
import logging
import subprocess
import sys
from dataclasses import dataclass
from typing import Optional, Sequence

from ..errors import CommandExecutionError

logger = logging.getLogger(__name__)

DEFAULT_COMMAND_TIMEOUT_SECONDS = 30.0
HELPER_SHUTDOWN_GRACE_SECONDS = 5.0
COMMAND_NOT_FOUND_EXIT_CODE = 127


@dataclass(frozen=True)
class CommandResult:
    """Captured output of a finished helper command."""

    stdout: str
    stderr: str
    exit_code: int


def format_command(command: str, args: Sequence[str]) -> str:
    return " ".join([command, *args])


class CommandRunner:
    """
    Spawn helper commands asynchronously and collect their output.

    Every invocation carries its own deadline. When it expires the helper is
    asked to terminate, and is killed if it is still alive after
    ``shutdown_grace_seconds``.
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_COMMAND_TIMEOUT_SECONDS,
        *,
        shutdown_grace_seconds: float = HELPER_SHUTDOWN_GRACE_SECONDS,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.shutdown_grace_seconds = shutdown_grace_seconds

    async def run(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        timeout_seconds: Optional[float] = None,
    ) -> CommandResult:
        """
        Execute ``command`` with ``args`` and return its output.

        Raises:
            CommandExecutionError: On a non-zero exit, a missing executable or
                an expired deadline
        """
        rendered = format_command(command, args)
        deadline = self.timeout_seconds if timeout_seconds is None else timeout_seconds

        try:
            proc = await asyncio.create_subprocess_exec(
                command,
                *args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                **_platform_spawn_kwargs(),
            )
        except FileNotFoundError as exc:
            raise CommandExecutionError(rendered, COMMAND_NOT_FOUND_EXIT_CODE, str(exc)) from exc
        except OSError as exc:
            raise CommandExecutionError(rendered, 1, str(exc)) from exc

        # Exactly one of "exited" or "deadline expired" settles the call: the
        # wait below returns either with the task done or with it pending.
        communicate = asyncio.ensure_future(proc.communicate())
        done, _pending = await asyncio.wait({communicate}, timeout=deadline)
        if communicate not in done:
            communicate.cancel()
            await self._shutdown_helper(proc, rendered)
            raise CommandExecutionError(rendered, 1, f"Command timed out after {_to_ms(deadline)}ms")

        stdout_bytes, stderr_bytes = communicate.result()
        stdout = _decode(stdout_bytes)
        stderr = _decode(stderr_bytes)
        exit_code = proc.returncode if proc.returncode is not None else 1

        if exit_code != 0:
            raise CommandExecutionError(rendered, exit_code, stderr)
        return CommandResult(stdout=stdout, stderr=stderr, exit_code=exit_code)

    async def _shutdown_helper(self, proc: asyncio.subprocess.Process, rendered: str) -> None:
        """Terminate a timed-out helper, escalating to kill after the grace window."""
        logger.debug("Command %r exceeded its deadline; terminating helper PID %s", rendered, proc.pid)
        try:
            proc.terminate()
        except ProcessLookupError:  # Helper exited in the meantime  # policy_guard: allow-silent-handler
            return

        try:
            await asyncio.wait_for(proc.wait(), timeout=self.shutdown_grace_seconds)
        except asyncio.TimeoutError:
            logger.debug("Helper PID %s ignored SIGTERM; killing it", proc.pid)
            try:
                proc.kill()
            except ProcessLookupError:  # policy_guard: allow-silent-handler
                return
            await proc.wait()


def _platform_spawn_kwargs() -> dict:
    if sys.platform == "win32":
        return {"creationflags": getattr(subprocess, "CREATE_NO_WINDOW", 0)}
    return {}


def _decode(payload: Optional[bytes]) -> str:
    if not payload:
        return ""
    return payload.decode("utf-8", errors="replace")


def _to_ms(seconds: float) -> int:
    return int(round(seconds * 1000))


__all__ = [
    "COMMAND_NOT_FOUND_EXIT_CODE",
    "CommandResult",
    "CommandRunner",
    "DEFAULT_COMMAND_TIMEOUT_SECONDS",
    "HELPER_SHUTDOWN_GRACE_SECONDS",
    "format_command",
]
