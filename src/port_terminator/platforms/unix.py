"""Behaviour shared by Linux and macOS: lsof enumeration and kill(1) signals."""

from __future__ import annotations

import logging
from typing import List

from ..errors import CommandExecutionError, PermissionDeniedError, ProcessKillError
from ..models import Transport
from .base import PlatformAdapter
from .command_runner import COMMAND_NOT_FOUND_EXIT_CODE
from .parsers import PortOwner, parse_lsof_output

logger = logging.getLogger(__name__)

NO_SUCH_PROCESS = "No such process"
NOT_PERMITTED = "Operation not permitted"


class UnixPlatformAdapter(PlatformAdapter):
    """Signal-based kill primitives and lsof lookups."""

    async def _find_with_primary(self, port: int, transport: Transport) -> List[PortOwner]:
        try:
            result = await self._run("lsof", ["-i", f"{transport}:{port}", "-P", "-n"])
        except CommandExecutionError as exc:
            # lsof exits 1 without diagnostics when no open file matches
            if exc.exit_code == 1 and not exc.stderr.strip():
                return []
            raise
        return parse_lsof_output(result.stdout, port, transport)

    async def kill_process(self, pid: int, force: bool = False) -> bool:
        signal_name = "SIGKILL" if force else "SIGTERM"
        try:
            await self._run("kill", [f"-{signal_name[3:]}", str(pid)])
        except CommandExecutionError as exc:
            if NO_SUCH_PROCESS in exc.stderr:
                logger.debug("Process %s already exited before %s", pid, signal_name)
                return True
            if NOT_PERMITTED in exc.stderr:
                raise PermissionDeniedError(f"Permission denied when trying to kill process {pid}", pid) from exc
            raise ProcessKillError(pid, signal_name) from exc
        return True

    async def is_process_running(self, pid: int) -> bool:
        try:
            await self._run("kill", ["-0", str(pid)])
        except CommandExecutionError as exc:
            if exc.exit_code == COMMAND_NOT_FOUND_EXIT_CODE:
                raise
            # Signal 0 refused means the PID exists under another user
            return NOT_PERMITTED in exc.stderr
        return True


__all__ = ["UnixPlatformAdapter"]
