"""Windows adapter: ``netstat -ano`` first, PowerShell socket cmdlets as fallback."""

from __future__ import annotations

import logging
from typing import List, Optional

from ..errors import CommandExecutionError, PermissionDeniedError, ProcessKillError
from ..models import Transport
from .base import PlatformAdapter
from .command_runner import COMMAND_NOT_FOUND_EXIT_CODE
from .parsers import PortOwner, parse_pid_lines, parse_tasklist_csv, parse_windows_netstat_output

logger = logging.getLogger(__name__)

ACCESS_DENIED = "Access is denied"
_GONE_MARKERS = ("not found", "not running")

_POWERSHELL_QUERIES = {
    "tcp": "Get-NetTCPConnection -LocalPort {port} -State Listen -ErrorAction SilentlyContinue",
    "udp": "Get-NetUDPEndpoint -LocalPort {port} -ErrorAction SilentlyContinue",
}


class WindowsPlatformAdapter(PlatformAdapter):
    platform_name = "win32"

    async def _find_with_primary(self, port: int, transport: Transport) -> List[PortOwner]:
        result = await self._run("netstat", ["-ano"])
        return parse_windows_netstat_output(result.stdout, port, transport)

    async def _find_with_fallback(self, port: int, transport: Transport) -> List[PortOwner]:
        script = _POWERSHELL_QUERIES[transport].format(port=port) + " | Select-Object -ExpandProperty OwningProcess"
        result = await self._run_fallback("powershell", ["-NoProfile", "-NonInteractive", "-Command", script])
        if result is None:
            return []

        pids = parse_pid_lines(result.stdout)
        usable = [pid for pid in pids if pid > 0]
        if pids and not usable:
            raise CommandExecutionError.unresolved_owner("powershell Get-Net*", port)
        return [PortOwner(pid=pid, name="Unknown", protocol=transport) for pid in usable]

    async def _lookup_name(self, pid: int) -> Optional[str]:
        try:
            result = await self._run("tasklist", ["/FI", f"PID eq {pid}", "/FO", "CSV", "/NH"])
        except CommandExecutionError:  # policy_guard: allow-silent-handler
            logger.debug("tasklist lookup failed for PID %s", pid)
            return None
        rows = parse_tasklist_csv(result.stdout)
        if rows:
            return rows[0][0] or None
        return None

    async def kill_process(self, pid: int, force: bool = False) -> bool:
        args = ["/F", "/PID", str(pid)] if force else ["/PID", str(pid)]
        try:
            await self._run("taskkill", args)
        except CommandExecutionError as exc:
            if ACCESS_DENIED in exc.stderr:
                raise PermissionDeniedError(f"Access denied when trying to kill process {pid}", pid) from exc
            if any(marker in exc.stderr for marker in _GONE_MARKERS):
                logger.debug("Process %s already exited before taskkill", pid)
                return True
            raise ProcessKillError(pid, "SIGKILL" if force else "SIGTERM") from exc
        return True

    async def is_process_running(self, pid: int) -> bool:
        try:
            result = await self._run("tasklist", ["/FI", f"PID eq {pid}", "/FO", "CSV", "/NH"])
        except CommandExecutionError as exc:
            if exc.exit_code == COMMAND_NOT_FOUND_EXIT_CODE:
                raise
            return False
        # tasklist exits 0 with an INFO line when the filter matches nothing
        return any(row[1] == str(pid) for row in parse_tasklist_csv(result.stdout))


__all__ = ["WindowsPlatformAdapter"]
