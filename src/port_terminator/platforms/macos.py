"""macOS adapter: lsof first, BSD ``netstat -an`` as a PID-less fallback."""

from __future__ import annotations

from typing import List

from ..errors import CommandExecutionError
from ..models import Transport
from .parsers import PortOwner, macos_netstat_reports_port
from .unix import UnixPlatformAdapter


class MacOSPlatformAdapter(UnixPlatformAdapter):
    platform_name = "darwin"

    async def _find_with_fallback(self, port: int, transport: Transport) -> List[PortOwner]:
        result = await self._run_fallback("netstat", ["-an", "-p", transport])
        if result is None:
            return []
        if macos_netstat_reports_port(result.stdout, port, transport):
            raise CommandExecutionError.unresolved_owner("lsof (fallback to netstat)", port)
        return []


__all__ = ["MacOSPlatformAdapter"]
