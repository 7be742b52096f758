"""Linux adapter: lsof first, ``netstat -tulpn`` as fallback."""

from __future__ import annotations

from typing import List

from ..errors import CommandExecutionError
from ..models import Transport
from .parsers import PortOwner, parse_linux_netstat_output
from .unix import UnixPlatformAdapter


class LinuxPlatformAdapter(UnixPlatformAdapter):
    platform_name = "linux"

    async def _find_with_fallback(self, port: int, transport: Transport) -> List[PortOwner]:
        result = await self._run_fallback("netstat", ["-tulpn", f"--{transport}"])
        if result is None:
            return []

        owners = parse_linux_netstat_output(result.stdout, port, transport)
        usable = [owner for owner in owners if owner.pid > 0]
        if owners and not usable:
            # netstat prints "-" for sockets owned by other users unless run as root
            raise CommandExecutionError.unresolved_owner(f"netstat -tulpn --{transport}", port)
        return usable


__all__ = ["LinuxPlatformAdapter"]
