"""Port-to-process lookups, availability checks and polling waits."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, Iterable, List

from .bulk import gather_outcomes, outcomes_to_mapping
from .errors import PortTerminatorError, error_reason
from .models import ProcessInfo, ProtocolFilter
from .platforms.base import PlatformAdapter

logger = logging.getLogger(__name__)

PORT_CHECK_INTERVAL_SECONDS = 0.25
DEFAULT_WAIT_TIMEOUT_MS = 30000


class ProcessFinder:
    """Find which processes own a port, on top of a platform adapter."""

    def __init__(self, adapter: PlatformAdapter, *, check_interval_seconds: float = PORT_CHECK_INTERVAL_SECONDS) -> None:
        self._adapter = adapter
        self.check_interval_seconds = check_interval_seconds

    @property
    def adapter(self) -> PlatformAdapter:
        return self._adapter

    async def find_by_port(self, port: int, protocol: ProtocolFilter = "both") -> List[ProcessInfo]:
        """
        Return processes bound to ``port``; empty when nothing owns it.

        Raises:
            CommandExecutionError: If the port is busy but its owner is unusable
            PermissionDeniedError: If the OS refuses the lookup
        """
        try:
            return await self._adapter.find_processes_by_port(port, protocol)
        except PortTerminatorError as exc:
            logger.debug("Process lookup on port %s failed: %s", port, exc)
            raise

    async def find_by_ports(self, ports: Iterable[int], protocol: ProtocolFilter = "both") -> Dict[int, List[ProcessInfo]]:
        """Look up several ports independently; a failed port maps to an empty list."""

        def _log_failure(port: int, exc: Exception) -> None:
            logger.debug("Failed to find processes on port %s: %s", port, error_reason(exc))

        outcomes = await gather_outcomes(
            ports,
            lambda port: self.find_by_port(port, protocol),
            on_error=_log_failure,
        )
        return outcomes_to_mapping(outcomes, list)

    async def is_port_available(self, port: int, protocol: ProtocolFilter = "both") -> bool:
        processes = await self.find_by_port(port, protocol)
        return not processes

    async def wait_for_port_to_be_available(
        self,
        port: int,
        timeout_ms: float = DEFAULT_WAIT_TIMEOUT_MS,
        protocol: ProtocolFilter = "both",
    ) -> bool:
        """Poll until ``port`` is free; False if the deadline passes first."""
        return await self._wait_for(port, timeout_ms, protocol, want_available=True)

    async def wait_for_port_to_be_busy(
        self,
        port: int,
        timeout_ms: float = DEFAULT_WAIT_TIMEOUT_MS,
        protocol: ProtocolFilter = "both",
    ) -> bool:
        """Poll until something owns ``port``; False if the deadline passes first."""
        return await self._wait_for(port, timeout_ms, protocol, want_available=False)

    async def _wait_for(self, port: int, timeout_ms: float, protocol: ProtocolFilter, *, want_available: bool) -> bool:
        deadline = time.monotonic() + timeout_ms / 1000.0

        if await self.is_port_available(port, protocol) == want_available:
            return True

        while time.monotonic() < deadline:
            remaining = deadline - time.monotonic()
            await asyncio.sleep(max(0.0, min(self.check_interval_seconds, remaining)))
            if await self.is_port_available(port, protocol) == want_available:
                return True

        logger.debug(
            "Port %s did not become %s within %sms",
            port,
            "available" if want_available else "busy",
            timeout_ms,
        )
        return False


__all__ = ["DEFAULT_WAIT_TIMEOUT_MS", "PORT_CHECK_INTERVAL_SECONDS", "ProcessFinder"]
