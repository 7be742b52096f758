"""Port occupancy scans and free-port discovery."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .bulk import gather_outcomes
from .errors import PortTerminatorError, error_reason
from .models import MAX_PORT, ProcessInfo, ProtocolFilter
from .platforms import create_platform_adapter, current_platform
from .process_finder import ProcessFinder
from .validators import DEFAULT_MAX_RANGE_SIZE, normalize_protocol, validate_port, validate_port_range, validate_ports

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_START_PORT = 3000
DEFAULT_SINGLE_SEARCH_ATTEMPTS = 100
DEFAULT_MULTI_SEARCH_ATTEMPTS = 1000


@dataclass
class PortScanResult:
    port: int
    available: bool
    processes: List[ProcessInfo] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class PortRangeScan:
    """Summary of a ``start-end`` scan."""

    start: int
    end: int
    available_ports: List[int] = field(default_factory=list)
    busy_ports: List[int] = field(default_factory=list)

    @property
    def range(self) -> str:
        return f"{self.start}-{self.end}"


class PortScanner:
    """Report which ports are in use and find free ones."""

    def __init__(
        self,
        finder: Optional[ProcessFinder] = None,
        *,
        protocol: Optional[str] = None,
        max_range_size: int = DEFAULT_MAX_RANGE_SIZE,
    ) -> None:
        if finder is None:
            finder = ProcessFinder(create_platform_adapter(current_platform()))
        self._finder = finder
        self.protocol: ProtocolFilter = normalize_protocol(protocol)
        self.max_range_size = max_range_size

    async def scan_port(self, port: int) -> PortScanResult:
        target = validate_port(port)
        processes = await self._finder.find_by_port(target, self.protocol)
        return PortScanResult(port=target, available=not processes, processes=processes)

    async def scan_ports(self, ports: Iterable[int]) -> Dict[int, PortScanResult]:
        """
        Scan ports concurrently.

        A port whose lookup fails is reported as unavailable with the failure
        reason in ``error``; it does not affect the other ports.
        """

        def _log_failure(port: int, exc: Exception) -> None:
            logger.debug("Scan of port %s failed: %s", port, error_reason(exc))

        outcomes = await gather_outcomes(validate_ports(ports), self.scan_port, on_error=_log_failure)
        results: Dict[int, PortScanResult] = {}
        for outcome in outcomes:
            if outcome.ok and outcome.value is not None:
                results[outcome.key] = outcome.value
            else:
                results[outcome.key] = PortScanResult(port=outcome.key, available=False, error=error_reason(outcome.error))
        return results

    async def scan_port_range(self, start: int, end: int) -> PortRangeScan:
        ports = validate_port_range(f"{start}-{end}", self.max_range_size)
        results = await self.scan_ports(ports)
        scan = PortRangeScan(start=ports[0], end=ports[-1])
        for port in ports:
            if results[port].available:
                scan.available_ports.append(port)
            else:
                scan.busy_ports.append(port)
        return scan

    async def find_available_port(
        self,
        start_port: int = DEFAULT_SEARCH_START_PORT,
        max_attempts: int = DEFAULT_SINGLE_SEARCH_ATTEMPTS,
    ) -> Optional[int]:
        """Return the first free port at or above ``start_port``, or None."""
        found = await self.find_available_ports(1, start_port, max_attempts)
        return found[0] if found else None

    async def find_available_ports(
        self,
        count: int,
        start_port: int = DEFAULT_SEARCH_START_PORT,
        max_attempts: int = DEFAULT_MULTI_SEARCH_ATTEMPTS,
    ) -> List[int]:
        """
        Collect up to ``count`` free ports, probing sequentially from ``start_port``.

        At most ``max_attempts`` ports are probed and never beyond 65535. Ports
        whose lookup fails are skipped.
        """
        first = validate_port(start_port)
        last = min(MAX_PORT, first + max(0, max_attempts) - 1)
        available: List[int] = []

        for port in range(first, last + 1):
            if len(available) >= count:
                break
            try:
                if await self._finder.is_port_available(port, self.protocol):
                    available.append(port)
            except PortTerminatorError as exc:  # Skip ports we cannot inspect  # policy_guard: allow-silent-handler
                logger.debug("Skipping port %s: %s", port, exc)

        if len(available) < count:
            logger.debug("Found %s of %s requested free ports from %s", len(available), count, first)
        return available


__all__ = ["PortRangeScan", "PortScanResult", "PortScanner"]
