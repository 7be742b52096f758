"""
Public entry point: terminate whatever owns one or more ports.

``PortTerminator`` composes a :class:`ProcessFinder` and a :class:`ProcessKiller`
over a single platform adapter chosen at construction time. Bulk calls isolate
every port: a lookup or kill failure on one port is logged and reported as
``False`` for that port only.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .bulk import Outcome, gather_outcomes, unique_keys
from .config import TerminatorOptions
from .errors import OperationTimeoutError, error_reason
from .models import ProcessInfo, TerminationResult
from .platforms import CommandRunner, PlatformAdapter, create_platform_adapter, current_platform
from .process_finder import ProcessFinder
from .process_killer import ProcessKiller
from .validators import validate_port, validate_ports, validate_timeout

logger = logging.getLogger(__name__)

PortArgument = Union[int, str, Sequence[Union[int, str]]]


class PortTerminator:
    """Find and terminate processes bound to ports."""

    def __init__(
        self,
        options: Optional[TerminatorOptions] = None,
        *,
        adapter: Optional[PlatformAdapter] = None,
    ) -> None:
        self._options = options if options is not None else TerminatorOptions()
        if adapter is None:
            runner = CommandRunner(self._options.command_timeout_ms / 1000.0)
            adapter = create_platform_adapter(current_platform(), runner)
        self._adapter = adapter
        self._finder = ProcessFinder(adapter)
        self._killer = ProcessKiller(adapter, self._finder)

    @property
    def options(self) -> TerminatorOptions:
        return self._options

    @property
    def adapter(self) -> PlatformAdapter:
        return self._adapter

    @property
    def finder(self) -> ProcessFinder:
        return self._finder

    @property
    def killer(self) -> ProcessKiller:
        return self._killer

    async def terminate(self, ports: PortArgument) -> bool:
        """Return True iff every port ends with no owning process left."""
        results = await self.terminate_multiple(_as_list(ports))
        return all(results.values())

    async def terminate_multiple(self, ports: Iterable[Union[int, str]]) -> Dict[int, bool]:
        """Terminate each port concurrently; returns ``port -> success``."""
        targets = unique_keys(validate_ports(ports))
        outcomes = await gather_outcomes(targets, self._terminate_port, on_error=self._log_port_failure)
        return {outcome.key: _succeeded(outcome) for outcome in outcomes}

    async def terminate_with_details(self, ports: Iterable[Union[int, str]]) -> List[TerminationResult]:
        """Terminate ports one at a time, in input order, reporting full detail per port."""
        results: List[TerminationResult] = []
        for port in unique_keys(validate_ports(ports)):
            try:
                results.append(await self._terminate_port(port))
            except Exception as exc:  # Per-port isolation  # policy_guard: allow-silent-handler
                self._log_port_failure(port, exc)
                results.append(TerminationResult(port=port, success=False, error=error_reason(exc)))
        return results

    async def get_processes(self, port: Union[int, str]) -> List[ProcessInfo]:
        return await self._finder.find_by_port(validate_port(port), self._options.protocol)

    async def is_port_available(self, port: Union[int, str]) -> bool:
        return await self._finder.is_port_available(validate_port(port), self._options.protocol)

    async def wait_for_port(self, port: Union[int, str], timeout_ms: Optional[float] = None) -> bool:
        """
        Wait until ``port`` is free.

        Raises:
            OperationTimeoutError: If the port is still busy after ``timeout_ms``
                (defaults to ``options.timeout_ms``)
        """
        target = validate_port(port)
        deadline_ms = validate_timeout(timeout_ms if timeout_ms is not None else self._options.timeout_ms)
        available = await self._finder.wait_for_port_to_be_available(target, deadline_ms, self._options.protocol)
        if not available:
            raise OperationTimeoutError(f"wait for port {target}", deadline_ms)
        return True

    async def _terminate_port(self, port: int) -> TerminationResult:
        processes = await self._finder.find_by_port(port, self._options.protocol)
        if not processes:
            self._info("No process found on port %s", port)
            return TerminationResult(port=port, success=True)

        for process in processes:
            self._info("Terminating %s (PID %s) on port %s/%s", process.name, process.pid, port, process.protocol)

        kills = await self._killer.kill_targets(
            processes,
            force=self._options.force,
            graceful_timeout_ms=self._options.graceful_timeout_ms,
        )
        failed = [process for process in processes if not kills.get(process.pid, False)]
        if failed:
            pids = ", ".join(str(pid) for pid in unique_keys(process.pid for process in failed))
            logger.warning("Failed to terminate process(es) %s on port %s", pids, port)
            return TerminationResult(
                port=port,
                success=False,
                processes=processes,
                error=f"Failed to terminate process(es) {pids} on port {port}",
            )

        self._info("Port %s released", port)
        return TerminationResult(port=port, success=True, processes=processes)

    def _log_port_failure(self, port: int, error: Exception) -> None:
        logger.error("Error terminating processes on port %s: %s", port, error_reason(error))

    def _info(self, message: str, *args: object) -> None:
        if not self._options.quiet:
            logger.info(message, *args)


def _as_list(ports: PortArgument) -> List[Union[int, str]]:
    if isinstance(ports, (int, str)):
        return [ports]
    return list(ports)


def _succeeded(outcome: Outcome[int, TerminationResult]) -> bool:
    return outcome.ok and outcome.value is not None and outcome.value.success


async def kill_port(port: Union[int, str], options: Optional[TerminatorOptions] = None) -> bool:
    """Terminate whatever owns ``port``."""
    return await PortTerminator(options).terminate(port)


async def kill_ports(ports: Iterable[Union[int, str]], options: Optional[TerminatorOptions] = None) -> Dict[int, bool]:
    return await PortTerminator(options).terminate_multiple(ports)


async def get_process_on_port(
    port: Union[int, str], options: Optional[TerminatorOptions] = None
) -> Optional[ProcessInfo]:
    """Return the first process bound to ``port``, or None when it is free."""
    processes = await PortTerminator(options).get_processes(port)
    return processes[0] if processes else None


async def get_processes_on_port(port: Union[int, str], options: Optional[TerminatorOptions] = None) -> List[ProcessInfo]:
    return await PortTerminator(options).get_processes(port)


async def is_port_available(port: Union[int, str], options: Optional[TerminatorOptions] = None) -> bool:
    return await PortTerminator(options).is_port_available(port)


async def wait_for_port(
    port: Union[int, str],
    timeout_ms: Optional[float] = None,
    options: Optional[TerminatorOptions] = None,
) -> bool:
    return await PortTerminator(options).wait_for_port(port, timeout_ms)


__all__ = [
    "PortTerminator",
    "get_process_on_port",
    "get_processes_on_port",
    "is_port_available",
    "kill_port",
    "kill_ports",
    "wait_for_port",
]
