"""Platform adapter contract and the logic shared by every OS variant."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence

from ..errors import CommandExecutionError
from ..models import ProcessInfo, ProtocolFilter, Transport, deduplicate_processes, expand_protocols
from .command_runner import CommandResult, CommandRunner, format_command
from .parsers import PortOwner
from .process_details import ProcessDetails, describe_process

logger = logging.getLogger(__name__)

UNKNOWN_PROCESS_NAME = "Unknown"

DetailsLookup = Callable[[int], ProcessDetails]


class PlatformAdapter(ABC):
    """
    Translate port lookups and kill requests into OS-native helper commands.

    Subclasses provide a primary (high fidelity) and a fallback (lower
    fidelity) enumeration path per transport, plus signal/kill primitives.
    This class handles protocol expansion, fallback sequencing, PID 0
    filtering, deduplication and detail enrichment.
    """

    platform_name: str = ""

    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        *,
        details_lookup: DetailsLookup = describe_process,
    ) -> None:
        self._runner = runner if runner is not None else CommandRunner()
        self._details_lookup = details_lookup

    async def find_processes_by_port(self, port: int, protocol: ProtocolFilter = "both") -> List[ProcessInfo]:
        """
        Return the processes bound to ``port`` for the given protocol filter.

        Each transport is queried independently. A transport whose owner is
        visible but whose PID cannot be recovered raises
        :class:`CommandExecutionError` once every transport has been checked;
        owners resolved on the other transport ride along on the error's
        ``processes`` attribute so callers can still act on them.
        """
        processes: List[ProcessInfo] = []
        unresolved: Optional[CommandExecutionError] = None

        for transport in expand_protocols(protocol):
            try:
                owners = await self._find_owners(port, transport)
            except CommandExecutionError as exc:
                if unresolved is None:
                    unresolved = exc
                continue
            for owner in self._usable_owners(owners, port):
                processes.append(await self._to_process_info(owner, port))

        resolved = deduplicate_processes(processes)
        if unresolved is not None:
            unresolved.processes = resolved
            raise unresolved
        return resolved

    async def is_port_available(self, port: int, protocol: ProtocolFilter = "both") -> bool:
        processes = await self.find_processes_by_port(port, protocol)
        return not processes

    @abstractmethod
    async def kill_process(self, pid: int, force: bool = False) -> bool:
        """
        Send one graceful or forceful termination request to ``pid``.

        Returns True when the request was delivered or the process was already
        gone. Does not wait for the process to exit.

        Raises:
            PermissionDeniedError: If the OS refuses to signal the process
            ProcessKillError: On any other platform-reported failure
        """

    @abstractmethod
    async def is_process_running(self, pid: int) -> bool:
        """Return True if the specific ``pid`` currently exists."""

    @abstractmethod
    async def _find_with_primary(self, port: int, transport: Transport) -> List[PortOwner]:
        """Enumerate owners with the high fidelity tool; raise CommandExecutionError on tool failure."""

    @abstractmethod
    async def _find_with_fallback(self, port: int, transport: Transport) -> List[PortOwner]:
        """Enumerate owners with the secondary tool."""

    async def _lookup_name(self, pid: int) -> Optional[str]:
        return None

    async def _find_owners(self, port: int, transport: Transport) -> List[PortOwner]:
        try:
            return await self._find_with_primary(port, transport)
        except CommandExecutionError as exc:
            logger.debug(
                "Primary lookup for %s port %s failed (%s: %s); using fallback",
                transport,
                port,
                exc.command,
                exc.stderr.strip() or exc.exit_code,
            )
        return await self._find_with_fallback(port, transport)

    async def _run(self, command: str, args: Sequence[str]) -> CommandResult:
        return await self._runner.run(command, args)

    async def _run_fallback(self, command: str, args: Sequence[str]) -> Optional[CommandResult]:
        """Run a fallback tool, mapping its failure to ``None`` (nothing usable)."""
        try:
            return await self._run(command, args)
        except CommandExecutionError as exc:  # Tool unavailable degrades to empty  # policy_guard: allow-silent-handler
            logger.debug("Fallback %r unavailable: %s", format_command(command, args), exc.stderr.strip() or exc)
            return None

    def _usable_owners(self, owners: List[PortOwner], port: int) -> List[PortOwner]:
        seen = set()
        usable: List[PortOwner] = []
        for owner in owners:
            if owner.pid <= 0:
                logger.debug("Ignoring %s owner of port %s without a usable PID", owner.protocol, port)
                continue
            key = (owner.pid, owner.protocol)
            if key in seen:
                continue
            seen.add(key)
            usable.append(owner)
        return usable

    async def _to_process_info(self, owner: PortOwner, port: int) -> ProcessInfo:
        details = self._details_lookup(owner.pid)
        name = owner.name if owner.name and owner.name != UNKNOWN_PROCESS_NAME else None
        if name is None:
            name = await self._lookup_name(owner.pid) or details.name or UNKNOWN_PROCESS_NAME
        return ProcessInfo(
            pid=owner.pid,
            name=name,
            port=port,
            protocol=owner.protocol,
            command=details.command,
            user=owner.user or details.user,
        )


__all__ = ["PlatformAdapter", "UNKNOWN_PROCESS_NAME"]
