"""Data model shared by the finder, killer and orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Literal, Optional, Tuple

Transport = Literal["tcp", "udp"]
ProtocolFilter = Literal["tcp", "udp", "both"]

TRANSPORTS: Tuple[Transport, ...] = ("tcp", "udp")
PROTOCOL_FILTERS: Tuple[ProtocolFilter, ...] = ("tcp", "udp", "both")

MIN_PORT = 1
MAX_PORT = 65535


@dataclass(frozen=True)
class ProcessInfo:
    """A process bound to a port, as reported by the operating system."""

    pid: int
    name: str
    port: int
    protocol: Transport
    command: Optional[str] = None
    user: Optional[str] = None

    @property
    def key(self) -> Tuple[int, int, str]:
        """Deduplication key."""
        return (self.pid, self.port, self.protocol)


@dataclass
class TerminationResult:
    """Outcome of one orchestrator call for one port."""

    port: int
    success: bool
    processes: List[ProcessInfo] = field(default_factory=list)
    error: Optional[str] = None


def expand_protocols(protocol: ProtocolFilter) -> Tuple[Transport, ...]:
    """Return the transports covered by a protocol filter."""
    if protocol == "both":
        return TRANSPORTS
    return (protocol,)


def deduplicate_processes(processes: Iterable[ProcessInfo]) -> List[ProcessInfo]:
    """Drop repeated ``(pid, port, protocol)`` records, keeping discovery order."""
    seen = set()
    unique: List[ProcessInfo] = []
    for process in processes:
        if process.key in seen:
            continue
        seen.add(process.key)
        unique.append(process)
    return unique


__all__ = [
    "MAX_PORT",
    "MIN_PORT",
    "PROTOCOL_FILTERS",
    "ProcessInfo",
    "ProtocolFilter",
    "TRANSPORTS",
    "TerminationResult",
    "Transport",
    "deduplicate_processes",
    "expand_protocols",
]
