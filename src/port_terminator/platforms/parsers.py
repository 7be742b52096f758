"""Parsers for the text output of OS socket and process enumeration tools.

Each parser is a pure function over captured stdout so it can be exercised
without spawning anything. Rows whose PID cannot be recovered are reported with
``pid == 0``; adapters decide whether such rows are usable.
"""

from __future__ import annotations

import csv
import io
import re
from typing import Iterator, List, NamedTuple, Optional

from ..models import Transport

_TRAILING_COLON_PORT = re.compile(r":(\d+)$")
_TRAILING_DOT_PORT = re.compile(r"\.(\d+)$")
_NETSTAT_PROGRAM = re.compile(r"^(\d+)/(.+)$")
_HEADER_PREFIXES = ("Active", "Proto")


class PortOwner(NamedTuple):
    """One row of enumeration output that matched the requested port."""

    pid: int
    name: str
    protocol: Transport
    user: Optional[str] = None


def _meaningful_lines(output: str) -> Iterator[str]:
    for line in output.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith(_HEADER_PREFIXES):
            continue
        yield trimmed


def _parse_int(text: str) -> Optional[int]:
    try:
        return int(text)
    except ValueError:
        return None


def _port_of(address: str, pattern: re.Pattern[str]) -> Optional[int]:
    match = pattern.search(address)
    if not match:
        return None
    return int(match.group(1))


def parse_lsof_output(output: str, port: int, protocol: Transport) -> List[PortOwner]:
    """
    Parse ``lsof -i <proto>:<port> -P -n`` output.

    Columns are COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME. Only the
    local side of NAME (text before ``->``) is compared with ``port``, so
    clients connected *to* the port are not reported as its owners.
    """
    owners: List[PortOwner] = []
    for line in output.splitlines():
        if not line.strip() or line.startswith("COMMAND"):
            continue
        parts = line.split()
        if len(parts) < 9:
            continue

        command, pid_text, user = parts[0], parts[1], parts[2]
        pid = _parse_int(pid_text)
        if pid is None:
            continue

        local_endpoint = parts[8].split("->", 1)[0]
        if _port_of(local_endpoint, _TRAILING_COLON_PORT) != port:
            continue

        owners.append(PortOwner(pid=pid, name=command, protocol=protocol, user=user))
    return owners


def _linux_program_field(parts: List[str], is_tcp: bool) -> str:
    # udp rows usually have no State column, shifting PID/Program one column left
    if is_tcp or (len(parts) >= 7 and not _NETSTAT_PROGRAM.match(parts[5]) and parts[5] != "-"):
        return " ".join(parts[6:])
    return " ".join(parts[5:])


def parse_linux_netstat_output(output: str, port: int, protocol: Transport) -> List[PortOwner]:
    """
    Parse ``netstat -tulpn`` output.

    The PID/Program column reads ``-`` when the caller lacks privileges to
    see the owner; such rows are returned with ``pid == 0``.
    """
    owners: List[PortOwner] = []
    for line in _meaningful_lines(output):
        parts = line.split()
        if len(parts) < 6:
            continue

        proto = parts[0].lower()
        if not proto.startswith(protocol):
            continue
        if _port_of(parts[3], _TRAILING_COLON_PORT) != port:
            continue

        program = _linux_program_field(parts, is_tcp=proto.startswith("tcp"))
        match = _NETSTAT_PROGRAM.match(program)
        if match:
            owners.append(PortOwner(pid=int(match.group(1)), name=match.group(2), protocol=protocol))
        else:
            owners.append(PortOwner(pid=0, name="Unknown", protocol=protocol))
    return owners


def macos_netstat_reports_port(output: str, port: int, protocol: Transport) -> bool:
    """
    Return True if ``netstat -an -p <proto>`` lists a socket bound to ``port``.

    BSD netstat separates the port with a dot (``*.3000``, ``127.0.0.1.3000``)
    and never reports the owning PID.
    """
    for line in _meaningful_lines(output):
        parts = line.split()
        if len(parts) < 5:
            continue
        if not parts[0].lower().startswith(protocol):
            continue
        if _port_of(parts[3], _TRAILING_DOT_PORT) == port:
            return True
    return False


def parse_windows_netstat_output(output: str, port: int, protocol: Transport) -> List[PortOwner]:
    """
    Parse ``netstat -ano`` output.

    TCP rows carry a State column and only ``LISTENING`` rows count as owners;
    UDP rows have no state, so the PID is always the last column.
    """
    owners: List[PortOwner] = []
    expected_prefix = protocol.upper()
    for line in _meaningful_lines(output):
        parts = line.split()
        if len(parts) < 4:
            continue

        proto = parts[0].upper()
        if not proto.startswith(expected_prefix):
            continue
        if _port_of(parts[1], _TRAILING_COLON_PORT) != port:
            continue

        if proto.startswith("TCP"):
            if len(parts) < 5 or parts[3] != "LISTENING":
                continue
        pid = _parse_int(parts[-1])
        if pid is None:
            continue
        owners.append(PortOwner(pid=pid, name="Unknown", protocol=protocol))
    return owners


def parse_pid_lines(output: str) -> List[int]:
    """Parse one PID per line, as printed by ``Select-Object -ExpandProperty``."""
    pids: List[int] = []
    for line in output.splitlines():
        pid = _parse_int(line.strip())
        if pid is not None:
            pids.append(pid)
    return pids


def parse_tasklist_csv(output: str) -> List[List[str]]:
    """
    Parse ``tasklist /FO CSV /NH`` rows.

    ``tasklist`` prints an ``INFO:`` line instead of rows when nothing matches
    its filter; that line yields no rows.
    """
    rows: List[List[str]] = []
    for row in csv.reader(io.StringIO(output)):
        cells = [cell.strip() for cell in row]
        if len(cells) < 2 or cells[0].upper().startswith("INFO:"):
            continue
        rows.append(cells)
    return rows


__all__ = [
    "PortOwner",
    "macos_netstat_reports_port",
    "parse_linux_netstat_output",
    "parse_lsof_output",
    "parse_pid_lines",
    "parse_tasklist_csv",
    "parse_windows_netstat_output",
]
