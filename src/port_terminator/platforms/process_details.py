"""Look up command line, user and name for a PID through psutil."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import psutil

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessDetails:
    name: Optional[str] = None
    command: Optional[str] = None
    user: Optional[str] = None


def describe_process(pid: int) -> ProcessDetails:
    """
    Return whatever details the OS will disclose about ``pid``.

    Fields the caller is not allowed to read, or a process that vanished
    between enumeration and inspection, simply come back as ``None``.
    """
    try:
        proc = psutil.Process(pid)
    except psutil.NoSuchProcess:  # Process exited after enumeration  # policy_guard: allow-silent-handler
        logger.debug("Process %s vanished before psutil inspection", pid)
        return ProcessDetails()
    except psutil.AccessDenied:  # policy_guard: allow-silent-handler
        logger.debug("Access denied inspecting process %s", pid)
        return ProcessDetails()

    return ProcessDetails(
        name=_read(proc.name, pid, "name"),
        command=_read_cmdline(proc, pid),
        user=_read(proc.username, pid, "username"),
    )


def _read(getter, pid: int, field: str) -> Optional[str]:
    try:
        value = getter()
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess, OSError):  # policy_guard: allow-silent-handler
        logger.debug("Could not read %s for process %s", field, pid)
        return None
    return value or None


def _read_cmdline(proc: psutil.Process, pid: int) -> Optional[str]:
    try:
        parts = proc.cmdline()
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess, OSError):  # policy_guard: allow-silent-handler
        logger.debug("Could not read command line for process %s", pid)
        return None
    command = " ".join(parts).strip()
    return command or None


__all__ = ["ProcessDetails", "describe_process"]
