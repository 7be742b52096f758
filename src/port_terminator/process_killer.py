"""
Process termination with graceful-then-forceful escalation.

Each PID moves through a small state machine::

    REQUESTED -> GRACEFUL_SENT -> EXITED | TIMED_OUT -> FORCE_SENT -> EXITED | FAILED

``force=True`` (or a zero grace period) jumps straight from REQUESTED to
FORCE_SENT. A process that is already gone ends in EXITED without any signal
being sent.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional

from .bulk import gather_outcomes, outcomes_to_mapping, unique_keys
from .errors import CommandExecutionError, PermissionDeniedError, ProcessKillError, error_reason
from .models import ProcessInfo, ProtocolFilter
from .platforms.base import PlatformAdapter
from .process_finder import ProcessFinder
from .validators import validate_pid

logger = logging.getLogger(__name__)

# Process termination timeouts
DEFAULT_GRACEFUL_TIMEOUT_MS = 5000
FORCE_KILL_TIMEOUT_MS = 2000
EXIT_CHECK_INTERVAL_SECONDS = 0.1


class KillState(str, Enum):
    REQUESTED = "requested"
    GRACEFUL_SENT = "graceful_sent"
    TIMED_OUT = "timed_out"
    FORCE_SENT = "force_sent"
    EXITED = "exited"
    FAILED = "failed"


_TERMINAL_STATES: FrozenSet[KillState] = frozenset({KillState.EXITED, KillState.FAILED})

_TRANSITIONS: Dict[KillState, FrozenSet[KillState]] = {
    KillState.REQUESTED: frozenset({KillState.GRACEFUL_SENT, KillState.FORCE_SENT, KillState.EXITED, KillState.FAILED}),
    KillState.GRACEFUL_SENT: frozenset({KillState.EXITED, KillState.TIMED_OUT, KillState.FAILED}),
    KillState.TIMED_OUT: frozenset({KillState.FORCE_SENT, KillState.FAILED}),
    KillState.FORCE_SENT: frozenset({KillState.EXITED, KillState.FAILED}),
    KillState.EXITED: frozenset(),
    KillState.FAILED: frozenset(),
}


@dataclass
class KillAttempt:
    """Record of one PID's walk through the termination state machine."""

    pid: int
    state: KillState = KillState.REQUESTED
    history: List[KillState] = field(default_factory=lambda: [KillState.REQUESTED])
    error: Optional[str] = None

    def advance(self, new_state: KillState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal kill transition for PID {self.pid}: {self.state.value} -> {new_state.value}")
        logger.debug("PID %s: %s -> %s", self.pid, self.state.value, new_state.value)
        self.state = new_state
        self.history.append(new_state)

    def fail(self, reason: str) -> None:
        self.error = reason
        self.advance(KillState.FAILED)

    @property
    def finished(self) -> bool:
        return self.state in _TERMINAL_STATES

    @property
    def succeeded(self) -> bool:
        return self.state is KillState.EXITED


class ProcessKiller:
    """Terminate processes by PID or by the port they own."""

    def __init__(
        self,
        adapter: PlatformAdapter,
        finder: Optional[ProcessFinder] = None,
        *,
        force_kill_timeout_ms: float = FORCE_KILL_TIMEOUT_MS,
        check_interval_seconds: float = EXIT_CHECK_INTERVAL_SECONDS,
    ) -> None:
        self._adapter = adapter
        self._finder = finder if finder is not None else ProcessFinder(adapter)
        self.force_kill_timeout_ms = force_kill_timeout_ms
        self.check_interval_seconds = check_interval_seconds

    async def kill_process(
        self,
        pid: int,
        force: bool = False,
        graceful_timeout_ms: float = DEFAULT_GRACEFUL_TIMEOUT_MS,
    ) -> bool:
        """
        Terminate ``pid``, escalating from graceful to forceful if needed.

        Returns:
            True once the process is gone (including when it was already gone),
            False if it survived the forceful kill window

        Raises:
            ValueError: If ``pid`` is not a positive integer
            PermissionDeniedError: If the OS refuses to signal the process
            ProcessKillError: If the forceful kill itself is reported as failed
        """
        attempt = await self.run_kill(pid, force=force, graceful_timeout_ms=graceful_timeout_ms)
        return attempt.succeeded

    async def run_kill(
        self,
        pid: int,
        *,
        force: bool = False,
        graceful_timeout_ms: float = DEFAULT_GRACEFUL_TIMEOUT_MS,
    ) -> KillAttempt:
        """Drive the state machine for ``pid`` and return the finished attempt."""
        validate_pid(pid)
        attempt = KillAttempt(pid=pid)

        if not await self._adapter.is_process_running(pid):
            attempt.advance(KillState.EXITED)
            return attempt

        if not force and graceful_timeout_ms > 0:
            if await self._send(attempt, force=False):
                attempt.advance(KillState.GRACEFUL_SENT)
                if await self._wait_for_exit(pid, graceful_timeout_ms):
                    attempt.advance(KillState.EXITED)
                    return attempt
                logger.info("Process %s did not exit within %sms; sending forceful kill", pid, graceful_timeout_ms)
                attempt.advance(KillState.TIMED_OUT)

        await self._send(attempt, force=True)
        attempt.advance(KillState.FORCE_SENT)
        if await self._wait_for_exit(pid, self.force_kill_timeout_ms):
            attempt.advance(KillState.EXITED)
            return attempt

        logger.warning("Process %s still alive %sms after forceful kill", pid, self.force_kill_timeout_ms)
        attempt.fail(f"Process {pid} persisted after forceful kill")
        return attempt

    async def kill_processes(
        self,
        pids: Iterable[int],
        force: bool = False,
        graceful_timeout_ms: float = DEFAULT_GRACEFUL_TIMEOUT_MS,
    ) -> Dict[int, bool]:
        """Kill every PID independently; a failure maps that PID to False."""

        def _log_failure(pid: int, exc: Exception) -> None:
            logger.debug("Failed to kill process %s: %s", pid, error_reason(exc))

        outcomes = await gather_outcomes(
            pids,
            lambda pid: self.kill_process(pid, force, graceful_timeout_ms),
            on_error=_log_failure,
        )
        return outcomes_to_mapping(outcomes, lambda: False)

    async def kill_targets(
        self,
        processes: Iterable[ProcessInfo],
        force: bool = False,
        graceful_timeout_ms: float = DEFAULT_GRACEFUL_TIMEOUT_MS,
    ) -> Dict[int, bool]:
        """Kill the owners found by a lookup; a PID listed for both transports is killed once."""
        pids = unique_keys(process.pid for process in processes)
        return await self.kill_processes(pids, force, graceful_timeout_ms)

    async def kill_processes_by_port(
        self,
        port: int,
        force: bool = False,
        graceful_timeout_ms: float = DEFAULT_GRACEFUL_TIMEOUT_MS,
        protocol: ProtocolFilter = "both",
    ) -> List[ProcessInfo]:
        """
        Kill whatever owns ``port`` and return the processes that were targeted.

        Individual kill failures are logged, not raised; lookup failures
        propagate to the caller.
        """
        processes = await self._finder.find_by_port(port, protocol)
        if not processes:
            return []
        results = await self.kill_targets(processes, force, graceful_timeout_ms)
        for process in processes:
            if not results.get(process.pid, False):
                logger.debug("Failed to kill process %s (%s) on port %s", process.pid, process.name, port)
        return processes

    async def kill_processes_by_ports(
        self,
        ports: Iterable[int],
        force: bool = False,
        graceful_timeout_ms: float = DEFAULT_GRACEFUL_TIMEOUT_MS,
        protocol: ProtocolFilter = "both",
    ) -> Dict[int, List[ProcessInfo]]:
        """Per-port :meth:`kill_processes_by_port`; a failed port maps to an empty list."""

        def _log_failure(port: int, exc: Exception) -> None:
            logger.debug("Failed to kill processes on port %s: %s", port, error_reason(exc))

        outcomes = await gather_outcomes(
            ports,
            lambda port: self.kill_processes_by_port(port, force, graceful_timeout_ms, protocol),
            on_error=_log_failure,
        )
        return outcomes_to_mapping(outcomes, list)

    async def _send(self, attempt: KillAttempt, *, force: bool) -> bool:
        """
        Deliver one termination request.

        A failed graceful request returns False so the caller escalates; a
        failed forceful request ends the attempt and raises.
        """
        signal_name = "SIGKILL" if force else "SIGTERM"
        try:
            await self._adapter.kill_process(attempt.pid, force=force)
        except PermissionDeniedError as exc:
            attempt.fail(str(exc))
            raise
        except (ProcessKillError, CommandExecutionError) as exc:
            if not force:
                logger.debug("Graceful termination of %s failed (%s); escalating", attempt.pid, exc)
                return False
            attempt.fail(str(exc))
            if isinstance(exc, ProcessKillError):
                raise
            raise ProcessKillError(attempt.pid, signal_name) from exc
        return True

    async def _wait_for_exit(self, pid: int, timeout_ms: float) -> bool:
        deadline = time.monotonic() + timeout_ms / 1000.0
        while True:
            try:
                if not await self._adapter.is_process_running(pid):
                    return True
            except CommandExecutionError as exc:  # Existence check unavailable  # policy_guard: allow-silent-handler
                logger.debug("Could not check whether process %s is running (%s); assuming it exited", pid, exc)
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            await asyncio.sleep(min(self.check_interval_seconds, remaining))


__all__ = [
    "DEFAULT_GRACEFUL_TIMEOUT_MS",
    "FORCE_KILL_TIMEOUT_MS",
    "KillAttempt",
    "KillState",
    "ProcessKiller",
]
