"""Exception hierarchy for port termination.

Every error carries a stable machine-readable ``code`` plus optional ``port`` and
``pid`` context. Several classes also inherit a builtin category so callers can
catch ``PermissionError`` or ``TimeoutError`` without importing this module.
"""

from __future__ import annotations

import re
from typing import Any, List, Optional

UNKNOWN_ERROR_REASON = "Unknown error"

_NUMERIC_PREFIX = re.compile(r"^\s*[-+]?\d")


class PortTerminatorError(Exception):
    """Base exception for all port termination errors."""

    code = "PORT_TERMINATOR_ERROR"

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        port: Any = None,
        pid: Optional[int] = None,
    ) -> None:
        if not message:
            message = self.__class__.__doc__ or "Port termination error occurred"
        super().__init__(message)
        if code is not None:
            self.code = code
        self.port = port
        self.pid = pid

    @property
    def message(self) -> str:
        return str(self)


class ProcessNotFoundError(PortTerminatorError):
    """No process is bound to the requested port."""

    code = "PROCESS_NOT_FOUND"

    def __init__(self, port: int) -> None:
        super().__init__(f"No process found running on port {port}", port=port)


class PermissionDeniedError(PortTerminatorError, PermissionError):
    """The operating system refused the operation."""

    code = "PERMISSION_DENIED"

    def __init__(self, message: str, pid: Optional[int] = None) -> None:
        super().__init__(message, pid=pid)


class PlatformError(PortTerminatorError):
    """The current operating system is not supported."""

    code = "PLATFORM_UNSUPPORTED"

    def __init__(self, platform: str, message: str = "") -> None:
        super().__init__(message or f"Unsupported platform: {platform}")
        self.platform = platform


class OperationTimeoutError(PortTerminatorError, TimeoutError):
    """An operation did not complete within its deadline."""

    code = "OPERATION_TIMEOUT"

    def __init__(self, operation: str, timeout_ms: float) -> None:
        super().__init__(f"Operation '{operation}' timed out after {_format_ms(timeout_ms)}ms")
        self.operation = operation
        self.timeout_ms = timeout_ms


class InvalidPortError(PortTerminatorError, ValueError):
    """A port value is not an integer in [1, 65535]."""

    code = "INVALID_PORT"

    def __init__(self, value: Any) -> None:
        super().__init__(
            f"Invalid port number: {value}. Port must be between 1 and 65535",
            port=_preserved_port(value),
        )
        self.value = value


class CommandExecutionError(PortTerminatorError):
    """A helper command exited unsuccessfully, timed out or could not be started."""

    code = "COMMAND_EXECUTION_FAILED"

    def __init__(self, command: str, exit_code: int, stderr: str) -> None:
        super().__init__(f"Command execution failed: {command} (exit code: {exit_code})")
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        # Owners that were resolved before the failure, if any
        self.processes: List[Any] = []

    @classmethod
    def unresolved_owner(cls, command: str, port: int) -> "CommandExecutionError":
        """Create error for a busy port whose owning PID cannot be recovered."""
        err = cls(
            command,
            1,
            f"Process found on port {port} but cannot determine PID. lsof command not available.",
        )
        err.port = port
        return err


class ProcessKillError(PortTerminatorError):
    """The platform reported a failure while killing a process."""

    code = "PROCESS_KILL_FAILED"

    def __init__(self, pid: int, signal: Optional[str] = None) -> None:
        suffix = f" with signal {signal}" if signal else ""
        super().__init__(f"Failed to kill process {pid}{suffix}", pid=pid)
        self.signal = signal


def error_reason(error: object) -> str:
    """Return a loggable reason for any caught value.

    Only real exceptions with a non-empty message contribute their text; anything
    else collapses to ``"Unknown error"`` so raw payloads never leak into logs.
    """
    if isinstance(error, Exception):
        text = str(error)
        if text:
            return text
    return UNKNOWN_ERROR_REASON


def _preserved_port(value: Any) -> Any:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str) and _NUMERIC_PREFIX.match(value):
        return value
    return None


def _format_ms(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


__all__ = [
    "CommandExecutionError",
    "InvalidPortError",
    "OperationTimeoutError",
    "PermissionDeniedError",
    "PlatformError",
    "PortTerminatorError",
    "ProcessKillError",
    "ProcessNotFoundError",
    "UNKNOWN_ERROR_REASON",
    "error_reason",
]
