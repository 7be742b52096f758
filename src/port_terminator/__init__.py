"""Find and terminate the processes bound to network ports on Linux, macOS and Windows."""

from __future__ import annotations

__version__ = "1.0.0"

from .config import ConfigurationError, TerminatorOptions
from .errors import (
    CommandExecutionError,
    InvalidPortError,
    OperationTimeoutError,
    PermissionDeniedError,
    PlatformError,
    PortTerminatorError,
    ProcessKillError,
    ProcessNotFoundError,
)
from .logging_config import setup_logging
from .models import ProcessInfo, TerminationResult
from .port_scanner import PortRangeScan, PortScanner, PortScanResult
from .process_finder import ProcessFinder
from .process_killer import KillAttempt, KillState, ProcessKiller
from .terminator import (
    PortTerminator,
    get_process_on_port,
    get_processes_on_port,
    is_port_available,
    kill_port,
    kill_ports,
    wait_for_port,
)
from .validators import validate_port, validate_port_range

__all__ = [
    "CommandExecutionError",
    "ConfigurationError",
    "InvalidPortError",
    "KillAttempt",
    "KillState",
    "OperationTimeoutError",
    "PermissionDeniedError",
    "PlatformError",
    "PortRangeScan",
    "PortScanResult",
    "PortScanner",
    "PortTerminator",
    "PortTerminatorError",
    "ProcessFinder",
    "ProcessInfo",
    "ProcessKillError",
    "ProcessKiller",
    "ProcessNotFoundError",
    "TerminationResult",
    "TerminatorOptions",
    "__version__",
    "get_process_on_port",
    "get_processes_on_port",
    "is_port_available",
    "kill_port",
    "kill_ports",
    "setup_logging",
    "validate_port",
    "validate_port_range",
    "wait_for_port",
]
