"""OS-specific adapters behind a single :class:`PlatformAdapter` interface."""

from .base import PlatformAdapter
from .command_runner import CommandResult, CommandRunner
from .detection import PlatformName, create_platform_adapter, current_platform, detect_platform
from .linux import LinuxPlatformAdapter
from .macos import MacOSPlatformAdapter
from .windows import WindowsPlatformAdapter

__all__ = [
    "CommandResult",
    "CommandRunner",
    "LinuxPlatformAdapter",
    "MacOSPlatformAdapter",
    "PlatformAdapter",
    "PlatformName",
    "WindowsPlatformAdapter",
    "create_platform_adapter",
    "current_platform",
    "detect_platform",
]
