"""Operating system detection and adapter selection."""

from __future__ import annotations

import functools
import sys
from typing import Literal, Optional

from ..errors import PlatformError
from .base import PlatformAdapter
from .command_runner import CommandRunner

PlatformName = Literal["win32", "darwin", "linux"]


def detect_platform(system_platform: Optional[str] = None) -> PlatformName:
    """
    Map ``sys.platform`` (or an explicit value) onto a supported OS family.

    Raises:
        PlatformError: For anything other than Windows, macOS or Linux
    """
    value = sys.platform if system_platform is None else system_platform
    if value == "win32":
        return "win32"
    if value == "darwin":
        return "darwin"
    if value.startswith("linux"):
        return "linux"
    raise PlatformError(value)


@functools.lru_cache(maxsize=1)
def current_platform() -> PlatformName:
    """OS family of the running interpreter, detected once per process."""
    return detect_platform()


def create_platform_adapter(platform_name: PlatformName, runner: Optional[CommandRunner] = None) -> PlatformAdapter:
    """Instantiate the one adapter variant that serves ``platform_name``."""
    from .linux import LinuxPlatformAdapter
    from .macos import MacOSPlatformAdapter
    from .windows import WindowsPlatformAdapter

    adapters = {
        "win32": WindowsPlatformAdapter,
        "darwin": MacOSPlatformAdapter,
        "linux": LinuxPlatformAdapter,
    }
    try:
        adapter_cls = adapters[platform_name]
    except KeyError as exc:
        raise PlatformError(str(platform_name)) from exc
    return adapter_cls(runner)


__all__ = ["PlatformName", "create_platform_adapter", "current_platform", "detect_platform"]
