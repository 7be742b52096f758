"""Options consumed by the orchestrator, finder and killer."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from ..models import ProtocolFilter
from ..validators import normalize_protocol, validate_timeout
from .errors import ConfigurationError
from .runtime import env_bool, env_milliseconds, env_str

DEFAULT_GRACEFUL_TIMEOUT_MS = 5000
DEFAULT_TIMEOUT_MS = 30000
DEFAULT_COMMAND_TIMEOUT_MS = 30000

ENV_PREFIX = "PORT_TERMINATOR_"


@dataclass(frozen=True)
class TerminatorOptions:
    """
    Immutable option set passed by value into :class:`PortTerminator`.

    Attributes:
        protocol: Transport filter, ``tcp``, ``udp`` or ``both``
        force: Skip the graceful phase and kill immediately
        graceful_timeout_ms: Grace period before escalating to a forceful kill
        timeout_ms: Ceiling for poll-based waits such as ``wait_for_port``
        quiet: Suppress informational output
        command_timeout_ms: Deadline for every helper subprocess
    """

    protocol: ProtocolFilter = "both"
    force: bool = False
    graceful_timeout_ms: float = DEFAULT_GRACEFUL_TIMEOUT_MS
    timeout_ms: float = DEFAULT_TIMEOUT_MS
    quiet: bool = False
    command_timeout_ms: float = DEFAULT_COMMAND_TIMEOUT_MS

    def __post_init__(self) -> None:
        object.__setattr__(self, "protocol", normalize_protocol(self.protocol))
        validate_timeout(self.graceful_timeout_ms)
        validate_timeout(self.timeout_ms)
        validate_timeout(self.command_timeout_ms)

    def with_overrides(self, **changes: Any) -> "TerminatorOptions":
        """Return a copy with ``changes`` applied; ``None`` values are ignored."""
        filtered = {key: value for key, value in changes.items() if value is not None}
        return replace(self, **filtered)

    @classmethod
    def from_env(cls) -> "TerminatorOptions":
        """Build options from ``PORT_TERMINATOR_*`` variables and .env files."""
        protocol = env_str(f"{ENV_PREFIX}PROTOCOL", or_value="both")
        try:
            return cls(
                protocol=protocol,  # type: ignore[arg-type]
                force=bool(env_bool(f"{ENV_PREFIX}FORCE", or_value=False)),
                graceful_timeout_ms=env_milliseconds(f"{ENV_PREFIX}GRACEFUL_TIMEOUT_MS", DEFAULT_GRACEFUL_TIMEOUT_MS),
                timeout_ms=env_milliseconds(f"{ENV_PREFIX}TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
                quiet=bool(env_bool(f"{ENV_PREFIX}QUIET", or_value=False)),
                command_timeout_ms=env_milliseconds(f"{ENV_PREFIX}COMMAND_TIMEOUT_MS", DEFAULT_COMMAND_TIMEOUT_MS),
            )
        except ValueError as exc:
            raise ConfigurationError.invalid_option(f"{ENV_PREFIX}PROTOCOL", protocol, str(exc)) from exc


__all__ = [
    "DEFAULT_COMMAND_TIMEOUT_MS",
    "DEFAULT_GRACEFUL_TIMEOUT_MS",
    "DEFAULT_TIMEOUT_MS",
    "TerminatorOptions",
]
