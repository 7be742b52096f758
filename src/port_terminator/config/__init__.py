"""Configuration helpers and the options dataclass."""

from .errors import ConfigurationError
from .options import (
    DEFAULT_COMMAND_TIMEOUT_MS,
    DEFAULT_GRACEFUL_TIMEOUT_MS,
    DEFAULT_TIMEOUT_MS,
    TerminatorOptions,
)
from .runtime import env_bool, env_int, env_milliseconds, env_str, reset_default_values

__all__ = [
    "ConfigurationError",
    "DEFAULT_COMMAND_TIMEOUT_MS",
    "DEFAULT_GRACEFUL_TIMEOUT_MS",
    "DEFAULT_TIMEOUT_MS",
    "TerminatorOptions",
    "env_bool",
    "env_int",
    "env_milliseconds",
    "env_str",
    "reset_default_values",
]
