"""Errors raised while reading ``PORT_TERMINATOR_*`` settings."""

from __future__ import annotations

from pathlib import Path
from typing import Union


class ConfigurationError(RuntimeError):
    """A setting is missing, malformed or could not be read."""

    @classmethod
    def missing_variable(cls, name: str) -> "ConfigurationError":
        return cls(f"Required environment variable {name!r} is not set")

    @classmethod
    def invalid_type(cls, name: str, raw_value: str, expected: str) -> "ConfigurationError":
        """Create error for a variable whose text cannot be coerced."""
        return cls(f"Environment variable {name!r} must be {expected} (got {raw_value!r})")

    @classmethod
    def invalid_option(cls, name: str, raw_value: object, detail: str) -> "ConfigurationError":
        """Create error for a value that parses but is not an allowed option."""
        return cls(f"Invalid setting {name}={raw_value!r}: {detail}")

    @classmethod
    def unreadable_file(cls, path: Union[str, Path], detail: str) -> "ConfigurationError":
        return cls(f"Cannot read settings file {path}: {detail}")


__all__ = ["ConfigurationError"]
