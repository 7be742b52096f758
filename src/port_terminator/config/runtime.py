"""
Environment-backed settings.

Lookups consult the process environment first and fall back to values from
``./.env`` and ``~/.env``. The files are read once per process; the first file
that defines a key wins.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence, TypeVar

from .errors import ConfigurationError

T = TypeVar("T")

_BOOLEAN_WORDS: Dict[str, bool] = {
    **{word: True for word in ("1", "true", "t", "yes", "y", "on")},
    **{word: False for word in ("0", "false", "f", "no", "n", "off")},
}

_DOTENV_CANDIDATES = (Path(".env"), Path.home() / ".env")

_DEFAULT_VALUES: Optional[Dict[str, str]] = None


def _load_default_values(candidates: Sequence[Path] = _DOTENV_CANDIDATES) -> Dict[str, str]:
    from .runtime_helpers import DotenvLoader

    global _DEFAULT_VALUES
    if _DEFAULT_VALUES is None:
        merged: Dict[str, str] = {}
        for path in candidates:
            for key, value in DotenvLoader.load_from_file(path).items():
                merged.setdefault(key, value)
        _DEFAULT_VALUES = merged
    return _DEFAULT_VALUES


def reset_default_values() -> None:
    """Forget cached .env values so the next lookup re-reads them."""
    global _DEFAULT_VALUES
    _DEFAULT_VALUES = None


def _lookup(name: str, *, strip: bool) -> Optional[str]:
    """Return the first non-blank value for ``name`` from the environment or .env files."""
    for source in (os.environ.get(name), _load_default_values().get(name)):
        if source is None:
            continue
        candidate = source.strip() if strip else source
        if candidate:
            return candidate
    return None


def _convert(name: str, expected: str, parser: Callable[[str], T], or_value: Optional[T], required: bool) -> Optional[T]:
    raw = _lookup(name, strip=True)
    if raw is None:
        if required and or_value is None:
            raise ConfigurationError.missing_variable(name)
        return or_value
    try:
        return parser(raw)
    except (KeyError, ValueError) as exc:
        raise ConfigurationError.invalid_type(name, raw, expected) from exc


def env_str(name: str, or_value: Optional[str] = None, *, required: bool = False, strip: bool = True) -> Optional[str]:
    value = _lookup(name, strip=strip)
    if value is None:
        if required:
            raise ConfigurationError.missing_variable(name)
        return or_value
    return value


def env_int(name: str, or_value: Optional[int] = None, *, required: bool = False) -> Optional[int]:
    return _convert(name, "an integer", int, or_value, required)


def env_bool(name: str, or_value: Optional[bool] = None, *, required: bool = False) -> Optional[bool]:
    """Accept the usual yes/no spellings (``1``, ``on``, ``false``...) in any case."""
    return _convert(name, "a boolean", lambda raw: _BOOLEAN_WORDS[raw.lower()], or_value, required)


def env_milliseconds(name: str, or_value: int) -> int:
    """Read a duration in milliseconds; negative values are rejected."""
    value = env_int(name, or_value=or_value)
    if value is None:
        return or_value
    if value < 0:
        raise ConfigurationError.invalid_type(name, str(value), "non-negative")
    return value


__all__ = ["env_bool", "env_int", "env_milliseconds", "env_str", "reset_default_values"]
