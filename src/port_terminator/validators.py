"""Input validation for ports, ranges, timeouts, protocols and PIDs."""

from __future__ import annotations

import math
import re
from typing import Any, Iterable, List, Optional

from .errors import InvalidPortError
from .models import MAX_PORT, MIN_PORT, PROTOCOL_FILTERS, ProtocolFilter

DEFAULT_MAX_RANGE_SIZE = 1000

_INTEGER_TEXT = re.compile(r"^[-+]?\d+$")


def validate_port(value: Any) -> int:
    """
    Coerce ``value`` to a port number.

    Accepts integers, integral floats and decimal integer strings.

    Raises:
        InvalidPortError: If the value is not an integer in [1, 65535]
    """
    if isinstance(value, bool):
        raise InvalidPortError(value)

    if isinstance(value, str):
        text = value.strip()
        if not _INTEGER_TEXT.match(text):
            raise InvalidPortError(value)
        port = int(text)
    elif isinstance(value, int):
        port = value
    elif isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise InvalidPortError(value)
        port = int(value)
    else:
        raise InvalidPortError(value)

    if port < MIN_PORT or port > MAX_PORT:
        raise InvalidPortError(value)
    return port


def validate_ports(values: Iterable[Any]) -> List[int]:
    return [validate_port(value) for value in values]


def validate_timeout(value: Any) -> float:
    """Return ``value`` if it is a finite, non-negative number of milliseconds."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value) or value < 0:
        raise ValueError(f"Invalid timeout: {value}. Timeout must be a non-negative number")
    return value


def validate_port_range(range_text: str, max_size: int = DEFAULT_MAX_RANGE_SIZE) -> List[int]:
    """
    Expand a ``start-end`` string into the list of ports it covers.

    Args:
        range_text: Inclusive range such as ``"3000-3005"``
        max_size: Largest number of ports the range may expand to

    Raises:
        ValueError: If the format is wrong, start > end, the span exceeds
            ``max_size`` or ``max_size`` itself is not a positive integer
        InvalidPortError: If either bound is not a valid port
    """
    if isinstance(max_size, bool) or not isinstance(max_size, int) or max_size <= 0:
        raise ValueError(f"Invalid maxRangeSize: {max_size}. Must be a positive integer")

    parts = range_text.split("-")
    if len(parts) != 2:
        raise ValueError(f"Invalid port range: {range_text}. Expected format: start-end")

    start = validate_port(parts[0].strip())
    end = validate_port(parts[1].strip())
    if start > end:
        raise ValueError(f"Invalid port range: {range_text}. Start port must be less than or equal to end port")

    span = end - start + 1
    if span > max_size:
        raise ValueError(f"Port range too large: {span} ports. Maximum allowed: {max_size}")

    return list(range(start, end + 1))


def is_valid_protocol(value: str) -> bool:
    return value.lower() in PROTOCOL_FILTERS


def normalize_protocol(value: Optional[str]) -> ProtocolFilter:
    """Lowercase and validate a protocol filter; ``None`` means ``"both"``."""
    if value is None:
        return "both"
    normalized = value.lower()
    if not is_valid_protocol(normalized):
        raise ValueError(f"Invalid protocol: {value}. Must be 'tcp', 'udp', or 'both'")
    return normalized  # type: ignore[return-value]


def validate_pid(value: Any) -> int:
    """Reject zero, negative (process-group) and non-integer PIDs."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"Invalid PID: {value}. Must be a positive integer.")
    return value


__all__ = [
    "DEFAULT_MAX_RANGE_SIZE",
    "is_valid_protocol",
    "normalize_protocol",
    "validate_pid",
    "validate_port",
    "validate_port_range",
    "validate_ports",
    "validate_timeout",
]
