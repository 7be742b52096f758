"""Read ``PORT_TERMINATOR_*`` defaults from .env files."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Optional, Tuple

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

# KEY=value, optionally prefixed with "export"; value may be quoted
_ASSIGNMENT = re.compile(r"^(?:export\s+)?(?P<key>[A-Za-z_][A-Za-z0-9_.]*)\s*=\s*(?P<value>.*)$")


class DotenvLoader:
    """Parse shell-style ``KEY=value`` files into a mapping."""

    @staticmethod
    def load_from_file(path: Path) -> Dict[str, str]:
        """
        Return every assignment in ``path``; a missing file yields ``{}``.

        Raises:
            ConfigurationError: If the file exists but cannot be read
        """
        if not path.exists():
            return {}

        try:
            text = path.read_text()
        except OSError as exc:
            raise ConfigurationError.unreadable_file(path, exc.strerror or str(exc)) from exc

        values: Dict[str, str] = {}
        for number, line in enumerate(text.splitlines(), start=1):
            parsed = DotenvLoader.parse_line(line)
            if parsed is None:
                continue
            key, value = parsed
            values[key] = value
            logger.debug("Loaded %s from %s:%s", key, path, number)
        return values

    @staticmethod
    def parse_line(line: str) -> Optional[Tuple[str, str]]:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            return None
        match = _ASSIGNMENT.match(stripped)
        if match is None:
            return None
        return match.group("key"), _unquote(match.group("value").strip())


def _unquote(raw: str) -> str:
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ("'", '"'):
        return raw[1:-1]
    # Unquoted values end at an inline comment
    return raw.split(" #", 1)[0].rstrip()
