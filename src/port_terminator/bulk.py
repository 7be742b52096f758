"""Concurrent fan-out with per-item outcomes.

Bulk operations run one coroutine per key and must never let one key's
failure abort its siblings. Each item is captured as an :class:`Outcome`; the
caller-supplied ``on_error`` hook is where the failure gets logged.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Generic, Iterable, List, Optional, TypeVar

K = TypeVar("K")
V = TypeVar("V")

ErrorHook = Callable[[K, Exception], None]


@dataclass(frozen=True)
class Outcome(Generic[K, V]):
    """Result of one item of a bulk operation: a value or the exception it raised."""

    key: K
    value: Optional[V] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, fallback: V) -> V:
        if self.error is not None or self.value is None:
            return fallback
        return self.value


def unique_keys(keys: Iterable[K]) -> List[K]:
    """Drop repeated keys while keeping first-seen order."""
    return list(dict.fromkeys(keys))


async def gather_outcomes(
    keys: Iterable[K],
    operation: Callable[[K], Awaitable[V]],
    *,
    on_error: Optional[ErrorHook] = None,
) -> List[Outcome[K, V]]:
    """
    Run ``operation`` for every key concurrently and collect one outcome per key.

    Outcomes come back in key order, regardless of completion order.
    """

    async def _capture(key: K) -> Outcome[K, V]:
        try:
            value = await operation(key)
        except Exception as exc:  # Isolate sibling items  # policy_guard: allow-silent-handler
            if on_error is not None:
                on_error(key, exc)
            return Outcome(key=key, error=exc)
        return Outcome(key=key, value=value)

    return list(await asyncio.gather(*(_capture(key) for key in unique_keys(keys))))


def outcomes_to_mapping(outcomes: Iterable[Outcome[K, V]], fallback: Callable[[], V]) -> Dict[K, V]:
    """Collapse outcomes into ``key -> value``, calling ``fallback()`` for each failure."""
    return {outcome.key: outcome.value_or(fallback()) for outcome in outcomes}


__all__ = ["Outcome", "gather_outcomes", "outcomes_to_mapping", "unique_keys"]
