"""Optimistic state changes paired with their compensation."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger("subscriptions")

T = TypeVar("T")


@dataclass
class OptimisticCommand:
    """An ``apply``/``compensate`` pair.

    ``apply`` runs at most once. ``compensate`` runs at most once and only
    after ``apply`` has run, so repeated failure handling cannot undo a
    change twice.
    """

    apply_fn: Callable[[], None]
    compensate_fn: Callable[[], None]
    name: str = "optimistic-change"
    _applied: bool = field(default=False, init=False)
    _compensated: bool = field(default=False, init=False)

    @property
    def applied(self) -> bool:
        return self._applied

    @property
    def compensated(self) -> bool:
        return self._compensated

    def apply(self) -> None:
        if self._applied:
            return
        self.apply_fn()
        self._applied = True

    def compensate(self) -> None:
        if not self._applied or self._compensated:
            return
        self._compensated = True
        logger.debug("Compensating %s", self.name)
        self.compensate_fn()


async def run_optimistic(command: OptimisticCommand, operation: Callable[[], Awaitable[T]]) -> T:
    """Apply ``command``, await ``operation``, and compensate if it raises."""

    command.apply()
    try:
        return await operation()
    except Exception:
        command.compensate()
        raise
