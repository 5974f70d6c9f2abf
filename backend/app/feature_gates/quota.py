"""Daily usage quotas derived from the current subscription tier."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol, TypeVar

from typing_extensions import assert_never

from ..entitlements import Tier
from .access import LimitKey, is_unlimited, limit_for, within_limit
from .exceptions import QuotaExceededError

logger = logging.getLogger("subscriptions")

T = TypeVar("T")

_utc = timezone.utc


class QuotaType(str, Enum):
    AI_CHAT = "ai_chat"

    @property
    def limit_key(self) -> LimitKey:
        match self:
            case QuotaType.AI_CHAT:
                return LimitKey.MAX_AI_CHAT_PER_DAY
            case _:
                assert_never(self)


@dataclass(frozen=True)
class QuotaState:
    """Point-in-time view of a quota window."""

    limit: int
    used_today: int
    period_start: date

    @property
    def unlimited(self) -> bool:
        return is_unlimited(self.limit)

    @property
    def remaining(self) -> Optional[int]:
        if self.unlimited:
            return None
        return max(self.limit - self.used_today, 0)

    def has_remaining(self) -> bool:
        return within_limit(self.used_today, self.limit)


class CompensatingCommand(Protocol):
    """Optimistic change applied before a gated action and undone if it fails."""

    def apply(self) -> None:
        ...

    def compensate(self) -> None:
        ...


class QuotaTracker:
    """Counts uses of one quota within the current local calendar day.

    The window rolls over lazily: every read compares the stored window start
    with today's date in ``timezone``. There is no scheduler and no server
    anchor, so the boundary is only as trustworthy as the device clock. A
    clock that moves backwards keeps the current window instead of opening a
    fresh one.
    """

    def __init__(
        self,
        quota_type: QuotaType,
        tier_source: Callable[[], Tier],
        *,
        clock: Optional[Callable[[], datetime]] = None,
        timezone: Optional[tzinfo] = None,
    ) -> None:
        self._quota_type = quota_type
        self._tier_source = tier_source
        self._clock = clock or (lambda: datetime.now(tz=_utc))
        self._timezone = timezone
        self._used = 0
        self._period_start = self._today()

    @property
    def quota_type(self) -> QuotaType:
        return self._quota_type

    def _today(self) -> date:
        now = self._clock()
        if self._timezone is not None:
            return now.astimezone(self._timezone).date()
        # No configured zone: use the host's local time.
        return now.astimezone().date()

    def _roll_over(self) -> None:
        today = self._today()
        if today > self._period_start:
            logger.debug(
                "Resetting %s quota: window %s -> %s (used %s)",
                self._quota_type.value,
                self._period_start,
                today,
                self._used,
            )
            self._used = 0
            self._period_start = today

    def limit(self) -> int:
        return limit_for(self._tier_source(), self._quota_type.limit_key)

    def state(self) -> QuotaState:
        self._roll_over()
        return QuotaState(limit=self.limit(), used_today=self._used, period_start=self._period_start)

    def has_quota_remaining(self) -> bool:
        return self.state().has_remaining()

    def remaining(self) -> Optional[int]:
        return self.state().remaining

    def consume(self, amount: int = 1) -> QuotaState:
        """Record ``amount`` successful uses. Call only after the action succeeded."""

        if amount < 1:
            raise ValueError("amount must be >= 1")
        self._roll_over()
        self._used += amount
        return self.state()

    def reset(self) -> None:
        self._used = 0
        self._period_start = self._today()

    def ensure_remaining(self) -> QuotaState:
        state = self.state()
        if not state.has_remaining():
            raise QuotaExceededError(self._quota_type.value, state.used_today, state.limit)
        return state

    async def run(
        self,
        action: Callable[[], Awaitable[T]],
        *,
        command: Optional[CompensatingCommand] = None,
    ) -> T:
        """Run a quota-gated action, consuming one use only if it succeeds.

        ``command`` is applied before the action starts and compensated
        exactly once if the action raises.
        """

        self.ensure_remaining()
        if command is not None:
            command.apply()
        try:
            result = await action()
        except Exception:
            if command is not None:
                command.compensate()
            raise
        self.consume()
        return result

