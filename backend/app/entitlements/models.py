"""Domain models for subscription tiers and resolved entitlement state."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from typing_extensions import assert_never


class Tier(str, Enum):
    """Ordered subscription levels, lowest first."""

    FREE = "free"
    NOVICE = "novice"
    AWAKENING = "awakening"
    ENLIGHTENMENT = "enlightenment"

    @property
    def rank(self) -> int:
        match self:
            case Tier.FREE:
                return 0
            case Tier.NOVICE:
                return 1
            case Tier.AWAKENING:
                return 2
            case Tier.ENLIGHTENMENT:
                return 3
            case _:
                assert_never(self)

    @classmethod
    def descending(cls) -> tuple["Tier", ...]:
        """Return every tier from highest to lowest."""

        return tuple(sorted(cls, key=lambda tier: tier.rank, reverse=True))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank >= other.rank


class Period(str, Enum):
    """Billing cadence of the purchase backing a tier."""

    MONTHLY = "monthly"
    YEARLY = "yearly"
    LIFETIME = "lifetime"


class Status(str, Enum):
    """Lifecycle state of the entitlement for the resolved tier."""

    NONE = "none"
    TRIAL = "trial"
    ACTIVE = "active"
    GRACE_PERIOD = "grace_period"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


@dataclass(frozen=True)
class FeatureLimits:
    """Static allowances granted by a tier. ``-1`` means unlimited."""

    max_phase: int = 0
    max_meditations: int = 0
    max_ai_chat_per_day: int = 0
    has_vision_board: bool = False

    def to_flags(self) -> dict[str, int | bool]:
        """Serialize limits to flattened flag keys."""

        return {
            "phases.max": self.max_phase,
            "meditations.max": self.max_meditations,
            "ai_chat.per_day": self.max_ai_chat_per_day,
            "vision_board.enabled": self.has_vision_board,
        }


class SubscriptionInfo(BaseModel):
    """Canonical subscription state derived from provider entitlements."""

    tier: Tier = Tier.FREE
    status: Status = Status.NONE
    is_subscribed: bool = False
    is_in_trial: bool = False
    period: Optional[Period] = None
    trial_end_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    will_renew: bool = False

    model_config = ConfigDict(frozen=True)

    @classmethod
    def free(cls) -> "SubscriptionInfo":
        """The zero value used at startup and whenever resolution degrades."""

        return cls()
