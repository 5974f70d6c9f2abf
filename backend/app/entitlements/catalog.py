"""Static catalog definitions for tiers, provider identifiers, and limits."""
from __future__ import annotations

from typing import Dict, Optional, Tuple

from typing_extensions import assert_never

from .models import FeatureLimits, Period, Status, Tier

PHASE_COUNT = 10
MEDITATION_CATALOG_SIZE = 18

ENTITLEMENT_IDS: Dict[Tier, str] = {
    Tier.NOVICE: "novice_path",
    Tier.AWAKENING: "awakening_path",
    Tier.ENLIGHTENMENT: "enlightenment_path",
}

# Checked in declaration order; the first period with a matching marker wins.
PERIOD_MARKERS: Tuple[Tuple[Period, Tuple[str, ...]], ...] = (
    (Period.LIFETIME, ("lifetime",)),
    (Period.YEARLY, ("yearly", "annual")),
    (Period.MONTHLY, ("monthly",)),
)

FREE_LIMITS = FeatureLimits(
    max_phase=0,
    max_meditations=0,
    max_ai_chat_per_day=0,
    has_vision_board=False,
)

NOVICE_LIMITS = FeatureLimits(
    max_phase=PHASE_COUNT,
    max_meditations=6,
    max_ai_chat_per_day=0,
    has_vision_board=True,
)

AWAKENING_LIMITS = FeatureLimits(
    max_phase=PHASE_COUNT,
    max_meditations=12,
    max_ai_chat_per_day=50,
    has_vision_board=True,
)

ENLIGHTENMENT_LIMITS = FeatureLimits(
    max_phase=PHASE_COUNT,
    max_meditations=MEDITATION_CATALOG_SIZE,
    max_ai_chat_per_day=-1,
    has_vision_board=True,
)


def entitlement_id_for(tier: Tier) -> Optional[str]:
    """Return the provider entitlement id backing a tier (``None`` for free)."""

    match tier:
        case Tier.FREE:
            return None
        case Tier.NOVICE | Tier.AWAKENING | Tier.ENLIGHTENMENT:
            return ENTITLEMENT_IDS[tier]
        case _:
            assert_never(tier)


def limits_for(tier: Tier) -> FeatureLimits:
    """Return the immutable feature limits for a tier."""

    match tier:
        case Tier.FREE:
            return FREE_LIMITS
        case Tier.NOVICE:
            return NOVICE_LIMITS
        case Tier.AWAKENING:
            return AWAKENING_LIMITS
        case Tier.ENLIGHTENMENT:
            return ENLIGHTENMENT_LIMITS
        case _:
            assert_never(tier)


def tier_display_name(tier: Tier) -> str:
    match tier:
        case Tier.FREE:
            return "Free"
        case Tier.NOVICE:
            return "Novice Path"
        case Tier.AWAKENING:
            return "Awakening Path"
        case Tier.ENLIGHTENMENT:
            return "Enlightenment Path"
        case _:
            assert_never(tier)


def status_label(status: Status) -> str:
    match status:
        case Status.NONE:
            return "No Subscription"
        case Status.TRIAL:
            return "Trial"
        case Status.ACTIVE:
            return "Active"
        case Status.GRACE_PERIOD:
            return "Grace Period"
        case Status.CANCELLED:
            return "Cancelled"
        case Status.EXPIRED:
            return "Expired"
        case _:
            assert_never(status)


def period_label(period: Optional[Period]) -> Optional[str]:
    match period:
        case None:
            return None
        case Period.MONTHLY:
            return "Monthly"
        case Period.YEARLY:
            return "Annual"
        case Period.LIFETIME:
            return "Lifetime"
        case _:
            assert_never(period)
