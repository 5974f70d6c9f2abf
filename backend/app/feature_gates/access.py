"""Static feature access matrix keyed by subscription tier."""
from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from typing_extensions import assert_never

from ..entitlements import MEDITATION_CATALOG_SIZE, Tier, limits_for

UNLIMITED = -1


class Feature(str, Enum):
    """Boolean gates answered by :func:`access`."""

    ALL_PHASES = "all_phases"
    MEDITATIONS = "meditations"
    VOICE_TRANSCRIPTION = "voice_transcription"
    VISION_BOARD = "vision_board"
    UNLIMITED_JOURNALS = "unlimited_journals"
    GURU_CHAT = "guru_chat"


class LimitKey(str, Enum):
    """Numeric allowances answered by :func:`access`."""

    MAX_PHASE = "max_phase"
    MAX_MEDITATIONS = "max_meditations"
    MAX_AI_CHAT_PER_DAY = "max_ai_chat_per_day"


Gate = Union[Feature, LimitKey]


def minimum_tier(feature: Feature) -> Tier:
    """Lowest tier at which a boolean gate opens."""

    match feature:
        case (
            Feature.ALL_PHASES
            | Feature.MEDITATIONS
            | Feature.VOICE_TRANSCRIPTION
            | Feature.VISION_BOARD
            | Feature.UNLIMITED_JOURNALS
        ):
            return Tier.NOVICE
        case Feature.GURU_CHAT:
            return Tier.ENLIGHTENMENT
        case _:
            assert_never(feature)


def has_feature(tier: Tier, feature: Feature) -> bool:
    match feature:
        case Feature.GURU_CHAT:
            # Granted at the top tier only, whatever the mid tiers unlock.
            return tier == Tier.ENLIGHTENMENT
        case (
            Feature.ALL_PHASES
            | Feature.MEDITATIONS
            | Feature.VOICE_TRANSCRIPTION
            | Feature.VISION_BOARD
            | Feature.UNLIMITED_JOURNALS
        ):
            return tier >= minimum_tier(feature)
        case _:
            assert_never(feature)


def limit_for(tier: Tier, key: LimitKey) -> int:
    limits = limits_for(tier)
    match key:
        case LimitKey.MAX_PHASE:
            return limits.max_phase
        case LimitKey.MAX_MEDITATIONS:
            return limits.max_meditations
        case LimitKey.MAX_AI_CHAT_PER_DAY:
            return limits.max_ai_chat_per_day
        case _:
            assert_never(key)


def access(tier: Tier, gate: Gate) -> Union[bool, int]:
    """Answer a boolean gate or a numeric limit for ``tier``."""

    if isinstance(gate, Feature):
        return has_feature(tier, gate)
    return limit_for(tier, gate)


def is_unlimited(limit: int) -> bool:
    return limit == UNLIMITED


def within_limit(count: int, limit: int) -> bool:
    """``count < limit`` with the unlimited sentinel checked first."""

    if is_unlimited(limit):
        return True
    return count < limit


def has_phase_access(tier: Tier, phase_number: int) -> bool:
    return phase_number <= limit_for(tier, LimitKey.MAX_PHASE)


def has_meditation_access(tier: Tier, index: int) -> bool:
    """Whether the meditation at zero-based ``index`` is unlocked."""

    if tier == Tier.FREE:
        return False
    max_meditations = limit_for(tier, LimitKey.MAX_MEDITATIONS)
    if is_unlimited(max_meditations) or max_meditations == MEDITATION_CATALOG_SIZE:
        return True
    return index < max_meditations


def _allowance_improves(current: int, candidate: int) -> bool:
    if is_unlimited(current):
        return False
    return is_unlimited(candidate) or candidate > current


def recommend_upgrade(tier: Tier, gate: Gate) -> Optional[Tier]:
    """Lowest tier above ``tier`` that grants more of ``gate``.

    Returns ``None`` when the gate is already open or no higher tier helps.
    """

    if isinstance(gate, Feature) and has_feature(tier, gate):
        return None

    current = access(tier, gate)
    for candidate in sorted(Tier, key=lambda item: item.rank):
        if candidate <= tier:
            continue
        if isinstance(gate, Feature):
            if has_feature(candidate, gate):
                return candidate
        elif _allowance_improves(int(current), limit_for(candidate, gate)):
            return candidate
    return None
