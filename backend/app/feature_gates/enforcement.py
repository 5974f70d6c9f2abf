"""Helpers for enforcing feature gates on service layers."""
from __future__ import annotations

from ..entitlements import Tier, tier_display_name
from .access import Feature, has_feature, minimum_tier, recommend_upgrade
from .exceptions import FeatureGateError
from .quota import QuotaState, QuotaTracker


def require_feature(
    tier: Tier,
    feature: Feature,
    *,
    error_code: str = "entitlement_required",
    message: str | None = None,
) -> None:
    """Ensure ``tier`` unlocks ``feature`` before proceeding.

    Parameters
    ----------
    tier:
        The subscriber's currently resolved tier.
    feature:
        The boolean gate that must be open.
    error_code:
        Optional override for the surfaced error code. Defaults to
        ``"entitlement_required"``.
    message:
        Optional human-friendly message. If omitted, a default message naming
        the tier that unlocks the feature is used.
    """

    if has_feature(tier, feature):
        return

    required = minimum_tier(feature)
    upgrade_to = recommend_upgrade(tier, feature)
    failure_message = message or f"'{feature.value}' requires the {tier_display_name(required)}."
    raise FeatureGateError(
        code=error_code,
        message=failure_message,
        detail={
            "missing_entitlement": feature.value,
            "current_tier": tier.value,
            "required_tier": required.value,
            "upgrade_to": upgrade_to.value if upgrade_to else None,
        },
    )


def require_quota(tracker: QuotaTracker) -> QuotaState:
    """Raise :class:`QuotaExceededError` when ``tracker`` has no allowance left."""

    return tracker.ensure_remaining()
