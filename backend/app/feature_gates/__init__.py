"""Feature gating utilities coordinating tier-based access and quotas."""
from .access import (
    UNLIMITED,
    Feature,
    Gate,
    LimitKey,
    access,
    has_feature,
    has_meditation_access,
    has_phase_access,
    is_unlimited,
    limit_for,
    minimum_tier,
    recommend_upgrade,
    within_limit,
)
from .context import EntitlementContext
from .enforcement import require_feature, require_quota
from .exceptions import FeatureGateError, QuotaExceededError
from .quota import CompensatingCommand, QuotaState, QuotaTracker, QuotaType

__all__ = [
    "UNLIMITED",
    "CompensatingCommand",
    "EntitlementContext",
    "Feature",
    "FeatureGateError",
    "Gate",
    "LimitKey",
    "QuotaExceededError",
    "QuotaState",
    "QuotaTracker",
    "QuotaType",
    "access",
    "has_feature",
    "has_meditation_access",
    "has_phase_access",
    "is_unlimited",
    "limit_for",
    "minimum_tier",
    "recommend_upgrade",
    "require_feature",
    "require_quota",
    "within_limit",
]
