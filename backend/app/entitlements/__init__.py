"""Subscription tiers, entitlement records, and their resolution."""

from .catalog import (
    ENTITLEMENT_IDS,
    MEDITATION_CATALOG_SIZE,
    PERIOD_MARKERS,
    PHASE_COUNT,
    entitlement_id_for,
    limits_for,
    period_label,
    status_label,
    tier_display_name,
)
from .models import FeatureLimits, Period, Status, SubscriptionInfo, Tier
from .raw import CustomerInfo, PeriodType, RawEntitlement, parse_customer_info
from .resolver import (
    detect_period,
    resolve_period,
    resolve_status,
    resolve_subscription_info,
    resolve_tier,
    select_entitlement,
)
from .summary import SubscriptionSummary, describe_subscription

__all__ = [
    "ENTITLEMENT_IDS",
    "MEDITATION_CATALOG_SIZE",
    "PERIOD_MARKERS",
    "PHASE_COUNT",
    "CustomerInfo",
    "FeatureLimits",
    "Period",
    "PeriodType",
    "RawEntitlement",
    "Status",
    "SubscriptionInfo",
    "SubscriptionSummary",
    "Tier",
    "describe_subscription",
    "detect_period",
    "entitlement_id_for",
    "limits_for",
    "parse_customer_info",
    "period_label",
    "resolve_period",
    "resolve_status",
    "resolve_subscription_info",
    "resolve_tier",
    "select_entitlement",
    "status_label",
    "tier_display_name",
]
