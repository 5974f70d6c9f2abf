"""Pure resolution of provider entitlements into canonical subscription state.

Nothing in this module raises on bad provider data. Every degraded path
collapses to :meth:`SubscriptionInfo.free`, so an outage or a malformed
record can never grant access.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional, Tuple

from .catalog import PERIOD_MARKERS, entitlement_id_for
from .models import Period, Status, SubscriptionInfo, Tier
from .raw import CustomerInfo, PeriodType, RawEntitlement

logger = logging.getLogger("subscriptions")

EntitlementIdLookup = Callable[[Tier], Optional[str]]


def resolve_tier(
    active_entitlements: Mapping[str, RawEntitlement],
    *,
    entitlement_ids: EntitlementIdLookup = entitlement_id_for,
) -> Tier:
    """Return the highest tier whose entitlement is present and active."""

    for tier in Tier.descending():
        entitlement_id = entitlement_ids(tier)
        if entitlement_id is None:
            continue
        entitlement = active_entitlements.get(entitlement_id)
        if entitlement is not None and entitlement.is_active:
            return tier
    return Tier.FREE


def resolve_status(entitlement: Optional[RawEntitlement], *, now: datetime) -> Status:
    """Classify an entitlement; the first matching rule wins."""

    if entitlement is None:
        return Status.NONE
    if entitlement.period_type == PeriodType.TRIAL:
        return Status.TRIAL
    if entitlement.will_renew:
        return Status.ACTIVE
    if entitlement.billing_issue_detected_at is not None:
        return Status.GRACE_PERIOD
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if entitlement.expiration_date is not None and entitlement.expiration_date > now:
        return Status.CANCELLED
    return Status.EXPIRED


def detect_period(product_identifier: str) -> Optional[Period]:
    """Infer the billing period from a provider product identifier."""

    lowered = (product_identifier or "").lower()
    for period, markers in PERIOD_MARKERS:
        if any(marker in lowered for marker in markers):
            return period
    return None


def resolve_period(entitlement: Optional[RawEntitlement]) -> Optional[Period]:
    """Period for a paid entitlement, falling back to monthly when unmatched."""

    if entitlement is None:
        return None
    period = detect_period(entitlement.product_identifier)
    if period is None:
        logger.warning(
            "Product %r matches no period marker; assuming monthly",
            entitlement.product_identifier,
        )
        return Period.MONTHLY
    return period


def select_entitlement(
    active_entitlements: Mapping[str, RawEntitlement],
    *,
    entitlement_ids: EntitlementIdLookup = entitlement_id_for,
) -> Tuple[Tier, Optional[RawEntitlement]]:
    """Return the resolved tier together with the record that backs it."""

    tier = resolve_tier(active_entitlements, entitlement_ids=entitlement_ids)
    entitlement_id = entitlement_ids(tier)
    if entitlement_id is None:
        return Tier.FREE, None
    return tier, active_entitlements.get(entitlement_id)


def resolve_subscription_info(
    customer_info: Optional[CustomerInfo],
    *,
    now: datetime,
    entitlement_ids: EntitlementIdLookup = entitlement_id_for,
) -> SubscriptionInfo:
    """Map provider customer data to the canonical :class:`SubscriptionInfo`."""

    if customer_info is None:
        return SubscriptionInfo.free()

    try:
        tier, entitlement = select_entitlement(
            customer_info.active_entitlements, entitlement_ids=entitlement_ids
        )
    except (AttributeError, TypeError) as exc:
        logger.warning("Unusable entitlement data, degrading to free: %s", exc)
        return SubscriptionInfo.free()

    if tier == Tier.FREE or entitlement is None:
        return SubscriptionInfo.free()

    status = resolve_status(entitlement, now=now)
    is_in_trial = status == Status.TRIAL
    return SubscriptionInfo(
        tier=tier,
        status=status,
        is_subscribed=status != Status.EXPIRED,
        is_in_trial=is_in_trial,
        period=resolve_period(entitlement),
        trial_end_date=entitlement.expiration_date if is_in_trial else None,
        expiration_date=entitlement.expiration_date,
        will_renew=entitlement.will_renew,
    )
