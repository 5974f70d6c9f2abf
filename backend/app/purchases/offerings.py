"""Mapping of provider packages onto the internal tier/period catalog."""
from __future__ import annotations

import logging
from typing import List, Optional

from typing_extensions import assert_never

from ..entitlements import Period, Tier, detect_period, tier_display_name
from .models import RawOfferings, RawPackage, RawProduct, SubscriptionOffering, SubscriptionPackage

logger = logging.getLogger("purchases")

_CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "JPY": "¥", "INR": "₹"}


def detect_package_tier(product_identifier: str, *, default_tier: Tier) -> Tier:
    """Tier named in a product id (``manifest_awakening_yearly``), else ``default_tier``."""

    lowered = product_identifier.lower()
    for tier in Tier.descending():
        if tier != Tier.FREE and tier.value in lowered:
            return tier
    return default_tier


def format_amount(amount: float, currency_code: str) -> str:
    symbol = _CURRENCY_SYMBOLS.get(currency_code.upper())
    if symbol:
        return f"{symbol}{amount:.2f}"
    return f"{amount:.2f} {currency_code.upper()}"


def price_per_month_label(product: RawProduct, period: Period) -> str:
    match period:
        case Period.MONTHLY:
            return product.price_string
        case Period.YEARLY:
            return f"{format_amount(product.price / 12, product.currency_code)}/mo"
        case Period.LIFETIME:
            return "One-time"
        case _:
            assert_never(period)


def _period_display(period: Period) -> str:
    match period:
        case Period.MONTHLY:
            return "Monthly"
        case Period.YEARLY:
            return "Annual"
        case Period.LIFETIME:
            return "Lifetime"
        case _:
            assert_never(period)


def to_subscription_package(raw: RawPackage, *, default_tier: Tier) -> Optional[SubscriptionPackage]:
    """Map one provider package, or ``None`` when its period cannot be told."""

    product = raw.product
    period = detect_period(product.identifier) or detect_period(raw.identifier)
    if period is None:
        logger.warning(
            "Skipping package %s: product %s names no billing period",
            raw.identifier,
            product.identifier,
        )
        return None

    tier = detect_package_tier(product.identifier, default_tier=default_tier)
    tier_name = tier_display_name(tier)
    return SubscriptionPackage(
        id=product.identifier,
        tier=tier,
        period=period,
        price=product.price_string,
        price_per_month=price_per_month_label(product, period),
        currency_code=product.currency_code or "USD",
        title=product.title or tier_name,
        description=product.description or f"{tier_name} - {_period_display(period)}",
        provider_handle=raw,
    )


def build_offering(raw: RawOfferings, *, default_tier: Tier = Tier.ENLIGHTENMENT) -> SubscriptionOffering:
    """Build the canonical offering from the provider's current packages."""

    packages: List[SubscriptionPackage] = []
    for raw_package in raw.packages:
        package = to_subscription_package(raw_package, default_tier=default_tier)
        if package is not None:
            packages.append(package)
    logger.debug("Built offering with %s of %s packages", len(packages), len(raw.packages))
    return SubscriptionOffering(packages=tuple(packages))
