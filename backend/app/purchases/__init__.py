"""Purchase provider boundary and the offers it sells."""

from ..entitlements import CustomerInfo, RawEntitlement, parse_customer_info
from .models import RawOfferings, RawPackage, RawProduct, SubscriptionOffering, SubscriptionPackage
from .offerings import (
    build_offering,
    detect_package_tier,
    format_amount,
    price_per_month_label,
    to_subscription_package,
)
from .provider import PurchaseProvider, PurchaseProviderError

__all__ = [
    "CustomerInfo",
    "PurchaseProvider",
    "PurchaseProviderError",
    "RawOfferings",
    "RawPackage",
    "RawEntitlement",
    "RawProduct",
    "SubscriptionOffering",
    "SubscriptionPackage",
    "build_offering",
    "detect_package_tier",
    "format_amount",
    "parse_customer_info",
    "price_per_month_label",
    "to_subscription_package",
]
