"""Application wiring for the subscription store."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, Mapping, Optional

from dotenv import load_dotenv

from ..entitlements import (
    CustomerInfo,
    Period,
    PeriodType,
    RawEntitlement,
    Tier,
    detect_period,
    entitlement_id_for,
)
from ..purchases import PurchaseProvider, PurchaseProviderError, RawOfferings, RawPackage, RawProduct
from ..purchases.offerings import detect_package_tier
from ..subscriptions import (
    StoreSnapshot,
    SubscriptionConfig,
    SubscriptionStore,
    load_subscription_config,
)


logger = logging.getLogger("subscriptions")

_SANDBOX_PRODUCTS = (
    RawProduct(identifier="manifest_novice_monthly", price=4.99, price_string="$4.99", title="Novice"),
    RawProduct(identifier="manifest_awakening_monthly", price=9.99, price_string="$9.99", title="Awakening"),
    RawProduct(identifier="manifest_awakening_yearly", price=59.99, price_string="$59.99", title="Awakening"),
    RawProduct(
        identifier="manifest_enlightenment_monthly", price=19.99, price_string="$19.99", title="Enlightenment"
    ),
    RawProduct(
        identifier="manifest_enlightenment_yearly", price=99.99, price_string="$99.99", title="Enlightenment"
    ),
    RawProduct(
        identifier="manifest_enlightenment_lifetime",
        price=199.99,
        price_string="$199.99",
        title="Enlightenment",
    ),
)

_SANDBOX_TERMS = {
    Period.MONTHLY: timedelta(days=30),
    Period.YEARLY: timedelta(days=365),
}


class LoggingStateListener:
    """Listener that records published subscription changes to the application logger."""

    def __init__(self) -> None:
        self._last: Optional[StoreSnapshot] = None

    def __call__(self, snapshot: StoreSnapshot) -> None:
        previous = self._last
        self._last = snapshot
        if previous is not None and previous.info == snapshot.info and previous.error == snapshot.error:
            return
        logger.info(
            "Subscription state tier=%s status=%s subscribed=%s error=%s",
            snapshot.info.tier.value,
            snapshot.info.status.value,
            snapshot.info.is_subscribed,
            snapshot.error,
        )


class LocalSandboxPurchaseProvider:
    """In-memory provider for local development and tests.

    Purchases grant the entitlement of the tier named in the product id and
    renew automatically; lifetime products carry no expiration date.
    """

    def __init__(
        self,
        products: Iterable[RawProduct] = _SANDBOX_PRODUCTS,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._products = tuple(products)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._entitlements: Dict[str, Dict[str, RawEntitlement]] = {}
        self._api_key: Optional[str] = None
        self._user_id = "$anonymous"

    def configure(self, api_key: str, user_id: Optional[str] = None) -> None:
        self._api_key = api_key
        self._user_id = user_id or "$anonymous"
        logger.debug("Sandbox purchase provider configured for %s", self._user_id)

    def _require_configured(self) -> None:
        if self._api_key is None:
            raise PurchaseProviderError("Purchase provider is not configured", code="not_configured")

    async def login(self, user_id: str) -> None:
        self._require_configured()
        self._user_id = user_id

    async def logout(self) -> None:
        self._require_configured()
        self._user_id = "$anonymous"

    async def get_offerings(self) -> Optional[RawOfferings]:
        self._require_configured()
        if not self._products:
            return None
        return RawOfferings(
            packages=tuple(RawPackage(identifier=product.identifier, product=product) for product in self._products)
        )

    async def purchase_package(self, package: RawPackage) -> CustomerInfo:
        self._require_configured()
        product_id = package.product.identifier
        if all(product.identifier != product_id for product in self._products):
            raise PurchaseProviderError(f"Product {product_id} is not for sale", code="product_not_available")

        tier = detect_package_tier(product_id, default_tier=Tier.ENLIGHTENMENT)
        entitlement_id = entitlement_id_for(tier)
        period = detect_period(product_id) or Period.MONTHLY
        term = _SANDBOX_TERMS.get(period)
        expiration = self._clock() + term if term is not None else None
        self._entitlements.setdefault(self._user_id, {})[entitlement_id] = RawEntitlement(
            identifier=entitlement_id,
            is_active=True,
            period_type=PeriodType.NORMAL,
            will_renew=term is not None,
            expiration_date=expiration,
            product_identifier=product_id,
        )
        return self._customer_info()

    async def restore_purchases(self) -> CustomerInfo:
        self._require_configured()
        return self._customer_info()

    async def get_customer_info(self) -> CustomerInfo:
        self._require_configured()
        return self._customer_info()

    def _customer_info(self) -> CustomerInfo:
        now = self._clock()
        active = {
            entitlement_id: entitlement
            for entitlement_id, entitlement in self._entitlements.get(self._user_id, {}).items()
            if entitlement.expiration_date is None or entitlement.expiration_date > now
        }
        return CustomerInfo(app_user_id=self._user_id, active_entitlements=active)


def create_subscription_store(
    provider: Optional[PurchaseProvider] = None,
    *,
    config: Optional[SubscriptionConfig] = None,
    env: Optional[Mapping[str, str]] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> SubscriptionStore:
    """Build a store for one signed-in session.

    Each call returns a new store; callers own its lifetime and dispose it at
    sign-out.
    """

    if config is None:
        if env is None:
            load_dotenv()
        config = load_subscription_config(env)
    logging.getLogger("subscriptions").setLevel(config.log_level)
    logging.getLogger("purchases").setLevel(config.log_level)

    store = SubscriptionStore(
        provider or LocalSandboxPurchaseProvider(clock=clock),
        api_key=config.api_key,
        default_package_tier=config.default_package_tier,
        quota_timezone=config.quota_timezone,
        clock=clock,
    )
    store.subscribe(LoggingStateListener())
    return store


__all__ = ["LocalSandboxPurchaseProvider", "LoggingStateListener", "create_subscription_store"]
