"""Session-scoped owner of the canonical subscription state."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone, tzinfo
from typing import Awaitable, Callable, List, Optional, Tuple, TypeVar, Union

from pydantic import BaseModel, ConfigDict

from ..entitlements import (
    CustomerInfo,
    SubscriptionInfo,
    SubscriptionSummary,
    Tier,
    describe_subscription,
    entitlement_id_for,
    resolve_subscription_info,
)
from ..feature_gates import (
    EntitlementContext,
    Feature,
    LimitKey,
    QuotaTracker,
    QuotaType,
    has_feature,
    has_meditation_access,
    has_phase_access,
    limit_for,
)
from ..purchases import (
    PurchaseProvider,
    PurchaseProviderError,
    SubscriptionOffering,
    SubscriptionPackage,
    build_offering,
)
from .results import (
    LoadResult,
    PurchaseError,
    PurchaseErrorKind,
    PurchaseResult,
    RestoreResult,
)

logger = logging.getLogger("subscriptions")

T = TypeVar("T")


class StoreSnapshot(BaseModel):
    """Immutable copy of everything the store publishes."""

    info: SubscriptionInfo
    offering: Optional[SubscriptionOffering] = None
    is_loading: bool = False
    is_loading_offerings: bool = False
    is_purchasing: bool = False
    is_restoring: bool = False
    error: Optional[str] = None

    model_config = ConfigDict(frozen=True)


StateListener = Callable[[StoreSnapshot], None]


class SubscriptionStore:
    """Coordinates load, purchase and restore against the purchase provider.

    The store is the only writer of the cached :class:`SubscriptionInfo`;
    everything else reads snapshots. Busy flags are advisory: they tell
    callers an operation is in flight but do not block a second one.
    Construct one store per signed-in session and call :meth:`dispose` at
    sign-out.
    """

    def __init__(
        self,
        provider: PurchaseProvider,
        *,
        api_key: Optional[str] = None,
        default_package_tier: Tier = Tier.ENLIGHTENMENT,
        quota_timezone: Optional[tzinfo] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._provider = provider
        self._api_key = api_key
        self._default_package_tier = default_package_tier
        self._quota_timezone = quota_timezone
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._listeners: List[StateListener] = []
        self._info = SubscriptionInfo.free()
        self._customer_info: Optional[CustomerInfo] = None
        self._offering: Optional[SubscriptionOffering] = None
        self._is_loading = False
        self._is_loading_offerings = False
        self._is_purchasing = False
        self._is_restoring = False
        self._error: Optional[str] = None

    # ----- published state -------------------------------------------------

    @property
    def info(self) -> SubscriptionInfo:
        return self._info

    @property
    def tier(self) -> Tier:
        return self._info.tier

    @property
    def is_subscribed(self) -> bool:
        return self._info.is_subscribed

    @property
    def is_in_trial(self) -> bool:
        return self._info.is_in_trial

    @property
    def customer_info(self) -> Optional[CustomerInfo]:
        return self._customer_info

    @property
    def offering(self) -> Optional[SubscriptionOffering]:
        return self._offering

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_loading_offerings(self) -> bool:
        return self._is_loading_offerings

    @property
    def is_purchasing(self) -> bool:
        return self._is_purchasing

    @property
    def is_restoring(self) -> bool:
        return self._is_restoring

    @property
    def error(self) -> Optional[str]:
        return self._error

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            info=self._info,
            offering=self._offering,
            is_loading=self._is_loading,
            is_loading_offerings=self._is_loading_offerings,
            is_purchasing=self._is_purchasing,
            is_restoring=self._is_restoring,
            error=self._error,
        )

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register ``listener`` for snapshots; returns an unsubscribe callable."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Subscription state listener %r failed", listener)

    # ----- gating reads (no I/O) -------------------------------------------

    def check_access(self, feature: Union[Feature, str]) -> bool:
        """Whether the cached tier opens ``feature``. Unknown names are denied."""

        if not isinstance(feature, Feature):
            try:
                feature = Feature(feature)
            except ValueError:
                logger.debug("Denying unknown feature %r", feature)
                return False
        return has_feature(self.tier, feature)

    def limit(self, key: LimitKey) -> int:
        return limit_for(self.tier, key)

    def has_phase_access(self, phase_number: int) -> bool:
        return has_phase_access(self.tier, phase_number)

    def has_meditation_access(self, index: int) -> bool:
        return has_meditation_access(self.tier, index)

    def context(self) -> EntitlementContext:
        return EntitlementContext(self._info)

    def summary(self) -> SubscriptionSummary:
        return describe_subscription(self._info)

    def quota_tracker(self, quota_type: QuotaType = QuotaType.AI_CHAT) -> QuotaTracker:
        """A tracker whose limit follows this store's tier as it changes."""

        return QuotaTracker(
            quota_type,
            lambda: self.tier,
            clock=self._clock,
            timezone=self._quota_timezone,
        )

    # ----- lifecycle -------------------------------------------------------

    async def start(self, user_id: Optional[str] = None) -> None:
        """Configure the provider and load subscription and offerings."""

        if not self._api_key:
            logger.warning(
                "Purchase provider API key not configured; subscriptions stay on the free tier"
            )
            return
        try:
            self._provider.configure(self._api_key, user_id)
        except Exception:
            logger.exception("Failed to configure purchase provider")
            self._error = "Failed to configure purchase provider"
            self._publish()
            return
        await asyncio.gather(self.load_subscription(), self.load_offerings())

    async def on_user_changed(self, user_id: Optional[str]) -> LoadResult:
        """Switch the provider to ``user_id`` (or anonymous) and reload."""

        if user_id:
            _, error = await self._call_provider(lambda: self._provider.login(user_id), "login")
        else:
            _, error = await self._call_provider(self._provider.logout, "logout")
        if error is not None:
            self._error = error.message
            self._publish()
            return LoadResult(success=False, error=error)

        self.reset(keep_offering=True)
        return await self.load_subscription()

    def reset(self, *, keep_offering: bool = False) -> None:
        """Restore the initial ``free/none`` state."""

        self._info = SubscriptionInfo.free()
        self._customer_info = None
        if not keep_offering:
            self._offering = None
        self._is_loading = False
        self._is_loading_offerings = False
        self._is_purchasing = False
        self._is_restoring = False
        self._error = None
        self._publish()

    def dispose(self) -> None:
        self.reset()
        self._listeners.clear()

    # ----- provider operations ---------------------------------------------

    async def load_subscription(self) -> LoadResult:
        """Fetch customer data and replace the cached subscription in one step."""

        self._is_loading = True
        self._error = None
        self._publish()
        try:
            customer_info, error = await self._call_provider(
                self._provider.get_customer_info, "load subscription"
            )
            if error is not None:
                self._error = error.message
                return LoadResult(success=False, error=error)
            self._apply_customer_info(customer_info)
            return LoadResult(success=True)
        finally:
            self._is_loading = False
            self._publish()

    async def load_offerings(self) -> LoadResult:
        """Fetch packages for sale; a failure keeps the previous offering."""

        self._is_loading_offerings = True
        self._error = None
        self._publish()
        try:
            raw_offerings, error = await self._call_provider(
                self._provider.get_offerings, "load offerings"
            )
            if error is None and raw_offerings is None:
                logger.warning("Purchase provider returned no current offering")
                error = PurchaseError(
                    kind=PurchaseErrorKind.PRODUCT_UNAVAILABLE,
                    message="No subscription offering is currently available",
                )
            if error is not None:
                self._error = error.message
                return LoadResult(success=False, error=error)
            self._offering = build_offering(raw_offerings, default_tier=self._default_package_tier)
            return LoadResult(success=True)
        finally:
            self._is_loading_offerings = False
            self._publish()

    async def purchase_package(self, package: SubscriptionPackage) -> PurchaseResult:
        """Buy ``package`` and refresh the subscription once the purchase completes."""

        unavailable = self._check_available(package)
        if unavailable is not None:
            self._error = unavailable.message
            self._publish()
            return PurchaseResult.failed(unavailable)

        self._is_purchasing = True
        self._error = None
        self._publish()
        try:
            customer_info, error = await self._call_provider(
                lambda: self._provider.purchase_package(package.provider_handle),
                "purchase",
            )
            if error is not None:
                if error.should_display:
                    self._error = error.message
                return PurchaseResult.failed(error)

            logger.info("Purchased package %s (%s %s)", package.id, package.tier.value, package.period.value)
            await self._refresh_after(customer_info)
            return PurchaseResult(success=True, customer_info=customer_info)
        finally:
            self._is_purchasing = False
            self._publish()

    async def restore_purchases(self) -> RestoreResult:
        """Restore earlier purchases; finding none is not a provider error."""

        self._is_restoring = True
        self._error = None
        self._publish()
        try:
            customer_info, error = await self._call_provider(
                self._provider.restore_purchases, "restore"
            )
            if error is not None:
                if error.should_display:
                    self._error = error.message
                return RestoreResult(success=False, error=error)

            if customer_info is None:
                customer_info = CustomerInfo()
            await self._refresh_after(customer_info)
            if not any(entitlement.is_active for entitlement in customer_info.active_entitlements.values()):
                logger.info("Restore completed but found no purchases")
                return RestoreResult(
                    success=False,
                    no_purchases_found=True,
                    customer_info=customer_info,
                    error=PurchaseError(
                        kind=PurchaseErrorKind.NO_PURCHASES_FOUND,
                        message="No previous purchases were found",
                    ),
                )
            logger.info("Restored purchases, tier is now %s", self.tier.value)
            return RestoreResult(success=True, customer_info=customer_info)
        finally:
            self._is_restoring = False
            self._publish()

    # ----- internals -------------------------------------------------------

    def _check_available(self, package: SubscriptionPackage) -> Optional[PurchaseError]:
        if package.provider_handle is None:
            return PurchaseError(
                kind=PurchaseErrorKind.PRODUCT_UNAVAILABLE,
                message=f"Package {package.id} has no provider reference",
            )
        if self._offering is not None and self._offering.find(package.id) is None:
            return PurchaseError(
                kind=PurchaseErrorKind.PRODUCT_UNAVAILABLE,
                message=f"Package {package.id} is not in the current offering",
            )
        return None

    async def _call_provider(
        self,
        call: Callable[[], Awaitable[T]],
        operation: str,
    ) -> Tuple[Optional[T], Optional[PurchaseError]]:
        try:
            return await call(), None
        except PurchaseProviderError as exc:
            if exc.user_cancelled:
                logger.info("User cancelled %s", operation)
            else:
                logger.warning("Purchase provider failed to %s: %s", operation, exc.message)
            return None, PurchaseError.from_provider(exc)
        except Exception as exc:
            logger.exception("Unexpected purchase provider failure during %s", operation)
            return None, PurchaseError.unexpected(exc)

    def _apply_customer_info(self, customer_info: Optional[CustomerInfo]) -> None:
        info = resolve_subscription_info(
            customer_info, now=self._clock(), entitlement_ids=entitlement_id_for
        )
        self._customer_info = customer_info
        self._info = info
        logger.debug("Subscription resolved to %s/%s", info.tier.value, info.status.value)

    async def _refresh_after(self, customer_info: CustomerInfo) -> None:
        # Runs strictly after the provider call returned, so the refresh sees
        # the post-purchase state.
        result = await self.load_subscription()
        if not result.success:
            logger.warning("Refresh after purchase failed; using the purchase response instead")
            self._apply_customer_info(customer_info)
            self._error = None
            self._publish()
