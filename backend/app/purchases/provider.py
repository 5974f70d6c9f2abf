"""Boundary to the third-party purchase provider."""
from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from ..entitlements import CustomerInfo
from .models import RawOfferings, RawPackage


class PurchaseProviderError(Exception):
    """Failure reported by the purchase provider.

    ``message`` is the provider's own text and is shown to users verbatim.
    """

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        user_cancelled: bool = False,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.user_cancelled = user_cancelled
        self.payload = dict(payload or {})


class PurchaseProvider(Protocol):
    """External purchase SDK consumed by the subscription store."""

    def configure(self, api_key: str, user_id: Optional[str] = None) -> None:
        """Initialise the SDK, optionally bound to an app user id."""

    async def login(self, user_id: str) -> None:
        ...

    async def logout(self) -> None:
        ...

    async def get_offerings(self) -> Optional[RawOfferings]:
        """Return the current offering, or ``None`` when none is configured."""

    async def purchase_package(self, package: RawPackage) -> CustomerInfo:
        """Buy ``package``; raises :class:`PurchaseProviderError` on failure or cancel."""

    async def restore_purchases(self) -> CustomerInfo:
        ...

    async def get_customer_info(self) -> CustomerInfo:
        ...
