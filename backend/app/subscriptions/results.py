"""Result values returned by subscription store operations."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..entitlements import CustomerInfo
from ..purchases import PurchaseProviderError


class PurchaseErrorKind(str, Enum):
    USER_CANCELLED = "user_cancelled"
    PROVIDER_ERROR = "provider_error"
    PRODUCT_UNAVAILABLE = "product_unavailable"
    NO_PURCHASES_FOUND = "no_purchases_found"


class PurchaseError(BaseModel):
    """Failure detail; ``message`` is the provider's text, untranslated."""

    kind: PurchaseErrorKind
    message: str
    code: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @property
    def should_display(self) -> bool:
        """Whether the UI should show an error banner for this failure."""

        return self.kind not in {PurchaseErrorKind.USER_CANCELLED, PurchaseErrorKind.NO_PURCHASES_FOUND}

    @classmethod
    def from_provider(cls, exc: PurchaseProviderError) -> "PurchaseError":
        kind = PurchaseErrorKind.USER_CANCELLED if exc.user_cancelled else PurchaseErrorKind.PROVIDER_ERROR
        return cls(kind=kind, message=exc.message, code=exc.code, payload=exc.payload)

    @classmethod
    def unexpected(cls, exc: Exception) -> "PurchaseError":
        return cls(kind=PurchaseErrorKind.PROVIDER_ERROR, message=str(exc) or type(exc).__name__)


class LoadResult(BaseModel):
    success: bool
    error: Optional[PurchaseError] = None

    model_config = ConfigDict(frozen=True)


class PurchaseResult(BaseModel):
    success: bool
    user_cancelled: bool = False
    customer_info: Optional[CustomerInfo] = None
    error: Optional[PurchaseError] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def failed(cls, error: PurchaseError) -> "PurchaseResult":
        return cls(
            success=False,
            user_cancelled=error.kind == PurchaseErrorKind.USER_CANCELLED,
            error=error,
        )


class RestoreResult(BaseModel):
    success: bool
    no_purchases_found: bool = False
    customer_info: Optional[CustomerInfo] = None
    error: Optional[PurchaseError] = None

    model_config = ConfigDict(frozen=True)
