"""Purchasable offers, both provider-shaped and canonical."""
from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..entitlements import Period, Tier


class RawProduct(BaseModel):
    """Store product attached to a provider package."""

    identifier: str
    price: float = Field(ge=0)
    price_string: str
    currency_code: str = "USD"
    title: str = ""
    description: str = ""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    @field_validator("currency_code")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.upper()


class RawPackage(BaseModel):
    """Provider package; handed back to the provider untouched on purchase."""

    identifier: str
    product: RawProduct

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class RawOfferings(BaseModel):
    packages: Sequence[RawPackage] = Field(default_factory=tuple)

    model_config = ConfigDict(frozen=True)


class SubscriptionPackage(BaseModel):
    """A purchasable offer mapped onto internal tier and period."""

    id: str
    tier: Tier
    period: Period
    price: str
    price_per_month: str
    currency_code: str
    title: str
    description: str
    provider_handle: Any = Field(default=None, exclude=True, repr=False)

    model_config = ConfigDict(frozen=True)


class SubscriptionOffering(BaseModel):
    """Every package currently for sale."""

    packages: Tuple[SubscriptionPackage, ...] = ()

    model_config = ConfigDict(frozen=True)

    def find(self, package_id: str) -> Optional[SubscriptionPackage]:
        for package in self.packages:
            if package.id == package_id:
                return package
        return None
