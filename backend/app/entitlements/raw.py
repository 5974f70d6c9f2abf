"""Provider-shaped entitlement records consumed by the resolver."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger("purchases")


class PeriodType(str, Enum):
    """Provider period classification of an entitlement."""

    TRIAL = "trial"
    NORMAL = "normal"
    INTRO = "intro"


class RawEntitlement(BaseModel):
    """One entitlement record exactly as reported by the purchase provider."""

    identifier: str = ""
    is_active: bool = False
    period_type: PeriodType = PeriodType.NORMAL
    will_renew: bool = False
    expiration_date: Optional[datetime] = None
    billing_issue_detected_at: Optional[datetime] = None
    product_identifier: str = ""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    @field_validator("period_type", mode="before")
    @classmethod
    def _unknown_period_is_normal(cls, value: Any) -> Any:
        if isinstance(value, str) and value.lower() not in {member.value for member in PeriodType}:
            logger.warning("Treating unknown period type %r as normal", value)
            return PeriodType.NORMAL
        if isinstance(value, str):
            return value.lower()
        return value

    @field_validator("expiration_date", "billing_issue_detected_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class CustomerInfo(BaseModel):
    """Snapshot of a customer's active entitlements."""

    app_user_id: Optional[str] = None
    active_entitlements: Dict[str, RawEntitlement] = Field(default_factory=dict)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def has_entitlement(self, entitlement_id: str) -> bool:
        entitlement = self.active_entitlements.get(entitlement_id)
        return bool(entitlement and entitlement.is_active)


def parse_customer_info(payload: Optional[Mapping[str, Any]]) -> CustomerInfo:
    """Build :class:`CustomerInfo` from a provider payload without raising.

    The payload follows the provider SDK shape::

        {"originalAppUserId": "...", "entitlements": {"active": {id: {...}}}}

    Entitlements that fail validation are dropped one by one, so a single bad
    record never grants or blocks access to the others.
    """

    if not isinstance(payload, Mapping):
        if payload is not None:
            logger.warning("Ignoring customer info payload of type %s", type(payload).__name__)
        return CustomerInfo()

    entitlements = payload.get("entitlements")
    active = entitlements.get("active") if isinstance(entitlements, Mapping) else None
    if not isinstance(active, Mapping):
        active = {}

    parsed: Dict[str, RawEntitlement] = {}
    for entitlement_id, record in active.items():
        if not isinstance(record, Mapping):
            logger.warning("Dropping malformed entitlement %s", entitlement_id)
            continue
        try:
            parsed[str(entitlement_id)] = RawEntitlement.model_validate(
                {"identifier": str(entitlement_id), **record}
            )
        except ValidationError as exc:
            logger.warning(
                "Dropping entitlement %s that failed validation: %s",
                entitlement_id,
                exc.errors(include_url=False),
            )

    app_user_id = payload.get("originalAppUserId") or payload.get("appUserId")
    return CustomerInfo(
        app_user_id=str(app_user_id) if app_user_id else None,
        active_entitlements=parsed,
    )
