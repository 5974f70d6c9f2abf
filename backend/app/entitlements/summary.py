"""Display-oriented summary of the resolved subscription."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .catalog import period_label, status_label, tier_display_name
from .models import Period, Status, SubscriptionInfo, Tier


class SubscriptionSummary(BaseModel):
    tier: Tier
    tier_name: str
    status: Status
    status_label: str
    is_subscribed: bool
    is_in_trial: bool
    period: Optional[Period] = None
    period_label: Optional[str] = None
    trial_end_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    will_renew: bool = False

    model_config = ConfigDict(frozen=True)


def describe_subscription(info: SubscriptionInfo) -> SubscriptionSummary:
    """Attach human readable labels to a subscription snapshot."""

    return SubscriptionSummary(
        tier=info.tier,
        tier_name=tier_display_name(info.tier),
        status=info.status,
        status_label=status_label(info.status),
        is_subscribed=info.is_subscribed,
        is_in_trial=info.is_in_trial,
        period=info.period,
        period_label=period_label(info.period),
        trial_end_date=info.trial_end_date,
        expiration_date=info.expiration_date,
        will_renew=info.will_renew,
    )
