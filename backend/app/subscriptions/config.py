"""Subscription configuration helpers."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import tzinfo
from typing import Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..entitlements import Tier

_PLATFORMS = {"ios", "android"}


@dataclass(frozen=True)
class SubscriptionConfig:
    """Configuration for the purchase provider and quota windows."""

    platform: str
    ios_api_key: Optional[str]
    android_api_key: Optional[str]
    quota_timezone: Optional[tzinfo]
    default_package_tier: Tier
    log_level: int

    @property
    def api_key(self) -> Optional[str]:
        """Provider key for the running platform."""

        if self.platform == "ios":
            return self.ios_api_key
        return self.android_api_key


def _to_log_level(value: Optional[str], *, default: int) -> int:
    if value is None or value.strip() == "":
        return default
    level = logging.getLevelName(value.strip().upper())
    if isinstance(level, int):
        return level
    raise ValueError(f"Unknown log level {value!r}")


def _to_timezone(value: Optional[str]) -> Optional[tzinfo]:
    if value is None or value.strip() == "":
        return None
    try:
        return ZoneInfo(value.strip())
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown time zone {value!r}") from exc


def _to_tier(value: Optional[str], *, default: Tier) -> Tier:
    if value is None or value.strip() == "":
        return default
    try:
        tier = Tier(value.strip().lower())
    except ValueError as exc:
        raise ValueError(f"Unknown subscription tier {value!r}") from exc
    if tier == Tier.FREE:
        raise ValueError("default package tier cannot be free")
    return tier


def load_subscription_config(env: Optional[Mapping[str, str]] = None) -> SubscriptionConfig:
    """Load :class:`SubscriptionConfig` from environment variables."""

    env_mapping = os.environ if env is None else env

    platform = (env_mapping.get("APP_PLATFORM") or "ios").strip().lower()
    if platform not in _PLATFORMS:
        raise ValueError(f"APP_PLATFORM must be one of {sorted(_PLATFORMS)}, got {platform!r}")

    return SubscriptionConfig(
        platform=platform,
        ios_api_key=env_mapping.get("REVENUECAT_IOS_KEY") or None,
        android_api_key=env_mapping.get("REVENUECAT_ANDROID_KEY") or None,
        quota_timezone=_to_timezone(env_mapping.get("SUBSCRIPTION_QUOTA_TIMEZONE")),
        default_package_tier=_to_tier(
            env_mapping.get("SUBSCRIPTION_DEFAULT_PACKAGE_TIER"), default=Tier.ENLIGHTENMENT
        ),
        log_level=_to_log_level(env_mapping.get("SUBSCRIPTION_LOG_LEVEL"), default=logging.INFO),
    )
