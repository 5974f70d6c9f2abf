"""Convenience wrapper around a subscription snapshot for feature gating."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Union

from ..entitlements import SubscriptionInfo, Tier, limits_for
from .access import (
    Feature,
    Gate,
    LimitKey,
    access,
    has_feature,
    has_meditation_access,
    has_phase_access,
    limit_for,
    recommend_upgrade,
)
from .enforcement import require_feature


@dataclass(frozen=True)
class EntitlementContext:
    """Facade exposing gating-centric helpers for one subscription snapshot."""

    info: SubscriptionInfo

    @property
    def tier(self) -> Tier:
        return self.info.tier

    @property
    def feature_flags(self) -> Dict[str, Union[int, bool]]:
        flags: Dict[str, Union[int, bool]] = {
            f"feature.{feature.value}": has_feature(self.tier, feature) for feature in Feature
        }
        flags.update(limits_for(self.tier).to_flags())
        return flags

    def has(self, feature: Feature) -> bool:
        return has_feature(self.tier, feature)

    def limit(self, key: LimitKey) -> int:
        return limit_for(self.tier, key)

    def access(self, gate: Gate) -> Union[bool, int]:
        return access(self.tier, gate)

    def require(self, feature: Feature, *, error_code: str = "entitlement_required") -> None:
        """Ensure ``feature`` is unlocked for this snapshot."""

        require_feature(self.tier, feature, error_code=error_code)

    def can_open_phase(self, phase_number: int) -> bool:
        return has_phase_access(self.tier, phase_number)

    def can_play_meditation(self, index: int) -> bool:
        return has_meditation_access(self.tier, index)

    def upgrade_for(self, gate: Gate) -> Optional[Tier]:
        return recommend_upgrade(self.tier, gate)
