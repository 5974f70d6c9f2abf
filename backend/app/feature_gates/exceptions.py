"""Exceptions raised when a feature gate or quota denies an action."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from fastapi import HTTPException, status


@dataclass
class FeatureGateError(Exception):
    """A gating failure carrying enough detail to render an upgrade prompt."""

    code: str
    message: str
    status_code: int = status.HTTP_403_FORBIDDEN
    detail: Optional[Mapping[str, Any]] = None

    def __post_init__(self) -> None:
        base_detail: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.detail:
            base_detail.update(self.detail)
        object.__setattr__(self, "_payload", base_detail)
        super().__init__(self.message)

    @property
    def payload(self) -> Mapping[str, Any]:
        """Serialized representation suitable for JSON responses."""

        return self._payload

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=dict(self.payload))


class QuotaExceededError(FeatureGateError):
    """Raised when a quota-gated action is attempted with no allowance left."""

    def __init__(self, quota: str, used: int, limit: int) -> None:
        super().__init__(
            code="quota_exceeded",
            message=f"Quota exceeded for {quota}: {used}/{limit}",
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={"quota": quota, "used": used, "limit": limit},
        )
        self.quota = quota
        self.used = used
        self.limit = limit
