"""Session subscription state, purchase flows, and their configuration."""

from .commands import OptimisticCommand, run_optimistic
from .config import SubscriptionConfig, load_subscription_config
from .results import LoadResult, PurchaseError, PurchaseErrorKind, PurchaseResult, RestoreResult
from .store import StateListener, StoreSnapshot, SubscriptionStore

__all__ = [
    "LoadResult",
    "OptimisticCommand",
    "PurchaseError",
    "PurchaseErrorKind",
    "PurchaseResult",
    "RestoreResult",
    "StateListener",
    "StoreSnapshot",
    "SubscriptionConfig",
    "SubscriptionStore",
    "load_subscription_config",
    "run_optimistic",
]
