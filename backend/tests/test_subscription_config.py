from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from backend.app.entitlements import Tier
from backend.app.feature_gates import Feature
from backend.app.services.subscriptions import LocalSandboxPurchaseProvider, create_subscription_store
from backend.app.subscriptions import OptimisticCommand, load_subscription_config, run_optimistic


def test_defaults_when_environment_is_empty() -> None:
    config = load_subscription_config({})

    assert config.platform == "ios"
    assert config.api_key is None
    assert config.quota_timezone is None
    assert config.default_package_tier == Tier.ENLIGHTENMENT
    assert config.log_level == logging.INFO


def test_platform_selects_api_key() -> None:
    env = {
        "APP_PLATFORM": "Android",
        "REVENUECAT_IOS_KEY": "appl_key",
        "REVENUECAT_ANDROID_KEY": "goog_key",
        "SUBSCRIPTION_QUOTA_TIMEZONE": "Europe/Berlin",
        "SUBSCRIPTION_DEFAULT_PACKAGE_TIER": "awakening",
        "SUBSCRIPTION_LOG_LEVEL": "debug",
    }

    config = load_subscription_config(env)

    assert config.platform == "android"
    assert config.api_key == "goog_key"
    assert str(config.quota_timezone) == "Europe/Berlin"
    assert config.default_package_tier == Tier.AWAKENING
    assert config.log_level == logging.DEBUG


@pytest.mark.parametrize(
    "env",
    [
        {"APP_PLATFORM": "web"},
        {"SUBSCRIPTION_QUOTA_TIMEZONE": "Mars/Olympus"},
        {"SUBSCRIPTION_DEFAULT_PACKAGE_TIER": "free"},
        {"SUBSCRIPTION_DEFAULT_PACKAGE_TIER": "platinum"},
        {"SUBSCRIPTION_LOG_LEVEL": "chatty"},
    ],
)
def test_invalid_values_raise(env) -> None:
    with pytest.raises(ValueError):
        load_subscription_config(env)


@pytest.mark.asyncio
async def test_store_factory_returns_a_new_store_per_session() -> None:
    env = {"REVENUECAT_IOS_KEY": "appl_key"}
    clock = lambda: datetime(2025, 3, 10, tzinfo=timezone.utc)  # noqa: E731

    first = create_subscription_store(env=env, clock=clock)
    second = create_subscription_store(env=env, clock=clock)
    assert first is not second

    await first.start("user-1")

    assert first.offering is not None
    assert first.tier == Tier.FREE
    assert second.offering is None


@pytest.mark.asyncio
async def test_sandbox_purchase_grants_tier() -> None:
    provider = LocalSandboxPurchaseProvider()
    store = create_subscription_store(provider, env={"REVENUECAT_IOS_KEY": "appl_key"})
    await store.start("user-2")

    package = store.offering.find("manifest_awakening_yearly")
    result = await store.purchase_package(package)

    assert result.success is True
    assert store.tier == Tier.AWAKENING
    assert store.check_access(Feature.VISION_BOARD) is True
    assert store.is_purchasing is False


def test_optimistic_command_applies_once() -> None:
    applied = []
    command = OptimisticCommand(apply_fn=lambda: applied.append(1), compensate_fn=applied.clear)

    command.compensate()
    assert command.compensated is False

    command.apply()
    command.apply()
    assert applied == [1]


@pytest.mark.asyncio
async def test_run_optimistic_compensates_on_failure() -> None:
    counter = {"likes": 0}
    command = OptimisticCommand(
        apply_fn=lambda: counter.update(likes=counter["likes"] + 1),
        compensate_fn=lambda: counter.update(likes=counter["likes"] - 1),
    )

    async def fail() -> None:
        raise ConnectionError("offline")

    with pytest.raises(ConnectionError):
        await run_optimistic(command, fail)

    assert counter["likes"] == 0
