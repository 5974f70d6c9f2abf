from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from backend.app.entitlements import (
    CustomerInfo,
    Period,
    PeriodType,
    RawEntitlement,
    Status,
    SubscriptionInfo,
    Tier,
    describe_subscription,
    detect_period,
    parse_customer_info,
    resolve_status,
    resolve_subscription_info,
    resolve_tier,
)

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def make_entitlement(
    identifier: str,
    *,
    is_active: bool = True,
    period_type: PeriodType = PeriodType.NORMAL,
    will_renew: bool = True,
    expiration_date: Optional[datetime] = None,
    billing_issue_detected_at: Optional[datetime] = None,
    product_identifier: str = "manifest_monthly",
) -> RawEntitlement:
    return RawEntitlement(
        identifier=identifier,
        is_active=is_active,
        period_type=period_type,
        will_renew=will_renew,
        expiration_date=expiration_date,
        billing_issue_detected_at=billing_issue_detected_at,
        product_identifier=product_identifier,
    )


def customer(*entitlements: RawEntitlement) -> CustomerInfo:
    return CustomerInfo(
        app_user_id="user-1",
        active_entitlements={entitlement.identifier: entitlement for entitlement in entitlements},
    )


def test_highest_active_tier_wins() -> None:
    active = {
        "novice_path": make_entitlement("novice_path"),
        "enlightenment_path": make_entitlement("enlightenment_path"),
    }

    assert resolve_tier(active) == Tier.ENLIGHTENMENT


def test_inactive_entitlements_resolve_to_free() -> None:
    active = {
        "novice_path": make_entitlement("novice_path", is_active=False),
        "awakening_path": make_entitlement("awakening_path", is_active=False),
    }

    assert resolve_tier(active) == Tier.FREE
    assert resolve_tier({}) == Tier.FREE


def test_unknown_entitlement_ids_are_ignored() -> None:
    assert resolve_tier({"legacy_gold": make_entitlement("legacy_gold")}) == Tier.FREE


def test_custom_entitlement_lookup() -> None:
    ids = {Tier.NOVICE: "basic", Tier.AWAKENING: "plus", Tier.ENLIGHTENMENT: "max"}

    assert resolve_tier({"plus": make_entitlement("plus")}, entitlement_ids=ids.get) == Tier.AWAKENING


def test_missing_entitlement_has_no_status() -> None:
    assert resolve_status(None, now=NOW) == Status.NONE


def test_trial_outranks_billing_issue() -> None:
    entitlement = make_entitlement(
        "awakening_path",
        period_type=PeriodType.TRIAL,
        will_renew=False,
        billing_issue_detected_at=NOW - timedelta(days=1),
        expiration_date=NOW + timedelta(days=3),
    )

    assert resolve_status(entitlement, now=NOW) == Status.TRIAL


def test_renewing_entitlement_is_active() -> None:
    entitlement = make_entitlement("novice_path", will_renew=True, expiration_date=NOW - timedelta(days=1))

    assert resolve_status(entitlement, now=NOW) == Status.ACTIVE


def test_billing_issue_without_renewal_is_grace_period() -> None:
    entitlement = make_entitlement(
        "novice_path",
        will_renew=False,
        billing_issue_detected_at=NOW - timedelta(hours=2),
        expiration_date=NOW + timedelta(days=2),
    )

    assert resolve_status(entitlement, now=NOW) == Status.GRACE_PERIOD


def test_cancelled_until_expiration_then_expired() -> None:
    cancelled = make_entitlement("novice_path", will_renew=False, expiration_date=NOW + timedelta(days=5))
    lapsed = make_entitlement("novice_path", will_renew=False, expiration_date=NOW - timedelta(days=1))

    assert resolve_status(cancelled, now=NOW) == Status.CANCELLED
    assert resolve_status(lapsed, now=NOW) == Status.EXPIRED


def test_naive_now_is_treated_as_utc() -> None:
    entitlement = make_entitlement("novice_path", will_renew=False, expiration_date=NOW + timedelta(minutes=1))

    assert resolve_status(entitlement, now=NOW.replace(tzinfo=None)) == Status.CANCELLED


def test_none_customer_info_is_free() -> None:
    assert resolve_subscription_info(None, now=NOW) == SubscriptionInfo.free()


def test_free_snapshot_has_no_period() -> None:
    info = resolve_subscription_info(customer(), now=NOW)

    assert info.tier == Tier.FREE
    assert info.status == Status.NONE
    assert info.period is None
    assert info.is_subscribed is False


def test_trial_subscription_snapshot() -> None:
    trial_end = NOW + timedelta(days=7)
    info = resolve_subscription_info(
        customer(
            make_entitlement(
                "awakening_path",
                period_type=PeriodType.TRIAL,
                expiration_date=trial_end,
                product_identifier="manifest_awakening_monthly",
            )
        ),
        now=NOW,
    )

    assert info.tier == Tier.AWAKENING
    assert info.status == Status.TRIAL
    assert info.is_in_trial is True
    assert info.is_subscribed is True
    assert info.trial_end_date == trial_end
    assert info.period == Period.MONTHLY


def test_cancelled_subscription_stays_subscribed_until_expiry() -> None:
    info = resolve_subscription_info(
        customer(make_entitlement("novice_path", will_renew=False, expiration_date=NOW + timedelta(days=5))),
        now=NOW,
    )

    assert info.status == Status.CANCELLED
    assert info.is_subscribed is True
    assert info.trial_end_date is None


def test_expired_subscription_is_not_subscribed() -> None:
    info = resolve_subscription_info(
        customer(make_entitlement("novice_path", will_renew=False, expiration_date=NOW - timedelta(days=1))),
        now=NOW,
    )

    assert info.tier == Tier.NOVICE
    assert info.status == Status.EXPIRED
    assert info.is_subscribed is False


def test_non_renewing_entitlement_without_expiration_is_expired() -> None:
    info = resolve_subscription_info(
        customer(
            make_entitlement(
                "enlightenment_path",
                will_renew=False,
                expiration_date=None,
                product_identifier="manifest_enlightenment_lifetime",
            )
        ),
        now=NOW,
    )

    assert info.tier == Tier.ENLIGHTENMENT
    assert info.status == Status.EXPIRED
    assert info.is_subscribed is False
    assert info.period == Period.LIFETIME
    assert info.expiration_date is None
    assert resolve_status(make_entitlement("novice_path", will_renew=False), now=NOW) == Status.EXPIRED


@pytest.mark.parametrize(
    ("product_id", "expected"),
    [
        ("manifest_novice_monthly", Period.MONTHLY),
        ("manifest_awakening_yearly", Period.YEARLY),
        ("manifest_awakening_annual", Period.YEARLY),
        ("Manifest_Enlightenment_LIFETIME", Period.LIFETIME),
        ("manifest_special", None),
    ],
)
def test_detect_period(product_id: str, expected: Optional[Period]) -> None:
    assert detect_period(product_id) == expected


def test_unrecognised_product_falls_back_to_monthly() -> None:
    info = resolve_subscription_info(
        customer(make_entitlement("novice_path", product_identifier="promo_sku_42")),
        now=NOW,
    )

    assert info.period == Period.MONTHLY


def test_parse_customer_info_reads_provider_payload() -> None:
    payload = {
        "originalAppUserId": "user-9",
        "entitlements": {
            "active": {
                "awakening_path": {
                    "isActive": True,
                    "periodType": "normal",
                    "willRenew": True,
                    "expirationDate": "2025-04-10T12:00:00Z",
                    "productIdentifier": "manifest_awakening_yearly",
                }
            }
        },
    }

    info = parse_customer_info(payload)

    assert info.app_user_id == "user-9"
    assert info.has_entitlement("awakening_path") is True
    entitlement = info.active_entitlements["awakening_path"]
    assert entitlement.identifier == "awakening_path"
    assert entitlement.expiration_date == datetime(2025, 4, 10, 12, 0, tzinfo=timezone.utc)


def test_unknown_period_type_is_read_as_normal() -> None:
    payload = {
        "entitlements": {
            "active": {
                "awakening_path": {
                    "isActive": True,
                    "periodType": "prepaid",
                    "willRenew": True,
                    "productIdentifier": "manifest_awakening_monthly",
                }
            }
        }
    }

    info = parse_customer_info(payload)

    assert info.active_entitlements["awakening_path"].period_type == PeriodType.NORMAL
    assert resolve_subscription_info(info, now=NOW).tier == Tier.AWAKENING


def test_parse_customer_info_drops_malformed_records() -> None:
    payload = {
        "entitlements": {
            "active": {
                "enlightenment_path": "garbage",
                "awakening_path": {"isActive": "sometimes", "productIdentifier": "x"},
                "novice_path": {"isActive": True, "willRenew": True, "productIdentifier": "manifest_novice_monthly"},
            }
        }
    }

    info = parse_customer_info(payload)

    assert set(info.active_entitlements) == {"novice_path"}
    assert resolve_subscription_info(info, now=NOW).tier == Tier.NOVICE


@pytest.mark.parametrize("payload", [None, [], "nope", {"entitlements": None}, {"entitlements": {"active": 3}}])
def test_parse_customer_info_never_raises(payload) -> None:
    info = parse_customer_info(payload)

    assert info.active_entitlements == {}
    assert resolve_subscription_info(info, now=NOW) == SubscriptionInfo.free()


def test_describe_subscription_labels() -> None:
    info = resolve_subscription_info(
        customer(make_entitlement("awakening_path", product_identifier="manifest_awakening_yearly")),
        now=NOW,
    )

    summary = describe_subscription(info)

    assert summary.tier_name == "Awakening Path"
    assert summary.status_label == "Active"
    assert summary.period_label == "Annual"
    assert describe_subscription(SubscriptionInfo.free()).status_label == "No Subscription"


def test_tiers_are_ordered() -> None:
    assert Tier.FREE < Tier.NOVICE < Tier.AWAKENING < Tier.ENLIGHTENMENT
    assert Tier.descending()[0] == Tier.ENLIGHTENMENT
