from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from unispace.app.config import load_community_config
from unispace.app.entitlements import (
    PLAN_CATALOG,
    TRIAL_BUNDLE,
    Account,
    ActionType,
    EntitlementService,
    PlanKey,
    UserRole,
    days_since_join,
    get_plan_definition,
    has_access,
    price_for,
)

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def _account(plan: PlanKey = PlanKey.FREE, *, joined_days_ago: float = 0, **kwargs) -> Account:
    return Account(id="u1", plan=plan, joined_at=NOW - timedelta(days=joined_days_ago), **kwargs)


@pytest.fixture
def entitlement_service() -> EntitlementService:
    return EntitlementService(trial_days=7, clock=lambda: NOW)


def test_free_account_within_trial_has_access():
    assert has_access(_account(joined_days_ago=0), NOW) is True
    assert has_access(_account(joined_days_ago=7), NOW) is True


def test_free_account_after_trial_loses_access():
    assert has_access(_account(joined_days_ago=7.5), NOW) is False
    assert has_access(_account(joined_days_ago=30), NOW) is False


@pytest.mark.parametrize("plan", [plan for plan in PlanKey if plan != PlanKey.FREE])
def test_paid_plans_have_access_regardless_of_join_date(plan):
    assert has_access(_account(plan, joined_days_ago=400), NOW) is True


def test_clock_skew_uses_absolute_difference():
    future_join = _account(joined_days_ago=-3)
    assert days_since_join(future_join, NOW) == 3
    assert has_access(future_join, NOW) is True

    far_future_join = _account(joined_days_ago=-10)
    assert has_access(far_future_join, NOW) is False


def test_days_since_join_rounds_up_partial_days():
    assert days_since_join(_account(joined_days_ago=0.1), NOW) == 1
    assert days_since_join(_account(joined_days_ago=0), NOW) == 0


def test_resolve_applies_trial_bundle_only_inside_trial(entitlement_service):
    in_trial = _account(joined_days_ago=2)
    expired = _account(joined_days_ago=10)

    assert entitlement_service.resolve(in_trial) == TRIAL_BUNDLE
    assert entitlement_service.resolve(expired).limit_for(ActionType.UPLOAD) == 0
    assert entitlement_service.in_trial(expired) is False


def test_catalog_uses_explicit_bundles_not_name_matching():
    study_premium = get_plan_definition(PlanKey.STUDY_PREMIUM).bundle
    merchant_basic = get_plan_definition(PlanKey.MERCHANT_BASIC).bundle
    study_basic = get_plan_definition(PlanKey.STUDY_BASIC).bundle

    assert study_premium.limit_for(ActionType.AI) is None
    assert study_premium.allows(ActionType.MARKET_POST) is False
    assert merchant_basic.limit_for(ActionType.MARKET_POST) == 3
    assert merchant_basic.limit_for(ActionType.QUIZ) == study_basic.limit_for(ActionType.QUIZ) == 3
    assert set(PLAN_CATALOG) == set(PlanKey)


def test_guest_prices_are_doubled():
    assert price_for(PlanKey.STUDY_BASIC, UserRole.STUDENT) == 1000
    assert price_for(PlanKey.STUDY_BASIC, UserRole.GUEST) == 2000
    assert price_for(PlanKey.MERCHANT_PREMIUM, UserRole.GUEST, guest_multiplier=3) == 45000


def test_free_plan_is_not_purchasable():
    with pytest.raises(ValueError):
        price_for(PlanKey.FREE, UserRole.STUDENT)


def test_naive_timestamps_are_treated_as_utc():
    account = Account(id="u9", joined_at=datetime(2025, 3, 9, 12, 0))
    assert account.joined_at.tzinfo is not None
    assert days_since_join(account, NOW) == 1


def test_load_community_config_reads_environment():
    config = load_community_config(
        {"TRIAL_DAYS": "14", "BAN_FINE_AMOUNT": "7500", "API_KEY": "secret", "GEMINI_MODEL": ""}
    )

    assert config.trial_days == 14
    assert config.ban_fine_amount == 7500
    assert config.gemini_api_key == "secret"
    assert config.gemini_model == "gemini-2.5-flash"
    assert config.ban_report_threshold == 3


def test_load_community_config_rejects_bad_integers():
    with pytest.raises(ValueError):
        load_community_config({"TRIAL_DAYS": "seven"})
