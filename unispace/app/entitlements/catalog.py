"""Static catalog definitions for subscription plans."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from .models import FeatureBundle, PlanCategory, PlanKey, UserRole


@dataclass(frozen=True)
class PlanDefinition:
    """Describes a subscription plan and its entitlement mapping."""

    key: PlanKey
    display_name: str
    category: PlanCategory
    base_price: int
    bundle: FeatureBundle

    @property
    def purchasable(self) -> bool:
        return self.category != PlanCategory.FREE


FREE_BUNDLE = FeatureBundle()

# Granted to FREE accounts while the trial window is open.
TRIAL_BUNDLE = FeatureBundle(upload_limit=1, quiz_limit=1)

STUDY_BASIC_BUNDLE = FeatureBundle(upload_limit=1, quiz_limit=3, ai_limit=0)
STUDY_STANDARD_BUNDLE = FeatureBundle(upload_limit=5, quiz_limit=15, ai_limit=10)
STUDY_PREMIUM_BUNDLE = FeatureBundle(upload_limit=None, quiz_limit=None, ai_limit=None)

MERCHANT_BASIC_BUNDLE = FeatureBundle(
    upload_limit=1, quiz_limit=3, ai_limit=0, market_post_limit=3, is_merchant=True
)
MERCHANT_STANDARD_BUNDLE = FeatureBundle(
    upload_limit=5, quiz_limit=15, ai_limit=10, market_post_limit=15, is_merchant=True
)
MERCHANT_PREMIUM_BUNDLE = FeatureBundle(
    upload_limit=None,
    quiz_limit=None,
    ai_limit=None,
    market_post_limit=None,
    is_merchant=True,
)

PLAN_CATALOG: Dict[PlanKey, PlanDefinition] = {
    PlanKey.FREE: PlanDefinition(
        key=PlanKey.FREE,
        display_name="Free",
        category=PlanCategory.FREE,
        base_price=0,
        bundle=FREE_BUNDLE,
    ),
    PlanKey.STUDY_BASIC: PlanDefinition(
        key=PlanKey.STUDY_BASIC,
        display_name="Study Basic",
        category=PlanCategory.STUDY,
        base_price=1000,
        bundle=STUDY_BASIC_BUNDLE,
    ),
    PlanKey.STUDY_STANDARD: PlanDefinition(
        key=PlanKey.STUDY_STANDARD,
        display_name="Study Standard",
        category=PlanCategory.STUDY,
        base_price=2500,
        bundle=STUDY_STANDARD_BUNDLE,
    ),
    PlanKey.STUDY_PREMIUM: PlanDefinition(
        key=PlanKey.STUDY_PREMIUM,
        display_name="Study Premium",
        category=PlanCategory.STUDY,
        base_price=5000,
        bundle=STUDY_PREMIUM_BUNDLE,
    ),
    PlanKey.MERCHANT_BASIC: PlanDefinition(
        key=PlanKey.MERCHANT_BASIC,
        display_name="Merchant Basic",
        category=PlanCategory.MERCHANT,
        base_price=3000,
        bundle=MERCHANT_BASIC_BUNDLE,
    ),
    PlanKey.MERCHANT_STANDARD: PlanDefinition(
        key=PlanKey.MERCHANT_STANDARD,
        display_name="Merchant Standard",
        category=PlanCategory.MERCHANT,
        base_price=7000,
        bundle=MERCHANT_STANDARD_BUNDLE,
    ),
    PlanKey.MERCHANT_PREMIUM: PlanDefinition(
        key=PlanKey.MERCHANT_PREMIUM,
        display_name="Merchant Premium",
        category=PlanCategory.MERCHANT,
        base_price=15000,
        bundle=MERCHANT_PREMIUM_BUNDLE,
    ),
}


def get_plan_definition(plan_key: PlanKey) -> PlanDefinition:
    """Return a plan definition, raising if unsupported."""

    try:
        return PLAN_CATALOG[plan_key]
    except KeyError as exc:  # pragma: no cover - guarded by static catalog
        raise KeyError(f"Unknown plan key: {plan_key}") from exc


def price_for(plan_key: PlanKey, role: UserRole, *, guest_multiplier: int = 2) -> int:
    """Monthly price of a plan for the given role. Guests pay a multiple."""

    definition = get_plan_definition(plan_key)
    if not definition.purchasable:
        raise ValueError(f"Plan {plan_key.value} cannot be purchased")
    multiplier = guest_multiplier if role == UserRole.GUEST else 1
    return definition.base_price * multiplier
