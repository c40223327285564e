"""Entitlements domain models and services."""

from .catalog import PLAN_CATALOG, TRIAL_BUNDLE, PlanDefinition, get_plan_definition, price_for
from .models import (
    COUNTER_FIELDS,
    Account,
    ActionType,
    FeatureBundle,
    PlanCategory,
    PlanKey,
    UserRole,
)
from .service import EntitlementService, days_since_join, has_access

__all__ = [
    "PLAN_CATALOG",
    "TRIAL_BUNDLE",
    "PlanDefinition",
    "get_plan_definition",
    "price_for",
    "COUNTER_FIELDS",
    "Account",
    "ActionType",
    "FeatureBundle",
    "PlanCategory",
    "PlanKey",
    "UserRole",
    "EntitlementService",
    "days_since_join",
    "has_access",
]
