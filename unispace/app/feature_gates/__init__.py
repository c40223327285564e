"""Feature gating utilities coordinating entitlement enforcement."""
from .context import EntitlementContext
from .enforcement import require_access, require_not_banned
from .exceptions import (
    AccountBannedError,
    ExternalServiceError,
    FeatureGateError,
    InsufficientFundsError,
    PlanIneligibleError,
    QuotaExceededError,
    TrialExpiredError,
)
from .quota import DenialReason, QuotaDecision, QuotaGate, evaluate_action_quota, roll_usage_window

__all__ = [
    "AccountBannedError",
    "DenialReason",
    "EntitlementContext",
    "ExternalServiceError",
    "FeatureGateError",
    "InsufficientFundsError",
    "PlanIneligibleError",
    "QuotaDecision",
    "QuotaExceededError",
    "QuotaGate",
    "TrialExpiredError",
    "evaluate_action_quota",
    "require_access",
    "require_not_banned",
    "roll_usage_window",
]
