"""Convenience wrapper around an account's resolved entitlements."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Union

from ..entitlements import Account, ActionType, EntitlementService, FeatureBundle
from .enforcement import require_access, require_not_banned
from .quota import QuotaDecision, evaluate_action_quota, roll_usage_window


@dataclass(frozen=True)
class EntitlementContext:
    """Facade exposing gating-centric helpers for one account at one instant."""

    account: Account
    bundle: FeatureBundle
    now: datetime
    has_access: bool
    in_trial: bool
    trial_days: int = 7

    @classmethod
    def build(
        cls,
        account: Account,
        entitlements: EntitlementService,
        now: Optional[datetime] = None,
    ) -> "EntitlementContext":
        moment = now or entitlements.now()
        account = roll_usage_window(account, moment, window=entitlements.usage_window)
        return cls(
            account=account,
            bundle=entitlements.resolve(account, moment),
            now=moment,
            has_access=entitlements.has_access(account, moment),
            in_trial=entitlements.in_trial(account, moment),
            trial_days=entitlements.trial_days,
        )

    @property
    def feature_flags(self) -> Dict[str, Union[int, bool, None]]:
        return self.bundle.to_flags()

    @property
    def plan(self):
        return self.account.plan

    def evaluate(self, action: ActionType) -> QuotaDecision:
        """Inspect whether an action would pass the gate right now."""

        return evaluate_action_quota(self.account, action, self.bundle)

    def remaining(self, action: ActionType) -> Optional[int]:
        return self.evaluate(action).remaining

    def require_usable(self) -> None:
        """Raise unless the account is unbanned and has trial or paid access."""

        require_not_banned(self.account)
        require_access(self.account, self.now, trial_days=self.trial_days)
