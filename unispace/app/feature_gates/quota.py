"""Weekly action quota evaluation and the check-and-increment gate."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterator, Optional

from ..entitlements.models import COUNTER_FIELDS, Account, ActionType, FeatureBundle
from ..entitlements.service import EntitlementService
from .exceptions import FeatureGateError, PlanIneligibleError, QuotaExceededError

if TYPE_CHECKING:  # pragma: no cover
    from ..accounts.store import AccountRepository

logger = logging.getLogger(__name__)

_DEFAULT_WINDOW = timedelta(days=7)

_LIMIT_MESSAGES: Dict[ActionType, str] = {
    ActionType.UPLOAD: "Weekly upload limit reached. Upgrade for more.",
    ActionType.QUIZ: "Weekly quiz session limit reached. Upgrade for more.",
    ActionType.AI: "Weekly AI query limit reached. Upgrade for more.",
    ActionType.MARKET_POST: "Weekly posting limit reached ({limit} posts). Upgrade for more.",
}

_INELIGIBLE_MESSAGE = "Your current plan does not support selling items. Upgrade to a Merchant plan."


class DenialReason(str, Enum):
    """Why the gate refused an action."""

    LIMIT_REACHED = "LIMIT_REACHED"
    PLAN_NOT_ELIGIBLE = "PLAN_NOT_ELIGIBLE"


@dataclass(frozen=True)
class QuotaDecision:
    """Outcome of a gate check for a single action."""

    action: ActionType
    allowed: bool
    used: int
    limit: Optional[int]
    reason: Optional[DenialReason] = None
    message: Optional[str] = None
    account: Optional[Account] = None

    @property
    def unlimited(self) -> bool:
        return self.allowed and self.limit is None

    @property
    def remaining(self) -> Optional[int]:
        if self.limit is None:
            return None
        return max(self.limit - self.used, 0)

    def to_error(self) -> FeatureGateError:
        """Convert a denial into the matching gate exception."""

        if self.allowed:
            raise ValueError("Allowed decisions do not map to an error")
        detail = {"action": self.action.value, "limit": self.limit, "used": self.used}
        if self.reason == DenialReason.PLAN_NOT_ELIGIBLE:
            return PlanIneligibleError(message=self.message or _INELIGIBLE_MESSAGE, detail=detail)
        return QuotaExceededError(message=self.message or _LIMIT_MESSAGES[self.action], detail=detail)

    def raise_for_denial(self) -> None:
        if not self.allowed:
            raise self.to_error()

    def to_dict(self) -> dict[str, object]:
        """Serialize the decision for logging or API responses."""

        return {
            "action": self.action.value,
            "allowed": self.allowed,
            "used": self.used,
            "limit": self.limit,
            "remaining": self.remaining,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
        }


def roll_usage_window(account: Account, now: datetime, *, window: timedelta = _DEFAULT_WINDOW) -> Account:
    """Return the account with counters zeroed if its window has elapsed.

    The new window start is advanced by whole windows from the previous one so
    window boundaries stay anchored to the first reset time.
    """

    elapsed = now - account.last_weekly_reset
    if elapsed < window:
        return account
    periods = elapsed // window
    update: Dict[str, object] = {field: 0 for field in COUNTER_FIELDS.values()}
    update["last_weekly_reset"] = account.last_weekly_reset + window * periods
    return account.model_copy(update=update)


def evaluate_action_quota(account: Account, action: ActionType, bundle: FeatureBundle) -> QuotaDecision:
    """Decide whether ``action`` may proceed under ``bundle`` without mutating anything."""

    used = account.usage_for(action)
    limit = bundle.limit_for(action)

    if not bundle.allows(action):
        return QuotaDecision(
            action=action,
            allowed=False,
            used=used,
            limit=0,
            reason=DenialReason.PLAN_NOT_ELIGIBLE,
            message=_INELIGIBLE_MESSAGE,
        )

    if limit is None:
        return QuotaDecision(action=action, allowed=True, used=used, limit=None)

    if used >= limit:
        return QuotaDecision(
            action=action,
            allowed=False,
            used=used,
            limit=limit,
            reason=DenialReason.LIMIT_REACHED,
            message=_LIMIT_MESSAGES[action].format(limit=limit),
        )

    return QuotaDecision(action=action, allowed=True, used=used, limit=limit)


class QuotaGate:
    """Check-and-increment gate over weekly usage counters."""

    def __init__(
        self,
        repository: "AccountRepository",
        entitlements: EntitlementService,
    ) -> None:
        self._repository = repository
        self._entitlements = entitlements
        self._window = entitlements.usage_window

    def evaluate(self, account_id: str, action: ActionType) -> QuotaDecision:
        """Evaluate the gate for an account without recording usage."""

        now = self._entitlements.now()
        account = roll_usage_window(self._repository.require(account_id), now, window=self._window)
        bundle = self._entitlements.resolve(account, now)
        return evaluate_action_quota(account, action, bundle)

    def check_limit(self, account_id: str, action: ActionType) -> QuotaDecision:
        """Evaluate the gate and, when allowed, increment the matching counter by one."""

        with self._repository.locked(account_id):
            decision = self.evaluate(account_id, action)
            if not decision.allowed:
                logger.warning(
                    "Quota denial account=%s action=%s reason=%s used=%s limit=%s",
                    account_id,
                    action.value,
                    decision.reason.value if decision.reason else None,
                    decision.used,
                    decision.limit,
                )
                return decision
            updated = self._commit(account_id, action)
        return QuotaDecision(
            action=action,
            allowed=True,
            used=updated.usage_for(action),
            limit=decision.limit,
            account=updated,
        )

    def require(self, account_id: str, action: ActionType) -> QuotaDecision:
        """Raising variant of :meth:`check_limit`."""

        decision = self.check_limit(account_id, action)
        decision.raise_for_denial()
        return decision

    @contextmanager
    def reserve(self, account_id: str, action: ActionType) -> Iterator[QuotaDecision]:
        """Hold a quota slot while the caller works; record usage only on success."""

        with self._repository.locked(account_id):
            decision = self.evaluate(account_id, action)
            decision.raise_for_denial()
            yield decision
            self._commit(account_id, action)

    def usage_summary(self, account_id: str) -> Dict[ActionType, QuotaDecision]:
        return {action: self.evaluate(account_id, action) for action in ActionType}

    def _commit(self, account_id: str, action: ActionType) -> Account:
        now = self._entitlements.now()
        account = roll_usage_window(self._repository.require(account_id), now, window=self._window)
        field = COUNTER_FIELDS[action]
        updated = account.model_copy(update={field: getattr(account, field) + 1})
        return self._repository.save(updated)
