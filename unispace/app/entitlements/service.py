"""Trial/access evaluation and entitlement resolution for accounts."""
from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from .catalog import TRIAL_BUNDLE, get_plan_definition
from .models import Account, FeatureBundle, PlanKey

_ONE_DAY_SECONDS = timedelta(days=1).total_seconds()


def days_since_join(account: Account, now: datetime) -> int:
    """Whole days (rounded up) between signup and ``now``, ignoring clock skew direction."""

    elapsed = abs((now - account.joined_at).total_seconds())
    return math.ceil(elapsed / _ONE_DAY_SECONDS)


def has_access(account: Account, now: datetime, *, trial_days: int = 7) -> bool:
    """Return whether the account may use gated features.

    Paid plans always have access; subscription expiry is not enforced here.
    FREE accounts have access while inside the trial window.
    """

    if account.plan != PlanKey.FREE:
        return True
    return days_since_join(account, now) <= trial_days


class EntitlementService:
    """Resolves the entitlement bundle that applies to an account right now."""

    def __init__(
        self,
        *,
        trial_days: int = 7,
        window_days: int = 7,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._trial_days = trial_days
        self._window = timedelta(days=window_days)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def trial_days(self) -> int:
        return self._trial_days

    @property
    def usage_window(self) -> timedelta:
        """Length of the window after which weekly usage counters reset."""

        return self._window

    def now(self) -> datetime:
        return self._clock()

    def has_access(self, account: Account, now: Optional[datetime] = None) -> bool:
        return has_access(account, now or self._clock(), trial_days=self._trial_days)

    def in_trial(self, account: Account, now: Optional[datetime] = None) -> bool:
        return account.plan == PlanKey.FREE and self.has_access(account, now)

    def resolve(self, account: Account, now: Optional[datetime] = None) -> FeatureBundle:
        """Return the bundle for the account's plan, applying the trial override."""

        if self.in_trial(account, now):
            return TRIAL_BUNDLE
        return get_plan_definition(account.plan).bundle
