"""Helpers for enforcing account-level checks on service and API layers."""
from __future__ import annotations

from datetime import datetime

from ..entitlements.models import Account
from ..entitlements.service import has_access
from .exceptions import AccountBannedError, TrialExpiredError


def require_not_banned(account: Account) -> None:
    """Ensure a suspended account cannot act until its fine is paid."""

    if account.is_banned:
        raise AccountBannedError(detail={"reports_count": account.reports_count})


def require_access(
    account: Account,
    now: datetime,
    *,
    trial_days: int = 7,
    message: str | None = None,
) -> None:
    """Ensure the account has trial or subscription access before proceeding.

    Parameters
    ----------
    account:
        The account attempting a gated feature.
    now:
        Reference time for the trial window.
    trial_days:
        Length of the FREE trial window in days.
    message:
        Optional human-friendly message explaining the failure. If omitted, the
        default trial-expired message is used.
    """

    if has_access(account, now, trial_days=trial_days):
        return
    detail = {"plan": account.plan.value, "trial_days": trial_days}
    if message:
        raise TrialExpiredError(message=message, detail=detail)
    raise TrialExpiredError(detail=detail)
