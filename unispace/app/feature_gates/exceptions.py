"""Custom exceptions used for feature gating enforcement."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from fastapi import HTTPException, status


@dataclass
class FeatureGateError(Exception):
    """Represents an actionable gating failure surfaced to API callers."""

    code: str
    message: str
    status_code: int = status.HTTP_403_FORBIDDEN
    detail: Optional[Mapping[str, Any]] = None

    def __post_init__(self) -> None:
        base_detail: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.detail:
            base_detail.update(self.detail)
        object.__setattr__(self, "_payload", base_detail)
        super().__init__(self.message)

    @property
    def payload(self) -> Mapping[str, Any]:
        """Serialized representation suitable for JSON responses."""

        return self._payload

    def to_http_exception(self) -> HTTPException:
        """Convert the domain error into a FastAPI HTTPException."""

        return HTTPException(status_code=self.status_code, detail=dict(self.payload))


@dataclass
class QuotaExceededError(FeatureGateError):
    """The weekly allowance for an action is used up."""

    code: str = "quota_exceeded"
    message: str = "Weekly limit reached. Upgrade for more."


@dataclass
class PlanIneligibleError(FeatureGateError):
    """The account's plan does not include the action at all."""

    code: str = "plan_not_eligible"
    message: str = "Your current plan does not include this feature."


@dataclass
class TrialExpiredError(FeatureGateError):
    """A FREE account tried a gated feature after its trial ended."""

    code: str = "trial_expired"
    message: str = "Your 7-day free trial has expired. Subscribe to continue."


@dataclass
class AccountBannedError(FeatureGateError):
    """The account is suspended until the ban fine is paid."""

    code: str = "account_banned"
    message: str = "Your account has been suspended. Pay the fine to restore access."


@dataclass
class InsufficientFundsError(FeatureGateError):
    """The wallet balance cannot cover a debit."""

    code: str = "insufficient_funds"
    message: str = "Insufficient funds. Please top up your wallet."
    status_code: int = status.HTTP_402_PAYMENT_REQUIRED


@dataclass
class ExternalServiceError(FeatureGateError):
    """The study content provider failed or is not configured."""

    code: str = "external_service_error"
    message: str = "The study assistant is unavailable right now. Please try again."
    status_code: int = status.HTTP_502_BAD_GATEWAY
