"""API schemas for entitlement, quota and wallet endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..entitlements import Account, ActionType, PlanKey, UserRole
from ..feature_gates import EntitlementContext, QuotaDecision


class QuotaUsage(BaseModel):
    action: ActionType
    allowed: bool
    used: int
    limit: Optional[int] = None
    remaining: Optional[int] = None
    reason: Optional[str] = None
    message: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_decision(cls, decision: QuotaDecision) -> "QuotaUsage":
        return cls(**decision.to_dict())


class AccountSummary(BaseModel):
    id: str
    plan: PlanKey
    role: UserRole
    wallet_balance: int = Field(alias="walletBalance")
    subscription_expiry: Optional[datetime] = Field(alias="subscriptionExpiry", default=None)
    reports_count: int = Field(alias="reportsCount")
    is_banned: bool = Field(alias="isBanned")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_account(cls, account: Account) -> "AccountSummary":
        return cls(
            id=account.id,
            plan=account.plan,
            role=account.role,
            wallet_balance=account.wallet_balance,
            subscription_expiry=account.subscription_expiry,
            reports_count=account.reports_count,
            is_banned=account.is_banned,
        )


class EntitlementSummaryResponse(BaseModel):
    account: AccountSummary
    has_access: bool = Field(alias="hasAccess")
    in_trial: bool = Field(alias="inTrial")
    usage: Dict[str, QuotaUsage]

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_context(cls, context: EntitlementContext) -> "EntitlementSummaryResponse":
        return cls(
            account=AccountSummary.from_account(context.account),
            has_access=context.has_access,
            in_trial=context.in_trial,
            usage={
                action.value: QuotaUsage.from_decision(context.evaluate(action))
                for action in ActionType
            },
        )


class QuotaCheckResponse(BaseModel):
    decision: QuotaUsage
    account: AccountSummary


class SubscribeRequest(BaseModel):
    plan: PlanKey
    price: Optional[int] = Field(default=None, ge=0)

    model_config = ConfigDict(populate_by_name=True)


class PayFineRequest(BaseModel):
    fine_amount: Optional[int] = Field(alias="fineAmount", default=None, ge=0)

    model_config = ConfigDict(populate_by_name=True)


class ReportUserRequest(BaseModel):
    reporter_id: str = Field(alias="reporterId")
    reason: str = Field(min_length=1)

    model_config = ConfigDict(populate_by_name=True)
