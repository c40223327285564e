"""Domain models for accounts, plans and entitlement computation."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PlanKey(str, Enum):
    """Canonical identifiers for subscription plans."""

    FREE = "FREE"
    STUDY_BASIC = "PLAN_STUDY_BASIC"
    STUDY_STANDARD = "PLAN_STUDY_STANDARD"
    STUDY_PREMIUM = "PLAN_STUDY_PREMIUM"
    MERCHANT_BASIC = "PLAN_MERCHANT_BASIC"
    MERCHANT_STANDARD = "PLAN_MERCHANT_STANDARD"
    MERCHANT_PREMIUM = "PLAN_MERCHANT_PREMIUM"


class PlanCategory(str, Enum):
    """Product line a plan belongs to."""

    FREE = "free"
    STUDY = "study"
    MERCHANT = "merchant"


class UserRole(str, Enum):
    """Account roles; guests pay a premium on subscriptions and campus access."""

    STUDENT = "STUDENT"
    GUEST = "GUEST"


class ActionType(str, Enum):
    """Actions guarded by the weekly quota gate."""

    UPLOAD = "UPLOAD"
    QUIZ = "QUIZ"
    AI = "AI"
    MARKET_POST = "MARKET_POST"


@dataclass(frozen=True)
class FeatureBundle:
    """Resolved weekly limits for a plan. ``None`` means unlimited."""

    upload_limit: Optional[int] = 0
    quiz_limit: Optional[int] = 0
    ai_limit: Optional[int] = 0
    market_post_limit: Optional[int] = 0
    is_merchant: bool = False

    def limit_for(self, action: ActionType) -> Optional[int]:
        return {
            ActionType.UPLOAD: self.upload_limit,
            ActionType.QUIZ: self.quiz_limit,
            ActionType.AI: self.ai_limit,
            ActionType.MARKET_POST: self.market_post_limit,
        }[action]

    def allows(self, action: ActionType) -> bool:
        """Return whether the plan is eligible for the action at all."""

        if action == ActionType.MARKET_POST:
            return self.is_merchant
        return True

    def to_flags(self) -> Dict[str, Optional[int] | bool]:
        """Serialize bundle to flattened flag keys."""

        return {
            "study.upload_limit": self.upload_limit,
            "study.quiz_limit": self.quiz_limit,
            "study.ai_limit": self.ai_limit,
            "market.post_limit": self.market_post_limit,
            "market.merchant": self.is_merchant,
        }


COUNTER_FIELDS: Dict[ActionType, str] = {
    ActionType.UPLOAD: "weekly_uploads",
    ActionType.QUIZ: "weekly_quizzes",
    ActionType.AI: "weekly_ai_queries",
    ActionType.MARKET_POST: "weekly_market_posts",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(BaseModel):
    """Identity plus commerce and usage state for a community member."""

    id: str
    name: str = ""
    email: str = ""
    role: UserRole = UserRole.STUDENT
    plan: PlanKey = PlanKey.FREE
    wallet_balance: int = Field(default=0, ge=0)
    weekly_uploads: int = Field(default=0, ge=0)
    weekly_quizzes: int = Field(default=0, ge=0)
    weekly_ai_queries: int = Field(default=0, ge=0)
    weekly_market_posts: int = Field(default=0, ge=0)
    last_weekly_reset: datetime = Field(default_factory=_utcnow)
    joined_at: datetime = Field(default_factory=_utcnow)
    subscription_expiry: Optional[datetime] = None
    reports_count: int = Field(default=0, ge=0)
    is_banned: bool = False
    blocked_users: FrozenSet[str] = Field(default_factory=frozenset)

    model_config = ConfigDict(frozen=True)

    @field_validator("last_weekly_reset", "joined_at", "subscription_expiry")
    @classmethod
    def _ensure_aware(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def usage_for(self, action: ActionType) -> int:
        return getattr(self, COUNTER_FIELDS[action])

    @property
    def is_guest(self) -> bool:
        return self.role == UserRole.GUEST
