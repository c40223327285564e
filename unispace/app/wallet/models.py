"""Domain models for the wallet ledger."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TransactionType(str, Enum):
    """Direction of a wallet movement."""

    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class TransactionStatus(str, Enum):
    """Settlement status of a wallet transaction."""

    SUCCESS = "SUCCESS"
    PENDING = "PENDING"
    FAILED = "FAILED"


class ListingDurationUnit(str, Enum):
    """Billing unit for marketplace listing durations."""

    DAYS = "Days"
    WEEKS = "Weeks"
    MONTHS = "Months"


class WalletTransaction(BaseModel):
    """A single ledger entry recorded against an account's wallet."""

    id: str
    account_id: str
    type: TransactionType
    amount: int = Field(gt=0)
    description: str
    status: TransactionStatus = TransactionStatus.SUCCESS
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)
