"""API schemas for account registration and wallet endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..entitlements import UserRole
from ..wallet import TransactionStatus, TransactionType, WalletTransaction


class CreateAccountRequest(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    role: UserRole = UserRole.STUDENT

    model_config = ConfigDict(populate_by_name=True)


class TopUpRequest(BaseModel):
    amount: Optional[int] = Field(default=None, gt=0)


class TransactionResponse(BaseModel):
    id: str
    type: TransactionType
    amount: int
    description: str
    status: TransactionStatus
    created_at: datetime = Field(alias="date")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_transaction(cls, transaction: WalletTransaction) -> "TransactionResponse":
        return cls(
            id=transaction.id,
            type=transaction.type,
            amount=transaction.amount,
            description=transaction.description,
            status=transaction.status,
            created_at=transaction.created_at,
        )


class TransactionListResponse(BaseModel):
    items: List[TransactionResponse]
