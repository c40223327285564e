"""Account registration."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from ..entitlements.models import Account, PlanKey, UserRole
from .store import AccountRepository

logger = logging.getLogger(__name__)


def create_account(
    repository: AccountRepository,
    *,
    name: str,
    email: str,
    role: UserRole = UserRole.STUDENT,
    wallet_balance: int = 0,
    account_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Account:
    """Register a new account on the FREE plan with a fresh usage window."""

    if email and repository.find_by_email(email) is not None:
        raise ValueError(f"An account already exists for {email}")

    created_at = now or datetime.now(timezone.utc)
    account = Account(
        id=account_id or f"u_{uuid4().hex[:12]}",
        name=name,
        email=email,
        role=role,
        plan=PlanKey.FREE,
        wallet_balance=wallet_balance,
        last_weekly_reset=created_at,
        joined_at=created_at,
    )
    logger.info("Registered account %s role=%s", account.id, role.value)
    return repository.save(account)
