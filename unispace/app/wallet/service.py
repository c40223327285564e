"""Wallet mutations: subscriptions, fines, top-ups, transfers and fees."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Optional, Sequence, Tuple
from uuid import uuid4

from ..config import CommunityConfig
from ..entitlements.catalog import get_plan_definition, price_for
from ..entitlements.models import Account, PlanKey
from ..entitlements.service import EntitlementService
from ..feature_gates.exceptions import InsufficientFundsError
from .models import ListingDurationUnit, TransactionStatus, TransactionType, WalletTransaction

if TYPE_CHECKING:  # pragma: no cover
    from ..accounts.store import AccountRepository

logger = logging.getLogger("wallet")

_LISTING_RATES = {
    ListingDurationUnit.DAYS: 50,
    ListingDurationUnit.WEEKS: 300,
    ListingDurationUnit.MONTHS: 1000,
}


def listing_fee(duration_value: int, unit: ListingDurationUnit) -> int:
    """Marketplace listing fee for a listing kept up for ``duration_value`` units."""

    if duration_value < 1:
        raise ValueError("duration_value must be >= 1")
    return _LISTING_RATES[unit] * duration_value


def _subscription_label(plan: PlanKey) -> str:
    return plan.value.replace("_", " ")


@dataclass
class WalletService:
    """Coordinates wallet debits and credits with account state changes.

    Every operation loads the account under its lock, computes the updated
    record and ledger entry, then saves both. Failed balance checks raise
    before anything is written.
    """

    repository: "AccountRepository"
    entitlements: EntitlementService
    config: CommunityConfig = field(default_factory=CommunityConfig)

    def subscribe(self, account_id: str, plan: PlanKey, price: Optional[int] = None) -> Account:
        if not get_plan_definition(plan).purchasable:
            raise ValueError(f"Plan {plan.value} cannot be purchased")
        if price is not None and price < 0:
            raise ValueError("price must be >= 0")

        with self.repository.locked(account_id):
            account = self.repository.require(account_id)
            if price is None:
                charge = price_for(plan, account.role, guest_multiplier=self.config.guest_price_multiplier)
            else:
                charge = price
            now = self.entitlements.now()
            updated, transaction = self._debit(account, charge, f"Subscription: {_subscription_label(plan)}")
            updated = updated.model_copy(
                update={
                    "plan": plan,
                    "subscription_expiry": now + timedelta(days=self.config.subscription_days),
                }
            )
            self._persist(updated, transaction)

        logger.info(
            "Subscription activated account=%s plan=%s price=%s expires=%s",
            account_id,
            plan.value,
            charge,
            updated.subscription_expiry.isoformat(),
        )
        return updated

    def pay_ban_fine(self, account_id: str, fine_amount: Optional[int] = None) -> Account:
        amount = self.config.ban_fine_amount if fine_amount is None else fine_amount
        if amount < 0:
            raise ValueError("fine_amount must be >= 0")
        with self.repository.locked(account_id):
            account = self.repository.require(account_id)
            if not account.is_banned:
                raise ValueError(f"Account {account_id} is not banned")
            updated, transaction = self._debit(account, amount, "Community Violation Fine")
            updated = updated.model_copy(update={"is_banned": False, "reports_count": 0})
            self._persist(updated, transaction)

        logger.info("Ban fine paid account=%s amount=%s", account_id, amount)
        return updated

    def top_up(self, account_id: str, amount: Optional[int] = None) -> Account:
        credit = self.config.top_up_amount if amount is None else amount
        if credit <= 0:
            raise ValueError("amount must be > 0")
        with self.repository.locked(account_id):
            account = self.repository.require(account_id)
            updated, transaction = self._credit(account, credit, "Top Up")
            self._persist(updated, transaction)
        return updated

    def transfer(self, account_id: str, recipient_email: str, amount: int) -> Account:
        """Send funds to an email address, crediting the recipient if they have an account."""

        if amount <= 0:
            raise ValueError("amount must be > 0")
        recipient = self.repository.find_by_email(recipient_email)
        if recipient is not None and recipient.id == account_id:
            raise ValueError("Cannot transfer to your own wallet")

        lock_ids = (account_id,) if recipient is None else (account_id, recipient.id)
        with self.repository.locked(*lock_ids):
            sender = self.repository.require(account_id)
            updated_sender, debit = self._debit(sender, amount, f"Transfer to {recipient_email}")
            if recipient is not None:
                current = self.repository.require(recipient.id)
                updated_recipient, credit = self._credit(
                    current, amount, f"Transfer from {sender.email or sender.id}"
                )
                self._persist(updated_recipient, credit)
            self._persist(updated_sender, debit)

        logger.info(
            "Wallet transfer account=%s recipient=%s amount=%s internal=%s",
            account_id,
            recipient_email,
            amount,
            recipient is not None,
        )
        return updated_sender

    def charge_fee(self, account_id: str, amount: int, description: str) -> Account:
        """Debit a one-off fee such as a listing or campus access fee."""

        if amount < 0:
            raise ValueError("amount must be >= 0")
        with self.repository.locked(account_id):
            account = self.repository.require(account_id)
            updated, transaction = self._debit(account, amount, description)
            self._persist(updated, transaction)
        return updated

    def charge_campus_access(self, account_id: str) -> Account:
        """Guests pay an access fee to join a campus group; students join free."""

        account = self.repository.require(account_id)
        if not account.is_guest:
            return account
        return self.charge_fee(account_id, self.config.guest_campus_fee, "Campus Access Fee")

    def charge_campus_creation(self, account_id: str, campus_name: str) -> Account:
        return self.charge_fee(account_id, self.config.campus_creation_fee, f"Campus Creation: {campus_name}")

    def list_transactions(self, account_id: str, *, limit: int = 50) -> Sequence[WalletTransaction]:
        self.repository.require(account_id)
        return self.repository.list_transactions(account_id, limit=limit)

    def _persist(self, account: Account, transaction: Optional[WalletTransaction]) -> None:
        self.repository.save(account)
        if transaction is not None:
            self.repository.record_transaction(transaction)

    def _debit(
        self, account: Account, amount: int, description: str
    ) -> Tuple[Account, Optional[WalletTransaction]]:
        if account.wallet_balance < amount:
            logger.warning(
                "Insufficient funds account=%s balance=%s required=%s purpose=%s",
                account.id,
                account.wallet_balance,
                amount,
                description,
            )
            raise InsufficientFundsError(detail={"balance": account.wallet_balance, "required": amount})
        if amount == 0:
            return account, None
        updated = account.model_copy(update={"wallet_balance": account.wallet_balance - amount})
        return updated, self._transaction(account.id, TransactionType.DEBIT, amount, description)

    def _credit(self, account: Account, amount: int, description: str) -> Tuple[Account, WalletTransaction]:
        updated = account.model_copy(update={"wallet_balance": account.wallet_balance + amount})
        return updated, self._transaction(account.id, TransactionType.CREDIT, amount, description)

    def _transaction(
        self,
        account_id: str,
        transaction_type: TransactionType,
        amount: int,
        description: str,
    ) -> WalletTransaction:
        return WalletTransaction(
            id=f"tx_{uuid4().hex}",
            account_id=account_id,
            type=transaction_type,
            amount=amount,
            description=description,
            status=TransactionStatus.SUCCESS,
            created_at=self.entitlements.now(),
        )
