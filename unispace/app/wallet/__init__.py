"""Wallet domain package providing the ledger model and wallet mutations."""

from .models import ListingDurationUnit, TransactionStatus, TransactionType, WalletTransaction
from .service import WalletService, listing_fee

__all__ = [
    "ListingDurationUnit",
    "TransactionStatus",
    "TransactionType",
    "WalletService",
    "WalletTransaction",
    "listing_fee",
]
