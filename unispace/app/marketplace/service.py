"""Marketplace listings gated by merchant plans and paid from the wallet."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from ..entitlements.models import ActionType
from ..entitlements.service import EntitlementService
from ..feature_gates.context import EntitlementContext
from ..feature_gates.enforcement import require_not_banned
from ..feature_gates.quota import QuotaGate
from ..moderation.service import visible
from ..wallet.models import ListingDurationUnit
from ..wallet.service import WalletService, listing_fee

if TYPE_CHECKING:  # pragma: no cover
    from ..accounts.store import AccountRepository

logger = logging.getLogger("marketplace")

_UNIT_LENGTH = {
    ListingDurationUnit.DAYS: timedelta(days=1),
    ListingDurationUnit.WEEKS: timedelta(weeks=1),
    ListingDurationUnit.MONTHS: timedelta(days=30),
}


class Listing(BaseModel):
    """An item offered for sale on the campus marketplace."""

    id: str
    seller_id: str
    title: str
    price: int = Field(ge=0)
    description: str = ""
    category: str = "Textbooks"
    listing_fee: int = Field(ge=0)
    posted_at: datetime
    expires_at: datetime
    purchasers: Tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)


@dataclass
class MarketplaceService:
    """Creates, sells and lists marketplace items.

    Listing requires access, a MARKET_POST quota slot and the listing fee.
    Purchases debit the buyer's wallet by the listed price.
    """

    repository: "AccountRepository"
    entitlements: EntitlementService
    gate: QuotaGate
    wallet: WalletService
    _listings: Dict[str, Listing] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def create_listing(
        self,
        seller_id: str,
        *,
        title: str,
        price: int,
        duration_value: int = 7,
        duration_unit: ListingDurationUnit = ListingDurationUnit.DAYS,
        description: str = "",
        category: str = "Textbooks",
    ) -> Listing:
        if not title.strip():
            raise ValueError("title is required")
        fee = listing_fee(duration_value, duration_unit)

        account = self.repository.require(seller_id)
        EntitlementContext.build(account, self.entitlements).require_usable()

        # The quota slot is committed only if the fee debit succeeds.
        with self.gate.reserve(seller_id, ActionType.MARKET_POST):
            self.wallet.charge_fee(seller_id, fee, f"Listing Fee: {title}")

        now = self.entitlements.now()
        listing = Listing(
            id=f"p_{uuid4().hex[:12]}",
            seller_id=seller_id,
            title=title,
            price=price,
            description=description,
            category=category,
            listing_fee=fee,
            posted_at=now,
            expires_at=now + _UNIT_LENGTH[duration_unit] * duration_value,
        )
        self._listings[listing.id] = listing
        logger.info("Listing %s posted by %s fee=%s", listing.id, seller_id, fee)
        return listing

    def purchase(self, buyer_id: str, listing_id: str) -> Listing:
        """Pay the listed price from the buyer's wallet and record the buyer on the listing."""

        with self._lock:
            listing = self._listings.get(listing_id)
            if listing is None:
                raise LookupError(f"Listing not found: {listing_id}")
            if listing.seller_id == buyer_id:
                raise ValueError("Sellers cannot buy their own listing")
            if listing.expires_at <= self.entitlements.now():
                raise ValueError(f"Listing {listing_id} has expired")

            require_not_banned(self.repository.require(buyer_id))
            self.wallet.charge_fee(buyer_id, listing.price, f"Purchase: {listing.title}")

            updated = listing.model_copy(update={"purchasers": listing.purchasers + (buyer_id,)})
            self._listings[listing_id] = updated

        logger.info("Listing %s purchased by %s price=%s", listing_id, buyer_id, listing.price)
        return updated

    def browse(self, viewer_id: str, *, category: Optional[str] = None) -> List[Listing]:
        """Active listings visible to the viewer, hiding sellers they blocked."""

        viewer = self.repository.require(viewer_id)
        now = self.entitlements.now()
        listings = [
            listing
            for listing in self._listings.values()
            if listing.expires_at > now and (category is None or listing.category == category)
        ]
        return visible(viewer, listings, lambda listing: listing.seller_id)
