"""Campus marketplace listings."""

from .service import Listing, MarketplaceService

__all__ = ["Listing", "MarketplaceService"]
