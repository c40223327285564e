"""Application wiring for the community policy services."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Callable, Optional

from dotenv import load_dotenv

from ..accounts import InMemoryAccountStore
from ..config import CommunityConfig, load_community_config
from ..entitlements import EntitlementService
from ..feature_gates import QuotaGate
from ..marketplace import MarketplaceService
from ..moderation import ModerationService
from ..study import GeminiStudyService, StudyContentService, StudyHubService
from ..wallet import WalletService

logger = logging.getLogger("community")


@dataclass(frozen=True)
class CommunityServices:
    """Bundle of services sharing one account store and clock."""

    config: CommunityConfig
    store: InMemoryAccountStore
    entitlements: EntitlementService
    gate: QuotaGate
    wallet: WalletService
    moderation: ModerationService
    study: StudyHubService
    marketplace: MarketplaceService


def build_community_services(
    config: Optional[CommunityConfig] = None,
    *,
    store: Optional[InMemoryAccountStore] = None,
    content: Optional[StudyContentService] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> CommunityServices:
    config = config or CommunityConfig()
    store = store or InMemoryAccountStore()
    entitlements = EntitlementService(
        trial_days=config.trial_days,
        window_days=config.quota_window_days,
        clock=clock,
    )
    gate = QuotaGate(store, entitlements)
    wallet = WalletService(repository=store, entitlements=entitlements, config=config)
    if content is None:
        content = GeminiStudyService(config.gemini_api_key, model=config.gemini_model)
        if config.gemini_api_key is None:
            logger.warning("No Gemini API key configured; study content falls back to canned topics")
    return CommunityServices(
        config=config,
        store=store,
        entitlements=entitlements,
        gate=gate,
        wallet=wallet,
        moderation=ModerationService(repository=store, ban_threshold=config.ban_report_threshold),
        study=StudyHubService(repository=store, entitlements=entitlements, gate=gate, content=content),
        marketplace=MarketplaceService(repository=store, entitlements=entitlements, gate=gate, wallet=wallet),
    )


@lru_cache(maxsize=1)
def get_community_services() -> CommunityServices:
    load_dotenv()
    return build_community_services(load_community_config())


__all__ = ["CommunityServices", "build_community_services", "get_community_services"]
