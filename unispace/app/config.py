"""Community policy configuration helpers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional
import os


@dataclass(frozen=True)
class CommunityConfig:
    """Tunable constants for trials, moderation, wallet and study content."""

    trial_days: int = 7
    quota_window_days: int = 7
    ban_report_threshold: int = 3
    ban_fine_amount: int = 5000
    subscription_days: int = 30
    guest_price_multiplier: int = 2
    top_up_amount: int = 5000
    campus_creation_fee: int = 5000
    guest_campus_fee: int = 2000
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"


def _to_int(value: Optional[str], *, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected integer value, got {value!r}") from exc


def load_community_config(env: Optional[Mapping[str, str]] = None) -> CommunityConfig:
    """Load :class:`CommunityConfig` from environment variables."""

    env_mapping = os.environ if env is None else env

    gemini_api_key = (env_mapping.get("GEMINI_API_KEY") or env_mapping.get("API_KEY") or "").strip()

    return CommunityConfig(
        trial_days=max(0, _to_int(env_mapping.get("TRIAL_DAYS"), default=7)),
        quota_window_days=max(1, _to_int(env_mapping.get("QUOTA_WINDOW_DAYS"), default=7)),
        ban_report_threshold=max(1, _to_int(env_mapping.get("BAN_REPORT_THRESHOLD"), default=3)),
        ban_fine_amount=max(0, _to_int(env_mapping.get("BAN_FINE_AMOUNT"), default=5000)),
        subscription_days=max(1, _to_int(env_mapping.get("SUBSCRIPTION_DAYS"), default=30)),
        guest_price_multiplier=max(1, _to_int(env_mapping.get("GUEST_PRICE_MULTIPLIER"), default=2)),
        top_up_amount=max(1, _to_int(env_mapping.get("TOP_UP_AMOUNT"), default=5000)),
        campus_creation_fee=max(0, _to_int(env_mapping.get("CAMPUS_CREATION_FEE"), default=5000)),
        guest_campus_fee=max(0, _to_int(env_mapping.get("GUEST_CAMPUS_FEE"), default=2000)),
        gemini_api_key=gemini_api_key or None,
        gemini_model=(env_mapping.get("GEMINI_MODEL") or "gemini-2.5-flash").strip(),
    )
