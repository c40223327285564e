"""Community safety: reports, the three-strike ban and user blocking."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, List, TypeVar

from ..entitlements.models import Account

if TYPE_CHECKING:  # pragma: no cover
    from ..accounts.store import AccountRepository

logger = logging.getLogger("moderation")

T = TypeVar("T")

REPORT_REASONS = (
    "Harassment / Bullying",
    "Cyberstalking",
    "Hateful / Harmful Content",
    "Sale of Illegal Drugs",
    "Occult / Satanic Activity",
    "Cybercrime / Fraud",
    "Sexual Abuse / Misconduct",
    "Other Violation",
)


@dataclass
class ModerationService:
    """Applies reports and blocks to account records."""

    repository: "AccountRepository"
    ban_threshold: int = 3

    def report_user(self, reporter_id: str, target_id: str, reason: str) -> Account:
        """Record a report against ``target_id`` and ban it once the threshold is reached."""

        if not reason or not reason.strip():
            raise ValueError("A report reason is required")
        if reason.strip() not in REPORT_REASONS:
            raise ValueError(f"Unknown report reason: {reason.strip()}")
        if reporter_id == target_id:
            raise ValueError("Accounts cannot report themselves")
        self.repository.require(reporter_id)

        with self.repository.locked(target_id):
            target = self.repository.require(target_id)
            reports = target.reports_count + 1
            banned = target.is_banned or reports >= self.ban_threshold
            updated = self.repository.save(
                target.model_copy(update={"reports_count": reports, "is_banned": banned})
            )

        logger.info(
            "Report filed reporter=%s target=%s reason=%s reports=%s",
            reporter_id,
            target_id,
            reason.strip(),
            reports,
        )
        if banned and not target.is_banned:
            logger.warning("Account %s banned after %s reports", target_id, reports)
        return updated

    def block_user(self, account_id: str, blocked_id: str) -> Account:
        if account_id == blocked_id:
            raise ValueError("Accounts cannot block themselves")
        with self.repository.locked(account_id):
            account = self.repository.require(account_id)
            if blocked_id in account.blocked_users:
                return account
            return self.repository.save(
                account.model_copy(update={"blocked_users": account.blocked_users | {blocked_id}})
            )


def visible(account: Account, items: Iterable[T], author_of: Callable[[T], str]) -> List[T]:
    """Drop items authored by accounts the viewer has blocked."""

    blocked = account.blocked_users
    return [item for item in items if author_of(item) not in blocked]
