"""Reporting, banning and blocking between community members."""

from .service import REPORT_REASONS, ModerationService, visible

__all__ = ["REPORT_REASONS", "ModerationService", "visible"]
