"""Age-based pruning of stored sessions and day summaries."""

from __future__ import annotations

import logging
from datetime import date, timedelta

from pydantic import BaseModel, ConfigDict

from pulselog.storage.base import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_SESSION_RETENTION_DAYS = 90
DEFAULT_SUMMARY_RETENTION_DAYS = 365


class RetentionResult(BaseModel):
    """How many records a retention pass removed."""

    model_config = ConfigDict(frozen=True)

    sessions_deleted: int = 0
    summaries_deleted: int = 0

    @property
    def total(self) -> int:
        return self.sessions_deleted + self.summaries_deleted


def retention_cutoff(today: date, days: int) -> date:
    """First day still kept when keeping ``days`` days up to and including ``today``."""
    if days <= 0:
        raise ValueError("retention days must be positive")
    return today - timedelta(days=days - 1)


def apply_retention(
    store: SessionStore,
    today: date,
    session_days: int | None = DEFAULT_SESSION_RETENTION_DAYS,
    summary_days: int | None = DEFAULT_SUMMARY_RETENTION_DAYS,
) -> RetentionResult:
    """Delete sessions and summaries older than their retention windows.

    A window of None keeps that kind of record forever.

    Raises:
        StorageUnavailable: If the store cannot delete.
    """
    sessions_deleted = 0
    summaries_deleted = 0
    if session_days is not None:
        sessions_deleted = store.delete_sessions_before(retention_cutoff(today, session_days))
    if summary_days is not None:
        summaries_deleted = store.delete_day_summaries_before(retention_cutoff(today, summary_days))

    result = RetentionResult(sessions_deleted=sessions_deleted, summaries_deleted=summaries_deleted)
    if result.total:
        logger.info(
            "Retention removed %d session(s) and %d day summary(ies)",
            sessions_deleted, summaries_deleted,
        )
    return result
