"""Store wrapper that buffers writes while the underlying store fails."""

from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import date

from pulselog.domain.models import ActivitySession, DaySummary
from pulselog.storage.base import DEFAULT_SEARCH_LIMIT, SessionStore, StorageUnavailable

logger = logging.getLogger(__name__)


class BufferedStore(SessionStore):
    """Wraps a store so failed writes are retried, never dropped.

    Sessions that could not be written wait in a FIFO buffer. Every later
    ``save`` (and every explicit ``retry``) first flushes the buffer in
    order, so the underlying store always receives sessions in the order
    they were closed. Day summaries that could not be written are kept per
    date, newest wins, and flushed after the sessions. Reads go to the
    wrapped store, except that a buffered day summary shadows the stored one.
    """

    def __init__(self, inner: SessionStore) -> None:
        self._inner = inner
        self._pending: deque[ActivitySession] = deque()
        self._pending_summaries: dict[date, DaySummary] = {}
        self._lock = threading.Lock()

    @property
    def inner(self) -> SessionStore:
        return self._inner

    @property
    def degraded(self) -> bool:
        """True while a session or day summary is waiting to be written."""
        with self._lock:
            return bool(self._pending or self._pending_summaries)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending) + len(self._pending_summaries)

    def save(self, session: ActivitySession) -> None:
        with self._lock:
            self._pending.append(session)
            self._flush_locked()

    def save_day_summary(self, summary: DaySummary) -> None:
        with self._lock:
            self._pending_summaries[summary.date] = summary
            self._flush_locked()

    def retry(self) -> bool:
        """Try to write buffered data. Returns True when nothing is left."""
        with self._lock:
            self._flush_locked()
            return not (self._pending or self._pending_summaries)

    def _flush_locked(self) -> None:
        while self._pending:
            session = self._pending[0]
            try:
                self._inner.save(session)
            except StorageUnavailable as exc:
                logger.warning(
                    "Storage unavailable, %d session(s) buffered: %s", len(self._pending), exc
                )
                return
            self._pending.popleft()

        for day in sorted(self._pending_summaries):
            try:
                self._inner.save_day_summary(self._pending_summaries[day])
            except StorageUnavailable as exc:
                logger.warning("Storage unavailable, summary for %s buffered: %s", day, exc)
                return
            del self._pending_summaries[day]

    def load_sessions(self, day: date) -> list[ActivitySession]:
        return self._inner.load_sessions(day)

    def load_sessions_between(self, start: date, end: date) -> list[ActivitySession]:
        return self._inner.load_sessions_between(start, end)

    def search_sessions(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[ActivitySession]:
        return self._inner.search_sessions(query, limit)

    def delete_sessions_before(self, day: date) -> int:
        return self._inner.delete_sessions_before(day)

    def load_day_summary(self, day: date) -> DaySummary | None:
        with self._lock:
            pending = self._pending_summaries.get(day)
        if pending is not None:
            return pending
        return self._inner.load_day_summary(day)

    def load_day_summaries_between(self, start: date, end: date) -> list[DaySummary]:
        return self._inner.load_day_summaries_between(start, end)

    def delete_day_summaries_before(self, day: date) -> int:
        return self._inner.delete_day_summaries_before(day)

    def close(self) -> None:
        if not self.retry():
            logger.warning("Closing store with %d unsaved write(s)", self.pending_count)
        self._inner.close()
