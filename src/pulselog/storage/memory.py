"""In-memory session store for tests and ephemeral runs."""

from __future__ import annotations

import logging
import threading
from datetime import date

from pulselog.domain.models import ActivitySession, DaySummary
from pulselog.storage.base import (
    DEFAULT_SEARCH_LIMIT,
    SessionStore,
    search_terms,
    session_matches,
)

logger = logging.getLogger(__name__)


class InMemoryStore(SessionStore):
    """Keeps sessions and summaries in process memory."""

    def __init__(self) -> None:
        self._sessions: dict[str, ActivitySession] = {}
        self._summaries: dict[date, DaySummary] = {}
        self._lock = threading.Lock()

    @property
    def count(self) -> int:
        return len(self._sessions)

    def save(self, session: ActivitySession) -> None:
        with self._lock:
            self._sessions[session.id] = session.model_copy()
        logger.debug("Stored session %s in memory", session.id)

    def load_sessions(self, day: date) -> list[ActivitySession]:
        return self.load_sessions_between(day, day)

    def load_sessions_between(self, start: date, end: date) -> list[ActivitySession]:
        with self._lock:
            matching = [s.model_copy() for s in self._sessions.values() if start <= s.day <= end]
        return sorted(matching, key=lambda s: s.start_time)

    def search_sessions(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[ActivitySession]:
        terms = search_terms(query)
        if not terms:
            return []
        with self._lock:
            matching = [s.model_copy() for s in self._sessions.values() if session_matches(s, terms)]
        matching.sort(key=lambda s: s.start_time, reverse=True)
        return matching[:limit]

    def delete_sessions_before(self, day: date) -> int:
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if s.day < day]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)

    def save_day_summary(self, summary: DaySummary) -> None:
        with self._lock:
            self._summaries[summary.date] = summary

    def load_day_summary(self, day: date) -> DaySummary | None:
        with self._lock:
            return self._summaries.get(day)

    def load_day_summaries_between(self, start: date, end: date) -> list[DaySummary]:
        with self._lock:
            return [self._summaries[d] for d in sorted(self._summaries) if start <= d <= end]

    def delete_day_summaries_before(self, day: date) -> int:
        with self._lock:
            expired = [d for d in self._summaries if d < day]
            for d in expired:
                del self._summaries[d]
        return len(expired)
