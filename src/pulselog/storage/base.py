"""Abstract base class for activity storage.

Stores persist closed sessions and per-day summaries. Implementations are
synchronous; callers on the event loop run them in an executor.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from pulselog.domain.models import ActivitySession, DaySummary

DEFAULT_SEARCH_LIMIT = 50


class StorageUnavailable(Exception):
    """Raised when a store cannot accept or return data."""


def search_terms(query: str) -> list[str]:
    """Split a search query into lowercase words."""
    return [word.lower() for word in query.split()]


def session_matches(session: ActivitySession, terms: list[str]) -> bool:
    """Whether every term appears in the session's app name, title, summary or text."""
    haystack = "\n".join(
        (session.application_name, session.title, session.summary, session.accumulated_text)
    ).lower()
    return all(term in haystack for term in terms)


class SessionStore(ABC):
    """Persistence for closed activity sessions and day summaries.

    Date ranges are inclusive on both ends and refer to the day a session
    started on.
    """

    @abstractmethod
    def save(self, session: ActivitySession) -> None:
        """Persist a closed session. Saving the same id twice replaces it.

        Raises:
            StorageUnavailable: If the session could not be written.
        """
        ...

    @abstractmethod
    def load_sessions(self, day: date) -> list[ActivitySession]:
        """Closed sessions that started on ``day``, ordered by start time."""
        ...

    @abstractmethod
    def load_sessions_between(self, start: date, end: date) -> list[ActivitySession]:
        """Sessions that started from ``start`` through ``end``, ordered by start time."""
        ...

    @abstractmethod
    def search_sessions(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[ActivitySession]:
        """Sessions containing every word of ``query``, newest first.

        Words are matched case-insensitively against the application name,
        title, summary and accumulated text. An empty query matches nothing.
        """
        ...

    @abstractmethod
    def delete_sessions_before(self, day: date) -> int:
        """Delete sessions that started before ``day``. Returns how many were deleted."""
        ...

    @abstractmethod
    def save_day_summary(self, summary: DaySummary) -> None:
        """Persist a day summary, replacing any previous one for that date."""
        ...

    @abstractmethod
    def load_day_summary(self, day: date) -> DaySummary | None:
        ...

    @abstractmethod
    def load_day_summaries_between(self, start: date, end: date) -> list[DaySummary]:
        """Day summaries from ``start`` through ``end``, ordered by date."""
        ...

    @abstractmethod
    def delete_day_summaries_before(self, day: date) -> int:
        ...

    def close(self) -> None:
        """Release any held resources."""
