"""Abstract base class for day summarizers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from pulselog.domain.models import ActivitySession, DaySummary


class Summarizer(ABC):
    """Produces a prose summary of a day's activity sessions.

    Implementations must not raise for ordinary failures; they return an
    empty string instead so the caller keeps the previous summary text.
    """

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    async def summarize(
        self,
        sessions: Sequence[ActivitySession],
        day_summary: DaySummary | None = None,
    ) -> str:
        """Summarize closed sessions.

        Args:
            sessions: Closed sessions of one day, in start-time order.
            day_summary: Totals already computed for those sessions, if
                the caller has them.

        Returns:
            Summary text, or "" when no summary could be produced.
        """
        ...
