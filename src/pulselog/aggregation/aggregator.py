"""Daily aggregation of closed activity sessions.

The aggregator keeps running totals for one calendar day and produces
``DaySummary`` snapshots from them. Incremental application and a full
recompute share the same accumulator, so both yield identical summaries
for the same set of sessions.
"""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime, timedelta
from typing import Callable, Iterable

from pulselog.domain.models import (
    ActivityCategory,
    ActivitySession,
    AppUsage,
    DaySummary,
)
from pulselog.aggregation.scoring import productivity_score

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 5


class _DayTotals:
    """Running totals over the closed sessions of one day."""

    def __init__(self) -> None:
        self.total = timedelta(0)
        self.count = 0
        self.app_durations: dict[str, timedelta] = {}
        # Latest-starting session per app decides its category and icon
        self.app_latest: dict[str, ActivitySession] = {}
        self.category_durations: dict[ActivityCategory, timedelta] = {}
        self.sessions: list[ActivitySession] = []

    def add(self, session: ActivitySession) -> None:
        duration = session.duration
        name = session.application_name
        self.total += duration
        self.count += 1
        self.app_durations[name] = self.app_durations.get(name, timedelta(0)) + duration
        latest = self.app_latest.get(name)
        if latest is None or session.start_time >= latest.start_time:
            self.app_latest[name] = session
        self.category_durations[session.category] = (
            self.category_durations.get(session.category, timedelta(0)) + duration
        )
        self.sessions.append(session)

    def top_apps(self, top_n: int) -> tuple[AppUsage, ...]:
        ranked = sorted(self.app_durations.items(), key=lambda item: (-item[1], item[0]))
        return tuple(
            AppUsage(
                app_name=name,
                category=self.app_latest[name].category,
                duration=duration,
                icon=self.app_latest[name].application_icon,
            )
            for name, duration in ranked[:top_n]
        )

    def summary(
        self,
        day: date,
        top_n: int,
        ai_summary_text: str = "",
        extra_time: timedelta = timedelta(0),
        extra_count: int = 0,
    ) -> DaySummary:
        return DaySummary(
            date=day,
            total_screen_time=self.total + extra_time,
            activity_count=self.count + extra_count,
            productivity_score=productivity_score(self.category_durations),
            top_apps=self.top_apps(top_n),
            ai_summary_text=ai_summary_text,
        )


class DailyAggregator:
    """Maintains today's totals from closed sessions.

    All state is guarded by one lock; ``apply`` and ``current_summary`` may
    be called from different threads.
    """

    def __init__(
        self,
        top_n: int = DEFAULT_TOP_N,
        day: date | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        if top_n <= 0:
            raise ValueError("top_n must be positive")
        self._top_n = top_n
        self._clock = clock
        self._day = day or clock().date()
        self._totals = _DayTotals()
        self._ai_summary = ""
        self._lock = threading.Lock()

    @property
    def day(self) -> date:
        with self._lock:
            return self._day

    @property
    def top_n(self) -> int:
        return self._top_n

    def apply(self, session: ActivitySession) -> None:
        """Fold one closed session into the running totals.

        A session starting on a later day rolls the aggregator over to that
        day first.

        Raises:
            ValueError: If the session is still open or belongs to an
                earlier day than the current one.
        """
        if session.is_open:
            raise ValueError(f"session {session.id} is still open")
        with self._lock:
            if session.day > self._day:
                logger.info("Rolling daily totals over from %s to %s", self._day, session.day)
                self._reset(session.day)
            elif session.day < self._day:
                raise ValueError(
                    f"session {session.id} belongs to {session.day}, aggregator is on {self._day}"
                )
            self._totals.add(session)

    def restore(self, day: date, sessions: Iterable[ActivitySession], ai_summary_text: str = "") -> None:
        """Replace the running state with previously stored sessions of ``day``."""
        with self._lock:
            self._reset(day)
            for session in sorted(sessions, key=lambda s: s.start_time):
                if session.is_open or session.day != day:
                    logger.warning("Skipping session %s while restoring %s", session.id, day)
                    continue
                self._totals.add(session)
            self._ai_summary = ai_summary_text
        logger.info("Restored %d sessions for %s", self._totals.count, day)

    def set_ai_summary(self, text: str) -> None:
        with self._lock:
            self._ai_summary = text

    def sessions(self) -> list[ActivitySession]:
        """Today's closed sessions, in the order they were applied."""
        with self._lock:
            return list(self._totals.sessions)

    def current_summary(
        self,
        open_session: ActivitySession | None = None,
        now: datetime | None = None,
        today: date | None = None,
    ) -> DaySummary:
        """Snapshot of the current day.

        An open session of the same day adds its live duration to the total
        screen time and one to the activity count. It does not affect the
        productivity score or the top applications.

        When ``today`` is later than the aggregator's day, no session has
        closed since midnight yet; the snapshot is then an empty summary for
        ``today`` that only counts an open session started on ``today``.
        """
        with self._lock:
            day = self._day
            totals = self._totals
            ai_summary = self._ai_summary
            if today is not None and today > day:
                day = today
                totals = _DayTotals()
                ai_summary = ""
            extra_time = timedelta(0)
            extra_count = 0
            if open_session is not None and open_session.is_open and open_session.day == day:
                extra_time = open_session.live_duration(now or self._clock())
                extra_count = 1
            return totals.summary(day, self._top_n, ai_summary, extra_time, extra_count)

    @staticmethod
    def recompute(
        sessions: Iterable[ActivitySession],
        day: date,
        top_n: int = DEFAULT_TOP_N,
        ai_summary_text: str = "",
    ) -> DaySummary:
        """Build a day's summary from scratch.

        Only closed sessions starting on ``day`` are counted. They are
        applied in start-time order through the same accumulator used
        incrementally.
        """
        totals = _DayTotals()
        for session in sorted(sessions, key=lambda s: s.start_time):
            if session.is_open or session.day != day:
                continue
            totals.add(session)
        return totals.summary(day, top_n, ai_summary_text)

    def _reset(self, day: date) -> None:
        self._day = day
        self._totals = _DayTotals()
        self._ai_summary = ""
