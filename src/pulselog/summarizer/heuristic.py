"""Template-based day summary that needs no model."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Callable, Sequence

from pulselog.aggregation.aggregator import DailyAggregator
from pulselog.domain.models import ActivityCategory, ActivitySession, DaySummary
from pulselog.summarizer.base import Summarizer
from pulselog.utils.formatting import format_duration

NO_ACTIVITY_TEXT = "No activity recorded today."

_PRODUCTIVITY_ASSESSMENTS = (
    (0.75, "a highly focused day"),
    (0.50, "a balanced day of work and other activities"),
    (0.25, "a lighter work day"),
    (0.0, "mostly leisure and non-work activities"),
)

_DEVELOPMENT_NOTE_MIN = timedelta(minutes=30)
_COMMUNICATION_NOTE_MIN = timedelta(minutes=15)


class HeuristicSummarizer(Summarizer):
    """Builds a short narrative from the day's totals.

    The narrative says "today" only for the current date; other days are
    named by their date.
    """

    def __init__(self, today: Callable[[], date] = date.today) -> None:
        self._today = today

    async def summarize(
        self,
        sessions: Sequence[ActivitySession],
        day_summary: DaySummary | None = None,
    ) -> str:
        closed = [s for s in sessions if not s.is_open]
        if not closed:
            if day_summary is not None and day_summary.date != self._today():
                return f"No activity recorded on {day_summary.date.isoformat()}."
            return NO_ACTIVITY_TEXT
        if day_summary is None:
            day_summary = DailyAggregator.recompute(closed, closed[0].day)
        return self.narrate(closed, day_summary)

    def narrate(self, sessions: Sequence[ActivitySession], day_summary: DaySummary) -> str:
        total = day_summary.total_screen_time
        hours, remainder = divmod(int(total.total_seconds()), 3600)
        minutes = remainder // 60
        spent = f"{hours}h {minutes}m" if hours > 0 else f"{minutes} minutes"
        if day_summary.date == self._today():
            opening = f"You spent {spent} on screen today"
        else:
            opening = f"On {day_summary.date.isoformat()} you spent {spent} on screen"
        parts = [opening, f"across {len(sessions)} activities."]


        names = [usage.app_name for usage in day_summary.top_apps[:3]]
        if len(names) == 1:
            parts.append(f"Most time was spent in {names[0]}.")
        elif len(names) == 2:
            parts.append(f"Most time was spent in {names[0]} and {names[1]}.")
        elif len(names) == 3:
            parts.append(f"Top apps: {names[0]}, {names[1]}, and {names[2]}.")

        by_category: dict[ActivityCategory, timedelta] = {}
        for session in sessions:
            by_category[session.category] = by_category.get(session.category, timedelta(0)) + session.duration
        if by_category and total > timedelta(0):
            top_category, top_duration = max(by_category.items(), key=lambda item: item[1])
            pct = int(top_duration / total * 100)
            parts.append(f"{top_category.value} was your primary focus at {pct}% of total time.")

        score = day_summary.productivity_score
        for threshold, assessment in _PRODUCTIVITY_ASSESSMENTS:
            if score >= threshold:
                parts.append(f"Productivity score: {int(score * 100)}%, {assessment}.")
                break

        development = by_category.get(ActivityCategory.DEVELOPMENT, timedelta(0))
        if development >= _DEVELOPMENT_NOTE_MIN:
            parts.append(f"Development work totaled {format_duration(development)}.")
        communication = by_category.get(ActivityCategory.COMMUNICATION, timedelta(0))
        if communication >= _COMMUNICATION_NOTE_MIN:
            parts.append(f"Communication took {format_duration(communication)}.")

        return " ".join(parts)
