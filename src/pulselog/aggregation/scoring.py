"""Productivity scoring by activity category."""

from __future__ import annotations

from datetime import timedelta
from typing import Mapping

from pulselog.domain.models import ActivityCategory

CATEGORY_SCORES: dict[ActivityCategory, float] = {
    ActivityCategory.PRODUCTIVITY: 1.0,
    ActivityCategory.COMMUNICATION: 0.6,
    ActivityCategory.BROWSING: 0.4,
    ActivityCategory.ENTERTAINMENT: 0.1,
    ActivityCategory.OTHER: 0.5,
    ActivityCategory.DEVELOPMENT: 0.95,
    ActivityCategory.WRITING: 0.9,
    ActivityCategory.DESIGN: 0.85,
}


def category_score(category: ActivityCategory) -> float:
    return CATEGORY_SCORES.get(category, CATEGORY_SCORES[ActivityCategory.OTHER])


def productivity_score(category_durations: Mapping[ActivityCategory, timedelta]) -> float:
    """Duration-weighted mean of the category scores, clamped to [0, 1].

    Categories are summed in enum declaration order, so the result does not
    depend on the order durations were accumulated in. Returns 0.0 when the
    total duration is zero.
    """
    total = timedelta(0)
    weighted = 0.0
    for category in ActivityCategory:
        duration = category_durations.get(category)
        if not duration:
            continue
        total += duration
        weighted += category_score(category) * duration.total_seconds()
    if total <= timedelta(0):
        return 0.0
    return max(0.0, min(1.0, weighted / total.total_seconds()))
