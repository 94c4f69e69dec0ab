"""Daily aggregation and productivity scoring."""

from pulselog.aggregation.aggregator import DailyAggregator
from pulselog.aggregation.scoring import CATEGORY_SCORES, category_score, productivity_score

__all__ = [
    "CATEGORY_SCORES",
    "DailyAggregator",
    "category_score",
    "productivity_score",
]
