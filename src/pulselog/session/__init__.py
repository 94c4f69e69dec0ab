"""Session classification for pulselog.

Groups the recognition sample stream into per-application activity
sessions and derives each session's category, title, and summary.
"""

from pulselog.session.categories import icon_for_category, resolve_category
from pulselog.session.classifier import (
    ClassificationInvariantViolation,
    ClassifierState,
    Idle,
    SessionClassifier,
    SessionOpen,
)
from pulselog.session.text import TextMergePolicy, merge_text

__all__ = [
    "ClassificationInvariantViolation",
    "ClassifierState",
    "Idle",
    "SessionClassifier",
    "SessionOpen",
    "TextMergePolicy",
    "icon_for_category",
    "merge_text",
    "resolve_category",
]
