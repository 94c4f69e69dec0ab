"""Session classification: folding recognition samples into activity sessions.

The classifier is a two-state machine. In ``Idle`` no session is open; in
``SessionOpen`` exactly one session is open and owned by the classifier.
Each ingested sample either extends the open session or closes it and
opens a new one. The classifier keeps no history beyond the open session;
closed sessions are returned to the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Union

from pulselog.domain.models import (
    ActivityCategory,
    ActivitySession,
    Sample,
    SessionEndReason,
    SourceApplication,
)
from pulselog.session.categories import icon_for_category, resolve_category
from pulselog.session.text import TextMergePolicy, derive_summary, derive_title, merge_text

logger = logging.getLogger(__name__)

DEFAULT_IDLE_THRESHOLD = timedelta(seconds=15)
DEFAULT_MAX_ACCUMULATED_CHARS = 8000


class ClassificationInvariantViolation(ValueError):
    """Raised when a sample arrives out of timestamp order."""

    def __init__(self, message: str, sample_time: datetime, last_time: datetime) -> None:
        super().__init__(message)
        self.sample_time = sample_time
        self.last_time = last_time


class Idle:
    """No session is open."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "Idle()"


class SessionOpen:
    """One session is open for ``application``."""

    __slots__ = ("session", "application")

    def __init__(self, session: ActivitySession, application: SourceApplication) -> None:
        self.session = session
        self.application = application

    def __repr__(self) -> str:
        return f"SessionOpen(app={self.application.key!r}, since={self.session.start_time})"


ClassifierState = Union[Idle, SessionOpen]


def _to_threshold(value: timedelta | float) -> timedelta:
    if not isinstance(value, timedelta):
        value = timedelta(seconds=value)
    if value <= timedelta(0):
        raise ValueError("idle_threshold must be positive")
    return value

_IDLE = Idle()


class SessionClassifier:
    """Maintains at most one open activity session over a time-ordered sample stream."""

    def __init__(
        self,
        idle_threshold: timedelta | float = DEFAULT_IDLE_THRESHOLD,
        text_merge: TextMergePolicy | str = TextMergePolicy.SUPERSEDE,
        max_accumulated_chars: int = DEFAULT_MAX_ACCUMULATED_CHARS,
        category_resolver: Callable[[SourceApplication], ActivityCategory] = resolve_category,
    ) -> None:
        """Initialize the classifier.

        Args:
            idle_threshold: Largest gap between samples that still extends
                a session. Seconds or a timedelta.
            text_merge: Policy for folding new text into a session.
            max_accumulated_chars: Upper bound on a session's accumulated text.
            category_resolver: Maps an application to its category.
        """
        self._idle_threshold = _to_threshold(idle_threshold)
        self._text_merge = TextMergePolicy(text_merge)
        self._max_chars = max_accumulated_chars
        self._resolve_category = category_resolver
        self._state: ClassifierState = _IDLE
        self._last_timestamp: datetime | None = None

    @property
    def state(self) -> ClassifierState:
        return self._state

    @property
    def idle_threshold(self) -> timedelta:
        return self._idle_threshold

    @idle_threshold.setter
    def idle_threshold(self, value: timedelta | float) -> None:
        """Change the idle gap; applies from the next ingested sample."""
        self._idle_threshold = _to_threshold(value)
        logger.debug("Idle threshold set to %s", self._idle_threshold)

    @property
    def open_session(self) -> ActivitySession | None:
        """A copy of the open session, for display."""
        if isinstance(self._state, SessionOpen):
            return self._state.session.model_copy()
        return None

    @property
    def last_timestamp(self) -> datetime | None:
        """Timestamp of the most recently ingested sample."""
        return self._last_timestamp

    def ingest(self, sample: Sample) -> ActivitySession | None:
        """Apply one sample; return the session it closed, if any.

        Raises:
            ClassificationInvariantViolation: If the sample is older than the
                previously ingested one. State is left unchanged.
        """
        if self._last_timestamp is not None and sample.timestamp < self._last_timestamp:
            raise ClassificationInvariantViolation(
                f"sample at {sample.timestamp.isoformat()} precedes "
                f"last sample at {self._last_timestamp.isoformat()}",
                sample_time=sample.timestamp,
                last_time=self._last_timestamp,
            )
        self._last_timestamp = sample.timestamp

        closed: ActivitySession | None = None
        state = self._state
        if isinstance(state, SessionOpen) and sample.timestamp - state.session.last_seen > self._idle_threshold:
            closed = self._close(state, SessionEndReason.IDLE, state.session.last_seen)

        state = self._state
        if isinstance(state, SessionOpen):
            if state.application.key == sample.source_application.key:
                self._extend(state, sample)
                return None
            closed = self._close(state, SessionEndReason.APP_SWITCH, sample.timestamp)

        self._open(sample)
        return closed

    def close_open(self, reason: SessionEndReason = SessionEndReason.STOPPED) -> ActivitySession | None:
        """Force-close the open session at its last observed timestamp."""
        state = self._state
        if not isinstance(state, SessionOpen):
            return None
        return self._close(state, reason, state.session.last_seen)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _open(self, sample: Sample) -> None:
        app = sample.source_application
        category = self._resolve_category(app)
        session = ActivitySession(
            start_time=sample.timestamp,
            last_seen=sample.timestamp,
            application_name=app.name,
            application_id=app.identifier,
            application_icon=icon_for_category(category),
            category=category,
            accumulated_text=merge_text("", sample.result.full_text, self._text_merge, self._max_chars),
            sample_count=1,
        )
        self._state = SessionOpen(session, app)
        logger.debug("Opened session %s for %s at %s", session.id, app.key, sample.timestamp)

    def _extend(self, state: SessionOpen, sample: Sample) -> None:
        session = state.session
        session.accumulated_text = merge_text(
            session.accumulated_text, sample.result.full_text, self._text_merge, self._max_chars
        )
        session.last_seen = sample.timestamp
        session.sample_count += 1
        # Keep the freshest window title for the derived title
        state.application = sample.source_application

    def _close(self, state: SessionOpen, reason: SessionEndReason, end_time: datetime) -> ActivitySession:
        session = state.session
        category = self._resolve_category(state.application)
        duration = end_time - session.start_time
        closed = session.model_copy(
            update={
                "end_time": end_time,
                "end_reason": reason,
                "category": category,
                "application_icon": icon_for_category(category),
                "title": derive_title(
                    session.application_name, state.application.window_title, session.accumulated_text
                ),
                "summary": derive_summary(
                    session.application_name, category, session.accumulated_text, duration
                ),
            }
        )
        self._state = _IDLE
        logger.info(
            "Closed session %s (%s, %s, %ds, %s)",
            closed.id, closed.application_name, category.value,
            int(duration.total_seconds()), reason.value,
        )
        return closed
