"""The background pipeline from captured frames to stored sessions.

Each frame goes through recognition, then the session classifier. A
session the classifier closes is applied to the daily aggregator and
handed to storage, after which a day summary refresh is kicked off in
the background.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta
from typing import Callable

from pulselog.aggregation.aggregator import DailyAggregator
from pulselog.domain.models import (
    ActivitySession,
    CapturedFrame,
    DaySummary,
    Sample,
    SessionEndReason,
)
from pulselog.recognition.engine import RecognitionEngine
from pulselog.session.classifier import SessionClassifier
from pulselog.storage.base import SessionStore, StorageUnavailable
from pulselog.storage.buffered import BufferedStore
from pulselog.summarizer.base import Summarizer

logger = logging.getLogger(__name__)

DEFAULT_RECOGNITION_TIMEOUT = 10.0


class ActivityPipeline:
    """Turns captured frames into closed, aggregated and stored sessions.

    ``process`` and ``flush`` must be called from one task at a time; the
    capture scheduler guarantees this with its single worker. The
    presentation views may be read at any time from the event loop.
    """

    def __init__(
        self,
        engine: RecognitionEngine,
        classifier: SessionClassifier,
        aggregator: DailyAggregator,
        store: SessionStore,
        summarizer: Summarizer | None = None,
        recognition_timeout: float = DEFAULT_RECOGNITION_TIMEOUT,
        clock: Callable[[], datetime] = datetime.now,
        idle_intervals: float | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            idle_intervals: When set, the classifier's idle threshold follows
                the capture interval as this many intervals. When None the
                classifier keeps its own fixed threshold.
        """
        if idle_intervals is not None and idle_intervals <= 0:
            raise ValueError("idle_intervals must be positive")
        self._idle_intervals = idle_intervals
        self._engine = engine
        self._classifier = classifier
        self._aggregator = aggregator
        self._store = store if isinstance(store, BufferedStore) else BufferedStore(store)
        self._summarizer = summarizer
        self._timeout = recognition_timeout
        self._clock = clock
        # One recognition at a time, off the event loop
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pulselog-ocr")
        self._summary_task: asyncio.Task | None = None

    @property
    def classifier(self) -> SessionClassifier:
        return self._classifier

    @property
    def aggregator(self) -> DailyAggregator:
        return self._aggregator

    @property
    def store(self) -> BufferedStore:
        return self._store

    @property
    def storage_degraded(self) -> bool:
        """True while sessions or day summaries are waiting for storage to come back."""
        return self._store.degraded

    def update_interval(self, seconds: float) -> None:
        """Track a new capture interval in the classifier's idle threshold."""
        if self._idle_intervals is None:
            return
        self._classifier.idle_threshold = timedelta(seconds=seconds * self._idle_intervals)
        logger.info(
            "Idle threshold follows capture interval: %.1fs", self._classifier.idle_threshold.total_seconds()
        )

    async def process(self, frame: CapturedFrame) -> ActivitySession | None:
        """Recognize one frame and feed it to the classifier.

        Returns:
            The session closed by this frame, if any.

        Raises:
            ClassificationInvariantViolation: If the frame is older than the
                previously processed one.
        """
        result = await self._engine.recognize_async(frame, self._timeout, self._executor)
        closed = self._classifier.ingest(Sample.from_frame(frame, result))
        if closed is not None:
            await self._hand_off(closed)
        return closed

    async def flush(self, reason: SessionEndReason = SessionEndReason.STOPPED) -> ActivitySession | None:
        """Force-close the open session and hand it off."""
        closed = self._classifier.close_open(reason)
        if closed is not None:
            await self._hand_off(closed)
        return closed

    async def _hand_off(self, session: ActivitySession) -> None:
        previous = self._aggregator.current_summary()
        try:
            self._aggregator.apply(session)
        except ValueError as e:
            logger.warning("Session %s not added to daily totals: %s", session.id, e)
        loop = asyncio.get_running_loop()
        if self._aggregator.day != previous.date:
            # Previous day is complete
            await loop.run_in_executor(None, self._store.save_day_summary, previous)
        await loop.run_in_executor(None, self._store.save, session)
        self.refresh_summary()

    # ------------------------------------------------------------------
    # Day summary
    # ------------------------------------------------------------------

    def refresh_summary(self) -> asyncio.Task | None:
        """Regenerate the day's summary text in the background.

        At most one refresh runs at a time; a call while one is in flight
        returns the running task. Returns None without a summarizer.
        """
        if self._summarizer is None:
            return None
        if self._summary_task is not None and not self._summary_task.done():
            logger.debug("Summary refresh already in flight")
            return self._summary_task
        self._summary_task = asyncio.create_task(self._run_summary())
        return self._summary_task

    async def _run_summary(self) -> None:
        day = self._aggregator.day
        sessions = self._aggregator.sessions()
        summary = self._aggregator.current_summary()
        try:
            text = await self._summarizer.summarize(sessions, summary)
        except Exception as e:
            logger.error("Summarizer %s failed: %s", self._summarizer.name, e)
            return
        if not text:
            logger.debug("Summarizer returned no text, keeping previous summary")
            return
        if self._aggregator.day != day:
            logger.debug("Day rolled over during summary refresh, discarding result")
            return
        self._aggregator.set_ai_summary(text)
        logger.info("Day summary refreshed (%d sessions)", len(sessions))

    async def wait_for_summary(self) -> None:
        """Wait for an in-flight summary refresh to finish."""
        if self._summary_task is not None:
            await asyncio.gather(self._summary_task, return_exceptions=True)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def current_summary(self, now: datetime | None = None) -> DaySummary:
        """Today's summary, counting the open session's live duration.

        After midnight this is the new day even before any of its sessions
        has closed.
        """
        now = now or self._clock()
        return self._aggregator.current_summary(self._classifier.open_session, now, today=now.date())

    def timeline(self) -> list[ActivitySession]:
        """Today's closed sessions plus the open one, in start-time order."""
        today = self._clock().date()
        sessions = self._aggregator.sessions() if self._aggregator.day >= today else []
        open_session = self._classifier.open_session
        if open_session is not None and open_session.day == max(today, self._aggregator.day):
            sessions.append(open_session)
        return sorted(sessions, key=lambda s: s.start_time)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def restore_day(self, day: date | None = None) -> int:
        """Seed the aggregator with sessions already stored for today.

        An unreadable store leaves the day empty instead of failing.

        Returns:
            Number of sessions restored.
        """
        target = day or self._clock().date()
        loop = asyncio.get_running_loop()
        try:
            sessions = await loop.run_in_executor(None, self._store.load_sessions, target)
            stored = await loop.run_in_executor(None, self._store.load_day_summary, target)
        except StorageUnavailable as e:
            logger.warning("Cannot read stored sessions for %s, starting the day empty: %s", target, e)
            sessions, stored = [], None
        self._aggregator.restore(target, sessions, stored.ai_summary_text if stored else "")
        return len(sessions)

    async def save_day_summary(self) -> DaySummary:
        """Persist the summary of the closed sessions of the current day.

        When storage is down the summary stays buffered with the pending
        sessions and ``storage_degraded`` reports it.
        """
        summary = self._aggregator.current_summary()
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._store.save_day_summary, summary)
        if self._store.degraded:
            logger.warning("Day summary for %s is buffered until storage recovers", summary.date)
        else:
            logger.info(
                "Saved day summary for %s (%d activities)", summary.date, summary.activity_count
            )
        return summary

    async def close(self) -> None:
        """Finish background work and release the store."""
        await self.wait_for_summary()
        self._executor.shutdown(wait=False)
        self._store.close()
