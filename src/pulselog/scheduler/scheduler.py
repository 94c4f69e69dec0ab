"""Periodic capture scheduling.

A timer task takes one screenshot per interval and queues it for a
single worker task that drives the pipeline. Capturing never waits for
recognition; when recognition falls behind, overdue ticks are dropped
instead of piling up.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Iterable, Protocol

from pulselog.capture.base import CaptureError, CaptureSource, ForegroundAppProvider
from pulselog.config.settings import MIN_CAPTURE_INTERVAL
from pulselog.domain.models import (
    ActivitySession,
    CapturedFrame,
    SessionEndReason,
    SourceApplication,
)
from pulselog.session.classifier import ClassificationInvariantViolation

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 5.0
DEFAULT_MAX_PENDING = 2


class FramePipeline(Protocol):
    """What the scheduler needs from the pipeline."""

    async def process(self, frame: CapturedFrame) -> ActivitySession | None: ...

    async def flush(self, reason: SessionEndReason) -> ActivitySession | None: ...

    def update_interval(self, seconds: float) -> None: ...


class _FlushRequest:
    """Queue item asking the worker to force-close the open session."""

    __slots__ = ("reason",)

    def __init__(self, reason: SessionEndReason) -> None:
        self.reason = reason


def _clamp_interval(seconds: float) -> float:
    if seconds < MIN_CAPTURE_INTERVAL:
        logger.warning(
            "Capture interval %.2fs is below the %.1fs floor, using the floor",
            seconds, MIN_CAPTURE_INTERVAL,
        )
        return MIN_CAPTURE_INTERVAL
    return seconds


class CaptureScheduler:
    """Drives periodic capture while enabled.

    Example usage::

        scheduler = CaptureScheduler(ScreenCapture(), SystemForegroundApp(), pipeline)
        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        capture: CaptureSource,
        foreground: ForegroundAppProvider,
        pipeline: FramePipeline,
        interval: float = DEFAULT_INTERVAL,
        excluded_apps: Iterable[str] = (),
        max_pending: int = DEFAULT_MAX_PENDING,
    ) -> None:
        if max_pending <= 0:
            raise ValueError("max_pending must be positive")
        self._capture = capture
        self._foreground = foreground
        self._pipeline = pipeline
        self._interval = _clamp_interval(interval)
        self._excluded = self._normalize(excluded_apps)
        self._max_pending = max_pending

        self._queue: asyncio.Queue | None = None
        self._timer_task: asyncio.Task | None = None
        self._worker_task: asyncio.Task | None = None
        self._lifecycle_lock = asyncio.Lock()
        self._running = False
        self._in_excluded = False
        self._capture_count = 0
        self._dropped_ticks = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def capture_count(self) -> int:
        """Frames captured since construction."""
        return self._capture_count

    @property
    def dropped_ticks(self) -> int:
        """Ticks skipped because recognition was behind."""
        return self._dropped_ticks

    @property
    def excluded_apps(self) -> frozenset[str]:
        return self._excluded

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Begin capturing. No-op when already running.

        Raises:
            CaptureError: If the capture source cannot be opened.
        """
        async with self._lifecycle_lock:
            if self._running:
                return
            await self._capture.open()
            self._pipeline.update_interval(self._interval)
            self._queue = asyncio.Queue(maxsize=self._max_pending)
            self._in_excluded = False
            self._running = True
            self._worker_task = asyncio.create_task(self._worker())
            self._timer_task = asyncio.create_task(self._timer())
            logger.info("Capture started (interval %.1fs)", self._interval)

    async def stop(self) -> None:
        """Stop capturing and close the open session. No-op when stopped.

        Returns after every frame queued before the call has been processed
        and the open session has been closed and handed to storage.
        """
        async with self._lifecycle_lock:
            if not self._running:
                return
            self._running = False
            await self._cancel(self._timer_task)
            self._timer_task = None

            await self._queue.put(_FlushRequest(SessionEndReason.STOPPED))
            await self._queue.join()
            await self._cancel(self._worker_task)
            self._worker_task = None
            self._queue = None

            await self._capture.close()
            logger.info(
                "Capture stopped (%d frames captured, %d ticks dropped)",
                self._capture_count, self._dropped_ticks,
            )

    async def toggle(self) -> bool:
        """Stop when running, start when stopped. Returns the new state."""
        if self._running:
            await self.stop()
        else:
            await self.start()
        return self._running

    def update_interval(self, seconds: float) -> None:
        """Change the capture interval; applies from the next tick.

        The pipeline is told as well so the idle gap keeps pace with the
        new spacing between samples.
        """
        self._interval = _clamp_interval(seconds)
        self._pipeline.update_interval(self._interval)
        logger.info("Capture interval set to %.1fs", self._interval)

    def update_exclusions(self, apps: Iterable[str]) -> None:
        self._excluded = self._normalize(apps)
        logger.info("Excluded applications updated (%d entries)", len(self._excluded))

    def is_excluded(self, app: SourceApplication) -> bool:
        """Whether ``app`` matches the exclusion set by identifier or name."""
        return (
            (bool(app.identifier) and app.identifier.lower() in self._excluded)
            or app.name.lower() in self._excluded
        )

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def _timer(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            await self._tick()
            next_tick += self._interval
            delay = next_tick - loop.time()
            if delay < 0:
                # Fell behind; schedule from now instead of bursting
                next_tick = loop.time()
                delay = 0
            await asyncio.sleep(delay)

    async def _tick(self) -> None:
        loop = asyncio.get_running_loop()
        app = await loop.run_in_executor(None, self._foreground.current)

        if self.is_excluded(app):
            if not self._in_excluded:
                self._in_excluded = True
                logger.info("Excluded application %s in foreground, pausing capture", app.name)
                await self._queue.put(_FlushRequest(SessionEndReason.EXCLUDED))
            return
        self._in_excluded = False

        if self._queue.full():
            self._dropped_ticks += 1
            logger.warning(
                "Recognition is behind (%d frames pending), dropping tick", self._queue.qsize()
            )
            return

        try:
            frame = await self._capture.capture_frame(app)
        except CaptureError as e:
            logger.warning("Capture failed, skipping tick: %s", e)
            return
        self._capture_count += 1
        logger.debug("Captured frame %d (%s)", frame.frame_number, app.key)
        self._queue.put_nowait(frame)

    async def _worker(self) -> None:
        while True:
            item = await self._queue.get()
            try:
                if isinstance(item, _FlushRequest):
                    await self._pipeline.flush(item.reason)
                else:
                    await self._pipeline.process(item)
            except ClassificationInvariantViolation as e:
                logger.error("Dropping out-of-order frame: %s", e)
            except Exception:
                logger.exception("Pipeline failed, continuing with the next frame")
            finally:
                self._queue.task_done()

    @staticmethod
    async def _cancel(task: asyncio.Task | None) -> None:
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    @staticmethod
    def _normalize(apps: Iterable[str]) -> frozenset[str]:
        return frozenset(a.strip().lower() for a in apps if a.strip())
