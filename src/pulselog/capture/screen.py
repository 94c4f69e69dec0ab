"""Screen capture implementation using mss."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

import mss
import mss.tools
from mss.exception import ScreenShotError

from pulselog.capture.base import CaptureError, CaptureSource
from pulselog.domain.models import CapturedFrame, SourceApplication

logger = logging.getLogger(__name__)


class ScreenCapture(CaptureSource):
    """Captures one monitor as PNG bytes.

    The blocking grab runs in a thread pool executor so the event loop
    keeps ticking.
    """

    def __init__(self, monitor_index: int = 1) -> None:
        super().__init__()
        self._monitor_index = monitor_index

    async def open(self) -> None:
        self._is_open = True
        logger.info("Screen capture ready (monitor %d)", self._monitor_index)

    async def close(self) -> None:
        if self._is_open:
            self._is_open = False
            logger.info("Screen capture closed after %d frames", self._frame_counter)

    async def capture_frame(self, application: SourceApplication) -> CapturedFrame:
        if not self._is_open:
            raise CaptureError("Screen capture is not open. Call open() first.")
        loop = asyncio.get_running_loop()
        timestamp = datetime.now()
        png_bytes = await loop.run_in_executor(None, self._grab_png)
        return CapturedFrame(
            timestamp=timestamp,
            source_application=application,
            image_data=png_bytes,
            frame_number=self._next_frame_number(),
        )

    def _grab_png(self) -> bytes:
        try:
            with mss.mss() as session:
                monitors = session.monitors
                if 0 <= self._monitor_index < len(monitors):
                    monitor = monitors[self._monitor_index]
                else:
                    monitor = monitors[1 if len(monitors) > 1 else 0]
                shot = session.grab(monitor)
                return mss.tools.to_png(shot.rgb, shot.size)
        except ScreenShotError as exc:
            raise CaptureError(f"Screen grab failed: {exc}") from exc
