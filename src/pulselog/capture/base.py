"""Abstract base classes for screen capture and foreground app lookup.

Capture sources produce encoded frames of the screen; foreground app
providers report which application the user is looking at. Both can be
swapped for fakes without changing the scheduler.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from pulselog.domain.models import CapturedFrame, SourceApplication

logger = logging.getLogger(__name__)


class CaptureSource(ABC):
    """Abstract interface for capturing frames of the screen.

    Example usage::

        async with ScreenCapture(monitor_index=1) as capture:
            frame = await capture.capture_frame(app)
    """

    def __init__(self) -> None:
        self._frame_counter: int = 0
        self._is_open: bool = False

    @property
    def is_open(self) -> bool:
        """Whether the source is open and ready."""
        return self._is_open

    @property
    def frame_count(self) -> int:
        return self._frame_counter

    @abstractmethod
    async def open(self) -> None:
        """Acquire any resources needed for capturing.

        Raises:
            CaptureError: If the source cannot be opened.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release resources. Safe to call multiple times."""
        ...

    @abstractmethod
    async def capture_frame(self, application: SourceApplication) -> CapturedFrame:
        """Capture one frame attributed to ``application``.

        Raises:
            CaptureError: If the capture fails.
        """
        ...

    def _next_frame_number(self) -> int:
        self._frame_counter += 1
        return self._frame_counter

    async def __aenter__(self) -> CaptureSource:
        await self.open()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.close()


class ForegroundAppProvider(ABC):
    """Reports the application currently in the foreground."""

    @abstractmethod
    def current(self) -> SourceApplication:
        """Return the foreground application.

        Implementations return an "Unknown" application rather than
        raising when the platform cannot tell.
        """
        ...


class CaptureError(Exception):
    """Raised when frame capture fails."""
