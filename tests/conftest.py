"""Shared test fixtures for the pulselog test suite.

Provides common fixtures used across unit tests: encoded frames, fake
recognition backends, sample and session factories.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import Sequence

import cv2
import numpy as np
import pytest

from pulselog.domain.models import (
    ActivityCategory,
    ActivitySession,
    BoundingBox,
    CapturedFrame,
    RecognitionQuality,
    RecognitionResult,
    Sample,
    SessionEndReason,
    SourceApplication,
)
from pulselog.recognition.base import RecognitionBackend, RegionCandidates, TextCandidate


# ---------------------------------------------------------------------------
# Time / Application Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def t0() -> datetime:
    """A fixed morning timestamp."""
    return datetime(2025, 3, 10, 9, 0, 0)


@pytest.fixture
def editor_app() -> SourceApplication:
    return SourceApplication(identifier="com.example.editor", name="Editor")


@pytest.fixture
def browser_app() -> SourceApplication:
    return SourceApplication(identifier="com.google.chrome", name="Google Chrome")


# ---------------------------------------------------------------------------
# Frame / Image Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def png_bytes() -> bytes:
    """A small white PNG."""
    image = np.full((40, 60, 3), 255, dtype=np.uint8)
    success, buffer = cv2.imencode(".png", image)
    assert success
    return buffer.tobytes()


@pytest.fixture
def make_frame(png_bytes: bytes, editor_app: SourceApplication):
    """Factory for CapturedFrame instances."""

    def _make(
        timestamp: datetime,
        app: SourceApplication | None = None,
        frame_number: int = 0,
        image_data: bytes | None = None,
    ) -> CapturedFrame:
        return CapturedFrame(
            timestamp=timestamp,
            source_application=app or editor_app,
            image_data=png_bytes if image_data is None else image_data,
            frame_number=frame_number,
        )

    return _make


# ---------------------------------------------------------------------------
# Recognition Fixtures
# ---------------------------------------------------------------------------


class FakeBackend(RecognitionBackend):
    """Backend returning preset regions, or raising a preset error."""

    def __init__(self, regions: Sequence[RegionCandidates] = (), error: Exception | None = None) -> None:
        self.regions = list(regions)
        self.error = error
        self.calls: list[tuple[RecognitionQuality, tuple[str, ...]]] = []

    def recognize_regions(self, image, quality, language_hints):
        self.calls.append((quality, tuple(language_hints)))
        if self.error is not None:
            raise self.error
        return list(self.regions)


def region(text: str, confidence: float, x: float = 0.1, y: float = 0.5) -> RegionCandidates:
    """A single-candidate region at ``(x, y)``."""
    return RegionCandidates(
        bounding_box=BoundingBox(x=x, y=y, width=0.2, height=0.05),
        candidates=(TextCandidate(text=text, confidence=confidence),),
    )


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


# ---------------------------------------------------------------------------
# Sample / Session Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_sample(editor_app: SourceApplication):
    """Factory for Sample instances with the given text."""

    def _make(
        timestamp: datetime,
        text: str = "",
        app: SourceApplication | None = None,
    ) -> Sample:
        return Sample(
            source_application=app or editor_app,
            result=RecognitionResult(full_text=text),
            timestamp=timestamp,
        )

    return _make


@pytest.fixture
def make_session(t0: datetime):
    """Factory for closed ActivitySession instances."""

    def _make(
        app_name: str = "Editor",
        start: datetime | None = None,
        minutes: float = 10,
        category: ActivityCategory = ActivityCategory.WRITING,
        end_reason: SessionEndReason = SessionEndReason.APP_SWITCH,
    ) -> ActivitySession:
        start = start or t0
        end = start + timedelta(minutes=minutes)
        return ActivitySession(
            start_time=start,
            end_time=end,
            last_seen=end,
            application_name=app_name,
            category=category,
            end_reason=end_reason,
        )

    return _make


@pytest.fixture
def make_region():
    return region


@pytest.fixture
def make_backend():
    """Factory for FakeBackend instances."""
    return FakeBackend


# ---------------------------------------------------------------------------
# Async Helpers
# ---------------------------------------------------------------------------


async def _wait_until(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


@pytest.fixture
def wait_until():
    """Poll a predicate on the event loop until it holds."""
    return _wait_until
