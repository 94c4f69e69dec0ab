"""The recognition engine: one captured frame in, one structured result out.

The engine is synchronous and must be called off the event loop thread
(the pipeline uses :meth:`RecognitionEngine.recognize_async`, which runs
it in a dedicated worker thread under a timeout). It never raises: decode
failures, backend errors, and timeouts all degrade to an empty result.
"""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import Executor
from typing import Callable, Sequence

from pulselog.domain.models import (
    CapturedFrame,
    RecognitionQuality,
    RecognitionResult,
    TextObservation,
)
from pulselog.recognition.base import DecodeFailure, RecognitionBackend, RegionCandidates
from pulselog.recognition.language import detect_language
from pulselog.utils.imaging import decode_image

logger = logging.getLogger(__name__)

DEFAULT_MINIMUM_CONFIDENCE = 0.3

LanguageDetector = Callable[[str], "str | None"]


class RecognitionEngine:
    """Turns captured frames into filtered, reading-ordered text observations."""

    def __init__(
        self,
        backend: RecognitionBackend,
        minimum_confidence: float = DEFAULT_MINIMUM_CONFIDENCE,
        quality: RecognitionQuality = RecognitionQuality.ACCURATE,
        language_hints: Sequence[str] = ("en",),
        language_detector: LanguageDetector | None = detect_language,
    ) -> None:
        """Initialize the engine.

        Args:
            backend: The OCR backend that produces candidate regions.
            minimum_confidence: Regions whose top candidate scores below
                this are discarded.
            quality: Recognition quality level passed to the backend.
            language_hints: Language tags used to bias recognition.
            language_detector: Callable returning a language tag for the
                recognized text, or None to disable detection.
        """
        if not 0.0 <= minimum_confidence <= 1.0:
            raise ValueError(f"minimum_confidence must be in [0, 1], got {minimum_confidence}")
        self._backend = backend
        self._minimum_confidence = minimum_confidence
        self._quality = quality
        self._language_hints = tuple(language_hints)
        self._language_detector = language_detector

    @property
    def minimum_confidence(self) -> float:
        return self._minimum_confidence

    @property
    def quality(self) -> RecognitionQuality:
        return self._quality

    def recognize(self, frame: CapturedFrame) -> RecognitionResult:
        """Recognize the text in one frame.

        Returns an empty result (with ``processing_duration`` set) when
        the frame cannot be decoded or the backend fails.
        """
        started = time.perf_counter()
        try:
            image = decode_image(frame.image_data)
            if image is None:
                raise DecodeFailure(f"frame {frame.frame_number} is not a decodable image")
            regions = self._backend.recognize_regions(image, self._quality, self._language_hints)
            observations = self._select_observations(regions)
        except DecodeFailure as exc:
            logger.debug("Decode failed: %s", exc)
            return RecognitionResult.empty(time.perf_counter() - started)
        except Exception as exc:
            logger.warning(
                "Recognition failed for frame %d (%s): %s",
                frame.frame_number, self._backend.name, exc,
            )
            return RecognitionResult.empty(time.perf_counter() - started)

        full_text = "\n".join(o.text for o in observations)
        language = self._detect_language(full_text)

        result = RecognitionResult(
            full_text=full_text,
            observations=tuple(observations),
            detected_language=language,
            processing_duration=time.perf_counter() - started,
        )
        logger.debug(
            "Frame %d: %d observations, avg confidence %.2f, language=%s, %.3fs",
            frame.frame_number, len(observations), result.average_confidence,
            language, result.processing_duration,
        )
        return result

    async def recognize_async(
        self,
        frame: CapturedFrame,
        timeout: float,
        executor: Executor | None = None,
    ) -> RecognitionResult:
        """Run :meth:`recognize` in a worker thread, giving up after ``timeout``.

        A timed-out call yields an empty result whose duration is the
        timeout. The worker thread itself cannot be interrupted and
        finishes in the background.
        """
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(executor, self.recognize, frame)
        try:
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Recognition of frame %d timed out after %.1fs", frame.frame_number, timeout
            )
            return RecognitionResult.empty(timeout)

    def _select_observations(self, regions: list[RegionCandidates]) -> list[TextObservation]:
        """Keep each region's top candidate above the threshold, in reading order."""
        kept: list[TextObservation] = []
        for region in regions:
            top = region.top
            if top is None or top.confidence < self._minimum_confidence:
                continue
            text = top.text.strip()
            if not text:
                continue
            kept.append(
                TextObservation(text=text, confidence=top.confidence, bounding_box=region.bounding_box)
            )
        # Bottom-left origin: larger y is closer to the top of the screen
        kept.sort(key=lambda o: (-o.bounding_box.y, o.bounding_box.x))
        return kept

    def _detect_language(self, text: str) -> str | None:
        if not text or self._language_detector is None:
            return None
        try:
            return self._language_detector(text)
        except Exception as exc:
            logger.debug("Language detection failed: %s", exc)
            return None
