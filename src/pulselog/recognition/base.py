"""Abstract base class for text recognition backends.

A backend turns a decoded image into candidate text regions. Everything
above that (confidence filtering, reading order, language detection,
timing) lives in :class:`pulselog.recognition.engine.RecognitionEngine`,
so backends stay swappable without changing the rest of the pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from pulselog.domain.models import BoundingBox, RecognitionQuality


class TextCandidate(BaseModel):
    """One possible reading of a text region."""

    model_config = ConfigDict(frozen=True)

    text: str
    confidence: float = Field(ge=0.0, le=1.0)


class RegionCandidates(BaseModel):
    """A detected text region with its candidate readings, best first."""

    model_config = ConfigDict(frozen=True)

    bounding_box: BoundingBox
    candidates: tuple[TextCandidate, ...] = ()

    @property
    def top(self) -> TextCandidate | None:
        return self.candidates[0] if self.candidates else None


class RecognitionBackend(ABC):
    """Abstract interface for on-device text recognition."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def recognize_regions(
        self,
        image: np.ndarray,
        quality: RecognitionQuality,
        language_hints: Sequence[str],
    ) -> list[RegionCandidates]:
        """Recognize text regions in a decoded BGR image.

        Language hints bias recognition; they must not be used to drop
        results. Implementations may raise any exception on failure.
        """
        ...


class DecodeFailure(Exception):
    """Raised when a captured frame cannot be interpreted as an image."""


class RecognitionFailure(Exception):
    """Raised when the recognition backend fails or times out."""
