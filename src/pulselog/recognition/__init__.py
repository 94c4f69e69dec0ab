"""Text recognition for pulselog.

Turns captured frames into structured recognition results. The engine
holds the backend-independent algorithm; backends plug in underneath.

Public API:
    RecognitionEngine -- Frame in, RecognitionResult out, never raises
    RecognitionBackend -- Abstract base class for OCR backends
    TesseractBackend -- pytesseract implementation
"""

from pulselog.recognition.base import (
    DecodeFailure,
    RecognitionBackend,
    RecognitionFailure,
    RegionCandidates,
    TextCandidate,
)
from pulselog.recognition.engine import RecognitionEngine

__all__ = [
    "DecodeFailure",
    "RecognitionBackend",
    "RecognitionEngine",
    "RecognitionFailure",
    "RegionCandidates",
    "TesseractBackend",
    "TextCandidate",
]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "TesseractBackend":
        from pulselog.recognition.tesseract import TesseractBackend
        return TesseractBackend
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
