"""Domain models for pulselog.

This package contains the core data structures, enumerations, and value
objects used throughout the system. All models use Pydantic v2 for
validation and serialization.
"""

from pulselog.domain.models import (
    ActivityCategory,
    ActivitySession,
    AppUsage,
    BoundingBox,
    CapturedFrame,
    DaySummary,
    RecognitionQuality,
    RecognitionResult,
    Sample,
    SessionEndReason,
    SourceApplication,
    TextObservation,
)

__all__ = [
    "ActivityCategory",
    "ActivitySession",
    "AppUsage",
    "BoundingBox",
    "CapturedFrame",
    "DaySummary",
    "RecognitionQuality",
    "RecognitionResult",
    "Sample",
    "SessionEndReason",
    "SourceApplication",
    "TextObservation",
]
