"""Core domain models for the pulselog system.

These models represent the data flowing through the capture-to-activity
pipeline: captured frames and the application that was in the foreground,
text recognition results, activity sessions built from those results,
and the per-day summary derived from closed sessions.
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ActivityCategory(str, enum.Enum):
    """What kind of work an activity session represents."""

    PRODUCTIVITY = "Productivity"
    COMMUNICATION = "Communication"
    BROWSING = "Browsing"
    ENTERTAINMENT = "Entertainment"
    DEVELOPMENT = "Development"
    DESIGN = "Design"
    WRITING = "Writing"
    OTHER = "Other"


class SessionEndReason(str, enum.Enum):
    """Why an activity session was closed."""

    APP_SWITCH = "app_switch"  # A different application came to the foreground
    IDLE = "idle"  # No sample touched the session for longer than the idle threshold
    STOPPED = "stopped"  # Capture was stopped
    EXCLUDED = "excluded"  # An excluded application came to the foreground


class RecognitionQuality(str, enum.Enum):
    """Trade-off between recognition latency and accuracy."""

    FAST = "fast"
    ACCURATE = "accurate"


# ---------------------------------------------------------------------------
# Capture Models
# ---------------------------------------------------------------------------


class SourceApplication(BaseModel):
    """The application that was in the foreground when a frame was taken."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(default="", description="Bundle or process identifier")
    name: str = Field(default="Unknown", description="Human-readable application name")
    window_title: str = Field(default="", description="Title of the foreground window, if known")

    @property
    def key(self) -> str:
        """Identity used to decide whether two samples belong to the same app."""
        return self.identifier or self.name


class CapturedFrame(BaseModel):
    """A single screen snapshot.

    The encoded image bytes are only interpreted by the recognition
    engine. Frames are never persisted.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=datetime.now, description="When the frame was captured")
    source_application: SourceApplication = Field(default_factory=SourceApplication)
    image_data: bytes = Field(default=b"", repr=False, description="Encoded image (PNG/JPEG)")
    frame_number: int = Field(default=0, ge=0, description="Sequential frame counter")


# ---------------------------------------------------------------------------
# Recognition Models
# ---------------------------------------------------------------------------


class BoundingBox(BaseModel):
    """A normalized rectangle with its origin at the bottom-left corner."""

    model_config = ConfigDict(frozen=True)

    x: float = Field(ge=0.0, le=1.0)
    y: float = Field(ge=0.0, le=1.0)
    width: float = Field(ge=0.0, le=1.0)
    height: float = Field(ge=0.0, le=1.0)


class TextObservation(BaseModel):
    """One recognized text region."""

    model_config = ConfigDict(frozen=True)

    text: str
    confidence: float = Field(ge=0.0, le=1.0)
    bounding_box: BoundingBox


class RecognitionResult(BaseModel):
    """Output of one recognition call over a captured frame."""

    model_config = ConfigDict(frozen=True)

    full_text: str = Field(default="", description="Observation texts joined in reading order")
    observations: tuple[TextObservation, ...] = Field(
        default=(), description="Observations sorted top-to-bottom, left-to-right"
    )
    detected_language: str | None = Field(
        default=None, description="Dominant language tag, None when undetermined"
    )
    processing_duration: float = Field(default=0.0, ge=0.0, description="Seconds spent recognizing")

    @property
    def is_empty(self) -> bool:
        return self.full_text == ""

    @property
    def average_confidence(self) -> float:
        """Mean observation confidence, 0.0 when nothing was recognized."""
        if not self.observations:
            return 0.0
        return sum(o.confidence for o in self.observations) / len(self.observations)

    @classmethod
    def empty(cls, processing_duration: float = 0.0) -> RecognitionResult:
        return cls(processing_duration=max(0.0, processing_duration))


class Sample(BaseModel):
    """A recognition result paired with the frame metadata it came from."""

    model_config = ConfigDict(frozen=True)

    source_application: SourceApplication
    result: RecognitionResult
    timestamp: datetime

    @classmethod
    def from_frame(cls, frame: CapturedFrame, result: RecognitionResult) -> Sample:
        return cls(
            source_application=frame.source_application,
            result=result,
            timestamp=frame.timestamp,
        )


# ---------------------------------------------------------------------------
# Activity Models
# ---------------------------------------------------------------------------


class ActivitySession(BaseModel):
    """A contiguous span of time attributed to one application.

    A session is open while ``end_time`` is None. Only the session
    classifier mutates an open session; once closed it is handed to the
    daily aggregator and the store and treated as read-only.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    start_time: datetime
    end_time: datetime | None = None
    last_seen: datetime = Field(description="Timestamp of the latest sample that touched this session")
    application_name: str
    application_id: str = ""
    application_icon: str = "app"
    category: ActivityCategory = ActivityCategory.OTHER
    accumulated_text: str = ""
    title: str = ""
    summary: str = ""
    end_reason: SessionEndReason | None = None
    sample_count: int = Field(default=1, ge=0)

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    @property
    def duration(self) -> timedelta:
        """Closed duration; zero while the session is still open."""
        if self.end_time is None:
            return timedelta(0)
        return self.end_time - self.start_time

    def live_duration(self, now: datetime) -> timedelta:
        """Duration for display, counting an open session up to ``now``."""
        if self.end_time is not None:
            return self.end_time - self.start_time
        return max(now - self.start_time, timedelta(0))

    @property
    def day(self) -> date:
        """Sessions belong to the calendar day they started on."""
        return self.start_time.date()


class AppUsage(BaseModel):
    """Time spent in one application within an aggregation window."""

    model_config = ConfigDict(frozen=True)

    app_name: str
    category: ActivityCategory
    duration: timedelta
    icon: str = "app"


class DaySummary(BaseModel):
    """Derived statistics for one calendar day."""

    model_config = ConfigDict(frozen=True)

    date: date
    total_screen_time: timedelta = timedelta(0)
    activity_count: int = Field(default=0, ge=0)
    productivity_score: float = Field(default=0.0, ge=0.0, le=1.0)
    top_apps: tuple[AppUsage, ...] = ()
    ai_summary_text: str = ""

    @classmethod
    def empty(cls, day: date) -> DaySummary:
        return cls(date=day)
