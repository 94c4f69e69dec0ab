"""Capture scheduling and the frame-to-session pipeline."""

from pulselog.scheduler.pipeline import ActivityPipeline
from pulselog.scheduler.scheduler import CaptureScheduler, FramePipeline

__all__ = ["ActivityPipeline", "CaptureScheduler", "FramePipeline"]
