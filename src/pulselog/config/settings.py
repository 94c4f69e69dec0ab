"""Configuration management for pulselog.

Loads settings from a YAML configuration file with environment variable
overrides. Supports .env files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings

from pulselog.domain.models import RecognitionQuality

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/pulselog.yaml")

MIN_CAPTURE_INTERVAL = 1.0

# Default idle gap, in capture intervals
IDLE_THRESHOLD_INTERVALS = 3.0


class CaptureConfig(BaseModel):
    interval: float = Field(default=5.0, description="Seconds between captures")
    excluded_apps: list[str] = Field(
        default_factory=lambda: ["Keychain Access", "1Password", "System Preferences"],
        description="Application identifiers or names that are never captured",
    )
    monitor_index: int = Field(default=1, ge=0, description="mss monitor index (0 = all monitors)")
    max_pending: int = Field(default=2, gt=0, description="Frames allowed to wait for recognition")

    @field_validator("interval")
    @classmethod
    def _enforce_floor(cls, value: float) -> float:
        if value < MIN_CAPTURE_INTERVAL:
            logger.warning(
                "Capture interval %.2fs is below the %.1fs floor, using the floor",
                value, MIN_CAPTURE_INTERVAL,
            )
            return MIN_CAPTURE_INTERVAL
        return value


class RecognitionConfig(BaseModel):
    minimum_confidence: float = Field(default=0.3, ge=0.0, le=1.0)
    quality: RecognitionQuality = Field(default=RecognitionQuality.ACCURATE)
    language_hints: list[str] = Field(default_factory=lambda: ["en"])
    timeout: float = Field(default=10.0, gt=0, description="Seconds before a recognition call is abandoned")
    tesseract_cmd: str | None = Field(default=None, description="Path to the tesseract binary")


class SessionConfig(BaseModel):
    idle_threshold: float | None = Field(
        default=None, gt=0, description="Idle gap in seconds; defaults to 3x the capture interval"
    )
    text_merge: Literal["supersede", "exact"] = Field(default="supersede")
    max_accumulated_chars: int = Field(default=8000, gt=0)


class AggregationConfig(BaseModel):
    top_n: int = Field(default=5, gt=0)


class StorageConfig(BaseModel):
    path: str = Field(default="data/pulselog.db")
    session_retention_days: int | None = Field(
        default=90, gt=0, description="Days of sessions to keep; null keeps everything"
    )
    summary_retention_days: int | None = Field(
        default=365, gt=0, description="Days of day summaries to keep; null keeps everything"
    )



class SummarizerConfig(BaseModel):
    backend: Literal["heuristic", "local_llm"] = Field(default="heuristic")
    base_url: str = Field(default="http://localhost:1234/v1")
    model: str = Field(default="local-model")
    max_tokens: int = Field(default=512, gt=0)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the pulselog system.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "PULSELOG_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    # API key for the local summarization server (most local servers ignore it)
    llm_api_key: SecretStr = Field(default=SecretStr("not-needed"))

    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    recognition: RecognitionConfig = Field(default_factory=RecognitionConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    aggregation: AggregationConfig = Field(default_factory=AggregationConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    summarizer: SummarizerConfig = Field(default_factory=SummarizerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def idle_threshold(self) -> float:
        """Effective idle gap in seconds."""
        if self.session.idle_threshold is not None:
            return self.session.idle_threshold
        return IDLE_THRESHOLD_INTERVALS * self.capture.interval

    @property
    def idle_threshold_intervals(self) -> float | None:
        """Capture intervals per idle gap, or None when the gap is fixed in seconds."""
        if self.session.idle_threshold is not None:
            return None
        return IDLE_THRESHOLD_INTERVALS


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Values present in the YAML file win over environment variables and
    .env entries, which in turn win over defaults.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    _apply_env_overrides(yaml_data)

    return Settings(**yaml_data)


def _apply_env_overrides(yaml_data: dict) -> None:
    """Apply overrides from common non-prefixed variables."""
    tesseract_cmd = os.environ.get("TESSERACT_CMD", "")
    if tesseract_cmd:
        yaml_data.setdefault("recognition", {})
        if not yaml_data["recognition"].get("tesseract_cmd"):
            yaml_data["recognition"]["tesseract_cmd"] = tesseract_cmd
