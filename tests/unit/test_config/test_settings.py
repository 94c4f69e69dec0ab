"""Tests for configuration loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from pulselog.config.settings import (
    CaptureConfig,
    RecognitionConfig,
    SessionConfig,
    Settings,
    load_settings,
)
from pulselog.domain.models import RecognitionQuality


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TESSERACT_CMD", raising=False)
    monkeypatch.delenv("PULSELOG_LLM_API_KEY", raising=False)


class TestSettings:
    def test_default_settings(self) -> None:
        settings = Settings()
        assert settings.capture.interval == 5.0
        assert "Keychain Access" in settings.capture.excluded_apps
        assert settings.recognition.minimum_confidence == 0.3
        assert settings.recognition.quality == RecognitionQuality.ACCURATE
        assert settings.summarizer.backend == "heuristic"
        assert settings.aggregation.top_n == 5

    def test_idle_threshold_defaults_to_three_intervals(self) -> None:
        settings = Settings(capture={"interval": 10})
        assert settings.idle_threshold == 30.0

    def test_explicit_idle_threshold(self) -> None:
        settings = Settings(session={"idle_threshold": 45})
        assert settings.idle_threshold == 45.0
        assert settings.idle_threshold_intervals is None

    def test_idle_threshold_follows_interval_by_default(self) -> None:
        assert Settings().idle_threshold_intervals == 3.0

    def test_retention_defaults(self) -> None:
        storage = Settings().storage
        assert storage.session_retention_days == 90
        assert storage.summary_retention_days == 365
        assert Settings(storage={"session_retention_days": None}).storage.session_retention_days is None
        with pytest.raises(ValidationError):
            Settings(storage={"summary_retention_days": 0})

    def test_interval_below_floor_is_raised(self) -> None:
        assert CaptureConfig(interval=0.25).interval == 1.0
        assert CaptureConfig(interval=2).interval == 2.0

    def test_invalid_values_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RecognitionConfig(minimum_confidence=1.5)
        with pytest.raises(ValidationError):
            SessionConfig(text_merge="append")

    def test_api_key_is_secret(self) -> None:
        settings = Settings(llm_api_key="sk-local")
        assert settings.llm_api_key.get_secret_value() == "sk-local"
        assert "sk-local" not in repr(settings)


class TestLoadSettings:
    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path / "nonexistent.yaml")
        assert settings.capture.interval == 5.0

    def test_yaml_values_loaded(self, tmp_path: Path) -> None:
        config = tmp_path / "pulselog.yaml"
        config.write_text(
            "capture:\n"
            "  interval: 15\n"
            "  excluded_apps: [Signal]\n"
            "recognition:\n"
            "  quality: fast\n"
            "summarizer:\n"
            "  backend: local_llm\n"
            "  model: llama-3-8b\n"
        )
        settings = load_settings(config)
        assert settings.capture.interval == 15.0
        assert settings.capture.excluded_apps == ["Signal"]
        assert settings.recognition.quality == RecognitionQuality.FAST
        assert settings.summarizer.model == "llama-3-8b"
        assert settings.idle_threshold == 45.0

    def test_empty_yaml_file(self, tmp_path: Path) -> None:
        config = tmp_path / "empty.yaml"
        config.write_text("")
        assert load_settings(config).storage.path == "data/pulselog.db"

    def test_tesseract_cmd_from_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TESSERACT_CMD", "/opt/tesseract/bin/tesseract")
        settings = load_settings(tmp_path / "nonexistent.yaml")
        assert settings.recognition.tesseract_cmd == "/opt/tesseract/bin/tesseract"

    def test_yaml_tesseract_cmd_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TESSERACT_CMD", "/opt/tesseract/bin/tesseract")
        config = tmp_path / "pulselog.yaml"
        config.write_text("recognition:\n  tesseract_cmd: /usr/local/bin/tesseract\n")
        settings = load_settings(config)
        assert settings.recognition.tesseract_cmd == "/usr/local/bin/tesseract"

    def test_prefixed_environment_fills_missing_values(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PULSELOG_LLM_API_KEY", "from-env")
        settings = load_settings(tmp_path / "nonexistent.yaml")
        assert settings.llm_api_key.get_secret_value() == "from-env"
