"""Best-effort natural language detection for recognized text."""

from __future__ import annotations

import logging

try:  # pragma: no cover - optional dependency
    from langdetect import DetectorFactory
    from langdetect import detect as _langdetect_detect

    DetectorFactory.seed = 0
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    _langdetect_detect = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)


def is_available() -> bool:
    return _langdetect_detect is not None


def detect_language(text: str) -> str | None:
    """Return the dominant language tag of ``text`` or None.

    None is returned when the text is empty, when langdetect is not
    installed, or when detection fails for any reason.
    """
    if not text.strip() or _langdetect_detect is None:
        return None
    try:
        return _langdetect_detect(text)
    except Exception as exc:  # langdetect raises on text without features
        logger.debug("Language detection inconclusive: %s", exc)
        return None
