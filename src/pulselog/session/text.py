"""Text accumulation and derivation for activity sessions.

Recognized text arrives once per sample and overlaps heavily between
consecutive frames of the same application. These helpers fold it into
one deduplicated body and derive a short title and summary from it.
"""

from __future__ import annotations

import enum
import re
from datetime import timedelta

from pulselog.domain.models import ActivityCategory
from pulselog.utils.formatting import format_duration, truncate

TITLE_MAX_LENGTH = 80
SUMMARY_MAX_CHARS = 200
SUMMARY_MAX_SENTENCES = 2

_SENTENCE_BOUNDARY = re.compile(r"(?<=[\u3002\uFF0E\uFF01\uFF1F.!?])\s+")


class TextMergePolicy(str, enum.Enum):
    """How new text fragments are folded into a session's accumulated text."""

    SUPERSEDE = "supersede"  # Drop contained fragments, replace fragments the new one extends
    EXACT = "exact"  # Drop only identical fragments


def _fragments(text: str) -> list[str]:
    return [" ".join(line.split()) for line in text.splitlines() if line.strip()]


def merge_text(
    accumulated: str,
    incoming: str,
    policy: TextMergePolicy = TextMergePolicy.SUPERSEDE,
    max_chars: int | None = None,
) -> str:
    """Fold ``incoming`` into ``accumulated`` without duplicating fragments.

    Fragments are whitespace-normalized lines. Under ``SUPERSEDE`` a new
    fragment already contained in an existing one is skipped, and existing
    fragments contained in the new one are replaced by it in place, so
    "draft notes" followed by "draft notes revised" keeps only the latter.
    When ``max_chars`` is set the oldest fragments are dropped first.
    """
    merged = _fragments(accumulated)
    for fragment in _fragments(incoming):
        if policy == TextMergePolicy.EXACT:
            if fragment not in merged:
                merged.append(fragment)
            continue
        if any(fragment in existing for existing in merged):
            continue
        superseded = [i for i, existing in enumerate(merged) if existing in fragment]
        if superseded:
            merged[superseded[0]] = fragment
            for i in reversed(superseded[1:]):
                del merged[i]
        else:
            merged.append(fragment)

    if max_chars is not None:
        while len(merged) > 1 and len("\n".join(merged)) > max_chars:
            merged.pop(0)
        if merged and len(merged[0]) > max_chars:
            merged[0] = merged[0][:max_chars]
    return "\n".join(merged)


def derive_title(application_name: str, window_title: str, accumulated_text: str) -> str:
    """Short label for a session.

    Prefers the window title, then the first recognized line, then the
    application name.
    """
    if window_title.strip():
        return truncate(window_title, TITLE_MAX_LENGTH)
    for fragment in _fragments(accumulated_text):
        return truncate(fragment, TITLE_MAX_LENGTH)
    return application_name


def summarize_text(
    text: str,
    max_sentences: int = SUMMARY_MAX_SENTENCES,
    max_chars: int = SUMMARY_MAX_CHARS,
) -> str:
    """Produce a lightweight summary from the leading sentences of ``text``."""
    cleaned = " ".join(_fragments(text))
    if not cleaned:
        return ""
    parts: list[str] = []
    for sentence in _SENTENCE_BOUNDARY.split(cleaned):
        if not sentence:
            continue
        parts.append(sentence)
        if len(parts) >= max_sentences or len(" ".join(parts)) >= max_chars:
            break
    summary = " ".join(parts).strip()
    if len(summary) > max_chars:
        summary = summary[: max_chars - 3].rstrip() + "..."
    return summary


_GENERIC_TEMPLATES = {
    ActivityCategory.DEVELOPMENT: "Working in {app} for {duration}.",
    ActivityCategory.COMMUNICATION: "Communicating via {app} for {duration}.",
    ActivityCategory.BROWSING: "Browsing in {app} for {duration}.",
    ActivityCategory.ENTERTAINMENT: "Using {app} for leisure ({duration}).",
    ActivityCategory.DESIGN: "Designing in {app} for {duration}.",
    ActivityCategory.WRITING: "Writing in {app} for {duration}.",
    ActivityCategory.PRODUCTIVITY: "Working in {app} for {duration}.",
    ActivityCategory.OTHER: "Using {app} for {duration}.",
}


def derive_summary(
    application_name: str,
    category: ActivityCategory,
    accumulated_text: str,
    duration: timedelta,
) -> str:
    """Short description: leading recognized sentences, or a category template."""
    summary = summarize_text(accumulated_text)
    if summary:
        return summary
    template = _GENERIC_TEMPLATES.get(category, _GENERIC_TEMPLATES[ActivityCategory.OTHER])
    return template.format(app=application_name, duration=format_duration(duration))
