"""Day summaries from a local OpenAI-compatible language model server.

Works with LM Studio, Ollama, llama.cpp server and other endpoints that
speak the chat completions API.
"""

from __future__ import annotations

import logging
from typing import Sequence

from pulselog.domain.models import ActivitySession, DaySummary
from pulselog.summarizer.base import Summarizer
from pulselog.utils.formatting import format_duration, truncate

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:1234/v1"

DEFAULT_SYSTEM_PROMPT = (
    "You summarize a person's computer activity for a daily journal. "
    "Write three to five plain sentences in the second person. "
    "Only describe what the activity log shows."
)

# Characters of recognized text included per session
_TEXT_PREVIEW_CHARS = 160


class LocalLLMSummarizer(Summarizer):
    """Summarizer backed by an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        model: str = "local-model",
        api_key: str = "not-needed",
        max_tokens: int = 512,
        system_prompt: str | None = None,
        client=None,
    ) -> None:
        self._base_url = base_url
        self._model = model
        self._api_key = api_key
        self._max_tokens = max_tokens
        self._system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT
        self._client = client

    def _ensure_client(self) -> None:
        """Lazily initialize the OpenAI async client."""
        if self._client is not None:
            return
        from openai import AsyncOpenAI
        self._client = AsyncOpenAI(api_key=self._api_key, base_url=self._base_url)
        logger.info("Initialized summarizer client (model=%s, base_url=%s)", self._model, self._base_url)

    async def summarize(
        self,
        sessions: Sequence[ActivitySession],
        day_summary: DaySummary | None = None,
    ) -> str:
        closed = [s for s in sessions if not s.is_open]
        if not closed:
            return ""

        prompt = build_prompt(closed, day_summary)
        try:
            self._ensure_client()
            response = await self._client.chat.completions.create(
                model=self._model,
                max_tokens=self._max_tokens,
                messages=[
                    {"role": "system", "content": self._system_prompt},
                    {"role": "user", "content": prompt},
                ],
            )
            content = response.choices[0].message.content or ""
        except Exception as e:
            logger.error("Failed to generate day summary: %s", e)
            return ""
        return content.strip()


def build_prompt(sessions: Sequence[ActivitySession], day_summary: DaySummary | None = None) -> str:
    """Render the activity log sent to the model."""
    lines = []
    for session in sessions:
        start = session.start_time.strftime("%H:%M")
        end = session.end_time.strftime("%H:%M") if session.end_time else "now"
        line = (
            f"[{start}-{end}] {session.application_name} ({session.category.value}, "
            f"{format_duration(session.duration)}): {session.title}"
        )
        if session.accumulated_text:
            line += f" | {truncate(session.accumulated_text, _TEXT_PREVIEW_CHARS)}"
        lines.append(line)

    header = f"Here are {len(sessions)} activity sessions"
    if day_summary is not None:
        header += (
            f" from {day_summary.date.isoformat()}, totaling "
            f"{format_duration(day_summary.total_screen_time)} with a productivity score of "
            f"{int(day_summary.productivity_score * 100)}%"
        )
    return header + ".\n\n" + "\n".join(lines) + "\n\nSummarize the day."
