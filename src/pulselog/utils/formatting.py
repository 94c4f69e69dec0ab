"""Human-readable formatting helpers."""

from __future__ import annotations

from datetime import timedelta


def format_duration(duration: timedelta | float) -> str:
    """Format a duration as ``45s``, ``12m 5s`` or ``2h 3m``."""
    seconds = duration.total_seconds() if isinstance(duration, timedelta) else duration
    total_seconds = int(seconds)
    if total_seconds < 60:
        return f"{total_seconds}s"
    minutes, secs = divmod(total_seconds, 60)
    if minutes < 60:
        return f"{minutes}m {secs}s" if secs else f"{minutes}m"
    hours, remaining_minutes = divmod(minutes, 60)
    return f"{hours}h {remaining_minutes}m" if remaining_minutes else f"{hours}h"


def truncate(text: str, max_length: int = 80) -> str:
    """Strip and shorten ``text`` to ``max_length`` characters plus an ellipsis."""
    cleaned = " ".join(text.split())
    if len(cleaned) <= max_length:
        return cleaned
    return cleaned[:max_length].rstrip() + "..."
