"""Export stored sessions and day summaries as JSON or CSV."""

from __future__ import annotations

import csv
import enum
import io
import json
import logging
from datetime import date, datetime
from typing import Iterable

from pulselog.domain.models import ActivitySession, DaySummary
from pulselog.storage.base import SessionStore

logger = logging.getLogger(__name__)

SESSION_FIELDS = (
    "start_time",
    "end_time",
    "application_name",
    "title",
    "summary",
    "category",
    "duration_seconds",
)

SUMMARY_FIELDS = (
    "date",
    "total_screen_time_seconds",
    "activity_count",
    "productivity_score",
    "ai_summary",
)


class ExportFormat(str, enum.Enum):
    JSON = "json"
    CSV = "csv"


class ExportScope(str, enum.Enum):
    """Which records an export covers."""

    SESSIONS = "sessions"
    SUMMARIES = "summaries"
    ALL = "all"


def session_record(session: ActivitySession) -> dict:
    return {
        "start_time": session.start_time.isoformat(),
        "end_time": session.end_time.isoformat() if session.end_time else None,
        "application_name": session.application_name,
        "title": session.title,
        "summary": session.summary,
        "category": session.category.value,
        "duration_seconds": round(session.duration.total_seconds(), 3),
    }


def summary_record(summary: DaySummary) -> dict:
    return {
        "date": summary.date.isoformat(),
        "total_screen_time_seconds": round(summary.total_screen_time.total_seconds(), 3),
        "activity_count": summary.activity_count,
        "productivity_score": round(summary.productivity_score, 4),
        "ai_summary": summary.ai_summary_text,
    }


def _to_csv(records: Iterable[dict], fields: tuple[str, ...]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=fields, lineterminator="\n")
    writer.writeheader()
    for record in records:
        writer.writerow({k: "" if v is None else v for k, v in record.items()})
    return buffer.getvalue()


def export_sessions(sessions: Iterable[ActivitySession], fmt: ExportFormat = ExportFormat.JSON) -> str:
    records = [session_record(s) for s in sessions]
    if fmt == ExportFormat.CSV:
        return _to_csv(records, SESSION_FIELDS)
    return json.dumps(records, indent=2, ensure_ascii=False)


def export_day_summaries(summaries: Iterable[DaySummary], fmt: ExportFormat = ExportFormat.JSON) -> str:
    records = [summary_record(s) for s in summaries]
    if fmt == ExportFormat.CSV:
        return _to_csv(records, SUMMARY_FIELDS)
    return json.dumps(records, indent=2, ensure_ascii=False)


def export_range(
    store: SessionStore,
    start: date,
    end: date,
    scope: ExportScope = ExportScope.ALL,
    fmt: ExportFormat = ExportFormat.JSON,
    exported_at: datetime | None = None,
) -> str:
    """Render the stored records from ``start`` through ``end``.

    ``ExportScope.ALL`` produces one JSON document holding both summaries
    and sessions; CSV has no room for two tables, so it needs a narrower
    scope.

    Raises:
        ValueError: If the range is reversed or CSV is asked for both tables.
        StorageUnavailable: If the store cannot be read.
    """
    if end < start:
        raise ValueError(f"export range ends ({end}) before it starts ({start})")

    if scope == ExportScope.SESSIONS:
        return export_sessions(store.load_sessions_between(start, end), fmt)
    if scope == ExportScope.SUMMARIES:
        return export_day_summaries(store.load_day_summaries_between(start, end), fmt)
    if fmt == ExportFormat.CSV:
        raise ValueError("CSV export covers either sessions or summaries, not both")

    sessions = store.load_sessions_between(start, end)
    summaries = store.load_day_summaries_between(start, end)
    logger.info(
        "Exporting %d session(s) and %d summary(ies) for %s..%s",
        len(sessions), len(summaries), start, end,
    )
    bundle = {
        "export_date": (exported_at or datetime.now()).isoformat(),
        "date_range": {"from": start.isoformat(), "to": end.isoformat()},
        "daily_summaries": [summary_record(s) for s in summaries],
        "activity_entries": [session_record(s) for s in sessions],
    }
    return json.dumps(bundle, indent=2, ensure_ascii=False)
