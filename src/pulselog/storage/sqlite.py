"""SQLite-backed session store."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import date, datetime, timedelta
from pathlib import Path

from pulselog.domain.models import (
    ActivityCategory,
    ActivitySession,
    AppUsage,
    DaySummary,
    SessionEndReason,
)
from pulselog.storage.base import (
    DEFAULT_SEARCH_LIMIT,
    SessionStore,
    StorageUnavailable,
    search_terms,
)

logger = logging.getLogger(__name__)

_MICROSECOND = timedelta(microseconds=1)

_SESSION_COLUMNS = (
    "id, start_time, end_time, last_seen, day, application_name, application_id, "
    "application_icon, category, accumulated_text, title, summary, end_reason, sample_count"
)

_SUMMARY_COLUMNS = (
    "date, total_screen_time_us, activity_count, productivity_score, top_apps, ai_summary_text"
)

_SEARCHED_COLUMNS = ("application_name", "title", "summary", "accumulated_text")


def _to_micros(duration: timedelta) -> int:
    return duration // _MICROSECOND


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_session(row: tuple) -> ActivitySession:
    return ActivitySession(
        id=row[0],
        start_time=datetime.fromisoformat(row[1]),
        end_time=datetime.fromisoformat(row[2]) if row[2] else None,
        last_seen=datetime.fromisoformat(row[3]),
        application_name=row[5],
        application_id=row[6] or "",
        application_icon=row[7] or "app",
        category=ActivityCategory(row[8]),
        accumulated_text=row[9] or "",
        title=row[10] or "",
        summary=row[11] or "",
        end_reason=SessionEndReason(row[12]) if row[12] else None,
        sample_count=row[13] or 0,
    )


def _row_to_summary(row: tuple) -> DaySummary:
    return DaySummary(
        date=date.fromisoformat(row[0]),
        total_screen_time=timedelta(microseconds=row[1]),
        activity_count=row[2],
        productivity_score=row[3],
        top_apps=tuple(
            AppUsage(
                app_name=item["app_name"],
                category=ActivityCategory(item["category"]),
                duration=timedelta(microseconds=item["duration_us"]),
                icon=item.get("icon", "app"),
            )
            for item in json.loads(row[4])
        ),
        ai_summary_text=row[5] or "",
    )


class SqliteStore(SessionStore):
    """Persists sessions and day summaries in a local SQLite file.

    Timestamps are stored as ISO 8601 text and durations as integer
    microseconds so values read back compare equal to the ones written.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._initialize()
        except (OSError, sqlite3.Error) as exc:
            raise StorageUnavailable(f"cannot open {self.db_path}: {exc}") from exc
        logger.info("Using SQLite store at %s", self.db_path)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _initialize(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    id TEXT PRIMARY KEY,
                    start_time TEXT NOT NULL,
                    end_time TEXT,
                    last_seen TEXT NOT NULL,
                    day TEXT NOT NULL,
                    application_name TEXT NOT NULL,
                    application_id TEXT,
                    application_icon TEXT,
                    category TEXT NOT NULL,
                    accumulated_text TEXT,
                    title TEXT,
                    summary TEXT,
                    end_reason TEXT,
                    sample_count INTEGER
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_sessions_day ON sessions(day, start_time)")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS day_summaries (
                    date TEXT PRIMARY KEY,
                    total_screen_time_us INTEGER NOT NULL,
                    activity_count INTEGER NOT NULL,
                    productivity_score REAL NOT NULL,
                    top_apps TEXT NOT NULL,
                    ai_summary_text TEXT
                )
                """
            )
            conn.commit()

    def _fetch(self, sql: str, params: tuple, action: str) -> list[tuple]:
        try:
            with self._connect() as conn:
                return conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"failed to {action}: {exc}") from exc

    def _delete(self, sql: str, params: tuple, action: str) -> int:
        try:
            with self._connect() as conn:
                deleted = conn.execute(sql, params).rowcount
                conn.commit()
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"failed to {action}: {exc}") from exc
        return deleted

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def save(self, session: ActivitySession) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    f"INSERT OR REPLACE INTO sessions ({_SESSION_COLUMNS}) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        session.id,
                        session.start_time.isoformat(),
                        session.end_time.isoformat() if session.end_time else None,
                        session.last_seen.isoformat(),
                        session.day.isoformat(),
                        session.application_name,
                        session.application_id,
                        session.application_icon,
                        session.category.value,
                        session.accumulated_text,
                        session.title,
                        session.summary,
                        session.end_reason.value if session.end_reason else None,
                        session.sample_count,
                    ),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"failed to save session {session.id}: {exc}") from exc

    def load_sessions(self, day: date) -> list[ActivitySession]:
        return self.load_sessions_between(day, day)

    def load_sessions_between(self, start: date, end: date) -> list[ActivitySession]:
        rows = self._fetch(
            f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE day BETWEEN ? AND ? ORDER BY start_time ASC",
            (start.isoformat(), end.isoformat()),
            f"load sessions for {start}..{end}",
        )
        return [_row_to_session(row) for row in rows]

    def search_sessions(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[ActivitySession]:
        terms = search_terms(query)
        if not terms:
            return []
        column_match = " OR ".join(f"{column} LIKE ? ESCAPE '\\'" for column in _SEARCHED_COLUMNS)
        where = " AND ".join(f"({column_match})" for _ in terms)
        params: list = []
        for term in terms:
            params.extend([f"%{_escape_like(term)}%"] * len(_SEARCHED_COLUMNS))
        params.append(limit)
        rows = self._fetch(
            f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE {where} ORDER BY start_time DESC LIMIT ?",
            tuple(params),
            f"search sessions for {query!r}",
        )
        return [_row_to_session(row) for row in rows]

    def delete_sessions_before(self, day: date) -> int:
        return self._delete(
            "DELETE FROM sessions WHERE day < ?", (day.isoformat(),), f"delete sessions before {day}"
        )

    # ------------------------------------------------------------------
    # Day summaries
    # ------------------------------------------------------------------

    def save_day_summary(self, summary: DaySummary) -> None:
        top_apps = json.dumps(
            [
                {
                    "app_name": usage.app_name,
                    "category": usage.category.value,
                    "duration_us": _to_micros(usage.duration),
                    "icon": usage.icon,
                }
                for usage in summary.top_apps
            ]
        )
        try:
            with self._connect() as conn:
                conn.execute(
                    f"INSERT OR REPLACE INTO day_summaries ({_SUMMARY_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        summary.date.isoformat(),
                        _to_micros(summary.total_screen_time),
                        summary.activity_count,
                        summary.productivity_score,
                        top_apps,
                        summary.ai_summary_text,
                    ),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"failed to save summary for {summary.date}: {exc}") from exc

    def load_day_summary(self, day: date) -> DaySummary | None:
        summaries = self.load_day_summaries_between(day, day)
        return summaries[0] if summaries else None

    def load_day_summaries_between(self, start: date, end: date) -> list[DaySummary]:
        rows = self._fetch(
            f"SELECT {_SUMMARY_COLUMNS} FROM day_summaries WHERE date BETWEEN ? AND ? ORDER BY date ASC",
            (start.isoformat(), end.isoformat()),
            f"load summaries for {start}..{end}",
        )
        return [_row_to_summary(row) for row in rows]

    def delete_day_summaries_before(self, day: date) -> int:
        return self._delete(
            "DELETE FROM day_summaries WHERE date < ?", (day.isoformat(),), f"delete summaries before {day}"
        )
