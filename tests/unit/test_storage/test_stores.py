"""Tests for the in-memory and SQLite session stores."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from pathlib import Path

import pytest

from pulselog.domain.models import ActivityCategory, AppUsage, DaySummary, SessionEndReason
from pulselog.storage.base import SessionStore
from pulselog.storage.memory import InMemoryStore
from pulselog.storage.sqlite import SqliteStore


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path: Path) -> SessionStore:
    if request.param == "memory":
        return InMemoryStore()
    return SqliteStore(tmp_path / "nested" / "pulselog.db")


class TestSessionStores:
    def test_cannot_instantiate_abstract_class(self) -> None:
        with pytest.raises(TypeError):
            SessionStore()  # type: ignore[abstract]

    def test_save_and_load_by_day(self, store: SessionStore, make_session, t0: datetime) -> None:
        later = make_session("Slack", t0 + timedelta(minutes=20), 5, ActivityCategory.COMMUNICATION)
        earlier = make_session("Editor", t0, 10)
        other_day = make_session("Editor", t0 + timedelta(days=1), 10)
        for session in (later, earlier, other_day):
            store.save(session)

        loaded = store.load_sessions(t0.date())
        assert [s.id for s in loaded] == [earlier.id, later.id]
        assert loaded[1] == later

    def test_save_same_id_replaces(self, store: SessionStore, make_session, t0: datetime) -> None:
        session = make_session("Editor", t0, 10)
        store.save(session)
        store.save(session.model_copy(update={"title": "renamed"}))
        loaded = store.load_sessions(t0.date())
        assert len(loaded) == 1
        assert loaded[0].title == "renamed"

    def test_fields_survive_round_trip(self, store: SessionStore, make_session, t0: datetime) -> None:
        session = make_session("Editor", t0, 10, end_reason=SessionEndReason.IDLE).model_copy(
            update={
                "accumulated_text": "line one\nline two",
                "title": "Notes",
                "summary": "Writing notes.",
                "application_id": "com.example.editor",
                "sample_count": 7,
            }
        )
        store.save(session)
        assert store.load_sessions(t0.date()) == [session]

    def test_day_summary_upsert(self, store: SessionStore) -> None:
        day = date(2025, 3, 10)
        assert store.load_day_summary(day) is None
        first = DaySummary(
            date=day,
            total_screen_time=timedelta(minutes=90, microseconds=5),
            activity_count=4,
            productivity_score=0.72,
            top_apps=(
                AppUsage(app_name="Editor", category=ActivityCategory.WRITING,
                         duration=timedelta(minutes=60), icon="document"),
            ),
            ai_summary_text="A focused morning.",
        )
        store.save_day_summary(first)
        assert store.load_day_summary(day) == first

        second = first.model_copy(update={"activity_count": 5})
        store.save_day_summary(second)
        assert store.load_day_summary(day) == second


class TestStoreQueries:
    def test_load_sessions_between_is_inclusive(self, store: SessionStore, make_session, t0: datetime) -> None:
        sessions = [make_session("Editor", t0 + timedelta(days=offset), 10) for offset in (-1, 0, 1, 2)]
        for session in reversed(sessions):
            store.save(session)

        loaded = store.load_sessions_between(t0.date(), (t0 + timedelta(days=1)).date())
        assert [s.id for s in loaded] == [sessions[1].id, sessions[2].id]
        assert store.load_sessions_between(date(2024, 1, 1), date(2024, 1, 31)) == []

    def test_search_matches_every_word(self, store: SessionStore, make_session, t0: datetime) -> None:
        report = make_session("Editor", t0, 10).model_copy(
            update={"title": "Quarterly Report", "accumulated_text": "revenue grew in march"}
        )
        notes = make_session("Editor", t0 + timedelta(minutes=10), 10).model_copy(
            update={"title": "Meeting notes", "accumulated_text": "revenue targets"}
        )
        chat = make_session("Slack", t0 + timedelta(minutes=20), 10, ActivityCategory.COMMUNICATION)
        for session in (report, notes, chat):
            store.save(session)

        assert [s.id for s in store.search_sessions("revenue")] == [notes.id, report.id]
        assert [s.id for s in store.search_sessions("REVENUE quarterly")] == [report.id]
        assert [s.id for s in store.search_sessions("slack")] == [chat.id]
        assert store.search_sessions("revenue slack") == []
        assert store.search_sessions("   ") == []
        assert len(store.search_sessions("revenue", limit=1)) == 1

    def test_search_treats_wildcards_literally(self, store: SessionStore, make_session, t0: datetime) -> None:
        store.save(make_session("Editor", t0, 10).model_copy(update={"title": "50% done"}))
        store.save(make_session("Editor", t0 + timedelta(minutes=10), 10).model_copy(update={"title": "500 rows"}))
        assert [s.title for s in store.search_sessions("50%")] == ["50% done"]
        assert store.search_sessions("5_0") == []

    def test_delete_sessions_before(self, store: SessionStore, make_session, t0: datetime) -> None:
        old = make_session("Editor", t0 - timedelta(days=10), 10)
        kept = make_session("Editor", t0, 10)
        store.save(old)
        store.save(kept)

        assert store.delete_sessions_before(t0.date()) == 1
        assert store.load_sessions_between(date(2000, 1, 1), t0.date()) == [kept]
        assert store.delete_sessions_before(t0.date()) == 0

    def test_day_summaries_between_and_delete(self, store: SessionStore) -> None:
        days = [date(2025, 3, 8), date(2025, 3, 9), date(2025, 3, 10)]
        for day in reversed(days):
            store.save_day_summary(DaySummary(date=day, activity_count=day.day))

        between = store.load_day_summaries_between(days[1], days[2])
        assert [s.date for s in between] == days[1:]
        assert store.delete_day_summaries_before(days[2]) == 2
        assert store.load_day_summary(days[0]) is None
        assert store.load_day_summary(days[2]).activity_count == 10
