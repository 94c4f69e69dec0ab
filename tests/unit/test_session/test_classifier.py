"""Tests for the SessionClassifier state machine."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from pulselog.domain.models import ActivityCategory, SessionEndReason, SourceApplication
from pulselog.session.classifier import (
    ClassificationInvariantViolation,
    Idle,
    SessionClassifier,
    SessionOpen,
)
from pulselog.session.text import TextMergePolicy


def _at(t0: datetime, seconds: float) -> datetime:
    return t0 + timedelta(seconds=seconds)


class TestSessionLifecycle:
    def test_starts_idle(self) -> None:
        classifier = SessionClassifier()
        assert isinstance(classifier.state, Idle)
        assert classifier.open_session is None

    def test_first_sample_opens_session(self, make_sample, t0) -> None:
        classifier = SessionClassifier(idle_threshold=15)
        assert classifier.ingest(make_sample(t0, "hello")) is None
        assert isinstance(classifier.state, SessionOpen)
        session = classifier.open_session
        assert session.start_time == t0
        assert session.last_seen == t0
        assert session.application_name == "Editor"
        assert session.accumulated_text == "hello"
        assert session.is_open

    def test_open_session_is_a_copy(self, make_sample, t0) -> None:
        classifier = SessionClassifier(idle_threshold=15)
        classifier.ingest(make_sample(t0, "hello"))
        copy = classifier.open_session
        copy.accumulated_text = "changed"
        assert classifier.open_session.accumulated_text == "hello"

    def test_same_app_within_threshold_yields_one_session(self, make_sample, t0) -> None:
        classifier = SessionClassifier(idle_threshold=15)
        for seconds in range(0, 60, 5):
            assert classifier.ingest(make_sample(_at(t0, seconds), f"line {seconds}")) is None
        closed = classifier.close_open()
        assert closed.start_time == t0
        assert closed.end_time == _at(t0, 55)
        assert closed.sample_count == 12
        assert classifier.close_open() is None

    def test_interruption_yields_three_sessions(self, make_sample, browser_app, t0) -> None:
        classifier = SessionClassifier(idle_threshold=15)
        closed = []
        for sample in (
            make_sample(_at(t0, 0), "a1"),
            make_sample(_at(t0, 5), "b1", app=browser_app),
            make_sample(_at(t0, 10), "a2"),
        ):
            result = classifier.ingest(sample)
            if result is not None:
                closed.append(result)
        closed.append(classifier.close_open())

        assert [s.application_name for s in closed] == ["Editor", "Google Chrome", "Editor"]
        assert closed[0].end_time == _at(t0, 5)
        assert closed[0].end_reason == SessionEndReason.APP_SWITCH
        assert closed[1].start_time == _at(t0, 5)
        assert closed[1].end_time == _at(t0, 10)
        assert closed[2].start_time == _at(t0, 10)
        assert closed[2].accumulated_text == "a2"

    def test_idle_gap_splits_sessions(self, make_sample, t0) -> None:
        classifier = SessionClassifier(idle_threshold=15)
        classifier.ingest(make_sample(t0, "before"))
        closed = classifier.ingest(make_sample(_at(t0, 20), "after"))

        assert closed is not None
        assert closed.end_reason == SessionEndReason.IDLE
        assert closed.end_time == t0
        assert closed.accumulated_text == "before"
        reopened = classifier.open_session
        assert reopened.start_time == _at(t0, 20)
        assert reopened.accumulated_text == "after"

    def test_gap_equal_to_threshold_extends(self, make_sample, t0) -> None:
        classifier = SessionClassifier(idle_threshold=15)
        classifier.ingest(make_sample(t0))
        assert classifier.ingest(make_sample(_at(t0, 15))) is None
        assert classifier.open_session.last_seen == _at(t0, 15)

    def test_idle_gap_then_app_switch_closes_only_one(self, make_sample, browser_app, t0) -> None:
        classifier = SessionClassifier(idle_threshold=15)
        classifier.ingest(make_sample(t0))
        closed = classifier.ingest(make_sample(_at(t0, 60), app=browser_app))
        assert closed.end_reason == SessionEndReason.IDLE
        assert classifier.open_session.application_name == "Google Chrome"

    def test_close_open_uses_last_seen(self, make_sample, t0) -> None:
        classifier = SessionClassifier(idle_threshold=15)
        classifier.ingest(make_sample(t0))
        classifier.ingest(make_sample(_at(t0, 10)))
        closed = classifier.close_open(SessionEndReason.STOPPED)
        assert closed.end_time == _at(t0, 10)
        assert closed.end_reason == SessionEndReason.STOPPED
        assert isinstance(classifier.state, Idle)

    def test_empty_recognition_still_records_session(self, make_sample, t0) -> None:
        classifier = SessionClassifier(idle_threshold=15)
        classifier.ingest(make_sample(t0, ""))
        classifier.ingest(make_sample(_at(t0, 300), ""))
        closed = classifier.close_open()
        assert closed.accumulated_text == ""
        assert closed.title == "Editor"
        assert closed.summary == "Writing in Editor for 5m."

    def test_threshold_accepts_timedelta(self) -> None:
        classifier = SessionClassifier(idle_threshold=timedelta(seconds=30))
        assert classifier.idle_threshold == timedelta(seconds=30)

    def test_threshold_can_change_between_samples(self, make_sample, t0) -> None:
        classifier = SessionClassifier(idle_threshold=15)
        classifier.ingest(make_sample(t0))
        classifier.idle_threshold = 90
        assert classifier.idle_threshold == timedelta(seconds=90)
        assert classifier.ingest(make_sample(t0 + timedelta(seconds=60))) is None
        assert classifier.open_session.sample_count == 2

        with pytest.raises(ValueError):
            classifier.idle_threshold = timedelta(0)
        assert classifier.idle_threshold == timedelta(seconds=90)

    def test_rejects_non_positive_threshold(self) -> None:
        with pytest.raises(ValueError):
            SessionClassifier(idle_threshold=0)


class TestTimestampOrdering:
    def test_earlier_sample_rejected_and_state_unchanged(self, make_sample, t0) -> None:
        classifier = SessionClassifier(idle_threshold=15)
        classifier.ingest(make_sample(t0, "first"))
        classifier.ingest(make_sample(_at(t0, 10), "second"))
        before = classifier.open_session

        with pytest.raises(ClassificationInvariantViolation):
            classifier.ingest(make_sample(_at(t0, 5), "late"))

        after = classifier.open_session
        assert after == before
        assert classifier.last_timestamp == _at(t0, 10)

    def test_violation_is_a_value_error(self) -> None:
        assert issubclass(ClassificationInvariantViolation, ValueError)

    def test_equal_timestamp_accepted(self, make_sample, t0) -> None:
        classifier = SessionClassifier(idle_threshold=15)
        classifier.ingest(make_sample(t0, "one"))
        assert classifier.ingest(make_sample(t0, "two")) is None
        assert classifier.open_session.sample_count == 2


class TestTextAccumulation:
    def test_revised_fragment_not_duplicated(self, make_sample, t0) -> None:
        classifier = SessionClassifier(idle_threshold=15)
        classifier.ingest(make_sample(t0, "draft notes"))
        classifier.ingest(make_sample(_at(t0, 4), "draft notes revised"))

        text = classifier.open_session.accumulated_text
        assert "draft notes" in text
        assert "draft notes revised" in text
        assert text.count("draft notes") == 1

    def test_exact_policy_only_drops_identical_lines(self, make_sample, t0) -> None:
        classifier = SessionClassifier(idle_threshold=15, text_merge=TextMergePolicy.EXACT)
        classifier.ingest(make_sample(t0, "draft notes"))
        classifier.ingest(make_sample(_at(t0, 4), "draft notes"))
        classifier.ingest(make_sample(_at(t0, 8), "draft notes revised"))
        assert classifier.open_session.accumulated_text == "draft notes\ndraft notes revised"

    def test_accumulated_text_is_capped(self, make_sample, t0) -> None:
        classifier = SessionClassifier(idle_threshold=15, max_accumulated_chars=20)
        classifier.ingest(make_sample(t0, "aaaaaaaaaa"))
        classifier.ingest(make_sample(_at(t0, 1), "bbbbbbbbbb"))
        classifier.ingest(make_sample(_at(t0, 2), "cccccccccc"))
        text = classifier.open_session.accumulated_text
        assert len(text) <= 20
        assert text.endswith("cccccccccc")


class TestDerivedFields:
    def test_category_and_icon_resolved_on_close(self, make_sample, t0) -> None:
        app = SourceApplication(identifier="com.microsoft.VSCode", name="Code")
        classifier = SessionClassifier(idle_threshold=15)
        classifier.ingest(make_sample(t0, "def main():", app=app))
        closed = classifier.close_open()
        assert closed.category == ActivityCategory.DEVELOPMENT
        assert closed.application_icon == "code"

    def test_unknown_app_is_other(self, make_sample, t0) -> None:
        app = SourceApplication(identifier="org.example.mystery", name="Mystery")
        classifier = SessionClassifier(idle_threshold=15)
        classifier.ingest(make_sample(t0, app=app))
        assert classifier.close_open().category == ActivityCategory.OTHER

    def test_title_prefers_window_title(self, make_sample, t0) -> None:
        app = SourceApplication(identifier="com.example.editor", name="Editor", window_title="notes.md")
        classifier = SessionClassifier(idle_threshold=15)
        classifier.ingest(make_sample(t0, "Shopping list", app=app))
        assert classifier.close_open().title == "notes.md"

    def test_title_falls_back_to_first_line(self, make_sample, t0) -> None:
        classifier = SessionClassifier(idle_threshold=15)
        classifier.ingest(make_sample(t0, "Quarterly report\nRevenue grew."))
        closed = classifier.close_open()
        assert closed.title == "Quarterly report"
        assert closed.summary == "Quarterly report Revenue grew."

    def test_custom_category_resolver(self, make_sample, t0) -> None:
        classifier = SessionClassifier(
            idle_threshold=15, category_resolver=lambda app: ActivityCategory.ENTERTAINMENT
        )
        classifier.ingest(make_sample(t0))
        assert classifier.close_open().category == ActivityCategory.ENTERTAINMENT
