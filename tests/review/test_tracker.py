"""
Tests for the Revision Tracker
==============================
Ingestion vs. authored edits, history invariants and timeline views.
"""

from datetime import datetime, timedelta, timezone

import pytest

from config_logging import InvalidEditError, ValidationError
from creative_review.models import DiffKind, TextRevisionLog
from creative_review.tracker import RevisionTracker, replay_values

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
T1 = T0 + timedelta(minutes=5)
T2 = T0 + timedelta(minutes=30)


@pytest.fixture
def tracker() -> RevisionTracker:
    return RevisionTracker()


@pytest.fixture
def scenario_log(tracker) -> TextRevisionLog:
    """Caption ingested as 'Buy now', edited by Alice then Bob."""
    log = tracker.record_edit(None, "Buy now")
    log = tracker.record_edit(log, "Buy now!", "Alice", T1)
    return tracker.record_edit(log, "Shop now!", "Bob", T2)


class TestRecordEdit:
    """Tests for RevisionTracker.record_edit."""

    def test_ingestion_sets_original_without_history(self, tracker):
        log = tracker.record_edit(None, "Buy now")

        assert log.original == "Buy now"
        assert log.current == "Buy now"
        assert log.history == []
        assert log.last_edited_by is None
        assert log.last_edited_at is None

    def test_first_save_with_author_is_still_ingestion(self, tracker):
        log = tracker.record_edit(None, "Hello", "Alice", T1)

        assert log.original == "Hello"
        assert log.history == []
        assert log.last_edited_by is None

    def test_unchanged_value_is_a_noop(self, tracker):
        log = tracker.record_edit(None, "Buy now")
        same = tracker.record_edit(log, "Buy now", "Alice", T1)

        assert same is log
        assert same.history == []

    def test_unchanged_value_without_author_is_a_noop(self, tracker):
        log = tracker.record_edit(None, "Buy now")
        assert tracker.record_edit(log, "Buy now") is log

    def test_edit_appends_pre_image(self, tracker):
        log = tracker.record_edit(None, "Buy now")
        edited = tracker.record_edit(log, "Buy now!", "Alice", T1)

        assert len(edited.history) == 1
        entry = edited.history[0]
        assert entry.text == "Buy now"
        assert entry.author == "Alice"
        assert entry.timestamp == T1
        assert edited.current == "Buy now!"
        assert edited.original == "Buy now"
        assert edited.last_edited_by == "Alice"
        assert edited.last_edited_at == T1

    def test_edit_does_not_mutate_input(self, tracker):
        log = tracker.record_edit(None, "Buy now")
        tracker.record_edit(log, "Buy now!", "Alice", T1)

        assert log.current == "Buy now"
        assert log.history == []

    def test_edit_defaults_timestamp(self, tracker):
        log = tracker.record_edit(None, "a")
        edited = tracker.record_edit(log, "b", "Alice")
        assert edited.last_edited_at is not None
        assert edited.last_edited_at.tzinfo is not None

    @pytest.mark.parametrize("author", [None, ""])
    def test_edit_without_author_is_rejected(self, tracker, author):
        log = tracker.record_edit(None, "Buy now")

        with pytest.raises(InvalidEditError) as excinfo:
            tracker.record_edit(log, "Buy now!", author, T1)

        assert excinfo.value.code == "INVALID_EDIT"
        assert excinfo.value.status_code == 400
        assert isinstance(excinfo.value, ValidationError)

    def test_scenario_history(self, scenario_log):
        assert [(h.text, h.author) for h in scenario_log.history] == [
            ("Buy now", "Alice"),
            ("Buy now!", "Bob"),
        ]
        assert scenario_log.current == "Shop now!"
        assert scenario_log.original == scenario_log.history[0].text

    def test_history_length_counts_only_distinct_edits(self, tracker):
        log = tracker.record_edit(None, "v0")
        values = ["v1", "v1", "v2", "v2", "v2", "v3", "v1"]
        for n, value in enumerate(values):
            log = tracker.record_edit(log, value, f"editor-{n}", T0 + timedelta(minutes=n))

        assert len(log.history) == 4
        assert log.current == "v1"

    def test_pre_image_invariant(self, tracker):
        log = tracker.record_edit(None, "first")
        seen = ["first"]
        for value in ["second", "third", "fourth"]:
            log = tracker.record_edit(log, value, "Alice", T1)
            seen.append(value)

        for i, entry in enumerate(log.history):
            assert entry.text == seen[i]


class TestChangesFromOriginal:
    """Tests for the original-vs-current view."""

    def test_scenario_diff(self, tracker, scenario_log):
        result = tracker.changes_from_original(scenario_log)
        assert [(t.kind, t.text) for t in result.tokens] == [
            (DiffKind.REMOVED, "Buy"),
            (DiffKind.ADDED, "Shop"),
            (DiffKind.SAME, " "),
            (DiffKind.REMOVED, "now"),
            (DiffKind.ADDED, "now!"),
        ]

    def test_no_log(self, tracker):
        assert tracker.changes_from_original(None) is None

    def test_unchanged_log(self, tracker):
        log = tracker.record_edit(None, "Buy now")
        assert tracker.changes_from_original(log) is None

    def test_reverted_to_original(self, tracker):
        log = tracker.record_edit(None, "Buy now")
        log = tracker.record_edit(log, "Shop now", "Alice", T1)
        log = tracker.record_edit(log, "Buy now", "Bob", T2)

        assert tracker.changes_from_original(log) is None
        assert len(log.history) == 2


class TestHistoryTimeline:
    """Tests for the most-recent-first timeline."""

    def test_scenario_timeline(self, tracker, scenario_log):
        steps = tracker.history_timeline(scenario_log)

        assert [s.index for s in steps] == [1, 0]

        latest, earliest = steps
        assert latest.before == "Buy now!"
        assert latest.after == "Shop now!"
        assert latest.author == "Bob"
        assert latest.timestamp == T2

        assert earliest.before == "Buy now"
        assert earliest.after == "Buy now!"
        # Attribution reads one entry ahead
        assert earliest.author == scenario_log.history[1].author
        assert earliest.timestamp == scenario_log.history[1].timestamp

    def test_step_diffs_reconstruct_transitions(self, tracker, scenario_log):
        for step in tracker.history_timeline(scenario_log):
            assert step.diff.old_text() == step.before
            assert step.diff.new_text() == step.after

    def test_empty_timelines(self, tracker):
        assert tracker.history_timeline(None) == []
        assert tracker.history_timeline(tracker.record_edit(None, "x")) == []

    def test_single_edit_uses_last_editor(self, tracker):
        log = tracker.record_edit(None, "a")
        log = tracker.record_edit(log, "b", "Carol", T1)

        (step,) = tracker.history_timeline(log)
        assert (step.before, step.after, step.author, step.timestamp) == ("a", "b", "Carol", T1)

    def test_to_dict(self, tracker, scenario_log):
        data = tracker.history_timeline(scenario_log)[0].to_dict()
        assert data['author'] == "Bob"
        assert data['timestamp'] == "2026-03-02T09:30:00Z"
        assert 'tokens' in data['diff']


class TestReplayValues:
    """Tests for reconstructing the chronological value sequence."""

    def test_scenario(self, scenario_log):
        assert replay_values(scenario_log) == ["Buy now", "Buy now!", "Shop now!"]

    def test_without_edits(self, tracker):
        assert replay_values(tracker.record_edit(None, "Only")) == ["Only"]

    def test_without_log(self):
        assert replay_values(None) == []
