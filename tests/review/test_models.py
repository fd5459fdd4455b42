"""
Tests for Creative Review Models
================================
Serialization, status transitions and comment threads.
"""

from datetime import datetime, timezone

import pytest

from creative_review.models import (
    Comment, Creative, CreativeStatus, HistoryEntry, MediaType, PinAnnotation,
    Project, TextField, TextRevisionLog, format_timestamp, parse_timestamp,
)

STAMP = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


def make_creative(**overrides) -> Creative:
    values = dict(
        original_name='Banner.png',
        file_name='Banner_1700000000000.png',
        file_path='/uploads/p1/Banner_1700000000000.png',
        file_size=1024,
        mime_type='image/png',
        media_type=MediaType.IMAGE,
    )
    values.update(overrides)
    return Creative(**values)


class TestTimestamps:
    """Tests for timestamp helpers."""

    def test_format_uses_z_suffix(self):
        assert format_timestamp(STAMP) == "2026-03-02T09:30:00Z"

    def test_naive_datetime_treated_as_utc(self):
        assert format_timestamp(datetime(2026, 3, 2, 9, 30)) == "2026-03-02T09:30:00Z"

    def test_parse_round_trip(self):
        assert parse_timestamp("2026-03-02T09:30:00Z") == STAMP

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_values(self, value):
        assert parse_timestamp(value) is None
        assert format_timestamp(None) is None


class TestTextRevisionLog:
    """Tests for TextRevisionLog serialization."""

    def test_round_trip(self):
        log = TextRevisionLog(
            original="Buy now",
            current="Shop now!",
            history=[
                HistoryEntry("Buy now", "Alice", STAMP),
                HistoryEntry("Buy now!", "Bob", STAMP),
            ],
            last_edited_by="Bob",
            last_edited_at=STAMP,
        )

        data = log.to_dict()
        assert data['edit_count'] == 2
        assert data['history'][0] == {
            'text': "Buy now", 'author': "Alice", 'timestamp': "2026-03-02T09:30:00Z",
        }
        assert TextRevisionLog.from_dict(data) == log

    def test_missing_log(self):
        assert TextRevisionLog.from_dict(None) is None


class TestComment:
    """Tests for comments and pins."""

    def test_pin_key_omitted_for_plain_comment(self):
        data = Comment(author="Ann", text="Looks good").to_dict()
        assert 'pin' not in data
        assert data['parent_id'] is None

    def test_pin_round_trip(self):
        comment = Comment(author="Ann", text="Move logo", pin=PinAnnotation(12.5, 80.0))
        data = comment.to_dict()

        assert data['pin'] == {'x': 12.5, 'y': 80.0}
        restored = Comment.from_dict(data)
        assert restored.pin == PinAnnotation(12.5, 80.0)
        assert restored.id == comment.id

    def test_ids_are_unique(self):
        assert Comment(author="a", text="b").id != Comment(author="a", text="b").id


class TestCreative:
    """Tests for Creative behaviour."""

    def test_defaults(self):
        creative = make_creative()
        assert creative.status is CreativeStatus.PENDING
        assert creative.revision_number == 1
        assert creative.caption == ""
        assert creative.image_text == ""

    def test_text_logs_by_field(self):
        creative = make_creative()
        log = TextRevisionLog(original="Hi", current="Hi")
        creative.set_log(TextField.IMAGE_TEXT, log)

        assert creative.get_log(TextField.IMAGE_TEXT) is log
        assert creative.get_log(TextField.CAPTION) is None
        assert creative.image_text == "Hi"

    def test_requesting_revision_bumps_number(self):
        creative = make_creative()
        creative.set_status(CreativeStatus.REVISION_REQUESTED)
        creative.set_status(CreativeStatus.APPROVED)
        creative.set_status(CreativeStatus.REVISION_REQUESTED)

        assert creative.status is CreativeStatus.REVISION_REQUESTED
        assert creative.revision_number == 3

    def test_remove_comment_thread_cascades(self):
        creative = make_creative()
        root = Comment(author="Ann", text="Root")
        reply = Comment(author="Ben", text="Reply", parent_id=root.id)
        nested = Comment(author="Cy", text="Nested", parent_id=reply.id)
        other = Comment(author="Dee", text="Other")
        creative.comments = [root, reply, other, nested]

        assert creative.remove_comment_thread(root.id) == 3
        assert creative.comments == [other]

    def test_remove_unknown_comment(self):
        creative = make_creative()
        creative.comments = [Comment(author="Ann", text="Root")]
        assert creative.remove_comment_thread('missing') == 0
        assert len(creative.comments) == 1

    def test_round_trip(self):
        creative = make_creative(
            media_type=MediaType.VIDEO,
            status=CreativeStatus.APPROVED,
            title="Spring launch",
            caption_log=TextRevisionLog(original="A", current="A"),
            comments=[Comment(author="Ann", text="Nice", pin=PinAnnotation(1.0, 2.0))],
        )
        data = creative.to_dict()

        assert data['caption'] == "A"
        assert data['image_text_log'] is None
        assert data['media_type'] == 'video'
        assert Creative.from_dict(data) == creative


class TestProject:
    """Tests for Project helpers."""

    def test_summary_counts(self):
        approved = make_creative(status=CreativeStatus.APPROVED)
        revision = make_creative(status=CreativeStatus.REVISION_REQUESTED)
        project = Project(name="Spring", client_name="Acme",
                          creatives=[approved, revision, make_creative()])

        summary = project.summary()
        assert summary['creative_count'] == 3
        assert summary['approved_count'] == 1
        assert summary['pending_count'] == 1
        assert summary['revision_count'] == 1
        assert 'creatives' not in summary

    def test_find_creative(self):
        creative = make_creative()
        project = Project(name="Spring", creatives=[creative])
        assert project.find_creative(creative.id) is creative
        assert project.find_creative('nope') is None

    def test_round_trip(self):
        project = Project(name="Spring", client_name="Acme", created_at=STAMP,
                          creatives=[make_creative()])
        assert Project.from_dict(project.to_dict()) == project
