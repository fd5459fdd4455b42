"""
Revision Tracker v1.2.0
=======================
Edit history for tracked text fields (captions, extracted image text).

The first save of a field is an ingestion: it captures ``original`` and
produces no history entry. Every later save that changes the value is an
authored edit and pushes the pre-edit value onto ``history``.

Logs are never mutated in place; each accepted edit returns a new log.
Persisting the result is the caller's job.
"""

from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from config_logging import get_logger, InvalidEditError

from .differ import WordDiffEngine
from .models import DiffResult, HistoryEntry, HistoryStep, TextRevisionLog, utc_now

logger = get_logger('creative_review.tracker')


class RevisionTracker:
    """
    Records edits to a TextRevisionLog and builds diff views over it.
    """

    def __init__(self, diff_engine: Optional[WordDiffEngine] = None):
        self.diff_engine = diff_engine or WordDiffEngine()

    def record_edit(
        self,
        log: Optional[TextRevisionLog],
        new_text: str,
        author: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> TextRevisionLog:
        """
        Apply a save to a field's revision log.

        Args:
            log: Existing log, or None if the field has never been saved
            new_text: Value being saved
            author: Who is saving; required once the field has an original
            now: Edit time (defaults to the current UTC time)

        Returns:
            The updated log (the same object when nothing changed)

        Raises:
            InvalidEditError: if an existing field is edited without an author
        """
        if log is None:
            logger.debug("Ingesting initial text value", length=len(new_text))
            return TextRevisionLog(original=new_text, current=new_text)

        if new_text == log.current:
            return log

        if not author:
            raise InvalidEditError(
                "An author is required to edit text that has already been recorded",
                field='author'
            )

        now = now or utc_now()
        entry = HistoryEntry(text=log.current, author=author, timestamp=now)
        logger.debug(f"Recording edit #{len(log.history) + 1} by {author}",
                     author=author, edit_number=len(log.history) + 1)
        return replace(
            log,
            history=[*log.history, entry],
            current=new_text,
            last_edited_by=author,
            last_edited_at=now,
        )

    def changes_from_original(self, log: Optional[TextRevisionLog]) -> Optional[DiffResult]:
        """
        Diff the original value against the current one.

        Returns:
            DiffResult, or None when there is no log or nothing changed
        """
        if log is None or log.original is None:
            return None
        if log.original == log.current:
            return None
        return self.diff_engine.diff(log.original, log.current)

    def history_timeline(self, log: Optional[TextRevisionLog]) -> List[HistoryStep]:
        """
        Build one step per history entry, most recent first.

        Entry i transitions from history[i].text to history[i+1].text, or to
        the current value for the last entry. The step is attributed to
        history[i+1]'s author and timestamp when that entry exists, and to
        the log's last editor otherwise.
        """
        if log is None or not log.history:
            return []

        history = log.history
        steps = []
        for i, entry in enumerate(history):
            if i + 1 < len(history):
                following = history[i + 1]
                after, author, timestamp = following.text, following.author, following.timestamp
            else:
                after, author, timestamp = log.current, log.last_edited_by, log.last_edited_at

            steps.append(HistoryStep(
                index=i,
                before=entry.text,
                after=after,
                author=author,
                timestamp=timestamp,
                diff=self.diff_engine.diff(entry.text, after),
            ))

        steps.reverse()
        return steps


def replay_values(log: Optional[TextRevisionLog]) -> List[str]:
    """
    Every value the field has held, oldest first.

    Returns:
        [history[0].text, ..., current], or [original] with no edits yet
    """
    if log is None:
        return []
    if not log.history:
        return [log.current]
    return [entry.text for entry in log.history] + [log.current]
