"""
Creative Review Models v1.2.0
=============================
Data classes for projects, creatives, comments, text revision logs
and word-level diff results.

Timestamps are held as timezone-aware datetimes and serialized as
ISO-8601 UTC strings with a ``Z`` suffix.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Dict, Optional, Any


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as ISO-8601 with a Z suffix."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a timestamp written by format_timestamp (or any ISO-8601 string)."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def new_id() -> str:
    return str(uuid.uuid4())


# =============================================================================
# ENUMERATIONS
# =============================================================================

class DiffKind(Enum):
    """Classification of a diff token."""
    SAME = "same"
    ADDED = "added"
    REMOVED = "removed"


class CreativeStatus(Enum):
    """Review state of a creative."""
    PENDING = "pending"
    APPROVED = "approved"
    REVISION_REQUESTED = "revision_requested"


class MediaType(Enum):
    """Kind of uploaded asset."""
    IMAGE = "image"
    VIDEO = "video"
    PDF = "pdf"


class TextField(Enum):
    """Tracked text fields on a creative."""
    CAPTION = "caption"
    IMAGE_TEXT = "image_text"


# =============================================================================
# DIFF RESULTS
# =============================================================================

@dataclass(frozen=True)
class DiffToken:
    """
    A single token of a word-level diff.

    Attributes:
        kind: Whether the token is kept, inserted or deleted
        text: The token itself (a word or a whitespace run)
    """
    kind: DiffKind
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind.value, 'text': self.text}


@dataclass
class DiffResult:
    """
    Ordered edit script between two text snapshots.

    Tokens appear in natural left-to-right alignment: removed tokens sit
    at their original relative position among the new text's tokens.

    Attributes:
        tokens: The edit script
    """
    tokens: List[DiffToken] = field(default_factory=list)

    def __iter__(self):
        return iter(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)

    def old_text(self) -> str:
        """Reconstruct the old text (everything but additions)."""
        return ''.join(t.text for t in self.tokens if t.kind is not DiffKind.ADDED)

    def new_text(self) -> str:
        """Reconstruct the new text (everything but removals)."""
        return ''.join(t.text for t in self.tokens if t.kind is not DiffKind.REMOVED)

    @property
    def has_changes(self) -> bool:
        """True when at least one token was added or removed."""
        return any(t.kind is not DiffKind.SAME for t in self.tokens)

    @property
    def stats(self) -> Dict[str, int]:
        """Token counts per kind."""
        counts = {kind.value: 0 for kind in DiffKind}
        for token in self.tokens:
            counts[token.kind.value] += 1
        counts['total_changes'] = counts['added'] + counts['removed']
        return counts

    def merged(self) -> List[DiffToken]:
        """
        Coalesce adjacent tokens of the same kind into single spans.

        Returns:
            List of DiffToken spans suitable for rendering
        """
        spans: List[DiffToken] = []
        for token in self.tokens:
            if spans and spans[-1].kind is token.kind:
                spans[-1] = DiffToken(token.kind, spans[-1].text + token.text)
            else:
                spans.append(token)
        return spans

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'tokens': [t.to_dict() for t in self.tokens],
            'spans': [t.to_dict() for t in self.merged()],
            'stats': self.stats,
        }


# =============================================================================
# TEXT REVISION LOG
# =============================================================================

@dataclass(frozen=True)
class HistoryEntry:
    """
    Pre-edit snapshot of a tracked text field.

    Attributes:
        text: Value of the field immediately before the edit
        author: Who made the edit
        timestamp: When the edit was made
    """
    text: str
    author: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'text': self.text,
            'author': self.author,
            'timestamp': format_timestamp(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HistoryEntry':
        return cls(
            text=data.get('text', ''),
            author=data.get('author', ''),
            timestamp=parse_timestamp(data.get('timestamp')),
        )


@dataclass
class TextRevisionLog:
    """
    Edit history of one text field (caption or extracted image text).

    ``history`` stores pre-images: ``history[i].text`` is the value the
    field held before the i-th authored edit. ``original`` is captured once,
    when the log is created, and never changes.

    Attributes:
        original: First recorded value
        current: Latest value
        history: Chronological pre-edit snapshots
        last_edited_by: Author of the most recent edit (None before any edit)
        last_edited_at: Time of the most recent edit (None before any edit)
    """
    original: str
    current: str
    history: List[HistoryEntry] = field(default_factory=list)
    last_edited_by: Optional[str] = None
    last_edited_at: Optional[datetime] = None

    @property
    def edit_count(self) -> int:
        return len(self.history)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'original': self.original,
            'current': self.current,
            'history': [h.to_dict() for h in self.history],
            'last_edited_by': self.last_edited_by,
            'last_edited_at': format_timestamp(self.last_edited_at),
            'edit_count': self.edit_count,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['TextRevisionLog']:
        """Rebuild a log; ``None`` in means no log yet."""
        if data is None:
            return None
        return cls(
            original=data.get('original', ''),
            current=data.get('current', ''),
            history=[HistoryEntry.from_dict(h) for h in data.get('history', [])],
            last_edited_by=data.get('last_edited_by'),
            last_edited_at=parse_timestamp(data.get('last_edited_at')),
        )


@dataclass
class HistoryStep:
    """
    One transition in a field's timeline, ready for display.

    Attributes:
        index: Position of the source entry in the log's history
        before: Text before the transition
        after: Text after the transition
        author: Author attributed to the transition
        timestamp: Time attributed to the transition
        diff: Word-level diff from before to after
    """
    index: int
    before: str
    after: str
    author: Optional[str]
    timestamp: Optional[datetime]
    diff: DiffResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            'index': self.index,
            'before': self.before,
            'after': self.after,
            'author': self.author,
            'timestamp': format_timestamp(self.timestamp),
            'diff': self.diff.to_dict(),
        }


# =============================================================================
# COMMENTS AND PINS
# =============================================================================

@dataclass(frozen=True)
class PinAnnotation:
    """
    Position of a pin comment, as percentages of the unscaled image box.

    Attributes:
        x: Horizontal offset, 0..100
        y: Vertical offset, 0..100
    """
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['PinAnnotation']:
        if data is None:
            return None
        return cls(x=float(data['x']), y=float(data['y']))


@dataclass
class Comment:
    """
    Reviewer comment on a creative.

    Attributes:
        author: Display name supplied by the reviewer
        text: Comment body
        id: Unique identifier
        created_at: Creation time
        pin: Pin position for pin comments, None otherwise
        parent_id: Comment this one replies to, None for top-level comments
    """
    author: str
    text: str
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    pin: Optional[PinAnnotation] = None
    parent_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'author': self.author,
            'text': self.text,
            'created_at': format_timestamp(self.created_at),
            'parent_id': self.parent_id,
        }
        # Pin presence is the discriminator, so the key is omitted entirely
        if self.pin is not None:
            data['pin'] = self.pin.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Comment':
        return cls(
            id=data['id'],
            author=data.get('author', ''),
            text=data.get('text', ''),
            created_at=parse_timestamp(data.get('created_at')) or utc_now(),
            pin=PinAnnotation.from_dict(data.get('pin')),
            parent_id=data.get('parent_id'),
        )


# =============================================================================
# CREATIVES AND PROJECTS
# =============================================================================

@dataclass
class Creative:
    """
    An uploaded asset under review.

    Attributes:
        original_name: Filename as uploaded
        file_name: Sanitized filename on disk
        file_path: Public path of the stored file
        file_size: Size in bytes
        mime_type: MIME type reported at upload
        media_type: image, video or pdf
        id: Unique identifier
        uploaded_at: Upload time
        status: Review state
        title: Display title
        caption_log: Revision log of the caption, None until first saved
        image_text_log: Revision log of extracted image text, None until ingested
        comments: Flat list of comments (threads via parent_id)
        revision_number: Incremented each time a revision is requested
    """
    original_name: str
    file_name: str
    file_path: str
    file_size: int
    mime_type: str
    media_type: MediaType
    id: str = field(default_factory=new_id)
    uploaded_at: datetime = field(default_factory=utc_now)
    status: CreativeStatus = CreativeStatus.PENDING
    title: str = ""
    caption_log: Optional[TextRevisionLog] = None
    image_text_log: Optional[TextRevisionLog] = None
    comments: List[Comment] = field(default_factory=list)
    revision_number: int = 1

    @property
    def caption(self) -> str:
        return self.caption_log.current if self.caption_log else ""

    @property
    def image_text(self) -> str:
        return self.image_text_log.current if self.image_text_log else ""

    def get_log(self, text_field: TextField) -> Optional[TextRevisionLog]:
        if text_field is TextField.CAPTION:
            return self.caption_log
        return self.image_text_log

    def set_log(self, text_field: TextField, log: TextRevisionLog):
        if text_field is TextField.CAPTION:
            self.caption_log = log
        else:
            self.image_text_log = log

    def set_status(self, status: CreativeStatus):
        """Change review state; requesting a revision bumps the revision number."""
        self.status = status
        if status is CreativeStatus.REVISION_REQUESTED:
            self.revision_number += 1

    def find_comment(self, comment_id: str) -> Optional[Comment]:
        for comment in self.comments:
            if comment.id == comment_id:
                return comment
        return None

    def remove_comment_thread(self, comment_id: str) -> int:
        """
        Delete a comment together with every reply beneath it.

        Returns:
            Number of comments removed
        """
        doomed = {comment_id}
        grew = True
        while grew:
            grew = False
            for comment in self.comments:
                if comment.parent_id in doomed and comment.id not in doomed:
                    doomed.add(comment.id)
                    grew = True
        before = len(self.comments)
        self.comments = [c for c in self.comments if c.id not in doomed]
        return before - len(self.comments)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'original_name': self.original_name,
            'file_name': self.file_name,
            'file_path': self.file_path,
            'file_size': self.file_size,
            'mime_type': self.mime_type,
            'media_type': self.media_type.value,
            'uploaded_at': format_timestamp(self.uploaded_at),
            'status': self.status.value,
            'title': self.title,
            'caption': self.caption,
            'image_text': self.image_text,
            'caption_log': self.caption_log.to_dict() if self.caption_log else None,
            'image_text_log': self.image_text_log.to_dict() if self.image_text_log else None,
            'comments': [c.to_dict() for c in self.comments],
            'revision_number': self.revision_number,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Creative':
        return cls(
            id=data['id'],
            original_name=data.get('original_name', ''),
            file_name=data.get('file_name', ''),
            file_path=data.get('file_path', ''),
            file_size=data.get('file_size', 0),
            mime_type=data.get('mime_type', ''),
            media_type=MediaType(data.get('media_type', MediaType.IMAGE.value)),
            uploaded_at=parse_timestamp(data.get('uploaded_at')) or utc_now(),
            status=CreativeStatus(data.get('status', CreativeStatus.PENDING.value)),
            title=data.get('title', ''),
            caption_log=TextRevisionLog.from_dict(data.get('caption_log')),
            image_text_log=TextRevisionLog.from_dict(data.get('image_text_log')),
            comments=[Comment.from_dict(c) for c in data.get('comments', [])],
            revision_number=data.get('revision_number', 1),
        )


@dataclass
class Project:
    """
    A client project grouping creatives for review.

    Attributes:
        name: Project name
        client_name: Client the work is for
        id: Unique identifier (also the shareable review link key)
        created_at: Creation time
        creatives: Creatives in upload order
    """
    name: str
    client_name: str = ""
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    creatives: List[Creative] = field(default_factory=list)

    def find_creative(self, creative_id: str) -> Optional[Creative]:
        for creative in self.creatives:
            if creative.id == creative_id:
                return creative
        return None

    def count_status(self, status: CreativeStatus) -> int:
        return sum(1 for c in self.creatives if c.status is status)

    def summary(self) -> Dict[str, Any]:
        """Dashboard view without creative details."""
        return {
            'id': self.id,
            'name': self.name,
            'client_name': self.client_name,
            'created_at': format_timestamp(self.created_at),
            'creative_count': len(self.creatives),
            'approved_count': self.count_status(CreativeStatus.APPROVED),
            'pending_count': self.count_status(CreativeStatus.PENDING),
            'revision_count': self.count_status(CreativeStatus.REVISION_REQUESTED),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'client_name': self.client_name,
            'created_at': format_timestamp(self.created_at),
            'creatives': [c.to_dict() for c in self.creatives],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Project':
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            client_name=data.get('client_name', ''),
            created_at=parse_timestamp(data.get('created_at')) or utc_now(),
            creatives=[Creative.from_dict(c) for c in data.get('creatives', [])],
        )
