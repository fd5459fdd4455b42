"""
Creative Review Module v1.2.0
=============================
Review workflow for agency creatives: projects, uploads, approval
status, threaded and pin-anchored comments, and word-level edit history
for captions and extracted image text.

Features:
- Word-level LCS diff with deterministic tie-breaking
- Revision logs that keep the original value and every pre-edit snapshot
- Pin placement through a zoomed and panned viewport
- JSON document storage and a Flask API blueprint
"""

from .differ import WordDiffEngine, compute_diff, tokenize
from .pins import PinCoordinateMapper, OutOfBounds, OUT_OF_BOUNDS
from .tracker import RevisionTracker, replay_values
from .models import (
    DiffKind,
    DiffToken,
    DiffResult,
    HistoryEntry,
    HistoryStep,
    TextRevisionLog,
    PinAnnotation,
    Comment,
    Creative,
    CreativeStatus,
    MediaType,
    Project,
    TextField,
)

__version__ = "1.2.0"
__all__ = [
    'WordDiffEngine',
    'compute_diff',
    'tokenize',
    'PinCoordinateMapper',
    'OutOfBounds',
    'OUT_OF_BOUNDS',
    'RevisionTracker',
    'replay_values',
    'DiffKind',
    'DiffToken',
    'DiffResult',
    'HistoryEntry',
    'HistoryStep',
    'TextRevisionLog',
    'PinAnnotation',
    'Comment',
    'Creative',
    'CreativeStatus',
    'MediaType',
    'Project',
    'TextField',
]
