"""
Preview Diff Module v1.0.0
==========================
Word-level comparison of two rendered documents with in-place
highlighting and change navigation.

Features:
- Minimal word-level diff (diff-match-patch)
- Highlight spans injected into both HTML trees
- One navigable location per change region
- Wrap-around next/previous navigation
"""

from .differ import DiffEngine, compute_diff
from .highlighter import HighlightProjector, apply_highlights, extract_plain_text, audit_markup
from .navigator import ChangeCursor
from .session import ComparisonSession, NavigationResult
from .models import (
    ChangeKind,
    DiffOperation,
    DiffSummary,
    ChangeLocation,
    HighlightOutcome
)

__version__ = "1.0.0"
__all__ = [
    'DiffEngine',
    'compute_diff',
    'HighlightProjector',
    'apply_highlights',
    'extract_plain_text',
    'audit_markup',
    'ChangeCursor',
    'ComparisonSession',
    'NavigationResult',
    'ChangeKind',
    'DiffOperation',
    'DiffSummary',
    'ChangeLocation',
    'HighlightOutcome'
]
