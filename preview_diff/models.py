"""
Preview Diff Models v1.0.0
==========================
Data classes for word-level diff results, highlight output and
change navigation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any


class ChangeKind(str, Enum):
    """Classification of a diff operation."""
    ADDED = 'added'
    REMOVED = 'removed'
    UNCHANGED = 'unchanged'


@dataclass(frozen=True)
class DiffOperation:
    """
    One contiguous span of text classified as added, removed or unchanged.

    Offsets are measured on the operation's own side: removed spans index
    into the "before" text, added and unchanged spans into the "after" text.

    Attributes:
        kind: ChangeKind of this span
        text: The span text
        start_offset: Start position (inclusive)
        end_offset: End position (exclusive)
    """
    kind: ChangeKind
    text: str
    start_offset: int
    end_offset: int

    @property
    def is_change(self) -> bool:
        return self.kind is not ChangeKind.UNCHANGED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'kind': self.kind.value,
            'text': self.text,
            'start_offset': self.start_offset,
            'end_offset': self.end_offset
        }


@dataclass
class DiffSummary:
    """
    Ordered diff operations plus summary statistics.

    Attributes:
        operations: Operations in order of appearance
        change_count: Number of added plus removed operations
        added_newline_count: Newlines inside added text
        removed_newline_count: Newlines inside removed text
    """
    operations: List[DiffOperation] = field(default_factory=list)
    change_count: int = 0
    added_newline_count: int = 0
    removed_newline_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'operations': [op.to_dict() for op in self.operations],
            'change_count': self.change_count,
            'added_newline_count': self.added_newline_count,
            'removed_newline_count': self.removed_newline_count
        }


@dataclass(frozen=True)
class ChangeLocation:
    """
    One navigable change region spanning both compared documents.

    The id is opaque; ordinal navigation uses the cursor index.

    Attributes:
        id: Unique identifier within one highlight pass (e.g., "change-1")
        before_offset: Plain-text offset of the region in the before document
        after_offset: Plain-text offset of the region in the after document
        kind: 'added', 'removed' or 'both' (a replacement)
    """
    id: str
    before_offset: int
    after_offset: int
    kind: str = 'both'

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'before_offset': self.before_offset,
            'after_offset': self.after_offset,
            'kind': self.kind
        }


@dataclass
class HighlightOutcome:
    """
    Highlighted markup for both panes and the change regions found.

    Attributes:
        before_markup: Before markup with removed spans injected
        after_markup: After markup with added spans injected
        change_locations: Regions ordered by after_offset
    """
    before_markup: str
    after_markup: str
    change_locations: List[ChangeLocation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'before_markup': self.before_markup,
            'after_markup': self.after_markup,
            'change_locations': [c.to_dict() for c in self.change_locations]
        }
