"""
Comparison Session v1.0.0
=========================
One active before/after comparison: diff, highlight and navigation.

The session is what a presentation layer (editor panel, CLI, service)
holds while a comparison is open. Opening a new comparison discards the
previous outcome and cursor.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any

from config_logging import AppConfig, get_config, get_logger
from .differ import DiffEngine
from .highlighter import HighlightProjector
from .models import ChangeLocation, DiffSummary, HighlightOutcome
from .navigator import ChangeCursor

logger = get_logger('preview_diff.session')

NO_SESSION_MESSAGE = "No diff panel open"
NO_CHANGES_MESSAGE = "No changes to navigate"


@dataclass
class NavigationResult:
    """
    Outcome of a navigation command.

    Attributes:
        location: Change now current (None in an empty state)
        index: Cursor index after the command
        total: Number of change regions
        message: Informational message for empty states, else ""
    """
    location: Optional[ChangeLocation]
    index: int = 0
    total: int = 0
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'location': self.location.to_dict() if self.location else None,
            'index': self.index,
            'total': self.total,
            'message': self.message
        }


class ComparisonSession:
    """
    Holds the outcome and cursor of the comparison currently on screen.

    Not thread-safe; the caller serializes commands.
    """

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or get_config()
        self.engine = DiffEngine(timeout=self.config.diff_timeout)
        self.projector = HighlightProjector(highlight_style=self.config.highlight_style)
        self.summary: Optional[DiffSummary] = None
        self.outcome: Optional[HighlightOutcome] = None
        self.cursor: Optional[ChangeCursor] = None

    @property
    def is_open(self) -> bool:
        return self.cursor is not None

    def open(self, before_markup: Optional[str], after_markup: Optional[str]) -> HighlightOutcome:
        """
        Start a comparison between two rendered documents.

        Args:
            before_markup: Rendered HTML of the before version
            after_markup: Rendered HTML of the after version

        Returns:
            HighlightOutcome for display
        """
        with logger.log_operation('comparison', slow_threshold_ms=self.config.slow_operation_ms):
            before_text = self.projector.extract_plain_text(before_markup)
            after_text = self.projector.extract_plain_text(after_markup)
            self.summary = self.engine.compute(before_text, after_text)
            self.outcome = self.projector.apply_highlights(
                before_markup, after_markup, self.summary.operations
            )
            self.cursor = ChangeCursor(self.outcome.change_locations)

        logger.info(f"Comparison opened: {self.cursor.count()} change regions, "
                    f"{self.summary.change_count} changes")
        return self.outcome

    def refresh(self, before_markup: Optional[str], after_markup: Optional[str]) -> HighlightOutcome:
        """
        Recompute after either document changed.

        The cursor keeps its index when that index still exists.
        """
        previous_index = self.cursor.index() if self.cursor else 0
        outcome = self.open(before_markup, after_markup)
        if previous_index < self.cursor.count():
            for _ in range(previous_index):
                self.cursor.advance()
        logger.debug(f"Comparison refreshed, cursor at {self.cursor.index()}")
        return outcome

    def close(self):
        """Discard the current comparison."""
        self.summary = None
        self.outcome = None
        self.cursor = None
        logger.debug("Comparison closed")

    def next_change(self) -> NavigationResult:
        """Navigate to the next change, wrapping at the end."""
        return self._navigate('next')

    def previous_change(self) -> NavigationResult:
        """Navigate to the previous change, wrapping at the start."""
        return self._navigate('previous')

    def current_change(self) -> NavigationResult:
        """Report the current change without moving."""
        return self._navigate('current')

    def _navigate(self, direction: str) -> NavigationResult:
        if self.cursor is None:
            logger.debug(f"Navigation ({direction}) without an open comparison")
            return NavigationResult(None, message=NO_SESSION_MESSAGE)

        total = self.cursor.count()
        if total == 0:
            return NavigationResult(None, index=0, total=0, message=NO_CHANGES_MESSAGE)

        if direction == 'next':
            location = self.cursor.advance()
        elif direction == 'previous':
            location = self.cursor.retreat()
        else:
            location = self.cursor.current()

        index = self.cursor.index()
        if direction != 'current':
            logger.info(f"Navigating to change {index + 1} of {total}")
        return NavigationResult(location, index=index, total=total)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        if not self.is_open:
            return {'open': False}
        return {
            'open': True,
            'outcome': self.outcome.to_dict(),
            'summary': {
                'change_count': self.summary.change_count,
                'added_newline_count': self.summary.added_newline_count,
                'removed_newline_count': self.summary.removed_newline_count
            },
            'current_index': self.cursor.index(),
            'total_changes': self.cursor.count(),
            'sync_scroll': self.config.sync_scroll,
            'highlight_style': self.config.highlight_style
        }
