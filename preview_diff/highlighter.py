"""
Preview Highlighter v1.0.0
==========================
Projects word-level diff operations onto rendered HTML.

Both documents are parsed into trees with BeautifulSoup. Text offsets
from the diff are resolved to text nodes, nodes are split on range
boundaries, and each changed range is wrapped in a highlight span that
carries the change id. Nothing is spliced into the raw markup string,
so nested structure is never broken.

If a document cannot be annotated safely the original markup is
returned for both panes with no change locations.
"""

import warnings
from bisect import bisect_left, bisect_right
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from config_logging import get_logger, HighlightError
from .models import ChangeKind, ChangeLocation, DiffOperation, HighlightOutcome

logger = get_logger('preview_diff.highlighter')

PARSER = 'html.parser'

ADDED_CLASS = 'diff-added'
REMOVED_CLASS = 'diff-removed'
HIGH_CONTRAST_CLASS = 'diff-high-contrast'

# Text inside these elements is not rendered as document text
NON_TEXT_PARENTS = frozenset(('script', 'style', 'template'))

VOID_ELEMENTS = frozenset((
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input',
    'link', 'meta', 'param', 'source', 'track', 'wbr'
))

# Elements whose end tag may be omitted
OPTIONAL_END_ELEMENTS = frozenset((
    'html', 'head', 'body', 'p', 'li', 'dt', 'dd', 'tr', 'td', 'th',
    'thead', 'tbody', 'tfoot', 'option', 'optgroup', 'colgroup',
    'caption', 'rt', 'rp'
))

# Containers where a whitespace-only node must not be wrapped in a span
STRUCTURAL_CONTAINERS = frozenset((
    'table', 'thead', 'tbody', 'tfoot', 'tr', 'colgroup',
    'ul', 'ol', 'dl', 'select', 'optgroup', 'html', 'head'
))


# =============================================================================
# STRUCTURE AUDIT
# =============================================================================

class MarkupAuditor(HTMLParser):
    """
    Strict structural check run before a document is annotated.

    Flags stray or mismatched end tags, elements left open that have
    no optional end tag, and raw '<' in text data.
    """

    def __init__(self):
        super().__init__(convert_charrefs=False)
        self.problems: List[str] = []
        self._stack: List[str] = []
        self._raw_text: Optional[str] = None

    def handle_starttag(self, tag, attrs):
        if tag in VOID_ELEMENTS:
            return
        self._stack.append(tag)
        if tag in ('script', 'style'):
            self._raw_text = tag

    def handle_startendtag(self, tag, attrs):
        # <br/>, <img .../>: nothing to close
        pass

    def handle_endtag(self, tag):
        line, col = self.getpos()
        if tag in VOID_ELEMENTS or tag not in self._stack:
            self.problems.append(f"stray </{tag}> at {line}:{col}")
            return

        while self._stack:
            open_tag = self._stack.pop()
            if open_tag == tag:
                break
            if open_tag not in OPTIONAL_END_ELEMENTS:
                self.problems.append(f"<{open_tag}> closed by </{tag}> at {line}:{col}")

        if tag == self._raw_text:
            self._raw_text = None

    def handle_data(self, data):
        if self._raw_text is None and '<' in data:
            line, col = self.getpos()
            self.problems.append(f"unescaped '<' in text at {line}:{col}")

    def audit(self, markup: str) -> List[str]:
        self.feed(markup)
        self.close()
        if self.rawdata:
            self.problems.append("unterminated markup at end of document")
        for open_tag in self._stack:
            if open_tag not in OPTIONAL_END_ELEMENTS:
                self.problems.append(f"unclosed <{open_tag}>")
        return self.problems


def audit_markup(markup: str) -> List[str]:
    """Return structural problems found in markup (empty when well formed)."""
    return MarkupAuditor().audit(markup or '')


# =============================================================================
# CHANGE REGIONS
# =============================================================================

@dataclass
class _Region:
    """A run of added/removed operations sharing one change id."""
    change_id: str
    before_offset: int
    after_offset: int
    before_ranges: List[List[int]] = field(default_factory=list)
    after_ranges: List[List[int]] = field(default_factory=list)

    @property
    def kind(self) -> str:
        if self.before_ranges and self.after_ranges:
            return 'both'
        return 'removed' if self.before_ranges else 'added'

    def location(self) -> ChangeLocation:
        return ChangeLocation(
            id=self.change_id,
            before_offset=self.before_offset,
            after_offset=self.after_offset,
            kind=self.kind
        )


def _add_range(ranges: List[List[int]], start: int, end: int):
    # Contiguous same-kind operations collapse into one range
    if ranges and ranges[-1][1] == start:
        ranges[-1][1] = end
    else:
        ranges.append([start, end])


def build_regions(operations: Iterable[DiffOperation]) -> List[_Region]:
    """
    Group operations into change regions.

    A region is a maximal run of added/removed operations between two
    unchanged operations. Ids are assigned in order: change-1, change-2...
    """
    regions: List[_Region] = []
    current: Optional[_Region] = None
    before_pos = 0
    after_pos = 0

    for op in operations:
        if not op.text:
            continue
        kind = ChangeKind(op.kind)

        if kind is ChangeKind.UNCHANGED:
            current = None
            before_pos += len(op.text)
            after_pos = op.end_offset
            continue

        if current is None:
            current = _Region(
                change_id=f"change-{len(regions) + 1}",
                before_offset=op.start_offset if kind is ChangeKind.REMOVED else before_pos,
                after_offset=op.start_offset if kind is ChangeKind.ADDED else after_pos
            )
            regions.append(current)

        if kind is ChangeKind.REMOVED:
            _add_range(current.before_ranges, op.start_offset, op.end_offset)
            before_pos = op.end_offset
        else:
            _add_range(current.after_ranges, op.start_offset, op.end_offset)
            after_pos = op.end_offset

    return regions


# =============================================================================
# TREE HELPERS
# =============================================================================

def _parse(markup: str) -> BeautifulSoup:
    with warnings.catch_warnings():
        # bs4 warns when a fragment looks like a filename or URL
        warnings.simplefilter('ignore', UserWarning)
        return BeautifulSoup(markup, PARSER)


def _is_text_node(node) -> bool:
    return (
        isinstance(node, NavigableString)
        and not isinstance(node, PreformattedString)
        and node.parent is not None
        and len(node) > 0
        and not any(parent.name in NON_TEXT_PARENTS for parent in node.parents)
    )


def _text_nodes(soup: BeautifulSoup) -> List[NavigableString]:
    """Text-bearing nodes in document order."""
    return [node for node in soup.descendants if _is_text_node(node)]


def _split_at_boundaries(
    nodes: List[NavigableString],
    boundaries: List[int]
) -> Tuple[List[int], List[NavigableString]]:
    """
    Split text nodes so that every boundary falls on a node start.

    Returns:
        Parallel lists of node start offsets and nodes after splitting
    """
    starts: List[int] = []
    pieces: List[NavigableString] = []
    offset = 0

    for node in nodes:
        text = str(node)
        node_end = offset + len(text)
        lo = bisect_right(boundaries, offset)
        hi = bisect_left(boundaries, node_end)
        cuts = boundaries[lo:hi]

        if not cuts:
            starts.append(offset)
            pieces.append(node)
        else:
            edges = [offset] + cuts + [node_end]
            replacements = []
            for a, b in zip(edges, edges[1:]):
                piece = type(node)(text[a - offset:b - offset])
                starts.append(a)
                pieces.append(piece)
                replacements.append(piece)
            node.replace_with(*replacements)
            if any(piece.parent is None for piece in replacements):
                raise HighlightError(f"Failed to split text node at offset {offset}")

        offset = node_end

    return starts, pieces


def _wrappable(node: NavigableString) -> bool:
    return not (str(node).isspace() and node.parent.name in STRUCTURAL_CONTAINERS)


class _SideTree:
    """
    One document parsed and split so every range starts on a text node.

    Spans are (start, end, region) triples; the region's change id is
    read when the spans are wrapped, so ids can be renumbered after
    regions with nothing to wrap are dropped.
    """

    def __init__(self, markup: str, spans: List[Tuple[int, int, _Region]], side: str):
        self.markup = markup
        self.spans = spans
        self.side = side
        self.soup: Optional[BeautifulSoup] = None
        self.starts: List[int] = []
        self.pieces: List[NavigableString] = []
        if spans:
            self._split()

    def _split(self):
        self.soup = _parse(self.markup)
        nodes = _text_nodes(self.soup)
        text_length = sum(len(node) for node in nodes)

        boundaries = set()
        for start, end, region in self.spans:
            if start < 0 or end > text_length:
                raise HighlightError(
                    f"{region.change_id} range {start}-{end} outside {self.side} "
                    f"text of length {text_length}",
                    side=self.side
                )
            boundaries.update((start, end))

        self.starts, self.pieces = _split_at_boundaries(nodes, sorted(boundaries))

    def _range_pieces(self, start: int, end: int) -> List[NavigableString]:
        index = bisect_left(self.starts, start)
        if index >= len(self.starts) or self.starts[index] != start:
            raise HighlightError(f"Cannot resolve offset {start} to a text node", side=self.side)
        pieces = []
        while index < len(self.pieces) and self.starts[index] < end:
            pieces.append(self.pieces[index])
            index += 1
        return pieces

    def marks(self, region: _Region) -> bool:
        """True if some range of region on this side has a node to wrap."""
        return any(
            _wrappable(piece)
            for start, end, owner in self.spans if owner is region
            for piece in self._range_pieces(start, end)
        )

    def render(self, regions: List[_Region], classes: str) -> str:
        """Wrap the ranges of regions; returns markup verbatim if none."""
        wrapped = False
        for start, end, region in self.spans:
            if not any(region is kept for kept in regions):
                continue
            pieces = self._range_pieces(start, end)
            wrapped = _wrap_pieces(self.soup, pieces, classes, region.change_id) or wrapped

        if not wrapped:
            return self.markup
        return self.soup.decode(formatter='minimal')


def _wrap_pieces(soup: BeautifulSoup, pieces: List[NavigableString], classes: str, change_id: str) -> bool:
    """Wrap pieces in spans; adjacent siblings share one span."""
    span: Optional[Tag] = None
    wrapped = False
    for piece in pieces:
        if not _wrappable(piece):
            span = None
            continue
        wrapped = True
        if span is not None and piece.previous_sibling is span:
            span.append(piece.extract())
            continue
        span = soup.new_tag('span', attrs={'class': classes, 'data-change-id': change_id})
        piece.wrap(span)
    return wrapped


class HighlightProjector:
    """
    Applies diff highlight spans to two rendered HTML documents.

    Stateless between calls.
    """

    def __init__(self, highlight_style: str = 'default'):
        self.highlight_style = highlight_style

    def extract_plain_text(self, markup: Optional[str]) -> str:
        """
        Extract the text content of markup in document order.

        Tags, attributes, comments and script/style contents are dropped;
        whitespace is kept exactly, and entities are decoded. Offsets into
        the returned text are the offsets apply_highlights() resolves.

        Args:
            markup: HTML string (None is treated as empty)

        Returns:
            Concatenated text of all text-bearing nodes, or '' if the
            markup cannot be parsed
        """
        if not markup:
            return ''
        try:
            return ''.join(str(node) for node in _text_nodes(_parse(markup)))
        except Exception as e:
            logger.warning(f"Text extraction failed, treating document as empty: {e}")
            return ''

    def apply_highlights(
        self,
        before_markup: Optional[str],
        after_markup: Optional[str],
        operations: Optional[Iterable[DiffOperation]]
    ) -> HighlightOutcome:
        """
        Inject highlight spans for every added and removed operation.

        Removed ranges are wrapped in the before markup, added ranges in
        the after markup. A replacement (removed then added) is a single
        change region whose id appears on both sides. Regions with nothing
        to wrap on either side (whitespace between table rows or list
        items) get no id and no location.

        Args:
            before_markup: Rendered HTML of the before version
            after_markup: Rendered HTML of the after version
            operations: Operations computed on the extracted plain text

        Returns:
            HighlightOutcome; on any failure the unmodified markup and no
            change locations
        """
        before_markup = before_markup or ''
        after_markup = after_markup or ''
        fallback = HighlightOutcome(before_markup, after_markup, [])

        try:
            regions = build_regions(operations or [])
            if not regions:
                return fallback

            for side, markup in (('before', before_markup), ('after', after_markup)):
                problems = audit_markup(markup)
                if problems:
                    raise HighlightError(
                        f"Malformed {side} markup: {'; '.join(problems[:3])}",
                        side=side, problems=problems
                    )

            before_tree = _SideTree(before_markup, [
                (start, end, region) for region in regions for start, end in region.before_ranges
                if end > start
            ], 'before')
            after_tree = _SideTree(after_markup, [
                (start, end, region) for region in regions for start, end in region.after_ranges
                if end > start
            ], 'after')

            visible = [r for r in regions if before_tree.marks(r) or after_tree.marks(r)]
            if len(visible) < len(regions):
                logger.debug(f"Dropped {len(regions) - len(visible)} whitespace-only change regions")
            if not visible:
                return fallback
            for number, region in enumerate(visible, 1):
                region.change_id = f"change-{number}"

            highlighted_before = before_tree.render(visible, self._classes(REMOVED_CLASS))
            highlighted_after = after_tree.render(visible, self._classes(ADDED_CLASS))

        except HighlightError as e:
            logger.warning(f"Diff highlighting skipped, displaying unhighlighted diff: {e}")
            return fallback
        except Exception as e:
            logger.error(f"Diff highlighting failed, displaying unhighlighted diff: {e}", exc_info=True)
            return fallback

        locations = sorted((r.location() for r in visible), key=lambda c: c.after_offset)
        logger.debug(f"Highlighted {len(locations)} change regions")

        return HighlightOutcome(
            before_markup=highlighted_before,
            after_markup=highlighted_after,
            change_locations=locations
        )

    def _classes(self, css_class: str) -> str:
        if self.highlight_style == 'high-contrast':
            return f"{css_class} {HIGH_CONTRAST_CLASS}"
        return css_class


# Convenience functions
def extract_plain_text(markup: Optional[str]) -> str:
    """Extract the text content of markup in document order."""
    return HighlightProjector().extract_plain_text(markup)


def apply_highlights(
    before_markup: Optional[str],
    after_markup: Optional[str],
    operations: Optional[Iterable[DiffOperation]],
    highlight_style: str = 'default'
) -> HighlightOutcome:
    """Inject highlight spans into both documents."""
    return HighlightProjector(highlight_style).apply_highlights(
        before_markup, after_markup, operations
    )
