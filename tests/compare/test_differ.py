"""
Tests for the Diff Engine
=========================
Word-level diff operations, offsets and statistics.
"""

import pytest
from typing import List, Tuple

from preview_diff.differ import DiffEngine, compute_diff
from preview_diff.models import ChangeKind, DiffOperation


@pytest.fixture
def engine() -> DiffEngine:
    """Minimal-diff engine."""
    return DiffEngine()


@pytest.fixture
def text_pairs() -> List[Tuple[str, str]]:
    """Before/after pairs covering insertions, deletions and rewrites."""
    return [
        ("hello", "hello world"),
        ("hello world", "hello"),
        ("hello world", "hello universe"),
        ("The system shall process data.", "The system must process all data."),
        ("line one\nline two\n", "line one\nline 2\nline three\n"),
        ("  leading and trailing  ", "leading and trailing"),
        ("a b c d e", "e d c b a"),
        ("", "only after"),
        ("only before", ""),
    ]


def _shape(operations: List[DiffOperation]) -> List[Tuple[ChangeKind, str]]:
    return [(op.kind, op.text) for op in operations]


class TestLiteralScenarios:
    """Known inputs with exact expected operations."""

    def test_word_appended(self, engine):
        """Test an appended word is one added operation."""
        summary = engine.compute("hello", "hello world")
        assert _shape(summary.operations) == [
            (ChangeKind.UNCHANGED, "hello"),
            (ChangeKind.ADDED, " world"),
        ]
        assert summary.change_count == 1

    def test_word_removed(self, engine):
        """Test a removed word is one removed operation."""
        summary = engine.compute("hello world", "hello")
        assert _shape(summary.operations) == [
            (ChangeKind.UNCHANGED, "hello"),
            (ChangeKind.REMOVED, " world"),
        ]
        assert summary.change_count == 1

    def test_word_replaced(self, engine):
        """Test a replaced word gives removed then added."""
        summary = engine.compute("hello world", "hello universe")
        assert summary.operations == [
            DiffOperation(ChangeKind.UNCHANGED, "hello ", 0, 6),
            DiffOperation(ChangeKind.REMOVED, "world", 6, 11),
            DiffOperation(ChangeKind.ADDED, "universe", 6, 14),
        ]
        assert summary.change_count == 2

    def test_both_empty(self, engine):
        """Test two empty texts give no operations."""
        summary = engine.compute("", "")
        assert summary.operations == []
        assert summary.change_count == 0

    def test_single_replacement_in_long_sentence(self, engine):
        """Test one word swapped inside a sentence."""
        summary = engine.compute("the quick brown fox jumps", "the quick red fox jumps")
        assert _shape(summary.operations) == [
            (ChangeKind.UNCHANGED, "the quick "),
            (ChangeKind.REMOVED, "brown"),
            (ChangeKind.ADDED, "red"),
            (ChangeKind.UNCHANGED, " fox jumps"),
        ]
        assert summary.change_count == 2

    def test_punctuation_stays_with_word(self, engine):
        """Test punctuation is part of its word token."""
        summary = engine.compute("Hello, world.", "Hello, there.")
        assert _shape(summary.operations) == [
            (ChangeKind.UNCHANGED, "Hello, "),
            (ChangeKind.REMOVED, "world."),
            (ChangeKind.ADDED, "there."),
        ]


class TestEdgeCases:
    """Empty, missing and identical inputs."""

    def test_none_inputs_are_empty(self, engine):
        """Test None inputs are treated as empty text."""
        summary = engine.compute(None, None)
        assert summary.operations == []
        assert summary.change_count == 0

    def test_none_before(self, engine):
        """Test a missing before text gives one added operation."""
        summary = engine.compute(None, "abc def")
        assert summary.operations == [DiffOperation(ChangeKind.ADDED, "abc def", 0, 7)]
        assert summary.change_count == 1

    def test_empty_after(self, engine):
        """Test an empty after text gives one removed operation."""
        summary = engine.compute("abc def", "")
        assert summary.operations == [DiffOperation(ChangeKind.REMOVED, "abc def", 0, 7)]
        assert summary.change_count == 1

    @pytest.mark.parametrize("text", ["x", "hello world", "multi\nline\n\ntext  ", "  "])
    def test_identical_inputs(self, engine, text):
        """Test identical texts give one unchanged operation."""
        summary = engine.compute(text, text)
        assert summary.operations == [DiffOperation(ChangeKind.UNCHANGED, text, 0, len(text))]
        assert summary.change_count == 0
        assert summary.added_newline_count == 0
        assert summary.removed_newline_count == 0


class TestProperties:
    """Reconstruction, offsets and statistics over several inputs."""

    def test_reconstruction(self, engine, text_pairs):
        """Test both texts can be rebuilt from the operations."""
        for before, after in text_pairs:
            ops = engine.compute(before, after).operations
            assert ''.join(op.text for op in ops if op.kind is not ChangeKind.REMOVED) == after
            assert ''.join(op.text for op in ops if op.kind is not ChangeKind.ADDED) == before

    def test_offsets_are_contiguous_per_side(self, engine, text_pairs):
        """Test offsets index into their own side."""
        for before, after in text_pairs:
            ops = engine.compute(before, after).operations
            after_side = [op for op in ops if op.kind is not ChangeKind.REMOVED]
            removed = [op for op in ops if op.kind is ChangeKind.REMOVED]

            for op in ops:
                assert op.end_offset - op.start_offset == len(op.text)
            for prev, nxt in zip(after_side, after_side[1:]):
                assert nxt.start_offset == prev.end_offset
            for op in removed:
                assert before[op.start_offset:op.end_offset] == op.text
            for op in after_side:
                assert after[op.start_offset:op.end_offset] == op.text

    def test_change_count_ignores_unchanged(self, engine, text_pairs):
        """Test change_count counts added and removed only."""
        for before, after in text_pairs:
            summary = engine.compute(before, after)
            expected = sum(1 for op in summary.operations if op.is_change)
            assert summary.change_count == expected

    def test_newline_counts(self, engine):
        """Test newlines are counted inside changed text."""
        summary = engine.compute("line one\n", "line one\nline two\n")
        assert summary.added_newline_count == 1
        assert summary.removed_newline_count == 0

        summary = engine.compute("a\nb\nc\n", "a\n")
        assert summary.removed_newline_count == 2
        assert summary.added_newline_count == 0

    def test_large_input_with_one_change(self, engine):
        """Test a long text with a single replacement."""
        words = [f"word{i}" for i in range(20000)]
        before = ' '.join(words)
        words[10000] = 'changed'
        after = ' '.join(words)

        summary = engine.compute(before, after)
        assert summary.change_count == 2
        assert [op.text for op in summary.operations if op.is_change] == ['word10000', 'changed']


class TestConvenience:
    """Module-level helper."""

    def test_compute_diff(self):
        """Test the module-level helper."""
        summary = compute_diff("a b", "a c")
        assert summary.change_count == 2

    def test_to_dict(self):
        """Test summary serialization."""
        data = compute_diff("hello", "hello world").to_dict()
        assert data['change_count'] == 1
        assert data['operations'][1] == {
            'kind': 'added', 'text': ' world', 'start_offset': 5, 'end_offset': 11
        }
