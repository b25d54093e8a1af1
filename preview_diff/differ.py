"""
Preview Differ v1.0.0
=====================
Word-level diff between two plain-text renderings of a document.

Uses diff-match-patch for a minimal edit script: every word and every
whitespace run is mapped onto a single code point, the encoded strings
are diffed (Myers bisection), and the result is decoded back to text.

Tokenization: a token is a maximal run of non-whitespace characters or
a maximal run of whitespace. Punctuation stays attached to its word.
"""

import re
import sys
from typing import Dict, List, Optional, Tuple

import diff_match_patch as dmp_module

from config_logging import get_logger
from .models import ChangeKind, DiffOperation, DiffSummary

logger = get_logger('preview_diff.differ')

TOKEN_PATTERN = re.compile(r'\S+|\s+')

# Room left in the code point space for tokens that only appear in "after".
MAX_BEFORE_TOKENS = 666666
MAX_AFTER_TOKENS = sys.maxunicode


class DiffEngine:
    """
    Word-granularity diff engine.

    Stateless between calls; one instance may be reused for any number
    of comparisons.
    """

    def __init__(self, timeout: float = 0.0):
        """
        Initialize the engine.

        Args:
            timeout: Seconds allowed per diff. 0 runs to completion and
                     guarantees a minimal edit script; a positive value
                     bounds run time and may return a longer script.
        """
        self.timeout = timeout
        self.dmp = dmp_module.diff_match_patch()
        self.dmp.Diff_Timeout = timeout

    def compute(self, before: Optional[str], after: Optional[str]) -> DiffSummary:
        """
        Compute the word-level diff between two texts.

        Args:
            before: Original text (None is treated as empty)
            after: Modified text (None is treated as empty)

        Returns:
            DiffSummary with ordered operations and statistics
        """
        if before is None:
            before = ''
        if after is None:
            after = ''

        logger.debug(f"Text lengths: before={len(before)}, after={len(after)}")

        # Handle edge cases
        if before == after:
            operations = [DiffOperation(ChangeKind.UNCHANGED, after, 0, len(after))] if after else []
            return DiffSummary(operations=operations)
        if not before:
            return self._summarize([DiffOperation(ChangeKind.ADDED, after, 0, len(after))])
        if not after:
            return self._summarize([DiffOperation(ChangeKind.REMOVED, before, 0, len(before))])

        try:
            diffs = self._diff_tokens(before, after)
        except Exception as e:
            logger.error(f"Diff computation failed: {e}", exc_info=True)
            return DiffSummary()

        return self._summarize(self._to_operations(diffs))

    def _diff_tokens(self, before: str, after: str) -> List[Tuple[int, str]]:
        """Diff the two texts token by token and return decoded dmp diffs."""
        token_array: List[str] = ['']  # index 0 is never emitted
        token_hash: Dict[str, int] = {}

        before_chars = self._encode(before, token_array, token_hash, MAX_BEFORE_TOKENS)
        after_chars = self._encode(after, token_array, token_hash, MAX_AFTER_TOKENS)
        logger.debug(f"Token counts: before={len(before_chars)}, after={len(after_chars)}, "
                     f"unique={len(token_array) - 1}")

        diffs = self.dmp.diff_main(before_chars, after_chars, False)
        self.dmp.diff_charsToLines(diffs, token_array)
        return diffs

    def _encode(
        self,
        text: str,
        token_array: List[str],
        token_hash: Dict[str, int],
        max_tokens: int
    ) -> str:
        """
        Encode text as one character per token.

        Once max_tokens unique tokens have been seen, the remainder of the
        text is encoded as a single token.
        """
        tokens = TOKEN_PATTERN.findall(text)
        chars = []

        for position, token in enumerate(tokens):
            if token not in token_hash and len(token_array) >= max_tokens:
                token = ''.join(tokens[position:])
                if token not in token_hash:
                    token_array.append(token)
                    token_hash[token] = len(token_array) - 1
                chars.append(chr(token_hash[token]))
                break
            if token not in token_hash:
                token_array.append(token)
                token_hash[token] = len(token_array) - 1
            chars.append(chr(token_hash[token]))

        return ''.join(chars)

    def _to_operations(self, diffs: List[Tuple[int, str]]) -> List[DiffOperation]:
        """Map dmp (op, text) tuples to DiffOperations with per-side offsets."""
        operations = []
        before_pos = 0
        after_pos = 0

        for op, text in diffs:
            if not text:
                continue
            length = len(text)

            if op == self.dmp.DIFF_DELETE:
                operations.append(DiffOperation(
                    ChangeKind.REMOVED, text, before_pos, before_pos + length
                ))
                before_pos += length

            elif op == self.dmp.DIFF_INSERT:
                operations.append(DiffOperation(
                    ChangeKind.ADDED, text, after_pos, after_pos + length
                ))
                after_pos += length

            else:
                operations.append(DiffOperation(
                    ChangeKind.UNCHANGED, text, after_pos, after_pos + length
                ))
                before_pos += length
                after_pos += length

        return operations

    def _summarize(self, operations: List[DiffOperation]) -> DiffSummary:
        """Build a DiffSummary with change and newline statistics."""
        added = [op for op in operations if op.kind is ChangeKind.ADDED]
        removed = [op for op in operations if op.kind is ChangeKind.REMOVED]

        summary = DiffSummary(
            operations=operations,
            change_count=len(added) + len(removed),
            added_newline_count=sum(op.text.count('\n') for op in added),
            removed_newline_count=sum(op.text.count('\n') for op in removed)
        )

        logger.info(f"Diff complete: {len(operations)} operations, {summary.change_count} changes "
                    f"(+{len(added)}, -{len(removed)}, "
                    f"lines +{summary.added_newline_count}/-{summary.removed_newline_count})")
        return summary


# Convenience function
def compute_diff(before: Optional[str], after: Optional[str], timeout: float = 0.0) -> DiffSummary:
    """
    Compute a word-level diff between two texts.

    Args:
        before: Original text
        after: Modified text
        timeout: Seconds allowed for the diff (0 = minimal, unbounded)

    Returns:
        DiffSummary with ordered operations
    """
    return DiffEngine(timeout=timeout).compute(before, after)
