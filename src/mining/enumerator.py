"""Bounded subsequence enumeration.

Generates the candidate patterns for a single sequence: every contiguous
window within the configured length range, plus a capped sample of
non-contiguous index combinations for short sequences.

Non-contiguous candidates are drawn from successive integer bitmasks
``1 <= mask < min(mask_cap, 2**L)`` where bit ``j`` selects element ``j``.
The cap bounds the work per sequence to a constant, so for longer inputs
some valid non-contiguous subsequences are never generated. Sequences longer
than ``max_noncontiguous_length`` skip non-contiguous generation entirely.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence

from src.mining.errors import InvalidParameterError, InvalidRangeError
from src.mining.trie import PatternTrie
from src.mining.types import Candidate

logger = logging.getLogger(__name__)

DEFAULT_MIN_LENGTH = 2
DEFAULT_MAX_LENGTH = 10
MAX_NONCONTIGUOUS_SEQUENCE_LENGTH = 20
NONCONTIGUOUS_MASK_CAP = 1000


class SubsequenceEnumerator:
    """Enumerates candidate subsequences within a length window.

    Raises:
        InvalidRangeError: If either bound is non-positive or
            ``max_length < min_length``.
        InvalidParameterError: If the non-contiguous limits are invalid.
    """

    def __init__(
        self,
        min_length: int = DEFAULT_MIN_LENGTH,
        max_length: int = DEFAULT_MAX_LENGTH,
        max_noncontiguous_length: int = MAX_NONCONTIGUOUS_SEQUENCE_LENGTH,
        mask_cap: int = NONCONTIGUOUS_MASK_CAP,
    ) -> None:
        if min_length <= 0 or max_length <= 0 or max_length < min_length:
            raise InvalidRangeError(min_length, max_length)
        if max_noncontiguous_length < 0:
            raise InvalidParameterError(
                "max_noncontiguous_length", max_noncontiguous_length, "must be >= 0"
            )
        if mask_cap < 1:
            raise InvalidParameterError("mask_cap", mask_cap, "must be >= 1")

        self.min_length = min_length
        self.max_length = max_length
        self.max_noncontiguous_length = max_noncontiguous_length
        self.mask_cap = mask_cap

    def contiguous(self, sequence: Sequence[str]) -> Iterator[Candidate]:
        """Yield every window of each length in the range, shortest first."""
        seq_len = len(sequence)
        for length in range(self.min_length, min(self.max_length, seq_len) + 1):
            for start in range(seq_len - length + 1):
                yield Candidate(tuple(sequence[start:start + length]), start, False)

    def noncontiguous(self, sequence: Sequence[str]) -> Iterator[Candidate]:
        """Yield bitmask-selected subsequences, in mask value order.

        Yields nothing when the sequence exceeds ``max_noncontiguous_length``.
        """
        seq_len = len(sequence)
        if seq_len > self.max_noncontiguous_length:
            return

        max_mask = min(self.mask_cap, 1 << seq_len)
        for mask in range(1, max_mask):
            selected = [j for j in range(seq_len) if mask & (1 << j)]
            if self.min_length <= len(selected) <= self.max_length:
                yield Candidate(
                    tuple(sequence[j] for j in selected),
                    selected[0] if selected else 0,
                    True,
                )

    def candidates(
        self,
        sequence: Sequence[str],
        include_noncontiguous: bool = True,
    ) -> Iterator[Candidate]:
        """Yield contiguous candidates followed by non-contiguous ones."""
        yield from self.contiguous(sequence)
        if include_noncontiguous:
            yield from self.noncontiguous(sequence)

    def populate(
        self,
        trie: PatternTrie,
        sequence: Sequence[str],
        sequence_id: int,
        include_noncontiguous: bool = True,
    ) -> int:
        """Insert every candidate of ``sequence`` into ``trie``.

        Returns:
            Number of insertions performed.
        """
        inserted = 0
        for candidate in self.candidates(sequence, include_noncontiguous):
            trie.insert(
                candidate.elements,
                sequence_id,
                candidate.start_offset,
                candidate.is_noncontiguous,
            )
            inserted += 1
        logger.debug(
            "Sequence %d (length %d): %d candidate insertions",
            sequence_id, len(sequence), inserted,
        )
        return inserted
