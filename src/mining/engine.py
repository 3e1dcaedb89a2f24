"""Frequent subsequence mining engine.

Drives the subsequence enumerator over every registered sequence, queries
the pattern trie for patterns meeting a minimum frequency, and ranks the
results by frequency with support computed against the database size.

Each ``mine`` call is a complete synchronous batch: enumerate, insert,
query. With ``reset_before_mine`` enabled (the default) the trie is cleared
first so repeated calls report the same counts. Disabling it makes counts
accumulate across calls, which is only useful for incremental counting.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from collections import Counter
from collections.abc import Iterable
from typing import TYPE_CHECKING

from src.mining.database import SequenceDatabase
from src.mining.enumerator import (
    DEFAULT_MAX_LENGTH,
    DEFAULT_MIN_LENGTH,
    MAX_NONCONTIGUOUS_SEQUENCE_LENGTH,
    NONCONTIGUOUS_MASK_CAP,
    SubsequenceEnumerator,
)
from src.mining.errors import InvalidParameterError
from src.mining.trie import PatternTrie
from src.mining.types import (
    DEFAULT_SEPARATOR,
    FlagPolicy,
    MiningStatistics,
    PatternFilter,
    PatternRecord,
)

if TYPE_CHECKING:
    from src.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_MIN_SUPPORT = 2
DEFAULT_TOP_K = 5
TOTAL_UNIQUE_KEY = "total_unique_patterns"


def _support(frequency: int, total_sequences: int) -> float:
    """Fraction of registered sequences, capped at 1.0.

    Frequency counts every insertion, so a pattern repeated within one
    sequence can exceed the sequence count.
    """
    if not total_sequences:
        return 0.0
    return min(frequency / total_sequences, 1.0)


class MiningEngine:
    """Registers sequences and mines frequent subsequence patterns from them."""

    def __init__(
        self,
        min_length: int = DEFAULT_MIN_LENGTH,
        max_length: int = DEFAULT_MAX_LENGTH,
        *,
        max_noncontiguous_length: int = MAX_NONCONTIGUOUS_SEQUENCE_LENGTH,
        mask_cap: int = NONCONTIGUOUS_MASK_CAP,
        flag_policy: FlagPolicy | str = FlagPolicy.ANY,
        reset_before_mine: bool = True,
        separator: str = DEFAULT_SEPARATOR,
    ) -> None:
        self.enumerator = SubsequenceEnumerator(
            min_length=min_length,
            max_length=max_length,
            max_noncontiguous_length=max_noncontiguous_length,
            mask_cap=mask_cap,
        )
        self.trie = PatternTrie(flag_policy=flag_policy)
        self.database = SequenceDatabase()
        self.reset_before_mine = reset_before_mine
        self.separator = separator
        self._statistics = MiningStatistics()

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **overrides: object) -> MiningEngine:
        """Build an engine from application settings.

        Keyword overrides take precedence over the corresponding settings.
        """
        if settings is None:
            from src.core.config import get_settings

            settings = get_settings()

        kwargs: dict[str, object] = {
            "min_length": settings.min_length,
            "max_length": settings.max_length,
            "max_noncontiguous_length": settings.noncontiguous_max_sequence_length,
            "mask_cap": settings.noncontiguous_mask_cap,
            "flag_policy": settings.noncontiguous_flag_policy,
            "reset_before_mine": settings.reset_before_mine,
            "separator": settings.display_separator,
        }
        kwargs.update(overrides)
        return cls(**kwargs)  # type: ignore[arg-type]

    def register(self, sequence: Iterable[str], sequence_id: int | None = None) -> int:
        """Add a sequence to the database and return its id."""
        return self.database.add(sequence, sequence_id)

    def reset(self) -> None:
        """Clear the trie and the statistics of previous mining runs."""
        self.trie.reset()
        self._statistics = MiningStatistics()

    def _build_trie(self, include_noncontiguous: bool) -> int:
        if self.reset_before_mine:
            self.trie.reset()
        insertions = 0
        for record in self.database:
            insertions += self.enumerator.populate(
                self.trie, record.elements, record.id, include_noncontiguous
            )
        return insertions

    def mine(
        self,
        min_support: int = DEFAULT_MIN_SUPPORT,
        noncontiguous_only: bool = False,
        pattern_filter: PatternFilter | str | None = None,
    ) -> list[PatternRecord]:
        """Mine patterns occurring at least ``min_support`` times.

        Args:
            min_support: Minimum pattern frequency (>= 1).
            noncontiguous_only: Report only non-contiguous patterns.
            pattern_filter: Optional kind filter; ``noncontiguous`` is the
                same as ``noncontiguous_only=True``. ``contiguous`` skips
                non-contiguous enumeration and drops any non-contiguous
                patterns left in an unreset trie.

        Returns:
            Pattern records sorted by frequency descending.

        Raises:
            InvalidParameterError: If ``min_support`` is below 1, or if
                ``noncontiguous_only`` is combined with the contiguous filter.
        """
        if min_support < 1:
            raise InvalidParameterError("min_support", min_support, "must be >= 1")
        kind = PatternFilter(pattern_filter) if pattern_filter is not None else PatternFilter.ALL
        if noncontiguous_only and kind == PatternFilter.CONTIGUOUS:
            raise InvalidParameterError(
                "pattern_filter", kind.value, "conflicts with noncontiguous_only=True"
            )
        noncontiguous_only = noncontiguous_only or kind == PatternFilter.NONCONTIGUOUS

        start = time.perf_counter()
        insertions = self._build_trie(include_noncontiguous=kind != PatternFilter.CONTIGUOUS)
        collected = self.trie.collect_patterns(min_support, noncontiguous_only)

        total_sequences = len(self.database)
        patterns: list[PatternRecord] = []
        for elements, frequency, is_noncontiguous in collected:
            if kind == PatternFilter.CONTIGUOUS and is_noncontiguous:
                continue
            patterns.append(PatternRecord(
                elements=elements,
                frequency=frequency,
                support=_support(frequency, total_sequences),
                display_string=self.separator.join(elements),
                is_noncontiguous=is_noncontiguous,
            ))

        patterns.sort(key=lambda p: p.frequency, reverse=True)
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        self._statistics.pattern_count = len(patterns)
        self._statistics.elapsed_milliseconds = elapsed_ms
        logger.info(
            "Subsequence mining: %d sequences, %d insertions, %d patterns found "
            "(min_support=%d, filter=%s) in %.3f ms",
            total_sequences, insertions, len(patterns), min_support, kind, elapsed_ms,
        )
        return patterns

    def top_k(
        self,
        k: int = DEFAULT_TOP_K,
        min_support: int = DEFAULT_MIN_SUPPORT,
        noncontiguous_only: bool = False,
        pattern_filter: PatternFilter | str | None = None,
    ) -> list[PatternRecord]:
        """Return the ``k`` most frequent patterns.

        ``k`` larger than the number of patterns returns all of them.
        Equal-frequency patterns keep the order ``mine`` produced.

        Raises:
            InvalidParameterError: If ``k`` is negative.
        """
        if k < 0:
            raise InvalidParameterError("k", k, "must be >= 0")
        patterns = self.mine(min_support, noncontiguous_only, pattern_filter)
        if len(patterns) <= k:
            return patterns
        patterns.sort(key=lambda p: p.frequency, reverse=True)
        return patterns[:k]

    def distribution(self) -> dict[str, int]:
        """Count all recorded patterns by length.

        Returns:
            Mapping with ``total_unique_patterns`` plus one
            ``length_<n>`` entry per pattern length, shortest first.
        """
        patterns = self.mine(min_support=1)
        by_length = Counter(p.length for p in patterns)
        result = {TOTAL_UNIQUE_KEY: len(patterns)}
        for length in sorted(by_length):
            result[f"length_{length}"] = by_length[length]
        return result

    def frequency_distribution(self) -> dict[str, int]:
        """Count all recorded patterns by frequency, as ``freq_<n>`` entries."""
        patterns = self.mine(min_support=1)
        by_frequency = Counter(p.frequency for p in patterns)
        return {f"freq_{freq}": by_frequency[freq] for freq in sorted(by_frequency)}

    def statistics(self) -> MiningStatistics:
        """Return a snapshot of the run statistics."""
        return dataclasses.replace(
            self._statistics,
            sequence_count=len(self.database),
            trie_distinct_pattern_count=self.trie.pattern_count,
            average_sequence_length=self.database.average_length(),
        )
