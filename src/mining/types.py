"""Type definitions shared by the trie, enumerator and mining engine."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import NamedTuple


class PatternFilter(enum.StrEnum):
    """Which pattern kinds a mining query reports."""

    ALL = "all"
    CONTIGUOUS = "contiguous"
    NONCONTIGUOUS = "noncontiguous"


class FlagPolicy(enum.StrEnum):
    """How repeated insertions update a node's non-contiguous flag.

    LAST_WRITE keeps the value from the most recent insertion reaching the
    node. ANY marks the node non-contiguous once any insertion was.
    """

    LAST_WRITE = "last_write"
    ANY = "any"


CONTIGUOUS_LABEL = "contiguous"
NONCONTIGUOUS_LABEL = "non-contiguous"
DEFAULT_SEPARATOR = " -> "


class Position(NamedTuple):
    """Where a trie prefix was observed: sequence id and absolute offset."""

    sequence_id: int
    offset: int


class Candidate(NamedTuple):
    """A subsequence produced by the enumerator, ready for trie insertion."""

    elements: tuple[str, ...]
    start_offset: int
    is_noncontiguous: bool


class CollectedPattern(NamedTuple):
    """A trie query hit: pattern path, terminal frequency and flag."""

    elements: tuple[str, ...]
    frequency: int
    is_noncontiguous: bool


@dataclass(frozen=True)
class SequenceRecord:
    """A registered input sequence.

    Attributes:
        id: Identifier unique within the database.
        elements: The ordered elements, immutable after registration.
    """

    id: int
    elements: tuple[str, ...]

    @property
    def length(self) -> int:
        return len(self.elements)


@dataclass
class PatternRecord:
    """A frequent pattern reported by the mining engine.

    Attributes:
        elements: The pattern's elements in order.
        frequency: Number of insertions terminating at the pattern.
        support: frequency / registered sequences (0 when none registered).
        display_string: Elements joined with the display separator.
        is_noncontiguous: Whether the pattern was classified non-contiguous.
    """

    elements: tuple[str, ...]
    frequency: int
    support: float
    display_string: str
    is_noncontiguous: bool = False

    @property
    def length(self) -> int:
        return len(self.elements)

    @property
    def type_label(self) -> str:
        return NONCONTIGUOUS_LABEL if self.is_noncontiguous else CONTIGUOUS_LABEL


@dataclass
class MiningStatistics:
    """Run statistics for the most recent mining call.

    Attributes:
        sequence_count: Registered sequences at the time of the call.
        pattern_count: Records returned by the most recent ``mine``.
        elapsed_milliseconds: Wall time of the most recent ``mine``.
        trie_distinct_pattern_count: Distinct patterns held by the trie.
        average_sequence_length: Mean length of registered sequences.
    """

    sequence_count: int = 0
    pattern_count: int = 0
    elapsed_milliseconds: float = 0.0
    trie_distinct_pattern_count: int = 0
    average_sequence_length: float = 0.0
