"""Prefix-tree index of mined subsequence patterns.

Nodes live in a flat arena and reference each other by index. Each edge is
labelled by one sequence element, so the path from the root to a node spells
a pattern prefix. Nodes accumulate the positions where their prefix was
observed; terminal nodes additionally count how many insertions ended there.

The parent index on each node is used only to rebuild a node's path for
diagnostics. Ownership runs top-down through the arena.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from src.mining.types import CollectedPattern, FlagPolicy, Position

logger = logging.getLogger(__name__)

ROOT_INDEX = 0


@dataclass
class TrieNode:
    """One prefix in the pattern trie.

    Attributes:
        label: Element on the edge leading into this node (None for root).
        parent: Arena index of the parent node (None for root).
        children: Element label -> arena index of the child node.
        is_end_of_pattern: Whether the node's path is a recorded pattern.
        frequency: Insertions terminating exactly at this node.
        positions: (sequence id, offset) pairs where the prefix was observed.
        is_noncontiguous: Non-contiguous classification of the pattern.
    """

    label: str | None = None
    parent: int | None = None
    children: dict[str, int] = field(default_factory=dict)
    is_end_of_pattern: bool = False
    frequency: int = 0
    positions: list[Position] = field(default_factory=list)
    is_noncontiguous: bool = False


class PatternTrie:
    """Arena-backed prefix tree counting pattern occurrences."""

    def __init__(self, flag_policy: FlagPolicy | str = FlagPolicy.ANY) -> None:
        self.flag_policy = FlagPolicy(flag_policy)
        self._nodes: list[TrieNode] = [TrieNode()]
        self._pattern_count = 0

    @property
    def node_count(self) -> int:
        """Number of nodes including the root."""
        return len(self._nodes)

    @property
    def pattern_count(self) -> int:
        """Number of distinct patterns inserted since the last reset."""
        return self._pattern_count

    def node(self, index: int) -> TrieNode:
        return self._nodes[index]

    def reset(self) -> None:
        """Discard every pattern, leaving an empty root."""
        logger.debug(
            "Resetting trie: dropping %d nodes, %d patterns",
            len(self._nodes) - 1, self._pattern_count,
        )
        self._nodes = [TrieNode()]
        self._pattern_count = 0

    def insert(
        self,
        pattern: Sequence[str],
        sequence_id: int,
        start_offset: int,
        is_noncontiguous: bool = False,
    ) -> None:
        """Record one occurrence of ``pattern``.

        Every node on the path receives a position tagged with the sequence id
        and the offset of that depth (``start_offset + depth``). The terminal
        node is marked as a pattern, its frequency incremented and its
        non-contiguous flag updated according to ``flag_policy``.

        An empty pattern is ignored.
        """
        if not pattern:
            return

        index = ROOT_INDEX
        for depth, element in enumerate(pattern):
            child = self._nodes[index].children.get(element)
            if child is None:
                child = len(self._nodes)
                self._nodes.append(TrieNode(label=element, parent=index))
                self._nodes[index].children[element] = child
            index = child
            self._nodes[index].positions.append(Position(sequence_id, start_offset + depth))

        terminal = self._nodes[index]
        if not terminal.is_end_of_pattern:
            terminal.is_end_of_pattern = True
            self._pattern_count += 1
        terminal.frequency += 1

        if self.flag_policy == FlagPolicy.LAST_WRITE:
            terminal.is_noncontiguous = is_noncontiguous
        else:
            terminal.is_noncontiguous = terminal.is_noncontiguous or is_noncontiguous

    def _walk(self, pattern: Sequence[str]) -> int | None:
        index = ROOT_INDEX
        for element in pattern:
            child = self._nodes[index].children.get(element)
            if child is None:
                return None
            index = child
        return index

    def search(self, pattern: Sequence[str]) -> TrieNode | None:
        """Return the terminal node for ``pattern`` if it was inserted as a pattern."""
        if not pattern:
            return None
        index = self._walk(pattern)
        if index is None:
            return None
        node = self._nodes[index]
        return node if node.is_end_of_pattern else None

    def positions(self, pattern: Sequence[str]) -> list[Position]:
        """Return the positions recorded for a prefix, whether or not it is a pattern."""
        if not pattern:
            return []
        index = self._walk(pattern)
        if index is None:
            return []
        return list(self._nodes[index].positions)

    def path_to(self, index: int) -> tuple[str, ...]:
        """Rebuild the element path for a node by following parent links."""
        labels: list[str] = []
        node = self._nodes[index]
        while node.parent is not None:
            labels.append(node.label or "")
            node = self._nodes[node.parent]
        return tuple(reversed(labels))

    def collect_patterns(
        self,
        min_frequency: int = 1,
        noncontiguous_only: bool = False,
    ) -> list[CollectedPattern]:
        """Collect recorded patterns meeting a frequency threshold.

        Traverses depth-first in child insertion order with an explicit
        stack, then stable-sorts by frequency descending so equal-frequency
        patterns keep traversal order.

        Args:
            min_frequency: Minimum terminal frequency to report.
            noncontiguous_only: Report only patterns flagged non-contiguous.

        Returns:
            List of collected patterns, most frequent first.
        """
        patterns: list[CollectedPattern] = []
        stack: list[tuple[int, tuple[str, ...]]] = [(ROOT_INDEX, ())]

        while stack:
            index, path = stack.pop()
            node = self._nodes[index]
            if (
                node.is_end_of_pattern
                and node.frequency >= min_frequency
                and (not noncontiguous_only or node.is_noncontiguous)
            ):
                patterns.append(CollectedPattern(path, node.frequency, node.is_noncontiguous))

            for element, child in reversed(list(node.children.items())):
                stack.append((child, path + (element,)))

        patterns.sort(key=lambda p: p.frequency, reverse=True)
        return patterns
