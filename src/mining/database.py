"""Ordered store of registered input sequences."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from src.mining.errors import DuplicateSequenceError
from src.mining.types import SequenceRecord

logger = logging.getLogger(__name__)


class SequenceDatabase:
    """Registered sequences in registration order, keyed by a stable id."""

    def __init__(self) -> None:
        self._records: list[SequenceRecord] = []
        self._ids: set[int] = set()

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[SequenceRecord]:
        return iter(self._records)

    def add(self, elements: Iterable[str], sequence_id: int | None = None) -> int:
        """Append a sequence and return its id.

        When no id is given the next positional index is used. Empty
        sequences are accepted; they simply contribute no patterns.

        Raises:
            DuplicateSequenceError: If ``sequence_id`` is already registered.
        """
        if sequence_id is None:
            sequence_id = len(self._records)
        if sequence_id in self._ids:
            raise DuplicateSequenceError(sequence_id)

        record = SequenceRecord(id=sequence_id, elements=tuple(str(e) for e in elements))
        self._records.append(record)
        self._ids.add(sequence_id)
        logger.debug("Registered sequence %d with %d elements", sequence_id, record.length)
        return sequence_id

    def get(self, sequence_id: int) -> SequenceRecord | None:
        return next((r for r in self._records if r.id == sequence_id), None)

    def average_length(self) -> float:
        if not self._records:
            return 0.0
        return sum(r.length for r in self._records) / len(self._records)
