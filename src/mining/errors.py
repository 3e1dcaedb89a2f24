"""Exceptions raised by the subsequence mining engine."""

from __future__ import annotations


class MiningError(Exception):
    """Base exception for mining configuration and usage errors."""


class InvalidRangeError(MiningError, ValueError):
    """Raised when a pattern length window is empty or non-positive.

    Attributes:
        min_length: The requested lower bound.
        max_length: The requested upper bound.
    """

    def __init__(self, min_length: int, max_length: int) -> None:
        self.min_length = min_length
        self.max_length = max_length
        if min_length <= 0 or max_length <= 0:
            msg = "Pattern length bounds must be positive"
        else:
            msg = "max_length must be >= min_length"
        super().__init__(f"{msg} (min_length={min_length}, max_length={max_length})")


class InvalidParameterError(MiningError, ValueError):
    """Raised when a mining parameter is outside its accepted domain."""

    def __init__(self, name: str, value: object, requirement: str) -> None:
        self.name = name
        self.value = value
        super().__init__(f"Invalid {name}={value!r}: {requirement}")


class DuplicateSequenceError(MiningError, ValueError):
    """Raised when an explicit sequence id is already registered."""

    def __init__(self, sequence_id: int) -> None:
        self.sequence_id = sequence_id
        super().__init__(f"Sequence id {sequence_id} is already registered")
