"""Pydantic schemas for serialised mining reports."""

from __future__ import annotations

from pydantic import BaseModel, Field

from src.mining.types import MiningStatistics, PatternRecord


class PatternResponse(BaseModel):
    """One ranked pattern with its frequency, support and classification."""

    elements: list[str]
    frequency: int = Field(..., ge=0)
    length: int = Field(..., ge=0)
    support: float = Field(..., ge=0.0, le=1.0)
    display_string: str
    is_noncontiguous: bool
    type_label: str

    @classmethod
    def from_record(cls, record: PatternRecord) -> PatternResponse:
        return cls(
            elements=list(record.elements),
            frequency=record.frequency,
            length=record.length,
            support=record.support,
            display_string=record.display_string,
            is_noncontiguous=record.is_noncontiguous,
            type_label=record.type_label,
        )


class StatisticsResponse(BaseModel):
    """Run statistics of the mining call that produced a report."""

    sequence_count: int
    pattern_count: int
    elapsed_milliseconds: float
    trie_distinct_pattern_count: int
    average_sequence_length: float

    @classmethod
    def from_statistics(cls, stats: MiningStatistics) -> StatisticsResponse:
        return cls(
            sequence_count=stats.sequence_count,
            pattern_count=stats.pattern_count,
            elapsed_milliseconds=round(stats.elapsed_milliseconds, 4),
            trie_distinct_pattern_count=stats.trie_distinct_pattern_count,
            average_sequence_length=round(stats.average_sequence_length, 2),
        )


class MiningReport(BaseModel):
    """Top-k mining result together with the parameters that produced it."""

    k: int
    min_support: int
    max_length: int
    pattern_filter: str
    patterns: list[PatternResponse]
    statistics: StatisticsResponse


class DistributionResponse(BaseModel):
    """Pattern counts bucketed by length and by frequency."""

    total_unique_patterns: int
    by_length: dict[str, int]
    by_frequency: dict[str, int] = Field(default_factory=dict)
