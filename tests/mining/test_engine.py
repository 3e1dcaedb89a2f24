"""Tests for the subsequence mining engine."""

from __future__ import annotations

import pytest

from src.core.config import Settings
from src.mining.engine import MiningEngine
from src.mining.errors import DuplicateSequenceError, InvalidParameterError, InvalidRangeError
from src.mining.types import FlagPolicy, PatternFilter


def _engine(sequences, **kwargs) -> MiningEngine:
    engine = MiningEngine(**kwargs)
    for sequence in sequences:
        engine.register(sequence)
    return engine


class TestRegister:
    def test_assigns_positional_ids(self):
        engine = MiningEngine()
        assert engine.register(["a", "b"]) == 0
        assert engine.register(["c"]) == 1

    def test_explicit_id_kept(self):
        engine = MiningEngine()
        assert engine.register(["a", "b"], sequence_id=42) == 42
        assert engine.database.get(42).elements == ("a", "b")

    def test_duplicate_explicit_id_rejected(self):
        engine = MiningEngine()
        engine.register(["a"], sequence_id=3)
        with pytest.raises(DuplicateSequenceError):
            engine.register(["b"], sequence_id=3)

    def test_empty_sequence_accepted(self):
        engine = MiningEngine()
        engine.register([])
        assert engine.mine(min_support=1) == []
        assert engine.statistics().sequence_count == 1

    def test_invalid_range_rejected_at_construction(self):
        with pytest.raises(InvalidRangeError):
            MiningEngine(min_length=3, max_length=2)


class TestMine:
    def test_contiguous_scenario_frequencies(self, abc_sequences):
        engine = _engine(abc_sequences, min_length=2, max_length=2)
        patterns = engine.mine(min_support=2, pattern_filter=PatternFilter.CONTIGUOUS)

        by_elements = {p.elements: p for p in patterns}
        assert by_elements[("a", "b")].frequency == 3
        assert by_elements[("b", "c")].frequency == 2
        assert ("b", "d") not in by_elements
        assert by_elements[("a", "b")].support == pytest.approx(1.0)
        assert by_elements[("b", "c")].support == pytest.approx(2 / 3)
        assert all(not p.is_noncontiguous for p in patterns)

    def test_all_patterns_include_noncontiguous(self, abc_sequences):
        engine = _engine(abc_sequences, min_length=2, max_length=2)
        patterns = engine.mine(min_support=2)

        by_elements = {p.elements: p for p in patterns}
        # Each sequence contributes a window and a bitmask selection of (a, b)
        assert by_elements[("a", "b")].frequency == 6
        assert by_elements[("a", "c")].is_noncontiguous is True
        assert by_elements[("a", "c")].type_label == "non-contiguous"

    def test_record_fields(self, abc_sequences):
        engine = _engine(abc_sequences, min_length=2, max_length=2)
        record = engine.mine(min_support=2, pattern_filter="contiguous")[0]

        assert record.elements == ("a", "b")
        assert record.length == 2
        assert record.display_string == "a -> b"
        assert record.type_label == "contiguous"

    def test_sorted_by_frequency_desc(self, session_engine):
        patterns = session_engine.mine(min_support=1)
        frequencies = [p.frequency for p in patterns]
        assert frequencies == sorted(frequencies, reverse=True)

    def test_support_bounds(self, session_engine):
        for pattern in session_engine.mine(min_support=1):
            assert 0.0 < pattern.support <= 1.0

    def test_noncontiguous_only(self, session_engine):
        patterns = session_engine.mine(min_support=1, noncontiguous_only=True)
        assert patterns
        assert all(p.is_noncontiguous for p in patterns)

    def test_noncontiguous_filter_matches_flag(self, session_engine):
        via_flag = session_engine.mine(min_support=2, noncontiguous_only=True)
        via_filter = session_engine.mine(min_support=2, pattern_filter=PatternFilter.NONCONTIGUOUS)
        assert [p.elements for p in via_flag] == [p.elements for p in via_filter]

    def test_long_sequence_has_no_noncontiguous_patterns(self):
        engine = _engine([[f"e{i % 3}" for i in range(25)]], min_length=2, max_length=4)
        assert engine.mine(min_support=1, noncontiguous_only=True) == []
        assert all(not p.is_noncontiguous for p in engine.mine(min_support=1))

    def test_empty_database(self):
        engine = MiningEngine()
        assert engine.mine() == []
        stats = engine.statistics()
        assert stats.sequence_count == 0
        assert stats.pattern_count == 0
        assert stats.average_sequence_length == 0.0

    def test_noncontiguous_only_conflicts_with_contiguous_filter(self, abc_sequences):
        engine = _engine(abc_sequences, min_length=2, max_length=2)
        with pytest.raises(InvalidParameterError, match="conflicts with noncontiguous_only"):
            engine.mine(min_support=1, noncontiguous_only=True, pattern_filter="contiguous")

    def test_top_k_reports_filter_conflict(self, abc_sequences):
        engine = _engine(abc_sequences, min_length=2, max_length=2)
        with pytest.raises(InvalidParameterError):
            engine.top_k(k=3, noncontiguous_only=True, pattern_filter=PatternFilter.CONTIGUOUS)

    @pytest.mark.parametrize("min_support", [0, -1])
    def test_invalid_min_support(self, min_support):
        with pytest.raises(InvalidParameterError):
            MiningEngine().mine(min_support=min_support)

    def test_custom_separator(self, abc_sequences):
        engine = _engine(abc_sequences, min_length=2, max_length=2, separator=",")
        record = engine.mine(min_support=3, pattern_filter="contiguous")[0]
        assert record.display_string == "a,b"


class TestResetBehaviour:
    def test_repeated_mining_is_stable_by_default(self, abc_sequences):
        engine = _engine(abc_sequences, min_length=2, max_length=2)
        first = engine.mine(min_support=1)
        second = engine.mine(min_support=1)
        assert [(p.elements, p.frequency) for p in first] == [
            (p.elements, p.frequency) for p in second
        ]

    def test_counts_accumulate_without_reset(self, abc_sequences):
        engine = _engine(abc_sequences, min_length=2, max_length=2, reset_before_mine=False)
        engine.mine(min_support=1, pattern_filter="contiguous")
        second = engine.mine(min_support=1, pattern_filter="contiguous")

        by_elements = {p.elements: p for p in second}
        assert by_elements[("a", "b")].frequency == 6

    def test_explicit_reset(self, abc_sequences):
        engine = _engine(abc_sequences, min_length=2, max_length=2, reset_before_mine=False)
        engine.mine(min_support=1)
        engine.reset()

        assert engine.trie.pattern_count == 0
        assert engine.statistics().pattern_count == 0
        patterns = engine.mine(min_support=1, pattern_filter="contiguous")
        assert {p.elements: p.frequency for p in patterns}[("a", "b")] == 3


class TestFlagPolicyThroughEngine:
    def test_last_write_reclassifies_shared_patterns(self, abc_sequences):
        engine = _engine(
            abc_sequences, min_length=2, max_length=2, flag_policy=FlagPolicy.LAST_WRITE,
        )
        by_elements = {p.elements: p for p in engine.mine(min_support=1)}
        # Bitmask insertions follow the windows, so the last write is non-contiguous
        assert by_elements[("a", "b")].is_noncontiguous is True

    def test_any_policy_default(self):
        engine = MiningEngine()
        assert engine.trie.flag_policy == FlagPolicy.ANY


class TestTopK:
    def test_never_exceeds_k(self, session_engine):
        assert len(session_engine.top_k(k=5, min_support=1)) == 5

    def test_dominates_excluded_records(self, session_engine):
        full = session_engine.mine(min_support=1)
        top = session_engine.top_k(k=5, min_support=1)

        assert [p.elements for p in top] == [p.elements for p in full[:5]]
        lowest_kept = min(p.frequency for p in top)
        assert all(p.frequency <= lowest_kept for p in full[5:])

    def test_large_k_clamped(self, abc_sequences):
        engine = _engine(abc_sequences, min_length=2, max_length=2)
        everything = engine.mine(min_support=2)
        assert len(engine.top_k(k=1000, min_support=2)) == len(everything)

    def test_zero_k_returns_empty(self, session_engine):
        assert session_engine.top_k(k=0) == []

    def test_negative_k_rejected(self, session_engine):
        with pytest.raises(InvalidParameterError):
            session_engine.top_k(k=-1)

    def test_contiguous_filter_applies_before_truncation(self, session_engine):
        top = session_engine.top_k(k=3, min_support=1, pattern_filter="contiguous")
        assert len(top) == 3
        assert all(not p.is_noncontiguous for p in top)


class TestDistribution:
    def test_length_buckets(self, abc_sequences):
        engine = _engine(abc_sequences, min_length=2, max_length=3)
        distribution = engine.distribution()

        patterns = engine.mine(min_support=1)
        assert distribution["total_unique_patterns"] == len(patterns)
        assert distribution["length_2"] == sum(1 for p in patterns if p.length == 2)
        assert distribution["length_3"] == sum(1 for p in patterns if p.length == 3)
        assert sum(v for k, v in distribution.items() if k.startswith("length_")) == len(patterns)

    def test_empty_database(self):
        assert MiningEngine().distribution() == {"total_unique_patterns": 0}

    def test_frequency_buckets(self, abc_sequences):
        engine = _engine(abc_sequences, min_length=2, max_length=2)
        buckets = engine.frequency_distribution()

        patterns = engine.mine(min_support=1)
        assert sum(buckets.values()) == len(patterns)
        assert buckets["freq_6"] == 1  # (a, b)


class TestStatistics:
    def test_counts_after_mine(self, session_engine, sample_sessions):
        patterns = session_engine.mine(min_support=2)
        stats = session_engine.statistics()

        assert stats.sequence_count == len(sample_sessions)
        assert stats.pattern_count == len(patterns)
        assert stats.elapsed_milliseconds >= 0.0
        assert stats.trie_distinct_pattern_count == session_engine.trie.pattern_count
        assert stats.trie_distinct_pattern_count >= stats.pattern_count
        expected_avg = sum(len(s) for s in sample_sessions) / len(sample_sessions)
        assert stats.average_sequence_length == pytest.approx(expected_avg)

    def test_snapshot_is_detached(self, session_engine):
        stats = session_engine.statistics()
        stats.pattern_count = 999
        assert session_engine.statistics().pattern_count != 999


class TestFromSettings:
    def test_uses_settings_values(self):
        settings = Settings(
            _env_file=None,
            min_length=1,
            max_length=3,
            noncontiguous_flag_policy="last_write",
            reset_before_mine=False,
            display_separator=" | ",
        )
        engine = MiningEngine.from_settings(settings)

        assert engine.enumerator.min_length == 1
        assert engine.enumerator.max_length == 3
        assert engine.trie.flag_policy == FlagPolicy.LAST_WRITE
        assert engine.reset_before_mine is False
        assert engine.separator == " | "

    def test_overrides_take_precedence(self, test_settings):
        engine = MiningEngine.from_settings(test_settings, max_length=4)
        assert engine.enumerator.max_length == 4
        assert engine.enumerator.min_length == test_settings.min_length

    def test_defaults_from_environment(self, monkeypatch):
        monkeypatch.setenv("SEQMINE_MAX_LENGTH", "5")
        engine = MiningEngine.from_settings()
        assert engine.enumerator.max_length == 5
