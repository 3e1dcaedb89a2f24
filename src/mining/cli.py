"""CLI entry point for the subsequence miner.

Usage::

    python -m src.mining.cli demo
    python -m src.mining.cli distribution [--input FILE] [--max-length 4] [--json]
    python -m src.mining.cli mine [--input FILE] [--k 5] [--min-support 2]
                                  [--max-length 4] [--pattern-type b] [--json]

``mine`` reads one sequence per line (whitespace-separated elements) from a
file or stdin. A line reading ``demo`` substitutes the built-in sample
sessions, a line reading ``done`` ends input, and an input with no sequences
falls back to the sample sessions. Numeric parameters that fail to parse are
replaced by their defaults with a warning, as are values out of range.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Iterable
from typing import TextIO

from src.core.config import get_settings
from src.mining.engine import TOTAL_UNIQUE_KEY, MiningEngine
from src.mining.errors import MiningError
from src.mining.schemas import (
    DistributionResponse,
    MiningReport,
    PatternResponse,
    StatisticsResponse,
)
from src.mining.types import MiningStatistics, PatternFilter, PatternRecord

logger = logging.getLogger(__name__)

DEFAULT_K = 5
DEFAULT_MIN_SUPPORT = 2
DEFAULT_MAX_LENGTH = 4
DEFAULT_MIN_LENGTH = 2

PATTERN_TYPE_CHOICES: dict[str, PatternFilter] = {
    "c": PatternFilter.CONTIGUOUS,
    "n": PatternFilter.NONCONTIGUOUS,
    "b": PatternFilter.ALL,
}

DEMO_SEQUENCES: list[list[str]] = [
    ["login", "browse", "search", "view_item", "add_to_cart", "checkout"],
    ["login", "browse", "view_item", "add_to_cart", "checkout"],
    ["browse", "search", "view_item", "browse", "view_item", "add_to_cart"],
    ["login", "browse", "search", "view_item", "logout"],
    ["browse", "search", "view_item", "add_to_cart", "checkout", "logout"],
    ["login", "view_item", "add_to_cart", "checkout"],
    ["browse", "search", "search", "view_item", "add_to_cart"],
]


def parse_sequence_line(line: str) -> list[str]:
    """Split a line into elements on whitespace, dropping empty tokens."""
    return line.split()


def read_sequences(lines: Iterable[str]) -> list[list[str]]:
    """Read sequences from input lines, falling back to the demo sessions."""
    sequences: list[list[str]] = []
    for raw in lines:
        line = raw.strip()
        if line == "done":
            break
        if line == "demo":
            return [list(seq) for seq in DEMO_SEQUENCES]
        if line:
            sequences.append(parse_sequence_line(line))

    if not sequences:
        logger.warning("No sequences provided, using demo data")
        return [list(seq) for seq in DEMO_SEQUENCES]
    return sequences


def parse_int_option(
    raw: str | None,
    default: int,
    name: str,
    minimum: int | None = None,
) -> int:
    """Parse an integer option, substituting ``default`` when malformed.

    Values below ``minimum`` are treated as malformed.
    """
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s=%d", name, raw, name, default)
        return default
    if minimum is not None and value < minimum:
        logger.warning(
            "Invalid %s=%r (must be >= %d), using default %s=%d",
            name, raw, minimum, name, default,
        )
        return default
    return value


def parse_length_window(
    raw_min: str | None,
    raw_max: str | None,
) -> tuple[int, int]:
    """Parse the pattern length window, falling back to defaults when it is empty."""
    min_length = parse_int_option(raw_min, DEFAULT_MIN_LENGTH, "min_length", minimum=1)
    max_length = parse_int_option(raw_max, DEFAULT_MAX_LENGTH, "max_length", minimum=1)
    if max_length < min_length:
        logger.warning(
            "Invalid length window min_length=%d, max_length=%d, using defaults %d..%d",
            min_length, max_length, DEFAULT_MIN_LENGTH, DEFAULT_MAX_LENGTH,
        )
        return DEFAULT_MIN_LENGTH, DEFAULT_MAX_LENGTH
    return min_length, max_length


def parse_pattern_type(
    raw: str | None,
    default: PatternFilter = PatternFilter.ALL,
) -> PatternFilter:
    """Map ``c``/``n``/``b`` (first letter, any case) to a pattern filter."""
    if not raw or not raw.strip():
        return default
    return PATTERN_TYPE_CHOICES.get(raw.strip()[0].lower(), PatternFilter.ALL)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="seqmine",
        description="Discover frequent contiguous and non-contiguous subsequences.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: SEQMINE_LOG_LEVEL or INFO).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("demo", help="Mine the built-in sample sessions.")

    mine = subparsers.add_parser("mine", help="Mine sequences read from a file or stdin.")
    mine.add_argument("--input", default="-", help="Input file, one sequence per line (default: stdin).")
    mine.add_argument(
        "--k",
        default=None,
        help=f"Number of top patterns (default SEQMINE_TOP_K or {DEFAULT_K}).",
    )
    mine.add_argument(
        "--min-support",
        default=None,
        help=f"Minimum pattern frequency (default SEQMINE_MIN_SUPPORT or {DEFAULT_MIN_SUPPORT}).",
    )
    mine.add_argument(
        "--max-length",
        default=None,
        help=f"Maximum pattern length (default {DEFAULT_MAX_LENGTH}).",
    )
    mine.add_argument(
        "--min-length",
        default=None,
        help=f"Minimum pattern length (default {DEFAULT_MIN_LENGTH}).",
    )
    mine.add_argument(
        "--pattern-type",
        default=None,
        help="(c)ontiguous, (n)on-contiguous or (b)oth (default: both).",
    )
    mine.add_argument("--json", action="store_true", default=False, help="Emit a JSON report.")

    dist = subparsers.add_parser("distribution", help="Count all patterns by length and frequency.")
    dist.add_argument("--input", default="-", help="Input file, one sequence per line (default: stdin).")
    dist.add_argument(
        "--max-length",
        default=None,
        help=f"Maximum pattern length (default {DEFAULT_MAX_LENGTH}).",
    )
    dist.add_argument("--json", action="store_true", default=False, help="Emit a JSON report.")
    return parser.parse_args(argv)


def _format_pattern(rank: int, pattern: PatternRecord) -> str:
    return (
        f"{rank:2d}. {pattern.display_string:<35} [{pattern.type_label:<14}] "
        f"Freq: {pattern.frequency:<2d} Support: {pattern.support:.2f}"
    )


def _print_patterns(patterns: list[PatternRecord], out: TextIO) -> None:
    for rank, pattern in enumerate(patterns, start=1):
        print(_format_pattern(rank, pattern), file=out)


def _print_statistics(stats: MiningStatistics, out: TextIO) -> None:
    """Print a human-readable statistics summary."""
    print("\n=== Mining Statistics ===", file=out)
    print(f"  Total sequences:       {stats.sequence_count}", file=out)
    print(f"  Total patterns found:  {stats.pattern_count}", file=out)
    print(f"  Mining time:           {stats.elapsed_milliseconds:.4f} ms", file=out)
    print(f"  Trie size:             {stats.trie_distinct_pattern_count}", file=out)
    if stats.sequence_count > 0:
        print(f"  Average sequence len:  {stats.average_sequence_length:.2f}", file=out)


def _build_engine(sequences: list[list[str]], min_length: int, max_length: int) -> MiningEngine:
    engine = MiningEngine.from_settings(min_length=min_length, max_length=max_length)
    for index, sequence in enumerate(sequences):
        engine.register(sequence, index)
    return engine


def _run_demo(out: TextIO) -> int:
    engine = _build_engine(DEMO_SEQUENCES, DEFAULT_MIN_LENGTH, DEFAULT_MAX_LENGTH)

    print("=== Subsequence Miner Demo ===", file=out)
    print(f"\nAdded {len(DEMO_SEQUENCES)} user interaction sequences", file=out)
    print(f"Example sequence: {engine.separator.join(DEMO_SEQUENCES[0])}", file=out)

    frequent = engine.mine(min_support=DEFAULT_MIN_SUPPORT)
    print(f"\nFound {len(frequent)} frequent patterns (min_support={DEFAULT_MIN_SUPPORT}):", file=out)
    _print_patterns(frequent[:10], out)

    print("\n=== Top 5 Most Frequent Patterns ===", file=out)
    _print_patterns(engine.top_k(5, DEFAULT_MIN_SUPPORT), out)

    print("\n=== Top 3 Non-Contiguous Patterns ===", file=out)
    _print_patterns(engine.top_k(3, DEFAULT_MIN_SUPPORT, noncontiguous_only=True), out)

    _print_statistics(engine.statistics(), out)
    return 0


def _load_sequences(path: str) -> list[list[str]]:
    if path == "-":
        return read_sequences(sys.stdin)
    with open(path, encoding="utf-8") as fh:
        return read_sequences(fh)


def _run_mine(args: argparse.Namespace, out: TextIO) -> int:
    sequences = _load_sequences(args.input)

    settings = get_settings()
    k = parse_int_option(args.k, settings.top_k, "k", minimum=0)
    min_support = parse_int_option(
        args.min_support, settings.min_support, "min_support", minimum=1,
    )
    min_length, max_length = parse_length_window(args.min_length, args.max_length)
    pattern_filter = parse_pattern_type(args.pattern_type, settings.pattern_filter)

    engine = _build_engine(sequences, min_length, max_length)
    patterns = engine.top_k(k, min_support, pattern_filter=pattern_filter)
    stats = engine.statistics()

    if args.json:
        report = MiningReport(
            k=k,
            min_support=min_support,
            max_length=max_length,
            pattern_filter=pattern_filter.value,
            patterns=[PatternResponse.from_record(p) for p in patterns],
            statistics=StatisticsResponse.from_statistics(stats),
        )
        print(report.model_dump_json(indent=2), file=out)
        return 0

    print(f"Dataset: {len(sequences)} sequences", file=out)
    print(f"Parameters: k={k}, min_support={min_support}, max_length={max_length}", file=out)
    print(f"\nTop-{k} patterns ({pattern_filter.value}):", file=out)
    if not patterns:
        print("No patterns found with the given parameters.", file=out)
        print("Try reducing min_support or increasing max_length.", file=out)
        return 0

    print(f"\nFound {len(patterns)} patterns:", file=out)
    print("-" * 80, file=out)
    _print_patterns(patterns, out)
    _print_statistics(stats, out)
    return 0


def _run_distribution(args: argparse.Namespace, out: TextIO) -> int:
    sequences = _load_sequences(args.input)
    min_length, max_length = parse_length_window(None, args.max_length)
    engine = _build_engine(sequences, min_length, max_length)

    by_length = engine.distribution()
    total = by_length.pop(TOTAL_UNIQUE_KEY)
    by_frequency = engine.frequency_distribution()

    if args.json:
        response = DistributionResponse(
            total_unique_patterns=total,
            by_length=by_length,
            by_frequency=by_frequency,
        )
        print(response.model_dump_json(indent=2), file=out)
        return 0

    print(f"Total unique patterns: {total}", file=out)
    for bucket, count in by_length.items():
        print(f"  {bucket:<12} {count}", file=out)
    for bucket, count in by_frequency.items():
        print(f"  {bucket:<12} {count}", file=out)
    return 0


def _run(args: argparse.Namespace, out: TextIO) -> int:
    try:
        if args.command == "demo":
            return _run_demo(out)
        if args.command == "distribution":
            return _run_distribution(args, out)
        return _run_mine(args, out)
    except MiningError as exc:
        logger.error("Mining configuration error: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 2


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = _parse_args(argv)
    log_level = args.log_level or get_settings().log_level

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    exit_code = _run(args, sys.stdout)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
