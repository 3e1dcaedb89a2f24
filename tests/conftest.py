"""Shared test fixtures for the subsequence miner test suite.

Provides isolated settings, engines preloaded with sample sessions, and a
guard that clears the cached settings between tests.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from src.core.config import Settings, get_settings
from src.mining.engine import MiningEngine


@pytest.fixture(autouse=True)
def _clear_settings_cache(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep environment-driven settings from leaking between tests."""
    for name in (
        "SEQMINE_MIN_LENGTH",
        "SEQMINE_MAX_LENGTH",
        "SEQMINE_MIN_SUPPORT",
        "SEQMINE_TOP_K",
        "SEQMINE_PATTERN_FILTER",
        "SEQMINE_NONCONTIGUOUS_FLAG_POLICY",
        "SEQMINE_RESET_BEFORE_MINE",
        "SEQMINE_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """Create settings that ignore any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def abc_sequences() -> list[list[str]]:
    return [
        ["a", "b", "c"],
        ["a", "b", "d"],
        ["a", "b", "c"],
    ]


@pytest.fixture
def sample_sessions() -> list[list[str]]:
    return [
        ["login", "browse", "search", "view_item", "add_to_cart", "checkout"],
        ["login", "browse", "view_item", "add_to_cart", "checkout"],
        ["browse", "search", "view_item", "browse", "view_item", "add_to_cart"],
        ["login", "browse", "search", "view_item", "logout"],
    ]


@pytest.fixture
def session_engine(sample_sessions: list[list[str]]) -> MiningEngine:
    engine = MiningEngine(min_length=2, max_length=4)
    for sequence in sample_sessions:
        engine.register(sequence)
    return engine
