"""Application configuration using Pydantic Settings v2.

Loads mining defaults from ``SEQMINE_``-prefixed environment variables with
.env file support. All settings are validated at load time and available as
typed attributes.
"""

from __future__ import annotations

import functools

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.mining.types import FlagPolicy, PatternFilter


class Settings(BaseSettings):
    """Subsequence miner settings.

    Configuration is loaded from environment variables.
    A .env file in the project root is also read if present.
    """

    model_config = SettingsConfigDict(
        env_prefix="SEQMINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────────
    log_level: str = "INFO"

    # ── Pattern length window ────────────────────────────────────
    min_length: int = 2
    max_length: int = 10

    # ── Query defaults ───────────────────────────────────────────
    min_support: int = 2
    top_k: int = 5
    pattern_filter: PatternFilter = PatternFilter.ALL
    display_separator: str = " -> "

    # ── Non-contiguous enumeration limits ────────────────────────
    noncontiguous_max_sequence_length: int = 20
    noncontiguous_mask_cap: int = 1000
    noncontiguous_flag_policy: FlagPolicy = FlagPolicy.ANY

    # ── Trie lifecycle ───────────────────────────────────────────
    reset_before_mine: bool = True

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> str:
        return str(v).strip().upper()

    @model_validator(mode="after")
    def check_limits(self) -> Settings:
        """Reject length windows and limits that could never yield patterns."""
        if self.min_length <= 0 or self.max_length <= 0:
            raise ValueError(
                f"pattern length bounds must be positive (min_length={self.min_length}, "
                f"max_length={self.max_length})"
            )
        if self.max_length < self.min_length:
            raise ValueError(
                f"max_length ({self.max_length}) must be >= min_length ({self.min_length})"
            )
        if self.min_support < 1:
            raise ValueError(f"min_support must be >= 1, got {self.min_support}")
        if self.top_k < 0:
            raise ValueError(f"top_k must be >= 0, got {self.top_k}")
        if self.noncontiguous_max_sequence_length < 0 or self.noncontiguous_mask_cap < 1:
            raise ValueError(
                "noncontiguous_max_sequence_length must be >= 0 and noncontiguous_mask_cap >= 1"
            )
        return self


@functools.lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""
    return Settings()
