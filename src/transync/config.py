"""Engine configuration using pydantic-settings.

Every value has a working default so the engine runs without any
environment configuration. Variables use the TRANSYNC_ prefix, e.g.
TRANSYNC_SIMILARITY_THRESHOLD=0.8 or TRANSYNC_ANTHROPIC_API_KEY=...
"""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

TIE_BREAKS = frozenset({"similarity", "ordinal"})


class SyncSettings(BaseSettings):
    """Settings for matching, insertion heuristics and translation."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Matching
    similarity_threshold: float = 0.7
    diff_tie_breaks: tuple[str, ...] = ("similarity",)
    locate_tie_breaks: tuple[str, ...] = ("similarity", "ordinal")

    # Below this source/target length ratio index-based insertion is not trusted
    drift_ratio: float = 0.5

    # Units on each side sent along as translation context
    context_window: int = 2

    granularity: Literal["section", "block"] = "section"

    # Translation API
    anthropic_api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 8192
    api_base: str = "https://api.anthropic.com/v1/messages"
    timeout: int = 60
    max_concurrency: int = 1

    # Minimum level of the transync logger hierarchy
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("similarity_threshold", "drift_ratio")
    @classmethod
    def validate_ratio(cls, v: float) -> float:
        """Validate ratios lie in [0, 1]."""
        if not 0.0 <= v <= 1.0:
            raise ValueError("must be between 0 and 1")
        return v

    @field_validator("diff_tie_breaks", "locate_tie_breaks")
    @classmethod
    def validate_tie_breaks(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Validate tie-break names are known."""
        unknown = [name for name in v if name not in TIE_BREAKS]
        if unknown:
            raise ValueError(f"unknown tie-breaks {unknown}; allowed: {sorted(TIE_BREAKS)}")
        return v

    @model_validator(mode="after")
    def validate_limits(self) -> "SyncSettings":
        """Validate counts and limits."""
        errors = []
        if self.context_window < 0:
            errors.append("context_window must be >= 0")
        if self.max_concurrency < 1:
            errors.append("max_concurrency must be >= 1")
        if self.max_tokens < 1:
            errors.append("max_tokens must be >= 1")
        if errors:
            raise ValueError("Configuration errors:\n  - " + "\n  - ".join(errors))
        return self


@lru_cache
def get_settings() -> SyncSettings:
    """Get cached settings instance.

    Settings are loaded once and cached for the lifetime of the process.
    """
    return SyncSettings()
