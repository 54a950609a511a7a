"""Per-target-language rules appended to translation prompts.

To add a language, add an entry to LANGUAGE_CONFIGS keyed by its
lower-case code, with any typography or punctuation rules it needs.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class LanguageConfig:
    """Prompt configuration for one target language.

    Attributes:
        code: Language code, e.g. "zh-cn"
        name: Language name in English
        additional_rules: Extra prompt rules for this language
    """

    code: str
    name: str
    additional_rules: tuple[str, ...] = field(default_factory=tuple)


LANGUAGE_CONFIGS: dict[str, LanguageConfig] = {
    "zh-cn": LanguageConfig(
        code="zh-cn",
        name="Chinese (Simplified)",
        additional_rules=(
            "Use proper full-width Chinese punctuation marks (，：。！？) "
            "not ASCII punctuation (,.!?) in prose text",
        ),
    ),
}


def get_language_config(language_code: str) -> LanguageConfig:
    """Configuration for a language; unknown languages get no extra rules."""
    config = LANGUAGE_CONFIGS.get(language_code.lower())
    if config is None:
        return LanguageConfig(code=language_code, name=language_code)
    return config


def format_additional_rules(language_code: str) -> str:
    """The language's extra rules, one per line."""
    return "\n".join(get_language_config(language_code).additional_rules)


def get_supported_languages() -> list[str]:
    return list(LANGUAGE_CONFIGS)


def is_language_supported(language_code: str) -> bool:
    return language_code.lower() in LANGUAGE_CONFIGS


def validate_language_code(language_code: str) -> None:
    """Raise ValueError for a language without configuration."""
    if not is_language_supported(language_code):
        supported = ", ".join(get_supported_languages())
        raise ValueError(
            f"Unsupported target language: '{language_code}'. "
            f"Supported languages: {supported}. "
            "To add a new language, add it to LANGUAGE_CONFIGS in transync.languages"
        )
