"""Terminology glossary handed to the translator.

A glossary file is JSON:

    {
      "version": "1.0",
      "terms": [
        {"en": "steady state", "zh-cn": "稳态", "context": "economics"}
      ]
    }

Each term carries its English text plus one key per target language.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class GlossaryTerm(BaseModel):
    """One term; translations live in extra fields keyed by language code."""

    model_config = ConfigDict(extra="allow")

    en: str
    context: str | None = None

    def translation(self, language: str) -> str | None:
        """The term's translation into language, if the glossary has one."""
        extra = self.model_extra or {}
        value = extra.get(language) or extra.get(language.lower())
        return str(value) if value is not None else None


class StyleGuide(BaseModel):
    preserve_code_blocks: bool = True
    preserve_math: bool = True
    preserve_citations: bool = True
    preserve_myst_directives: bool = True


class Glossary(BaseModel):
    """A versioned list of glossary terms."""

    version: str = "1.0"
    terms: list[GlossaryTerm] = Field(default_factory=list)
    style_guide: StyleGuide | None = None

    def for_language(self, language: str) -> list[tuple[GlossaryTerm, str]]:
        """Terms that have a translation into language, with that translation."""
        pairs = []
        for term in self.terms:
            translation = term.translation(language)
            if translation:
                pairs.append((term, translation))
        return pairs


def load_glossary(path: str | Path) -> Glossary:
    """Load and validate a glossary JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the content is not a valid glossary.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return Glossary.model_validate(data)
