"""Tests for prompts.py, languages.py and glossary.py."""

import json

import pytest
from pydantic import ValidationError

from transync.glossary import Glossary, GlossaryTerm, load_glossary
from transync.languages import (
    format_additional_rules,
    get_language_config,
    get_supported_languages,
    is_language_supported,
    validate_language_code,
)
from transync.prompts import build_new_prompt, build_prompt, build_update_prompt, format_glossary
from transync.translator import TranslationRequest

GLOSSARY = Glossary(
    terms=[
        GlossaryTerm(en="steady state", context="economics", **{"zh-cn": "稳态"}),
        GlossaryTerm(en="equilibrium", **{"zh-cn": "均衡"}),
        GlossaryTerm(en="untranslated", **{"fa": "ترجمه"}),
    ]
)


def _request(mode: str = "new", **kwargs) -> TranslationRequest:
    fields = {
        "mode": mode,
        "text": "## Overview\n\nNew text.",
        "source_language": "English",
        "target_language": "zh-cn",
    }
    fields.update(kwargs)
    return TranslationRequest(**fields)


class TestLanguages:
    def test_known_language(self):
        config = get_language_config("ZH-CN")
        assert config.name == "Chinese (Simplified)"
        assert "full-width" in config.additional_rules[0]

    def test_unknown_language_has_no_rules(self):
        config = get_language_config("xx")
        assert config.code == "xx"
        assert config.additional_rules == ()
        assert format_additional_rules("xx") == ""

    def test_supported(self):
        assert "zh-cn" in get_supported_languages()
        assert is_language_supported("zh-CN")
        assert not is_language_supported("xx")

    def test_validate(self):
        validate_language_code("zh-cn")
        with pytest.raises(ValueError, match="Unsupported target language: 'xx'"):
            validate_language_code("xx")


class TestGlossary:
    def test_translation_lookup(self):
        term = GLOSSARY.terms[0]
        assert term.translation("zh-cn") == "稳态"
        assert term.translation("ja") is None

    def test_for_language(self):
        pairs = GLOSSARY.for_language("zh-cn")
        assert [(t.en, tr) for t, tr in pairs] == [("steady state", "稳态"), ("equilibrium", "均衡")]

    def test_load(self, tmp_path):
        path = tmp_path / "glossary.json"
        path.write_text(
            json.dumps({"version": "2.0", "terms": [{"en": "tax", "zh-cn": "税"}]}),
            encoding="utf-8",
        )
        glossary = load_glossary(path)
        assert glossary.version == "2.0"
        assert glossary.terms[0].translation("zh-cn") == "税"

    def test_load_invalid(self, tmp_path):
        path = tmp_path / "glossary.json"
        path.write_text(json.dumps({"terms": [{"context": "no en"}]}), encoding="utf-8")
        with pytest.raises(ValidationError):
            load_glossary(path)


class TestPrompts:
    def test_format_glossary(self):
        text = format_glossary(GLOSSARY, "zh-cn")
        assert text.startswith("GLOSSARY:\n")
        assert '  - "steady state" → "稳态" (economics)' in text
        assert '  - "equilibrium" → "均衡"' in text
        assert "untranslated" not in text

    def test_format_glossary_empty(self):
        assert format_glossary(None, "zh-cn") == ""
        assert format_glossary(GLOSSARY, "ja") == ""

    def test_new_prompt(self):
        prompt = build_new_prompt(_request(glossary=GLOSSARY))
        assert "from English to zh-cn" in prompt
        assert "[English SECTION TO TRANSLATE]\n## Overview\n\nNew text.\n[/END SECTION]" in prompt
        assert "full-width Chinese punctuation" in prompt
        assert "GLOSSARY:" in prompt
        assert "[OLD" not in prompt

    def test_update_prompt(self):
        request = _request(
            "update",
            old_text="## Overview\n\nOld text.",
            current_translation="## 概述\n\n旧文本。",
        )
        prompt = build_update_prompt(request)
        assert "[OLD English VERSION]\n## Overview\n\nOld text.\n[/OLD English VERSION]" in prompt
        assert "[NEW English VERSION]\n## Overview\n\nNew text.\n[/NEW English VERSION]" in prompt
        assert "[CURRENT zh-cn TRANSLATION]\n## 概述\n\n旧文本。\n" in prompt
        assert build_prompt(request) == prompt

    def test_rules_are_numbered(self):
        prompt = build_new_prompt(_request(target_language="ja"))
        assert "1. Translate all prose content accurately" in prompt
        assert "9. Return ONLY the translated section, no explanations" in prompt

    def test_context_included(self):
        prompt = build_prompt(_request(context_before="Before.", context_after="After."))
        assert "[CONTEXT BEFORE]\nBefore.\n[/CONTEXT BEFORE]" in prompt
        assert "[CONTEXT AFTER]\nAfter.\n[/CONTEXT AFTER]" in prompt

    def test_no_context_block_without_context(self):
        assert "CONTEXT BEFORE" not in build_prompt(_request())
