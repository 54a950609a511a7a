"""Prompt builders for the two translation modes.

update: the model sees the old and new source text plus the current
translation and returns the updated translation.
new: the model sees the source text and returns a fresh translation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .languages import get_language_config

if TYPE_CHECKING:
    from .glossary import Glossary
    from .translator import TranslationRequest

_MARKDOWN_SYNTAX = """MARKDOWN SYNTAX: Ensure proper markdown syntax in your output:
   - Headings MUST have a space after # (e.g., "## Title" not "##Title")
   - Code blocks must have matching ``` delimiters
   - Math blocks must have matching $$ delimiters
   - CRITICAL: Do NOT mix fence markers - use $$...$$ for math OR ```{math}...``` for directive math, but NEVER $$...``` or ```...$$"""


def format_glossary(glossary: Glossary | None, target_language: str) -> str:
    """GLOSSARY block listing every term translated into target_language."""
    if glossary is None:
        return ""
    pairs = glossary.for_language(target_language)
    if not pairs:
        return ""
    lines = []
    for term, translation in pairs:
        context = f" ({term.context})" if term.context else ""
        lines.append(f'  - "{term.en}" → "{translation}"{context}')
    return "GLOSSARY:\n" + "\n".join(lines) + "\n"


def _numbered(rules: list[str]) -> str:
    return "\n".join(f"{i}. {rule}" for i, rule in enumerate(rules, start=1))


def _context_block(request: TranslationRequest) -> str:
    """Surrounding source text, for reference only."""
    parts = []
    if request.context_before:
        parts.append(f"[CONTEXT BEFORE]\n{request.context_before}\n[/CONTEXT BEFORE]")
    if request.context_after:
        parts.append(f"[CONTEXT AFTER]\n{request.context_after}\n[/CONTEXT AFTER]")
    if not parts:
        return ""
    return (
        "The following surrounding content is for reference only. "
        "Do not translate or repeat it.\n\n" + "\n\n".join(parts) + "\n"
    )


def build_update_prompt(request: TranslationRequest) -> str:
    source, target = request.source_language, request.target_language
    rules = [
        f"Compare the OLD and NEW {source} versions to understand what changed",
        f"Update the CURRENT {target} translation to reflect these changes",
        f"Maintain consistency with the existing {target} style and terminology",
        "Preserve all MyST Markdown formatting, code blocks, math equations, and directives",
        "DO NOT translate code, math, URLs, or technical identifiers",
        "Use the glossary for consistent terminology",
        _MARKDOWN_SYNTAX,
        *get_language_config(target).additional_rules,
        f"Return ONLY the updated {target} section, no explanations",
    ]
    return f"""You are updating a translation of a technical document section from {source} to {target}.

TASK: The {source} section has been modified. Update the existing {target} translation to reflect these changes.

CRITICAL RULES:
{_numbered(rules)}

{format_glossary(request.glossary, target)}
{_context_block(request)}
[OLD {source} VERSION]
{request.old_text}
[/OLD {source} VERSION]

[NEW {source} VERSION]
{request.text}
[/NEW {source} VERSION]

[CURRENT {target} TRANSLATION]
{request.current_translation}
[/CURRENT {target} TRANSLATION]

Provide ONLY the updated {target} translation. Do not include any markers, explanations, or comments."""


def build_new_prompt(request: TranslationRequest) -> str:
    source, target = request.source_language, request.target_language
    rules = [
        "Translate all prose content accurately",
        "Preserve all MyST Markdown formatting, structure, and directives",
        "DO NOT translate code blocks (keep code as-is)",
        "DO NOT translate mathematical equations (keep LaTeX as-is)",
        "DO NOT translate URLs, file paths, or technical identifiers",
        "Use the glossary for consistent terminology",
        "Maintain heading structure and levels",
        _MARKDOWN_SYNTAX,
        *get_language_config(target).additional_rules,
        "Return ONLY the translated section, no explanations",
    ]
    return f"""You are translating a new section of technical documentation from {source} to {target}.

RULES:
{_numbered(rules)}

{format_glossary(request.glossary, target)}
{_context_block(request)}
[{source} SECTION TO TRANSLATE]
{request.text}
[/END SECTION]

Provide ONLY the {target} translation. Do not include any markers, explanations, or comments."""


def build_prompt(request: TranslationRequest) -> str:
    """Prompt for the request's mode."""
    if request.mode == "update":
        return build_update_prompt(request)
    return build_new_prompt(request)
