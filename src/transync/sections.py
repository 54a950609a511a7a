"""Hierarchical section tree parser.

Builds a tree of Section objects from ## through ###### headings, with
frontmatter and the preamble (title and intro before the first ##
heading) split out. Headings inside fenced code blocks are ignored.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from .decomposer import (
    frontmatter_end,
    heading_level,
    heading_text,
    iter_fence_state,
    slugify,
    split_lines,
)
from .exceptions import ParseError
from .types import DocumentComponents, ParsedDocument, Section


def parse_sections(text: str) -> ParsedDocument:
    """Parse text into a nested section tree.

    Each section's content holds its heading line and direct content;
    deeper headings become nested subsections.
    """
    lines = split_lines(text)
    doc = ParsedDocument(total_lines=len(lines))

    start = 0
    end = frontmatter_end(lines)
    if end != -1:
        doc.frontmatter = "\n".join(lines[: end + 1])
        start = end + 1

    stack: list[tuple[Section, list[str]]] = []
    preamble: list[str] = []

    def close() -> None:
        section, body = stack.pop()
        section.content = "\n".join(body).rstrip()
        section.end_line = max(section.start_line, _last_content_line(body, section.start_line))
        if stack:
            stack[-1][0].subsections.append(section)
        else:
            doc.sections.append(section)

    for i, line, fenced in iter_fence_state(lines, start):
        level = None if fenced else heading_level(line)
        if level is not None and level >= 2:
            while stack and stack[-1][0].level >= level:
                close()
            section = Section(
                heading=line,
                level=level,
                id=slugify(heading_text(line) or ""),
                content="",
                start_line=i + 1,
                end_line=i + 1,
                parent_id=stack[-1][0].id if stack else None,
            )
            stack.append((section, [line]))
            continue
        if stack:
            stack[-1][1].append(line)
        else:
            preamble.append(line)

    while stack:
        close()

    preamble_text = "\n".join(preamble).strip()
    doc.preamble = preamble_text or None
    return doc


def parse_components(text: str) -> DocumentComponents:
    """Split a document into CONFIG + TITLE + INTRO + SECTIONS.

    Raises:
        ParseError: If the first non-blank line after the frontmatter is
            not a # title heading.
    """
    parsed = parse_sections(text)
    lines = split_lines(text)

    i = frontmatter_end(lines) + 1
    while i < len(lines) and not lines[i].strip():
        i += 1
    if i >= len(lines):
        raise ParseError("Document must have a # title heading")

    title_line = lines[i]
    if heading_level(title_line) != 1:
        raise ParseError(
            f"Expected # title heading at line {i + 1}, found: {title_line}",
            line=i + 1,
        )

    intro = ""
    if parsed.preamble:
        preamble_lines = parsed.preamble.split("\n")
        if heading_level(preamble_lines[0]) == 1:
            preamble_lines = preamble_lines[1:]
        intro = "\n".join(preamble_lines).strip()

    return DocumentComponents(
        config=parsed.frontmatter or "",
        title=title_line,
        title_text=heading_text(title_line) or "",
        intro=intro,
        sections=parsed.sections,
    )


def validate(text: str) -> tuple[bool, str | None]:
    """Check that text splits into components; never raises."""
    try:
        parse_components(text)
    except ParseError as e:
        return False, str(e)
    return True, None


def find_section_by_id(sections: Sequence[Section], section_id: str) -> Section | None:
    """Find a section by id, searching subsections depth-first."""
    for section in sections:
        if section.id == section_id:
            return section
        found = find_section_by_id(section.subsections, section_id)
        if found is not None:
            return found
    return None


def iter_headings(sections: Sequence[Section]) -> Iterator[Section]:
    """Yield every section in document order, depth-first."""
    for section in sections:
        yield section
        yield from iter_headings(section.subsections)


def _last_content_line(body: list[str], start_line: int) -> int:
    last = len(body)
    while last > 1 and not body[last - 1].strip():
        last -= 1
    return start_line + last - 1
