"""Markdown/MyST text to Unit sequence decomposer.

Splits a document into an ordered sequence of typed units, either one
unit per block (heading, paragraph, fenced code, ...) or one unit per
top-level ## section. Decomposition is a pure function of the input text
and never raises: constructs it does not recognise become paragraphs,
and unterminated fences run to the end of the document.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from .types import Unit, UnitKind

PREAMBLE_ID = "_preamble"
FRONTMATTER_MARKER = "---"

_HEADING = re.compile(r"^ {0,3}(#{1,6})[ \t]+(\S.*?)(?:[ \t]+#+)?[ \t]*$")
_FENCE = re.compile(r"^ {0,3}(`{3,}|~{3,})[ \t]*(.*?)[ \t]*$")
_MATH = re.compile(r"^ {0,3}\$\$")
_THEMATIC_BREAK = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
_LIST_ITEM = re.compile(r"^ {0,3}(?:[-+*]|\d{1,9}[.)])(?:[ \t]+|$)")
_BLOCKQUOTE = re.compile(r"^ {0,3}>")
_TABLE_ROW = re.compile(r"^ {0,3}\|")
_HTML = re.compile(r"^ {0,3}<(?:[A-Za-z][\w-]*|/[A-Za-z]|!--)")
_INDENTED = re.compile(r"^(?: {4}|\t)")
_CONTINUATION = re.compile(r"^(?: {2,}|\t)\S")


def slugify(text: str) -> str:
    """Generate a heading anchor the way MyST/Sphinx do.

    Word characters are kept in any script, so headings in different
    languages produce different slugs.
    """
    slug = text.lower()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def heading_text(line: str) -> str | None:
    """Return the text of an ATX heading line, or None."""
    match = _HEADING.match(line)
    return match.group(2) if match else None


def heading_level(line: str) -> int | None:
    """Return the depth of an ATX heading line, or None."""
    match = _HEADING.match(line)
    return len(match.group(1)) if match else None


def split_lines(text: str) -> list[str]:
    """Split text into lines, normalising CRLF and dropping one final newline."""
    text = text.replace("\r\n", "\n")
    if text.endswith("\n"):
        text = text[:-1]
    return text.split("\n") if text else []


def frontmatter_end(lines: Sequence[str]) -> int:
    """Index of the closing --- of a leading frontmatter block, or -1."""
    if not lines or lines[0].rstrip() != FRONTMATTER_MARKER:
        return -1
    for i in range(1, len(lines)):
        if lines[i].rstrip() == FRONTMATTER_MARKER:
            return i
    return -1


def iter_fence_state(lines: Sequence[str], start: int = 0) -> Iterator[tuple[int, str, bool]]:
    """Yield (index, line, inside_fence) for lines from start.

    Fence opening and closing lines themselves count as inside, so a
    '## comment' in a code block is never mistaken for a heading.
    """
    fence: str | None = None
    for i in range(start, len(lines)):
        line = lines[i]
        match = _FENCE.match(line)
        if fence is None:
            if match:
                fence = match.group(1)
                yield i, line, True
                continue
            yield i, line, False
        else:
            if match and _closes(fence, match.group(1), match.group(2)):
                fence = None
            yield i, line, True


def _closes(opening: str, candidate: str, info: str) -> bool:
    return candidate[0] == opening[0] and len(candidate) >= len(opening) and not info


class _UniqueSlugs:
    """Hands out slugs that are unique within one parse pass."""

    def __init__(self) -> None:
        self._seen: dict[str, int] = {}

    def __call__(self, text: str) -> str:
        base = slugify(text) or "section"
        count = self._seen.get(base, 0)
        self._seen[base] = count + 1
        return base if count == 0 else f"{base}-{count}"


@dataclass(frozen=True)
class UnitContext:
    """Text of the nearest units on each side of a unit."""

    before: str
    after: str


class BlockDecomposer:
    """Decomposes document text into units and reassembles it."""

    def decompose(self, text: str) -> list[Unit]:
        """Split text into one unit per block.

        Depth 1 and 2 headings open a new heading context that every
        following unit points to through parent_heading_id; deeper
        headings keep the current context but still carry their own id.
        """
        lines = split_lines(text)
        slugs = _UniqueSlugs()
        units: list[Unit] = []
        context: str | None = None
        top: str | None = None

        i = 0
        end = frontmatter_end(lines)
        if end != -1:
            units.append(self._unit(UnitKind.FRONTMATTER, lines, 0, end, len(units)))
            i = end + 1

        while i < len(lines):
            line = lines[i]
            if not line.strip():
                i += 1
                continue

            match = _HEADING.match(line)
            if match:
                level = len(match.group(1))
                slug = slugs(match.group(2))
                if level == 1:
                    parent = None
                elif level == 2:
                    parent = top
                else:
                    parent = context
                units.append(
                    self._unit(
                        UnitKind.HEADING,
                        lines,
                        i,
                        i,
                        len(units),
                        id=slug,
                        parent=parent,
                        level=level,
                    )
                )
                if level <= 2:
                    context = slug
                    if level == 1:
                        top = slug
                i += 1
                continue

            kind, last, language = self._scan_block(lines, i)
            units.append(
                self._unit(kind, lines, i, last, len(units), parent=context, language=language)
            )
            i = last + 1

        return units

    def decompose_sections(self, text: str) -> list[Unit]:
        """Split text into frontmatter, preamble and one unit per ## section.

        Each section unit carries the full text of the section including
        its nested ### (and deeper) subsections.
        """
        lines = split_lines(text)
        slugs = _UniqueSlugs()
        units: list[Unit] = []

        start = 0
        end = frontmatter_end(lines)
        if end != -1:
            units.append(self._unit(UnitKind.FRONTMATTER, lines, 0, end, 0))
            start = end + 1

        starts = [
            i
            for i, line, fenced in iter_fence_state(lines, start)
            if not fenced and heading_level(line) == 2
        ]
        preamble_end = starts[0] - 1 if starts else len(lines) - 1
        first, last = _trim_blank(lines, start, preamble_end)
        if first <= last:
            units.append(
                self._unit(UnitKind.PREAMBLE, lines, first, last, len(units), id=PREAMBLE_ID)
            )

        for n, begin in enumerate(starts):
            stop = starts[n + 1] - 1 if n + 1 < len(starts) else len(lines) - 1
            _, last = _trim_blank(lines, begin, stop)
            units.append(
                self._unit(
                    UnitKind.SECTION,
                    lines,
                    begin,
                    last,
                    len(units),
                    id=slugs(heading_text(lines[begin]) or ""),
                    level=2,
                )
            )
        return units

    def reconstruct(self, units: Sequence[Unit]) -> str:
        """Join unit texts with a blank line."""
        if not units:
            return ""
        return "\n\n".join(unit.text for unit in units).rstrip("\n") + "\n"

    def context_of(self, units: Sequence[Unit], unit: Unit, window: int) -> UnitContext:
        """Text of the `window` nearest units on each side of unit.

        Frontmatter is never part of the context.
        """
        position = _position_of(units, unit)
        if position is None or window <= 0:
            return UnitContext(before="", after="")
        before = [
            u.text for u in units[max(0, position - window) : position]
            if u.kind != UnitKind.FRONTMATTER
        ]
        after = [
            u.text for u in units[position + 1 : position + 1 + window]
            if u.kind != UnitKind.FRONTMATTER
        ]
        return UnitContext(before="\n\n".join(before), after="\n\n".join(after))

    # --- internals ---

    def _unit(
        self,
        kind: UnitKind,
        lines: Sequence[str],
        first: int,
        last: int,
        index: int,
        *,
        id: str | None = None,
        parent: str | None = None,
        level: int | None = None,
        language: str | None = None,
    ) -> Unit:
        return Unit(
            kind=kind,
            text="\n".join(lines[first : last + 1]),
            index=index,
            id=id,
            parent_heading_id=parent,
            start_line=first + 1,
            end_line=last + 1,
            level=level,
            language=language,
        )

    def _scan_block(self, lines: Sequence[str], i: int) -> tuple[UnitKind, int, str | None]:
        """Classify the block starting at line i and find its last line."""
        line = lines[i]

        fence = _FENCE.match(line)
        if fence:
            marker, info = fence.group(1), fence.group(2)
            last = self._fence_end(lines, i, marker)
            if info.startswith("{"):
                return UnitKind.DIRECTIVE, last, None
            language = info.split()[0] if info else None
            return UnitKind.CODE, last, language

        if _MATH.match(line):
            return UnitKind.MATH, self._math_end(lines, i), None

        if _THEMATIC_BREAK.match(line):
            return UnitKind.THEMATIC_BREAK, i, None

        if _LIST_ITEM.match(line):
            return UnitKind.LIST, self._list_end(lines, i), None

        if _BLOCKQUOTE.match(line):
            return UnitKind.BLOCKQUOTE, self._run_end(lines, i, _BLOCKQUOTE), None

        if _TABLE_ROW.match(line):
            return UnitKind.TABLE, self._run_end(lines, i, _TABLE_ROW), None

        if _HTML.match(line):
            return UnitKind.RAW_HTML, self._html_end(lines, i), None

        if _INDENTED.match(line):
            return UnitKind.CODE, self._indented_end(lines, i), None

        return UnitKind.PARAGRAPH, self._paragraph_end(lines, i), None

    def _fence_end(self, lines: Sequence[str], i: int, marker: str) -> int:
        for j in range(i + 1, len(lines)):
            match = _FENCE.match(lines[j])
            if match and _closes(marker, match.group(1), match.group(2)):
                return j
        return len(lines) - 1

    def _math_end(self, lines: Sequence[str], i: int) -> int:
        body = lines[i].strip()[2:]
        if body.rstrip().endswith("$$"):
            return i
        for j in range(i + 1, len(lines)):
            if lines[j].rstrip().endswith("$$"):
                return j
        return len(lines) - 1

    def _list_end(self, lines: Sequence[str], i: int) -> int:
        last = i
        j = i + 1
        while j < len(lines):
            line = lines[j]
            if not line.strip():
                nxt = _next_nonblank(lines, j)
                if nxt is None or not (
                    _LIST_ITEM.match(lines[nxt]) or _CONTINUATION.match(lines[nxt])
                ):
                    break
                j = nxt
                continue
            if _HEADING.match(line) or _THEMATIC_BREAK.match(line):
                break
            fence = _FENCE.match(line)
            if fence and not _CONTINUATION.match(line):
                break
            if fence:
                j = self._fence_end(lines, j, fence.group(1))
            last = j
            j += 1
        return last

    def _run_end(self, lines: Sequence[str], i: int, pattern: re.Pattern[str]) -> int:
        j = i
        while j + 1 < len(lines) and pattern.match(lines[j + 1]):
            j += 1
        return j

    def _html_end(self, lines: Sequence[str], i: int) -> int:
        if lines[i].lstrip().startswith("<!--"):
            for j in range(i, len(lines)):
                if "-->" in lines[j]:
                    return j
            return len(lines) - 1
        j = i
        while j + 1 < len(lines) and lines[j + 1].strip():
            j += 1
        return j

    def _indented_end(self, lines: Sequence[str], i: int) -> int:
        last = i
        for j in range(i + 1, len(lines)):
            if _INDENTED.match(lines[j]):
                last = j
            elif lines[j].strip():
                break
        return last

    def _paragraph_end(self, lines: Sequence[str], i: int) -> int:
        j = i
        while j + 1 < len(lines):
            line = lines[j + 1]
            if not line.strip() or _interrupts_paragraph(line):
                break
            j += 1
        return j


def _interrupts_paragraph(line: str) -> bool:
    return bool(
        _HEADING.match(line)
        or _FENCE.match(line)
        or _MATH.match(line)
        or _THEMATIC_BREAK.match(line)
        or _BLOCKQUOTE.match(line)
    )


def _next_nonblank(lines: Sequence[str], j: int) -> int | None:
    for k in range(j, len(lines)):
        if lines[k].strip():
            return k
    return None


def _trim_blank(lines: Sequence[str], first: int, last: int) -> tuple[int, int]:
    while first <= last and not lines[first].strip():
        first += 1
    while last >= first and not lines[last].strip():
        last -= 1
    return first, last


def _position_of(units: Sequence[Unit], unit: Unit) -> int | None:
    if 0 <= unit.index < len(units) and units[unit.index] is unit:
        return unit.index
    for i, candidate in enumerate(units):
        if candidate is unit:
            return i
    for i, candidate in enumerate(units):
        if candidate == unit:
            return i
    return None
