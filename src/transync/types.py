"""Data types for the transync diff/locate/apply pipeline.

Defines all enums and dataclasses used throughout the package.
No logic, just types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# --- Enums ---


class UnitKind(Enum):
    """Kinds of units produced by the decomposer."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    CODE = "code"
    LIST = "list"
    MATH = "math"
    DIRECTIVE = "directive"
    BLOCKQUOTE = "blockquote"
    TABLE = "table"
    THEMATIC_BREAK = "thematic-break"
    RAW_HTML = "raw-html"
    # Leading YAML block between --- markers
    FRONTMATTER = "frontmatter"
    # Section granularity: a whole ## section, or the title/intro before it
    SECTION = "section"
    PREAMBLE = "preamble"


class ChangeKind(Enum):
    """Classification of a difference between two revisions."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


class Strategy(Enum):
    """How a change is projected onto the target document."""

    EXACT_MATCH = "exact-match"
    INSERT = "insert"
    DELETE = "delete"


# --- Units (output of decomposer, input to differ/locator/applier) ---


@dataclass(frozen=True)
class Unit:
    """One structural element of a decomposed document.

    Attributes:
        kind: The unit kind
        text: Verbatim source text of the unit (no trailing blank lines)
        index: Position in the sequence produced by the parse pass
        id: Slug id; only headings and sections carry one
        parent_heading_id: Id of the most recent depth 1/2 heading before it
        start_line: 1-based first line in the parsed text
        end_line: 1-based last line in the parsed text
        level: Heading depth (headings and sections only)
        language: Code fence info string (code units only)
    """

    kind: UnitKind
    text: str
    index: int = 0
    id: str | None = None
    parent_heading_id: str | None = None
    start_line: int = 0
    end_line: int = 0
    level: int | None = None
    language: str | None = None


@dataclass(frozen=True)
class InsertionHint:
    """Where an added unit sits in the new source revision.

    Attributes:
        under_heading: parent_heading_id of the unit in the new revision
        index: Position of the unit among the new revision's non-frontmatter units
        total: Number of non-frontmatter units in the new revision
    """

    under_heading: str | None = None
    index: int | None = None
    total: int | None = None


@dataclass(frozen=True)
class Change:
    """A classified difference between two revisions.

    ``added`` carries only new_unit, ``deleted`` only old_unit,
    ``modified`` both.
    """

    kind: ChangeKind
    old_unit: Unit | None = None
    new_unit: Unit | None = None
    anchor: str | None = None
    insertion_hint: InsertionHint | None = None


@dataclass(frozen=True)
class Mapping:
    """Projection of a Change onto the target document.

    Attributes:
        change: The change being projected
        target_unit: Target unit to replace or delete (exact-match/delete)
        insert_after: Anchor unit for insertions; None appends at the end
        at_start: Insert before every non-frontmatter unit
        strategy: How the change is applied
        confidence: Informational score in [0, 1]
    """

    change: Change
    strategy: Strategy
    target_unit: Unit | None = None
    insert_after: Unit | None = None
    at_start: bool = False
    confidence: float = 1.0


@dataclass(frozen=True)
class Patch:
    """A mapping paired with its replacement text.

    ``text`` is None for deletions, and for additions/modifications the
    caller decided to drop.
    """

    mapping: Mapping
    text: str | None = None


# --- Section tree (heading alignment maintenance) ---


@dataclass
class Section:
    """A heading and all its content until the next heading of equal or
    lower depth.

    Attributes:
        heading: Full heading line, e.g. "## Economic Models"
        level: Heading depth (2 for ##)
        id: Slug of the heading text
        content: Markdown of the section including the heading line and
            its direct content, but not its subsections
        start_line: 1-based first line
        end_line: 1-based last line
        parent_id: Id of the enclosing section
        subsections: Nested sections one level deeper
    """

    heading: str
    level: int
    id: str
    content: str
    start_line: int
    end_line: int
    parent_id: str | None = None
    subsections: list[Section] = field(default_factory=list)


@dataclass
class ParsedDocument:
    """Section tree plus the parts outside any ## section."""

    sections: list[Section] = field(default_factory=list)
    frontmatter: str | None = None
    preamble: str | None = None
    total_lines: int = 0


@dataclass
class DocumentComponents:
    """CONFIG + TITLE + INTRO + SECTIONS view of a document.

    INTRO and SECTIONS may be empty; TITLE is required.
    """

    config: str
    title: str
    title_text: str
    intro: str
    sections: list[Section] = field(default_factory=list)


# --- Orchestrator output ---


@dataclass
class SyncResult:
    """Result of synchronizing one target document."""

    content: str
    changes: list[Change] = field(default_factory=list)
    mappings: list[Mapping] = field(default_factory=list)
    heading_map: dict[str, str] = field(default_factory=dict)
