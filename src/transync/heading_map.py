"""Heading alignment table: source heading text -> target heading text.

The table lives under the ``heading-map`` key of the target document's
YAML frontmatter. It bridges documents that share structure but not
vocabulary: slug ids differ between languages, the table does not.

    ---
    heading-map:
      Economic Models: 经济模型
      Overview: 概述
    ---
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

import yaml

from .sections import iter_headings
from .types import Section

logger = logging.getLogger(__name__)

HEADING_MAP_KEY = "heading-map"

# Separator of hierarchical keys ("Parent::Child") written by older tooling
PATH_SEPARATOR = "::"

_MARKERS = re.compile(r"^#+\s*")
_FRONTMATTER = re.compile(r"^---\n(.*?)\n---(?:\n|$)(.*)", re.DOTALL)


def clean_heading(heading: str) -> str:
    """Strip leading # markers and surrounding whitespace."""
    return _MARKERS.sub("", heading.strip()).strip()


def lookup(
    source_heading: str,
    table: dict[str, str],
    parent_path: str | None = None,
) -> str | None:
    """Find the target heading text for a source heading.

    Args:
        source_heading: Heading text, with or without # markers
        table: The heading alignment table
        parent_path: Optional "Parent::Child" path of enclosing headings;
            the hierarchical key is probed before the flat one

    Returns:
        The target heading text, or None when the table has no entry
    """
    clean = clean_heading(source_heading)
    if parent_path:
        found = table.get(f"{parent_path}{PATH_SEPARATOR}{clean}")
        if found:
            return found
    return table.get(clean) or None


def update(
    existing: dict[str, str],
    source_sections: Sequence[Section],
    target_sections: Sequence[Section],
    title_heading: str | None = None,
    target_title: str | None = None,
) -> dict[str, str]:
    """Rebuild the table from positionally paired section trees.

    Pairs source and target sections by index at every nesting level
    and records clean(source) -> clean(target) for each pair. The
    result holds exactly the current source headings (plus the title,
    when given), in document order: stale keys are pruned, and a live
    heading without a positional counterpart keeps its existing entry.

    Args:
        existing: The table loaded from the target document
        source_sections: Section tree of the current source revision
        target_sections: Section tree of the target document
        title_heading: Source title to keep in the table
        target_title: Translated title; defaults to the existing entry
    """
    paired: dict[str, str] = {}

    def walk(sources: Sequence[Section], targets: Sequence[Section]) -> None:
        for i, source in enumerate(sources):
            if i >= len(targets):
                break
            paired[clean_heading(source.heading)] = clean_heading(targets[i].heading)
            walk(source.subsections, targets[i].subsections)

    walk(source_sections, target_sections)

    keys: list[str] = []
    if title_heading:
        title = clean_heading(title_heading)
        keys.append(title)
        if target_title:
            paired[title] = clean_heading(target_title)
    keys.extend(clean_heading(section.heading) for section in iter_headings(source_sections))

    updated: dict[str, str] = {}
    for key in keys:
        value = paired.get(key) or existing.get(key)
        if value:
            updated[key] = value

    pruned = [key for key in existing if key not in updated and key not in keys]
    if pruned:
        logger.debug("pruned %d stale heading-map entries: %s", len(pruned), pruned)
    return updated


def extract_heading_map(content: str) -> dict[str, str]:
    """Read the table from a document's frontmatter.

    Missing frontmatter, a missing key or malformed YAML yield an empty table.
    """
    match = _FRONTMATTER.match(content.replace("\r\n", "\n"))
    if not match:
        return {}
    try:
        frontmatter = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        logger.warning("Failed to parse heading-map from frontmatter: %s", e)
        return {}
    if not isinstance(frontmatter, dict):
        return {}
    data = frontmatter.get(HEADING_MAP_KEY)
    if not isinstance(data, dict):
        return {}
    return {
        str(key): str(value)
        for key, value in data.items()
        if isinstance(value, (str, int, float)) and not isinstance(value, bool)
    }


def serialize_heading_map(table: dict[str, str]) -> str:
    """Serialize the table as a YAML block; empty string for an empty table."""
    if not table:
        return ""
    return _dump({HEADING_MAP_KEY: dict(table)})


def inject_heading_map(content: str, table: dict[str, str]) -> str:
    """Write the table into the frontmatter, keeping every other key.

    An empty table removes the heading-map key, and the frontmatter
    block with it if nothing else is left. Malformed frontmatter is left
    untouched.
    """
    content = content.replace("\r\n", "\n")
    match = _FRONTMATTER.match(content)

    if not match:
        if not table:
            return content
        return f"---\n{serialize_heading_map(table)}\n---\n\n{content}"

    existing_yaml, body = match.group(1), match.group(2)
    try:
        frontmatter = yaml.safe_load(existing_yaml) or {}
    except yaml.YAMLError as e:
        logger.error("Failed to update frontmatter with heading-map: %s", e)
        return content
    if not isinstance(frontmatter, dict):
        logger.error("Frontmatter is not a mapping; heading-map not written")
        return content

    if table:
        frontmatter[HEADING_MAP_KEY] = dict(table)
    else:
        frontmatter.pop(HEADING_MAP_KEY, None)

    if not frontmatter:
        return body.lstrip("\n")
    return f"---\n{_dump(frontmatter)}\n---\n{body}"


def _dump(data: dict[str, object]) -> str:
    return yaml.safe_dump(
        data,
        allow_unicode=True,
        sort_keys=False,
        default_flow_style=False,
        width=float("inf"),
    ).strip()
