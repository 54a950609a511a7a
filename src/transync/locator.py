"""Projects source changes onto an independently maintained target document.

Heading ids are slugs of heading text, so they differ between languages.
The locator translates source ids into target ids through the heading
alignment table (source id -> source heading text -> table -> target
heading text -> target id) and then runs the same matcher cascade the
differ uses. Failing to find a counterpart is never an error: deletions
are dropped, modifications and additions fall back to an insertion
point with reduced confidence.
"""

from __future__ import annotations

from collections.abc import Sequence

from .config import SyncSettings
from .decomposer import heading_text
from .heading_map import clean_heading, lookup
from .matching import MatchContext, run_cascade
from .observer import LoggingObserver, MatchObserver
from .types import Change, ChangeKind, InsertionHint, Mapping, Strategy, Unit, UnitKind

MATCH_CONFIDENCE = {
    "identity": 1.0,
    "context": 0.9,
    "position": 0.7,
}
INDEX_CONFIDENCE = 0.6
DRIFTED_INDEX_CONFIDENCE = 0.4
HEADING_CONFIDENCE = 0.7
FALLBACK_HEADING_CONFIDENCE = 0.3
END_CONFIDENCE = 0.2

_HEADING_KINDS = (UnitKind.HEADING, UnitKind.SECTION, UnitKind.PREAMBLE)


class TargetLocator:
    """Finds, or computes an insertion point for, each change in the target."""

    def __init__(
        self,
        heading_map: dict[str, str] | None = None,
        *,
        source_units: Sequence[Unit] = (),
        new_units: Sequence[Unit] = (),
        settings: SyncSettings | None = None,
        observer: MatchObserver | None = None,
    ) -> None:
        """Initialize the locator.

        Args:
            heading_map: Source heading text -> target heading text
            source_units: Old source revision; used to resolve parent
                heading ids and for ordinal tie-breaks
            new_units: New source revision; used to resolve the heading
                an addition sits under
            settings: Matching thresholds and tie-breaks
            observer: Telemetry sink
        """
        self._table = heading_map or {}
        self._source_units = source_units
        self._settings = settings or SyncSettings()
        self._observer = observer or LoggingObserver()
        self._source_text: dict[str, str] = {}
        for unit in (*source_units, *new_units):
            if unit.id is not None and unit.id not in self._source_text:
                self._source_text[unit.id] = _title_of(unit)

    def locate(self, change: Change, target_units: Sequence[Unit]) -> Mapping | None:
        """Map one change onto target_units; None when it is dropped."""
        return self._locate(change, target_units, set())

    def locate_all(
        self, changes: Sequence[Change], target_units: Sequence[Unit]
    ) -> list[Mapping]:
        """Map a batch of changes; each target unit is matched at most once."""
        claimed: set[int] = set()
        mappings = []
        for change in changes:
            mapping = self._locate(change, target_units, claimed)
            if mapping is not None:
                mappings.append(mapping)
        return mappings

    # --- internals ---

    def _locate(
        self, change: Change, target_units: Sequence[Unit], claimed: set[int]
    ) -> Mapping | None:
        if change.kind == ChangeKind.ADDED:
            return self._insertion(change, target_units, change.insertion_hint, 1.0)

        probe = change.old_unit
        if probe is None:
            self._observer.mapping_dropped(change, "change has no old unit")
            return None

        ctx = self._context(target_units, claimed)
        ctx.claimed = claimed | self._reserved(ctx, probe)
        result = run_cascade(probe, ctx, self._observer)
        if result is not None:
            claimed.add(_position(target_units, result.unit))
            confidence = MATCH_CONFIDENCE.get(result.strategy, result.score)
            strategy = (
                Strategy.DELETE if change.kind == ChangeKind.DELETED else Strategy.EXACT_MATCH
            )
            return Mapping(
                change=change,
                strategy=strategy,
                target_unit=result.unit,
                confidence=confidence,
            )

        if change.kind == ChangeKind.DELETED:
            self._observer.mapping_dropped(change, "no counterpart in target")
            return None
        return self._insertion(change, target_units, change.insertion_hint, 0.5)

    def _context(self, target_units: Sequence[Unit], claimed: set[int]) -> MatchContext:
        target_by_text: dict[str, str] = {}
        target_ids: set[str] = set()
        for unit in target_units:
            if unit.id is None:
                continue
            target_ids.add(unit.id)
            target_by_text.setdefault(clean_heading(_title_of(unit)), unit.id)
        target_body = [
            i for i, unit in enumerate(target_units) if unit.kind != UnitKind.FRONTMATTER
        ]
        source_frontmatter = [
            unit.index for unit in self._source_units if unit.kind == UnitKind.FRONTMATTER
        ]

        def resolve(source_id: str | None) -> str | None:
            if source_id is None:
                return None
            text = self._source_text.get(source_id)
            if text is not None:
                translated = lookup(text, self._table)
                if translated is not None and translated in target_by_text:
                    return target_by_text[translated]
            return source_id if source_id in target_ids else None

        def position_of(unit: Unit) -> int | None:
            # Each document owns its frontmatter; compare body positions.
            body = unit.index - sum(1 for i in source_frontmatter if i < unit.index)
            if not 0 <= body < len(target_body):
                return None
            return target_body[body]

        return MatchContext(
            candidates=target_units,
            claimed=claimed,
            threshold=self._settings.similarity_threshold,
            tie_breaks=self._settings.locate_tie_breaks,
            resolve_id=resolve,
            probe_sequence=self._source_units or None,
            position_of=position_of,
        )

    def _reserved(self, ctx: MatchContext, probe: Unit) -> set[int]:
        """Target units already anchored to a source heading other than probe."""
        positions: dict[str, int] = {}
        for i, unit in enumerate(ctx.candidates):
            if unit.id is not None:
                positions.setdefault(unit.id, i)
        reserved = set()
        for unit in self._source_units:
            if unit.id is None or unit.id == probe.id:
                continue
            target_id = ctx.resolve_id(unit.id)
            if target_id in positions:
                reserved.add(positions[target_id])
        return reserved

    def _insertion(
        self,
        change: Change,
        target_units: Sequence[Unit],
        hint: InsertionHint | None,
        scale: float,
    ) -> Mapping:
        hint = hint or InsertionHint()
        n = len(target_units)
        body = sum(1 for unit in target_units if unit.kind != UnitKind.FRONTMATTER)
        trusted = hint.index is not None and self._trusted(hint, body)

        if n == 0:
            anchor, at_start, confidence = None, False, END_CONFIDENCE
        elif trusted:
            anchor, at_start = self._index_anchor(hint.index or 0, target_units)
            confidence = INDEX_CONFIDENCE
        elif hint.under_heading is not None:
            anchor, confidence = self._heading_anchor(hint.under_heading, target_units)
            at_start = False
        elif hint.index is not None:
            anchor, at_start = self._index_anchor(hint.index, target_units)
            confidence = DRIFTED_INDEX_CONFIDENCE
        else:
            anchor, at_start, confidence = target_units[-1], False, END_CONFIDENCE

        mapping = Mapping(
            change=change,
            strategy=Strategy.INSERT,
            insert_after=anchor,
            at_start=at_start,
            confidence=confidence * scale,
        )
        self._observer.insertion_resolved(mapping)
        return mapping

    def _trusted(self, hint: InsertionHint, n: int) -> bool:
        """Whether source and target lengths are close enough for index scaling."""
        if not hint.total or not n:
            return True
        ratio = min(hint.total, n) / max(hint.total, n)
        return ratio >= self._settings.drift_ratio

    def _index_anchor(
        self, index: int, target_units: Sequence[Unit]
    ) -> tuple[Unit | None, bool]:
        """Anchor that puts the new unit at body position `index` in the target.

        Positions skip frontmatter; position 0 lands right after it.
        """
        body = [unit for unit in target_units if unit.kind != UnitKind.FRONTMATTER]
        position = min(max(index, 0), len(body))
        if position == 0:
            if target_units[0].kind == UnitKind.FRONTMATTER:
                return target_units[0], False
            return None, True
        return body[position - 1], False

    def _heading_anchor(
        self, under_heading: str, target_units: Sequence[Unit]
    ) -> tuple[Unit, float]:
        """Last body unit under the matching target heading.

        Heading lines are skipped: a ## heading points at the # title but
        its body belongs to the ## heading.
        """
        resolve = self._context(target_units, set()).resolve_id
        target_id = resolve(under_heading)
        headings = [unit for unit in target_units if unit.kind in _HEADING_KINDS]

        heading = None
        confidence = HEADING_CONFIDENCE
        if target_id is not None:
            for unit in reversed(headings):
                if unit.id == target_id:
                    heading = unit
                    break
        if heading is None:
            confidence = FALLBACK_HEADING_CONFIDENCE
            if not headings:
                return target_units[-1], confidence
            heading = headings[-1]

        anchor = heading
        for unit in target_units:
            if (
                unit.kind != UnitKind.HEADING
                and unit.parent_heading_id == heading.id
                and unit.index > anchor.index
            ):
                anchor = unit
        return anchor, confidence


def _title_of(unit: Unit) -> str:
    """Heading text of a heading or section unit."""
    first_line = unit.text.split("\n", 1)[0]
    return heading_text(first_line) or first_line


def _position(units: Sequence[Unit], unit: Unit) -> int:
    for i, candidate in enumerate(units):
        if candidate is unit:
            return i
    raise ValueError(f"unit not found in target: {unit!r}")
