"""Structural diff between two revisions of the same document.

Two-pass alignment:
1. Anchor pass: identity matches (same heading id and kind), then exact
   content matches, claimed for every new unit up front so that units
   which survive verbatim are never taken by a weaker match.
2. Cascade pass: remaining new units go through the context, position
   and similarity matchers against the unclaimed old units.

Additions and modifications are emitted in new-revision order, then
deletions in old-revision order. The output is fully deterministic.
"""

from __future__ import annotations

from collections.abc import Sequence

from .config import SyncSettings
from .matching import (
    MatchContext,
    MatchResult,
    match_exact_content,
    match_identity,
    run_cascade,
)
from .observer import LoggingObserver, MatchObserver
from .types import Change, ChangeKind, InsertionHint, Unit, UnitKind


class StructuralDiffer:
    """Classifies every unit of two revisions as added, modified or deleted."""

    def __init__(
        self,
        settings: SyncSettings | None = None,
        observer: MatchObserver | None = None,
    ) -> None:
        self._settings = settings or SyncSettings()
        self._observer = observer or LoggingObserver()

    def diff(self, old_units: Sequence[Unit], new_units: Sequence[Unit]) -> list[Change]:
        """Diff two unit sequences and return the ordered change list."""
        ctx = MatchContext(
            candidates=old_units,
            threshold=self._settings.similarity_threshold,
            tie_breaks=self._settings.diff_tie_breaks,
            probe_sequence=new_units,
        )
        matches: dict[int, MatchResult] = {}

        for anchor in (match_identity, match_exact_content):
            for j, unit in enumerate(new_units):
                if j in matches:
                    continue
                result = anchor(unit, ctx)
                if result is not None:
                    self._claim(ctx, matches, j, result)
                    self._observer.match_succeeded(result.strategy, unit, result.unit, 1.0)

        for j, unit in enumerate(new_units):
            if j in matches:
                continue
            result = run_cascade(unit, ctx, self._observer)
            if result is not None:
                self._claim(ctx, matches, j, result)

        # Insertion positions count body units only; frontmatter is per document
        body = [unit for unit in new_units if unit.kind != UnitKind.FRONTMATTER]
        positions = {id(unit): k for k, unit in enumerate(body)}

        changes: list[Change] = []
        for j, unit in enumerate(new_units):
            hint = InsertionHint(
                under_heading=unit.parent_heading_id,
                index=positions.get(id(unit), 0),
                total=len(body),
            )
            result = matches.get(j)
            if result is None:
                changes.append(
                    Change(
                        kind=ChangeKind.ADDED,
                        new_unit=unit,
                        anchor=_anchor_of(unit),
                        insertion_hint=hint,
                    )
                )
            elif result.unit.text.strip() != unit.text.strip():
                changes.append(
                    Change(
                        kind=ChangeKind.MODIFIED,
                        old_unit=result.unit,
                        new_unit=unit,
                        anchor=_anchor_of(unit),
                        insertion_hint=hint,
                    )
                )

        for i, unit in enumerate(old_units):
            if i not in ctx.claimed:
                changes.append(
                    Change(kind=ChangeKind.DELETED, old_unit=unit, anchor=_anchor_of(unit))
                )

        return changes

    def _claim(
        self,
        ctx: MatchContext,
        matches: dict[int, MatchResult],
        new_index: int,
        result: MatchResult,
    ) -> None:
        matches[new_index] = result
        for i, unit in enumerate(ctx.candidates):
            if unit is result.unit:
                ctx.claimed.add(i)
                return
        raise ValueError(f"matched unit not found among candidates: {result.unit!r}")


def diff(
    old_units: Sequence[Unit],
    new_units: Sequence[Unit],
    settings: SyncSettings | None = None,
) -> list[Change]:
    """Diff two unit sequences with default telemetry."""
    return StructuralDiffer(settings).diff(old_units, new_units)


def _anchor_of(unit: Unit) -> str | None:
    return unit.id if unit.id is not None else unit.parent_heading_id
