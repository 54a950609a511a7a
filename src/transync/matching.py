"""Unit matching pipeline shared by the differ and the target locator.

Matching is an ordered list of pure matcher functions:

1. identity   - same heading id (after id translation) and kind
2. context    - same parent heading and kind; ties broken by the
                configured tie-breaks (similarity, ordinal)
3. position   - same sequence index and kind
4. similarity - highest word-set Jaccard score above the threshold

Each matcher returns a MatchResult or None; run_cascade stops at the
first success. Candidates already claimed are never returned.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from functools import lru_cache
from typing import NamedTuple

from .observer import MatchObserver
from .types import Unit

DEFAULT_THRESHOLD = 0.7


def _same(value: str | None) -> str | None:
    return value


def _own_index(unit: Unit) -> int | None:
    return unit.index


class MatchResult(NamedTuple):
    """A candidate chosen for a probe unit."""

    unit: Unit
    strategy: str
    score: float


@dataclass
class MatchContext:
    """Everything a matcher may look at besides the probe.

    Attributes:
        candidates: The sequence being searched
        claimed: Indices into candidates that may not be returned
        threshold: Jaccard acceptance threshold (strictly greater-than)
        tie_breaks: Ordered tie-breaks for the context matcher
        resolve_id: Maps a heading id of the probe's document into the
            candidates' id space; None means no counterpart is known
        probe_sequence: The sequence the probe belongs to (ordinal
            tie-break only)
        position_of: Maps the probe to the candidate index the position
            matcher checks; None means no candidate at that position
    """

    candidates: Sequence[Unit]
    claimed: set[int] = field(default_factory=set)
    threshold: float = DEFAULT_THRESHOLD
    tie_breaks: tuple[str, ...] = ("similarity",)
    resolve_id: Callable[[str | None], str | None] = _same
    probe_sequence: Sequence[Unit] | None = None
    position_of: Callable[[Unit], int | None] = _own_index

    def available(self) -> Iterator[tuple[int, Unit]]:
        for i, unit in enumerate(self.candidates):
            if i not in self.claimed:
                yield i, unit


Matcher = Callable[[Unit, MatchContext], "MatchResult | None"]


@lru_cache(maxsize=4096)
def _tokens(text: str) -> frozenset[str]:
    return frozenset(text.lower().split())


def jaccard_similarity(a: str, b: str) -> float:
    """Jaccard similarity of the lower-cased whitespace-separated word sets."""
    left, right = _tokens(a), _tokens(b)
    if not left and not right:
        return 1.0
    return len(left & right) / len(left | right)


def match_exact_content(probe: Unit, ctx: MatchContext) -> MatchResult | None:
    """First available candidate of the same kind with identical trimmed text."""
    text = probe.text.strip()
    for _, unit in ctx.available():
        if unit.kind == probe.kind and unit.text.strip() == text:
            return MatchResult(unit, "exact", 1.0)
    return None


def match_identity(probe: Unit, ctx: MatchContext) -> MatchResult | None:
    """Candidate with the same id (after translation) and kind."""
    if probe.id is None:
        return None
    target_id = ctx.resolve_id(probe.id)
    if target_id is None:
        return None
    for _, unit in ctx.available():
        if unit.id == target_id and unit.kind == probe.kind:
            return MatchResult(unit, "identity", 1.0)
    return None


def match_context(probe: Unit, ctx: MatchContext) -> MatchResult | None:
    """Sole candidate sharing parent heading and kind, or a tie-broken one."""
    parent = ctx.resolve_id(probe.parent_heading_id)
    if probe.parent_heading_id is not None and parent is None:
        return None
    siblings = [
        (i, unit)
        for i, unit in enumerate(ctx.candidates)
        if unit.kind == probe.kind and unit.parent_heading_id == parent
    ]
    open_siblings = [(i, unit) for i, unit in siblings if i not in ctx.claimed]
    if not open_siblings:
        return None
    if len(open_siblings) == 1:
        return MatchResult(open_siblings[0][1], "context", 1.0)

    for tie_break in ctx.tie_breaks:
        if tie_break == "similarity":
            best = _most_similar(probe, [unit for _, unit in open_siblings], ctx.threshold)
            if best is not None:
                return MatchResult(best[0], "context", best[1])
        elif tie_break == "ordinal":
            rank = _sibling_rank(probe, ctx.probe_sequence)
            if rank is not None and rank < len(siblings):
                i, unit = siblings[rank]
                if i not in ctx.claimed:
                    return MatchResult(unit, "context", 1.0)
    return None


def match_position(probe: Unit, ctx: MatchContext) -> MatchResult | None:
    """Candidate at the probe's sequence position, if the kind matches."""
    i = ctx.position_of(probe)
    if i is None or not 0 <= i < len(ctx.candidates) or i in ctx.claimed:
        return None
    unit = ctx.candidates[i]
    if unit.kind != probe.kind:
        return None
    return MatchResult(unit, "position", 1.0)


def match_similarity(probe: Unit, ctx: MatchContext) -> MatchResult | None:
    """Most similar candidate of the same kind, if above the threshold."""
    pool = [unit for _, unit in ctx.available() if unit.kind == probe.kind]
    best = _most_similar(probe, pool, ctx.threshold)
    if best is None:
        return None
    return MatchResult(best[0], "similarity", best[1])


MATCHERS: tuple[tuple[str, Matcher], ...] = (
    ("identity", match_identity),
    ("context", match_context),
    ("position", match_position),
    ("similarity", match_similarity),
)


def run_cascade(
    probe: Unit,
    ctx: MatchContext,
    observer: MatchObserver | None = None,
    matchers: Sequence[tuple[str, Matcher]] = MATCHERS,
) -> MatchResult | None:
    """Run matchers in order and return the first match."""
    observer = observer or MatchObserver()
    for name, matcher in matchers:
        observer.match_attempted(name, probe)
        result = matcher(probe, ctx)
        if result is not None:
            observer.match_succeeded(name, probe, result.unit, result.score)
            return result
    observer.match_failed(probe)
    return None


def _most_similar(
    probe: Unit, pool: Sequence[Unit], threshold: float
) -> tuple[Unit, float] | None:
    """Highest-scoring unit strictly above threshold; earliest wins ties."""
    best: tuple[Unit, float] | None = None
    for unit in pool:
        score = jaccard_similarity(probe.text, unit.text)
        if score > threshold and (best is None or score > best[1]):
            best = (unit, score)
    return best


def _sibling_rank(probe: Unit, sequence: Sequence[Unit] | None) -> int | None:
    """Rank of probe among same-kind units under the same parent."""
    if sequence is None:
        return None
    rank = 0
    for unit in sequence:
        if unit is probe or (unit.index == probe.index and unit == probe):
            return rank
        if unit.kind == probe.kind and unit.parent_heading_id == probe.parent_heading_id:
            rank += 1
    return None
