"""Tests for matching.py."""

from transync.matching import (
    MatchContext,
    jaccard_similarity,
    match_context,
    match_exact_content,
    match_identity,
    match_position,
    match_similarity,
    run_cascade,
)
from transync.observer import RecordingObserver
from transync.types import Unit, UnitKind


def _p(text: str, index: int = 0, parent: str | None = None) -> Unit:
    """Shorthand to create a paragraph unit."""
    return Unit(kind=UnitKind.PARAGRAPH, text=text, index=index, parent_heading_id=parent)


def _h(text: str, slug: str, index: int = 0) -> Unit:
    """Shorthand to create a level-2 heading unit."""
    return Unit(kind=UnitKind.HEADING, text=f"## {text}", index=index, id=slug, level=2)


class TestJaccard:
    def test_partial_overlap(self):
        assert jaccard_similarity("a b c", "a b d") == 0.5

    def test_case_insensitive(self):
        assert jaccard_similarity("Hello World", "hello world") == 1.0

    def test_both_empty(self):
        assert jaccard_similarity("", "  ") == 1.0

    def test_one_empty(self):
        assert jaccard_similarity("", "word") == 0.0


class TestMatchers:
    def test_identity(self):
        candidates = [_h("A", "a"), _h("B", "b", 1)]
        result = match_identity(_h("B", "b"), MatchContext(candidates=candidates))
        assert result is not None
        assert result.unit is candidates[1]
        assert result.strategy == "identity"

    def test_identity_uses_resolver(self):
        candidates = [_h("甲", "甲")]
        ctx = MatchContext(candidates=candidates, resolve_id={"a": "甲"}.get)
        assert match_identity(_h("A", "a"), ctx).unit is candidates[0]

    def test_identity_ignores_claimed(self):
        candidates = [_h("A", "a")]
        ctx = MatchContext(candidates=candidates, claimed={0})
        assert match_identity(_h("A", "a"), ctx) is None

    def test_exact_content(self):
        candidates = [_p("one"), _p("two", 1)]
        result = match_exact_content(_p("  two  "), MatchContext(candidates=candidates))
        assert result.unit is candidates[1]

    def test_context_single_sibling(self):
        candidates = [_h("A", "a"), _p("totally different", 1, "a")]
        result = match_context(_p("text", 5, "a"), MatchContext(candidates=candidates))
        assert result.unit is candidates[1]
        assert result.strategy == "context"

    def test_context_unresolved_parent(self):
        candidates = [_p("text", 0, "x")]
        ctx = MatchContext(candidates=candidates, resolve_id=lambda _: None)
        assert match_context(_p("text", 0, "a"), ctx) is None

    def test_context_similarity_tie_break(self):
        candidates = [
            _p("unrelated words here", 0, "a"),
            _p("alpha beta gamma delta epsilon zeta", 1, "a"),
        ]
        probe = _p("alpha beta gamma delta epsilon", 0, "a")
        result = match_context(probe, MatchContext(candidates=candidates))
        assert result.unit is candidates[1]

    def test_context_ordinal_tie_break(self):
        candidates = [_h("甲", "x"), _p("uno", 1, "x"), _p("dos", 2, "x")]
        source = [_h("A", "a"), _p("one", 1, "a"), _p("two", 2, "a")]
        ctx = MatchContext(
            candidates=candidates,
            tie_breaks=("ordinal",),
            resolve_id={"a": "x"}.get,
            probe_sequence=source,
        )
        assert match_context(source[2], ctx).unit is candidates[2]

    def test_context_no_tie_break_winner(self):
        candidates = [_p("one", 0, "a"), _p("two", 1, "a")]
        ctx = MatchContext(candidates=candidates, tie_breaks=("similarity",))
        assert match_context(_p("three", 0, "a"), ctx) is None

    def test_position(self):
        candidates = [_p("x"), _p("y", 1)]
        assert match_position(_p("z", 1), MatchContext(candidates=candidates)).unit is candidates[1]

    def test_position_kind_mismatch(self):
        candidates = [_h("A", "a")]
        assert match_position(_p("z", 0), MatchContext(candidates=candidates)) is None

    def test_position_out_of_range(self):
        assert match_position(_p("z", 3), MatchContext(candidates=[_p("x")])) is None

    def test_similarity_is_strict(self):
        # 7 shared words out of 10 distinct: exactly 0.7
        probe = _p("a b c d e f g h i")
        candidates = [_p("a b c d e f g j")]
        assert match_similarity(probe, MatchContext(candidates=candidates)) is None
        ctx = MatchContext(candidates=candidates, threshold=0.69)
        assert match_similarity(probe, ctx).score == 0.7

    def test_similarity_picks_best(self):
        candidates = [_p("a b c d e f g h x"), _p("a b c d e f g h i j")]
        result = match_similarity(_p("a b c d e f g h i"), MatchContext(candidates=candidates))
        assert result.unit is candidates[1]


class TestCascade:
    def test_first_success_wins(self):
        observer = RecordingObserver()
        candidates = [_h("A", "a"), _p("foo", 1, "a")]
        result = run_cascade(_p("bar", 1, "a"), MatchContext(candidates=candidates), observer)
        assert result.strategy == "context"
        assert [p["strategy"] for p in observer.named("attempted")] == ["identity", "context"]
        assert observer.named("succeeded")[0]["found"] is candidates[1]

    def test_failure_reported(self):
        observer = RecordingObserver()
        assert run_cascade(_p("bar"), MatchContext(candidates=[]), observer) is None
        assert len(observer.named("attempted")) == 4
        assert len(observer.named("failed")) == 1
