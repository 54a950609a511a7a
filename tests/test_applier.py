"""Tests for applier.py."""

import pytest

from transync.applier import PatchApplier, apply
from transync.decomposer import BlockDecomposer
from transync.exceptions import ApplyError
from transync.types import Change, ChangeKind, Mapping, Patch, Strategy, Unit, UnitKind


def _p(text: str, index: int = 0) -> Unit:
    """Shorthand to create a paragraph unit."""
    return Unit(kind=UnitKind.PARAGRAPH, text=text, index=index)


def _replace(unit: Unit, text: str | None) -> Patch:
    change = Change(kind=ChangeKind.MODIFIED, old_unit=unit, new_unit=_p(text or ""))
    return Patch(Mapping(change, Strategy.EXACT_MATCH, target_unit=unit), text)


def _delete(unit: Unit) -> Patch:
    change = Change(kind=ChangeKind.DELETED, old_unit=unit)
    return Patch(Mapping(change, Strategy.DELETE, target_unit=unit))


def _insert(
    text: str | None,
    after: Unit | None = None,
    at_start: bool = False,
    kind: UnitKind = UnitKind.PARAGRAPH,
) -> Patch:
    change = Change(kind=ChangeKind.ADDED, new_unit=Unit(kind=kind, text="source"))
    mapping = Mapping(change, Strategy.INSERT, insert_after=after, at_start=at_start)
    return Patch(mapping, text)


class TestPatchApplier:
    def test_replace(self):
        target = [_p("a", 0), _p("b", 1)]
        assert apply(target, [_replace(target[1], "B")]) == "a\n\nB\n"

    def test_delete(self):
        target = [_p("a", 0), _p("b", 1), _p("c", 2)]
        assert apply(target, [_delete(target[1])]) == "a\n\nc\n"

    def test_insert_after(self):
        target = [_p("甲", 0), _p("乙", 1)]
        assert apply(target, [_insert("丙", after=target[0])]) == "甲\n\n丙\n\n乙\n"

    def test_insert_at_start(self):
        target = [_p("a", 0)]
        assert apply(target, [_insert("z", at_start=True)]) == "z\n\na\n"

    def test_insert_at_start_after_frontmatter(self):
        target = BlockDecomposer().decompose("---\nk: v\n---\n\na\n")
        assert apply(target, [_insert("z", at_start=True)]) == "---\nk: v\n---\n\nz\n\na\n"

    def test_insert_without_anchor_appends(self):
        target = [_p("a", 0)]
        assert apply(target, [_insert("z")]) == "a\n\nz\n"

    def test_unresolved_anchor_appends(self):
        target = [_p("a", 0), _p("b", 1)]
        stranger = _p("a", 0)
        assert apply(target, [_insert("z", after=stranger)]) == "a\n\nb\n\nz\n"

    def test_inserts_after_same_anchor_keep_patch_order(self):
        target = [_p("a", 0), _p("b", 1)]
        patches = [_insert("x", after=target[0]), _insert("y", after=target[0])]
        assert apply(target, patches) == "a\n\nx\n\ny\n\nb\n"

    def test_null_text_is_skipped(self):
        target = [_p("a", 0), _p("b", 1)]
        patches = [_replace(target[0], None), _insert(None, after=target[0])]
        assert apply(target, patches) == "a\n\nb\n"

    def test_delete_wins_over_replace(self):
        target = [_p("a", 0), _p("b", 1)]
        patches = [_replace(target[0], "A"), _delete(target[0])]
        assert apply(target, patches) == "b\n"

    def test_insert_after_deleted_anchor_is_kept(self):
        target = [_p("a", 0), _p("b", 1), _p("c", 2)]
        patches = [_delete(target[1]), _insert("x", after=target[1])]
        assert apply(target, patches) == "a\n\nx\n\nc\n"

    def test_inserted_unit_kind(self):
        target = [_p("a", 0)]
        units = PatchApplier().apply_units(
            target, [_insert("```\nx\n```", after=target[0], kind=UnitKind.CODE)]
        )
        assert units[1].kind == UnitKind.CODE

    def test_input_not_mutated(self):
        target = [_p("a", 0), _p("b", 1), _p("c", 2)]
        snapshot = list(target)
        apply(target, [_replace(target[0], "A"), _delete(target[2]), _insert("x", target[1])])
        assert target == snapshot
        assert target[0].text == "a"

    def test_batch_equals_sequential(self):
        target = [_p(f"p{i}", i) for i in range(5)]
        patches = [
            _insert("x4", after=target[4]),
            _insert("x2", after=target[2]),
            _insert("x0", after=target[0]),
            _delete(target[3]),
            _replace(target[1], "P1"),
        ]
        applier = PatchApplier()
        batched = applier.apply_units(target, patches)

        sequential = list(target)
        for patch in patches:
            sequential = applier.apply_units(sequential, [patch])

        assert [u.text for u in batched] == [u.text for u in sequential]
        assert [u.text for u in batched] == ["p0", "x0", "P1", "p2", "x2", "p4", "x4"]

    def test_unknown_target_unit_raises(self):
        target = [_p("a", 0)]
        with pytest.raises(ApplyError):
            apply(target, [_delete(_p("zzz", 9))])

    def test_missing_target_unit_raises(self):
        change = Change(kind=ChangeKind.DELETED, old_unit=_p("a"))
        with pytest.raises(ApplyError) as exc:
            apply([_p("a")], [Patch(Mapping(change, Strategy.DELETE))])
        assert exc.value.applied == 0
