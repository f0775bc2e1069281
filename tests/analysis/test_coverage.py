"""Tests for the coverage checker."""

from __future__ import annotations

from querydeps.analysis.coverage import is_covered, missing
from querydeps.analysis.paths import KeyAtom, ValuePath


def _path(*steps: str) -> ValuePath:
    return ValuePath(steps)


def _atom(path: ValuePath | None, spread: bool = False) -> KeyAtom:
    return KeyAtom(path, (0, 0), spread=spread)


class TestIsCovered:
    """Ancestor-prefix coverage."""

    def test_whole_object_covers_members(self) -> None:
        atoms = [_atom(None), _atom(_path("obj"))]
        assert is_covered(_path("obj", ".x"), atoms)
        assert is_covered(_path("obj", ".y"), atoms)

    def test_member_does_not_cover_sibling(self) -> None:
        atoms = [_atom(_path("obj", ".x"))]
        assert is_covered(_path("obj", ".x"), atoms)
        assert not is_covered(_path("obj", ".y"), atoms)
        assert not is_covered(_path("obj"), atoms)

    def test_literal_covers_nothing(self) -> None:
        assert not is_covered(_path("id"), [_atom(None)])

    def test_display_text_is_ignored(self) -> None:
        atoms = [_atom(ValuePath(("data", ".address"), text="data?.address"))]
        assert is_covered(ValuePath(("data", ".address"), text="data!.address"), atoms)

    def test_rest_needs_spread_of_same_identifier(self) -> None:
        rest = ValuePath.of_rest("args")
        assert is_covered(rest, [_atom(ValuePath.of_rest("args"), spread=True)])
        assert not is_covered(rest, [_atom(_path("args"))])
        assert not is_covered(rest, [_atom(ValuePath.of_rest("other"), spread=True)])

    def test_rest_atom_does_not_cover_plain_paths(self) -> None:
        assert not is_covered(_path("args"), [_atom(ValuePath.of_rest("args"), spread=True)])


class TestMissing:
    """Set difference in extraction order."""

    def test_order_preserved(self) -> None:
        extracted = [_path("b"), _path("a"), _path("c")]
        assert missing(extracted, [_atom(_path("a"))]) == [_path("b"), _path("c")]

    def test_each_reported_once(self) -> None:
        extracted = [_path("a"), ValuePath(("a",), text="a")]
        assert missing(extracted, []) == [_path("a")]

    def test_fully_covered(self) -> None:
        assert missing([_path("a", ".b")], [_atom(_path("a"))]) == []
