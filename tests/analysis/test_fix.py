"""Tests for fix synthesis."""

from __future__ import annotations

import pytest

from querydeps.analysis.fix import synthesize
from querydeps.analysis.paths import ValuePath


def _fix(parse, find, source: str, *names: str):
    parsed = parse(source, "typescript")
    array = find(parsed.root_node, "array")
    return parsed.source, synthesize([ValuePath.of_name(n) for n in names], array, parsed.source)


class TestSynthesize:
    """Insertion placement."""

    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ('k = ["entity"];', 'k = ["entity", id, page];'),
            ("k = [];", "k = [id, page];"),
            ("k = ['a',];", "k = ['a', id, page];"),
            ("k = [\n  'a',\n  b,\n];", "k = [\n  'a',\n  b, id, page\n];"),
            ("k = ['a' /* note */];", "k = ['a', id, page /* note */];"),
            ("k = ['a' /* x, y */];", "k = ['a', id, page /* x, y */];"),
        ],
    )
    def test_insertion(self, parse, find, source: str, expected: str) -> None:
        data, fix = _fix(parse, find, source, "id", "page")
        assert fix is not None
        assert fix.apply(data).decode("utf-8") == expected

    def test_result_is_fixed_literal(self, parse, find) -> None:
        _, fix = _fix(parse, find, 'useQuery({ queryKey: ["entity/${id}"] })', "id")
        assert fix is not None
        assert fix.result == '["entity/${id}", id]'
        assert fix.message == 'Fix to ["entity/${id}", id]'
        assert fix.start_byte == fix.end_byte

    def test_rest_path_is_spread(self, parse, find) -> None:
        parsed = parse("k = ['foo', arg];", "typescript")
        fix = synthesize([ValuePath.of_rest("args")], find(parsed.root_node, "array"), parsed.source)
        assert fix is not None
        assert fix.result == "['foo', arg, ...args]"

    def test_nothing_missing(self, parse, find) -> None:
        _, fix = _fix(parse, find, "k = ['a'];")
        assert fix is None

    def test_no_target(self) -> None:
        assert synthesize([ValuePath.of_name("id")], None, b"") is None
