"""Tests for the tree-sitter parsing front-end."""

from __future__ import annotations

from pathlib import Path

import pytest

from querydeps.core.errors import ErrorCode, ParseError
from querydeps.parsing.treesitter import TreeSitterParser, language_for_path


class TestLanguageForPath:
    """Extension to grammar mapping."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("a.js", "javascript"),
            ("a.jsx", "javascript"),
            ("a.mjs", "javascript"),
            ("a.cjs", "javascript"),
            ("a.ts", "typescript"),
            ("a.mts", "typescript"),
            ("a.cts", "typescript"),
            ("a.tsx", "tsx"),
            ("A.TSX", "tsx"),
            ("a.py", None),
            ("Makefile", None),
        ],
    )
    def test_mapping(self, name: str, expected: str | None) -> None:
        assert language_for_path(Path(name)) == expected


class TestTreeSitterParser:
    """Parsing sources and files."""

    def test_parse_source_counts_nodes(self) -> None:
        result = TreeSitterParser().parse_source("const a = 1;", "javascript")
        assert result.language == "javascript"
        assert result.root_node.type == "program"
        assert result.total_nodes > 1
        assert not result.has_errors

    def test_parse_source_accepts_str_and_bytes(self) -> None:
        parser = TreeSitterParser()
        assert parser.parse_source("x;", "tsx").source == b"x;"
        assert parser.parse_source(b"x;", "tsx").source == b"x;"

    def test_syntax_errors_are_counted(self) -> None:
        result = TreeSitterParser().parse_source("const = ;", "typescript")
        assert result.has_errors
        assert result.error_count >= 1

    def test_deeply_nested_source_is_counted(self) -> None:
        depth = 3000
        result = TreeSitterParser().parse_source("x = " + "[" * depth + "]" * depth + ";", "javascript")
        assert not result.has_errors
        assert result.total_nodes > depth * 3

    def test_tsx_grammar_parses_jsx(self) -> None:
        result = TreeSitterParser().parse_source("const el = <Row id={id} />;", "tsx")
        assert not result.has_errors

    def test_parse_file(self, tmp_path: Path) -> None:
        path = tmp_path / "todos.ts"
        path.write_text("export const k = ['todos'];\n")
        result = TreeSitterParser().parse(path)
        assert result.language == "typescript"
        assert not result.has_errors

    def test_unsupported_extension(self, tmp_path: Path) -> None:
        with pytest.raises(ParseError) as exc:
            TreeSitterParser().parse(tmp_path / "notes.md")
        assert exc.value.code == ErrorCode.PARSE_UNSUPPORTED_LANGUAGE

    def test_unreadable_file(self, tmp_path: Path) -> None:
        with pytest.raises(ParseError) as exc:
            TreeSitterParser().parse(tmp_path / "missing.tsx")
        assert exc.value.code == ErrorCode.PARSE_FILE_UNREADABLE
        assert exc.value.retryable

    def test_unknown_grammar(self) -> None:
        with pytest.raises(ParseError) as exc:
            TreeSitterParser().parse_source("x", "cobol")
        assert exc.value.code == ErrorCode.PARSE_GRAMMAR_UNAVAILABLE
