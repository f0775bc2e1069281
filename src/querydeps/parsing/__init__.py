"""Parsing front-end: tree-sitter grammars and node helpers."""

from querydeps.parsing.treesitter import (
    EXTENSION_MAP,
    ParseResult,
    TreeSitterParser,
    language_for_path,
)

__all__ = [
    "EXTENSION_MAP",
    "ParseResult",
    "TreeSitterParser",
    "language_for_path",
]
