"""Tree-sitter parsing front-end for JavaScript and TypeScript.

The analysis engine never parses text itself: it consumes the
``ParseResult`` produced here. Grammars are loaded lazily and cached per
parser instance.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tree_sitter

from querydeps.core.errors import ParseError


@dataclass(frozen=True)
class GrammarSpec:
    """Where to find a tree-sitter grammar."""

    module: str
    language_func: str = "language"


GRAMMARS: dict[str, GrammarSpec] = {
    "javascript": GrammarSpec("tree_sitter_javascript"),
    "typescript": GrammarSpec("tree_sitter_typescript", "language_typescript"),
    "tsx": GrammarSpec("tree_sitter_typescript", "language_tsx"),
}

EXTENSION_MAP: dict[str, str] = {
    "js": "javascript",
    "jsx": "javascript",
    "mjs": "javascript",
    "cjs": "javascript",
    "ts": "typescript",
    "mts": "typescript",
    "cts": "typescript",
    "tsx": "tsx",
}


@dataclass
class ParseResult:
    """Result of parsing a file."""

    tree: Any  # Tree-sitter Tree (not serializable)
    source: bytes
    language: str
    error_count: int
    total_nodes: int
    root_node: Any  # Tree-sitter Node

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0


def language_for_path(path: Path) -> str | None:
    """Map a file path to a grammar name, or None when unsupported."""
    return EXTENSION_MAP.get(path.suffix.lower().lstrip("."))


@dataclass
class TreeSitterParser:
    """
    Tree-sitter parser for JS/TS sources.

    Usage::

        parser = TreeSitterParser()
        result = parser.parse(Path("src/todos.tsx"))
        result = parser.parse_source(b"useQuery({ ... })", "tsx")
    """

    _parser: Any = field(default=None, repr=False)
    _languages: dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self._parser = tree_sitter.Parser()
        self._languages = {}

    def _get_language(self, lang_name: str) -> Any:
        """Get or load a Tree-sitter language."""
        if lang_name in self._languages:
            return self._languages[lang_name]

        spec = GRAMMARS.get(lang_name)
        if spec is None:
            raise ParseError.grammar_unavailable(lang_name, "no grammar registered")
        try:
            mod = importlib.import_module(spec.module)
            lang_fn = getattr(mod, spec.language_func)
        except (ImportError, AttributeError) as err:
            raise ParseError.grammar_unavailable(lang_name, str(err)) from err

        lang = tree_sitter.Language(lang_fn())
        self._languages[lang_name] = lang
        return lang

    def parse(self, path: Path, content: bytes | None = None) -> ParseResult:
        """
        Parse a file with Tree-sitter.

        Args:
            path: Path to file (used for language detection)
            content: File content as bytes. If None, reads from path.

        Returns:
            ParseResult with tree, language, and error info.
        """
        language = language_for_path(path)
        if language is None:
            raise ParseError.unsupported_language(str(path), path.suffix)

        if content is None:
            try:
                content = path.read_bytes()
            except OSError as e:
                raise ParseError.file_unreadable(str(path), str(e)) from e

        return self.parse_source(content, language)

    def parse_source(self, content: bytes | str, language: str = "tsx") -> ParseResult:
        """Parse in-memory source with the named grammar."""
        if isinstance(content, str):
            content = content.encode("utf-8")

        self._parser.language = self._get_language(language)
        tree = self._parser.parse(content)

        # Count errors and total nodes
        error_count = 0
        total_nodes = 0
        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            total_nodes += 1
            if node.type == "ERROR" or node.is_missing:
                error_count += 1
            stack.extend(node.children)

        return ParseResult(
            tree=tree,
            source=content,
            language=language,
            error_count=error_count,
            total_nodes=total_nodes,
            root_node=tree.root_node,
        )
