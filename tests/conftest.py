"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import sys
import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local querydeps package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of querydeps modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("querydeps"):
        del sys.modules[module_name]

from querydeps.parsing.treesitter import ParseResult, TreeSitterParser  # noqa: E402


def find_all(node: Any, node_type: str, text: str | None = None) -> list[Any]:
    """All nodes of ``node_type`` (optionally with exact ``text``), in document order."""
    found = []
    stack = [node]
    while stack:
        cur = stack.pop()
        if cur.type == node_type and (text is None or cur.text.decode("utf-8") == text):
            found.append(cur)
        stack.extend(reversed(cur.children))
    return found


@pytest.fixture
def parse() -> Callable[..., ParseResult]:
    """Parse a dedented snippet (TSX by default)."""
    parser = TreeSitterParser()

    def _parse(source: str, language: str = "tsx") -> ParseResult:
        return parser.parse_source(textwrap.dedent(source), language)

    return _parse


@pytest.fixture
def find() -> Callable[..., Any]:
    """First (or ``index``-th) node of a type/text under a root."""

    def _find(root: Any, node_type: str, text: str | None = None, index: int = 0) -> Any:
        nodes = find_all(root, node_type, text)
        assert nodes, f"no {node_type} node matching {text!r}"
        return nodes[index]

    return _find
