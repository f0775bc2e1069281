"""Dependency extraction from fetch functions.

The extractor walks the fetch value of a call site (and function-valued
callback fields next to it) and collects the value paths it reads whose
base binding is volatile: declared between the call site and its reactive
boundary, but not inside the walked function itself.
"""

from __future__ import annotations

import structlog

from querydeps.analysis.paths import ValuePath
from querydeps.analysis.scopes import Binding, BindingKind, ScopeResolver
from querydeps.config.models import AnalyzerConfig
from querydeps.parsing.nodes import (
    FUNCTION_TYPES,
    IDENTIFIER_TYPES,
    MEMBER_TYPES,
    TYPE_TYPES,
    Node,
    contains,
    is_function,
    member_chain,
    text,
    unwrap,
)

log = structlog.get_logger(__name__)

_JSX_ELEMENT_TYPES = frozenset({"jsx_opening_element", "jsx_closing_element", "jsx_self_closing_element"})
# Nodes whose `name` field declares or labels something rather than reading it
_NAMED_TYPES = _JSX_ELEMENT_TYPES | FUNCTION_TYPES
_ASSIGNMENT_TYPES = frozenset({"assignment_expression", "augmented_assignment_expression"})
_IGNORED_NAMES = frozenset({"undefined"})


class _Walk:
    """State of one extraction: the function being walked and what it read."""

    def __init__(self, container: Node, volatile: frozenset[int]) -> None:
        self.container = container
        self.volatile = volatile
        self.paths: list[ValuePath] = []
        self.seen: set[ValuePath] = set()

    def record(self, path: ValuePath) -> None:
        if path not in self.seen:
            self.seen.add(path)
            self.paths.append(path)


class DependencyExtractor:
    """Collects volatile value paths read by fetch functions of one tree."""

    def __init__(self, resolver: ScopeResolver, config: AnalyzerConfig) -> None:
        self._resolver = resolver
        self._config = config

    def extract(
        self,
        fetch: Node,
        siblings: list[Node],
        volatile_scopes: frozenset[int],
    ) -> list[ValuePath]:
        """Value paths read by ``fetch`` and sibling callbacks, first-read order."""
        paths: list[ValuePath] = []
        seen: set[ValuePath] = set()
        roots = self.fetch_roots(fetch, volatile_scopes)
        roots.extend(unwrap(s) for s in siblings if is_function(unwrap(s)))
        for root in roots:
            walk = _Walk(root, volatile_scopes)
            self._visit(root, walk)
            for path in walk.paths:
                if path not in seen:
                    seen.add(path)
                    paths.append(path)
        log.debug("dependencies_extracted", count=len(paths), paths=[p.display for p in paths])
        return paths

    def fetch_roots(self, value: Node, volatile_scopes: frozenset[int]) -> list[Node]:
        """Expressions to walk for a fetch value.

        A ternary with the no-op sentinel in one branch contributes only the
        other branch; any other ternary contributes its condition and both
        branches, each resolved the same way. A bare identifier naming a
        function declared inside the boundary contributes that function. Any
        other reference is a function handle, not a read.
        """
        value = unwrap(value)
        if value.type == "ternary_expression":
            consequence = value.child_by_field_name("consequence")
            alternative = value.child_by_field_name("alternative")
            if alternative is not None and self._is_sentinel(alternative):
                return self.fetch_roots(consequence, volatile_scopes) if consequence is not None else []
            if consequence is not None and self._is_sentinel(consequence):
                return self.fetch_roots(alternative, volatile_scopes) if alternative is not None else []
            condition = value.child_by_field_name("condition")
            roots = [condition] if condition is not None else []
            for branch in (consequence, alternative):
                if branch is not None:
                    roots.extend(self.fetch_roots(branch, volatile_scopes))
            return roots
        if value.type == "identifier":
            binding = self._resolver.resolve(value)
            if binding is None or binding.scope_id not in volatile_scopes:
                return []
            fn = binding.function_node
            return [fn] if fn is not None else []
        if value.type in MEMBER_TYPES:
            return []
        return [value]

    def _is_sentinel(self, node: Node) -> bool:
        node = unwrap(node)
        sentinel = self._config.no_op_sentinel
        if node.type == "identifier":
            return text(node) == sentinel
        if node.type == "member_expression":
            return text(node.child_by_field_name("property")) == sentinel
        return False

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _visit(self, node: Node, walk: _Walk) -> None:
        ntype = node.type
        if ntype in TYPE_TYPES:
            return

        if ntype in IDENTIFIER_TYPES:
            self._read(node, walk)
        elif ntype in MEMBER_TYPES:
            self._visit_member(node, walk)
        elif ntype == "call_expression":
            self._visit_callee(node.child_by_field_name("function"), walk)
            args = node.child_by_field_name("arguments")
            if args is not None:
                self._visit(args, walk)
        elif ntype == "new_expression":
            args = node.child_by_field_name("arguments")
            if args is not None:
                self._visit(args, walk)
        elif ntype == "binary_expression" and text(node.child_by_field_name("operator")) == "instanceof":
            for side in (node.child_by_field_name("left"), node.child_by_field_name("right")):
                if side is not None and unwrap(side).type not in IDENTIFIER_TYPES | MEMBER_TYPES:
                    self._visit(side, walk)
        elif ntype in ("as_expression", "satisfies_expression"):
            if node.named_children:
                self._visit(node.named_children[0], walk)
        elif ntype in _NAMED_TYPES:
            name = node.child_by_field_name("name")
            for child in node.named_children:
                if name is None or child.start_byte != name.start_byte:
                    self._visit(child, walk)
        elif ntype in _ASSIGNMENT_TYPES:
            left = node.child_by_field_name("left")
            right = node.child_by_field_name("right")
            if left is not None and left.type != "identifier":
                self._visit(left, walk)
            if right is not None:
                self._visit(right, walk)
        else:
            for child in node.named_children:
                self._visit(child, walk)

    def _visit_callee(self, callee: Node | None, walk: _Walk) -> None:
        """Walk what a callee evaluates, without reading the callee itself."""
        if callee is None:
            return
        inner = unwrap(callee)
        if inner.type in IDENTIFIER_TYPES:
            return
        if inner.type in MEMBER_TYPES:
            chain = member_chain(inner)
            if chain.base is None and chain.head is not None:
                self._visit(chain.head, walk)
            for index in chain.indexes:
                self._visit(index, walk)
            return
        self._visit(inner, walk)

    def _visit_member(self, node: Node, walk: _Walk) -> None:
        chain = member_chain(node)
        if chain.base is None:
            if chain.head is not None:
                self._visit(chain.head, walk)
            for index in chain.indexes:
                self._visit(index, walk)
            return

        binding = self._volatile_binding(chain.base, walk)
        if binding is None:
            for index in chain.indexes:
                self._visit(index, walk)
            return
        if binding.kind is BindingKind.REST:
            walk.record(ValuePath.of_rest(binding.name))
        else:
            walk.record(ValuePath.of_chain(chain, node))

    def _read(self, ident: Node, walk: _Walk) -> None:
        binding = self._volatile_binding(ident, walk)
        if binding is None:
            return
        if binding.kind is BindingKind.REST:
            walk.record(ValuePath.of_rest(binding.name))
        else:
            walk.record(ValuePath.of_name(text(ident)))

    def _volatile_binding(self, ident: Node, walk: _Walk) -> Binding | None:
        """Binding of ``ident`` when it must appear in the key, else None."""
        if text(ident) in _IGNORED_NAMES:
            return None
        binding = self._resolver.resolve(ident)
        if binding is None or binding.kind is BindingKind.TYPE:
            return None
        if binding.scope_id not in walk.volatile:
            return None
        if contains(walk.container, self._resolver.scope(binding.scope_id).node):
            return None
        return binding
