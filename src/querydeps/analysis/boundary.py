"""Reactive boundary detection.

The boundary is the nearest enclosing component- or hook-shaped function
of a call site. Bindings owned by scopes from the call site up to the
boundary (inclusive) are volatile and must appear in the cache key;
bindings outside it are stable.

Shape detection is name based and therefore heuristic: a function is
component-shaped when its name starts with an upper-case letter and
hook-shaped when its name starts with a configured prefix (``use`` by
default) followed by an upper-case letter or digit.
"""

from __future__ import annotations

from querydeps.analysis.scopes import Scope, ScopeResolver
from querydeps.config.models import AnalyzerConfig
from querydeps.parsing.nodes import Node, property_name, text


def function_name(fn: Node) -> str | None:
    """Best-effort name of a function-like node."""
    name = fn.child_by_field_name("name")
    if name is not None and fn.type != "method_definition":
        return text(name)
    if fn.type == "method_definition":
        return property_name(name)

    parent = fn.parent
    # const Comp = memo(() => ...) / forwardRef(function (props, ref) {...})
    if parent is not None and parent.type == "arguments":
        call = parent.parent
        if call is not None and call.type == "call_expression":
            parent = call.parent
            fn = call
    while parent is not None and parent.type in ("parenthesized_expression", "as_expression", "satisfies_expression"):
        fn = parent
        parent = parent.parent
    if parent is None:
        return None

    if parent.type == "variable_declarator":
        target = parent.child_by_field_name("name")
        return text(target) if target is not None and target.type == "identifier" else None
    if parent.type == "pair":
        return property_name(parent.child_by_field_name("key"))
    if parent.type == "assignment_expression":
        left = parent.child_by_field_name("left")
        if left is None:
            return None
        if left.type == "member_expression":
            return text(left.child_by_field_name("property"))
        return text(left) if left.type == "identifier" else None
    if parent.type in ("public_field_definition", "field_definition"):
        return property_name(parent.child_by_field_name("name") or parent.child_by_field_name("property"))
    return None


class BoundaryLocator:
    """Finds the reactive boundary of call sites in one tree."""

    def __init__(self, resolver: ScopeResolver, config: AnalyzerConfig) -> None:
        self._resolver = resolver
        self._config = config

    def is_reactive_name(self, name: str | None) -> bool:
        if not name:
            return False
        if self._config.capitalized_components and name[0].isupper():
            return True
        for prefix in self._config.hook_prefixes:
            if name == prefix:
                return True
            if name.startswith(prefix) and len(name) > len(prefix):
                nxt = name[len(prefix)]
                if nxt.isupper() or nxt.isdigit():
                    return True
        return False

    def boundary(self, call_site: Node) -> Scope | None:
        """Nearest reactive function scope, else the outermost function scope.

        Returns None when the call site is not inside any function.
        """
        functions = self._resolver.enclosing_functions(call_site)
        for scope in functions:
            if self.is_reactive_name(function_name(scope.node)):
                return scope
        return functions[-1] if functions else None

    def volatile_scopes(self, call_site: Node) -> frozenset[int]:
        """Scope ids between the call site and its boundary, inclusive."""
        boundary = self.boundary(call_site)
        if boundary is None:
            return frozenset()
        ids: list[int] = []
        for scope_id in self._resolver.chain(self._resolver.scope_of(call_site)):
            ids.append(scope_id)
            if scope_id == boundary.scope_id:
                break
        return frozenset(ids)
