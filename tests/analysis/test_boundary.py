"""Tests for reactive boundary detection."""

from __future__ import annotations

import pytest

from querydeps.analysis.boundary import BoundaryLocator, function_name
from querydeps.analysis.scopes import ScopeResolver
from querydeps.config.models import AnalyzerConfig


def _locator(root, **config) -> tuple[BoundaryLocator, ScopeResolver]:
    resolver = ScopeResolver(root)
    return BoundaryLocator(resolver, AnalyzerConfig(**config)), resolver


class TestFunctionName:
    """Names are recovered from the syntax around a function."""

    @pytest.mark.parametrize(
        ("source", "fn_type", "expected"),
        [
            ("function Comp() {}", "function_declaration", "Comp"),
            ("const useThing = () => 1;", "arrow_function", "useThing"),
            ("const Comp = function () {};", "function_expression", "Comp"),
            ("const Comp = memo(() => null);", "arrow_function", "Comp"),
            ("const obj = { detail: (id) => id };", "arrow_function", "detail"),
            ("exports.useData = () => 1;", "arrow_function", "useData"),
            ("class A { render() {} }", "method_definition", "render"),
            ("run(() => 1);", "arrow_function", None),
        ],
    )
    def test_function_name(self, parse, find, source, fn_type, expected) -> None:
        fn = find(parse(source).root_node, fn_type)
        assert function_name(fn) == expected


class TestReactiveNames:
    """Component and hook naming heuristic."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Component", True),
            ("useThing", True),
            ("use", True),
            ("use2d", True),
            ("user", False),
            ("fetchData", False),
            ("", False),
            (None, False),
        ],
    )
    def test_default_heuristic(self, parse, name, expected) -> None:
        locator, _ = _locator(parse("").root_node)
        assert locator.is_reactive_name(name) is expected

    def test_capitalized_components_can_be_disabled(self, parse) -> None:
        locator, _ = _locator(parse("").root_node, capitalized_components=False)
        assert not locator.is_reactive_name("Component")
        assert locator.is_reactive_name("useThing")

    def test_custom_prefix(self, parse) -> None:
        locator, _ = _locator(parse("").root_node, hook_prefixes=["with"])
        assert locator.is_reactive_name("withData")
        assert not locator.is_reactive_name("useData")


class TestBoundary:
    """Boundary and volatile scopes of call sites."""

    SOURCE = """
    function Comp() {
      const a = 1;
      function inner() {
        const b = 2;
        if (b) {
          useQuery({ queryKey: [a, b], queryFn: () => a + b });
        }
      }
    }
    useQuery({ queryKey: [], queryFn: () => 1 });
    """

    def test_nearest_reactive_function(self, parse, find) -> None:
        root = parse(self.SOURCE).root_node
        locator, _ = _locator(root)
        site = find(root, "object", index=0)

        boundary = locator.boundary(site)

        assert boundary is not None
        assert function_name(boundary.node) == "Comp"

    def test_volatile_scopes_span_site_to_boundary(self, parse, find) -> None:
        root = parse(self.SOURCE).root_node
        locator, resolver = _locator(root)
        site = find(root, "object", index=0)

        volatile = locator.volatile_scopes(site)

        kinds = sorted(resolver.scope(s).kind for s in volatile)
        assert kinds == ["block", "function", "function"]
        assert 0 not in volatile

    def test_outermost_function_without_reactive_name(self, parse, find) -> None:
        root = parse("function outer() { const f = () => ({ queryKey: [], queryFn: g }); }").root_node
        locator, _ = _locator(root)

        boundary = locator.boundary(find(root, "object"))

        assert boundary is not None
        assert boundary.node.type == "function_declaration"

    def test_top_level_site_has_no_boundary(self, parse, find) -> None:
        root = parse(self.SOURCE).root_node
        locator, _ = _locator(root)
        site = find(root, "object", index=-1)

        assert locator.boundary(site) is None
        assert locator.volatile_scopes(site) == frozenset()
