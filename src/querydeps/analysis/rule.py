"""Query key coverage rule.

Locates query option objects in a tree and runs the analysis pipeline on
each of them: flatten the key, extract the fetch function's reads, diff
them and synthesize a fix for the key literal.
"""

from __future__ import annotations

import structlog

from querydeps.analysis.boundary import BoundaryLocator
from querydeps.analysis.coverage import missing as missing_paths
from querydeps.analysis.extract import DependencyExtractor
from querydeps.analysis.fix import synthesize
from querydeps.analysis.flatten import KeyFlattener
from querydeps.analysis.models import Diagnostic
from querydeps.analysis.scopes import ScopeResolver
from querydeps.config.models import AnalyzerConfig
from querydeps.parsing.nodes import (
    Node,
    call_arguments,
    callee_name,
    find_property,
    node_key,
    object_properties,
    position,
    unwrap,
)
from querydeps.parsing.treesitter import ParseResult

log = structlog.get_logger(__name__)

MISSING_DEPS_MESSAGE = "The following dependencies are missing in your queryKey: {deps}"


class _TreeContext:
    """Per-tree analysis components, built once and shared by all sites."""

    def __init__(self, parse_result: ParseResult, config: AnalyzerConfig) -> None:
        self.source = parse_result.source
        self.resolver = ScopeResolver(parse_result.root_node)
        self.boundary = BoundaryLocator(self.resolver, config)
        self.flattener = KeyFlattener(self.resolver, config)
        self.extractor = DependencyExtractor(self.resolver, config)


class QueryKeyRule:
    """Reports query keys that miss values their fetch function reads.

    Usage::

        rule = QueryKeyRule(AnalyzerConfig())
        diagnostics = rule.check(parse_result, "src/todos.tsx")
    """

    def __init__(self, config: AnalyzerConfig | None = None) -> None:
        self._config = config or AnalyzerConfig()
        self._hook_names = frozenset(self._config.hook_names)

    def check(self, parse_result: ParseResult, path: str = "<input>") -> list[Diagnostic]:
        diagnostics, _ = self.analyze(parse_result, path)
        return diagnostics

    def analyze(self, parse_result: ParseResult, path: str = "<input>") -> tuple[list[Diagnostic], int]:
        """Check every site of a tree; return diagnostics and the number of sites checked."""
        ctx = _TreeContext(parse_result, self._config)
        diagnostics: list[Diagnostic] = []
        checked = 0
        for site in self.find_sites(parse_result.root_node):
            key_prop = find_property(site, self._config.key_field)
            fetch_prop = find_property(site, self._config.fetch_field)
            if key_prop is None or fetch_prop is None:
                continue
            checked += 1
            diagnostic = self._check_site(ctx, site, key_prop[1], fetch_prop[1], path)
            if diagnostic is not None:
                diagnostics.append(diagnostic)
        return diagnostics, checked

    # ------------------------------------------------------------------
    # Call-site location
    # ------------------------------------------------------------------

    def find_sites(self, root: Node) -> list[Node]:
        """Query option objects in document order, each at most once."""
        hook_args: set[tuple[int, int, str]] = set()
        sites: list[Node] = []
        seen: set[tuple[int, int, str]] = set()

        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == "call_expression" and callee_name(node) in self._hook_names:
                args = call_arguments(node)
                if args:
                    hook_args.add(node_key(unwrap(args[0])))
            elif node.type == "object":
                key = node_key(node)
                if key not in seen and (key in hook_args or self._declares_query(node)):
                    seen.add(key)
                    sites.append(node)
            stack.extend(reversed(node.children))
        return sites

    def _declares_query(self, obj: Node) -> bool:
        if not self._config.detect_option_objects:
            return False
        names = {name for name, _, _ in object_properties(obj)}
        return self._config.key_field in names and self._config.fetch_field in names

    # ------------------------------------------------------------------
    # Per-site pipeline
    # ------------------------------------------------------------------

    def _check_site(
        self,
        ctx: _TreeContext,
        site: Node,
        key_value: Node,
        fetch_value: Node,
        path: str,
    ) -> Diagnostic | None:
        siblings = []
        for name in self._config.callback_fields:
            found = find_property(site, name)
            if found is not None:
                siblings.append(found[1])

        volatile = ctx.boundary.volatile_scopes(site)
        extracted = ctx.extractor.extract(fetch_value, siblings, volatile)
        atoms = ctx.flattener.flatten(key_value)
        line, column, end_line, end_column = position(key_value)
        log.debug(
            "site_checked",
            path=path,
            line=line,
            extracted=[p.display for p in extracted],
            atoms=len(atoms),
        )

        missing = missing_paths(extracted, atoms)
        if not missing:
            return None

        names = [p.display for p in missing]
        fix = synthesize(missing, ctx.flattener.key_array(key_value, volatile), ctx.source)
        log.debug("missing_dependencies", path=path, line=line, missing=names, fixable=fix is not None)
        return Diagnostic(
            path=path,
            line=line,
            column=column,
            end_line=end_line,
            end_column=end_column,
            message=MISSING_DEPS_MESSAGE.format(deps=", ".join(names)),
            missing=names,
            fix=fix,
        )
