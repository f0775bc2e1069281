"""Key flattening: turn a cache key expression into covered value paths.

Key factories are inlined by substitution: when a key element is a call
whose callee resolves to a function returning an array literal, the
function's parameters are bound to the call's argument expressions and
the returned literal is flattened in that environment. Inlining is
bounded by ``max_inline_depth`` and rejects cycles through a set of
factories currently being inlined; a rejected call degrades to an opaque
atom that still contributes the paths embedded in its arguments.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

import structlog

from querydeps.analysis.paths import KeyAtom, ValuePath
from querydeps.analysis.scopes import Binding, BindingKind, ScopeResolver
from querydeps.config.models import AnalyzerConfig
from querydeps.parsing.nodes import (
    Node,
    Shape,
    call_arguments,
    find_property,
    function_parameters,
    is_function,
    member_chain,
    node_key,
    returned_expression,
    shape,
    text,
    unwrap,
)

log = structlog.get_logger(__name__)

Span = tuple[int, int]


@dataclass
class _Substitution:
    """Argument expressions bound to one factory parameter.

    ``env`` is the environment the arguments are evaluated in.
    """

    args: tuple[Node, ...]
    env: dict[int, _Substitution]
    rest: bool = False


Env = dict[int, _Substitution]


def _span(node: Node) -> Span:
    return (node.start_byte, node.end_byte)


def _function_of(binding: Binding | None) -> Node | None:
    return None if binding is None else binding.function_node


def _param_default(param: Node) -> Node | None:
    if param.type in ("required_parameter", "optional_parameter"):
        return param.child_by_field_name("value")
    if param.type == "assignment_pattern":
        return param.child_by_field_name("right")
    return None


class KeyFlattener:
    """Flattens key expressions of one tree."""

    def __init__(self, resolver: ScopeResolver, config: AnalyzerConfig) -> None:
        self._resolver = resolver
        self._max_depth = config.max_inline_depth

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def flatten(self, key: Node) -> list[KeyAtom]:
        """Flatten a key expression into atoms, in key order."""
        node = unwrap(key)
        alias = self._array_alias(node)
        if alias is not None:
            return self._flatten(alias, {}, None, frozenset())
        origin = None if node.type == "array" else _span(node)
        return self._flatten(node, {}, origin, frozenset())

    def key_array(self, key: Node, volatile_scopes: frozenset[int] | None = None) -> Node | None:
        """Directly editable array literal behind a key, if any.

        Either the key itself (after unwrapping casts/parentheses) or the
        initializer of a single direct ``const`` alias. When
        ``volatile_scopes`` is given, an alias declared outside those scopes
        is shared by other call sites and is not returned.
        """
        node = unwrap(key)
        if node.type == "array":
            return node
        alias = self._array_alias(node)
        if alias is None or volatile_scopes is None:
            return alias
        binding = self._resolver.resolve(node)
        if binding is None or binding.scope_id not in volatile_scopes:
            return None
        return alias

    # ------------------------------------------------------------------
    # Shape dispatch
    # ------------------------------------------------------------------

    def _flatten(self, node: Node, env: Env, origin: Span | None, stack: frozenset) -> list[KeyAtom]:
        node = unwrap(node)
        kind = shape(node)

        if kind is Shape.ARRAY:
            atoms: list[KeyAtom] = []
            for element in node.named_children:
                if element.type == "comment":
                    continue
                element_origin = origin or _span(element)
                if element.type == "spread_element":
                    atoms.extend(self._flatten_spread(element, env, element_origin, stack))
                else:
                    atoms.extend(self._flatten(element, env, element_origin, stack))
            return atoms

        origin = origin or _span(node)

        if kind is Shape.IDENTIFIER:
            sub = self._substitution(node, env)
            if sub is not None:
                return self._substitute(sub, origin, stack)
            return [KeyAtom(ValuePath.of_name(text(node)), origin)]

        if kind is Shape.MEMBER:
            return self._flatten_member(node, env, origin, stack)

        if kind is Shape.CALL:
            inlined = self._inline(node, env, origin, stack)
            if inlined is not None:
                return inlined
            return self._embedded(call_arguments(node), env, origin, stack) or [KeyAtom(None, origin)]

        if kind is Shape.SPREAD:
            return self._flatten_spread(node, env, origin, stack)

        if kind is Shape.TEMPLATE:
            atoms = [KeyAtom(None, origin)]
            for part in node.named_children:
                if part.type == "template_substitution":
                    atoms.extend(self._embedded(part.named_children, env, origin, stack))
            return atoms

        if kind in (Shape.LITERAL, Shape.FUNCTION):
            # Function-valued elements are deferred producers and cover nothing
            return [KeyAtom(None, origin)]

        if kind is Shape.TYPE:
            return []

        if kind is Shape.OBJECT:
            atoms = []
            for child in node.named_children:
                if child.type == "pair":
                    key = child.child_by_field_name("key")
                    if key is not None and key.type == "computed_property_name":
                        atoms.extend(self._embedded(key.named_children, env, origin, stack))
                    value = child.child_by_field_name("value")
                    if value is not None:
                        atoms.extend(self._flatten(value, env, origin, stack))
                elif child.type in ("shorthand_property_identifier", "spread_element"):
                    atoms.extend(self._flatten(child, env, origin, stack))
            return atoms or [KeyAtom(None, origin)]

        if kind is Shape.NEW:
            args = node.child_by_field_name("arguments")
            children = args.named_children if args is not None else []
            return self._embedded(children, env, origin, stack) or [KeyAtom(None, origin)]

        # Conditional, unary, binary, await, ...: opaque, contributes embedded paths
        return self._embedded(node.named_children, env, origin, stack) or [KeyAtom(None, origin)]

    def _embedded(self, nodes: list[Node], env: Env, origin: Span, stack: frozenset) -> list[KeyAtom]:
        atoms: list[KeyAtom] = []
        for child in nodes:
            if child.type == "comment" or shape(child) is Shape.TYPE:
                continue
            atoms.extend(self._flatten(child, env, origin, stack))
        return atoms

    def _flatten_member(self, node: Node, env: Env, origin: Span, stack: frozenset) -> list[KeyAtom]:
        chain = member_chain(node)
        atoms: list[KeyAtom] = []
        path = self._path_of(node, env)
        if path is not None:
            atoms.append(KeyAtom(path, origin))
        elif chain.base is not None:
            sub = self._substitution(chain.base, env)
            if sub is not None:
                atoms.extend(self._substitute(sub, origin, stack))
        elif chain.head is not None:
            atoms.extend(self._flatten(chain.head, env, origin, stack))
        atoms.extend(self._embedded(chain.indexes, env, origin, stack))
        return atoms or [KeyAtom(None, origin)]

    def _flatten_spread(self, spread: Node, env: Env, origin: Span, stack: frozenset) -> list[KeyAtom]:
        inner = [c for c in spread.named_children if c.type != "comment"]
        if not inner:
            return []
        return self._spread_value(inner[0], env, origin, stack)

    def _spread_value(self, node: Node, env: Env, origin: Span, stack: frozenset) -> list[KeyAtom]:
        """Atoms contributed by ``...node``."""
        node = unwrap(node)
        if node.type == "identifier":
            sub = self._substitution(node, env)
            if sub is not None:
                if sub.rest:
                    return self._substitute(sub, origin, stack)
                if not sub.args:
                    return [KeyAtom(None, origin)]
                return self._spread_value(sub.args[0], sub.env, origin, stack)
            alias = self._array_alias(node)
            if alias is not None:
                return self._flatten(alias, {}, origin, stack)
            binding = self._resolver.resolve(node)
            if binding is not None and binding.kind is BindingKind.REST:
                return [KeyAtom(ValuePath.of_rest(binding.name), origin, spread=True)]
            return [KeyAtom(ValuePath.of_name(text(node)), origin, spread=True)]
        if node.type in ("array", "call_expression"):
            return self._flatten(node, env, origin, stack)
        return [replace(atom, spread=True) for atom in self._flatten(node, env, origin, stack)]

    # ------------------------------------------------------------------
    # Substitution
    # ------------------------------------------------------------------

    def _substitution(self, ident: Node, env: Env) -> _Substitution | None:
        if not env:
            return None
        binding = self._resolver.resolve(ident)
        if binding is None:
            return None
        return env.get(binding.binding_id)

    def _substitute(self, sub: _Substitution, origin: Span, stack: frozenset) -> list[KeyAtom]:
        if not sub.args:
            return [KeyAtom(None, origin)]
        atoms: list[KeyAtom] = []
        for arg in sub.args:
            atoms.extend(self._flatten(arg, sub.env, origin, stack))
        return atoms

    def _path_of(self, node: Node, env: Env) -> ValuePath | None:
        """Value path of an identifier/member expression after substitution."""
        node = unwrap(node)
        if node.type not in ("identifier", "shorthand_property_identifier", "member_expression", "subscript_expression"):
            return None
        chain = member_chain(node)
        if chain.base is None:
            return None
        sub = self._substitution(chain.base, env)
        if sub is None:
            return ValuePath(chain.steps, text=text(node))
        if sub.rest or len(sub.args) != 1:
            return None
        base_path = self._path_of(sub.args[0], sub.env)
        if base_path is None:
            return None
        return base_path.extend(chain.steps[1:])

    # ------------------------------------------------------------------
    # Factory inlining
    # ------------------------------------------------------------------

    def _inline(self, call: Node, env: Env, origin: Span, stack: frozenset) -> list[KeyAtom] | None:
        callee = call.child_by_field_name("function")
        fn = self._resolve_factory(callee) if callee is not None else None
        if fn is None:
            return None

        fn_key = node_key(fn)
        if fn_key in stack:
            log.debug("factory_inline_rejected", reason="cycle", callee=text(callee))
            return None
        if len(stack) >= self._max_depth:
            log.debug("factory_inline_rejected", reason="depth", callee=text(callee))
            return None

        returned = returned_expression(fn)
        if returned is None or unwrap(returned).type != "array":
            log.debug("factory_inline_rejected", reason="not_array", callee=text(callee))
            return None

        scope = self._resolver.scope_for_node(fn)
        params = function_parameters(fn)
        args = call_arguments(call)
        factory_env: Env = {}
        has_rest = False
        if scope is not None:
            for binding_id in scope.bindings.values():
                binding = self._resolver.bindings[binding_id]
                if binding.param_index is None:
                    continue
                factory_env[binding_id] = self._bind_argument(binding, params, args, env)
                has_rest = has_rest or binding.kind is BindingKind.REST

        atoms = self._flatten(returned, factory_env, origin, stack | {fn_key})
        if not has_rest:
            # Arguments beyond the declared parameters stay visible to the callee
            for extra in args[len(params) :]:
                atoms.extend(self._flatten(extra, env, origin, stack))
        return [replace(atom, via_factory=True) for atom in atoms]

    def _bind_argument(
        self,
        binding: Binding,
        params: list[Node],
        args: list[Node],
        caller_env: Env,
    ) -> _Substitution:
        index = binding.param_index or 0
        if binding.kind is BindingKind.REST:
            return _Substitution(tuple(args[index:]), caller_env, rest=True)
        if index < len(args):
            return _Substitution((args[index],), caller_env)
        default = _param_default(params[index]) if index < len(params) else None
        if default is not None:
            # Defaults are evaluated without substitution
            return _Substitution((default,), {})
        return _Substitution((), caller_env)

    def _resolve_factory(self, callee: Node) -> Node | None:
        """Function node a callee statically refers to, if any."""
        callee = unwrap(callee)
        if callee.type == "identifier":
            return _function_of(self._resolver.resolve(callee))
        if callee.type != "member_expression":
            return None

        chain = member_chain(callee)
        if chain.base is None or chain.indexes:
            return None
        binding = self._resolver.resolve(chain.base)
        if binding is None or binding.initializer is None:
            return None

        value: Node | None = unwrap(binding.initializer)
        for step in chain.steps[1:]:
            if value is None or value.type != "object" or not step.startswith("."):
                return None
            found = find_property(value, step[1:])
            value = unwrap(found[1]) if found is not None else None
        if value is None:
            return None
        if is_function(value):
            return value
        if value.type in ("identifier", "shorthand_property_identifier"):
            return _function_of(self._resolver.resolve(value))
        return None

    def _array_alias(self, node: Node) -> Node | None:
        """Array literal a direct ``const`` alias is initialised with."""
        if node.type not in ("identifier", "shorthand_property_identifier"):
            return None
        binding = self._resolver.resolve(node)
        if binding is None or not binding.is_const or binding.kind is not BindingKind.LOCAL:
            return None
        init = binding.initializer
        if init is None:
            return None
        init = unwrap(init)
        return init if init.type == "array" else None
