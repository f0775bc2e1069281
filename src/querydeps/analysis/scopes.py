"""Lexical scope arena and identifier resolution for JS/TS trees.

Scopes are stored in a flat arena indexed by integer id; each scope keeps
its parent id and a ``name -> binding id`` table, so the scope chain is an
implicit tree without object cycles. The arena is built in one walk over
the syntax tree and is read-only afterwards.

Scope-introducing nodes:
- program (file scope, id 0)
- every function-like node (parameters and body share one scope)
- statement blocks that are not a function body
- ``for`` / ``for...in`` / ``for...of`` statements and ``catch`` clauses

``var`` declarations hoist to the nearest function (or program) scope;
``let``/``const``, functions, classes and type declarations bind in the
scope where they appear.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from querydeps.parsing.nodes import (
    FUNCTION_TYPES,
    Node,
    is_function,
    node_key,
    text,
    unwrap,
)

_BLOCK_SCOPE_TYPES = frozenset({"statement_block", "for_statement", "for_in_statement", "catch_clause"})
_CLASS_DECLARATION_TYPES = frozenset({"class_declaration", "abstract_class_declaration"})
_TYPE_DECLARATION_TYPES = frozenset({"type_alias_declaration", "interface_declaration", "enum_declaration"})


class BindingKind(Enum):
    """How a name was declared."""

    PARAMETER = "parameter"
    LOCAL = "local"
    DESTRUCTURED = "destructured"
    REST = "rest"
    FUNCTION = "function"
    CLASS = "class"
    IMPORT = "import"
    TYPE = "type"


@dataclass
class Binding:
    """A declaration site."""

    binding_id: int
    name: str
    kind: BindingKind
    scope_id: int
    node: Node  # the declared identifier
    declaration: Node | None = None  # variable_declarator, function or class node
    param_index: int | None = None
    is_const: bool = False

    @property
    def initializer(self) -> Node | None:
        """Initializer of a ``variable_declarator`` binding."""
        if self.declaration is None or self.declaration.type != "variable_declarator":
            return None
        return self.declaration.child_by_field_name("value")

    @property
    def function_node(self) -> Node | None:
        """Function bound by a declaration or a function-valued initializer."""
        if self.kind is BindingKind.FUNCTION and is_function(self.declaration):
            return self.declaration
        init = self.initializer
        if init is not None and is_function(unwrap(init)):
            return unwrap(init)
        return None


@dataclass
class Scope:
    """One lexical scope in the arena."""

    scope_id: int
    parent_id: int | None
    kind: str  # program, function, block
    node: Node
    bindings: dict[str, int] = field(default_factory=dict)


class ScopeResolver:
    """Scope arena for one syntax tree.

    Usage::

        resolver = ScopeResolver(parse_result.root_node)
        binding = resolver.resolve(identifier_node)
    """

    def __init__(self, root: Node) -> None:
        self.root = root
        self.scopes: list[Scope] = []
        self.bindings: list[Binding] = []
        self._scope_by_node: dict[tuple[int, int, str], int] = {}
        self._build()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def scope(self, scope_id: int) -> Scope:
        return self.scopes[scope_id]

    def scope_for_node(self, node: Node) -> Scope | None:
        """Scope introduced by ``node`` itself, if any."""
        scope_id = self._scope_by_node.get(node_key(node))
        return None if scope_id is None else self.scopes[scope_id]

    def scope_of(self, node: Node) -> int:
        """Innermost scope containing ``node`` (excluding one ``node`` introduces)."""
        cur = node.parent
        while cur is not None:
            scope_id = self._scope_by_node.get(node_key(cur))
            if scope_id is not None:
                return scope_id
            cur = cur.parent
        return 0

    def chain(self, scope_id: int) -> list[int]:
        """Scope ids from ``scope_id`` outward to the program scope."""
        ids: list[int] = []
        cur: int | None = scope_id
        while cur is not None:
            ids.append(cur)
            cur = self.scopes[cur].parent_id
        return ids

    def is_within(self, scope_id: int, ancestor_id: int) -> bool:
        return ancestor_id in self.chain(scope_id)

    def enclosing_functions(self, node: Node) -> list[Scope]:
        """Function scopes enclosing ``node``, innermost first."""
        return [
            self.scopes[sid]
            for sid in self.chain(self.scope_of(node))
            if self.scopes[sid].kind == "function"
        ]

    def lookup(self, name: str, scope_id: int) -> Binding | None:
        for sid in self.chain(scope_id):
            binding_id = self.scopes[sid].bindings.get(name)
            if binding_id is not None:
                return self.bindings[binding_id]
        return None

    def resolve(self, identifier: Node) -> Binding | None:
        """Binding an identifier reference refers to, or None for globals."""
        return self.lookup(text(identifier), self.scope_of(identifier))

    # ------------------------------------------------------------------
    # Arena construction
    # ------------------------------------------------------------------

    def _new_scope(self, node: Node, kind: str, parent_id: int | None) -> int:
        scope_id = len(self.scopes)
        self.scopes.append(Scope(scope_id=scope_id, parent_id=parent_id, kind=kind, node=node))
        self._scope_by_node[node_key(node)] = scope_id
        return scope_id

    def _bind(
        self,
        name_node: Node,
        kind: BindingKind,
        scope_id: int,
        declaration: Node | None = None,
        param_index: int | None = None,
        is_const: bool = False,
    ) -> None:
        name = text(name_node)
        if not name:
            return
        binding = Binding(
            binding_id=len(self.bindings),
            name=name,
            kind=kind,
            scope_id=scope_id,
            node=name_node,
            declaration=declaration,
            param_index=param_index,
            is_const=is_const,
        )
        self.bindings.append(binding)
        self.scopes[scope_id].bindings[name] = binding.binding_id

    def _build(self) -> None:
        program = self._new_scope(self.root, "program", None)
        for child in self.root.children:
            self._walk(child, program, program)

    def _walk(self, node: Node, scope_id: int, fn_scope_id: int) -> None:
        ntype = node.type

        if ntype in FUNCTION_TYPES:
            self._enter_function(node, scope_id)
            return

        if ntype in _BLOCK_SCOPE_TYPES:
            scope_id = self._new_scope(node, "block", scope_id)
            if ntype == "catch_clause":
                param = node.child_by_field_name("parameter")
                if param is not None:
                    self._bind_pattern(param, BindingKind.LOCAL, scope_id)
            elif ntype == "for_in_statement":
                self._bind_for_in(node, scope_id, fn_scope_id)

        elif ntype == "variable_declarator":
            self._bind_declarator(node, scope_id, fn_scope_id)

        elif ntype in _CLASS_DECLARATION_TYPES:
            name = node.child_by_field_name("name")
            if name is not None:
                self._bind(name, BindingKind.CLASS, scope_id, declaration=node)

        elif ntype in _TYPE_DECLARATION_TYPES:
            name = node.child_by_field_name("name")
            if name is not None:
                self._bind(name, BindingKind.TYPE, scope_id, declaration=node)
            return

        elif ntype == "import_statement":
            self._bind_import(node)
            return

        for child in node.children:
            self._walk(child, scope_id, fn_scope_id)

    def _enter_function(self, node: Node, parent_id: int) -> None:
        if node.type in ("function_declaration", "generator_function_declaration"):
            name = node.child_by_field_name("name")
            if name is not None:
                self._bind(name, BindingKind.FUNCTION, parent_id, declaration=node)

        scope_id = self._new_scope(node, "function", parent_id)

        # A named function expression sees its own name
        if node.type in ("function_expression", "function", "generator_function"):
            name = node.child_by_field_name("name")
            if name is not None:
                self._bind(name, BindingKind.FUNCTION, scope_id, declaration=node)

        params = node.child_by_field_name("parameters")
        single = node.child_by_field_name("parameter")
        param_nodes = [single] if single is not None else (params.named_children if params else [])
        index = 0
        for param in param_nodes:
            if param.type == "comment":
                continue
            self._bind_parameter(param, index, scope_id)
            index += 1

        body = node.child_by_field_name("body")
        if body is None:
            return
        if body.type == "statement_block":
            # Function body shares the function scope
            for child in body.children:
                self._walk(child, scope_id, scope_id)
        else:
            self._walk(body, scope_id, scope_id)
        if params is not None:
            # Default values may contain nested functions
            for param in param_nodes:
                self._walk_defaults(param, scope_id)

    def _walk_defaults(self, param: Node, scope_id: int) -> None:
        for child in param.named_children:
            if child.type in FUNCTION_TYPES:
                self._enter_function(child, scope_id)
            else:
                self._walk_defaults(child, scope_id)

    def _bind_parameter(self, param: Node, index: int, scope_id: int) -> None:
        pattern = param
        if param.type in ("required_parameter", "optional_parameter"):
            pattern = param.child_by_field_name("pattern") or param
        if pattern.type == "assignment_pattern":
            pattern = pattern.child_by_field_name("left") or pattern

        if pattern.type == "identifier":
            self._bind(pattern, BindingKind.PARAMETER, scope_id, declaration=param, param_index=index)
        elif pattern.type == "rest_pattern":
            target = _rest_target(pattern)
            if target is not None and target.type == "identifier":
                self._bind(target, BindingKind.REST, scope_id, declaration=param, param_index=index)
            elif target is not None:
                self._bind_pattern(target, BindingKind.DESTRUCTURED, scope_id, param, index)
        else:
            self._bind_pattern(pattern, BindingKind.DESTRUCTURED, scope_id, param, index)

    def _bind_pattern(
        self,
        pattern: Node,
        kind: BindingKind,
        scope_id: int,
        declaration: Node | None = None,
        param_index: int | None = None,
        is_const: bool = False,
    ) -> None:
        """Bind every identifier a (possibly destructuring) pattern declares."""
        ptype = pattern.type
        if ptype in ("identifier", "shorthand_property_identifier_pattern"):
            self._bind(pattern, kind, scope_id, declaration, param_index, is_const)
        elif ptype == "pair_pattern":
            value = pattern.child_by_field_name("value")
            if value is not None:
                self._bind_pattern(value, kind, scope_id, declaration, param_index, is_const)
        elif ptype in ("object_assignment_pattern", "assignment_pattern"):
            left = pattern.child_by_field_name("left")
            if left is not None:
                self._bind_pattern(left, kind, scope_id, declaration, param_index, is_const)
        elif ptype == "rest_pattern":
            target = _rest_target(pattern)
            if target is not None:
                self._bind_pattern(target, kind, scope_id, declaration, param_index, is_const)
        elif ptype in ("object_pattern", "array_pattern"):
            for child in pattern.named_children:
                self._bind_pattern(child, kind, scope_id, declaration, param_index, is_const)

    def _bind_declarator(self, node: Node, scope_id: int, fn_scope_id: int) -> None:
        name = node.child_by_field_name("name")
        if name is None:
            return
        decl = node.parent
        keyword = decl.children[0].type if decl is not None and decl.children else ""
        target_scope = fn_scope_id if decl is not None and decl.type == "variable_declaration" else scope_id
        is_const = keyword == "const"
        kind = BindingKind.LOCAL if name.type == "identifier" else BindingKind.DESTRUCTURED
        self._bind_pattern(name, kind, target_scope, declaration=node, is_const=is_const)

    def _bind_for_in(self, node: Node, scope_id: int, fn_scope_id: int) -> None:
        kind_node = node.child_by_field_name("kind")
        left = node.child_by_field_name("left")
        if kind_node is None or left is None:
            return
        keyword = text(kind_node)
        target_scope = fn_scope_id if keyword == "var" else scope_id
        kind = BindingKind.LOCAL if left.type == "identifier" else BindingKind.DESTRUCTURED
        self._bind_pattern(left, kind, target_scope, declaration=node, is_const=keyword == "const")

    def _bind_import(self, node: Node) -> None:
        for clause in node.named_children:
            if clause.type != "import_clause":
                continue
            for child in clause.named_children:
                if child.type == "identifier":
                    self._bind(child, BindingKind.IMPORT, 0, declaration=node)
                elif child.type == "namespace_import":
                    for ident in child.named_children:
                        if ident.type == "identifier":
                            self._bind(ident, BindingKind.IMPORT, 0, declaration=node)
                elif child.type == "named_imports":
                    for spec in child.named_children:
                        if spec.type != "import_specifier":
                            continue
                        local = spec.child_by_field_name("alias") or spec.child_by_field_name("name")
                        if local is not None:
                            self._bind(local, BindingKind.IMPORT, 0, declaration=node)


def _rest_target(rest: Node) -> Node | None:
    for child in rest.named_children:
        if child.type != "type_annotation":
            return child
    return None
