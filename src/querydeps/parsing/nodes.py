"""Helpers over tree-sitter JS/TS nodes.

Expression nodes are classified into a closed set of shapes so the key
flattener and the dependency extractor can dispatch on ``Shape`` instead
of on raw grammar node types. Both the JavaScript and the TypeScript/TSX
grammars are covered; node types that only exist in one of them are
simply never seen by the other.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

Node = Any  # tree_sitter.Node


class Shape(Enum):
    """Expression shape classes."""

    LITERAL = "literal"
    IDENTIFIER = "identifier"
    MEMBER = "member"
    CALL = "call"
    NEW = "new"
    SPREAD = "spread"
    CONDITIONAL = "conditional"
    FUNCTION = "function"
    TEMPLATE = "template"
    ARRAY = "array"
    OBJECT = "object"
    WRAPPER = "wrapper"
    TYPE = "type"
    OTHER = "other"


LITERAL_TYPES = frozenset(
    {"string", "number", "true", "false", "null", "undefined", "regex", "this", "super"}
)
IDENTIFIER_TYPES = frozenset({"identifier", "shorthand_property_identifier"})
MEMBER_TYPES = frozenset({"member_expression", "subscript_expression"})
FUNCTION_TYPES = frozenset(
    {
        "arrow_function",
        "function_expression",
        "function",
        "generator_function",
        "function_declaration",
        "generator_function_declaration",
        "method_definition",
    }
)
WRAPPER_TYPES = frozenset(
    {
        "parenthesized_expression",
        "as_expression",
        "satisfies_expression",
        "non_null_expression",
        "type_assertion",
    }
)
TYPE_TYPES = frozenset(
    {
        "type_annotation",
        "type_arguments",
        "type_parameters",
        "type_alias_declaration",
        "interface_declaration",
        "enum_declaration",
        "ambient_declaration",
        "type_identifier",
        "predefined_type",
        "asserts_annotation",
        "type_predicate_annotation",
        "omitting_type_annotation",
        "opting_type_annotation",
    }
)

_SHAPES: dict[str, Shape] = {
    **{t: Shape.LITERAL for t in LITERAL_TYPES},
    **{t: Shape.IDENTIFIER for t in IDENTIFIER_TYPES},
    **{t: Shape.MEMBER for t in MEMBER_TYPES},
    **{t: Shape.FUNCTION for t in FUNCTION_TYPES},
    **{t: Shape.WRAPPER for t in WRAPPER_TYPES},
    **{t: Shape.TYPE for t in TYPE_TYPES},
    "call_expression": Shape.CALL,
    "new_expression": Shape.NEW,
    "spread_element": Shape.SPREAD,
    "ternary_expression": Shape.CONDITIONAL,
    "template_string": Shape.TEMPLATE,
    "array": Shape.ARRAY,
    "object": Shape.OBJECT,
}

_IDENT_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def shape(node: Node) -> Shape:
    return _SHAPES.get(node.type, Shape.OTHER)


def text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8")


def node_key(node: Node) -> tuple[int, int, str]:
    """Stable identity for a node within one tree."""
    return (node.start_byte, node.end_byte, node.type)


def contains(outer: Node, inner: Node) -> bool:
    return outer.start_byte <= inner.start_byte and inner.end_byte <= outer.end_byte


def unwrap(node: Node) -> Node:
    """Strip parentheses, ``as``/``satisfies`` casts and non-null assertions."""
    while node is not None and node.type in WRAPPER_TYPES:
        inner = node.named_children
        if not inner:
            break
        # `<T>expr` keeps the expression last; every other wrapper keeps it first
        node = inner[-1] if node.type == "type_assertion" else inner[0]
    return node


def is_function(node: Node | None) -> bool:
    return node is not None and node.type in FUNCTION_TYPES


@dataclass
class MemberChain:
    """A member-access chain such as ``a.b[0].c``.

    ``base`` is the root identifier node, or None when the chain is rooted
    at something else (a call result, ``this``...), in which case ``head``
    holds that root expression.
    """

    base: Node | None
    head: Node
    steps: tuple[str, ...]
    indexes: list[Node] = field(default_factory=list)

    @property
    def base_name(self) -> str:
        return text(self.base)


def _index_step(index: Node) -> str:
    if index.type == "string":
        content = text(index)[1:-1]
        if _IDENT_RE.match(content):
            return f".{content}"
        return f'["{content}"]'
    if index.type == "number":
        return f"[{text(index)}]"
    return "[" + "".join(text(index).split()) + "]"


def member_chain(node: Node) -> MemberChain:
    """Decompose an identifier or member expression into a chain.

    Optional chaining, non-null assertions and parentheses inside the chain
    do not produce steps.
    """
    steps: list[str] = []
    indexes: list[Node] = []
    cur = node
    while True:
        if cur.type in WRAPPER_TYPES:
            inner = unwrap(cur)
            if inner is cur:
                break
            cur = inner
        elif cur.type == "member_expression":
            prop = cur.child_by_field_name("property")
            steps.append(f".{text(prop)}")
            cur = cur.child_by_field_name("object")
        elif cur.type == "subscript_expression":
            index = cur.child_by_field_name("index")
            if index is not None:
                steps.append(_index_step(index))
                if index.type not in ("string", "number"):
                    indexes.append(index)
            cur = cur.child_by_field_name("object")
        else:
            break
        if cur is None:
            break

    steps.reverse()
    indexes.reverse()
    if cur is not None and cur.type in IDENTIFIER_TYPES:
        return MemberChain(base=cur, head=cur, steps=(text(cur), *steps), indexes=indexes)
    return MemberChain(base=None, head=cur, steps=tuple(steps), indexes=indexes)


def property_name(node: Node) -> str | None:
    """Static name of an object property key, or None for computed keys."""
    if node is None:
        return None
    if node.type in ("property_identifier", "private_property_identifier", "identifier"):
        return text(node)
    if node.type == "string":
        return text(node)[1:-1]
    if node.type == "number":
        return text(node)
    return None


def object_properties(obj: Node) -> list[tuple[str | None, Node, Node]]:
    """List ``(name, property_node, value_node)`` for an object literal.

    Shorthand properties use the identifier itself as value; method
    shorthand uses the method node as value. Spread entries are skipped.
    """
    props: list[tuple[str | None, Node, Node]] = []
    for child in obj.named_children:
        if child.type == "pair":
            value = child.child_by_field_name("value")
            if value is not None:
                props.append((property_name(child.child_by_field_name("key")), child, value))
        elif child.type == "shorthand_property_identifier":
            props.append((text(child), child, child))
        elif child.type == "method_definition":
            props.append((property_name(child.child_by_field_name("name")), child, child))
    return props


def find_property(obj: Node, name: str) -> tuple[Node, Node] | None:
    """Return ``(property_node, value_node)`` of the last property named ``name``."""
    found = None
    for prop_name, prop, value in object_properties(obj):
        if prop_name == name:
            found = (prop, value)
    return found


def function_parameters(fn: Node) -> list[Node]:
    """Positional parameter nodes of a function-like node."""
    single = fn.child_by_field_name("parameter")
    if single is not None:
        return [single]
    params = fn.child_by_field_name("parameters")
    if params is None:
        return []
    return [p for p in params.named_children if p.type != "comment"]


def returned_expression(fn: Node) -> Node | None:
    """Expression a function returns as its sole/tail result.

    Arrow functions with an expression body return that expression; block
    bodies return the argument of their final ``return`` statement.
    """
    body = fn.child_by_field_name("body")
    if body is None:
        return None
    if body.type != "statement_block":
        return body
    statements = [s for s in body.named_children if s.type != "comment"]
    if not statements or statements[-1].type != "return_statement":
        return None
    values = statements[-1].named_children
    return values[0] if values else None


def callee_name(call: Node) -> str | None:
    """Name used to match a call against hook names (last member property)."""
    fn = unwrap(call.child_by_field_name("function"))
    if fn is None:
        return None
    if fn.type == "identifier":
        return text(fn)
    if fn.type == "member_expression":
        return text(fn.child_by_field_name("property"))
    return None


def call_arguments(call: Node) -> list[Node]:
    args = call.child_by_field_name("arguments")
    if args is None or args.type != "arguments":
        return []
    return [a for a in args.named_children if a.type != "comment"]


def position(node: Node) -> tuple[int, int, int, int]:
    """1-based line, 0-based column span of a node."""
    return (
        node.start_point[0] + 1,
        node.start_point[1],
        node.end_point[0] + 1,
        node.end_point[1],
    )
