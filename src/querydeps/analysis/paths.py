"""Value paths and key atoms."""

from __future__ import annotations

from dataclasses import dataclass, field

from querydeps.parsing.nodes import MemberChain, Node, text


@dataclass(frozen=True, slots=True)
class ValuePath:
    """An access chain rooted at one identifier, e.g. ``props.user.id``.

    ``steps`` holds the base name followed by ``.name`` / ``[index]``
    steps. ``rest`` marks the "all rest arguments" path of a rest
    parameter. ``text`` is display-only and does not take part in equality.
    """

    steps: tuple[str, ...]
    rest: bool = False
    text: str = field(default="", compare=False, hash=False)

    @property
    def base(self) -> str:
        return self.steps[0]

    @property
    def display(self) -> str:
        if self.rest:
            return f"...{self.base}"
        return self.text or "".join(self.steps)

    def is_ancestor_of(self, other: ValuePath) -> bool:
        """True when this path's steps are a (non-strict) prefix of ``other``'s."""
        if len(self.steps) > len(other.steps):
            return False
        return other.steps[: len(self.steps)] == self.steps

    def extend(self, steps: tuple[str, ...], source_text: str = "") -> ValuePath:
        return ValuePath(self.steps + steps, text=source_text or self.display + "".join(steps))

    @classmethod
    def of_name(cls, name: str) -> ValuePath:
        return cls((name,), text=name)

    @classmethod
    def of_rest(cls, name: str) -> ValuePath:
        return cls((name,), rest=True, text=f"...{name}")

    @classmethod
    def of_chain(cls, chain: MemberChain, node: Node) -> ValuePath:
        return cls(chain.steps, text=text(node))


@dataclass(frozen=True, slots=True)
class KeyAtom:
    """One flattened element of a cache key.

    ``path`` is None for literal/opaque markers, which never cover
    anything. ``origin`` is the byte span of the key-level syntax the atom
    is attributed to.
    """

    path: ValuePath | None
    origin: tuple[int, int]
    spread: bool = False
    via_factory: bool = False

    @property
    def is_literal(self) -> bool:
        return self.path is None
