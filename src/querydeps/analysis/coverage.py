"""Coverage of extracted dependencies by flattened key atoms."""

from __future__ import annotations

from querydeps.analysis.paths import KeyAtom, ValuePath


def is_covered(path: ValuePath, atoms: list[KeyAtom]) -> bool:
    """True when some atom path equals ``path`` or is one of its ancestors.

    A rest path (``...args``) is only covered by a spread of the same
    identifier.
    """
    for atom in atoms:
        if atom.path is None:
            continue
        if path.rest:
            if atom.spread and atom.path.rest and atom.path.base == path.base:
                return True
            continue
        if atom.path.rest:
            continue
        if atom.path.is_ancestor_of(path):
            return True
    return False


def missing(extracted: list[ValuePath], atoms: list[KeyAtom]) -> list[ValuePath]:
    """Extracted paths the key does not cover, in extraction order."""
    result: list[ValuePath] = []
    for path in extracted:
        if path not in result and not is_covered(path, atoms):
            result.append(path)
    return result
