"""Fix synthesis: append missing paths to a key array literal."""

from __future__ import annotations

from querydeps.analysis.models import Fix
from querydeps.analysis.paths import ValuePath
from querydeps.parsing.nodes import Node


def synthesize(missing: list[ValuePath], target_array: Node | None, source: bytes) -> Fix | None:
    """Insertion appending ``missing`` to ``target_array``.

    Returns None when there is nothing to add or no literal to edit.
    """
    if not missing or target_array is None or target_array.type != "array":
        return None

    added = ", ".join(p.display for p in missing)
    elements = [c for c in target_array.named_children if c.type != "comment"]

    if not elements:
        at, insert = target_array.start_byte + 1, added
    else:
        last = elements[-1]
        comma = next((c for c in target_array.children if c.type == "," and c.start_byte >= last.end_byte), None)
        if comma is not None:
            at, insert = comma.end_byte, f" {added}"
        else:
            at, insert = last.end_byte, f", {added}"

    literal = source[target_array.start_byte : target_array.end_byte]
    offset = at - target_array.start_byte
    result = (literal[:offset] + insert.encode("utf-8") + literal[offset:]).decode("utf-8")
    return Fix(start_byte=at, end_byte=at, replacement=insert, result=result)
