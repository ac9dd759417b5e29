"""Brace expansion for dependent keys.

    expand_properties("owner.{first,last}")      # ["owner.first", "owner.last"]
    expand_properties("a.{b,c}.d")               # ["a.b.d", "a.c.d"]
    expand_properties("{a,b}.{c,d}")             # ["a.c", "a.d", "b.c", "b.d"]

Braces may not nest and may not contain spaces.
"""

from __future__ import annotations

import itertools
import re

_GROUP = re.compile(r"\{([^{}]*)\}")


def expand_properties(pattern: str) -> list[str]:
    if " " in pattern:
        raise ValueError(f"Brace expanded properties cannot contain spaces: {pattern!r}")
    _check_balanced(pattern)

    parts = _GROUP.split(pattern)
    # split() alternates literal text and group contents.
    choices = [
        part.split(",") if i % 2 else [part]
        for i, part in enumerate(parts)
    ]
    return ["".join(combo) for combo in itertools.product(*choices)]


def _check_balanced(pattern: str) -> None:
    depth = 0
    for ch in pattern:
        if ch == "{":
            depth += 1
            if depth > 1:
                raise ValueError(f"Brace expanded properties cannot be nested: {pattern!r}")
        elif ch == "}":
            depth -= 1
            if depth < 0:
                raise ValueError(f"Unbalanced braces in property pattern: {pattern!r}")
    if depth != 0:
        raise ValueError(f"Unbalanced braces in property pattern: {pattern!r}")
