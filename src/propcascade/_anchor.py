"""Data anchor — plain Python structures that hold per-Subject state.

Every Meta lives here, keyed by the id() of its Subject. A weakref finalizer
drops the entry when the Subject is collected, so Subjects never carry a
back-reference attribute of their own.
"""

import itertools
import weakref

# Subject state: id(subject) -> Meta
metas: dict[int, object] = {}

# Revision generation — itertools.count is thread-safe (C-level GIL atomic)
_revision_counter = itertools.count(1)


def next_revision() -> int:
    return next(_revision_counter)


def register(subject, meta) -> None:
    """Anchor meta to subject. Raises TypeError if subject is not weak-referenceable."""
    key = id(subject)
    weakref.finalize(subject, metas.pop, key, None)
    metas[key] = meta


def lookup(subject):
    return metas.get(id(subject))
