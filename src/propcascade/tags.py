"""Dirty-marking side channel.

Every notified key gets a fresh revision on its Subject's Meta. Anything
that cached a derived value compares revisions to know it went stale.
"""

from __future__ import annotations

from propcascade import _anchor
from propcascade.descriptors import descriptor_for_property
from propcascade.meta import is_object, meta_for


def mark_object_as_dirty(obj, key: str, meta) -> None:
    meta.mark_dirty(key, _anchor.next_revision())


def revision_for(obj, key: str) -> int:
    """Current revision of obj.key. Creates obj's meta so later writes are seen.

    Keys backed by a descriptor that derives from other keys (computed
    properties) also move when any of those keys move.
    """
    meta = meta_for(obj)
    revision = meta.revision(key)
    desc = descriptor_for_property(obj, key, meta)
    if desc is not None and hasattr(desc, "revision_for"):
        revision = max(revision, desc.revision_for(obj))
    return revision


def revision_for_path(obj, path: str) -> int:
    """Highest revision along every link of a dotted path."""
    revision = 0
    current = obj
    for segment in path.split("."):
        if not is_object(current):
            break
        revision = max(revision, revision_for(current, segment))
        current = getattr(current, segment, None)
    return revision
