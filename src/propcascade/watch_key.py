"""Single-key watch counts.

A key with at least one watcher takes part in dependency, chain and
observer propagation. The 0→1 and 1→0 transitions are forwarded to the
key's descriptor so computed properties can (un)register their dependents.
"""

from __future__ import annotations

from propcascade.descriptors import descriptor_for_property
from propcascade.meta import meta_for, peek_meta


def watch_key(obj, key: str, meta=None) -> None:
    if meta is None:
        meta = meta_for(obj)
    count = meta.peek_watching(key)
    meta.write_watching(key, count + 1)

    if count == 0:
        desc = descriptor_for_property(obj, key, meta)
        if desc is not None and hasattr(desc, "will_watch"):
            desc.will_watch(obj, key, meta)


def unwatch_key(obj, key: str, meta=None) -> None:
    if meta is None:
        meta = peek_meta(obj)
    if meta is None or meta.is_source_destroying():
        return
    count = meta.peek_watching(key)
    if count == 0:
        return
    meta.write_watching(key, count - 1)

    if count == 1:
        desc = descriptor_for_property(obj, key, meta)
        if desc is not None and hasattr(desc, "did_unwatch"):
            desc.did_unwatch(obj, key, meta)
