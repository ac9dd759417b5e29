"""watch() / unwatch() — keys and dotted paths.

A plain key is counted on the Subject's Meta. A dotted path is counted
under its full text ("a.b.c") and backed by a chain rooted at the Subject,
so changes anywhere along the path notify "a.b.c" on the root.
"""

from __future__ import annotations

from propcascade.chains import make_chain_node
from propcascade.meta import meta_for, peek_meta
from propcascade.watch_key import unwatch_key, watch_key


def is_path(key: str) -> bool:
    return "." in key


def watch_path(obj, path: str, meta=None) -> None:
    if meta is None:
        meta = meta_for(obj)
    count = meta.peek_watching(path)
    meta.write_watching(path, count + 1)

    if count == 0:
        meta.writable_chains(make_chain_node).add(path)


def unwatch_path(obj, path: str, meta=None) -> None:
    if meta is None:
        meta = peek_meta(obj)
    if meta is None:
        return
    count = meta.peek_watching(path)
    if count == 0:
        return
    meta.write_watching(path, count - 1)

    if count == 1:
        chains = meta.readable_chains()
        if chains is not None:
            chains.remove(path)


def watch(obj, key_or_path: str, meta=None) -> None:
    if is_path(key_or_path):
        watch_path(obj, key_or_path, meta)
    else:
        watch_key(obj, key_or_path, meta)


def unwatch(obj, key_or_path: str, meta=None) -> None:
    if is_path(key_or_path):
        unwatch_path(obj, key_or_path, meta)
    else:
        unwatch_key(obj, key_or_path, meta)


def watcher_count(obj, key_or_path: str) -> int:
    meta = peek_meta(obj)
    return meta.peek_watching(key_or_path) if meta is not None else 0


def is_watching(obj, key_or_path: str) -> bool:
    return watcher_count(obj, key_or_path) > 0
