"""Chain watchers — observing values reached through dotted paths.

Watching "owner.address.city" on obj builds a tree of ChainNodes under a
root node for obj:

    root(obj) ── owner ── address ── city

Each non-root node watches its key on its parent's current value and
registers itself in that value's ChainWatchers. When a link changes, the
nodes below it move their subscriptions to the new objects (revalidation),
and every affected path is reported back against the root object so the
full path ("owner.address.city") can be notified there.
"""

from __future__ import annotations

import weakref
from typing import Callable

from propcascade.meta import is_object, meta_for, peek_meta
from propcascade.watch_key import unwatch_key, watch_key

Callback = Callable[[object, str], None]


class ChainWatchers:
    """The ChainNodes watching keys on one object, grouped by key."""

    def __init__(self, obj=None) -> None:
        self.chains: dict[str, list[ChainNode]] = {}

    def add(self, key: str, node: ChainNode) -> None:
        self.chains.setdefault(key, []).append(node)

    def remove(self, key: str, node: ChainNode) -> None:
        nodes = self.chains.get(key)
        if not nodes:
            return
        for i, candidate in enumerate(nodes):
            if candidate is node:
                del nodes[i]
                break
        if not nodes:
            del self.chains[key]

    def has(self, key: str, node: ChainNode) -> bool:
        return any(candidate is node for candidate in self.chains.get(key, ()))

    def notify(self, key: str, revalidate: bool, callback: Callback | None = None) -> None:
        nodes = self.chains.get(key)
        if not nodes:
            return

        affected: list[tuple[object, str]] | None = [] if callback is not None else None
        for node in list(nodes):
            node.notify(revalidate, affected)

        if callback is None:
            return
        for obj, path in affected:
            callback(obj, path)

    def revalidate(self, key: str) -> None:
        self.notify(key, True)

    def revalidate_all(self) -> None:
        for key in list(self.chains):
            self.notify(key, True)


def add_chain_watcher(obj, key: str, node: ChainNode) -> None:
    meta = meta_for(obj)
    meta.writable_chain_watchers(ChainWatchers).add(key, node)
    watch_key(obj, key, meta)


def remove_chain_watcher(obj, key: str, node: ChainNode, meta=None) -> None:
    if meta is None:
        meta = peek_meta(obj)
    if meta is None:
        return
    watchers = meta.readable_chain_watchers()
    if watchers is None or not watchers.has(key, node):
        return
    watchers.remove(key, node)
    unwatch_key(obj, key, meta)


class ChainNode:
    """One segment of a watched path. The root node holds the watched object."""

    def __init__(self, parent: ChainNode | None, key: str | None, value=None) -> None:
        self.parent = parent
        self.key = key
        self.count = 0
        self.nodes: dict[str, ChainNode] = {}
        self.paths: dict[str, int] = {}
        self._object_ref = None
        self._watching = parent is not None

        if parent is None:
            self.object = value
        else:
            self.object = None
            parent_value = parent.value()
            if is_object(parent_value):
                self.object = parent_value
                add_chain_watcher(parent_value, key, self)

    @property
    def object(self):
        return self._object_ref() if self._object_ref is not None else None

    @object.setter
    def object(self, value) -> None:
        self._object_ref = weakref.ref(value) if value is not None else None

    def value(self):
        """The value this node points at: the root object, or object.key."""
        if self.parent is None:
            return self.object
        obj = self.object
        if obj is None:
            return None
        return getattr(obj, self.key, None)

    # --- Root-level path management ---

    def add(self, path: str) -> None:
        self.paths[path] = self.paths.get(path, 0) + 1
        key, _, rest = path.partition(".")
        self.chain(key, rest)

    def remove(self, path: str) -> None:
        count = self.paths.get(path, 0)
        if count <= 0:
            return
        if count == 1:
            del self.paths[path]
        else:
            self.paths[path] = count - 1
        key, _, rest = path.partition(".")
        self.unchain(key, rest)

    def chain(self, key: str, path: str) -> None:
        node = self.nodes.get(key)
        if node is None:
            node = ChainNode(self, key)
            self.nodes[key] = node
        node.count += 1

        if path:
            key, _, rest = path.partition(".")
            node.chain(key, rest)

    def unchain(self, key: str, path: str) -> None:
        node = self.nodes.get(key)
        if node is None:
            return
        if path:
            child_key, _, rest = path.partition(".")
            node.unchain(child_key, rest)

        node.count -= 1
        if node.count <= 0:
            del self.nodes[key]
            node.destroy()

    def destroy(self) -> None:
        if self._watching:
            obj = self.object
            if obj is not None:
                remove_chain_watcher(obj, self.key, self)
            self._watching = False

    def teardown(self) -> None:
        """Destroy every node below this one. Used when the root Subject is destroyed."""
        stack = list(self.nodes.values())
        self.nodes.clear()
        while stack:
            node = stack.pop()
            stack.extend(node.nodes.values())
            node.nodes.clear()
            node.destroy()

    # --- Propagation ---

    def notify(self, revalidate: bool, affected: list | None) -> None:
        if revalidate and self._watching:
            parent_value = self.parent.value()
            if parent_value is not self.object:
                old = self.object
                if old is not None:
                    remove_chain_watcher(old, self.key, self)
                if is_object(parent_value):
                    self.object = parent_value
                    add_chain_watcher(parent_value, self.key, self)
                else:
                    self.object = None

        for node in list(self.nodes.values()):
            node.notify(revalidate, affected)

        if affected is not None and self.parent is not None:
            self.parent.populate_affected(self.key, 1, affected)

    def populate_affected(self, path: str, depth: int, affected: list) -> None:
        if self.key:
            path = f"{self.key}.{path}"

        if self.parent is not None:
            self.parent.populate_affected(path, depth + 1, affected)
        elif depth > 1:
            root = self.value()
            if root is not None:
                affected.append((root, path))

    def __repr__(self) -> str:
        return f"ChainNode({self.key!r}, count={self.count})"


def make_chain_node(obj) -> ChainNode:
    return ChainNode(None, None, obj)
