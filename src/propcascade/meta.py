"""Per-Subject metadata — watch counts, dependency registry, chains, lifecycle.

A Meta is created lazily by meta_for() and is never shared between Subjects.
The propagation engine only reads it; watch/unwatch, dependent-key
registration and listener management are the only writers.
"""

from __future__ import annotations

import logging
import types
import weakref
from typing import Callable, Protocol, runtime_checkable

from propcascade import _anchor
from propcascade.descriptors import Descriptor, descriptors_for_class

logger = logging.getLogger("propcascade.meta")


@runtime_checkable
class PropertyChangeAware(Protocol):
    """Capability: the Subject wants to hear about its own property changes.

    property_did_change(key) runs after all other propagation for the key.
    """

    def property_did_change(self, key: str) -> None: ...


class Listener:
    """A registered (target, method) pair.

    References back to the Subject that owns the listener are held weakly,
    so a Subject observing itself can still be collected.
    """

    __slots__ = ("_target", "_method", "once")

    def __init__(self, target, method, once: bool, source=None) -> None:
        if source is not None and target is source:
            target = weakref.ref(target)
        if source is not None and isinstance(method, types.MethodType) and method.__self__ is source:
            method = weakref.WeakMethod(method)
        self._target = target
        self._method = method
        self.once = once

    @property
    def target(self):
        target = self._target
        return target() if isinstance(target, weakref.ref) else target

    @property
    def method(self):
        method = self._method
        return method() if isinstance(method, weakref.ref) else method

    def matches(self, target, method) -> bool:
        own = self.method
        return self.target is target and (own is method or own == method)

    def resolve(self) -> Callable:
        method = self.method
        if isinstance(method, str):
            return getattr(self.target, method)
        return method


class Meta:
    """Observation bookkeeping owned by exactly one Subject."""

    def __init__(self, source, *, is_prototype: bool = False) -> None:
        self._source_ref = weakref.ref(source)
        self._is_prototype = is_prototype
        self._initializing = False
        self._source_destroying = False
        self._meta_destroyed = False

        self._watching: dict[str, int] = {}
        self._deps: dict[str, dict[str, int]] = {}
        self._chains = None
        self._chain_watchers = None
        self._listeners: dict[str, list[Listener]] = {}
        self._revisions: dict[str, int] = {}

        cls = source if is_prototype else type(source)
        self._descriptors: dict[str, Descriptor] = descriptors_for_class(cls)
        self.cache: dict[str, object] = {}
        self.overrides: dict[str, object] = {}
        # Computed keys whose dependent keys are currently registered.
        self.registered_dependents: set[str] = set()

        # Resolved once; see PropertyChangeAware.
        self.reacts_to_change = not is_prototype and isinstance(source, PropertyChangeAware)

    @property
    def source(self):
        return self._source_ref()

    # --- Lifecycle ---

    def is_initializing(self) -> bool:
        return self._initializing

    def set_initializing(self, value: bool) -> None:
        self._initializing = value

    def is_prototype_meta(self, obj) -> bool:
        return self._is_prototype and self.source is obj

    def is_source_destroying(self) -> bool:
        return self._source_destroying

    def set_source_destroying(self) -> None:
        self._source_destroying = True

    def is_meta_destroyed(self) -> bool:
        return self._meta_destroyed

    def destroy(self) -> None:
        """Tear down chains rooted here and drop listeners.

        The meta stays readable afterwards. Its registry entry goes away
        with the Subject itself.
        """
        if self._meta_destroyed:
            return
        self._meta_destroyed = True
        self._listeners.clear()
        self.cache.clear()
        if self._chains is not None:
            self._chains.teardown()
            self._chains = None
        logger.debug("Destroyed meta for %r", self.source)

    # --- Watching ---

    def peek_watching(self, key: str) -> int:
        return self._watching.get(key, 0)

    def write_watching(self, key: str, count: int) -> None:
        if count > 0:
            self._watching[key] = count
        else:
            self._watching.pop(key, None)

    # --- Dependent keys ---

    def has_deps(self, key: str) -> bool:
        deps = self._deps.get(key)
        return bool(deps)

    def add_dep(self, key: str, dependent: str) -> None:
        deps = self._deps.setdefault(key, {})
        deps[dependent] = deps.get(dependent, 0) + 1

    def remove_dep(self, key: str, dependent: str) -> None:
        deps = self._deps.get(key)
        if deps is None or dependent not in deps:
            return
        deps[dependent] -= 1
        if deps[dependent] <= 0:
            del deps[dependent]
        if not deps:
            del self._deps[key]

    def for_each_in_deps(self, key: str, visitor: Callable[[str], None]) -> None:
        """Visit dependents of key in registration order."""
        deps = self._deps.get(key)
        if not deps:
            return
        for dependent in list(deps):
            visitor(dependent)

    # --- Chains ---

    def writable_chains(self, create: Callable[[object], object]):
        if self._chains is None:
            self._chains = create(self.source)
        return self._chains

    def readable_chains(self):
        return self._chains

    def writable_chain_watchers(self, create: Callable[[object], object]):
        if self._chain_watchers is None:
            self._chain_watchers = create(self.source)
        return self._chain_watchers

    def readable_chain_watchers(self):
        return self._chain_watchers

    # --- Descriptors ---

    def peek_descriptor(self, key: str) -> Descriptor | None:
        if key in self.overrides:
            return None
        return self._descriptors.get(key)

    # --- Listeners ---

    def add_listener(self, event_name: str, target, method, once: bool = False) -> None:
        listeners = self._listeners.setdefault(event_name, [])
        for listener in listeners:
            if listener.matches(target, method):
                return
        listeners.append(Listener(target, method, once, self.source))

    def remove_listener(self, event_name: str, target, method) -> None:
        listeners = self._listeners.get(event_name)
        if not listeners:
            return
        remaining = [listener for listener in listeners if not listener.matches(target, method)]
        if remaining:
            self._listeners[event_name] = remaining
        else:
            del self._listeners[event_name]

    def matching_listeners(self, event_name: str) -> list[Listener]:
        return list(self._listeners.get(event_name, ()))

    # --- Revisions ---

    def revision(self, key: str) -> int:
        return self._revisions.get(key, 0)

    def mark_dirty(self, key: str, revision: int) -> None:
        self._revisions[key] = revision

    def __repr__(self) -> str:
        state = "destroying" if self._source_destroying else "live"
        return f"Meta({self.source!r}, {state})"


def peek_meta(obj) -> Meta | None:
    """Return obj's Meta without creating one."""
    return _anchor.lookup(obj)


def meta_for(obj) -> Meta:
    """Return obj's Meta, creating it on first use."""
    meta = _anchor.lookup(obj)
    if meta is None:
        meta = Meta(obj, is_prototype=isinstance(obj, type))
        _anchor.register(obj, meta)
    return meta


def is_object(value) -> bool:
    """Whether value can own a Meta (and so be observed or chained through)."""
    if value is None or isinstance(value, (str, bytes, int, float)):
        return False
    try:
        weakref.ref(value)
    except TypeError:
        return False
    return True
