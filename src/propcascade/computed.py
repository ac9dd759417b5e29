"""Computed properties — derived values with declared dependent keys.

A ComputedProperty is a class-level descriptor. Its dependent keys are
registered in the owner's Meta while the property is watched, so a change
to any of them propagates to the computed key (and to its observers).

Caching:
- classic mode: cached while watched; did_change() drops the cache.
- tracked mode: cached with a revision snapshot of the dependent paths and
  recomputed when the snapshot moves.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

from propcascade.context import current_context
from propcascade.descriptors import Descriptor
from propcascade.errors import ReadOnlyPropertyError
from propcascade.expand import expand_properties
from propcascade.meta import meta_for, peek_meta
from propcascade.property_events import notify_property_change, override_chains
from propcascade.tags import revision_for_path
from propcascade.watching import unwatch, watch

T = TypeVar("T")


class ComputedProperty(Descriptor, Generic[T]):
    """A derived property whose value depends on other keys of its owner."""

    def __init__(
        self,
        getter: Callable[[object], T],
        *dependent_keys: str,
        setter: Callable[[object, object], T | None] | None = None,
        read_only: bool = False,
    ) -> None:
        self._getter = getter
        self._setter = setter
        self._read_only = read_only
        self._dependent_keys: tuple[str, ...] = tuple(
            expanded for key in dependent_keys for expanded in expand_properties(key)
        )
        self.name = getattr(getter, "__name__", None)
        self.__doc__ = getattr(getter, "__doc__", None)

    def __set_name__(self, owner, name: str) -> None:
        self.name = name

    @property
    def dependent_keys(self) -> tuple[str, ...]:
        return self._dependent_keys

    def setter(self, fn: Callable[[object, object], T | None]) -> ComputedProperty[T]:
        """Attach a setter. Its return value (if not None) becomes the cached value."""
        if self._read_only:
            raise TypeError(f"Computed property {self.name!r} is read-only")
        self._setter = fn
        return self

    # --- Reading ---

    def __get__(self, obj, owner=None):
        if obj is None:
            return self
        key = self.name
        meta = meta_for(obj)
        if key in meta.overrides:
            return meta.overrides[key]

        if current_context().tracked_properties:
            revision = self.revision_for(obj)
            entry = meta.cache.get(key)
            if entry is not None and entry[1] == revision:
                return entry[0]
            value = self._getter(obj)
            meta.cache[key] = (value, revision)
            return value

        entry = meta.cache.get(key)
        if entry is not None:
            return entry[0]
        value = self._getter(obj)
        if meta.peek_watching(key) > 0 and not meta.is_source_destroying():
            meta.cache[key] = (value, None)
        return value

    def revision_for(self, obj) -> int:
        """Highest revision among the dependent paths."""
        return max((revision_for_path(obj, key) for key in self._dependent_keys), default=0)

    # --- Writing ---

    def __set__(self, obj, value) -> None:
        key = self.name
        if self._read_only:
            raise ReadOnlyPropertyError(obj, key)
        meta = meta_for(obj)
        if self._setter is None or key in meta.overrides:
            self._override(obj, key, value, meta)
        else:
            self._set_with_suspend(obj, key, value, meta)

    def _set_with_suspend(self, obj, key: str, value, meta) -> None:
        ctx = current_context()
        with ctx.suspend(obj, key):
            entry = meta.cache.get(key)
            ret = self._setter(obj, value)
            if ret is None:
                meta.cache.pop(key, None)
            else:
                if entry is not None and entry[0] is ret:
                    return
                if ctx.tracked_properties:
                    meta.cache[key] = (ret, self.revision_for(obj))
                elif meta.peek_watching(key) > 0:
                    meta.cache[key] = (ret, None)
            notify_property_change(obj, key, meta)

    def _override(self, obj, key: str, value, meta) -> None:
        """Replace the computed value with a plain one for this instance."""
        if key in meta.overrides and meta.overrides[key] is value:
            return
        meta.overrides[key] = value
        meta.cache.pop(key, None)
        if key in meta.registered_dependents:
            self._remove_dependent_keys(obj, key, meta)
        if meta.peek_watching(key) > 0:
            override_chains(obj, key, meta)
        notify_property_change(obj, key, meta)

    # --- Engine hooks ---

    def did_change(self, obj, key: str) -> None:
        if current_context().is_suspended(obj, key):
            return
        meta = peek_meta(obj)
        if meta is not None:
            meta.cache.pop(key, None)

    def will_watch(self, obj, key: str, meta) -> None:
        if key in meta.overrides or key in meta.registered_dependents:
            return
        meta.registered_dependents.add(key)
        for dependent_key in self._dependent_keys:
            meta.add_dep(dependent_key, key)
            watch(obj, dependent_key, meta)

    def did_unwatch(self, obj, key: str, meta) -> None:
        if key in meta.registered_dependents:
            self._remove_dependent_keys(obj, key, meta)
        meta.cache.pop(key, None)

    def _remove_dependent_keys(self, obj, key: str, meta) -> None:
        meta.registered_dependents.discard(key)
        for dependent_key in self._dependent_keys:
            meta.remove_dep(dependent_key, key)
            unwatch(obj, dependent_key, meta)

    def __repr__(self) -> str:
        deps = ", ".join(self._dependent_keys)
        return f"ComputedProperty({self.name}, [{deps}])"


def computed(*args, read_only: bool = False):
    """Decorator/factory to create a ComputedProperty.

    Usage:
        class Person(ObservableObject):
            first = "Ada"
            last = "Lovelace"

            @computed("first", "last")
            def full_name(self):
                return f"{self.first} {self.last}"

            @full_name.setter
            def full_name(self, value):
                self.first, self.last = value.split(" ", 1)
                return value

    @computed with no dependent keys is allowed; such a property only
    changes when notified directly.
    """
    if len(args) == 1 and callable(args[0]):
        return ComputedProperty(args[0], read_only=read_only)

    def decorator(fn: Callable[[object], T]) -> ComputedProperty[T]:
        return ComputedProperty(fn, *args, read_only=read_only)

    return decorator
