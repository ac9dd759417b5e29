"""Descriptors — optional per-key property definitions the engine consults.

A Descriptor is any object stored as a class attribute that subclasses
Descriptor. The engine looks for three optional hooks on it:

- did_change(obj, key): the key's value just changed.
- will_watch(obj, key, meta): the key got its first watcher.
- did_unwatch(obj, key, meta): the key lost its last watcher.
"""

from __future__ import annotations


class Descriptor:
    """Marker base class for property definitions known to the engine."""

    def did_change(self, obj, key: str) -> None:
        pass


def descriptors_for_class(cls: type) -> dict[str, Descriptor]:
    """Collect Descriptor attributes along cls's MRO. Subclasses shadow bases."""
    found: dict[str, Descriptor] = {}
    for klass in reversed(cls.__mro__):
        for name, value in vars(klass).items():
            if isinstance(value, Descriptor):
                found[name] = value
            elif name in found:
                del found[name]
    return found


def descriptor_for_property(obj, key: str, meta=None) -> Descriptor | None:
    """Return the Descriptor for obj.key, or None.

    With a meta, its descriptor table is authoritative (it honours
    overrides). Without one, the class is scanned directly.
    """
    if meta is not None:
        return meta.peek_descriptor(key)
    cls = obj if isinstance(obj, type) else type(obj)
    for klass in cls.__mro__:
        namespace = vars(klass)
        if key in namespace:
            value = namespace[key]
            return value if isinstance(value, Descriptor) else None
    return None
