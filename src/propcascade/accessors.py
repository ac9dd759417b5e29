"""get / set helpers that keep the engine informed.

Plain objects can be observed too: write through set_property() and the
change propagates exactly as it would for an ObservableObject.
"""

from __future__ import annotations

from propcascade.descriptors import descriptor_for_property
from propcascade.meta import is_object, peek_meta
from propcascade.property_events import notify_property_change
from propcascade.render import did_render

_MISSING = object()


def get(obj, key: str):
    """Read obj.key (None if missing). Dotted keys are resolved as paths."""
    if "." in key:
        return get_path(obj, key)
    if _defines(obj, key):
        value = getattr(obj, key)
    else:
        value = getattr(obj, key, None)
    did_render(obj, key)
    return value


def _defines(obj, key: str) -> bool:
    """Whether key is stored on obj or declared along its class MRO."""
    if key in getattr(obj, "__dict__", ()):
        return True
    return any(key in vars(klass) for klass in type(obj).__mro__)


def get_path(obj, path: str):
    """Walk a dotted path, stopping at the first link that is None."""
    current = obj
    for segment in path.split("."):
        if current is None:
            return None
        current = get(current, segment)
    return current


def set_property(obj, key: str, value) -> object:
    """Assign obj.key = value and notify if the value changed identity.

    Computed properties handle their own notification through their
    descriptor. Returns value.
    """
    if "." in key:
        head, _, leaf = key.rpartition(".")
        target = get_path(obj, head)
        if not is_object(target):
            raise AttributeError(f"Cannot set {key!r}: {head!r} is {target!r}")
        return set_property(target, leaf, value)

    meta = peek_meta(obj)
    if meta is not None and meta.is_meta_destroyed():
        raise AttributeError(f"Cannot set {key!r} on destroyed object {obj!r}")

    # Class-level lookup: overridden computed properties still own their writes.
    desc = descriptor_for_property(obj, key)
    if desc is not None and hasattr(type(desc), "__set__"):
        object.__setattr__(obj, key, value)
        return value

    current = getattr(obj, key, _MISSING)
    object.__setattr__(obj, key, value)
    if current is not value:
        notify_property_change(obj, key, meta)
    return value

