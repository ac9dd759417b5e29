"""ObservableObject — a base class whose attribute writes propagate.

Public attribute assignment goes through set_property(), so dependents,
chains and observers hear about it. Construction does not notify: the Meta
is flagged initializing until __init__ (including init()) finishes.
destroy() stops all further propagation for the instance.
"""

from __future__ import annotations

from typing import Callable

from propcascade.accessors import get, set_property
from propcascade.action import batched
from propcascade.meta import meta_for, peek_meta
from propcascade.observers import add_observer, remove_observer
from propcascade.property_events import notify_property_change


class ObservableObject:
    """Key-based observable object with a destroy lifecycle."""

    def __init__(self, **props) -> None:
        meta = meta_for(self)
        meta.set_initializing(True)
        try:
            for key, value in props.items():
                setattr(self, key, value)
            self.init()
        finally:
            meta.set_initializing(False)

    def init(self) -> None:
        """Hook for subclasses; runs while the instance is still initializing."""

    def __setattr__(self, name: str, value) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
        else:
            set_property(self, name, value)

    def get(self, key: str):
        return get(self, key)

    def set(self, key: str, value):
        return set_property(self, key, value)

    @batched
    def set_properties(self, values: dict) -> None:
        """Assign several keys; observers fire once, after the last one."""
        for key, value in values.items():
            set_property(self, key, value)

    def notify_property_change(self, key: str) -> None:
        notify_property_change(self, key)

    def add_observer(self, key: str, target, method: Callable | str | None = None) -> None:
        add_observer(self, key, target, method)

    def remove_observer(self, key: str, target, method: Callable | str | None = None) -> None:
        remove_observer(self, key, target, method)

    @property
    def is_destroying(self) -> bool:
        meta = peek_meta(self)
        return meta is not None and meta.is_source_destroying()

    @property
    def is_destroyed(self) -> bool:
        meta = peek_meta(self)
        return meta is not None and meta.is_meta_destroyed()

    def destroy(self) -> None:
        """Stop propagating changes for this object and tear down its chains."""
        meta = meta_for(self)
        if meta.is_source_destroying():
            return
        meta.set_source_destroying()
        self.will_destroy()
        meta.destroy()

    def will_destroy(self) -> None:
        """Hook for subclasses; runs after propagation stops, before teardown."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__}:{id(self):#x}>"
