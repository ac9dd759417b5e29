"""Property observers — listeners for "<key>:change" events.

In classic mode an observer watches its key or path, so changes reach it
through notify_property_change(). In tracked-properties mode it is
registered as a sync observer instead: flush_sync_observers() compares
revisions along the observed path and fires the observers whose path moved.
"""

from __future__ import annotations

import weakref
from typing import Callable

from propcascade.context import current_context
from propcascade.events import add_listener, change_event, remove_listener, send_event
from propcascade.meta import peek_meta
from propcascade.tags import revision_for_path
from propcascade.watching import unwatch, watch


class SyncObserver:
    __slots__ = ("_obj_ref", "path", "event_name", "last_revision", "count", "suspended")

    def __init__(self, obj, path: str, event_name: str, revision: int) -> None:
        # Weak, so an observed Subject can still be collected.
        self._obj_ref = weakref.ref(obj)
        self.path = path
        self.event_name = event_name
        self.last_revision = revision
        self.count = 0
        self.suspended = False

    @property
    def obj(self):
        return self._obj_ref()


def add_observer(obj, path: str, target, method: Callable | str | None = None) -> None:
    """Call target.method(obj, path) (or target(obj, path)) whenever path changes."""
    event_name = change_event(path)
    add_listener(obj, event_name, target, method)

    ctx = current_context()
    if ctx.tracked_properties:
        token = (id(obj), path)
        entry = ctx.sync_observers.get(token)
        if entry is None or entry.obj is not obj:
            entry = SyncObserver(obj, path, event_name, revision_for_path(obj, path))
            ctx.sync_observers[token] = entry
        entry.count += 1
    else:
        watch(obj, path)


def remove_observer(obj, path: str, target, method: Callable | str | None = None) -> None:
    remove_listener(obj, change_event(path), target, method)

    ctx = current_context()
    if ctx.tracked_properties:
        token = (id(obj), path)
        entry = ctx.sync_observers.get(token)
        if entry is None or entry.obj is not obj:
            return
        entry.count -= 1
        if entry.count <= 0:
            del ctx.sync_observers[token]
    else:
        unwatch(obj, path)


def flush_sync_observers() -> None:
    """Fire every sync observer whose path revision moved since it last ran."""
    ctx = current_context()
    if not ctx.sync_observers:
        return
    for token, entry in list(ctx.sync_observers.items()):
        obj = entry.obj
        if obj is None:
            del ctx.sync_observers[token]
            continue
        if entry.suspended:
            continue
        meta = peek_meta(obj)
        if meta is not None and meta.is_source_destroying():
            continue
        revision = revision_for_path(obj, entry.path)
        if revision == entry.last_revision:
            continue
        entry.last_revision = revision
        entry.suspended = True
        try:
            send_event(obj, entry.event_name, (obj, entry.path), meta)
        finally:
            entry.suspended = False
