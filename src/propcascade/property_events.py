"""Property change propagation — the heart of propcascade.

notify_property_change() is called right after a property changed. It
walks the keys that depend on the changed key (transitively, once each per
pass), notifies chain watchers for dotted paths through the object, and
dispatches "<key>:change" observer events.

Batching: between begin_property_changes() and end_property_changes()
observer events are queued (deduplicated) and flushed once, when the
outermost scope ends.

Ordering within one notification, recursively and depth-first:
descriptor did_change → dependent keys → chains → observers → dirty mark.
"""

from __future__ import annotations

import logging

from propcascade.context import current_context
from propcascade.descriptors import descriptor_for_property
from propcascade.events import change_event, send_event
from propcascade.meta import PropertyChangeAware, peek_meta
from propcascade.observers import flush_sync_observers
from propcascade.render import assert_not_rendered
from propcascade.tags import mark_object_as_dirty

logger = logging.getLogger("propcascade.property_events")

_MISSING = object()


def notify_property_change(obj, key: str, meta=_MISSING) -> None:
    """Signal that obj.key just changed.

    Normally called by set_property() or ObservableObject; call it directly
    when a property changed behind the engine's back.

    Usage:
        person.__dict__["name"] = "Ada"
        notify_property_change(person, "name")
    """
    if meta is _MISSING:
        meta = peek_meta(obj)

    if meta is not None and (meta.is_initializing() or meta.is_prototype_meta(obj)):
        return

    ctx = current_context()

    if not ctx.tracked_properties:
        desc = descriptor_for_property(obj, key, meta)
        if desc is not None:
            desc.did_change(obj, key)

        if meta is not None and meta.peek_watching(key) > 0:
            dependent_keys_did_change(obj, key, meta)
            chains_did_change(obj, key, meta)
            notify_observers(obj, key, meta)

    if meta is not None:
        mark_object_as_dirty(obj, key, meta)

    if ctx.tracked_properties and ctx.deferred <= 0:
        flush_sync_observers()

    reacts = meta.reacts_to_change if meta is not None else isinstance(obj, PropertyChangeAware)
    if reacts:
        obj.property_did_change(key)

    if ctx.debug:
        assert_not_rendered(obj, key)


def dependent_keys_did_change(obj, key: str, meta) -> None:
    """Notify every key registered as depending on key, once per pass."""
    if meta.is_source_destroying() or not meta.has_deps(key):
        return

    ctx = current_context()
    is_top = ctx.is_top_seen
    if is_top:
        ctx.is_top_seen = False

    try:
        _iter_deps(ctx, obj, key, meta)
    finally:
        if is_top:
            ctx.seen.clear()
            ctx.is_top_seen = True


def _iter_deps(ctx, obj, key: str, meta) -> None:
    seen = ctx.seen_keys(obj)
    seen.add(key)

    def visit(dependent: str) -> None:
        if dependent in seen:
            return
        if ctx.is_suspended(obj, dependent):
            return
        seen.add(dependent)
        notify_property_change(obj, dependent, meta)

    meta.for_each_in_deps(key, visit)


def chains_did_change(obj, key: str, meta) -> None:
    """Let chains through obj.key re-subscribe and notify their root paths."""
    watchers = meta.readable_chain_watchers()
    if watchers is not None:
        watchers.notify(key, True, notify_property_change)


def override_chains(obj, key: str, meta) -> None:
    """Re-subscribe chains through obj.key without notifying anything."""
    watchers = meta.readable_chain_watchers()
    if watchers is not None:
        watchers.revalidate(key)


def begin_property_changes() -> None:
    """Enter a batching scope. Nested scopes are supported."""
    current_context().deferred += 1


def end_property_changes() -> None:
    """Exit a batching scope. The outermost exit flushes queued observers.

    An end without a matching begin drives the counter negative; that is a
    caller bug and is only logged.
    """
    ctx = current_context()
    ctx.deferred -= 1
    if ctx.deferred < 0:
        logger.warning("end_property_changes() without matching begin (deferred=%d)", ctx.deferred)
    if ctx.deferred <= 0:
        if ctx.tracked_properties:
            flush_sync_observers()
        else:
            ctx.observer_set.flush()


def notify_observers(obj, key: str, meta) -> None:
    """Send "<key>:change" now, or queue it while a batch is open."""
    if meta.is_source_destroying():
        return

    ctx = current_context()
    event_name = change_event(key)
    if ctx.deferred > 0:
        ctx.observer_set.add(obj, key, event_name)
    else:
        send_event(obj, event_name, (obj, key), meta)
