"""Event naming and sending.

Listeners are stored on the Subject's Meta keyed by event name. Property
observers listen for change_event(key), i.e. "<key>:change".
"""

from __future__ import annotations

from typing import Callable

from propcascade.meta import meta_for, peek_meta

CHANGE_SUFFIX = ":change"


def change_event(key: str) -> str:
    return f"{key}{CHANGE_SUFFIX}"


def add_listener(obj, event_name: str, target, method: Callable | str | None = None, once: bool = False) -> None:
    """Register target.method (or a plain callable) for event_name on obj.

    Passing only a callable as target is shorthand for add_listener(obj, name, None, fn).
    """
    if method is None:
        target, method = None, target
    meta_for(obj).add_listener(event_name, target, method, once)


def remove_listener(obj, event_name: str, target, method: Callable | str | None = None) -> None:
    if method is None:
        target, method = None, target
    meta = peek_meta(obj)
    if meta is not None:
        meta.remove_listener(event_name, target, method)


def has_listeners(obj, event_name: str) -> bool:
    meta = peek_meta(obj)
    return meta is not None and bool(meta.matching_listeners(event_name))


def send_event(obj, event_name: str, params: tuple = (), meta=None) -> bool:
    """Invoke every listener for event_name with *params, in registration order.

    Returns False if nobody was listening. Listener exceptions propagate.
    """
    if meta is None:
        meta = peek_meta(obj)
    if meta is None:
        return False
    listeners = meta.matching_listeners(event_name)
    if not listeners:
        return False
    for listener in listeners:
        if listener.once:
            meta.remove_listener(event_name, listener.target, listener.method)
        listener.resolve()(*params)
    return True
