"""Batched property changes.

Wrapping mutations in change_properties(), `with property_changes()` or a
@batched function defers all observer events until the outermost scope
exits. The scope is closed on every exit path, including exceptions, so
the deferral counter always returns to its previous value.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Callable, Iterator, ParamSpec, TypeVar

from propcascade.property_events import begin_property_changes, end_property_changes

P = ParamSpec("P")
R = TypeVar("R")


def change_properties(callback: Callable[[], R]) -> R:
    """Run callback inside a batch and return its result.

    Usage:
        change_properties(lambda: (
            set_property(a, "x", 1),
            set_property(b, "y", 2),
        ))
    """
    begin_property_changes()
    try:
        return callback()
    finally:
        end_property_changes()


@contextmanager
def property_changes() -> Iterator[None]:
    """Context manager for batching changes.

    Usage:
        with property_changes():
            person.first = "Grace"
            person.last = "Hopper"
            # "full_name:change" fires once, here
    """
    begin_property_changes()
    try:
        yield
    finally:
        end_property_changes()


def batched(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: batch all property changes made inside fn."""

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        begin_property_changes()
        try:
            return fn(*args, **kwargs)
        finally:
            end_property_changes()

    return wrapper
