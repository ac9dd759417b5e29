"""Propagation context — the state one propagation engine owns.

The deferral counter, the Seen Set, the deferred observer queue and the
suspension tokens all live on a PropagationContext instead of module globals.
The active context is bound through a contextvar: threads and asyncio tasks
started from a clean contextvars.Context get a context of their own, so the
engine stays confined to one logical thread without locking.

Configuration for a default context comes from the environment:

- PROPCASCADE_TRACKED_PROPERTIES: use revision-tracked sync observers.
- PROPCASCADE_DEBUG: enable render assertions (defaults to __debug__).
"""

from __future__ import annotations

import contextvars
import os
from contextlib import contextmanager
from typing import Iterator

from propcascade.observer_set import ObserverSet

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUTHY


class PropagationContext:
    """Owns the mutable state of one propagation engine."""

    def __init__(
        self,
        *,
        tracked_properties: bool | None = None,
        debug: bool | None = None,
    ) -> None:
        if tracked_properties is None:
            tracked_properties = _env_flag("PROPCASCADE_TRACKED_PROPERTIES", False)
        if debug is None:
            debug = _env_flag("PROPCASCADE_DEBUG", __debug__)
        self.tracked_properties = tracked_properties
        self.debug = debug

        # Deferral counter. When > 0, observer events are queued.
        self.deferred = 0
        self.observer_set = ObserverSet()

        # Seen Set for the current top-level dependency pass.
        self.seen: dict[int, tuple[object, set[str]]] = {}
        self.is_top_seen = True

        self._suspended: set[tuple[int, str]] = set()
        self.sync_observers: dict = {}
        self.render_transaction = None

    def seen_keys(self, subject) -> set[str]:
        """Keys already visited for subject in this pass."""
        entry = self.seen.get(id(subject))
        if entry is None:
            entry = (subject, set())
            self.seen[id(subject)] = entry
        return entry[1]

    @contextmanager
    def suspend(self, subject, key: str) -> Iterator[None]:
        """Keep dependency propagation from re-notifying subject.key."""
        token = (id(subject), key)
        if token in self._suspended:
            yield
            return
        self._suspended.add(token)
        try:
            yield
        finally:
            self._suspended.discard(token)

    def is_suspended(self, subject, key: str) -> bool:
        return (id(subject), key) in self._suspended

    def __repr__(self) -> str:
        mode = "tracked" if self.tracked_properties else "classic"
        return f"PropagationContext({mode}, deferred={self.deferred})"


_current: contextvars.ContextVar[PropagationContext | None] = contextvars.ContextVar(
    "propcascade_context", default=None
)


def current_context() -> PropagationContext:
    """The context bound to the running contextvars.Context, created on demand."""
    ctx = _current.get()
    if ctx is None:
        ctx = PropagationContext()
        _current.set(ctx)
    return ctx


@contextmanager
def use_context(ctx: PropagationContext | None = None) -> Iterator[PropagationContext]:
    """Bind ctx (or a fresh context) for the duration of the block.

    Usage:
        with use_context(PropagationContext(tracked_properties=True)) as ctx:
            obj.name = "x"
    """
    if ctx is None:
        ctx = PropagationContext()
    token = _current.set(ctx)
    try:
        yield ctx
    finally:
        _current.reset(token)
