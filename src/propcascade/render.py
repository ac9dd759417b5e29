"""Render transactions — catching mutations of already-rendered state.

Inside run_in_render_transaction(), reads made through accessors.get()
are recorded. Changing one of those keys before the transaction ends is a
programmer error: in debug mode assert_not_rendered() raises
RenderMutationError. With debug off, nothing is recorded or checked.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from propcascade.context import current_context
from propcascade.errors import RenderMutationError


class RenderTransaction:
    def __init__(self, label: str | None = None) -> None:
        self.label = label
        self._rendered: dict[tuple[int, str], str | None] = {}
        # Keeps rendered objects alive so their ids stay unique.
        self._objects: dict[int, object] = {}

    def did_render(self, obj, key: str, label: str | None = None) -> None:
        self._objects[id(obj)] = obj
        self._rendered.setdefault((id(obj), key), label or self.label)

    def rendered_by(self, obj, key: str) -> tuple[bool, str | None]:
        token = (id(obj), key)
        if token in self._rendered:
            return True, self._rendered[token]
        return False, None


@contextmanager
def run_in_render_transaction(label: str | None = None) -> Iterator[RenderTransaction]:
    """Open a render transaction. Nested calls join the outer one."""
    ctx = current_context()
    if ctx.render_transaction is not None:
        yield ctx.render_transaction
        return
    transaction = RenderTransaction(label)
    ctx.render_transaction = transaction
    try:
        yield transaction
    finally:
        ctx.render_transaction = None


def did_render(obj, key: str, label: str | None = None) -> None:
    ctx = current_context()
    if ctx.debug and ctx.render_transaction is not None:
        ctx.render_transaction.did_render(obj, key, label)


def assert_not_rendered(obj, key: str) -> None:
    ctx = current_context()
    if not ctx.debug or ctx.render_transaction is None:
        return
    rendered, label = ctx.render_transaction.rendered_by(obj, key)
    if rendered:
        raise RenderMutationError(obj, key, label)
