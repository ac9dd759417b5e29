"""Exceptions raised by propcascade.

Callback failures (observers, setters, getters) are never wrapped; they
propagate to whoever triggered the change.
"""


class PropcascadeError(Exception):
    """Base class for errors raised by the engine itself."""


class ReadOnlyPropertyError(PropcascadeError, AttributeError):
    """Raised when assigning to a computed property declared read-only."""

    def __init__(self, obj, key: str) -> None:
        super().__init__(f"Cannot set read-only property {key!r} on {obj!r}")
        self.obj = obj
        self.key = key


class RenderMutationError(PropcascadeError, AssertionError):
    """Raised in debug mode when a rendered property changes in the same render."""

    def __init__(self, obj, key: str, label: str | None = None) -> None:
        where = f" by {label}" if label else ""
        super().__init__(
            f"You modified {key!r} on {obj!r} after it was rendered{where} "
            f"in the same render transaction"
        )
        self.obj = obj
        self.key = key
        self.label = label
