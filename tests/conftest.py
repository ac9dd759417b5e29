"""Pytest configuration and shared fixtures."""
import pytest

from propcascade import PropagationContext, use_context


class Thing:
    """A plain Subject: no base class, any attributes."""

    def __repr__(self):
        return f"<Thing {id(self):#x}>"


@pytest.fixture(autouse=True)
def ctx():
    """Bind a fresh classic-mode, debug-enabled context for every test."""
    with use_context(PropagationContext(tracked_properties=False, debug=True)) as context:
        yield context


@pytest.fixture
def tracked_ctx():
    with use_context(PropagationContext(tracked_properties=True, debug=True)) as context:
        yield context


@pytest.fixture
def recorder():
    """An observer callback that logs the keys it was notified for."""
    log = []

    def record(obj, key):
        log.append(key)

    record.log = log
    return record
