"""Deduplicating queue of deferred observer events."""

from __future__ import annotations

import logging

from propcascade.events import send_event
from propcascade.meta import peek_meta

logger = logging.getLogger("propcascade.observer_set")


class ObserverSet:
    """Pending (Subject, event name) pairs, in first-insertion order.

    Adding a pair that is already queued has no effect.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[int, str], tuple[object, str, str]] = {}

    def add(self, sender, key: str, event_name: str) -> None:
        token = (id(sender), event_name)
        if token not in self._entries:
            self._entries[token] = (sender, key, event_name)

    def flush(self) -> None:
        """Dispatch every queued event once. Handles events queued during flush."""
        while self._entries:
            # Snapshot and clear — listeners may queue new events while running.
            batch = list(self._entries.values())
            self._entries.clear()
            logger.debug("Flushing %d deferred observer events", len(batch))
            for sender, key, event_name in batch:
                meta = peek_meta(sender)
                if meta is not None and meta.is_source_destroying():
                    continue
                send_event(sender, event_name, (sender, key), meta)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, item) -> bool:
        sender, event_name = item
        return (id(sender), event_name) in self._entries
