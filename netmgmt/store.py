"""Event stores."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod

from netmgmt.event import Event


class Store(ABC):
    """Storage for activity events."""

    @abstractmethod
    def save(self, event: Event) -> Event:
        """Save an event and return the stored event."""

    @abstractmethod
    def get(self, account_id: str, offset: int, limit: int, descending: bool) -> list[Event]:
        """Return up to ``limit`` events from ``offset``, ordered by timestamp."""

    @abstractmethod
    def close(self) -> None:
        """Close the store, flushing events if necessary."""

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class InMemoryEventStore(Store):
    """Store keeping events in memory."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._next_id = 0
        self._events: list[Event] = []

    def save(self, event: Event) -> Event:
        """Assign the next id to the event, keep it and return it."""
        with self._lock:
            event.id = self._next_id
            self._next_id += 1
            self._events.append(event)
            return event

    def get(self, account_id: str, offset: int, limit: int, descending: bool) -> list[Event]:
        """Return all events of the account; offset, limit and order are ignored."""
        with self._lock:
            return [event for event in self._events if event.account_id == account_id]

    def close(self) -> None:
        """Drop all stored events."""
        with self._lock:
            self._events = []