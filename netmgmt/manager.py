"""Activity manager recording events in a store in the background."""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from netmgmt.event import ActivityDescriber, Event
from netmgmt.store import Store

logger = logging.getLogger(__name__)

ENABLED_ENV = "NB_EVENT_ACTIVITY_LOG_ENABLED"

_TRUE_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_VALUES = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def _parse_bool(name: str, value: str) -> bool:
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean value {value!r} for {name}")


@dataclass(frozen=True)
class ActivityConfig:
    """Settings of the activity log."""

    enabled: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ActivityConfig:
        """Read the settings from the environment."""
        env = os.environ if environ is None else environ
        value = env.get(ENABLED_ENV)
        if value is None:
            return cls()
        return cls(enabled=_parse_bool(ENABLED_ENV, value))


class Manager:
    """Records activity events asynchronously."""

    def __init__(self, event_store: Store, config: ActivityConfig | None = None) -> None:
        self.config = ActivityConfig.from_env() if config is None else config
        self.event_store = event_store
        self._pending: set[threading.Thread] = set()
        self._lock = threading.Lock()

    def store_event(
        self,
        initiator_id: str,
        target_id: str,
        account_id: str,
        activity: ActivityDescriber,
        meta: dict[str, Any] | None = None,
    ) -> None:
        """Save an event in the background if the activity log is enabled."""
        if not self.config.enabled:
            return
        event = Event(
            timestamp=datetime.now(timezone.utc),
            activity=activity,
            initiator_id=initiator_id,
            target_id=target_id,
            account_id=account_id,
            meta=meta if meta is not None else {},
        )
        thread = threading.Thread(target=self._save, args=(event,), daemon=True)
        with self._lock:
            self._pending.add(thread)
        thread.start()

    def _save(self, event: Event) -> None:
        try:
            self.event_store.save(event)
        except Exception as err:  # noqa: BLE001 - failures are only reported
            logger.error(
                "received an error while storing an activity event, error: %s", err
            )
        finally:
            with self._lock:
                self._pending.discard(threading.current_thread())

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for pending saves; return True when none is left."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._lock:
            threads = list(self._pending)
        for thread in threads:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            thread.join(remaining)
        with self._lock:
            return not self._pending