"""Activity events."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

SYSTEM_INITIATOR = "sys"


@runtime_checkable
class ActivityDescriber(Protocol):
    """Anything that can describe an activity."""

    def string_code(self) -> str: ...

    def message(self) -> str: ...


@dataclass
class Event:
    """A network or system activity event."""

    timestamp: datetime
    activity: ActivityDescriber
    id: int = 0
    initiator_id: str = ""
    initiator_name: str = ""
    initiator_email: str = ""
    target_id: str = ""
    account_id: str = ""
    meta: dict[str, Any] = field(default_factory=dict)

    def copy(self) -> Event:
        """Return a copy whose meta mapping is independent of this one."""
        return replace(self, meta=dict(self.meta or {}))