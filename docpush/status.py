"""
Status Reporting.

Name plus current status pairs shown to operators. A StatusSource can be
read and updated from any thread; a Status value never changes, the source
swaps in a new one instead.
"""

import threading
from dataclasses import dataclass
from enum import Enum

from docpush.core.errors import ConfigurationError
from docpush.push.journal import PushJournal, PushOutcome


class StatusCode(str, Enum):
    """Indicator states, from "does not apply" to "needs intervention"."""

    INACTIVE = "inactive"        # Feature disabled
    UNAVAILABLE = "unavailable"  # Not determined yet
    NORMAL = "normal"
    WARNING = "warning"          # May need attention, may fix itself
    ERROR = "error"              # Known problem


@dataclass(frozen=True)
class Status:
    code: StatusCode
    message: str | None = None

    def __post_init__(self) -> None:
        if self.code is None:
            raise ConfigurationError("Status code cannot be None")
        if not isinstance(self.code, StatusCode):
            object.__setattr__(self, "code", StatusCode(self.code))


class StatusSource:
    """Named, thread-safe holder of the current Status."""

    def __init__(self, name: str, status: Status):
        if not name:
            raise ConfigurationError("StatusSource name cannot be empty")
        if status is None:
            raise ConfigurationError("StatusSource status cannot be None")
        self._name = name
        self._status = status
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def status(self) -> Status:
        with self._lock:
            return self._status

    @status.setter
    def status(self, status: Status) -> None:
        if status is None:
            raise ConfigurationError("StatusSource status cannot be None")
        with self._lock:
            self._status = status

    def to_dict(self) -> dict[str, str | None]:
        status = self.status
        return {"name": self._name, "code": status.code.value, "message": status.message}


class PushStatusSource(StatusSource):
    """Status of the last push, derived from a pusher's journal on every read."""

    def __init__(self, journal: PushJournal, name: str = "Push"):
        super().__init__(name, Status(StatusCode.UNAVAILABLE))
        self._journal = journal

    @property
    def status(self) -> Status:
        snapshot = self._journal.snapshot()
        match snapshot.last_outcome:
            case None:
                return Status(StatusCode.UNAVAILABLE, "No push attempted yet")
            case PushOutcome.GAVE_UP:
                return Status(StatusCode.WARNING, f"Last push gave up ({snapshot.give_ups} total)")
            case PushOutcome.CANCELLED:
                return Status(StatusCode.WARNING, "Last push was cancelled")
            case _:
                return Status(StatusCode.NORMAL, f"{snapshot.docs_pushed} DocIds pushed")

    @status.setter
    def status(self, status: Status) -> None:
        raise AttributeError("PushStatusSource status is derived from the journal")
