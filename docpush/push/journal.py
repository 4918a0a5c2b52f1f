"""
Push Journal.

Thread-safe record of what the pusher has delivered, for status reporting.
The retry logic never reads it.
"""

import threading
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from docpush.models.documents import DocInfo
from docpush.security.authorization import NamedResource


class PushOutcome(str, Enum):
    """How the most recent push call ended."""

    SUCCEEDED = "succeeded"
    GAVE_UP = "gave_up"
    CANCELLED = "cancelled"


@dataclass
class JournalSnapshot:
    """Point-in-time copy of the journal counters."""

    docs_pushed: int = 0
    deletes_pushed: int = 0
    acls_pushed: int = 0
    batches_pushed: int = 0
    retries: int = 0
    give_ups: int = 0
    cancellations: int = 0
    last_outcome: PushOutcome | None = None
    last_success_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "docs_pushed": self.docs_pushed,
            "deletes_pushed": self.deletes_pushed,
            "acls_pushed": self.acls_pushed,
            "batches_pushed": self.batches_pushed,
            "retries": self.retries,
            "give_ups": self.give_ups,
            "cancellations": self.cancellations,
            "last_outcome": self.last_outcome.value if self.last_outcome else None,
            "last_success_at": self.last_success_at.isoformat() if self.last_success_at else None,
        }


class PushJournal:
    """Counters shared by every push call of one pusher."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = JournalSnapshot()

    def record_batch_pushed(self, batch: Sequence[DocInfo | NamedResource]) -> None:
        acls = sum(1 for item in batch if isinstance(item, NamedResource))
        deletes = sum(
            1 for item in batch if isinstance(item, DocInfo) and item.doc_id.is_deleted
        )
        with self._lock:
            self._state.batches_pushed += 1
            self._state.docs_pushed += len(batch) - acls - deletes
            self._state.deletes_pushed += deletes
            self._state.acls_pushed += acls

    def record_retry(self) -> None:
        with self._lock:
            self._state.retries += 1

    def record_outcome(self, outcome: PushOutcome) -> None:
        with self._lock:
            self._state.last_outcome = outcome
            if outcome is PushOutcome.SUCCEEDED:
                self._state.last_success_at = datetime.now(timezone.utc)
            elif outcome is PushOutcome.GAVE_UP:
                self._state.give_ups += 1
            elif outcome is PushOutcome.CANCELLED:
                self._state.cancellations += 1

    def snapshot(self) -> JournalSnapshot:
        with self._lock:
            return JournalSnapshot(**vars(self._state))
