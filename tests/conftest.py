"""
Pytest Configuration and Shared Fixtures.

This module provides fake transports and recording error handlers for
testing the push pipeline without a network.
"""

import threading
from collections.abc import Callable, Sequence
from unittest.mock import patch

import pytest

from docpush.config.settings import Settings, get_settings
from docpush.core.errors import DeliveryError, FailedToConnect
from docpush.models.documents import DocId
from docpush.push.transport import FeedItem


# =============================================================================
# Fake Transport
# =============================================================================


FailureRule = Callable[[Sequence[FeedItem], int], DeliveryError | None]


class ScriptedTransport:
    """
    Transport whose deliveries fail according to ``rule``.

    ``rule(batch, attempt)`` gets the batch and the global 1-based attempt
    number and returns the error to raise, or None to accept the batch.
    """

    def __init__(self, rule: FailureRule | None = None):
        self.rule = rule
        self.attempts: list[list[str]] = []
        self.delivered: list[list[FeedItem]] = []
        self.sessions_opened = 0
        self.sessions_closed = 0
        self.first_attempt = threading.Event()
        self.aborted = threading.Event()

    @property
    def delivered_ids(self) -> list[str]:
        return [info.doc_id.unique_id for batch in self.delivered for info in batch]

    def open_session(self) -> "ScriptedSession":
        self.sessions_opened += 1
        return ScriptedSession(self)


class ScriptedSession:
    def __init__(self, transport: ScriptedTransport):
        self._transport = transport

    def deliver(self, batch: Sequence[FeedItem]) -> None:
        t = self._transport
        t.attempts.append([info.doc_id.unique_id for info in batch])
        t.first_attempt.set()
        error = t.rule(batch, len(t.attempts)) if t.rule else None
        if error is not None:
            raise error
        t.delivered.append(list(batch))

    def abort(self) -> None:
        self._transport.aborted.set()

    def close(self) -> None:
        self._transport.sessions_closed += 1


def fail_when_contains(unique_id: str, error_cls: type[DeliveryError] = FailedToConnect) -> FailureRule:
    """Every batch containing ``unique_id`` fails."""

    def rule(batch: Sequence[FeedItem], attempt: int) -> DeliveryError | None:
        if any(info.doc_id.unique_id == unique_id for info in batch):
            return error_cls(OSError(f"refused {unique_id}"))
        return None

    return rule


def fail_first(times: int, error_cls: type[DeliveryError] = FailedToConnect) -> FailureRule:
    """The first ``times`` attempts fail, later ones succeed."""

    def rule(batch: Sequence[FeedItem], attempt: int) -> DeliveryError | None:
        if attempt <= times:
            return error_cls(OSError(f"attempt {attempt} failed"))
        return None

    return rule


def always_fail(error_cls: type[DeliveryError] = FailedToConnect) -> FailureRule:
    def rule(batch: Sequence[FeedItem], attempt: int) -> DeliveryError | None:
        return error_cls(OSError("consumer down"))

    return rule


# =============================================================================
# Recording Error Handler
# =============================================================================


class RecordingHandler:
    """Error handler that records calls and answers from a fixed decision."""

    def __init__(self, decision: bool | Callable[[int], bool] = False):
        self.decision = decision
        self.calls: list[tuple[str, Exception, int]] = []

    def _record(self, phase: str, error: Exception, ntries: int) -> bool:
        self.calls.append((phase, error, ntries))
        if callable(self.decision):
            return self.decision(ntries)
        return self.decision

    def handle_failed_to_connect(self, error: Exception, ntries: int) -> bool:
        return self._record("connect", error, ntries)

    def handle_failed_writing(self, error: Exception, ntries: int) -> bool:
        return self._record("write", error, ntries)

    def handle_failed_reading_reply(self, error: Exception, ntries: int) -> bool:
        return self._record("read_reply", error, ntries)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def doc_ids() -> list[DocId]:
    return [DocId("doc1"), DocId("doc2"), DocId("doc3")]


@pytest.fixture
def test_settings() -> Settings:
    """Provide settings with fast retries."""
    with patch.dict(
        "os.environ",
        {
            "PUSH_MAX_TRIES": "3",
            "PUSH_BASE_DELAY_SECONDS": "0.01",
            "PUSH_MAX_BATCH_SIZE": "2",
            "PUSH_FEED_NAME": "testfeed",
            "CONSUMER_FEED_URL": "http://consumer.test/xmlfeed",
        },
    ):
        get_settings.cache_clear()
        settings = get_settings()
    get_settings.cache_clear()
    return settings
