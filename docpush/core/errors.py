"""
Error Taxonomy for the Push Pipeline.

- ConfigurationError: invalid construction arguments, never retried
- DeliveryError: transient transport failure, arbitrated by a PushErrorHandler
  - FailedToConnect / FailedWriting / FailedReadingReply, one per phase
- PushCancelled: cooperative abort, always propagates

Giving up after the policy declines is not an exception; the pusher returns
the first record it could not deliver.
"""

from enum import Enum
from typing import Any


class FailurePhase(str, Enum):
    """Phase of a delivery attempt in which the transport failed."""

    CONNECT = "connect"          # Could not reach the consumer
    WRITE = "write"              # Request body not fully transmitted
    READ_REPLY = "read_reply"    # Acknowledgement missing or unreadable


class DocPushError(Exception):
    """Base class for docpush errors."""

    pass


class ConfigurationError(DocPushError, ValueError):
    """Raised when an object is constructed with invalid arguments."""

    pass


class DeliveryError(DocPushError):
    """
    A single delivery attempt failed.

    The phase tells the error handler how far the attempt got; the original
    exception is kept as ``cause`` (and chained as ``__cause__`` when raised
    with ``from``).
    """

    phase: FailurePhase = FailurePhase.CONNECT

    def __init__(self, cause: Exception | None = None, message: str | None = None):
        self.cause = cause
        if message is None:
            message = str(cause) if cause is not None else self.phase.value
        super().__init__(message)


class FailedToConnect(DeliveryError):
    """Connection to the consumer could not be established."""

    phase = FailurePhase.CONNECT


class FailedWriting(DeliveryError):
    """Connected, but the feed could not be fully written."""

    phase = FailurePhase.WRITE


class FailedReadingReply(DeliveryError):
    """Feed was sent but the consumer's reply could not be read or was not a success."""

    phase = FailurePhase.READ_REPLY


class PushCancelled(DocPushError):
    """
    Raised when a push call observes its cancellation signal.

    When raised out of a pusher, ``pending`` is the first record that was
    not confirmed delivered.
    """

    def __init__(self, message: str = "Push cancelled", pending: Any = None):
        self.pending = pending
        super().__init__(message)
