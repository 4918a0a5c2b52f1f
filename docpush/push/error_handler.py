"""
Push Error Handlers.

Decide, per failure phase, whether the pusher should re-send a batch:
- PushErrorHandler protocol with one method per failure phase
- dispatch_failure, the single point where a DeliveryError reaches a handler
- DefaultPushErrorHandler: bounded tries with linearly increasing backoff
"""

from typing import Protocol, runtime_checkable

import structlog

from docpush.core.cancellation import cancellable_sleep
from docpush.core.errors import ConfigurationError, DeliveryError, FailurePhase

logger = structlog.get_logger(__name__)


@runtime_checkable
class PushErrorHandler(Protocol):
    """
    Policy consulted by the pusher when a delivery attempt fails.

    ``ntries`` is the number of attempts already made for the batch,
    starting at 1. Return True to re-send the same batch, False to give up.
    Implementations may block before returning True; use
    :func:`docpush.core.cancellation.cancellable_sleep` so the wait ends
    when the push call is cancelled.
    """

    def handle_failed_to_connect(self, error: Exception, ntries: int) -> bool:
        ...

    def handle_failed_writing(self, error: Exception, ntries: int) -> bool:
        ...

    def handle_failed_reading_reply(self, error: Exception, ntries: int) -> bool:
        ...


def dispatch_failure(handler: PushErrorHandler, failure: DeliveryError, ntries: int) -> bool:
    """Route ``failure`` to the handler method for its phase."""
    error = failure.cause if failure.cause is not None else failure
    match failure.phase:
        case FailurePhase.CONNECT:
            return handler.handle_failed_to_connect(error, ntries)
        case FailurePhase.WRITE:
            return handler.handle_failed_writing(error, ntries)
        case FailurePhase.READ_REPLY:
            return handler.handle_failed_reading_reply(error, ntries)
    raise ValueError(f"Unknown failure phase: {failure.phase!r}")


class DefaultPushErrorHandler:
    """
    Gives up after ``max_tries`` attempts, otherwise sleeps
    ``base_delay * ntries`` seconds and asks for a retry.

    The handler holds only its configuration, so one instance can serve
    concurrent push calls.
    """

    def __init__(self, max_tries: int = 12, base_delay: float = 5.0):
        if max_tries < 0:
            raise ConfigurationError(f"max_tries must be >= 0, got {max_tries}")
        if base_delay < 0:
            raise ConfigurationError(f"base_delay must be >= 0, got {base_delay}")
        self._max_tries = max_tries
        self._base_delay = base_delay

    @classmethod
    def from_settings(cls, settings=None) -> "DefaultPushErrorHandler":
        """Build the handler from the ``push`` settings."""
        if settings is None:
            from docpush.config.settings import get_settings

            settings = get_settings()
        return cls(
            max_tries=settings.push.max_tries,
            base_delay=settings.push.base_delay_seconds,
        )

    @property
    def max_tries(self) -> int:
        return self._max_tries

    @property
    def base_delay(self) -> float:
        return self._base_delay

    def handle_failed_to_connect(self, error: Exception, ntries: int) -> bool:
        return self.handle_generic(error, ntries)

    def handle_failed_writing(self, error: Exception, ntries: int) -> bool:
        return self.handle_generic(error, ntries)

    def handle_failed_reading_reply(self, error: Exception, ntries: int) -> bool:
        return self.handle_generic(error, ntries)

    def handle_generic(self, error: Exception, ntries: int) -> bool:
        """
        Common rule for every phase.

        Raises:
            PushCancelled: the push call was cancelled during the backoff
        """
        if ntries > self._max_tries:
            logger.debug(
                "Retry budget exhausted",
                ntries=ntries,
                max_tries=self._max_tries,
                error_type=type(error).__name__,
            )
            return False

        delay = self._base_delay * ntries
        logger.debug(
            "Backing off before retry",
            ntries=ntries,
            max_tries=self._max_tries,
            delay_seconds=f"{delay:.2f}",
        )
        cancellable_sleep(delay)
        return True

    def __repr__(self) -> str:
        return f"DefaultPushErrorHandler(max_tries={self._max_tries}, base_delay={self._base_delay})"
