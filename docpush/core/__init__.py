"""
Core Infrastructure Module.

Provides foundational pieces shared by the push pipeline:
- Error taxonomy (configuration, delivery phases, cancellation)
- Cooperative cancellation tokens and cancellable sleeps
"""

from docpush.core.cancellation import (
    CancellationToken,
    cancellable_sleep,
    cancellation_scope,
    get_current_token,
)
from docpush.core.errors import (
    ConfigurationError,
    DeliveryError,
    DocPushError,
    FailedReadingReply,
    FailedToConnect,
    FailedWriting,
    FailurePhase,
    PushCancelled,
)

__all__ = [
    # Cancellation
    "CancellationToken",
    "cancellable_sleep",
    "cancellation_scope",
    "get_current_token",
    # Errors
    "ConfigurationError",
    "DeliveryError",
    "DocPushError",
    "FailedReadingReply",
    "FailedToConnect",
    "FailedWriting",
    "FailurePhase",
    "PushCancelled",
]
