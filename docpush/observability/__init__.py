"""
Observability Module.

Provides structured logging with JSON output and per-push correlation IDs.
"""

from docpush.observability.logging import (
    LogContext,
    PushIdContext,
    configure_from_settings,
    configure_logging,
    push_id_var,
)

__all__ = [
    "LogContext",
    "PushIdContext",
    "configure_from_settings",
    "configure_logging",
    "push_id_var",
]
