"""
Structured Logging Configuration.

Configures structlog for:
- JSON output in production
- Colored console output in development
- Push ID injection, so every event of one push call can be correlated
- Censoring of credentials that reach log events
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Literal

import structlog
from structlog.types import EventDict, WrappedLogger

# Context variable for the push call currently running in this context
push_id_var: ContextVar[str | None] = ContextVar("push_id", default=None)

# Context variable for additional log context
_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


class LogContext:
    """
    Context manager for adding temporary context to logs.

    Usage:
        with LogContext(feed_name="hr-docs"):
            logger.info("Pushing batch")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs
        self._token = None

    def __enter__(self):
        current = _log_context.get().copy()
        current.update(self._context)
        self._token = _log_context.set(current)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token:
            _log_context.reset(self._token)
        return False


class PushIdContext:
    """Binds a fresh push ID for the duration of one push call."""

    def __init__(self, push_id: str | None = None):
        self.push_id = push_id or uuid.uuid4().hex[:12]
        self._token = None

    def __enter__(self) -> str:
        self._token = push_id_var.set(self.push_id)
        return self.push_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token:
            push_id_var.reset(self._token)
        return False


def add_push_id(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add the current push ID to log events."""
    push_id = push_id_var.get()
    if push_id:
        event_dict["push_id"] = push_id
    return event_dict


def add_log_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add context variables to log events."""
    context = _log_context.get()
    if context:
        event_dict.update(context)
    return event_dict


def add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add ISO timestamp to log events."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def add_service_info(service_name: str):
    """Build a processor that stamps the service name on log events."""

    def processor(
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict["service"] = service_name
        return event_dict

    return processor


def censor_sensitive_data(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Censor sensitive data from logs."""
    sensitive_keys = {
        "password", "api_key", "secret", "token", "authorization",
        "apikey", "api-key", "bearer", "credential", "private_key"
    }

    def censor_value(key: str, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: censor_value(k, v) for k, v in value.items()}
        elif isinstance(value, str) and any(s in key.lower() for s in sensitive_keys):
            return "***REDACTED***"
        return value

    for key in list(event_dict.keys()):
        event_dict[key] = censor_value(key, event_dict[key])

    return event_dict


def configure_logging(
    level: str = "INFO",
    format: Literal["json", "console"] = "json",
    service_name: str = "docpush",
) -> None:
    """
    Configure structlog for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: Output format ("json" for production, "console" for development)
        service_name: Service name for log identification
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        add_timestamp,
        add_service_info(service_name),
        add_push_id,
        add_log_context,
        censor_sensitive_data,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [structlog.processors.format_exc_info, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )

    # Reduce noise from the HTTP client
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def configure_from_settings(settings=None) -> None:
    """Configure logging from application settings."""
    if settings is None:
        from docpush.config.settings import get_settings

        settings = get_settings()

    configure_logging(
        level=settings.log_level,
        format=settings.observability.log_format,
        service_name=settings.app_name,
    )
