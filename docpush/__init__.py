"""
docpush - reliable DocId delivery to a search/indexing consumer.

Pushes document identifiers and their metadata in ordered batches,
retrying failed deliveries through a pluggable per-phase error handler,
and resolves tri-state authorization decisions for the consumer.
"""

from docpush.core.cancellation import CancellationToken
from docpush.core.errors import ConfigurationError, PushCancelled
from docpush.models.documents import DocId, DocInfo, FeedAction, MetaItem, PushAttributes
from docpush.push.error_handler import DefaultPushErrorHandler, PushErrorHandler
from docpush.push.pusher import DocIdPusher
from docpush.security.authorization import AuthzStatus

__version__ = "0.1.0"

__all__ = [
    "AuthzStatus",
    "CancellationToken",
    "ConfigurationError",
    "DefaultPushErrorHandler",
    "DocId",
    "DocIdPusher",
    "DocInfo",
    "FeedAction",
    "MetaItem",
    "PushAttributes",
    "PushCancelled",
    "PushErrorHandler",
]
