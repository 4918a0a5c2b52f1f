"""
Push Pipeline Module.

Delivers DocIds to the indexing consumer:
- DocIdPusher façade (bare DocIds and DocInfos)
- Pluggable per-phase retry policy with a bounded linear-backoff default
- Transport capability and its httpx implementation
- Journal of pushed batches for status reporting
"""

from docpush.push.error_handler import (
    DefaultPushErrorHandler,
    PushErrorHandler,
    dispatch_failure,
)
from docpush.push.journal import JournalSnapshot, PushJournal, PushOutcome
from docpush.push.pusher import DocIdPusher
from docpush.push.transport import (
    FeedSession,
    FeedTransport,
    HttpFeedSession,
    HttpFeedTransport,
)

__all__ = [
    # Pusher
    "DocIdPusher",
    # Error handling
    "DefaultPushErrorHandler",
    "PushErrorHandler",
    "dispatch_failure",
    # Journal
    "JournalSnapshot",
    "PushJournal",
    "PushOutcome",
    # Transport
    "FeedSession",
    "FeedTransport",
    "HttpFeedSession",
    "HttpFeedTransport",
]
