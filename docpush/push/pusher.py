"""
DocId Pusher.

Entry point for pushing to the indexing consumer:
- push_doc_ids: bare DocIds, pushed with default attributes
- push_doc_infos: DocIds with their PushAttributes
- push_named_resources: ACLs for DocIds, pushed on their own

Items are delivered in iteration order, in batches of at most
``max_batch_size``. A failed batch is offered to the PushErrorHandler until
it succeeds or the handler gives up; giving up stops the call and returns
the first item of that batch. Cancellation raises PushCancelled, and also
aborts a delivery that is in flight.
"""

from collections.abc import Iterable, Iterator, Mapping
from contextlib import closing
from itertools import chain, islice
from typing import TypeVar

import structlog

from docpush.core.cancellation import CancellationToken, cancellation_scope
from docpush.core.errors import ConfigurationError, DeliveryError, PushCancelled
from docpush.models.documents import DocId, DocInfo
from docpush.observability.logging import LogContext, PushIdContext
from docpush.push.error_handler import (
    DefaultPushErrorHandler,
    PushErrorHandler,
    dispatch_failure,
)
from docpush.push.journal import PushJournal, PushOutcome
from docpush.push.transport import FeedItem, FeedSession, FeedTransport
from docpush.security.authorization import Acl, NamedResource

logger = structlog.get_logger(__name__)

Item = TypeVar("Item", DocInfo, NamedResource)


def _batched(items: Iterable[Item], size: int) -> Iterator[list[Item]]:
    iterator = iter(items)
    while batch := list(islice(iterator, size)):
        yield batch


class DocIdPusher:
    """
    Pushes DocIds to the consumer and blocks until they are accepted or the
    error handler gives up.

    Usage:
        pusher = DocIdPusher(HttpFeedTransport.from_settings())
        failed = pusher.push_doc_ids([DocId("a"), DocId.deleted("b")])
        if failed is not None:
            ...  # failed and everything after it were not delivered
    """

    def __init__(
        self,
        transport: FeedTransport,
        default_handler: PushErrorHandler | None = None,
        max_batch_size: int = 5000,
        journal: PushJournal | None = None,
    ):
        if max_batch_size < 1:
            raise ConfigurationError(f"max_batch_size must be >= 1, got {max_batch_size}")
        self._transport = transport
        self._default_handler = default_handler or DefaultPushErrorHandler()
        self._max_batch_size = max_batch_size
        self.journal = journal or PushJournal()

    @classmethod
    def from_settings(
        cls,
        settings=None,
        transport: FeedTransport | None = None,
    ) -> "DocIdPusher":
        """Build a pusher, default handler and (unless given) HTTP transport from settings."""
        if settings is None:
            from docpush.config.settings import get_settings

            settings = get_settings()

        if transport is None:
            from docpush.push.transport import HttpFeedTransport

            transport = HttpFeedTransport.from_settings(settings)

        return cls(
            transport,
            default_handler=DefaultPushErrorHandler.from_settings(settings),
            max_batch_size=settings.push.max_batch_size,
        )

    @property
    def default_handler(self) -> PushErrorHandler:
        return self._default_handler

    def push_doc_ids(
        self,
        doc_ids: Iterable[DocId],
        handler: PushErrorHandler | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> DocId | None:
        """
        Push DocIds with default attributes.

        Returns:
            None on success, otherwise the first DocId that was not delivered

        Raises:
            PushCancelled: ``cancel_token`` was cancelled
        """
        failed = self.push_doc_infos(
            (DocInfo(doc_id) for doc_id in doc_ids),
            handler,
            cancel_token=cancel_token,
        )
        return failed.doc_id if failed is not None else None

    def push_doc_infos(
        self,
        doc_infos: Iterable[DocInfo],
        handler: PushErrorHandler | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> DocInfo | None:
        """
        Push DocInfos, batch by batch, in iteration order.

        Args:
            doc_infos: Records to push
            handler: Retry policy; the pusher's default handler if None
            cancel_token: Signal that aborts the call, including during backoff
                and while a batch is being delivered

        Returns:
            None on success, otherwise the first DocInfo that was not delivered

        Raises:
            PushCancelled: ``cancel_token`` was cancelled
        """
        return self._push_items(doc_infos, handler, cancel_token, kind="doc_infos")

    def push_named_resources(
        self,
        resources: Mapping[DocId, Acl],
        handler: PushErrorHandler | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> DocId | None:
        """
        Push ACLs for DocIds, in the mapping's iteration order.

        Returns:
            None on success, otherwise the first DocId whose ACL was not delivered

        Raises:
            PushCancelled: ``cancel_token`` was cancelled
        """
        failed = self._push_items(
            (NamedResource(doc_id, acl) for doc_id, acl in resources.items()),
            handler,
            cancel_token,
            kind="named_resources",
        )
        return failed.doc_id if failed is not None else None

    def _push_items(
        self,
        items: Iterable[Item],
        handler: PushErrorHandler | None,
        cancel_token: CancellationToken | None,
        kind: str,
    ) -> Item | None:
        if handler is None:
            handler = self._default_handler
        token = cancel_token or CancellationToken()

        batches = _batched(items, self._max_batch_size)
        first_batch = next(batches, None)
        if first_batch is None:
            return None

        current: list[Item] = first_batch
        with PushIdContext(), LogContext(push_kind=kind), cancellation_scope(token):
            logger.info("Pushing items", handler=type(handler).__name__)
            try:
                with closing(self._transport.open_session()) as session:
                    for current in chain([first_batch], batches):
                        if not self._push_batch(session, current, handler, token):
                            self.journal.record_outcome(PushOutcome.GAVE_UP)
                            logger.warning(
                                "Failed to push all items",
                                first_failed=current[0].doc_id.unique_id,
                            )
                            return current[0]
            except PushCancelled as e:
                if e.pending is None:
                    e.pending = current[0]
                self.journal.record_outcome(PushOutcome.CANCELLED)
                logger.info(
                    "Push cancelled",
                    first_pending=current[0].doc_id.unique_id,
                )
                raise

            self.journal.record_outcome(PushOutcome.SUCCEEDED)
            logger.info("Pushed items")
        return None

    def _deliver(
        self,
        session: FeedSession,
        batch: list[FeedItem],
        token: CancellationToken,
    ) -> DeliveryError | None:
        """
        One delivery attempt, aborted if the token is cancelled meanwhile.

        Returns the attempt's DeliveryError, or None if the batch was accepted.

        Raises:
            PushCancelled: the token was cancelled before the attempt
                completed, whatever its result
        """
        token.raise_if_cancelled()
        try:
            with token.on_cancel(session.abort):
                session.deliver(batch)
        except DeliveryError as e:
            failure: DeliveryError | None = e
        except Exception:
            # Errors out of an aborted delivery are the cancellation's doing
            token.raise_if_cancelled()
            raise
        else:
            failure = None
        token.raise_if_cancelled()
        return failure

    def _push_batch(
        self,
        session: FeedSession,
        batch: list[FeedItem],
        handler: PushErrorHandler,
        token: CancellationToken,
    ) -> bool:
        """Deliver one batch, retrying while the handler allows. True on success."""
        logger.info("Pushing batch", batch_size=len(batch))

        ntries = 0
        while True:
            ntries += 1
            failure = self._deliver(session, batch, token)
            if failure is None:
                self.journal.record_batch_pushed(batch)
                logger.info("Batch pushed", batch_size=len(batch), ntries=ntries)
                return True

            logger.warning(
                "Batch delivery failed",
                phase=failure.phase.value,
                ntries=ntries,
                error_type=type(failure.cause or failure).__name__,
                error=str(failure)[:200],
            )
            keep_going = dispatch_failure(handler, failure, ntries)

            # A cancel that lands while the handler decides beats its decision
            token.raise_if_cancelled()
            if not keep_going:
                logger.warning(
                    "Gave up on batch",
                    ntries=ntries,
                    first_doc_id=batch[0].doc_id.unique_id,
                )
                return False

            self.journal.record_retry()
            logger.info("Trying batch again", ntries=ntries)
