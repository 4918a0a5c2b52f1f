"""
Feed Transport.

The pusher only needs a capability that delivers one ordered batch per
attempt and reports failures by phase:

- FeedTransport.open_session() -> FeedSession, one per push call
- FeedSession.deliver(batch) raises FailedToConnect / FailedWriting /
  FailedReadingReply
- FeedSession.abort() cuts an in-flight deliver short from another thread
- FeedSession.close() releases the connection

A batch holds FeedItems: DocInfos, or NamedResources carrying an ACL.
HttpFeedTransport is the httpx implementation that posts a
metadata-and-url feed to the consumer.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol, runtime_checkable

import httpx
import structlog
from pydantic import BaseModel, Field

from docpush.core.errors import FailedReadingReply, FailedToConnect, FailedWriting
from docpush.models.documents import DocInfo
from docpush.security.authorization import Acl, NamedResource

logger = structlog.get_logger(__name__)

FEED_TYPE = "metadata-and-url"
SUCCESS_REPLY = "Success"

FeedItem = DocInfo | NamedResource


@runtime_checkable
class FeedSession(Protocol):
    """A connection to the consumer owned by a single push call."""

    def deliver(self, batch: Sequence[FeedItem]) -> None:
        ...

    def abort(self) -> None:
        """Make a running ``deliver`` fail promptly. Called from another thread."""
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class FeedTransport(Protocol):
    """Factory of feed sessions."""

    def open_session(self) -> FeedSession:
        ...


# =============================================================================
# Feed Body
# =============================================================================


class FeedMetaItem(BaseModel):
    name: str
    value: str


class FeedAcl(BaseModel):
    """ACL section of a feed record; principal lists are sorted."""

    permit_users: list[str] = Field(default_factory=list)
    deny_users: list[str] = Field(default_factory=list)
    permit_groups: list[str] = Field(default_factory=list)
    deny_groups: list[str] = Field(default_factory=list)
    inherit_from: str | None = None
    inheritance_type: str

    @classmethod
    def from_acl(cls, acl: Acl) -> "FeedAcl":
        return cls(
            permit_users=sorted(acl.permit_users),
            deny_users=sorted(acl.deny_users),
            permit_groups=sorted(acl.permit_groups),
            deny_groups=sorted(acl.deny_groups),
            inherit_from=acl.inherit_from.unique_id if acl.inherit_from else None,
            inheritance_type=acl.inheritance_type.value,
        )


class FeedRecord(BaseModel):
    """One record of the feed body."""

    doc_id: str
    action: str
    metadata: list[FeedMetaItem] = Field(default_factory=list)
    last_modified: datetime | None = None
    result_link: str | None = None
    crawl_immediately: bool = False
    crawl_once: bool = False
    lock: bool = False
    acl: FeedAcl | None = None

    @classmethod
    def from_item(cls, item: FeedItem) -> "FeedRecord":
        match item:
            case DocInfo():
                return cls.from_doc_info(item)
            case NamedResource():
                return cls.from_named_resource(item)
        raise TypeError(f"Cannot encode {type(item).__name__} as a feed record")

    @classmethod
    def from_doc_info(cls, info: DocInfo) -> "FeedRecord":
        attrs = info.attributes
        return cls(
            doc_id=info.doc_id.unique_id,
            action=info.doc_id.feed_action,
            metadata=[
                FeedMetaItem(name=item.name, value=item.value)
                for item in attrs.sorted_metadata()
            ],
            last_modified=attrs.last_modified,
            result_link=attrs.result_link,
            crawl_immediately=attrs.crawl_immediately,
            crawl_once=attrs.crawl_once,
            lock=attrs.lock,
        )

    @classmethod
    def from_named_resource(cls, resource: NamedResource) -> "FeedRecord":
        return cls(
            doc_id=resource.doc_id.unique_id,
            action=resource.doc_id.feed_action,
            acl=FeedAcl.from_acl(resource.acl),
        )


class FeedPayload(BaseModel):
    datasource: str
    feedtype: str = FEED_TYPE
    records: list[FeedRecord]


# =============================================================================
# HTTP Transport
# =============================================================================


class HttpFeedSession:
    """Feed session backed by one httpx.Client."""

    def __init__(self, client: httpx.Client, feed_url: str, feed_name: str):
        self._client = client
        self._feed_url = feed_url
        self._feed_name = feed_name

    def deliver(self, batch: Sequence[FeedItem]) -> None:
        payload = FeedPayload(
            datasource=self._feed_name,
            records=[FeedRecord.from_item(item) for item in batch],
        )

        try:
            response = self._client.post(self._feed_url, json=payload.model_dump(mode="json"))
        except (httpx.ConnectError, httpx.ConnectTimeout, httpx.PoolTimeout) as e:
            raise FailedToConnect(e) from e
        except (httpx.WriteError, httpx.WriteTimeout) as e:
            raise FailedWriting(e) from e
        except (httpx.ReadError, httpx.ReadTimeout, httpx.RemoteProtocolError) as e:
            raise FailedReadingReply(e) from e
        except httpx.TransportError as e:
            raise FailedToConnect(e) from e

        if not response.is_success:
            raise FailedReadingReply(
                message=f"Consumer replied with HTTP {response.status_code}"
            )

        reply = response.text.strip()
        if reply != SUCCESS_REPLY:
            raise FailedReadingReply(message=f"Consumer reply: {reply[:200]!r}")

        logger.debug("Feed accepted", feed_name=self._feed_name, records=len(batch))

    def abort(self) -> None:
        """Close the client under a running request; its deliver fails."""
        logger.info("Aborting feed delivery", feed_name=self._feed_name)
        self._client.close()

    def close(self) -> None:
        self._client.close()


class HttpFeedTransport:
    """
    Posts JSON feeds to the consumer's feed endpoint.

    Usage:
        transport = HttpFeedTransport("http://indexer:19900/xmlfeed", "hr-docs")
        pusher = DocIdPusher(transport)
    """

    def __init__(
        self,
        feed_url: str,
        feed_name: str,
        timeout: float = 30.0,
        client_transport: httpx.BaseTransport | None = None,
    ):
        self.feed_url = feed_url
        self.feed_name = feed_name
        self.timeout = timeout
        self._client_transport = client_transport

    @classmethod
    def from_settings(cls, settings=None) -> "HttpFeedTransport":
        if settings is None:
            from docpush.config.settings import get_settings

            settings = get_settings()
        return cls(
            feed_url=settings.consumer.feed_url,
            feed_name=settings.push.feed_name,
            timeout=settings.consumer.timeout_seconds,
        )

    def open_session(self) -> HttpFeedSession:
        client = httpx.Client(
            timeout=httpx.Timeout(self.timeout),
            transport=self._client_transport,
        )
        return HttpFeedSession(client, self.feed_url, self.feed_name)
