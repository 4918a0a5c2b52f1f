"""
Document Identity and Push Attributes.

Value objects describing what gets pushed to the indexing consumer:
- MetaItem: comparable name/value pair
- DocId: repository-relative identifier, tagged add or delete
- PushAttributes: metadata set plus indexing flags
- DocInfo: a DocId paired with its PushAttributes, the unit of a batch

All of them are immutable and safe to share between threads and batches.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import ClassVar

from docpush.core.errors import ConfigurationError


@dataclass(frozen=True, order=True)
class MetaItem:
    """
    A single metadata name and value.

    Ordering is by name, then value. A missing value is the empty string.
    """

    name: str
    value: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ConfigurationError("MetaItem name cannot be empty")
        if self.value is None:
            object.__setattr__(self, "value", "")
        elif not isinstance(self.value, str):
            raise ConfigurationError(f"MetaItem value must be a string, got {type(self.value).__name__}")

    @classmethod
    def raw(cls, name: str, value: str | None = None) -> "MetaItem":
        """Define your own metaname and give it a value."""
        return cls(name, value)

    def __str__(self) -> str:
        return f"MetaItem({self.name},{self.value})"


class FeedAction(str, Enum):
    """What the consumer should do with a pushed identifier."""

    ADD = "add"
    DELETE = "delete"


@dataclass(frozen=True, eq=False)
class DocId:
    """
    Identifier of a document in the content repository.

    Equality and hashing use only ``unique_id``: an add-tagged and a
    delete-tagged DocId for the same document are the same key. Transports
    read ``feed_action`` to decide feed semantics.
    """

    unique_id: str
    action: FeedAction = FeedAction.ADD

    def __post_init__(self) -> None:
        if not isinstance(self.unique_id, str):
            raise ConfigurationError("DocId unique_id must be a string")
        if not isinstance(self.action, FeedAction):
            object.__setattr__(self, "action", FeedAction(self.action))

    @classmethod
    def deleted(cls, unique_id: str) -> "DocId":
        """DocId telling the consumer to remove the document from its index."""
        return cls(unique_id, FeedAction.DELETE)

    @property
    def feed_action(self) -> str:
        return self.action.value

    @property
    def is_deleted(self) -> bool:
        return self.action is FeedAction.DELETE

    def as_deleted(self) -> "DocId":
        return replace(self, action=FeedAction.DELETE)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DocId):
            return NotImplemented
        return self.unique_id == other.unique_id

    def __hash__(self) -> int:
        return hash(self.unique_id)

    def __str__(self) -> str:
        return self.unique_id


@dataclass(frozen=True)
class PushAttributes:
    """
    Controls for a pushed DocId that dictate the consumer's treatment.

    ``PushAttributes.DEFAULT`` carries no metadata and no flags and is what
    bare DocIds are pushed with.
    """

    DEFAULT: ClassVar["PushAttributes"]

    metadata: frozenset[MetaItem] = field(default_factory=frozenset)
    last_modified: datetime | None = None
    result_link: str | None = None
    crawl_immediately: bool = False
    crawl_once: bool = False
    lock: bool = False

    def __post_init__(self) -> None:
        items = frozenset(self.metadata)
        for item in items:
            if not isinstance(item, MetaItem):
                raise ConfigurationError(f"Metadata entries must be MetaItem, got {type(item).__name__}")
        object.__setattr__(self, "metadata", items)

    def sorted_metadata(self) -> list[MetaItem]:
        """Metadata in canonical (name, value) order."""
        return sorted(self.metadata)

    def with_metadata(self, pairs: Iterable[MetaItem | tuple[str, str]]) -> "PushAttributes":
        """Return a copy with ``pairs`` added to the metadata set."""
        extra = [p if isinstance(p, MetaItem) else MetaItem(*p) for p in pairs]
        return replace(self, metadata=self.metadata | frozenset(extra))

    @property
    def is_default(self) -> bool:
        return self == PushAttributes.DEFAULT


PushAttributes.DEFAULT = PushAttributes()


@dataclass(frozen=True)
class DocInfo:
    """DocId and PushAttributes pair; one record of a push batch."""

    doc_id: DocId
    attributes: PushAttributes = PushAttributes.DEFAULT

    def __post_init__(self) -> None:
        if not isinstance(self.doc_id, DocId):
            raise ConfigurationError("DocInfo requires a DocId")
        if not isinstance(self.attributes, PushAttributes):
            raise ConfigurationError("DocInfo requires PushAttributes")
