"""Document identity and push attribute models."""

from docpush.models.documents import (
    DocId,
    DocInfo,
    FeedAction,
    MetaItem,
    PushAttributes,
)

__all__ = [
    "DocId",
    "DocInfo",
    "FeedAction",
    "MetaItem",
    "PushAttributes",
]
