"""
Unit Tests for Document Models.

Tests MetaItem, DocId, PushAttributes and DocInfo value semantics.
"""

import dataclasses
from datetime import datetime, timezone
from itertools import product

import pytest

from docpush.core.errors import ConfigurationError
from docpush.models.documents import DocId, DocInfo, FeedAction, MetaItem, PushAttributes


class TestMetaItem:
    """Test cases for MetaItem."""

    def test_missing_value_is_empty_string(self) -> None:
        """Test that a None value becomes the empty string."""
        assert MetaItem("author").value == ""
        assert MetaItem.raw("author", None).value == ""

    @pytest.mark.parametrize("name", ["", None])
    def test_empty_name_rejected(self, name) -> None:
        """Test that a MetaItem needs a name."""
        with pytest.raises(ConfigurationError):
            MetaItem(name, "x")

    def test_ordering_is_name_then_value(self) -> None:
        """Test primary sort by name, secondary by value."""
        items = [MetaItem("b", "a"), MetaItem("a", "z"), MetaItem("a", "b"), MetaItem("b", "")]

        assert sorted(items) == [
            MetaItem("a", "b"),
            MetaItem("a", "z"),
            MetaItem("b", ""),
            MetaItem("b", "a"),
        ]

    def test_ordering_is_total(self) -> None:
        """Test exactly one of <, ==, > holds and agrees with tuple comparison."""
        items = [MetaItem(n, v) for n, v in product(["a", "ab", "b"], ["", "x", "y"])]

        for a, b in product(items, repeat=2):
            outcomes = [a < b, a == b, b < a]
            assert outcomes.count(True) == 1
            assert (a < b) == ((a.name, a.value) < (b.name, b.value))

    def test_equal_items_hash_equal(self) -> None:
        """Test equal MetaItems collapse in a set."""
        assert MetaItem("k", "v") == MetaItem.raw("k", "v")
        assert len({MetaItem("k", "v"), MetaItem("k", "v"), MetaItem("k")}) == 2

    def test_immutable(self) -> None:
        item = MetaItem("k", "v")
        with pytest.raises(dataclasses.FrozenInstanceError):
            item.name = "other"  # type: ignore[misc]


class TestDocId:
    """Test cases for DocId and its delete tag."""

    def test_deleted_equals_plain(self) -> None:
        """Test a delete-tagged DocId is the same key as the plain one."""
        plain = DocId("x")
        deleted = DocId.deleted("x")

        assert plain == deleted
        assert hash(plain) == hash(deleted)
        assert {plain: 1}[deleted] == 1

    def test_feed_action_discriminator(self) -> None:
        """Test the transport-facing action differs."""
        assert DocId("x").feed_action == "add"
        assert DocId.deleted("x").feed_action == "delete"
        assert DocId("x").as_deleted().action is FeedAction.DELETE

    def test_action_accepts_string(self) -> None:
        assert DocId("x", "delete").is_deleted

    def test_different_ids_differ(self) -> None:
        assert DocId("x") != DocId("y")

    def test_non_string_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            DocId(None)  # type: ignore[arg-type]


class TestPushAttributes:
    """Test cases for PushAttributes."""

    def test_default_has_no_metadata_or_flags(self) -> None:
        default = PushAttributes.DEFAULT

        assert default.metadata == frozenset()
        assert default.last_modified is None
        assert default.result_link is None
        assert not (default.crawl_immediately or default.crawl_once or default.lock)
        assert PushAttributes() == default
        assert default.is_default

    def test_with_metadata_returns_copy(self) -> None:
        """Test adding metadata leaves the original untouched."""
        attrs = PushAttributes.DEFAULT.with_metadata([("title", "Report"), MetaItem("lang", "en")])

        assert PushAttributes.DEFAULT.metadata == frozenset()
        assert attrs.sorted_metadata() == [MetaItem("lang", "en"), MetaItem("title", "Report")]
        assert not attrs.is_default

    def test_metadata_is_a_set(self) -> None:
        attrs = PushAttributes(metadata=[MetaItem("a", "1"), MetaItem("a", "1")])
        assert attrs.metadata == frozenset({MetaItem("a", "1")})

    def test_flags_and_equality(self) -> None:
        when = datetime(2024, 1, 2, tzinfo=timezone.utc)
        a = PushAttributes(last_modified=when, crawl_once=True, lock=True)
        b = PushAttributes(last_modified=when, crawl_once=True, lock=True)

        assert a == b
        assert hash(a) == hash(b)
        assert a != dataclasses.replace(a, lock=False)

    def test_rejects_non_metaitem_metadata(self) -> None:
        with pytest.raises(ConfigurationError):
            PushAttributes(metadata=[("a", "b")])  # type: ignore[list-item]


class TestDocInfo:
    """Test cases for DocInfo."""

    def test_defaults_to_default_attributes(self) -> None:
        info = DocInfo(DocId("a"))
        assert info.attributes is PushAttributes.DEFAULT

    def test_equality_covers_attributes(self) -> None:
        attrs = PushAttributes(crawl_immediately=True)

        assert DocInfo(DocId("a"), attrs) == DocInfo(DocId("a"), attrs)
        assert DocInfo(DocId("a"), attrs) != DocInfo(DocId("a"))

    def test_none_fields_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            DocInfo(None)  # type: ignore[arg-type]
        with pytest.raises(ConfigurationError):
            DocInfo(DocId("a"), None)  # type: ignore[arg-type]

    def test_bare_string_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            DocInfo("a")  # type: ignore[arg-type]
