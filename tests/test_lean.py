"""Tests for converting documents into plain values."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from typed_populate.lean import to_plain_value


class TestToPlainValue:
    def test_document(self, schema):
        """Documents become dicts with an _id key first."""
        author = schema.create("Author", {"name": "John"}, doc_id="a1")
        assert to_plain_value(author) == {"_id": "a1", "name": "John", "publisher": None}
        assert list(to_plain_value(author))[0] == "_id"

    def test_document_lean(self, schema):
        """Document.lean is a shortcut for to_plain_value."""
        author = schema.create("Author", {"name": "John"})
        assert author.lean() == to_plain_value(author)
        assert author.lean()["_id"] == str(author.id)

    def test_uuid(self):
        """UUIDs become strings."""
        value = UUID("12345678-1234-5678-1234-567812345678")
        assert to_plain_value(value) == "12345678-1234-5678-1234-567812345678"

    def test_dates(self):
        """Dates and datetimes become ISO strings."""
        assert to_plain_value(date(2024, 1, 2)) == "2024-01-02"
        assert to_plain_value(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05"

    def test_populate_result(self, schema):
        """A whole populate result converts to JSON-ready data."""
        author = schema.create("Author", {"name": "John"}, doc_id="a1")
        user = schema.create(
            "User", {"first_name": "Paul", "favorite_author": author, "reviews": []}, doc_id="u1"
        )
        result = {"users": [user], "authors": (author,)}
        plain = to_plain_value(result)
        assert plain["authors"] == [{"_id": "a1", "name": "John", "publisher": None}]
        assert plain["users"][0]["favorite_author"] == "a1"
        assert plain["users"][0]["reviews"] == []

    def test_scalars_unchanged(self):
        """Plain scalars pass through."""
        assert to_plain_value(3) == 3
        assert to_plain_value("x") == "x"
        assert to_plain_value(None) is None
