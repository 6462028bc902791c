"""Tests for the populate dump tool."""

from __future__ import annotations

import json

import pytest

from typed_populate import Schema
from typed_populate.dump import main
from typed_populate.seed import seed

SCHEMA_TEXT = """
Publisher { name: string }
Author { name: string, publisher: Publisher }
embedded Profile { mentor: User }
User { first_name: string, favorite_author: Author, blacklist: Author[], profile: Profile }
"""


@pytest.fixture
def data_dir(tmp_path):
    """A saved library with two users sharing an author."""
    path = tmp_path / "data"
    with Schema.parse(SCHEMA_TEXT, path) as schema:
        publisher = schema.create("Publisher", {"name": "Acme"}, doc_id="p1")
        author = schema.create("Author", {"name": "John Doe", "publisher": publisher}, doc_id="a1")
        schema.create("Author", {"name": "Unread"}, doc_id="a2")
        schema.create("User", {"first_name": "Paul", "favorite_author": author}, doc_id="u1")
        schema.create(
            "User",
            {"first_name": "John", "favorite_author": author, "profile": {"mentor": "u1"}},
            doc_id="u2",
        )
        schema.create("User", {"first_name": "Lost", "favorite_author": "gone"}, doc_id="u3")
    return path


class TestDumpMain:
    def test_list_collections(self, data_dir, capsys):
        """Without a type, the collections are listed."""
        assert main([str(data_dir)]) == 0
        out = capsys.readouterr().out
        assert "publishers (1 documents)" in out
        assert "authors (2 documents)" in out
        assert "users (3 documents)" in out

    def test_populate_by_id(self, data_dir, capsys):
        """Selected roots are populated and printed as JSON."""
        assert main([str(data_dir), "users", "u2"]) == 0
        result = json.loads(capsys.readouterr().out)

        assert [u["_id"] for u in result["users"]] == ["u2", "u1"]
        assert result["authors"] == [{"_id": "a1", "name": "John Doe", "publisher": "p1"}]
        assert result["publishers"] == [{"_id": "p1", "name": "Acme"}]

    def test_populate_by_type_name(self, data_dir, capsys):
        """Type names are accepted as well as type keys."""
        assert main([str(data_dir), "Author", "a2"]) == 0
        result = json.loads(capsys.readouterr().out)
        assert result == {
            "authors": [{"_id": "a2", "name": "Unread", "publisher": None}],
            "publishers": [],
        }

    def test_populate_whole_collection(self, data_dir, capsys):
        """Without ids, every document of the type is a root."""
        assert main([str(data_dir), "authors"]) == 0
        result = json.loads(capsys.readouterr().out)
        assert [a["_id"] for a in result["authors"]] == ["a1", "a2"]

    def test_strict(self, data_dir, capsys):
        """--strict reports dangling references."""
        assert main([str(data_dir), "users", "u3", "--strict"]) == 1
        assert "Documents not found in 'authors': gone" in capsys.readouterr().err

    def test_lenient(self, data_dir, capsys):
        """Without --strict dangling references are left out."""
        assert main([str(data_dir), "users", "u3"]) == 0
        result = json.loads(capsys.readouterr().out)
        assert result["authors"] == []

    def test_max_concurrency(self, data_dir, capsys):
        """--max-concurrency does not change the result."""
        assert main([str(data_dir), "users", "--max-concurrency", "1"]) == 0
        result = json.loads(capsys.readouterr().out)
        assert len(result["users"]) == 3

    def test_invalid_max_concurrency(self, data_dir, capsys):
        """Invalid option values are reported."""
        assert main([str(data_dir), "users", "--max-concurrency", "0"]) == 1
        assert "max_concurrency" in capsys.readouterr().err

    def test_relationships(self, data_dir, capsys):
        """--relationships prints the reference graph of a type."""
        assert main([str(data_dir), "users", "-r"]) == 0
        out = capsys.readouterr().out
        assert "favorite_author -> authors (one)" in out
        assert "blacklist -> authors (many)" in out
        assert "profile.mentor -> users (one)" in out
        assert "publishers:\n  (none)" in out

    def test_unknown_type(self, data_dir, capsys):
        """Unknown types are reported with the available collections."""
        assert main([str(data_dir), "writers"]) == 1
        captured = capsys.readouterr()
        assert "Unknown document type: writers" in captured.err
        assert "users" in captured.out

    def test_unknown_id(self, data_dir, capsys):
        """Unknown root ids are reported."""
        assert main([str(data_dir), "users", "nobody"]) == 1
        assert "nobody" in capsys.readouterr().err

    def test_missing_data_dir(self, tmp_path, capsys):
        """A missing data directory is reported."""
        assert main([str(tmp_path / "missing")]) == 1
        assert "Data directory not found" in capsys.readouterr().err


class TestRootIds:
    def test_integer_id(self, tmp_path, capsys):
        """Documents seeded with integer ids can be selected."""
        path = tmp_path / "data"
        with Schema.parse(SCHEMA_TEXT, path) as schema:
            seed(schema, {
                "publishers": [{"_id": 1, "name": "Acme"}],
                "authors": [{"_id": 7, "name": "John Doe", "publisher": "$ref:publishers.0"}],
            })

        assert main([str(path), "authors", "7"]) == 0
        result = json.loads(capsys.readouterr().out)
        assert result["authors"] == [{"_id": 7, "name": "John Doe", "publisher": 1}]
        assert result["publishers"] == [{"_id": 1, "name": "Acme"}]

    def test_uuid_id(self, tmp_path, capsys):
        """Generated UUID ids can be selected by their string form."""
        path = tmp_path / "data"
        with Schema.parse(SCHEMA_TEXT, path) as schema:
            author = schema.create("Author", {"name": "John Doe"})

        assert main([str(path), "authors", str(author.id)]) == 0
        result = json.loads(capsys.readouterr().out)
        assert result["authors"][0]["_id"] == str(author.id)
