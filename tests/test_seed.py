"""Tests for seeding a data directory from a JSON fixture."""

from __future__ import annotations

import json

import pytest

from typed_populate import Schema, SchemaError
from typed_populate.seed import main, seed

SCHEMA_TEXT = """
Author { name: string }
embedded Review { reviewer: User, stars: int }
User { first_name: string, favorite_author: Author, reviews: Review[] }
"""

FIXTURE = {
    "users": [
        {"first_name": "Paul", "favorite_author": "$ref:authors.0"},
        {
            "_id": "john",
            "first_name": "John",
            "favorite_author": "$ref:authors.0",
            "reviews": [{"reviewer": "$ref:users.0", "stars": 5}],
        },
    ],
    "Author": [{"name": "John Doe"}],
}


class TestSeed:
    def test_creates_documents(self):
        """Fixture rows become stored documents, grouped by type key."""
        schema = Schema.parse(SCHEMA_TEXT)
        created = seed(schema, FIXTURE)

        assert list(created) == ["users", "authors"]
        assert [u["first_name"] for u in created["users"]] == ["Paul", "John"]
        assert schema.all("Author") == created["authors"]

    def test_forward_references(self):
        """References may point at rows created later."""
        schema = Schema.parse(SCHEMA_TEXT)
        created = seed(schema, FIXTURE)

        author = created["authors"][0]
        paul, john = created["users"]
        assert paul["favorite_author"] == author.id
        assert john.id == "john"
        assert john["reviews"] == [{"reviewer": paul.id, "stars": 5}]

    def test_unknown_type(self):
        """Unknown type names in the fixture are rejected."""
        schema = Schema.parse(SCHEMA_TEXT)
        with pytest.raises(SchemaError, match="Unknown document type in fixture: 'writers'"):
            seed(schema, {"writers": [{}]})

    @pytest.mark.parametrize("ref", ["$ref:authors.3", "$ref:writers.0", "$ref:authors.x", "$ref:authors"])
    def test_bad_reference(self, ref):
        """References that do not name a fixture row are rejected."""
        schema = Schema.parse(SCHEMA_TEXT)
        with pytest.raises(SchemaError, match="Unresolvable fixture reference"):
            seed(schema, {"authors": [{"name": "A"}], "users": [{"favorite_author": ref}]})

    @pytest.mark.asyncio
    async def test_seeded_documents_populate(self):
        """Seeded documents can be populated right away."""
        schema = Schema.parse(SCHEMA_TEXT)
        created = seed(schema, FIXTURE)

        result = await schema.populate_all(created["users"])
        assert result == {"users": created["users"], "authors": created["authors"]}


class TestSeedMain:
    @pytest.fixture
    def inputs(self, tmp_path):
        schema_path = tmp_path / "library.tps"
        schema_path.write_text(SCHEMA_TEXT)
        fixture_path = tmp_path / "fixture.json"
        fixture_path.write_text(json.dumps(FIXTURE))
        return schema_path, fixture_path

    def test_writes_data_dir(self, tmp_path, inputs, capsys):
        """main writes a loadable data directory."""
        schema_path, fixture_path = inputs
        out = tmp_path / "data"

        assert main([str(schema_path), str(fixture_path), "-o", str(out)]) == 0
        assert "Wrote 3 documents" in capsys.readouterr().err

        loaded = Schema.load(out)
        assert loaded.get("User", "john")["first_name"] == "John"
        assert len(loaded.all("Author")) == 1

    def test_clear(self, tmp_path, inputs):
        """--clear replaces an existing data directory."""
        schema_path, fixture_path = inputs
        out = tmp_path / "data"
        out.mkdir()
        (out / "stale.json").write_text("[]")

        assert main([str(schema_path), str(fixture_path), "-o", str(out), "-c"]) == 0
        assert not (out / "stale.json").exists()

    def test_missing_file(self, tmp_path, inputs, capsys):
        """A missing input file is reported."""
        schema_path, _ = inputs
        missing = tmp_path / "nope.json"

        assert main([str(schema_path), str(missing), "-o", str(tmp_path / "data")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_invalid_json(self, tmp_path, inputs, capsys):
        """A malformed fixture is reported."""
        schema_path, fixture_path = inputs
        fixture_path.write_text("{not json")

        assert main([str(schema_path), str(fixture_path), "-o", str(tmp_path / "data")]) == 1
        assert "Invalid JSON" in capsys.readouterr().err

    def test_bad_fixture_writes_nothing(self, tmp_path, inputs, capsys):
        """A failing seed leaves no data directory behind."""
        schema_path, fixture_path = inputs
        fixture_path.write_text(json.dumps({"users": [{"favorite_author": "$ref:authors.0"}]}))
        out = tmp_path / "data"

        assert main([str(schema_path), str(fixture_path), "-o", str(out)]) == 1
        assert "Unresolvable" in capsys.readouterr().err
        assert not out.exists()
