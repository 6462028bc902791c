"""Tests for the model registry."""

from __future__ import annotations

from typed_populate.parsing import TypeParser
from typed_populate.populate import (
    ModelRegistry,
    PopulateArray,
    PopulateElement,
    PopulateEmbedded,
    PopulateEmbeddedArray,
    Relationship,
)


def _registry_for(dsl: str, root: str) -> ModelRegistry:
    types = TypeParser().parse(dsl)
    registry = ModelRegistry()
    registry.add_model(types.get(root))
    return registry


class TestModelRegistry:
    def test_empty(self):
        """A new registry has no models."""
        registry = ModelRegistry()
        assert registry.keys == []
        assert registry.get_populators_for("users") is None

    def test_reachable_types_registered(self, schema):
        """Adding a type registers every type it reaches."""
        registry = ModelRegistry()
        registry.add_model(schema.get_type("User"))
        assert registry.keys == ["users", "authors", "publishers"]
        assert "publishers" in registry
        assert "reviews" not in registry

    def test_populator_kinds(self, schema):
        """Each field shape gets its populator strategy."""
        registry = ModelRegistry()
        registry.add_model(schema.get_type("User"))
        populators = registry.get_populators_for("users")

        assert list(populators) == ["favorite_author", "blacklist", "profile", "reviews"]
        assert isinstance(populators["favorite_author"], PopulateElement)
        assert populators["favorite_author"].key == "authors"
        assert isinstance(populators["blacklist"], PopulateArray)
        assert isinstance(populators["profile"], PopulateEmbedded)
        assert isinstance(populators["profile"].populators["mentor"], PopulateElement)
        assert isinstance(populators["reviews"], PopulateEmbeddedArray)
        assert populators["reviews"].populators["reviewer"].key == "users"

    def test_leaf_type_has_no_populators(self, schema):
        """Types without references map to an empty populator dict."""
        registry = ModelRegistry()
        registry.add_model(schema.get_type("User"))
        assert registry.get_populators_for("publishers") == {}
        assert list(registry.get_populators_for("authors")) == ["publisher"]

    def test_add_model_is_idempotent(self, schema):
        """Adding a type twice keeps the first populators."""
        registry = ModelRegistry()
        registry.add_model(schema.get_type("Author"))
        first = registry.get_populators_for("authors")
        registry.add_model(schema.get_type("Author"))
        assert registry.get_populators_for("authors") is first

    def test_mutual_references_terminate(self):
        """Mutually referencing types are each registered once."""
        registry = _registry_for(
            "Team { captain: Player }\nPlayer { team: Team, rivals: Player[] }", "Team"
        )
        assert registry.keys == ["teams", "players"]
        assert registry.get_populators_for("players")["team"].key == "teams"
        assert registry.get_populators_for("players")["rivals"].key == "players"

    def test_embedded_without_references_skipped(self):
        """Embedded fields with nothing to resolve get no populator."""
        registry = _registry_for(
            "embedded Address { city: string }\n"
            "Customer { name: string, address: Address, addresses: Address[], tags: string[] }",
            "Customer",
        )
        assert registry.get_populators_for("customers") == {}

    def test_alias_to_document_type(self):
        """An alias of a document type populates like the type itself."""
        registry = _registry_for(
            "Author { name: string }\ndefine writer as Author\nBook { writer }", "Book"
        )
        populator = registry.get_populators_for("books")["writer"]
        assert isinstance(populator, PopulateElement)
        assert populator.key == "authors"

    def test_recursive_embedded(self):
        """A recursive embedded type reuses its own populator."""
        registry = _registry_for(
            "User { name: string }\n"
            "embedded Comment { author: User, replies: Comment[] }\n"
            "Post { comments: Comment[] }",
            "Post",
        )
        comments = registry.get_populators_for("posts")["comments"]
        assert comments.populators["replies"] is comments
        assert registry.keys == ["posts", "users"]


class TestDescribe:
    def test_describe(self, schema):
        """describe lists references with their embedding paths."""
        registry = ModelRegistry()
        registry.add_model(schema.get_type("User"))
        assert registry.describe("users") == [
            Relationship("favorite_author", "authors", "one"),
            Relationship("blacklist", "authors", "many"),
            Relationship("mentor", "users", "one", ("profile",)),
            Relationship("reviewer", "users", "one", ("reviews",)),
        ]

    def test_describe_leaf_and_unknown(self, schema):
        """Types without references, or unknown keys, describe nothing."""
        registry = ModelRegistry()
        registry.add_model(schema.get_type("Publisher"))
        assert registry.describe("publishers") == []
        assert registry.describe("ghosts") == []

    def test_describe_recursive_embedded(self):
        """Recursive embedded types are listed once."""
        registry = _registry_for(
            "User { name: string }\n"
            "embedded Comment { author: User, replies: Comment[] }\n"
            "Post { comments: Comment[] }",
            "Post",
        )
        assert registry.describe("posts") == [
            Relationship("author", "users", "one", ("comments",)),
        ]
