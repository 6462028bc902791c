"""Schema class tying type definitions to a document store."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

from typed_populate.config import PopulateConfig
from typed_populate.document import Document
from typed_populate.errors import SchemaError
from typed_populate.parsing import TypeParser
from typed_populate.populate import populate_model, populate_models
from typed_populate.storage import StorageManager
from typed_populate.types import (
    ArrayTypeDefinition,
    DocumentTypeDefinition,
    EmbeddedTypeDefinition,
    StructuredTypeDefinition,
    TypeDefinition,
    TypeRegistry,
)


class Schema:
    """Parsed type definitions with storage management."""

    def __init__(
        self,
        registry: TypeRegistry,
        data_dir: Path | None = None,
        storage: StorageManager | None = None,
    ) -> None:
        """Initialize a schema.

        Args:
            registry: Type registry with all type definitions.
            data_dir: Directory to persist documents to, or None for memory only.
            storage: Existing storage to use instead of creating one.
        """
        self.registry = registry
        self.storage = storage if storage is not None else StorageManager(registry, data_dir)

    @classmethod
    def parse(cls, type_definitions: str, data_dir: Path | str | None = None) -> Schema:
        """Parse type definitions and create a schema.

        Args:
            type_definitions: DSL string defining types.
            data_dir: Directory for storing collections, or None.

        Returns:
            A new Schema instance.
        """
        registry = TypeParser().parse(type_definitions)

        if isinstance(data_dir, str):
            data_dir = Path(data_dir)

        return cls(registry, data_dir)

    @classmethod
    def load(cls, data_dir: Path | str) -> Schema:
        """Open a schema previously saved to a data directory."""
        storage = StorageManager.load(Path(data_dir))
        return cls(storage.registry, storage=storage)

    def get_type(self, name: str) -> TypeDefinition:
        """Get a type definition by name.

        Raises:
            KeyError: If the type is not found.
        """
        return self.registry.get_or_raise(name)

    def get_document_type(self, name: str) -> DocumentTypeDefinition:
        """Get a document type by name or type key."""
        type_def = self.registry.get(name) or self.registry.get_by_key(name)
        if not isinstance(type_def, DocumentTypeDefinition):
            raise KeyError(f"Document type '{name}' not found")
        return type_def

    def list_types(self) -> list[str]:
        """List all registered type names."""
        return self.registry.list_types()

    def create(self, type_name: str, values: dict[str, Any], doc_id: Any = None) -> Document:
        """Create a document and store it.

        Reference fields accept either a Document or a raw id; embedded fields
        accept mappings (or lists of mappings for embedded arrays).

        Args:
            type_name: Name (or type key) of the document type.
            values: Field values by name. Missing fields are stored as None.
            doc_id: Explicit id; a new UUID is assigned when omitted.

        Returns:
            The stored Document.

        Raises:
            SchemaError: If a value names an unknown field or has the wrong shape.
        """
        type_def = self.get_document_type(type_name)
        normalized = _normalize_fields(type_def, values)
        return self.storage.get_collection(type_def.type_key).insert(normalized, doc_id=doc_id)

    def get(self, type_name: str, doc_id: Any) -> Document:
        """Get a stored document by type and id."""
        type_def = self.get_document_type(type_name)
        return self.storage.get_collection(type_def.type_key).get(doc_id)

    def all(self, type_name: str) -> list[Document]:
        """Return every stored document of a type."""
        type_def = self.get_document_type(type_name)
        return self.storage.get_collection(type_def.type_key).all()

    async def populate(
        self, document: Document, config: PopulateConfig | None = None
    ) -> dict[str, list[Document]]:
        """Populate one document from this schema's storage."""
        return await populate_model(document, self.storage, config)

    async def populate_all(
        self, documents: Iterable[Document], config: PopulateConfig | None = None
    ) -> dict[str, list[Document]]:
        """Populate several documents from this schema's storage."""
        return await populate_models(documents, self.storage, config)

    def close(self) -> None:
        """Close storage, saving it when backed by a data directory."""
        self.storage.close()

    def __enter__(self) -> Schema:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


def _normalize_fields(type_def: StructuredTypeDefinition, values: Any) -> dict[str, Any]:
    if not isinstance(values, dict):
        raise SchemaError(f"Expected a mapping for '{type_def.name}', got {type(values).__name__}")

    unknown = [name for name in values if type_def.get_field(name) is None]
    if unknown:
        raise SchemaError(f"Unknown field(s) for '{type_def.name}': {', '.join(unknown)}")

    return {
        f.name: _normalize_value(f.type_def, values.get(f.name)) for f in type_def.fields
    }


def _normalize_value(type_def: TypeDefinition, value: Any) -> Any:
    """Convert a field value into its stored form."""
    if value is None:
        return None

    base = type_def.resolve_base_type()
    if isinstance(base, DocumentTypeDefinition):
        if isinstance(value, Document):
            if value.type_def is not base:
                raise SchemaError(
                    f"Expected a '{base.name}' reference, got a '{value.type_name}' document"
                )
            return value.id
        return value
    elif isinstance(base, EmbeddedTypeDefinition):
        return _normalize_fields(base, value)
    elif isinstance(base, ArrayTypeDefinition):
        if not isinstance(value, (list, tuple)):
            raise SchemaError(f"Expected a list for '{type_def.name}', got {type(value).__name__}")
        return [_normalize_value(base.element_type, v) for v in value]
    return value
