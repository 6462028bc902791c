"""Storage manager for typed documents."""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Protocol
from uuid import UUID

from typed_populate.collection import Collection
from typed_populate.document import Document
from typed_populate.errors import ConfigurationError
from typed_populate.lean import ID_KEY, to_plain_value
from typed_populate.types import (
    AliasTypeDefinition,
    ArrayTypeDefinition,
    DocumentTypeDefinition,
    EmbeddedTypeDefinition,
    FieldDefinition,
    PrimitiveType,
    PrimitiveTypeDefinition,
    StructuredTypeDefinition,
    TypeDefinition,
    TypeRegistry,
)

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    """Lookup interface the populate engine needs from a store."""

    def has_collection(self, type_key: str) -> bool:
        ...

    async def find_by_id(self, type_key: str, doc_id: Any) -> Document | None:
        ...

    async def find_by_ids(self, type_key: str, ids: list[Any]) -> list[Document]:
        ...


class StorageManager:
    """Manages one collection per document type of a schema."""

    METADATA_FILE = "_metadata.json"

    def __init__(self, registry: TypeRegistry, data_dir: Path | None = None) -> None:
        """Initialize the storage manager.

        Args:
            registry: Type registry containing all type definitions.
            data_dir: Directory to persist collections to, or None to keep
                everything in memory.
        """
        self.registry = registry
        self.data_dir = data_dir
        self._collections: dict[str, Collection] = {
            type_def.type_key: Collection(type_def) for type_def in registry.document_types()
        }

    # ---- Collections ----

    def has_collection(self, type_key: str) -> bool:
        return type_key in self._collections

    def get_collection(self, type_key: str) -> Collection:
        """Get the collection for a type key.

        Raises:
            ConfigurationError: If no collection is registered for the key.
        """
        collection = self._collections.get(type_key)
        if collection is None:
            raise ConfigurationError(
                f"No collection registered for type key '{type_key}'", type_key=type_key
            )
        return collection

    def drop_collection(self, type_key: str) -> None:
        """Remove a collection and all of its documents."""
        self.get_collection(type_key)
        del self._collections[type_key]

    def list_collections(self) -> list[str]:
        return list(self._collections)

    # ---- Lookups ----

    async def find_by_id(self, type_key: str, doc_id: Any) -> Document | None:
        """Find one document by id; None when it does not exist."""
        collection = self.get_collection(type_key)
        logger.debug("find_by_id %s %r", type_key, doc_id)
        found = collection.find([doc_id])
        return found[0] if found else None

    async def find_by_ids(self, type_key: str, ids: list[Any]) -> list[Document]:
        """Find the documents for a list of ids; missing ids are skipped."""
        collection = self.get_collection(type_key)
        logger.debug("find_by_ids %s (%d ids)", type_key, len(ids))
        return collection.find(ids)

    # ---- Persistence ----

    def save(self) -> None:
        """Write metadata and every collection to the data directory."""
        if self.data_dir is None:
            raise ValueError("Storage has no data directory")

        self.data_dir.mkdir(parents=True, exist_ok=True)
        metadata = {"types": serialize_type_registry(self.registry)}
        with open(self.data_dir / self.METADATA_FILE, "w") as f:
            json.dump(metadata, f, indent=2)

        for type_key, collection in self._collections.items():
            rows = [to_plain_value(doc) for doc in collection.all()]
            with open(self.data_dir / f"{type_key}.json", "w") as f:
                json.dump(rows, f, indent=2)
        logger.debug("saved %d collections to %s", len(self._collections), self.data_dir)

    @classmethod
    def load(cls, data_dir: Path) -> StorageManager:
        """Load a storage manager previously written with save()."""
        registry = load_registry_from_metadata(data_dir)
        storage = cls(registry, data_dir)

        for type_key, collection in storage._collections.items():
            path = data_dir / f"{type_key}.json"
            if not path.exists():
                continue
            with open(path) as f:
                rows = json.load(f)
            for row in rows:
                row = dict(row)
                doc_id = decode_id(row.pop(ID_KEY))
                values = {
                    name: _decode_value(collection.type_def.get_field(name), value)
                    for name, value in row.items()
                }
                collection.insert(values, doc_id=doc_id)
        return storage

    def close(self) -> None:
        """Persist collections when backed by a data directory."""
        if self.data_dir is not None:
            self.save()

    def __enter__(self) -> StorageManager:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


def decode_id(value: Any) -> Any:
    """Turn a serialized id back into a UUID when it looks like one."""
    if isinstance(value, str):
        try:
            return UUID(value)
        except ValueError:
            return value
    return value


def _decode_value(field_def: FieldDefinition | None, value: Any) -> Any:
    if field_def is None or value is None:
        return value
    return _decode_typed(field_def.type_def.resolve_base_type(), value)


def _decode_typed(base: TypeDefinition, value: Any) -> Any:
    if value is None:
        return None
    if isinstance(base, PrimitiveTypeDefinition):
        if base.primitive is PrimitiveType.DATE and isinstance(value, str):
            return date.fromisoformat(value)
        return value
    if isinstance(base, DocumentTypeDefinition):
        return decode_id(value)
    if isinstance(base, ArrayTypeDefinition):
        element = base.element_type.resolve_base_type()
        return [_decode_typed(element, v) for v in value]
    if isinstance(base, EmbeddedTypeDefinition):
        return {name: _decode_value(base.get_field(name), v) for name, v in value.items()}
    return value


# ---- Type metadata ----


def serialize_type_registry(registry: TypeRegistry) -> dict[str, Any]:
    """Serialize the type registry to JSON-compatible format."""
    result: dict[str, Any] = {}
    for type_name in registry.list_types():
        type_def = registry.get(type_name)
        if type_def is None or isinstance(type_def, PrimitiveTypeDefinition):
            continue
        result[type_name] = _serialize_type_def(type_def)
    return result


def _serialize_type_def(type_def: TypeDefinition) -> dict[str, Any]:
    """Serialize a single type definition."""
    if isinstance(type_def, AliasTypeDefinition):
        return {"kind": "alias", "base_type": type_def.base_type.name}
    elif isinstance(type_def, ArrayTypeDefinition):
        return {"kind": "array", "element_type": type_def.element_type.name}
    elif isinstance(type_def, StructuredTypeDefinition):
        return {
            "kind": "embedded" if type_def.is_embedded else "document",
            "fields": [{"name": f.name, "type": f.type_def.name} for f in type_def.fields],
        }
    return {"kind": "unknown"}


def load_registry_from_metadata(data_dir: Path) -> TypeRegistry:
    """Load type registry from metadata file.

    Uses two-phase resolution to support cyclical type definitions:
    Phase 1: Pre-register stubs for all document and embedded types.
    Phase 2: Iteratively resolve, populating the stubs' fields.
    """
    metadata_path = data_dir / StorageManager.METADATA_FILE
    if not metadata_path.exists():
        raise FileNotFoundError(f"Metadata file not found: {metadata_path}")

    with open(metadata_path) as f:
        metadata = json.load(f)

    registry = TypeRegistry()
    types_data: dict[str, Any] = metadata.get("types", {})

    # Phase 1: Pre-register stubs
    for name, spec in types_data.items():
        if spec.get("kind") in ("document", "embedded"):
            registry.register_stub(name, embedded=spec["kind"] == "embedded")

    # Phase 2: Iteratively resolve
    to_resolve = dict(types_data)
    max_iterations = len(to_resolve) + 1
    for _ in range(max_iterations):
        if not to_resolve:
            break

        resolved_this_pass = []
        for name, spec in to_resolve.items():
            try:
                kind = spec.get("kind")
                if kind in ("document", "embedded"):
                    stub = registry.get_or_raise(name)
                    stub.fields = [
                        FieldDefinition(name=f["name"], type_def=registry.get_or_raise(f["type"]))
                        for f in spec.get("fields", [])
                    ]
                elif kind == "alias":
                    base_type = registry.get_or_raise(spec["base_type"])
                    registry.register(AliasTypeDefinition(name=name, base_type=base_type))
                elif kind == "array":
                    registry.get_array_type(spec["element_type"])
                resolved_this_pass.append(name)
            except KeyError:
                # Dependency not yet resolved
                pass

        for name in resolved_this_pass:
            del to_resolve[name]

        if not resolved_this_pass and to_resolve:
            raise ValueError(f"Cannot resolve types: {list(to_resolve.keys())}")

    return registry
