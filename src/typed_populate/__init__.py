"""Typed Populate - resolve typed document graphs in one pass."""

from typed_populate.config import PopulateConfig
from typed_populate.document import Document
from typed_populate.errors import (
    ConfigurationError,
    DanglingReferenceError,
    PopulateError,
    SchemaError,
)
from typed_populate.lean import to_plain_value
from typed_populate.parsing import TypeParser
from typed_populate.populate import (
    ModelRegistry,
    Population,
    populate_model,
    populate_models,
)
from typed_populate.schema import Schema
from typed_populate.storage import RecordStore, StorageManager
from typed_populate.types import (
    AliasTypeDefinition,
    ArrayTypeDefinition,
    DocumentTypeDefinition,
    EmbeddedTypeDefinition,
    FieldDefinition,
    PrimitiveType,
    PrimitiveTypeDefinition,
    TypeDefinition,
    TypeRegistry,
)

__all__ = [
    # Main API
    "Schema",
    "TypeParser",
    "Document",
    "populate_model",
    "populate_models",
    "PopulateConfig",
    "to_plain_value",
    # Engine
    "ModelRegistry",
    "Population",
    # Storage
    "RecordStore",
    "StorageManager",
    # Errors
    "PopulateError",
    "ConfigurationError",
    "DanglingReferenceError",
    "SchemaError",
    # Type definitions
    "TypeDefinition",
    "PrimitiveType",
    "PrimitiveTypeDefinition",
    "AliasTypeDefinition",
    "ArrayTypeDefinition",
    "DocumentTypeDefinition",
    "EmbeddedTypeDefinition",
    "FieldDefinition",
    "TypeRegistry",
]

__version__ = "0.1.0"
