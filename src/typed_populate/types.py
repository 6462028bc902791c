"""Type definitions for the typed_populate library."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from typed_populate.errors import ConfigurationError


class PrimitiveType(Enum):
    """Built-in scalar types supported by the schema DSL."""

    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    DATE = "date"
    ANY = "any"


# Mapping from type name strings to PrimitiveType enum values
PRIMITIVE_TYPE_NAMES: dict[str, PrimitiveType] = {pt.value: pt for pt in PrimitiveType}


def pluralize(name: str) -> str:
    """Return the lower-case plural form of a type name.

    ``User`` -> ``users``, ``Category`` -> ``categories``,
    ``Address`` -> ``addresses``.
    """
    lowered = name.lower()
    if lowered.endswith("y") and lowered[-2:] not in ("ay", "ey", "iy", "oy", "uy"):
        return lowered[:-1] + "ies"
    if lowered.endswith(("s", "x", "z", "ch", "sh")):
        return lowered + "es"
    return lowered + "s"


@dataclass
class TypeDefinition:
    """Base class for all type definitions."""

    name: str

    @property
    def is_array(self) -> bool:
        """Return whether this type is an array type."""
        return False

    @property
    def is_primitive(self) -> bool:
        """Return whether this type is a primitive type."""
        return False

    @property
    def is_document(self) -> bool:
        """Return whether values of this type are stored as separate documents."""
        return False

    @property
    def is_embedded(self) -> bool:
        """Return whether this type is an inline sub-document."""
        return False

    def resolve_base_type(self) -> TypeDefinition:
        """Resolve through aliases to get the underlying type."""
        return self


@dataclass
class PrimitiveTypeDefinition(TypeDefinition):
    """Type definition wrapping a primitive type."""

    primitive: PrimitiveType

    @property
    def is_primitive(self) -> bool:
        return True


@dataclass
class AliasTypeDefinition(TypeDefinition):
    """Type definition for 'define X as Y' aliases."""

    base_type: TypeDefinition

    @property
    def is_array(self) -> bool:
        return self.base_type.is_array

    def resolve_base_type(self) -> TypeDefinition:
        """Resolve through aliases to get the underlying type."""
        return self.base_type.resolve_base_type()


@dataclass
class ArrayTypeDefinition(TypeDefinition):
    """Type definition for array types (e.g., Author[])."""

    element_type: TypeDefinition

    @property
    def is_array(self) -> bool:
        return True


@dataclass
class FieldDefinition:
    """Definition of a field within a document or embedded type."""

    name: str
    type_def: TypeDefinition


@dataclass(eq=False)
class StructuredTypeDefinition(TypeDefinition):
    """Common base for types that declare named fields.

    Structured types compare by identity: mutually recursive definitions would
    otherwise recurse forever in the generated ``__eq__``.
    """

    fields: list[FieldDefinition] = field(default_factory=list)

    def get_field(self, name: str) -> FieldDefinition | None:
        """Get a field by name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def __eq__(self, other: object) -> bool:
        return self is other

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


@dataclass(eq=False, repr=False)
class DocumentTypeDefinition(StructuredTypeDefinition):
    """A separately stored record type.

    Fields whose type resolves to a document type hold the referenced
    document's id rather than the document itself.
    """

    @property
    def is_document(self) -> bool:
        return True

    @property
    def type_key(self) -> str:
        """Bucket and collection key for documents of this type."""
        return pluralize(self.name)


@dataclass(eq=False, repr=False)
class EmbeddedTypeDefinition(StructuredTypeDefinition):
    """A sub-document stored inline within its parent document."""

    @property
    def is_embedded(self) -> bool:
        return True


def is_reference_type(type_def: TypeDefinition) -> bool:
    """Check if a field of this type holds a document id."""
    return type_def.resolve_base_type().is_document


class TypeRegistry:
    """Registry of all defined types."""

    def __init__(self) -> None:
        self._types: dict[str, TypeDefinition] = {}
        self._keys: dict[str, DocumentTypeDefinition] = {}
        self._register_primitives()

    def _register_primitives(self) -> None:
        """Register all primitive types."""
        for pt in PrimitiveType:
            self._types[pt.value] = PrimitiveTypeDefinition(name=pt.value, primitive=pt)

    def register(self, type_def: TypeDefinition) -> None:
        """Register a type definition.

        Raises:
            ValueError: If a type with the same name exists.
            ConfigurationError: If a document type's key collides with another's.
        """
        if type_def.name in self._types:
            raise ValueError(f"Type '{type_def.name}' is already defined")
        if isinstance(type_def, DocumentTypeDefinition):
            self._claim_key(type_def)
        self._types[type_def.name] = type_def

    def _claim_key(self, type_def: DocumentTypeDefinition) -> None:
        key = type_def.type_key
        owner = self._keys.get(key)
        if owner is not None and owner is not type_def:
            raise ConfigurationError(
                f"Types '{owner.name}' and '{type_def.name}' share the type key '{key}'",
                type_key=key,
            )
        self._keys[key] = type_def

    def get(self, name: str) -> TypeDefinition | None:
        """Get a type by name."""
        return self._types.get(name)

    def get_or_raise(self, name: str) -> TypeDefinition:
        """Get a type by name, raising if not found."""
        type_def = self._types.get(name)
        if type_def is None:
            raise KeyError(f"Type '{name}' not found")
        return type_def

    def get_by_key(self, type_key: str) -> DocumentTypeDefinition | None:
        """Get the document type that owns a type key."""
        return self._keys.get(type_key)

    def get_array_type(self, element_type_name: str) -> ArrayTypeDefinition:
        """Get or create an array type for the given element type."""
        array_name = f"{element_type_name}[]"
        existing = self._types.get(array_name)
        if existing is not None:
            if not isinstance(existing, ArrayTypeDefinition):
                raise TypeError(f"Type '{array_name}' exists but is not an array type")
            return existing

        element_type = self.get_or_raise(element_type_name)
        array_type = ArrayTypeDefinition(name=array_name, element_type=element_type)
        self._types[array_name] = array_type
        return array_type

    def register_stub(self, name: str, embedded: bool = False) -> StructuredTypeDefinition:
        """Pre-register an empty document or embedded type for forward references.

        Idempotent: returns the existing stub if name is already an empty type
        of the same kind. Raises ValueError if name is registered otherwise.
        """
        cls = EmbeddedTypeDefinition if embedded else DocumentTypeDefinition
        existing = self._types.get(name)
        if existing is not None:
            if type(existing) is cls and not existing.fields:
                return existing
            raise ValueError(f"Type '{name}' is already defined")
        stub = cls(name=name, fields=[])
        self.register(stub)
        return stub

    def is_stub(self, name: str) -> bool:
        """Check if a type is registered as an unpopulated stub."""
        td = self._types.get(name)
        return isinstance(td, StructuredTypeDefinition) and not td.fields

    def list_types(self) -> list[str]:
        """List all registered type names."""
        return list(self._types.keys())

    def document_types(self) -> list[DocumentTypeDefinition]:
        """List the document types in registration order."""
        return list(self._keys.values())

    def __contains__(self, name: str) -> bool:
        return name in self._types
