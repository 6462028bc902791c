"""Stored document records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from typed_populate.types import DocumentTypeDefinition


@dataclass(eq=False)
class Document:
    """A record as returned by a store.

    A Document is identified by its type key and id. Reference fields hold
    the referenced document's id; embedded fields hold plain mappings (or
    lists of mappings) that may themselves contain reference ids.
    """

    type_def: DocumentTypeDefinition
    id: Any
    values: dict[str, Any] = field(default_factory=dict)

    @property
    def type_name(self) -> str:
        return self.type_def.name

    @property
    def type_key(self) -> str:
        return self.type_def.type_key

    def get(self, name: str, default: Any = None) -> Any:
        """Get a field value, or ``default`` if the field is unset."""
        return self.values.get(name, default)

    def __getitem__(self, name: str) -> Any:
        return self.values[name]

    def lean(self) -> dict[str, Any]:
        """Return the document as a plain JSON-ready dict."""
        from typed_populate.lean import to_plain_value

        return to_plain_value(self)

    def __repr__(self) -> str:
        return f"Document({self.type_name!r}, {self.id!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return self.type_key == other.type_key and self.id == other.id

    def __hash__(self) -> int:
        return hash((self.type_key, self.id))
