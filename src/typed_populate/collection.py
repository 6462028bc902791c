"""In-memory storage for the documents of one type."""

from __future__ import annotations

from typing import Any, Iterable
from uuid import uuid4

from typed_populate.document import Document
from typed_populate.types import DocumentTypeDefinition


class Collection:
    """Holds the documents of a single document type, keyed by id."""

    def __init__(self, type_def: DocumentTypeDefinition) -> None:
        self.type_def = type_def
        self._documents: dict[Any, Document] = {}

    @property
    def type_key(self) -> str:
        return self.type_def.type_key

    @property
    def count(self) -> int:
        """Return the number of documents in the collection."""
        return len(self._documents)

    def insert(self, values: dict[str, Any], doc_id: Any = None) -> Document:
        """Insert a document and return it.

        Args:
            values: Field values, already normalized to ids for references.
            doc_id: Explicit id; a new UUID is assigned when omitted.

        Raises:
            ValueError: If a document with the same id already exists.
        """
        if doc_id is None:
            doc_id = uuid4()
        elif doc_id in self._documents:
            raise ValueError(f"Duplicate id {doc_id!r} in '{self.type_key}'")

        document = Document(type_def=self.type_def, id=doc_id, values=dict(values))
        self._documents[doc_id] = document
        return document

    def get(self, doc_id: Any) -> Document:
        """Get a document by id, raising KeyError if it does not exist."""
        try:
            return self._documents[doc_id]
        except KeyError:
            raise KeyError(f"No document {doc_id!r} in '{self.type_key}'") from None

    def find(self, ids: Iterable[Any]) -> list[Document]:
        """Return the documents for the given ids; missing ids are skipped."""
        found = []
        for doc_id in dict.fromkeys(ids):
            document = self._documents.get(doc_id)
            if document is not None:
                found.append(document)
        return found

    def delete(self, doc_id: Any) -> None:
        """Remove a document by id."""
        self.get(doc_id)
        del self._documents[doc_id]

    def all(self) -> list[Document]:
        """Return all documents in insertion order."""
        return list(self._documents.values())

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._documents

    def __len__(self) -> int:
        return len(self._documents)
