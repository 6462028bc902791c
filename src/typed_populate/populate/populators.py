"""Populator strategies, one per relationship shape.

A populator knows how to pull the ids it is responsible for out of a batch
of field values (``unseen``) and how to fetch the documents for those ids
(``populate``). The four strategies form a closed set:

* PopulateElement -- the field holds one id.
* PopulateArray -- the field holds a list of ids.
* PopulateEmbedded -- the field holds a sub-document whose own fields are
  handled by child populators.
* PopulateEmbeddedArray -- the field holds a list of sub-documents.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Union

from typed_populate.errors import ConfigurationError
from typed_populate.populate.tasks import gather_all
from typed_populate.types import DocumentTypeDefinition

if TYPE_CHECKING:
    from typed_populate.document import Document
    from typed_populate.populate.population import Population
    from typed_populate.storage import RecordStore

logger = logging.getLogger(__name__)


def _field_of(value: Any, name: str) -> Any:
    """Read a field from a sub-document (mapping or document-like)."""
    if value is None:
        return None
    getter = getattr(value, "get", None)
    if getter is not None:
        return getter(name)
    return getattr(value, name, None)


@dataclass(eq=False)
class _ReferencePopulator:
    """Shared behavior of the strategies that fetch documents directly."""

    type_def: DocumentTypeDefinition

    @property
    def key(self) -> str:
        return self.type_def.type_key

    def _ids_of(self, value: Any) -> Iterable[Any]:  # pragma: no cover - interface
        raise NotImplementedError

    def unseen(self, values: Iterable[Any], population: Population) -> list[Any]:
        """Collect the ids in ``values`` not yet seen by ``population``.

        The returned ids are claimed in the population, so a concurrent path
        reaching the same ids will not fetch them again.
        """
        ids: list[Any] = []
        for value in values:
            ids.extend(i for i in self._ids_of(value) if i is not None)
        return population.claim(self.key, ids)

    async def populate(self, store: RecordStore, ids: list[Any]) -> list[Document]:  # pragma: no cover
        raise NotImplementedError

    def _check_store(self, store: RecordStore) -> None:
        if not store.has_collection(self.key):
            raise ConfigurationError(
                f"Cannot populate '{self.key}': no collection is registered for it",
                type_key=self.key,
            )


@dataclass(eq=False)
class PopulateElement(_ReferencePopulator):
    """Populate a field holding a single document id."""

    def _ids_of(self, value: Any) -> Iterable[Any]:
        return (value,)

    async def populate(self, store: RecordStore, ids: list[Any]) -> list[Document]:
        """Fetch the documents for ``ids`` with one lookup."""
        self._check_store(store)
        if len(ids) == 1:
            document = await store.find_by_id(self.key, ids[0])
            return [document] if document is not None else []
        return await store.find_by_ids(self.key, ids)


@dataclass(eq=False)
class PopulateArray(_ReferencePopulator):
    """Populate a field holding a list of document ids."""

    def _ids_of(self, value: Any) -> Iterable[Any]:
        return value or ()

    async def populate(self, store: RecordStore, ids: list[Any]) -> list[Document]:
        """Fetch the documents for ``ids`` with one lookup."""
        self._check_store(store)
        return await store.find_by_ids(self.key, ids)


@dataclass(eq=False)
class _EmbeddedPopulator:
    """Shared behavior of the strategies for inline sub-documents."""

    populators: dict[str, Populator] = field(default_factory=dict)

    def _children(self, values: Iterable[Any]) -> Iterable[Any]:  # pragma: no cover
        raise NotImplementedError

    def unseen(self, values: Iterable[Any], population: Population) -> dict[str, Any]:
        """Collect, per nested field, the unseen ids inside the sub-documents.

        Fields with nothing left to resolve are omitted, so an absent or empty
        sub-document yields an empty mapping.
        """
        children = [c for c in self._children(values) if c is not None]
        pending: dict[str, Any] = {}
        for name, populator in self.populators.items():
            nested = populator.unseen([_field_of(c, name) for c in children], population)
            if nested:
                pending[name] = nested
        return pending

    async def populate(self, store: RecordStore, unseen: dict[str, Any]) -> dict[str, Any]:
        """Delegate each nested field to its child populator and join the results."""
        names = [name for name, value in unseen.items() if value]
        results = await gather_all(
            self.populators[name].populate(store, unseen[name]) for name in names
        )
        return dict(zip(names, results))


@dataclass(eq=False)
class PopulateEmbedded(_EmbeddedPopulator):
    """Populate reference fields inside one embedded sub-document."""

    def _children(self, values: Iterable[Any]) -> Iterable[Any]:
        return values


@dataclass(eq=False)
class PopulateEmbeddedArray(_EmbeddedPopulator):
    """Populate reference fields inside an array of embedded sub-documents.

    The sub-documents of every record in the batch are flattened first, so
    each nested field is fetched once for the whole batch.
    """

    def _children(self, values: Iterable[Any]) -> Iterable[Any]:
        for value in values:
            yield from value or ()


Populator = Union[PopulateElement, PopulateArray, PopulateEmbedded, PopulateEmbeddedArray]
