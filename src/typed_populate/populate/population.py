"""Accumulator for one population run."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from typed_populate.config import PopulateConfig
from typed_populate.document import Document
from typed_populate.errors import ConfigurationError, DanglingReferenceError
from typed_populate.populate.dispatch import dispatch
from typed_populate.populate.populators import Populator
from typed_populate.populate.registry import ModelRegistry
from typed_populate.populate.tasks import gather_all
from typed_populate.storage import RecordStore

logger = logging.getLogger(__name__)


class _BoundedStore:
    """Wraps a store so that at most ``limit`` lookups are in flight."""

    def __init__(self, store: RecordStore, limit: int) -> None:
        self._store = store
        self._semaphore = asyncio.Semaphore(limit)

    def has_collection(self, type_key: str) -> bool:
        return self._store.has_collection(type_key)

    async def find_by_id(self, type_key: str, doc_id: Any) -> Document | None:
        async with self._semaphore:
            return await self._store.find_by_id(type_key, doc_id)

    async def find_by_ids(self, type_key: str, ids: list[Any]) -> list[Document]:
        async with self._semaphore:
            return await self._store.find_by_ids(type_key, ids)


class Population:
    """Documents resolved so far, bucketed by type key.

    ``models`` maps each type key to its documents in first-discovery order;
    a document identity is never added twice. ``ids`` maps each type key to
    one list per resolution step, holding the ids that step newly added.

    A population lives for one populate_model/populate_models call. All of
    its mutation happens between awaits on a single event loop, so sibling
    tasks can share it without locking.
    """

    def __init__(
        self,
        registry: ModelRegistry,
        store: RecordStore,
        config: PopulateConfig | None = None,
    ) -> None:
        self.registry = registry
        self.config = config or PopulateConfig()
        if self.config.max_concurrency is not None:
            store = _BoundedStore(store, self.config.max_concurrency)
        self.store: RecordStore = store
        self.models: dict[str, list[Document]] = {key: [] for key in registry.keys}
        self.ids: dict[str, list[list[Any]]] = {key: [] for key in registry.keys}
        self._present: dict[str, set[Any]] = {}
        self._claimed: dict[str, set[Any]] = {}

    # ---- Adding documents ----

    async def add_model(self, type_key: str, document: Document, save_ids: bool = False) -> Population:
        """Add one document and resolve everything it references."""
        return await self.add_models(type_key, [document], save_ids)

    async def add_models(
        self, type_key: str, documents: Iterable[Document], save_ids: bool = False
    ) -> Population:
        """Add documents and resolve everything they reference.

        Documents already in the population are skipped. The call returns once
        the whole sub-graph below the newly added documents is resolved.

        Args:
            type_key: Bucket the documents belong to.
            documents: Documents to add.
            save_ids: Record the newly added ids as one step in ``ids``.

        Raises:
            ConfigurationError: If ``type_key`` is not in the registry.
        """
        populators = self._populators_for(type_key)
        added = self._append(type_key, documents, save_ids)
        if added and populators:
            await self._run_populators(populators, added)
        return self

    def _append(self, type_key: str, documents: Iterable[Document], save_ids: bool) -> list[Document]:
        bucket = self.models.setdefault(type_key, [])
        present = self._present.setdefault(type_key, set())
        claimed = self._claimed.setdefault(type_key, set())

        added: list[Document] = []
        for document in documents:
            if document.id in present:
                continue
            present.add(document.id)
            claimed.add(document.id)
            bucket.append(document)
            added.append(document)

        if save_ids and added:
            self.ids.setdefault(type_key, []).append([d.id for d in added])
        return added

    # ---- Resolving references ----

    async def populate_element(self, type_key: str, document: Document) -> None:
        """Resolve the references of one document without adding it."""
        await self.populate_array(type_key, [document])

    async def populate_array(self, type_key: str, documents: list[Document]) -> None:
        """Resolve the references of a batch of documents without adding them.

        Ids are deduplicated across the whole batch, so each populator issues
        at most one fetch.
        """
        populators = self._populators_for(type_key)
        if populators and documents:
            await self._run_populators(populators, documents)

    async def _run_populators(self, populators: dict[str, Populator], documents: list[Document]) -> None:
        await gather_all(
            self._run(name, populator, documents) for name, populator in populators.items()
        )

    async def _run(self, name: str, populator: Populator, documents: list[Document]) -> None:
        unseen = populator.unseen([d.get(name) for d in documents], self)
        if not unseen:
            return
        logger.debug("populating %s for %d documents", name, len(documents))
        populated = await populator.populate(self.store, unseen)
        await dispatch(populator, self, unseen, populated)

    def _populators_for(self, type_key: str) -> dict[str, Populator]:
        populators = self.registry.get_populators_for(type_key)
        if populators is None:
            raise ConfigurationError(f"Populator for {type_key} does not exist.", type_key=type_key)
        return populators

    def claim(self, type_key: str, ids: Iterable[Any]) -> list[Any]:
        """Mark ids as requested and return those not requested before."""
        claimed = self._claimed.setdefault(type_key, set())
        fresh: list[Any] = []
        for doc_id in ids:
            if doc_id not in claimed:
                claimed.add(doc_id)
                fresh.append(doc_id)
        return fresh

    def check_resolved(self, type_key: str, requested: list[Any], found: list[Document]) -> None:
        """Apply the dangling reference policy to one fetch."""
        found_ids = {d.id for d in found}
        missing = [doc_id for doc_id in requested if doc_id not in found_ids]
        if not missing:
            return
        if self.config.strict_references:
            raise DanglingReferenceError(type_key, missing)
        logger.warning("%d dangling reference(s) to %s: %s", len(missing), type_key, missing)

    # ---- Result ----

    def flatten(self) -> dict[str, list[Document]]:
        """Return the documents by type key, without the id bookkeeping."""
        return {key: list(documents) for key, documents in self.models.items()}
