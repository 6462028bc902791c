"""Populate documents with everything they reference.

The result of a population is a mapping from type key to documents, e.g.::

    {"users": [user1, user2], "authors": [author]}

with every document reachable from the roots appearing exactly once.
"""

from __future__ import annotations

from typing import Iterable

from typed_populate.config import PopulateConfig
from typed_populate.document import Document
from typed_populate.populate.population import Population
from typed_populate.populate.populators import (
    PopulateArray,
    PopulateElement,
    PopulateEmbedded,
    PopulateEmbeddedArray,
    Populator,
)
from typed_populate.populate.registry import ModelRegistry, Relationship
from typed_populate.populate.tasks import gather_all
from typed_populate.storage import RecordStore


async def populate_model(
    document: Document, store: RecordStore, config: PopulateConfig | None = None
) -> dict[str, list[Document]]:
    """Populate a single document.

    Args:
        document: The root document.
        store: Store to look referenced documents up in.
        config: Population options.

    Returns:
        The root and every document it references, by type key.
    """
    registry = ModelRegistry()
    registry.add_model(document.type_def)

    population = Population(registry, store, config)
    await population.add_model(document.type_key, document)
    return population.flatten()


async def populate_models(
    documents: Iterable[Document], store: RecordStore, config: PopulateConfig | None = None
) -> dict[str, list[Document]]:
    """Populate a list of documents, possibly of different types.

    Args:
        documents: The root documents.
        store: Store to look referenced documents up in.
        config: Population options.

    Returns:
        The roots and every document they reference, by type key.
    """
    registry = ModelRegistry()
    roots: dict[str, list[Document]] = {}
    for document in documents:
        registry.add_model(document.type_def)
        roots.setdefault(document.type_key, []).append(document)

    population = Population(registry, store, config)
    await gather_all(population.add_models(key, docs) for key, docs in roots.items())
    return population.flatten()


__all__ = [
    "ModelRegistry",
    "PopulateArray",
    "PopulateElement",
    "PopulateEmbedded",
    "PopulateEmbeddedArray",
    "Population",
    "Populator",
    "Relationship",
    "populate_model",
    "populate_models",
]
