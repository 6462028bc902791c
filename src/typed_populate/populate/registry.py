"""Registry of the populators that apply to each document type."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from typed_populate.populate.populators import (
    PopulateArray,
    PopulateElement,
    PopulateEmbedded,
    PopulateEmbeddedArray,
    Populator,
)
from typed_populate.types import (
    ArrayTypeDefinition,
    DocumentTypeDefinition,
    EmbeddedTypeDefinition,
    TypeDefinition,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Relationship:
    """One reference declared by a document type.

    ``embedding_path`` lists the embedded fields between the document and the
    reference field; it is empty when the reference lives on the document.
    """

    field_name: str
    target_type_key: str
    cardinality: Literal["one", "many"]
    embedding_path: tuple[str, ...] = ()


class ModelRegistry:
    """Maps each reachable document type key to its populators.

    Adding a document type walks its fields (through embedded sub-documents)
    and adds every referenced document type as well. Each type is visited at
    most once, so mutually referencing types are safe.
    """

    def __init__(self) -> None:
        self.models: dict[str, dict[str, Populator]] = {}
        self._embedded: dict[tuple[str, bool], PopulateEmbedded | PopulateEmbeddedArray | None] = {}

    @property
    def keys(self) -> list[str]:
        return list(self.models)

    def add_model(self, type_def: DocumentTypeDefinition) -> None:
        """Register the populators for a document type and everything it references."""
        key = type_def.type_key
        if key in self.models:
            return

        # Register before walking the fields so cycles terminate.
        populators: dict[str, Populator] = {}
        self.models[key] = populators
        logger.debug("registering populators for %s", key)

        for f in type_def.fields:
            populator = self._make_populator(f.type_def)
            if populator is not None:
                populators[f.name] = populator

    def _make_populator(self, type_def: TypeDefinition) -> Populator | None:
        base = type_def.resolve_base_type()

        if isinstance(base, DocumentTypeDefinition):
            self.add_model(base)
            return PopulateElement(base)
        elif isinstance(base, EmbeddedTypeDefinition):
            return self._make_embedded(base, is_array=False)
        elif isinstance(base, ArrayTypeDefinition):
            element = base.element_type.resolve_base_type()
            if isinstance(element, DocumentTypeDefinition):
                self.add_model(element)
                return PopulateArray(element)
            elif isinstance(element, EmbeddedTypeDefinition):
                return self._make_embedded(element, is_array=True)
        return None

    def _make_embedded(
        self, type_def: EmbeddedTypeDefinition, is_array: bool
    ) -> PopulateEmbedded | PopulateEmbeddedArray | None:
        # Recursive embedded types (e.g. a comment with replies) reuse the
        # populator that is still being built.
        cache_key = (type_def.name, is_array)
        if cache_key in self._embedded:
            return self._embedded[cache_key]

        populator = PopulateEmbeddedArray() if is_array else PopulateEmbedded()
        self._embedded[cache_key] = populator
        for f in type_def.fields:
            child = self._make_populator(f.type_def)
            if child is not None:
                populator.populators[f.name] = child
        if not populator.populators:
            self._embedded[cache_key] = None
            return None
        return populator

    def get_populators_for(self, type_key: str) -> dict[str, Populator] | None:
        """Return the populators for a type key.

        An empty dict means documents of that type have nothing further to
        resolve; None means the type key was never registered.
        """
        return self.models.get(type_key)

    def describe(self, type_key: str) -> list[Relationship]:
        """List the relationships registered for a type key."""
        relationships: list[Relationship] = []
        for name, populator in (self.get_populators_for(type_key) or {}).items():
            _describe(name, populator, (), relationships)
        return relationships

    def __contains__(self, type_key: object) -> bool:
        return type_key in self.models


def _describe(
    name: str,
    populator: Populator,
    path: tuple[str, ...],
    out: list[Relationship],
    active: frozenset[int] = frozenset(),
) -> None:
    if isinstance(populator, (PopulateEmbedded, PopulateEmbeddedArray)):
        if id(populator) in active:
            # recursive embedded type, already listed one level up
            return
        for child_name, child in populator.populators.items():
            _describe(child_name, child, path + (name,), out, active | {id(populator)})
    else:
        cardinality = "many" if isinstance(populator, PopulateArray) else "one"
        out.append(Relationship(name, populator.key, cardinality, path))
