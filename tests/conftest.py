"""Shared fixtures for the typed_populate tests."""

from __future__ import annotations

from typing import Any

import pytest

from typed_populate import Schema

LIBRARY_SCHEMA = """
# Users read books by authors, authors sign with publishers.
Publisher { name: string }

Author {
    name: string,
    publisher: Publisher,
}

embedded Review { reviewer: User, stars: int }

embedded Profile {
    mentor: User,
    bio: string,
}

User {
    first_name: string,
    last_name: string,
    favorite_author: Author,
    blacklist: Author[],
    profile: Profile,
    reviews: Review[],
}
"""


class RecordingStore:
    """Store wrapper that records every lookup it serves."""

    def __init__(self, inner: Any) -> None:
        self.inner = inner
        self.calls: list[tuple[str, str, list[Any]]] = []

    def has_collection(self, type_key: str) -> bool:
        return self.inner.has_collection(type_key)

    async def find_by_id(self, type_key: str, doc_id: Any):
        self.calls.append(("find_by_id", type_key, [doc_id]))
        return await self.inner.find_by_id(type_key, doc_id)

    async def find_by_ids(self, type_key: str, ids: list[Any]):
        self.calls.append(("find_by_ids", type_key, list(ids)))
        return await self.inner.find_by_ids(type_key, ids)

    def calls_for(self, type_key: str) -> list[tuple[str, str, list[Any]]]:
        return [c for c in self.calls if c[1] == type_key]


@pytest.fixture
def schema():
    """A fresh in-memory library schema."""
    return Schema.parse(LIBRARY_SCHEMA)


@pytest.fixture
def recording():
    """Wrap a store so its lookups can be inspected."""
    return RecordingStore
