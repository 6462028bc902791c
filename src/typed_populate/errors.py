"""Exceptions raised by typed_populate."""

from __future__ import annotations

from typing import Any


class PopulateError(Exception):
    """Base class for population failures."""


class ConfigurationError(PopulateError, ValueError):
    """A type key is not wired up for population.

    Raised when a referenced type has no collection to fetch from, when the
    model registry has no entry for a type key that is about to be resolved,
    or when two document types share one type key.
    """

    def __init__(self, message: str, type_key: str | None = None) -> None:
        super().__init__(message)
        self.type_key = type_key


class DanglingReferenceError(PopulateError, LookupError):
    """A non-null reference did not resolve to a stored document."""

    def __init__(self, type_key: str, ids: list[Any]) -> None:
        super().__init__(f"Documents not found in '{type_key}': {', '.join(map(str, ids))}")
        self.type_key = type_key
        self.ids = ids


class SchemaError(ValueError):
    """Type definitions cannot be resolved or a value does not fit its type."""
