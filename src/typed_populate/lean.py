"""Conversion of stored values into plain JSON-ready values.

Documents become dicts with an ``_id`` key, UUID ids become strings and
dates become ISO strings. This makes it easy to compare documents against
their representation in a JSON body.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any
from uuid import UUID

from typed_populate.document import Document

ID_KEY = "_id"


def to_plain_value(value: Any) -> Any:
    """Recursively convert a value into plain Python data."""
    if isinstance(value, Document):
        result: dict[str, Any] = {ID_KEY: to_plain_value(value.id)}
        for name, field_value in value.values.items():
            result[name] = to_plain_value(field_value)
        return result
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): to_plain_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain_value(v) for v in value]
    return value
