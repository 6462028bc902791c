"""Build a data directory from a schema file and a JSON fixture.

The fixture maps type keys (or type names) to lists of documents. A string
value of the form ``$ref:<type_key>.<index>`` refers to another document of
the fixture by position, before or after the referring document::

    {
        "authors": [{"name": "John Doe"}],
        "users": [
            {"first_name": "Paul", "favorite_author": "$ref:authors.0"},
            {"first_name": "John", "favorite_author": "$ref:authors.0"}
        ]
    }

Usage:
    typed-populate-seed schema.tps fixture.json -o data/     # writes data/
    typed-populate-seed schema.tps fixture.json -o data/ -c  # clears data/ first
"""

from __future__ import annotations

import argparse
import json
import logging
import shutil
import sys
from pathlib import Path
from typing import Any
from uuid import uuid4

from typed_populate.document import Document
from typed_populate.errors import SchemaError
from typed_populate.lean import ID_KEY
from typed_populate.schema import Schema

logger = logging.getLogger(__name__)

REF_PREFIX = "$ref:"


def seed(schema: Schema, fixture: dict[str, list[dict[str, Any]]]) -> dict[str, list[Document]]:
    """Create the documents of a fixture in a schema's storage.

    Args:
        schema: Schema to create documents in.
        fixture: Documents by type key or type name.

    Returns:
        The created documents by type key, in fixture order.

    Raises:
        SchemaError: If the fixture names an unknown type or a bad reference.
    """
    # Assign every id up front so references can point forward.
    planned: dict[str, list[tuple[Any, dict[str, Any]]]] = {}
    for name, rows in fixture.items():
        try:
            type_def = schema.get_document_type(name)
        except KeyError as exc:
            raise SchemaError(f"Unknown document type in fixture: '{name}'") from exc
        entries = planned.setdefault(type_def.type_key, [])
        for row in rows:
            row = dict(row)
            doc_id = row.pop(ID_KEY, None)
            entries.append((doc_id if doc_id is not None else uuid4(), row))

    created: dict[str, list[Document]] = {}
    for type_key, entries in planned.items():
        documents = created.setdefault(type_key, [])
        for doc_id, row in entries:
            values = _resolve_refs(row, planned)
            documents.append(schema.create(type_key, values, doc_id=doc_id))
        logger.debug("seeded %d %s", len(documents), type_key)
    return created


def _resolve_refs(value: Any, planned: dict[str, list[tuple[Any, dict[str, Any]]]]) -> Any:
    if isinstance(value, str) and value.startswith(REF_PREFIX):
        target = value[len(REF_PREFIX):]
        type_key, _, index = target.rpartition(".")
        entries = planned.get(type_key)
        if entries is None or not index.isdigit() or int(index) >= len(entries):
            raise SchemaError(f"Unresolvable fixture reference: '{value}'")
        return entries[int(index)][0]
    if isinstance(value, dict):
        return {k: _resolve_refs(v, planned) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_refs(v, planned) for v in value]
    return value


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Create a typed_populate data directory from a schema and a JSON fixture"
    )
    parser.add_argument("schema", type=Path, help="Schema definition file")
    parser.add_argument("fixture", type=Path, help="JSON fixture file")
    parser.add_argument(
        "-o", "--output",
        type=Path,
        required=True,
        help="Data directory to write",
    )
    parser.add_argument(
        "-c", "--clear",
        action="store_true",
        help="Remove the data directory before seeding",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    for path in (args.schema, args.fixture):
        if not path.exists():
            print(f"Error: {path} not found", file=sys.stderr)
            return 1

    try:
        with open(args.fixture) as f:
            fixture = json.load(f)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON in {args.fixture}: {e}", file=sys.stderr)
        return 1

    if args.clear and args.output.exists():
        shutil.rmtree(args.output)

    try:
        schema = Schema.parse(args.schema.read_text(), args.output)
        created = seed(schema, fixture)
    except (SyntaxError, ValueError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    # Only a fully seeded schema is written out.
    schema.close()

    total = sum(len(docs) for docs in created.values())
    print(f"Wrote {total} documents to {args.output}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
