"""Tool for dumping populated documents to the console."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from typed_populate.config import PopulateConfig
from typed_populate.document import Document
from typed_populate.errors import PopulateError
from typed_populate.lean import to_plain_value
from typed_populate.populate import ModelRegistry
from typed_populate.schema import Schema


def list_collections(schema: Schema) -> None:
    """Print every collection with its document count."""
    for type_key in schema.storage.list_collections():
        count = schema.storage.get_collection(type_key).count
        print(f"  {type_key} ({count} documents)")


def find_root(schema: Schema, type_key: str, raw_id: str) -> Document:
    """Find a document by its id as written on the command line.

    Ids are compared in their string form, so UUID, integer and string ids
    can all be given.

    Raises:
        KeyError: If no document of the type has that id.
    """
    for document in schema.all(type_key):
        if str(document.id) == raw_id:
            return document
    raise KeyError(f"No document {raw_id!r} in '{type_key}'")


def print_relationships(schema: Schema, type_key: str) -> None:
    """Print the relationships reachable from a document type."""
    registry = ModelRegistry()
    registry.add_model(schema.get_document_type(type_key))
    for key in registry.keys:
        print(f"{key}:")
        relationships = registry.describe(key)
        if not relationships:
            print("  (none)")
        for rel in relationships:
            path = ".".join(rel.embedding_path + (rel.field_name,))
            print(f"  {path} -> {rel.target_type_key} ({rel.cardinality})")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Populate documents from a data directory and print them as JSON"
    )
    parser.add_argument(
        "data_dir",
        type=Path,
        help="Path to the data directory written by typed-populate-seed",
    )
    parser.add_argument(
        "type_key",
        nargs="?",
        help="Type key (or type name) of the root documents (omit to list collections)",
    )
    parser.add_argument(
        "ids",
        nargs="*",
        help="Ids of the root documents (default: every document of the type)",
    )
    parser.add_argument(
        "-r", "--relationships",
        action="store_true",
        help="Show the relationships reachable from the type instead of populating",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on references to missing documents",
    )
    parser.add_argument(
        "--max-concurrency",
        type=int,
        default=None,
        help="Limit the number of lookups in flight",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if not args.data_dir.exists():
        print(f"Error: Data directory not found: {args.data_dir}", file=sys.stderr)
        return 1

    try:
        schema = Schema.load(args.data_dir)
    except Exception as e:
        print(f"Error loading data: {e}", file=sys.stderr)
        return 1

    if args.type_key is None:
        list_collections(schema)
        return 0

    try:
        type_def = schema.get_document_type(args.type_key)
    except KeyError:
        print(f"Error: Unknown document type: {args.type_key}", file=sys.stderr)
        print("\nAvailable collections:")
        list_collections(schema)
        return 1

    if args.relationships:
        print_relationships(schema, type_def.type_key)
        return 0

    try:
        config = PopulateConfig(
            max_concurrency=args.max_concurrency,
            strict_references=args.strict,
        )
        if args.ids:
            roots = [find_root(schema, type_def.type_key, i) for i in args.ids]
        else:
            roots = schema.all(type_def.type_key)
        result = asyncio.run(schema.populate_all(roots, config))
    except (PopulateError, ValueError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(to_plain_value(result), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
