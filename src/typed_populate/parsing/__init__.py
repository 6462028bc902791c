"""Parsing module for the schema definition DSL."""

from typed_populate.parsing.type_parser import TypeParser

__all__ = [
    "TypeParser",
]
