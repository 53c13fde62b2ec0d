"""
Schema AST module.

Contains the immutable schema node definitions and the loader.
"""

from __future__ import annotations

from .loader import SchemaLoader, normalize_path
from .nodes import (
    Cardinality,
    RefMarker,
    Resolved,
    ResolvedSchema,
    SchemaDocument,
    SchemaNode,
)

__all__ = [
    "SchemaNode",
    "SchemaDocument",
    "ResolvedSchema",
    "RefMarker",
    "Resolved",
    "Cardinality",
    "SchemaLoader",
    "normalize_path",
]
