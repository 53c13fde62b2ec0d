"""
Schema loader.

Phase 1 of the pipeline: read a JSON Schema document from disk or memory
and decode it into an immutable SchemaNode tree. No reference resolution
happens here.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path

from ...errors import SchemaIOError, SchemaParseError
from .nodes import SchemaDocument, SchemaNode, freeze

logger = logging.getLogger(__name__)


def normalize_path(path: str | Path) -> str:
    """Absolute, symlink-free path used as the identity of a schema file."""
    return str(Path(path).expanduser().resolve())


class SchemaLoader:
    """Loads schema documents, remembering each file it has decoded."""

    def __init__(self, preloaded: Mapping[str, SchemaDocument] | None = None):
        """
        Initialize the loader.

        Args:
            preloaded: Documents already decoded by a previous pass, keyed by
                normalized path. They are shared read-only.
        """
        self._preloaded = preloaded or {}
        self._cache: dict[str, SchemaDocument] = {}

    def load(self, path: str | Path) -> SchemaDocument:
        """
        Load and decode a schema file.

        Args:
            path: Path to a JSON Schema file

        Returns:
            The decoded document

        Raises:
            SchemaIOError: If the file cannot be read
            SchemaParseError: If the file is not a JSON object
        """
        key = normalize_path(path)
        if key in self._preloaded:
            return self._preloaded[key]
        if key not in self._cache:
            try:
                text = Path(key).read_text(encoding="utf-8")
            except OSError as e:
                raise SchemaIOError(f"cannot read schema: {e.strerror or e}", str(path)) from e
            logger.debug("Loaded schema %s", key)
            self._cache[key] = SchemaDocument(path=key, root=self.parse(text, key))
        return self._cache[key]

    def parse(self, text: str, source_path: str = "") -> SchemaNode:
        """
        Decode schema text into a SchemaNode tree.

        Args:
            text: JSON text
            source_path: Provenance recorded on every node

        Returns:
            The root SchemaNode
        """
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError as e:
            raise SchemaParseError(f"invalid JSON at line {e.lineno} column {e.colno}: {e.msg}", source_path) from e
        return self.from_dict(decoded, source_path)

    @staticmethod
    def from_dict(schema: object, source_path: str = "") -> SchemaNode:
        """Wrap an already-decoded schema."""
        if not isinstance(schema, Mapping):
            raise SchemaParseError(f"schema root must be a JSON object, got {type(schema).__name__}", source_path)
        return SchemaNode(keywords=freeze(schema), source_path=source_path, pointer="")
