"""
Schema tree node definitions.

SchemaNode is what the loader produces: an immutable view over one JSON
Schema construct plus where it came from. ResolvedSchema and RefMarker are
what the reference resolver produces: the same tree with every $ref either
spliced in or replaced by a marker naming the module that owns the shape.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Union
from urllib.parse import unquote

from ...utils import snake_to_pascal_case

EMPTY: Mapping[str, Any] = MappingProxyType({})

COMPOSITION_KEYWORDS = ("allOf", "oneOf", "anyOf")

# Keywords whose values are subschemas rebuilt by the resolver
STRUCTURAL_KEYWORDS = ("properties", "items", "additionalProperties", *COMPOSITION_KEYWORDS)


def freeze(value: Any) -> Any:
    """Recursively turn decoded JSON into read-only mappings and tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of freeze: plain dicts and lists again."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


def pointer_segments(pointer: str) -> list[str]:
    """Split a JSON pointer ("/$defs/a~1b") into unescaped segments."""
    pointer = unquote(pointer)
    if pointer in ("", "/"):
        return []
    return [s.replace("~1", "/").replace("~0", "~") for s in pointer.lstrip("/").split("/")]


def escape_segment(segment: str) -> str:
    return segment.replace("~", "~0").replace("/", "~1")


def normalize_pointer(pointer: str) -> str:
    """Canonical spelling of a JSON pointer, used in identity comparisons."""
    return "".join(f"/{escape_segment(s)}" for s in pointer_segments(pointer))


def is_generatable(keywords: Mapping[str, Any]) -> bool:
    """A shape gets its own module when it has properties or a composition keyword."""
    return isinstance(keywords, Mapping) and ("properties" in keywords or any(k in keywords for k in COMPOSITION_KEYWORDS))


@dataclass(frozen=True)
class SchemaNode:
    """One JSON Schema construct as loaded from disk."""

    keywords: Mapping[str, Any] = EMPTY

    # File the node was loaded from
    source_path: str = ""

    # JSON pointer of the node inside that file ("" for the document root)
    pointer: str = ""

    def get(self, key: str, default: Any = None) -> Any:
        return self.keywords.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self.keywords

    @property
    def is_generatable(self) -> bool:
        return is_generatable(self.keywords)

    @property
    def definitions(self) -> dict[str, SchemaNode]:
        """Local definitions ($defs, or the older definitions keyword) by name."""
        result: dict[str, SchemaNode] = {}
        for container in ("$defs", "definitions"):
            entries = self.keywords.get(container)
            if not isinstance(entries, Mapping):
                continue
            for name, body in entries.items():
                # Skip comment fields (strings) and _comment prefixed keys
                if not isinstance(body, Mapping) or name.startswith("_comment"):
                    continue
                result.setdefault(name, self.child(container, name))
        return result

    def child(self, *segments: str) -> SchemaNode:
        """Descend by raw keys, keeping provenance."""
        value: Any = self.keywords
        for segment in segments:
            value = value[int(segment)] if isinstance(value, tuple) else value[segment]
        pointer = self.pointer + "".join(f"/{escape_segment(str(s))}" for s in segments)
        return SchemaNode(keywords=value, source_path=self.source_path, pointer=pointer)

    def lookup(self, pointer: str) -> SchemaNode | None:
        """Follow a JSON pointer relative to this node; None when nothing matches."""
        value: Any = self.keywords
        for segment in pointer_segments(pointer):
            if isinstance(value, Mapping) and segment in value:
                value = value[segment]
            elif isinstance(value, tuple) and segment.isdigit() and int(segment) < len(value):
                value = value[int(segment)]
            else:
                return None
        if not isinstance(value, Mapping):
            return None
        segments = pointer_segments(pointer)
        full_pointer = self.pointer + "".join(f"/{escape_segment(s)}" for s in segments)
        return SchemaNode(keywords=value, source_path=self.source_path, pointer=full_pointer)


class Cardinality(str, Enum):
    """How many values of a referenced module a field holds."""

    ONE = "one"
    MANY = "many"


@dataclass(frozen=True)
class RefMarker:
    """A $ref kept symbolic because its target gets its own module."""

    module: str = ""
    cardinality: Cardinality = Cardinality.ONE

    # The original $ref string
    ref: str = ""

    # Sibling keywords of the $ref (description, title, default)
    annotations: Mapping[str, Any] = EMPTY

    @property
    def name(self) -> str:
        """Terminal component of the module name, in PascalCase."""
        return snake_to_pascal_case(self.module.rsplit(".", 1)[-1])

    def get(self, key: str, default: Any = None) -> Any:
        return self.annotations.get(key, default)


@dataclass(frozen=True)
class ResolvedSchema:
    """A schema node whose subschemas are all resolved."""

    # Every non-structural keyword, verbatim (type, enum, const, required, ...)
    keywords: Mapping[str, Any] = EMPTY

    properties: Mapping[str, Resolved] | None = None
    items: Resolved | None = None
    additional_properties: Resolved | bool | None = None
    one_of: tuple[Resolved, ...] | None = None
    any_of: tuple[Resolved, ...] | None = None
    all_of: tuple[Resolved, ...] | None = None

    source_path: str = ""
    pointer: str = ""

    # The $ref that was inlined to produce this node, if any
    ref: str | None = None

    def get(self, key: str, default: Any = None) -> Any:
        return self.keywords.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self.keywords

    @property
    def required(self) -> tuple[str, ...]:
        value = self.keywords.get("required")
        return tuple(value) if isinstance(value, tuple) else ()

    @property
    def composition(self) -> tuple[str, tuple[Resolved, ...]] | None:
        """The oneOf/anyOf members, if this node is a union."""
        if self.one_of is not None:
            return "oneOf", self.one_of
        if self.any_of is not None:
            return "anyOf", self.any_of
        return None

    def replace(self, **changes: Any) -> ResolvedSchema:
        return dataclasses.replace(self, **changes)


Resolved = Union[ResolvedSchema, RefMarker]


@dataclass
class SchemaDocument:
    """A loaded schema file."""

    path: str = ""
    root: SchemaNode = field(default_factory=SchemaNode)
