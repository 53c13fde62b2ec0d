"""
IR (Intermediate Representation) node definitions.

These nodes represent the analyzed schema, ready for code generation: every
reference is resolved, every union is classified and every field has a
type descriptor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..schema_ast.nodes import Cardinality, Resolved


class TypeKind(Enum):
    """Kind of type in the IR."""

    REF = "ref"  # Another generated module
    UNION = "union"  # oneOf / anyOf at field level
    CONST = "const"  # Single literal value
    ENUM = "enum"  # One of a fixed set of values
    ARRAY_OF = "array_of"  # list of primitives or enum values
    ARRAY = "array"  # list of anything
    EMBEDDED_OBJECT = "embedded_object"  # Object literal with its own properties
    MAP = "map"  # dict, optionally with a value type
    FORMATTED = "formatted"  # String with a format keyword
    PRIMITIVE = "primitive"  # string, integer, float, boolean
    ANY = "any"  # Anything goes


class VariantKind(Enum):
    """How a union member was classified."""

    REF = "ref"
    CONST = "const"
    DISCRIMINATED = "discriminated"
    INLINE = "inline"


class Strategy(Enum):
    """How a union picks a variant at runtime."""

    DISCRIMINATED = "discriminated"
    SEQUENTIAL = "sequential"


# Keywords captured as opaque metadata on a type descriptor
CONSTRAINT_KEYWORDS = (
    "minimum",
    "maximum",
    "exclusiveMinimum",
    "exclusiveMaximum",
    "minLength",
    "maxLength",
    "pattern",
    "multipleOf",
)


@dataclass
class TypeDescriptor:
    """A mapped field type."""

    kind: TypeKind = TypeKind.ANY

    # For REF
    module: str = ""
    cardinality: Cardinality = Cardinality.ONE

    # For UNION
    group: CompositionGroup | None = None

    # For CONST
    value: Any = None

    # For ENUM
    values: list[Any] = field(default_factory=list)

    # For ARRAY_OF, and the value type of MAP
    inner: TypeDescriptor | None = None

    # For EMBEDDED_OBJECT (one level only)
    fields: list[FieldDescriptor] = field(default_factory=list)

    # For PRIMITIVE: "string", "integer", "float", "boolean", "map", "sequence"
    primitive: str = ""

    # For FORMATTED and strings that carry an unknown format
    format: str | None = None

    is_nullable: bool = False

    # Constraint keywords, verbatim
    constraints: dict[str, Any] = field(default_factory=dict)

    default_value: Any = None
    has_default: bool = False


@dataclass
class FieldDescriptor:
    """A field of a plain object module."""

    name: str = ""
    type_ref: TypeDescriptor = field(default_factory=TypeDescriptor)
    description: str | None = None
    is_required: bool = False
    default_value: Any = None
    has_default: bool = False


@dataclass
class VariantDescriptor:
    """One member of a oneOf / anyOf."""

    kind: VariantKind = VariantKind.INLINE

    # The resolved member (a RefMarker for REF variants)
    node: Resolved | None = None

    # Module the variant is cast with (REF variants only)
    module: str = ""

    # Discriminator field and tag, when known
    discriminator_field: str | None = None
    tag: Any = None


@dataclass
class CompositionGroup:
    """A classified oneOf / anyOf."""

    kind: str = "oneOf"  # "oneOf" or "anyOf"
    variants: list[VariantDescriptor] = field(default_factory=list)
    strategy: Strategy = Strategy.SEQUENTIAL
    discriminator: str | None = None

    @property
    def is_discriminated(self) -> bool:
        return self.strategy == Strategy.DISCRIMINATED


@dataclass
class EnumDeclaration:
    """A `<FIELD>_VALUES` tuple emitted for an enum or const field."""

    name: str = ""
    field_name: str = ""
    values: list[Any] = field(default_factory=list)


@dataclass
class GeneratedModule:
    """Everything the backend needs to render one module."""

    name: str = ""
    doc: str = ""
    enums: list[EnumDeclaration] = field(default_factory=list)

    # Plain object modules
    fields: list[FieldDescriptor] = field(default_factory=list)
    required: list[str] = field(default_factory=list)

    # Union modules
    group: CompositionGroup | None = None

    # Generation comment
    generation_comment: str = ""

    # Emit constraint keyword arguments on field types
    enforce_constraints: bool = False

    @property
    def is_union(self) -> bool:
        return self.group is not None
