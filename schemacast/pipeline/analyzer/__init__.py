"""
Analyzer module.

Contains reference resolution, module naming, composition analysis and
type mapping.
"""

from __future__ import annotations

from .composition import CompositionAnalyzer
from .ir_nodes import (
    CompositionGroup,
    EnumDeclaration,
    FieldDescriptor,
    GeneratedModule,
    Strategy,
    TypeDescriptor,
    TypeKind,
    VariantDescriptor,
    VariantKind,
)
from .name_resolver import ModuleNamer, ModuleRegistry, ModuleTarget
from .reference_resolver import ReferenceResolver
from .type_mapper import TypeMapper

__all__ = [
    "CompositionAnalyzer",
    "CompositionGroup",
    "EnumDeclaration",
    "FieldDescriptor",
    "GeneratedModule",
    "ModuleNamer",
    "ModuleRegistry",
    "ModuleTarget",
    "ReferenceResolver",
    "Strategy",
    "TypeDescriptor",
    "TypeKind",
    "TypeMapper",
    "VariantDescriptor",
    "VariantKind",
]
