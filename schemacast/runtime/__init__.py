"""
Runtime support imported by generated modules.

Generated code stays data-only: field lists, required lists and dispatch
tables. Casting, validation and variant dispatch live here.
"""

from __future__ import annotations

from .builder import Field, InlineVariant, build, cast_discriminated, cast_sequential
from .result import (
    CastError,
    FieldError,
    NoMatchingVariantError,
    Result,
    RuntimeValidationError,
    UnknownVariantError,
    ValidationError,
)
from .types import construct

__all__ = [
    "Field",
    "InlineVariant",
    "build",
    "cast_discriminated",
    "cast_sequential",
    "construct",
    "CastError",
    "FieldError",
    "Result",
    "RuntimeValidationError",
    "ValidationError",
    "UnknownVariantError",
    "NoMatchingVariantError",
]
