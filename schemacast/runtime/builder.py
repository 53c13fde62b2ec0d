"""
Validating constructors and union dispatch for generated modules.

Generated modules hold only data (FIELDS, REQUIRED, DISPATCH, ...) and
delegate to the functions here. Other modules are referenced by dotted name
and imported on first use.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Hashable, Mapping
from dataclasses import dataclass
from typing import Any

from .result import FieldError, NoMatchingVariantError, Result, UnknownVariantError
from .types import CastError, FieldType, construct

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass(frozen=True)
class Field:
    """One declared field of a generated module."""

    name: str
    type: FieldType
    description: str | None = None
    default: Any = _MISSING

    @property
    def has_default(self) -> bool:
        return self.default is not _MISSING


def build(
    module: str,
    fields: tuple[Field, ...],
    params: Any,
    required: tuple[str, ...] = (),
) -> Result:
    """
    Cast params field by field, then enforce the required list.

    Unknown keys in params are ignored. Every error is collected; nothing
    raises for invalid input.

    Args:
        module: Name reported on the result
        fields: Declared fields
        params: Decoded JSON input
        required: Names that must be present and not null

    Returns:
        A Result holding the value dict or the errors
    """
    if not isinstance(params, Mapping):
        return Result(module=module, errors=[FieldError("", "is invalid: expected an object")])

    value: dict[str, Any] = {}
    errors: list[FieldError] = []
    failed: set[str] = set()

    for f in fields:
        raw = params.get(f.name, _MISSING)
        if raw is _MISSING:
            if f.has_default:
                value[f.name] = copy.deepcopy(f.default)
        elif raw is None and f.name in required:
            # Reported as missing below
            continue
        else:
            try:
                value[f.name] = f.type.cast(raw)
            except CastError as e:
                errors.extend(e.at(f.name))
                failed.add(f.name)

    for name in required:
        if name not in failed and value.get(name) is None:
            errors.append(FieldError(name, "is required"))

    if errors:
        return Result(module=module, errors=errors)
    return Result(module=module, value=value)


@dataclass(frozen=True)
class InlineVariant:
    """A union member declared in place rather than as its own module."""

    fields: tuple[Field, ...] = ()
    required: tuple[str, ...] = ()

    # Set for members that are not objects (a string, a const, ...)
    type: FieldType | None = None

    def cast(self, params: Any, name: str) -> Result:
        if self.type is None:
            return build(name, self.fields, params, required=self.required)
        try:
            return Result(module=name, value=self.type.cast(params))
        except CastError as e:
            return Result(module=name, errors=e.errors)


def _cast_variant(variant: str, params: Any, inline: Mapping[str, InlineVariant] | None) -> Result:
    if inline and variant in inline:
        return inline[variant].cast(params, variant)
    return construct(variant, params)


def cast_discriminated(
    module: str,
    discriminator: str,
    dispatch: Mapping[Any, str],
    params: Any,
    inline: Mapping[str, InlineVariant] | None = None,
) -> Result:
    """
    Pick exactly one variant from the discriminator value.

    Raises:
        UnknownVariantError: If the tag matches no variant
    """
    tag = params.get(discriminator) if isinstance(params, Mapping) else None
    variant = None
    if isinstance(tag, Hashable):
        variant = next((v for t, v in dispatch.items() if t == tag and isinstance(t, bool) == isinstance(tag, bool)), None)
    if variant is None:
        raise UnknownVariantError(module, discriminator, tag)
    return _cast_variant(variant, params, inline)


def cast_sequential(
    module: str,
    variants: tuple[str, ...],
    params: Any,
    inline: Mapping[str, InlineVariant] | None = None,
) -> Result:
    """
    Try every variant in declared order; the first fully valid result wins.

    Every variant is tried so that inputs accepted by several variants can be
    reported: the choice then depends on declaration order alone.

    Raises:
        NoMatchingVariantError: If no variant accepts the input
    """
    attempts: dict[str, list[FieldError]] = {}
    matches: list[tuple[str, Result]] = []
    for variant in variants:
        result = _cast_variant(variant, params, inline)
        if result.valid:
            matches.append((variant, result))
        else:
            attempts[variant] = result.errors

    if not matches:
        raise NoMatchingVariantError(module, attempts)
    if len(matches) > 1:
        logger.warning(
            "%s: input accepted by %d variants (%s), using %s",
            module,
            len(matches),
            ", ".join(name for name, _ in matches),
            matches[0][0],
        )
    return matches[0][1]


__all__ = [
    "Field",
    "InlineVariant",
    "build",
    "cast_discriminated",
    "cast_sequential",
]
