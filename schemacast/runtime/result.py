"""
Results and errors produced by generated modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NamedTuple


class FieldError(NamedTuple):
    """One validation failure: dotted field path ("" for the value itself) and message."""

    path: str
    message: str


def join_path(prefix: str, path: str) -> str:
    if not path:
        return prefix
    if not prefix:
        return path
    return f"{prefix}.{path}"


class CastError(Exception):
    """Raised by a field type when a value cannot be cast."""

    def __init__(self, errors: list[FieldError]):
        super().__init__("; ".join(f"{e.path or '<value>'}: {e.message}" for e in errors))
        self.errors = errors

    @classmethod
    def single(cls, message: str) -> CastError:
        return cls([FieldError("", message)])

    def at(self, prefix: str) -> list[FieldError]:
        """The errors with their paths placed under prefix."""
        return [FieldError(join_path(prefix, e.path), e.message) for e in self.errors]


@dataclass
class Result:
    """Outcome of a validating constructor: a value or a list of field errors."""

    module: str = ""
    value: Any = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def error_map(self) -> dict[str, list[str]]:
        """Messages grouped by field path."""
        grouped: dict[str, list[str]] = {}
        for error in self.errors:
            grouped.setdefault(error.path, []).append(error.message)
        return grouped

    def unwrap(self) -> Any:
        """
        The constructed value.

        Raises:
            ValidationError: If the input did not validate
        """
        if self.errors:
            raise ValidationError(self.module, self.errors)
        return self.value


class RuntimeValidationError(Exception):
    """Base class for errors raised by generated modules."""


class ValidationError(RuntimeValidationError):
    def __init__(self, module: str, errors: list[FieldError]):
        details = ", ".join(f"{e.path or '<value>'} {e.message}" for e in errors)
        super().__init__(f"{module}: {details}")
        self.module = module
        self.errors = errors


class UnknownVariantError(RuntimeValidationError):
    """A discriminated union received a tag it has no variant for."""

    def __init__(self, module: str, discriminator: str, tag: Any):
        super().__init__(f"{module}: unknown variant {tag!r} for field {discriminator!r}")
        self.module = module
        self.discriminator = discriminator
        self.tag = tag


class NoMatchingVariantError(RuntimeValidationError):
    """No variant of a sequential union accepted the input."""

    def __init__(self, module: str, attempts: dict[str, list[FieldError]]):
        super().__init__(f"{module}: input matches none of {len(attempts)} variants")
        self.module = module
        self.attempts = attempts
