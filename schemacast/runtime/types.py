"""
Field types used by generated modules.

A field type casts one decoded JSON value into its native Python form and
raises CastError when it cannot. Constraint keywords given as keyword
arguments (min_length=1, minimum=0, ...) are checked after the cast.
"""

from __future__ import annotations

import datetime
import importlib
import ipaddress
import re
import uuid
from collections.abc import Hashable, Mapping
from typing import Any as AnyValue

from .constraints import build_rules
from .result import CastError, FieldError, NoMatchingVariantError, Result, UnknownVariantError


class FieldType:
    """Base class for field types: accepts anything"""

    def __init__(self, nullable: bool = False, **constraints: AnyValue):
        self.nullable = nullable
        self.constraints = constraints
        self.rules = build_rules(constraints)

    def cast(self, value: AnyValue) -> AnyValue:
        """
        Cast a decoded JSON value.

        Raises:
            CastError: If the value does not fit the type or its constraints
        """
        if value is None:
            if self.nullable:
                return None
            raise CastError.single("is invalid: must not be null")
        value = self._cast(value)
        for rule in self.rules:
            message = rule.check(value)
            if message:
                raise CastError.single(message)
        return value

    def _cast(self, value: AnyValue) -> AnyValue:
        return value

    def _describe(self) -> list[str]:
        return []

    def __repr__(self) -> str:
        args = self._describe()
        if self.nullable:
            args.append("nullable=True")
        args.extend(f"{k}={v!r}" for k, v in self.constraints.items())
        return f"{self.__class__.__name__}({', '.join(args)})"


class Any(FieldType):
    def __init__(self, nullable: bool = True, **constraints: AnyValue):
        super().__init__(nullable=nullable, **constraints)


_DATE_TIME_PREFIX = re.compile(r"\d{4}-\d{2}-\d{2}[Tt ]")


def _invalid(expected: str) -> CastError:
    return CastError.single(f"is invalid: expected {expected}")


class String(FieldType):
    def __init__(self, format: str | None = None, nullable: bool = False, **constraints: AnyValue):
        super().__init__(nullable=nullable, **constraints)
        # Informational only: unknown formats are not checked
        self.format = format

    def _cast(self, value: AnyValue) -> str:
        if not isinstance(value, str):
            raise _invalid("a string")
        return value

    def _describe(self) -> list[str]:
        return [f"format={self.format!r}"] if self.format else []


class Integer(FieldType):
    def _cast(self, value: AnyValue) -> int:
        if isinstance(value, bool):
            raise _invalid("an integer")
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise _invalid("an integer")


class Float(FieldType):
    def _cast(self, value: AnyValue) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise _invalid("a number")
        return float(value)


class Boolean(FieldType):
    def _cast(self, value: AnyValue) -> bool:
        if not isinstance(value, bool):
            raise _invalid("a boolean")
        return value


class Map(FieldType):
    """A JSON object, optionally with a type for its values"""

    def __init__(self, values: FieldType | None = None, nullable: bool = False, **constraints: AnyValue):
        super().__init__(nullable=nullable, **constraints)
        self.values = values

    def _cast(self, value: AnyValue) -> dict:
        if not isinstance(value, Mapping):
            raise _invalid("an object")
        if self.values is None:
            return dict(value)
        result, errors = {}, []
        for key, item in value.items():
            try:
                result[key] = self.values.cast(item)
            except CastError as e:
                errors.extend(e.at(str(key)))
        if errors:
            raise CastError(errors)
        return result

    def _describe(self) -> list[str]:
        return [f"values={self.values!r}"] if self.values is not None else []


class Sequence(FieldType):
    """A JSON array of anything"""

    def _cast(self, value: AnyValue) -> list:
        if not isinstance(value, (list, tuple)):
            raise _invalid("an array")
        return list(value)


class ArrayOf(Sequence):
    """A JSON array whose items all have one type"""

    def __init__(self, inner: FieldType, nullable: bool = False, **constraints: AnyValue):
        super().__init__(nullable=nullable, **constraints)
        self.inner = inner

    def _cast(self, value: AnyValue) -> list:
        items, errors = [], []
        for index, item in enumerate(super()._cast(value)):
            try:
                items.append(self.inner.cast(item))
            except CastError as e:
                errors.extend(e.at(str(index)))
        if errors:
            raise CastError(errors)
        return items

    def _describe(self) -> list[str]:
        return [repr(self.inner)]


def _same(a: AnyValue, b: AnyValue) -> bool:
    # JSON true is not 1
    return a == b and isinstance(a, bool) == isinstance(b, bool)


class Enum(FieldType):
    """One of a fixed set of values; a const is a one-value enum"""

    def __init__(self, values: tuple, nullable: bool = False, **constraints: AnyValue):
        super().__init__(nullable=nullable, **constraints)
        self.values = tuple(values)

    def _cast(self, value: AnyValue) -> AnyValue:
        for allowed in self.values:
            if _same(allowed, value):
                return allowed
        raise CastError.single(f"is invalid: expected one of {list(self.values)!r}")

    def _describe(self) -> list[str]:
        return [repr(self.values)]


def construct(module_name: str, params: AnyValue) -> Result:
    """Run the constructor of another generated module, imported on first use."""
    module = importlib.import_module(module_name)
    if hasattr(module, "cast"):
        try:
            return module.cast(params)
        except (UnknownVariantError, NoMatchingVariantError) as e:
            return Result(module=module_name, errors=[FieldError("", str(e))])
    return module.new(params)


class Ref(FieldType):
    """A value constructed by another generated module"""

    def __init__(self, module: str, many: bool = False, nullable: bool = False, **constraints: AnyValue):
        super().__init__(nullable=nullable, **constraints)
        self.module = module
        self.many = many

    def _cast_one(self, value: AnyValue) -> AnyValue:
        result = construct(self.module, value)
        if not result.valid:
            raise CastError(result.errors)
        return result.value

    def _cast(self, value: AnyValue) -> AnyValue:
        if not self.many:
            return self._cast_one(value)
        if not isinstance(value, (list, tuple)):
            raise _invalid("an array")
        items, errors = [], []
        for index, item in enumerate(value):
            try:
                items.append(self._cast_one(item))
            except CastError as e:
                errors.extend(e.at(str(index)))
        if errors:
            raise CastError(errors)
        return items

    def _describe(self) -> list[str]:
        return [repr(self.module)] + (["many=True"] if self.many else [])


class Union(FieldType):
    """
    A field-level oneOf / anyOf.

    With a discriminator the tag picks the member; otherwise members are
    tried in order and the first that accepts the value wins.
    """

    def __init__(
        self,
        *members: FieldType,
        discriminator: str | None = None,
        tags: tuple = (),
        nullable: bool = False,
        **constraints: AnyValue,
    ):
        super().__init__(nullable=nullable, **constraints)
        self.members = members
        self.discriminator = discriminator
        self.tags = tuple(tags)

    def _cast(self, value: AnyValue) -> AnyValue:
        if self.discriminator and isinstance(value, Mapping):
            tag = value.get(self.discriminator)
            for member_tag, member in zip(self.tags, self.members):
                if isinstance(tag, Hashable) and _same(member_tag, tag):
                    return member.cast(value)
            raise CastError([FieldError(self.discriminator, f"is invalid: unknown variant {tag!r}")])

        for member in self.members:
            try:
                return member.cast(value)
            except CastError:
                continue
        raise CastError.single("is invalid: matches no variant")

    def _describe(self) -> list[str]:
        args = [repr(m) for m in self.members]
        if self.discriminator:
            args.extend([f"discriminator={self.discriminator!r}", f"tags={self.tags!r}"])
        return args


class DateTime(FieldType):
    def _cast(self, value: AnyValue) -> datetime.datetime:
        if isinstance(value, datetime.datetime):
            return value
        # fromisoformat also takes a bare date
        if not isinstance(value, str) or not _DATE_TIME_PREFIX.match(value):
            raise _invalid("an ISO 8601 date-time")
        try:
            return datetime.datetime.fromisoformat(value)
        except (TypeError, ValueError):
            raise _invalid("an ISO 8601 date-time") from None


class Date(FieldType):
    def _cast(self, value: AnyValue) -> datetime.date:
        if isinstance(value, datetime.date) and not isinstance(value, datetime.datetime):
            return value
        try:
            return datetime.date.fromisoformat(value)
        except (TypeError, ValueError):
            raise _invalid("an ISO 8601 date") from None


class Time(FieldType):
    def _cast(self, value: AnyValue) -> datetime.time:
        if isinstance(value, datetime.time):
            return value
        try:
            return datetime.time.fromisoformat(value)
        except (TypeError, ValueError):
            raise _invalid("an ISO 8601 time") from None


class UUID(FieldType):
    def _cast(self, value: AnyValue) -> uuid.UUID:
        if isinstance(value, uuid.UUID):
            return value
        try:
            return uuid.UUID(value)
        except (AttributeError, TypeError, ValueError):
            raise _invalid("a UUID") from None


class IPv4(FieldType):
    def _cast(self, value: AnyValue) -> ipaddress.IPv4Address:
        if not isinstance(value, str):
            raise _invalid("an IPv4 address")
        try:
            return ipaddress.IPv4Address(value)
        except ValueError:
            raise _invalid("an IPv4 address") from None


class IPv6(FieldType):
    def _cast(self, value: AnyValue) -> ipaddress.IPv6Address:
        if not isinstance(value, str):
            raise _invalid("an IPv6 address")
        try:
            return ipaddress.IPv6Address(value)
        except ValueError:
            raise _invalid("an IPv6 address") from None
