"""
Constraint rules enforced by field types.

Each rule represents a specific validation constraint from JSON Schema
(minLength, pattern, minimum, ...) and checks one already-cast value.
Rules are only attached to field types when the module was generated with
constraint enforcement enabled.
"""

from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from typing import Any


class ConstraintRule(ABC):
    """Base class for all constraint rules"""

    keyword = ""

    def __init__(self, limit: Any):
        self.limit = limit

    @abstractmethod
    def check(self, value: Any) -> str | None:
        """
        Check a value.

        Args:
            value: The cast field value

        Returns:
            An error message, or None when the value satisfies the rule
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.limit!r})"


class SizedRule(ConstraintRule):
    """Rules on len(); values without a length are left to the type check"""

    def check(self, value: Any) -> str | None:
        if not isinstance(value, str):
            return None
        return self.check_length(len(value))

    @abstractmethod
    def check_length(self, length: int) -> str | None: ...


class NumericRule(ConstraintRule):
    """Rules on numbers; booleans are not numbers here"""

    def check(self, value: Any) -> str | None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return self.check_number(value)

    @abstractmethod
    def check_number(self, value: int | float) -> str | None: ...


class MinLengthRule(SizedRule):
    """Validates minimum string length"""

    keyword = "min_length"

    def check_length(self, length: int) -> str | None:
        if length < self.limit:
            return f"should be at least {self.limit} character(s)"
        return None


class MaxLengthRule(SizedRule):
    """Validates maximum string length"""

    keyword = "max_length"

    def check_length(self, length: int) -> str | None:
        if length > self.limit:
            return f"should be at most {self.limit} character(s)"
        return None


class PatternRule(ConstraintRule):
    """Validates that a string matches a regex pattern"""

    keyword = "pattern"

    def __init__(self, limit: str):
        super().__init__(limit)
        self._regex = re.compile(limit)

    def check(self, value: Any) -> str | None:
        if isinstance(value, str) and not self._regex.search(value):
            return f"has invalid format, expected to match {self.limit!r}"
        return None


class MinimumRule(NumericRule):
    """Validates minimum numeric value"""

    keyword = "minimum"

    def check_number(self, value: int | float) -> str | None:
        if value < self.limit:
            return f"must be greater than or equal to {self.limit}"
        return None


class MaximumRule(NumericRule):
    """Validates maximum numeric value"""

    keyword = "maximum"

    def check_number(self, value: int | float) -> str | None:
        if value > self.limit:
            return f"must be less than or equal to {self.limit}"
        return None


class ExclusiveMinimumRule(NumericRule):
    keyword = "exclusive_minimum"

    def check_number(self, value: int | float) -> str | None:
        if value <= self.limit:
            return f"must be greater than {self.limit}"
        return None


class ExclusiveMaximumRule(NumericRule):
    keyword = "exclusive_maximum"

    def check_number(self, value: int | float) -> str | None:
        if value >= self.limit:
            return f"must be less than {self.limit}"
        return None


class MultipleOfRule(NumericRule):
    keyword = "multiple_of"

    def check_number(self, value: int | float) -> str | None:
        quotient = value / self.limit
        if not math.isclose(quotient, round(quotient), abs_tol=1e-9):
            return f"must be a multiple of {self.limit}"
        return None


RULES: dict[str, type[ConstraintRule]] = {
    rule.keyword: rule
    for rule in (
        MinLengthRule,
        MaxLengthRule,
        PatternRule,
        MinimumRule,
        MaximumRule,
        ExclusiveMinimumRule,
        ExclusiveMaximumRule,
        MultipleOfRule,
    )
}


def build_rules(constraints: dict[str, Any]) -> list[ConstraintRule]:
    """
    Instantiate rules from keyword arguments such as min_length=3.

    Raises:
        TypeError: If a keyword names no known rule
    """
    rules = []
    for keyword, limit in constraints.items():
        if keyword not in RULES:
            raise TypeError(f"unknown constraint {keyword!r}")
        rules.append(RULES[keyword](limit))
    return rules
