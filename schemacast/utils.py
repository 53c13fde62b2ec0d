"""
Naming helpers shared by the compiler and the module planner.
"""

import keyword
import os
import re

# Regex pattern to split text into words, handling camelCase boundaries
_WORD_PATTERN = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+[0-9]*|[0-9]+")


def _normalize_separators(text: str) -> str:
    """Normalize separators (underscores, hyphens, dots, spaces) to spaces."""
    return re.sub(r"[_\-.\s]+", " ", text)


def _split_into_words(text: str) -> list[str]:
    """Split text into words, handling camelCase boundaries."""
    return _WORD_PATTERN.findall(_normalize_separators(text))


def snake_to_pascal_case(text: str) -> str:
    """Convert snake_case, camelCase, or space-separated text to PascalCase.

    Examples:
        "message_error" -> "MessageError"
        "FIRST_NAME" -> "FirstName"
        "actionTemplate" -> "ActionTemplate"
        "first 3 rows" -> "First3Rows"
    """
    return "".join(word.capitalize() for word in _split_into_words(text))


def to_snake_case(text: str) -> str:
    """Convert PascalCase, camelCase or kebab-case text to snake_case.

    Examples:
        "MessageError" -> "message_error"
        "create_req" -> "create_req"
        "HTTPHeader" -> "http_header"
    """
    return "_".join(word.lower() for word in _split_into_words(text))


def to_identifier(text: str) -> str:
    """Turn an arbitrary path segment into a valid Python module identifier."""
    name = to_snake_case(text) or "_"
    if name[0].isdigit():
        name = f"v{name}"
    if keyword.iskeyword(name):
        name = f"{name}_"
    return name


def to_constant_name(text: str) -> str:
    """Turn a field name into an UPPER_SNAKE constant name."""
    name = to_snake_case(text).upper() or "FIELD"
    if name[0].isdigit():
        name = f"F{name}"
    return name


def longest_common_prefix(names: list[str]) -> str:
    """Return the longest prefix shared by every name."""
    if not names:
        return ""
    return os.path.commonprefix(names)
