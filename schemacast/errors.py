"""
Compiler-stage errors.

Every error raised while loading, resolving or planning a schema derives
from SchemaCompileError. The batch driver catches these per file and
reports them by category; anything else is a bug and propagates.
"""

from __future__ import annotations


class SchemaCompileError(Exception):
    """Base class for errors that abort compilation of a single file."""

    category = "error"

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class SchemaIOError(SchemaCompileError):
    """A schema file could not be read."""

    category = "io"


class SchemaParseError(SchemaCompileError):
    """A schema file is not valid JSON or not a JSON object."""

    category = "parse"


class UnresolvedReferenceError(SchemaCompileError):
    """A $ref pointer matched nothing."""

    category = "unresolved_reference"

    def __init__(self, pointer: str, path: str = ""):
        super().__init__(f"unresolved reference {pointer!r}", path)
        self.pointer = pointer


class CyclicReferenceError(SchemaCompileError):
    """A $ref cycle could not be broken with a module reference."""

    category = "cyclic_reference"

    def __init__(self, cycle_path: str, path: str = ""):
        super().__init__(f"reference cycle through {cycle_path!r} cannot be broken", path)
        self.cycle_path = cycle_path


class ModuleCollisionError(SchemaCompileError):
    """Two schemas map onto the same module name or output path."""

    category = "module_collision"


class CodeWriteError(SchemaCompileError):
    """Generated code failed validation or could not be written."""

    category = "write"
