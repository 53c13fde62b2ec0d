"""
Atomic file writer for generated modules.

Ensures that file writes are atomic so an interrupted run never leaves a
half-written module behind.
"""

from __future__ import annotations

import ast
import logging
import tempfile
from collections.abc import Callable
from pathlib import Path

from ...errors import CodeWriteError

logger = logging.getLogger(__name__)


class AtomicWriter:
    """Handles atomic file writes with validation.

    Uses a two-phase commit approach:
    1. Write to a temporary file in the same directory
    2. Validate the content
    3. Atomically replace the target file
    """

    def __init__(self, validate_python: Callable[[str], None] | None = None):
        """Initialize the atomic writer.

        Args:
            validate_python: Optional validation function for Python code
        """
        self._validate_python = validate_python or self._default_validate_python

    def write(self, path: Path, content: str, validate: bool = True) -> None:
        """Write content to file atomically.

        Args:
            path: Target file path
            content: Content to write
            validate: Whether to validate before finalizing

        Raises:
            CodeWriteError: If validation fails or the file cannot be written
        """
        if validate:
            self._validate_python(content, str(path))

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # Same directory ensures atomic rename on the same filesystem
            temp_fd, temp_path_str = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", text=True)
        except OSError as e:
            raise CodeWriteError(f"cannot write module: {e.strerror or e}", str(path)) from e

        temp_path = Path(temp_path_str)
        try:
            with open(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)
            temp_path.replace(path)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise CodeWriteError(f"cannot write module: {e.strerror or e}", str(path)) from e
        logger.debug("Wrote %s", path)

    def validate(self, path: Path, content: str) -> None:
        """Check content without writing it.

        Raises:
            CodeWriteError: If validation fails
        """
        self._validate_python(content, str(path))

    def write_plain(self, path: Path, content: str, validate: bool = True) -> None:
        """Write without the temporary file, for output.atomic_write = false."""
        if validate:
            self._validate_python(content, str(path))
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise CodeWriteError(f"cannot write module: {e.strerror or e}", str(path)) from e

    @staticmethod
    def _default_validate_python(content: str, path: str = "") -> None:
        """Default Python validation.

        Raises:
            CodeWriteError: If the content does not parse
        """
        try:
            ast.parse(content)
        except SyntaxError as e:
            raise CodeWriteError(f"generated Python code is not valid: {e}", path) from e
