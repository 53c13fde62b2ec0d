"""
Base class for code generation backends.

Defines the interface a backend implements: build a GeneratedModule from a
resolved schema, then render it to source text through Jinja2 templates.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import jinja2

from ... import __version__
from ..analyzer.ir_nodes import GeneratedModule, TypeDescriptor
from ..config import CodeGeneratorConfig
from ..schema_ast.nodes import ResolvedSchema


class CodeBackend(ABC):
    """Abstract base class for code generation backends."""

    # Template directory name
    TEMPLATE_LANG: str = ""

    # File extension
    FILE_EXTENSION: str = ""

    def __init__(self, config: CodeGeneratorConfig):
        """
        Initialize the backend.

        Args:
            config: Code generation configuration
        """
        self.config = config
        self._setup_templates()

    def _setup_templates(self) -> None:
        """Set up Jinja2 templates."""
        template_dir = Path(__file__).parent.parent.parent / "templates" / self.TEMPLATE_LANG
        self.jinja_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            lstrip_blocks=True,
            trim_blocks=True,
            keep_trailing_newline=True,
            undefined=jinja2.StrictUndefined,
        )
        self.jinja_env.filters["docstring"] = self.format_docstring

        self.object_template = self.jinja_env.get_template(f"object_module.{self.FILE_EXTENSION}.jinja2")
        self.union_template = self.jinja_env.get_template(f"union_module.{self.FILE_EXTENSION}.jinja2")

    @abstractmethod
    def build_module(
        self,
        resolved: ResolvedSchema,
        module_name: str,
        constraints: bool | None = None,
        source_label: str = "",
    ) -> GeneratedModule:
        """
        Analyze a resolved schema into a module description.

        Args:
            resolved: The resolved schema of the module
            module_name: Dotted module name
            constraints: Emit constraint checks (None uses the config)
            source_label: Schema file name recorded in the module doc

        Returns:
            The module IR
        """

    @abstractmethod
    def emit(self, module: GeneratedModule) -> str:
        """
        Render a module to source text.

        Args:
            module: The module IR

        Returns:
            Generated code as a string
        """

    @abstractmethod
    def translate_type(self, type_ref: TypeDescriptor, constraints: bool = False) -> str:
        """
        Translate an IR type to a language-specific type expression.

        Args:
            type_ref: The type descriptor
            constraints: Whether constraint metadata is emitted

        Returns:
            Language-specific type string
        """

    @abstractmethod
    def format_literal(self, value: Any) -> str:
        """
        Format a JSON value as a literal of the target language.

        Args:
            value: The value

        Returns:
            Formatted literal string
        """

    @abstractmethod
    def format_docstring(self, text: str) -> str:
        """Format text as a documentation block."""

    def generation_comment(self) -> str:
        """Comment placed at the top of every generated file."""
        if not self.config.add_generation_comment:
            return ""
        command_line = self.config.generation_command or "schemacast"
        return f"# Generated by schemacast v{__version__} : {command_line}"
