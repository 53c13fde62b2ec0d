"""
Pipeline generator.

Runs the compiler phases for the modules of one schema file:

1. Load: decode the schema file (schema_ast.loader)
2. Resolve: splice or mark every $ref (analyzer.reference_resolver)
3. Analyze: flatten allOf, classify unions, map types (analyzer)
4. Emit: render the module through templates (backends.python_backend)
5. Format: optional black pass (formatters)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from ..errors import UnresolvedReferenceError
from .analyzer.name_resolver import ModuleNamer, ModuleRegistry, ModuleTarget
from .analyzer.reference_resolver import ReferenceResolver
from .backends.python_backend import PythonBackend
from .config import CodeGeneratorConfig
from .formatters.black_formatter import BlackFormatter
from .schema_ast.loader import SchemaLoader, normalize_path
from .schema_ast.nodes import SchemaDocument

logger = logging.getLogger(__name__)


@dataclass
class CompiledModule:
    """Source text of one generated module."""

    target: ModuleTarget
    code: str

    @property
    def name(self) -> str:
        return self.target.module


class PipelineGenerator:
    """Compiles the planned modules of schema files."""

    def __init__(
        self,
        config: CodeGeneratorConfig | None = None,
        registry: ModuleRegistry | None = None,
        namer: ModuleNamer | None = None,
        documents: Mapping[str, SchemaDocument] | None = None,
    ):
        """
        Initialize the generator.

        Args:
            config: Code generation configuration
            registry: Modules of the whole run; refs to them stay symbolic
            namer: Naming scheme of the run
            documents: Documents loaded by a planning pass, shared read-only
        """
        self.config = config or CodeGeneratorConfig()
        self.registry = registry or ModuleRegistry()
        self.namer = namer
        self.resolver = ReferenceResolver(self.registry, self.config, namer, documents)
        self.backend = PythonBackend(self.config)
        self.formatter = BlackFormatter(self.config.formatter) if self.config.formatter.enabled else None

    def compile_target(self, document: SchemaDocument, target: ModuleTarget, source_label: str = "") -> CompiledModule:
        """
        Compile one planned module of a document.

        Args:
            document: The loaded schema file
            target: Root ("" pointer) or a definition of that file
            source_label: File name recorded in the module doc

        Returns:
            The module's source text

        Raises:
            SchemaCompileError: From any phase; the caller decides what fails
        """
        schema = document.root.lookup(target.pointer) if target.pointer else document.root
        if schema is None:
            raise UnresolvedReferenceError(target.pointer, document.path)

        resolved = self.resolver.resolve(schema, document.path, root_schema=document.root, module_name=target.module)
        module = self.backend.build_module(resolved, target.module, source_label=source_label)
        code = self.backend.emit(module)
        return CompiledModule(target=target, code=self.format(code))

    def format(self, code: str) -> str:
        """Apply the configured formatter, if any."""
        if self.formatter is None:
            return code
        if not self.formatter.is_available():
            logger.warning("Formatting is enabled but black is not installed; leaving output unformatted")
            return code
        return self.formatter.format(code)

    def compile_document(self, document: SchemaDocument, targets: list[ModuleTarget], source_label: str = "") -> list[CompiledModule]:
        """Compile every planned module of a document; any failure fails them all."""
        return [self.compile_target(document, target, source_label) for target in targets]


def compile_file(
    path: str | Path,
    config: CodeGeneratorConfig | None = None,
    schema_dir: str | Path | None = None,
) -> dict[str, str]:
    """
    Compile a single schema file in isolation.

    Only the file's own root and definitions are registered as modules, so
    references to other files are inlined.

    Args:
        path: Schema file
        config: Code generation configuration
        schema_dir: Root module names are derived from (defaults to the
            configured schema_root, else the file's directory)

    Returns:
        Module name -> source text, in planning order

    Raises:
        SchemaCompileError: If the file or anything it references fails to compile
    """
    config = config or CodeGeneratorConfig()
    source = normalize_path(path)
    root_dir = schema_dir or config.schema_root or Path(source).parent
    namer = ModuleNamer(root_dir, config.module_prefix)

    document = SchemaLoader().load(source)
    targets = namer.plan(document)
    registry = ModuleRegistry()
    registry.register_all(targets)

    generator = PipelineGenerator(config, registry, namer, {document.path: document})
    compiled = generator.compile_document(document, targets, namer.relative_label(source))
    return {module.name: module.code for module in compiled}
