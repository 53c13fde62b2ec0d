"""
Batch driver.

Walks a schema directory and generates every module it defines, in two
passes: the first loads every file and registers every module name, the
second compiles and writes. A failing file is recorded and skipped; it
never stops the batch.
"""

from __future__ import annotations

import dataclasses
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from ..errors import CodeWriteError, SchemaCompileError, SchemaIOError
from .analyzer.name_resolver import ModuleNamer, ModuleRegistry, ModuleTarget
from .config import CodeGeneratorConfig
from .generator import CompiledModule, PipelineGenerator
from .schema_ast.loader import SchemaLoader
from .schema_ast.nodes import SchemaDocument
from .writer.atomic_writer import AtomicWriter

logger = logging.getLogger(__name__)

PACKAGE_INIT = '"""Generated package."""\n'


@dataclass
class FailedFile:
    """A schema file that produced no modules."""

    path: str = ""
    category: str = ""
    message: str = ""


@dataclass
class SkippedRoot:
    """A schema file whose root is not generatable."""

    path: str = ""

    # Definition modules generated from the file instead
    definitions: int = 0


@dataclass
class BatchReport:
    """Outcome of a batch run."""

    generated: list[str] = field(default_factory=list)
    skipped: list[SkippedRoot] = field(default_factory=list)
    failed: list[FailedFile] = field(default_factory=list)

    # Files written (empty on a dry run)
    written: list[Path] = field(default_factory=list)

    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary_lines(self) -> list[str]:
        """Human-readable summary: one line per failed file, then the counts."""
        lines = [f"FAILED {f.path}: {f.category}: {f.message}" for f in self.failed]
        prefix = "[dry run] " if self.dry_run else ""
        lines.append(
            f"{prefix}{len(self.generated)} module(s) generated, "
            f"{len(self.skipped)} root(s) skipped, {len(self.failed)} file(s) failed"
        )
        return lines


@dataclass
class PlannedFile:
    """Pass 1 result for one schema file."""

    document: SchemaDocument
    label: str
    targets: list[ModuleTarget] = field(default_factory=list)

    @property
    def root_generatable(self) -> bool:
        return any(not t.is_definition for t in self.targets)


class BatchGenerator:
    """Generates every module of a schema directory."""

    def __init__(
        self,
        schema_dir: str | Path,
        output_dir: str | Path,
        module_prefix: str | None = None,
        dry_run: bool = False,
        config: CodeGeneratorConfig | None = None,
    ):
        """
        Initialize the batch.

        Args:
            schema_dir: Directory walked for **/*.json
            output_dir: Directory that becomes the module_prefix package; cleared before writing
            module_prefix: Dotted namespace of generated modules (defaults to the config's)
            dry_run: Do everything except clearing and writing
            config: Code generation configuration
        """
        self.config = dataclasses.replace(config) if config else CodeGeneratorConfig()
        if module_prefix is not None:
            self.config.module_prefix = module_prefix
        self.schema_dir = Path(schema_dir).expanduser().resolve()
        self.output_dir = Path(output_dir).expanduser().resolve()
        self.dry_run = dry_run
        if not self.config.schema_root:
            self.config.schema_root = str(self.schema_dir)
        self.namer = ModuleNamer(self.schema_dir, self.config.module_prefix)
        self.registry = ModuleRegistry()
        self.writer = AtomicWriter()

    def discover(self) -> list[Path]:
        """Every schema file below schema_dir in lexicographic order, vendor directories excluded."""
        if not self.schema_dir.is_dir():
            raise SchemaIOError("schema directory does not exist", str(self.schema_dir))
        excluded = set(self.config.excluded_dirs)
        files = []
        for path in self.schema_dir.rglob("*.json"):
            relative = path.relative_to(self.schema_dir)
            if excluded.intersection(relative.parts[:-1]) or not path.is_file():
                continue
            files.append(path)
        return sorted(files, key=lambda p: p.relative_to(self.schema_dir).as_posix())

    def run(self) -> BatchReport:
        """
        Run both passes.

        Returns:
            The report; report.ok is False when any file failed
        """
        report = BatchReport(dry_run=self.dry_run)
        planned = self._plan(report)

        if not self.dry_run:
            self._clear_output()

        generator = PipelineGenerator(
            self.config,
            self.registry,
            self.namer,
            {p.document.path: p.document for p in planned},
        )
        packages = self.registry.package_names()

        for item in planned:
            try:
                compiled = generator.compile_document(item.document, item.targets, item.label)
                if not self.dry_run:
                    self._write(compiled, packages, report)
            except SchemaCompileError as e:
                self._fail(report, item.label, e)
                continue

            report.generated.extend(module.name for module in compiled)
            if not item.root_generatable:
                report.skipped.append(SkippedRoot(path=item.label, definitions=len(item.targets)))
                logger.info("%s: root not generatable, %d definition(s) processed", item.label, len(item.targets))
            for module in compiled:
                logger.debug("Generated %s", module.name)

        if not self.dry_run:
            self._write_package_inits(report)
        return report

    def _plan(self, report: BatchReport) -> list[PlannedFile]:
        """Pass 1: load every file and register every module name."""
        loader = SchemaLoader()
        planned = []
        for path in self.discover():
            label = self.namer.relative_label(path)
            try:
                document = loader.load(path)
                targets = self.namer.plan(document)
                self.registry.register_all(targets)
            except SchemaCompileError as e:
                self._fail(report, label, e)
                continue
            planned.append(PlannedFile(document=document, label=label, targets=targets))
        return planned

    @staticmethod
    def _fail(report: BatchReport, label: str, error: SchemaCompileError) -> None:
        logger.error("%s: %s: %s", label, error.category, error.message)
        report.failed.append(FailedFile(path=label, category=error.category, message=error.message))

    def _clear_output(self) -> None:
        if self.output_dir == self.schema_dir or self.output_dir in self.schema_dir.parents:
            raise SchemaIOError("refusing to clear an output directory that contains the schemas", str(self.output_dir))
        if self.output_dir.exists():
            logger.info("Clearing %s", self.output_dir)
            shutil.rmtree(self.output_dir)
        self.output_dir.mkdir(parents=True)

    def _write(self, compiled: list[CompiledModule], packages: set[str], report: BatchReport) -> None:
        """Write every module of one file, or none of them."""
        planned = [(self.namer.output_path(module.name, self.output_dir, packages), module) for module in compiled]
        if self.config.output.validate_before_write:
            for path, module in planned:
                self.writer.validate(path, module.code)

        write = self.writer.write if self.config.output.atomic_write else self.writer.write_plain
        written: list[Path] = []
        try:
            for path, module in planned:
                write(path, module.code, validate=False)
                written.append(path)
        except CodeWriteError:
            for path in written:
                path.unlink(missing_ok=True)
            raise
        report.written.extend(written)

    def _write_package_inits(self, report: BatchReport) -> None:
        """Give every directory between output_dir and a module an __init__.py."""
        directories: set[Path] = set()
        for path in report.written:
            parent = path.parent
            while parent != self.output_dir and self.output_dir in parent.parents:
                directories.add(parent)
                parent = parent.parent
        if self.config.module_prefix:
            directories.add(self.output_dir)

        for directory in sorted(directories):
            init = directory / "__init__.py"
            if not init.exists():
                directory.mkdir(parents=True, exist_ok=True)
                init.write_text(PACKAGE_INIT, encoding="utf-8")


def generate_all(
    schema_dir: str | Path,
    output_dir: str | Path,
    module_prefix: str | None = None,
    dry_run: bool = False,
    config: CodeGeneratorConfig | None = None,
) -> BatchReport:
    """
    Generate every module of a schema directory.

    Args:
        schema_dir: Directory walked for **/*.json
        output_dir: Directory that becomes the module_prefix package
        module_prefix: Dotted namespace of generated modules
        dry_run: Report what would be generated without touching the filesystem
        config: Code generation configuration

    Returns:
        The batch report
    """
    return BatchGenerator(schema_dir, output_dir, module_prefix, dry_run, config).run()
