"""
Module naming and the per-batch module registry.

Maps schema files and their definitions to dotted Python module names and
output paths. The registry is built once, before anything is emitted, and
is read-only afterwards: it is how one module refers to another (by name,
as plain data) without either being generated yet.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ...errors import ModuleCollisionError
from ...utils import to_identifier
from ..schema_ast.nodes import SchemaDocument, normalize_pointer, pointer_segments

DEFINITION_CONTAINERS = ("$defs", "definitions")


@dataclass(frozen=True)
class ModuleTarget:
    """A shape that gets its own generated module."""

    module: str = ""
    source_path: str = ""
    pointer: str = ""

    @property
    def is_definition(self) -> bool:
        return bool(self.pointer)


class ModuleNamer:
    """Derives module names from schema file locations."""

    def __init__(self, schema_dir: str | Path, module_prefix: str = ""):
        """
        Initialize the namer.

        Args:
            schema_dir: Root of the schema tree; module names mirror paths below it
            module_prefix: Dotted namespace prepended to every module name
        """
        self.schema_dir = Path(schema_dir).expanduser().resolve()
        self.module_prefix = module_prefix.strip(".")

    def file_segments(self, source_path: str | Path) -> list[str]:
        """Module name segments for a schema file, without the prefix."""
        path = Path(source_path).expanduser().resolve()
        try:
            relative = path.relative_to(self.schema_dir)
        except ValueError:
            relative = Path(path.name)

        parts = list(relative.parts)
        parts[-1] = parts[-1].removesuffix(".json")

        segments: list[str] = []
        for part in parts:
            # Dots in names are separators too: discount.create_req -> discount/create_req
            segments.extend(to_identifier(p) for p in part.split(".") if p)
        return segments

    def relative_label(self, source_path: str | Path) -> str:
        """Path of a schema file below the schema root, with forward slashes."""
        path = Path(source_path).expanduser().resolve()
        try:
            return path.relative_to(self.schema_dir).as_posix()
        except ValueError:
            return path.name

    def plan(self, document: SchemaDocument) -> list[ModuleTarget]:
        """
        Modules generated from one schema file.

        The root gets a module when it is generatable; so does every
        generatable entry of its local definitions.
        """
        targets = []
        if document.root.is_generatable:
            targets.append(ModuleTarget(self.module_for(document.path), document.path, ""))
        for node in document.root.definitions.values():
            if node.is_generatable:
                pointer = normalize_pointer(node.pointer)
                targets.append(ModuleTarget(self.module_for(document.path, pointer), document.path, pointer))
        return targets

    def definition_segments(self, pointer: str) -> list[str]:
        """Module name segments contributed by a pointer inside a file."""
        segments = pointer_segments(pointer)
        if len(segments) == 2 and segments[0] in DEFINITION_CONTAINERS:
            return [to_identifier(segments[1])]
        return [to_identifier(s) for s in segments if s not in DEFINITION_CONTAINERS]

    def module_for(self, source_path: str | Path, pointer: str = "") -> str:
        """Full dotted module name for a file root ("" pointer) or a definition."""
        segments = self.file_segments(source_path) + self.definition_segments(pointer)
        if self.module_prefix:
            segments = [self.module_prefix, *segments]
        return ".".join(segments)

    def relative_module(self, module: str) -> list[str]:
        """Module name segments below the prefix."""
        if self.module_prefix and (module == self.module_prefix or module.startswith(self.module_prefix + ".")):
            module = module[len(self.module_prefix) :].lstrip(".")
        return [s for s in module.split(".") if s]

    def output_path(self, module: str, output_dir: str | Path, packages: set[str]) -> Path:
        """
        File a module is written to.

        Args:
            module: Full dotted module name
            output_dir: Directory that corresponds to the module prefix
            packages: Module names that are also parents of other modules

        Returns:
            output_dir/a/b.py, or output_dir/a/b/__init__.py when a.b is a package
        """
        segments = self.relative_module(module)
        base = Path(output_dir).joinpath(*segments)
        if module in packages:
            return base / "__init__.py"
        return base.with_name(base.name + ".py")


class ModuleRegistry:
    """(file, pointer) -> module name for every independently generated shape."""

    def __init__(self):
        self._by_target: dict[tuple[str, str], ModuleTarget] = {}
        self._by_module: dict[str, ModuleTarget] = {}

    def register(self, source_path: str, pointer: str, module: str) -> ModuleTarget:
        """
        Record that the shape at (source_path, pointer) is generated as module.

        Raises:
            ModuleCollisionError: If another shape already owns the module name
        """
        key = (source_path, normalize_pointer(pointer))
        existing = self._by_module.get(module)
        if existing is not None and (existing.source_path, existing.pointer) != key:
            raise ModuleCollisionError(
                f"module {module!r} is already generated from {existing.source_path}#{existing.pointer}",
                source_path,
            )
        target = ModuleTarget(module=module, source_path=key[0], pointer=key[1])
        self._by_target[key] = target
        self._by_module[module] = target
        return target

    def register_all(self, targets: list[ModuleTarget]) -> None:
        """Register every target of one file, or none of them on a collision."""
        claimed: dict[str, ModuleTarget] = {}
        for target in targets:
            key = (target.source_path, normalize_pointer(target.pointer))
            other = claimed.get(target.module) or self._by_module.get(target.module)
            if other is not None and (other.source_path, normalize_pointer(other.pointer)) != key:
                raise ModuleCollisionError(
                    f"module {target.module!r} is already generated from {other.source_path}#{other.pointer}",
                    target.source_path,
                )
            claimed[target.module] = target
        for target in targets:
            self.register(target.source_path, target.pointer, target.module)

    def lookup(self, source_path: str, pointer: str = "") -> str | None:
        """Module name owning the shape, or None when it is inlined instead."""
        target = self._by_target.get((source_path, normalize_pointer(pointer)))
        return target.module if target else None

    def package_names(self) -> set[str]:
        """Every proper dotted prefix of a registered module."""
        packages: set[str] = set()
        for module in self._by_module:
            parts = module.split(".")
            for i in range(1, len(parts)):
                packages.add(".".join(parts[:i]))
        return packages

    def __contains__(self, module: str) -> bool:
        return module in self._by_module

    def __len__(self) -> int:
        return len(self._by_module)
