"""
Configuration for the schema compiler pipeline.

A single CodeGeneratorConfig travels through every phase. It can be built
from a JSON config file (see the --config option of the CLI) via from_dict.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_EXCLUDED_DIRS = ["node_modules", "vendor", ".git"]


@dataclass
class OutputConfig:
    """Configuration for output file handling.

    Attributes:
        validate_before_write: Whether to parse generated code before writing
        atomic_write: Whether to use atomic file writes
    """

    validate_before_write: bool = True
    atomic_write: bool = True


@dataclass
class FormatterConfig:
    """Configuration for the optional black post-processing pass."""

    # Whether formatting is enabled
    enabled: bool = False

    # Line length for the formatter
    line_length: int = 100

    # Python version target (e.g., "py312", "py313")
    target_version: str = "py312"

    # Whether to use string normalization (convert single quotes to double)
    string_normalization: bool = True

    magic_trailing_comma: bool = True


@dataclass
class CodeGeneratorConfig:
    """Configuration options for code generation."""

    # Dotted namespace every generated module lives under
    module_prefix: str = "generated"

    # Directory that absolute ("/types/x.json") $ref paths resolve against
    schema_root: str = ""

    # Directory names skipped while walking a schema tree
    excluded_dirs: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDED_DIRS))

    # Emit constraint keywords (minLength, pattern, ...) onto field types
    enforce_constraints: bool = False

    # Add generation comment at top of file
    add_generation_comment: bool = True

    # Command line recorded in the generation comment (set by the CLI)
    generation_command: str = ""

    # Module generated code imports its runtime support from
    runtime_module: str = "schemacast.runtime"

    formatter: FormatterConfig = field(default_factory=FormatterConfig)

    output: OutputConfig = field(default_factory=OutputConfig)

    @staticmethod
    def from_dict(d: dict) -> CodeGeneratorConfig:
        """Create a config from a dictionary."""
        config = CodeGeneratorConfig()
        for k, v in d.items():
            if k == "formatter" and isinstance(v, dict):
                config.formatter = FormatterConfig(**v)
            elif k == "output" and isinstance(v, dict):
                config.output = OutputConfig(**v)
            elif hasattr(config, k):
                setattr(config, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "module_prefix": self.module_prefix,
            "schema_root": self.schema_root,
            "excluded_dirs": list(self.excluded_dirs),
            "enforce_constraints": self.enforce_constraints,
            "add_generation_comment": self.add_generation_comment,
            "generation_command": self.generation_command,
            "runtime_module": self.runtime_module,
            "formatter": {
                "enabled": self.formatter.enabled,
                "line_length": self.formatter.line_length,
                "target_version": self.formatter.target_version,
                "string_normalization": self.formatter.string_normalization,
                "magic_trailing_comma": self.formatter.magic_trailing_comma,
            },
            "output": {
                "validate_before_write": self.output.validate_before_write,
                "atomic_write": self.output.atomic_write,
            },
        }
