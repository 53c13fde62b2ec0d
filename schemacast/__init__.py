"""schemacast

Compiles JSON Schema documents into validating Python modules. Handles
cross-file references, allOf merging, discriminated and sequential unions,
and batch generation of whole schema trees.
"""

__version__ = "1.0.0"

from .errors import (
    CodeWriteError,
    CyclicReferenceError,
    ModuleCollisionError,
    SchemaCompileError,
    SchemaIOError,
    SchemaParseError,
    UnresolvedReferenceError,
)
from .pipeline import (
    AtomicWriter,
    BatchReport,
    CodeGeneratorConfig,
    FormatterConfig,
    OutputConfig,
    PipelineGenerator,
    compile_file,
    generate_all,
)

__all__ = [
    "PipelineGenerator",
    "compile_file",
    "generate_all",
    "BatchReport",
    "CodeGeneratorConfig",
    "FormatterConfig",
    "OutputConfig",
    "AtomicWriter",
    "SchemaCompileError",
    "SchemaIOError",
    "SchemaParseError",
    "UnresolvedReferenceError",
    "CyclicReferenceError",
    "ModuleCollisionError",
    "CodeWriteError",
]
