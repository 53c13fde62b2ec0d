"""
Pipeline - JSON Schema to validating Python modules.

This package provides the multi-phase compiler:

1. Phase 1 (Loader): Decode JSON Schema files into immutable schema nodes
2. Phase 2 (Resolver): Inline or mark every $ref, breaking cycles
3. Phase 3 (Analyzer): Flatten allOf, classify unions, map types
4. Phase 4 (Backend): Render modules through Jinja2 templates
5. Phase 5 (Formatter): Optional post-processing with black
6. Phase 6 (Writer): Atomic, validated writes driven by the batch
"""

from __future__ import annotations

from .batch import BatchGenerator, BatchReport, FailedFile, SkippedRoot, generate_all
from .config import CodeGeneratorConfig, FormatterConfig, OutputConfig
from .generator import CompiledModule, PipelineGenerator, compile_file
from .writer import AtomicWriter

__all__ = [
    "PipelineGenerator",
    "CompiledModule",
    "compile_file",
    "BatchGenerator",
    "BatchReport",
    "FailedFile",
    "SkippedRoot",
    "generate_all",
    "CodeGeneratorConfig",
    "FormatterConfig",
    "OutputConfig",
    "AtomicWriter",
]
