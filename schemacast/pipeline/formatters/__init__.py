"""
Post-processing formatters for generated code.
"""

from __future__ import annotations

from .black_formatter import BlackFormatter

__all__ = [
    "BlackFormatter",
]
