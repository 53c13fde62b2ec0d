"""
Black post-processing pass for generated modules.
"""

from __future__ import annotations

import importlib.util
import logging

from ..config import FormatterConfig

logger = logging.getLogger(__name__)


class BlackFormatter:
    """Runs black over generated module source, configured by FormatterConfig."""

    def __init__(self, config: FormatterConfig):
        self.config = config

    @staticmethod
    def is_available() -> bool:
        """Check if black is installed."""
        return importlib.util.find_spec("black") is not None

    def _mode(self):
        import black

        target_versions = set()
        if self.config.target_version:
            version = getattr(black.TargetVersion, self.config.target_version.upper(), None)
            if version is None:
                logger.warning("Unknown black target version %r, formatting without one", self.config.target_version)
            else:
                target_versions.add(version)

        return black.Mode(
            target_versions=target_versions,
            line_length=self.config.line_length,
            string_normalization=self.config.string_normalization,
            magic_trailing_comma=self.config.magic_trailing_comma,
        )

    def format(self, code: str) -> str:
        """
        Format one generated module.

        Args:
            code: Python source of the module

        Returns:
            Formatted code; the input unchanged when black rejects it
        """
        import black

        try:
            return black.format_str(code, mode=self._mode())
        except black.InvalidInput as e:
            logger.warning("black could not format generated code: %s", e)
            return code
