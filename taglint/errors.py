"""
TagLint error types.

Input defects (a bad pattern, a malformed rule condition) are handled where
they occur and never surface as these exceptions from a full analysis. These
types signal broken definitions files or broken caller contracts.
"""

from __future__ import annotations


class TagLintError(Exception):
    """Base class for all TagLint errors."""


class ExpressionSyntaxError(TagLintError, ValueError):
    """Raised when a tag expression cannot be tokenized or parsed."""

    def __init__(self, message: str, expression: str = "", position: int | None = None) -> None:
        self.expression = expression
        self.position = position
        super().__init__(message)


class RegistryError(TagLintError):
    """Raised when tag definitions cannot be loaded or have an invalid shape."""


class RuleCatalogError(TagLintError):
    """Raised when a rule catalog cannot be loaded or has an invalid shape."""
