"""
Syntax Summary Model — Structured facts reported by an external Java parser.

The tag extractor consumes this as an opaque summary. Its absence is a
normal input shape: syntax-driven tiers simply do not run.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class SyntaxSummary(BaseModel):
    """Per-file structural metrics and features."""

    method_count: int = Field(default=0, ge=0, description="Declared methods and constructors")
    cyclomatic_complexity: int = Field(
        default=1, ge=0, description="1 + number of decision points"
    )
    max_nesting_depth: int = Field(
        default=0, ge=0, description="Deepest control-flow statement nesting"
    )
    line_count: int = Field(default=0, ge=0, description="Number of source lines")
    has_loop: bool = Field(default=False, description="Any for/while/do loop present")
    has_nested_loop: bool = Field(
        default=False, description="A loop appears inside another loop body"
    )

    def metric(self, name: str) -> int:
        """Look up a numeric metric by its registry name."""
        return {
            "method_count": self.method_count,
            "cyclomatic_complexity": self.cyclomatic_complexity,
            "max_nesting_depth": self.max_nesting_depth,
            "line_count": self.line_count,
        }.get(name, 0)
