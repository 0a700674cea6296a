"""
Analysis Request/Response Models — API contract schemas.

These are the public-facing Pydantic models used by the FastAPI endpoints
and returned by the analyzer pipeline and batch worker.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from taglint.models.risk_models import RiskAssessment
from taglint.models.rule_models import FilteredCounts, MatchOptions, Violation
from taglint.models.syntax_models import SyntaxSummary
from taglint.models.tag_models import CompoundTagResult, TagDetail


class FileInput(BaseModel):
    """A single Java file submitted for analysis."""

    path: str = Field(..., description="File path (absolute or relative)")
    content: str = Field(..., description="File source content")


class AnalyzeRequest(BaseModel):
    """Request body for /analyze."""

    files: list[FileInput] = Field(default_factory=list)
    options: MatchOptions | None = Field(
        default=None, description="Overrides the configured match options"
    )


class FileMetadata(BaseModel):
    """Cheap facts read straight from the source text."""

    class_name: str = "Unknown"
    package_name: str = ""
    line_count: int = 0
    has_main_method: bool = False
    syntax_parsed: bool = Field(
        default=False, description="A syntax summary was produced and used"
    )


class FileAnalysis(BaseModel):
    """Full analysis of one file."""

    path: str
    status: Literal["ok", "failed", "rejected"] = "ok"
    error: str | None = None
    tags: list[str] = Field(default_factory=list, description="Base and compound tags, sorted")
    tag_details: dict[str, TagDetail] = Field(default_factory=dict)
    compound_tags: dict[str, CompoundTagResult] = Field(default_factory=dict)
    categories: list[str] = Field(default_factory=list)
    violations: list[Violation] = Field(default_factory=list)
    filtered: FilteredCounts = Field(default_factory=FilteredCounts)
    risk: RiskAssessment | None = None
    metadata: FileMetadata = Field(default_factory=FileMetadata)
    syntax_summary: SyntaxSummary | None = None
    duration_ms: float = 0.0


class FileFailure(BaseModel):
    """Why one file in a batch produced no analysis."""

    index: int = Field(description="Position of the file in the request")
    path: str
    status: Literal["failed", "rejected"]
    reason: str


class BatchSummary(BaseModel):
    """Roll-up across every file in one batch."""

    files_total: int = 0
    files_analyzed: int = 0
    files_failed: int = 0
    files_rejected: int = 0
    violations_total: int = 0
    by_severity: dict[str, int] = Field(default_factory=dict)
    failures: list[FileFailure] = Field(
        default_factory=list, description="One entry per failed or rejected file, in input order"
    )
    duration_ms: float = 0.0


class AnalyzeResponse(BaseModel):
    """Top-level response for /analyze."""

    message: str = "analysis_complete"
    batch_id: str = ""
    results: list[FileAnalysis] = Field(default_factory=list)
    summary: BatchSummary = Field(default_factory=BatchSummary)


class ProfileRequest(BaseModel):
    """Request body for /profile."""

    content: str = Field(..., min_length=1, description="Java source code")
    path: str = "input.java"


class ProfileResponse(BaseModel):
    path: str
    tags: list[str] = Field(default_factory=list)
    tag_details: dict[str, TagDetail] = Field(default_factory=dict)
    compound_tags: dict[str, CompoundTagResult] = Field(default_factory=dict)
    categories: list[str] = Field(default_factory=list)
    stats: dict[str, Any] = Field(default_factory=dict)
    syntax_parsed: bool = False


class ExpressionRequest(BaseModel):
    """Request body for /expressions/validate."""

    expression: str = Field(..., description="Tag expression to check")
    tags: list[str] | None = Field(
        default=None, description="Optional tag set to evaluate the expression against"
    )


class ExpressionResponse(BaseModel):
    expression: str
    valid: bool
    error: str | None = None
    depends_on: list[str] = Field(default_factory=list)
    required_tags: list[str] = Field(default_factory=list)
    complexity: int = 0
    unknown_tags: list[str] = Field(
        default_factory=list, description="Referenced tags the loaded registry does not define"
    )
    result: bool | None = None
    matched_tags: list[str] = Field(default_factory=list)
