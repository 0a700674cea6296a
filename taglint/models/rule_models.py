"""
Rule Matching Data Models — Rules, violations, match results and priority weights.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @classmethod
    def _missing_(cls, value: object) -> Severity | None:
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None


class FixEffort(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @classmethod
    def _missing_(cls, value: object) -> FixEffort | None:
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None


SEVERITY_WEIGHTS: dict[Severity, int] = {
    Severity.CRITICAL: 100,
    Severity.HIGH: 75,
    Severity.MEDIUM: 50,
    Severity.LOW: 25,
}

# Descending: security outranks everything, formatting ranks last.
CATEGORY_WEIGHTS: dict[str, int] = {
    "security": 24,
    "resource_management": 21,
    "performance": 18,
    "exception_handling": 15,
    "naming": 12,
    "architecture": 9,
    "style": 6,
    "formatting": 3,
}

CATEGORY_ALIASES: dict[str, str] = {
    "resource": "resource_management",
    "resources": "resource_management",
    "exception": "exception_handling",
    "error_handling": "exception_handling",
    "code_style": "style",
}

FIX_EFFORT_RANK: dict[FixEffort | None, int] = {
    FixEffort.LOW: 0,
    None: 1,
    FixEffort.MEDIUM: 1,
    FixEffort.HIGH: 2,
}


def normalize_category(category: str | None) -> str:
    """Lower-case, underscore-separated category with known aliases folded."""
    if not category:
        return "unknown"
    key = category.strip().lower().replace("-", "_").replace(" ", "_")
    return CATEGORY_ALIASES.get(key, key)


class Rule(BaseModel):
    """A quality rule expressed as a tag condition plus metadata."""

    model_config = ConfigDict(populate_by_name=True)

    rule_id: str = Field(
        ..., validation_alias=AliasChoices("rule_id", "ruleId", "id")
    )
    title: str = ""
    category: str = "unknown"
    severity: Severity = Severity.MEDIUM
    tag_condition: str | None = Field(
        default=None,
        validation_alias=AliasChoices("tag_condition", "tagCondition"),
        description="Tag expression; empty or absent means untagged",
    )
    suggestion: str = ""
    description: str = ""
    fix_effort: FixEffort | None = Field(
        default=None, validation_alias=AliasChoices("fix_effort", "fixEffort")
    )

    @field_validator("tag_condition", mode="before")
    @classmethod
    def _unwrap_condition(cls, value: Any) -> Any:
        # Some catalogs store {"expression": "..."} instead of a bare string.
        if isinstance(value, dict):
            return value.get("expression")
        return value

    @property
    def condition(self) -> str:
        return (self.tag_condition or "").strip()


class Violation(BaseModel):
    """A rule whose condition evaluated true against a tag profile."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    title: str = ""
    category: str = "unknown"
    severity: Severity
    expression: str = Field(default="", description="Condition that fired")
    matched_tags: tuple[str, ...] = Field(
        default=(), description="Positively observed tags the condition touched"
    )
    priority: int = 0
    suggestion: str = ""
    description: str = ""


class MatchOptions(BaseModel):
    """Knobs for a single match_rules call."""

    skip_untagged: bool = Field(
        default=True,
        description="True: rules without a condition are skipped. False: they always apply.",
    )
    sort_by_priority: bool = True
    min_priority: int = 0
    max_results: int | None = Field(default=None, ge=0)


class FilteredCounts(BaseModel):
    """Rules that did not produce a violation, by reason."""

    not_matched: int = 0
    skipped: int = Field(default=0, description="Untagged (when skipped) or invalid conditions")
    low_priority: int = 0


class MatchStats(BaseModel):
    total_rules: int = 0
    violations: int = 0
    processing_time_ms: float = 0.0


class MatchResult(BaseModel):
    """Result of matching a rule catalog against one tag profile."""

    violations: list[Violation] = Field(default_factory=list)
    filtered: FilteredCounts = Field(default_factory=FilteredCounts)
    stats: MatchStats = Field(default_factory=MatchStats)
