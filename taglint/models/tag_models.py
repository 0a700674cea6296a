"""
Tag Data Models — Tag definitions, compound tags and extracted tag profiles.

Definitions are read-only registry input. A TagProfile is the immutable
output of extraction for a single source file.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taglint.models.rule_models import Severity

TAG_NAME_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*$")

MetricName = Literal["method_count", "cyclomatic_complexity", "max_nesting_depth", "line_count"]
ComparisonOperator = Literal[">=", ">", "<=", "<", "=="]


class TagSource(str, Enum):
    """Extraction tier that produced a tag."""

    PATTERN = "pattern"
    METRIC = "metric"
    NODE = "node"
    CONTEXTUAL = "contextual"
    COMPOUND = "compound"


# ── Detection variants ──


class PatternDetection(BaseModel):
    """Regex patterns tested against the (optionally normalized) source."""

    type: Literal["pattern"] = "pattern"
    patterns: list[str] = Field(default_factory=list)
    match: Literal["any", "all"] = Field(
        default="any", description="'any': one pattern suffices; 'all': every pattern must match"
    )
    case_sensitive: bool = True
    exclude_in_comments: bool = Field(
        default=True,
        description="Match against comment/string-stripped text instead of raw text",
    )


class MetricDetection(BaseModel):
    """Threshold comparison on a syntax-summary metric."""

    type: Literal["metric"] = "metric"
    metric: MetricName
    operator: ComparisonOperator = ">="
    threshold: int = 0


class NodeDetection(BaseModel):
    """Existence of a structural feature reported by the syntax summary."""

    type: Literal["node"] = "node"
    feature: Literal["loop", "nested_loop"]


class ContextualDetection(BaseModel):
    """Patterns searched inside isolated finally blocks or loop bodies."""

    type: Literal["contextual"] = "contextual"
    context: Literal["finally", "loop"]
    patterns: list[str] = Field(default_factory=list)
    case_sensitive: bool = True
    exclude_in_comments: bool = False


Detection = Annotated[
    Union[PatternDetection, MetricDetection, NodeDetection, ContextualDetection],
    Field(discriminator="type"),
]


class TagDefinition(BaseModel):
    """A base tag and how to detect it."""

    name: str
    category: str = "general"
    description: str = ""
    detection: Detection

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not TAG_NAME_PATTERN.match(value):
            raise ValueError(f"Tag name '{value}' must be UPPER_SNAKE_CASE")
        return value


class CompoundTagDefinition(BaseModel):
    """A derived tag defined as a boolean expression over base tags."""

    name: str
    expression: str
    severity: Severity = Severity.MEDIUM
    description: str = ""

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not TAG_NAME_PATTERN.match(value):
            raise ValueError(f"Compound tag name '{value}' must be UPPER_SNAKE_CASE")
        return value


class TagDefinitionSet(BaseModel):
    """On-disk tag definitions document."""

    version: str = "unknown"
    tags: dict[str, dict] = Field(default_factory=dict)
    compound_tags: dict[str, dict] = Field(default_factory=dict)


# ── Extraction output ──


class ReadOnlyDict(dict):
    """dict that rejects mutation after construction."""

    def _readonly(self, *args, **kwargs):
        raise TypeError(f"{type(self).__name__} is read-only")

    __setitem__ = __delitem__ = __ior__ = _readonly
    clear = pop = popitem = setdefault = update = _readonly

    def __reduce__(self):
        return type(self), (dict(self),)


def _freeze_mapping(value: dict) -> ReadOnlyDict:
    return value if isinstance(value, ReadOnlyDict) else ReadOnlyDict(value)


class TagDetail(BaseModel):
    """Provenance of a single extracted tag."""

    model_config = ConfigDict(frozen=True)

    source: TagSource
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    samples: tuple[str, ...] = Field(default=(), description="Up to 3 matched substrings")
    match_count: int = 0
    evidence: str | None = Field(default=None, description="Snippet supporting the tag")
    metric_value: int | None = None
    threshold: int | None = None
    operator: str | None = None
    expression: str | None = Field(default=None, description="Compound tag expression")


class ExtractionStats(BaseModel):
    """Counters describing one extraction run."""

    model_config = ConfigDict(frozen=True)

    total_tags: int = 0
    extraction_time_ms: float = 0.0
    by_source: dict[str, int] = Field(default_factory=dict, validate_default=True)

    @field_validator("by_source")
    @classmethod
    def _freeze_by_source(cls, value: dict[str, int]) -> ReadOnlyDict:
        return _freeze_mapping(value)


class CompoundTagResult(BaseModel):
    """Outcome of evaluating one compound tag definition."""

    model_config = ConfigDict(frozen=True)

    expression: str
    description: str = ""
    severity: Severity = Severity.MEDIUM
    matched: bool = False
    error: str | None = None


class TagProfile(BaseModel):
    """Tags present in one source file plus per-tag provenance.

    Frozen all the way down: details and stats.by_source are ReadOnlyDicts.
    """

    model_config = ConfigDict(frozen=True)

    tags: frozenset[str] = Field(default_factory=frozenset)
    details: dict[str, TagDetail] = Field(default_factory=dict, validate_default=True)
    stats: ExtractionStats = Field(default_factory=ExtractionStats)

    @field_validator("details")
    @classmethod
    def _freeze_details(cls, value: dict[str, TagDetail]) -> ReadOnlyDict:
        return _freeze_mapping(value)

    def has(self, tag: str) -> bool:
        return tag in self.tags

    def with_compound_tags(self, results: dict[str, CompoundTagResult]) -> TagProfile:
        """Return a new profile that also carries every matched compound tag."""
        matched = {name: r for name, r in results.items() if r.matched}
        if not matched:
            return self

        details = dict(self.details)
        for name, result in matched.items():
            details[name] = TagDetail(
                source=TagSource.COMPOUND,
                confidence=1.0,
                expression=result.expression,
            )

        by_source = dict(self.stats.by_source)
        by_source[TagSource.COMPOUND.value] = len(matched)
        tags = self.tags | frozenset(matched)
        return TagProfile(
            tags=tags,
            details=details,
            stats=ExtractionStats(
                total_tags=len(tags),
                extraction_time_ms=self.stats.extraction_time_ms,
                by_source=by_source,
            ),
        )
