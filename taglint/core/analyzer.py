"""
Code Analyzer — Per-file pipeline.

Pipeline:
1. Produce a syntax summary (tree-sitter, optional; parse errors mean no summary)
2. Extract base tags
3. Resolve compound tags against the base tags
4. Match rules against the full tag set
5. Score risk from matched compound tags and violations
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Sequence

from taglint.core.compound_resolver import resolve_compound_tags
from taglint.core.java_parser import JavaParser
from taglint.core.risk_scorer import compute_risk
from taglint.core.rule_matcher import RuleMatcher
from taglint.core.tag_extractor import TagExtractor, count_lines
from taglint.core.tag_registry import TagRegistry
from taglint.models.analysis_models import FileAnalysis, FileMetadata
from taglint.models.rule_models import MatchOptions, Rule
from taglint.models.syntax_models import SyntaxSummary
from taglint.models.tag_models import CompoundTagResult, TagProfile

logger = logging.getLogger("taglint.analyzer")

_CLASS_RE = re.compile(r"class\s+(\w+)")
_PACKAGE_RE = re.compile(r"package\s+([\w.]+)")
_MAIN_RE = re.compile(r"public\s+static\s+void\s+main\s*\(")


def extract_metadata(source: str, syntax_parsed: bool = False) -> FileMetadata:
    class_match = _CLASS_RE.search(source)
    package_match = _PACKAGE_RE.search(source)
    return FileMetadata(
        class_name=class_match.group(1) if class_match else "Unknown",
        package_name=package_match.group(1) if package_match else "",
        line_count=count_lines(source),
        has_main_method=bool(_MAIN_RE.search(source)),
        syntax_parsed=syntax_parsed,
    )


class CodeAnalyzer:
    """Runs the full tag → compound → rule → risk pipeline for single files."""

    def __init__(
        self,
        registry: TagRegistry,
        rules: Sequence[Rule],
        parser: JavaParser | None = None,
        options: MatchOptions | None = None,
    ) -> None:
        if registry is None:
            raise ValueError("CodeAnalyzer requires a TagRegistry")
        if rules is None:
            raise ValueError("CodeAnalyzer requires a rule list")
        self.registry = registry
        self.rules = rules
        self.parser = parser
        self.options = options or MatchOptions()
        self.extractor = TagExtractor(registry)
        self.matcher = RuleMatcher()

    def summarize(self, source: str) -> SyntaxSummary | None:
        """Syntax summary, or None when no parser is configured or parsing fails."""
        if self.parser is None:
            return None
        try:
            return self.parser.summarize(source)
        except ValueError as e:
            logger.debug(f"No syntax summary: {e}")
            return None

    def profile(
        self, source: str
    ) -> tuple[TagProfile, dict[str, CompoundTagResult], SyntaxSummary | None]:
        """Base extraction plus compound resolution, without rule matching."""
        summary = self.summarize(source)
        base_profile = self.extractor.extract(source, summary)
        _, compound_results = resolve_compound_tags(base_profile.tags, self.registry.compound_tags)
        return base_profile.with_compound_tags(compound_results), compound_results, summary

    def infer_categories(self, tags: frozenset[str]) -> list[str]:
        """Registry categories of the base tags present, sorted."""
        categories = {self.registry.category_of(tag) for tag in tags}
        categories.discard(None)
        return sorted(categories)

    def analyze(self, source: str, path: str = "", options: MatchOptions | None = None) -> FileAnalysis:
        """
        Analyze one file end to end.

        Args:
            source: Java source text
            path: Reported file path
            options: Overrides the analyzer's default match options

        Returns:
            FileAnalysis with status "ok".
        """
        start = time.monotonic()
        profile, compound_results, summary = self.profile(source)
        match = self.matcher.match_rules(profile, self.rules, options or self.options)
        risk = compute_risk(compound_results, match.violations)
        elapsed = (time.monotonic() - start) * 1000

        logger.info(
            f"{path or '<source>'}: {len(profile.tags)} tags, "
            f"{len(match.violations)} violations, risk={risk.level} ({elapsed:.1f}ms)"
        )

        return FileAnalysis(
            path=path,
            status="ok",
            tags=sorted(profile.tags),
            tag_details=profile.details,
            compound_tags=compound_results,
            categories=self.infer_categories(profile.tags),
            violations=match.violations,
            filtered=match.filtered,
            risk=risk,
            metadata=extract_metadata(source, syntax_parsed=summary is not None),
            syntax_summary=summary,
            duration_ms=round(elapsed, 2),
        )
