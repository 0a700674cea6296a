"""
Tag Extractor — Derives the tag profile of one Java source file.

Tiers:
1. Pattern:     regexes over normalized (or raw) text
2. Metric:      thresholds on syntax-summary metrics
3. Node:        structural features reported by the syntax summary
4. Contextual:  regexes inside isolated finally blocks / loop bodies
5. Fallback:    fixed-threshold metrics estimated from raw text

Tiers 2 and 3 need a syntax summary; without one they are skipped and the
remaining tiers still run. Extraction never raises on bad input: it always
returns a best-effort profile.
"""

from __future__ import annotations

import logging
import operator
import re
import time
from collections import Counter
from collections.abc import Iterable
from typing import Callable

from taglint.core.block_extractor import finally_blocks, loop_blocks
from taglint.core.tag_registry import TagRegistry
from taglint.core.text_normalizer import strip_comments_and_strings
from taglint.models.syntax_models import SyntaxSummary
from taglint.models.tag_models import (
    ContextualDetection,
    ExtractionStats,
    MetricDetection,
    NodeDetection,
    PatternDetection,
    TagDetail,
    TagProfile,
    TagSource,
)

logger = logging.getLogger("taglint.extractor")

MAX_SAMPLES = 3
CONTEXTUAL_CONFIDENCE = 0.9
EVIDENCE_LENGTH = 100

OPERATORS: dict[str, Callable[[int, int], bool]] = {
    ">=": operator.ge,
    ">": operator.gt,
    "<=": operator.le,
    "<": operator.lt,
    "==": operator.eq,
}

# ── Fallback metric thresholds (tag, threshold, confidence) ──
LINE_COUNT_THRESHOLD = ("LINE_COUNT_HIGH", 300, 1.0)
METHOD_COUNT_THRESHOLD = ("METHOD_COUNT_HIGH", 10, 0.9)
COMPLEXITY_THRESHOLD = ("COMPLEXITY_HIGH", 10, 0.8)
NESTING_THRESHOLD = ("NESTING_DEEP", 4, 0.8)

_METHOD_SIGNATURE_RE = re.compile(
    r"\b(public|private|protected)\s+[\w<>\[\]]+\s+\w+\s*\([^)]*\)\s*(\{|throws)"
)

_DECISION_POINT_RES = (
    re.compile(r"\bif\s*\("),
    re.compile(r"\belse\s+if\s*\("),
    re.compile(r"\bfor\s*\("),
    re.compile(r"\bwhile\s*\("),
    re.compile(r"\bcase\s+"),
    re.compile(r"\bcatch\s*\("),
    re.compile(r"\?\s*[^:]+\s*:"),
    re.compile(r"&&"),
    re.compile(r"\|\|"),
)

_CONTROL_LOOKBEHIND = 20
_CONTROL_KEYWORD_RE = re.compile(r"\b(if|for|while|do|switch|try|catch|finally)\s*[\(]?[^{]*$")


def estimate_complexity(source: str) -> int:
    """1 + occurrences of branching constructs and short-circuit operators."""
    return 1 + sum(len(pattern.findall(source)) for pattern in _DECISION_POINT_RES)


def estimate_nesting(source: str) -> int:
    """
    Deepest control-flow brace nesting.

    A '{' counts only when a control keyword appears in the 20 characters
    before it; every '}' closes one level while the depth is positive.
    """
    max_depth = 0
    depth = 0
    for i, ch in enumerate(source):
        if ch == "{":
            window = source[max(0, i - _CONTROL_LOOKBEHIND):i]
            if _CONTROL_KEYWORD_RE.search(window):
                depth += 1
                max_depth = max(max_depth, depth)
        elif ch == "}" and depth > 0:
            depth -= 1
    return max_depth


def count_method_signatures(source: str) -> int:
    return sum(1 for _ in _METHOD_SIGNATURE_RE.finditer(source))


def count_lines(source: str) -> int:
    return len(source.split("\n"))


class TagExtractor:
    """Runs every extraction tier against a source file using one registry."""

    def __init__(self, registry: TagRegistry) -> None:
        if registry is None:
            raise ValueError("TagExtractor requires a TagRegistry")
        self.registry = registry

    def extract(self, source: str, syntax_summary: SyntaxSummary | None = None) -> TagProfile:
        """
        Extract the tag profile of a source file.

        Args:
            source: Java source text.
            syntax_summary: Optional parser output; enables metric and node tiers.

        Returns:
            An immutable TagProfile.
        """
        start = time.monotonic()
        source = source or ""
        normalized = strip_comments_and_strings(source)
        details: dict[str, TagDetail] = {}

        details.update(self._extract_patterns(normalized, source))

        if syntax_summary is not None:
            details.update(self._extract_metrics(syntax_summary))
            details.update(self._extract_nodes(syntax_summary))
        else:
            logger.debug("No syntax summary; skipping metric and node tiers")

        details.update(self._extract_contextual(normalized, source))
        details.update(self._extract_fallback_metrics(source))

        elapsed = (time.monotonic() - start) * 1000
        by_source = Counter(detail.source.value for detail in details.values())
        logger.debug(f"Extracted {len(details)} tags in {elapsed:.1f}ms")

        return TagProfile(
            tags=frozenset(details),
            details=details,
            stats=ExtractionStats(
                total_tags=len(details),
                extraction_time_ms=round(elapsed, 2),
                by_source=dict(by_source),
            ),
        )

    def extract_specific(
        self,
        source: str,
        tag_names: Iterable[str],
        syntax_summary: SyntaxSummary | None = None,
    ) -> TagProfile:
        """Extract everything, then keep only the requested tags."""
        profile = self.extract(source, syntax_summary)
        wanted = [name for name in tag_names if name in profile.tags]
        details = {name: profile.details[name] for name in wanted}
        return TagProfile(
            tags=frozenset(wanted),
            details=details,
            stats=ExtractionStats(
                total_tags=len(wanted),
                extraction_time_ms=profile.stats.extraction_time_ms,
                by_source=dict(Counter(d.source.value for d in details.values())),
            ),
        )

    # ── Tier 1: patterns ──

    def _extract_patterns(self, normalized: str, raw: str) -> dict[str, TagDetail]:
        results: dict[str, TagDetail] = {}

        for tag in self.registry.pattern_tags():
            detection: PatternDetection = tag.detection
            patterns = self.registry.compiled_patterns(tag.name)
            if not patterns:
                continue

            target = normalized if detection.exclude_in_comments else raw
            matches: list[str] = []

            if detection.match == "all":
                if not all(pattern.search(target) for pattern in patterns):
                    continue
                for pattern in patterns:
                    matches.extend(m.group(0) for m in pattern.finditer(target))
            else:
                for pattern in patterns:
                    found = [m.group(0) for m in pattern.finditer(target)]
                    if found:
                        matches = found
                        break
                if not matches:
                    continue

            results[tag.name] = TagDetail(
                source=TagSource.PATTERN,
                confidence=1.0,
                samples=matches[:MAX_SAMPLES],
                match_count=len(matches),
            )

        return results

    # ── Tier 2: syntax metrics ──

    def _extract_metrics(self, summary: SyntaxSummary) -> dict[str, TagDetail]:
        results: dict[str, TagDetail] = {}

        for tag in self.registry.metric_tags():
            detection: MetricDetection = tag.detection
            value = summary.metric(detection.metric)
            if OPERATORS[detection.operator](value, detection.threshold):
                results[tag.name] = TagDetail(
                    source=TagSource.METRIC,
                    confidence=1.0,
                    metric_value=value,
                    threshold=detection.threshold,
                    operator=detection.operator,
                )

        return results

    # ── Tier 3: syntax nodes ──

    def _extract_nodes(self, summary: SyntaxSummary) -> dict[str, TagDetail]:
        results: dict[str, TagDetail] = {}

        for tag in self.registry.node_tags():
            detection: NodeDetection = tag.detection
            present = summary.has_nested_loop if detection.feature == "nested_loop" else summary.has_loop
            if present:
                results[tag.name] = TagDetail(
                    source=TagSource.NODE,
                    confidence=1.0,
                    evidence=detection.feature,
                )

        return results

    # ── Tier 4: contextual blocks ──

    def _extract_contextual(self, normalized: str, raw: str) -> dict[str, TagDetail]:
        results: dict[str, TagDetail] = {}
        block_cache: dict[tuple[str, bool], list[str]] = {}

        for tag in self.registry.contextual_tags():
            detection: ContextualDetection = tag.detection
            patterns = self.registry.compiled_patterns(tag.name)
            if not patterns:
                continue

            key = (detection.context, detection.exclude_in_comments)
            if key not in block_cache:
                text = normalized if detection.exclude_in_comments else raw
                block_cache[key] = (
                    finally_blocks(text) if detection.context == "finally" else loop_blocks(text)
                )

            for block in block_cache[key]:
                if any(pattern.search(block) for pattern in patterns):
                    results[tag.name] = TagDetail(
                        source=TagSource.CONTEXTUAL,
                        confidence=CONTEXTUAL_CONFIDENCE,
                        evidence=block[:EVIDENCE_LENGTH],
                    )
                    break

        return results

    # ── Tier 5: text-estimated metrics ──

    def _extract_fallback_metrics(self, source: str) -> dict[str, TagDetail]:
        results: dict[str, TagDetail] = {}
        measurements = (
            (LINE_COUNT_THRESHOLD, count_lines(source)),
            (METHOD_COUNT_THRESHOLD, count_method_signatures(source)),
            (COMPLEXITY_THRESHOLD, estimate_complexity(source)),
            (NESTING_THRESHOLD, estimate_nesting(source)),
        )

        for (tag_name, threshold, confidence), value in measurements:
            if value >= threshold:
                results[tag_name] = TagDetail(
                    source=TagSource.METRIC,
                    confidence=confidence,
                    metric_value=value,
                    threshold=threshold,
                    operator=">=",
                )

        return results
