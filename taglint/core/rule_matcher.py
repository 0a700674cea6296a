"""
Rule Matcher — Evaluates rule conditions against a tag profile.

Produces a prioritized violation list:
    priority = severity weight + category weight

Ordering (when sort_by_priority is set):
    severity weight desc → category weight desc → fix effort asc → declaration order

Malformed rule content never raises here: a condition that fails to parse
is counted as skipped and logged. Only caller mistakes raise.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Sequence, Set
from typing import Any

from taglint.core.tag_expression import TagExpressionEvaluator
from taglint.errors import ExpressionSyntaxError
from taglint.models.rule_models import (
    CATEGORY_WEIGHTS,
    FIX_EFFORT_RANK,
    SEVERITY_WEIGHTS,
    FilteredCounts,
    MatchOptions,
    MatchResult,
    MatchStats,
    Rule,
    Severity,
    Violation,
    normalize_category,
)
from taglint.models.tag_models import TagProfile

logger = logging.getLogger("taglint.matcher")

TOP_VIOLATIONS = 5


def calculate_priority(rule: Rule) -> int:
    """Severity weight plus category weight; unknown categories weigh 0."""
    return SEVERITY_WEIGHTS[rule.severity] + CATEGORY_WEIGHTS.get(normalize_category(rule.category), 0)


class RuleMatcher:
    """Matches rules against tag profiles. Holds no per-call state."""

    def __init__(self, evaluator: TagExpressionEvaluator | None = None) -> None:
        self.evaluator = evaluator or TagExpressionEvaluator()

    def match_rules(
        self,
        profile: TagProfile | Set[str],
        rules: Sequence[Rule],
        options: MatchOptions | None = None,
    ) -> MatchResult:
        """
        Match every rule against one tag profile.

        Args:
            profile: Extracted profile (or a bare tag set).
            rules: Rules in declaration order.
            options: Skip/sort/filter knobs; defaults to MatchOptions().

        Returns:
            MatchResult with violations, filtered counts and timing stats.

        Raises:
            ValueError: rules is None.
        """
        if rules is None:
            raise ValueError("match_rules requires a rule list")
        if profile is None:
            raise ValueError("match_rules requires a tag profile")

        options = options or MatchOptions()
        tags = profile.tags if isinstance(profile, TagProfile) else frozenset(profile)
        start = time.monotonic()

        filtered = FilteredCounts()
        ranked: list[tuple[tuple[int, int, int, int], Violation]] = []

        for index, rule in enumerate(rules):
            condition = rule.condition

            if not condition:
                if options.skip_untagged:
                    filtered.skipped += 1
                    continue
                # Untagged rules apply unconditionally when not skipped.
                expression, matched_tags = "", []
            else:
                try:
                    outcome = self.evaluator.evaluate(condition, tags)
                except ExpressionSyntaxError as e:
                    logger.warning(f"Skipping rule {rule.rule_id}: invalid condition ({e})")
                    filtered.skipped += 1
                    continue
                if not outcome.result:
                    filtered.not_matched += 1
                    continue
                expression, matched_tags = condition, outcome.matched_tags

            priority = calculate_priority(rule)
            if priority < options.min_priority:
                filtered.low_priority += 1
                continue

            violation = _build_violation(rule, expression, matched_tags, priority)
            ranked.append((_sort_key(rule, index), violation))

        if options.sort_by_priority:
            ranked.sort(key=lambda item: item[0])

        violations = [violation for _, violation in ranked]
        if options.max_results is not None:
            violations = violations[: options.max_results]

        elapsed = (time.monotonic() - start) * 1000
        logger.debug(
            f"Matched {len(violations)}/{len(rules)} rules in {elapsed:.1f}ms "
            f"(skipped={filtered.skipped}, not_matched={filtered.not_matched}, "
            f"low_priority={filtered.low_priority})"
        )

        return MatchResult(
            violations=violations,
            filtered=filtered,
            stats=MatchStats(
                total_rules=len(rules),
                violations=len(violations),
                processing_time_ms=round(elapsed, 2),
            ),
        )

    # ── Helpers ──

    def prefilter_rules(self, tags: Iterable[str], rules: Iterable[Rule]) -> list[Rule]:
        """
        Drop rules whose required (AND-only) tags are not all present.

        Rules without a condition, with an OR, or with an invalid condition
        pass through; match_rules decides their fate.
        """
        tag_set = frozenset(tags)
        kept: list[Rule] = []
        for rule in rules:
            condition = rule.condition
            if not condition:
                kept.append(rule)
                continue
            try:
                required = self.evaluator.required_tags(condition)
            except ExpressionSyntaxError:
                kept.append(rule)
                continue
            if all(tag in tag_set for tag in required):
                kept.append(rule)
        return kept

    def validate_rule_expressions(self, rules: Iterable[Rule]) -> dict[str, list[dict[str, Any]]]:
        """Split rules into valid (with/without condition) and invalid conditions."""
        valid: list[dict[str, Any]] = []
        invalid: list[dict[str, Any]] = []
        for rule in rules:
            condition = rule.condition
            if not condition:
                valid.append({"rule_id": rule.rule_id, "has_condition": False})
                continue
            result = self.evaluator.validate(condition)
            if result.valid:
                valid.append({"rule_id": rule.rule_id, "has_condition": True})
            else:
                invalid.append({"rule_id": rule.rule_id, "expression": condition, "error": result.error})
        return {"valid": valid, "invalid": invalid}

    def find_rules_by_tag(self, tag: str, rules: Iterable[Rule]) -> list[Rule]:
        """Rules whose condition references the tag, negated or not."""
        found: list[Rule] = []
        for rule in rules:
            condition = rule.condition
            if not condition:
                continue
            try:
                if self.evaluator.depends_on(condition, tag):
                    found.append(rule)
            except ExpressionSyntaxError:
                continue
        return found


def _build_violation(rule: Rule, expression: str, matched_tags: list[str], priority: int) -> Violation:
    return Violation(
        rule_id=rule.rule_id,
        title=rule.title,
        category=normalize_category(rule.category),
        severity=rule.severity,
        expression=expression,
        matched_tags=tuple(matched_tags),
        priority=priority,
        suggestion=rule.suggestion,
        description=rule.description,
    )


def _sort_key(rule: Rule, index: int) -> tuple[int, int, int, int]:
    return (
        -SEVERITY_WEIGHTS[rule.severity],
        -CATEGORY_WEIGHTS.get(normalize_category(rule.category), 0),
        FIX_EFFORT_RANK[rule.fix_effort],
        index,
    )


def group_by_category(violations: Iterable[Violation]) -> dict[str, list[Violation]]:
    grouped: dict[str, list[Violation]] = {}
    for violation in violations:
        grouped.setdefault(violation.category or "unknown", []).append(violation)
    return grouped


def group_by_severity(violations: Iterable[Violation]) -> dict[Severity, list[Violation]]:
    """Every severity is present as a key, most severe first."""
    grouped: dict[Severity, list[Violation]] = {severity: [] for severity in Severity}
    for violation in violations:
        grouped[violation.severity].append(violation)
    return grouped


def summarize_violations(violations: Sequence[Violation]) -> dict[str, Any]:
    """Counts per severity and category plus the top few violations."""
    by_severity = group_by_severity(violations)
    by_category = group_by_category(violations)
    return {
        "total": len(violations),
        "by_severity": {severity.value.lower(): len(items) for severity, items in by_severity.items()},
        "by_category": {category: len(items) for category, items in by_category.items()},
        "top_violations": [
            {
                "rule_id": v.rule_id,
                "title": v.title,
                "severity": v.severity.value,
                "priority": v.priority,
            }
            for v in violations[:TOP_VIOLATIONS]
        ],
    }
