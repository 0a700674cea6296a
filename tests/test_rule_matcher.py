"""
Tests for Rule Matcher — matching, filtering and priority ordering.
"""

import logging

import pytest

from taglint.core.rule_matcher import (
    RuleMatcher,
    calculate_priority,
    group_by_category,
    group_by_severity,
    summarize_violations,
)
from taglint.models.rule_models import FixEffort, MatchOptions, Rule, Severity
from taglint.models.tag_models import TagProfile


def _rule(rule_id, condition, severity="MEDIUM", category="style", **extra):
    return Rule(rule_id=rule_id, tag_condition=condition, severity=severity, category=category, **extra)


def test_single_violation_with_matched_tags():
    profile = TagProfile(tags=frozenset({"USES_CONNECTION", "RESOURCE_LEAK_RISK"}))
    result = RuleMatcher().match_rules(profile, [_rule("RES-001", "RESOURCE_LEAK_RISK", "HIGH", "resource_management")])
    assert len(result.violations) == 1
    violation = result.violations[0]
    assert violation.rule_id == "RES-001"
    assert violation.matched_tags == ("RESOURCE_LEAK_RISK",)
    assert violation.expression == "RESOURCE_LEAK_RISK"
    assert violation.priority == 75 + 21


def test_high_sorted_before_low():
    rules = [_rule("LOW-ONE", "A", "LOW"), _rule("HIGH-ONE", "A", "HIGH")]
    result = RuleMatcher().match_rules({"A"}, rules)
    assert [v.rule_id for v in result.violations] == ["HIGH-ONE", "LOW-ONE"]


def test_category_breaks_severity_ties():
    rules = [
        _rule("STYLE", "A", "HIGH", "style"),
        _rule("SEC", "A", "HIGH", "security"),
        _rule("PERF", "A", "HIGH", "performance"),
    ]
    result = RuleMatcher().match_rules({"A"}, rules)
    assert [v.rule_id for v in result.violations] == ["SEC", "PERF", "STYLE"]


def test_fix_effort_then_declaration_order():
    rules = [
        _rule("FIRST", "A", "HIGH", "security"),
        _rule("HARD", "A", "HIGH", "security", fix_effort=FixEffort.HIGH),
        _rule("EASY", "A", "HIGH", "security", fix_effort="low"),
        _rule("SECOND", "A", "HIGH", "security"),
    ]
    result = RuleMatcher().match_rules({"A"}, rules)
    assert [v.rule_id for v in result.violations] == ["EASY", "FIRST", "SECOND", "HARD"]


def test_unsorted_keeps_declaration_order():
    rules = [_rule("LOW-ONE", "A", "LOW"), _rule("HIGH-ONE", "A", "HIGH")]
    result = RuleMatcher().match_rules({"A"}, rules, MatchOptions(sort_by_priority=False))
    assert [v.rule_id for v in result.violations] == ["LOW-ONE", "HIGH-ONE"]


def test_untagged_rules_skipped_or_applied():
    rules = [_rule("NO-COND", None), _rule("BLANK", "   ")]
    skipped = RuleMatcher().match_rules(set(), rules)
    assert skipped.violations == []
    assert skipped.filtered.skipped == 2

    applied = RuleMatcher().match_rules(set(), rules, MatchOptions(skip_untagged=False))
    assert [v.rule_id for v in applied.violations] == ["NO-COND", "BLANK"]
    assert all(v.matched_tags == () and v.expression == "" for v in applied.violations)


def test_invalid_condition_counted_as_skipped(caplog):
    rules = [_rule("BROKEN", "A && (B"), _rule("OK", "A")]
    with caplog.at_level(logging.WARNING, logger="taglint.matcher"):
        result = RuleMatcher().match_rules({"A"}, rules)
    assert [v.rule_id for v in result.violations] == ["OK"]
    assert result.filtered.skipped == 1
    assert "BROKEN" in caplog.text


def test_not_matched_counted():
    result = RuleMatcher().match_rules({"A"}, [_rule("R", "B")])
    assert result.filtered.not_matched == 1
    assert result.stats.total_rules == 1
    assert result.stats.violations == 0


def test_min_priority_and_max_results():
    rules = [_rule("LOW", "A", "LOW", "formatting"), _rule("CRIT", "A", "CRITICAL"), _rule("MED", "A")]
    result = RuleMatcher().match_rules({"A"}, rules, MatchOptions(min_priority=50, max_results=1))
    assert [v.rule_id for v in result.violations] == ["CRIT"]
    assert result.filtered.low_priority == 1


def test_none_rules_is_a_programmer_error():
    with pytest.raises(ValueError):
        RuleMatcher().match_rules({"A"}, None)


def test_rule_aliases_and_wrapped_condition():
    rule = Rule.model_validate(
        {"ruleId": "R-1", "severity": "high", "tagCondition": {"expression": "A && B"}, "fixEffort": "Low"}
    )
    assert rule.rule_id == "R-1"
    assert rule.severity == Severity.HIGH
    assert rule.condition == "A && B"
    assert rule.fix_effort == FixEffort.LOW


def test_category_aliases_share_weight():
    assert calculate_priority(_rule("A", "X", "LOW", "resource")) == calculate_priority(
        _rule("B", "X", "LOW", "Resource-Management")
    )
    assert calculate_priority(_rule("C", "X", "LOW", "made_up")) == 25


def test_prefilter_rules_uses_required_tags():
    rules = [_rule("NEEDS-AB", "A && B"), _rule("EITHER", "A || C"), _rule("NONE", None), _rule("BAD", "((")]
    kept = RuleMatcher().prefilter_rules({"A"}, rules)
    assert [r.rule_id for r in kept] == ["EITHER", "NONE", "BAD"]


def test_validate_rule_expressions():
    rules = [_rule("OK", "A"), _rule("NONE", None), _rule("BAD", "A ||")]
    report = RuleMatcher().validate_rule_expressions(rules)
    assert [entry["rule_id"] for entry in report["valid"]] == ["OK", "NONE"]
    assert report["invalid"][0]["rule_id"] == "BAD"
    assert report["invalid"][0]["error"]


def test_find_rules_by_tag():
    rules = [_rule("R1", "A && !B"), _rule("R2", "C"), _rule("R3", None)]
    assert [r.rule_id for r in RuleMatcher().find_rules_by_tag("B", rules)] == ["R1"]


def test_grouping_and_summary():
    rules = [
        _rule("S1", "A", "CRITICAL", "security"),
        _rule("S2", "A", "HIGH", "security"),
        _rule("P1", "A", "HIGH", "performance"),
    ]
    violations = RuleMatcher().match_rules({"A"}, rules).violations

    by_category = group_by_category(violations)
    assert {k: len(v) for k, v in by_category.items()} == {"security": 2, "performance": 1}

    by_severity = group_by_severity(violations)
    assert list(by_severity) == [Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW]
    assert len(by_severity[Severity.HIGH]) == 2

    summary = summarize_violations(violations)
    assert summary["total"] == 3
    assert summary["by_severity"] == {"critical": 1, "high": 2, "medium": 0, "low": 0}
    assert summary["top_violations"][0]["rule_id"] == "S1"


def test_violation_matched_tags_is_immutable():
    profile = TagProfile(tags=frozenset({"A"}))
    violation = RuleMatcher().match_rules(profile, [_rule("R-1", "A")]).violations[0]
    assert violation.matched_tags == ("A",)
    with pytest.raises(AttributeError):
        violation.matched_tags.append("B")
