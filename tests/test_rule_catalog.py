"""
Tests for Rule Catalog loading.
"""

import json

import pytest

from taglint.core.rule_catalog import load_rule_catalog, parse_rule_catalog
from taglint.core.rule_matcher import RuleMatcher
from taglint.errors import RuleCatalogError


def test_default_catalog_loads_in_order(rules):
    ids = [r.rule_id for r in rules]
    assert ids[0] == "SEC-001"
    assert len(ids) == len(set(ids))
    assert any(not r.condition for r in rules)


def test_default_catalog_conditions_are_valid(rules):
    report = RuleMatcher().validate_rule_expressions(rules)
    assert report["invalid"] == []


def test_bare_list_document():
    rules = parse_rule_catalog([{"id": "A-1", "tagCondition": "A"}, {"rule_id": "A-2"}])
    assert [r.rule_id for r in rules] == ["A-1", "A-2"]


def test_duplicate_rule_id_rejected():
    with pytest.raises(RuleCatalogError):
        parse_rule_catalog([{"ruleId": "X"}, {"ruleId": "X"}])


def test_rule_without_id_rejected():
    with pytest.raises(RuleCatalogError):
        parse_rule_catalog({"rules": [{"title": "no id"}]})


def test_wrong_shape_rejected():
    with pytest.raises(RuleCatalogError):
        parse_rule_catalog({"rules": "nope"})


def test_load_errors(tmp_path):
    with pytest.raises(RuleCatalogError):
        load_rule_catalog(tmp_path / "missing.json")

    broken = tmp_path / "rules.json"
    broken.write_text("[", encoding="utf-8")
    with pytest.raises(RuleCatalogError):
        load_rule_catalog(broken)


def test_load_from_file(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(json.dumps({"rules": [{"ruleId": "R", "severity": "LOW", "tagCondition": "A"}]}), encoding="utf-8")
    [rule] = load_rule_catalog(path)
    assert rule.severity.value == "LOW"
