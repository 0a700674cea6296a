"""
Tests for Compound Tag Resolver.
"""

import pytest

from taglint.core.compound_resolver import resolve_compound_tags
from taglint.models.rule_models import Severity
from taglint.models.tag_models import CompoundTagDefinition, TagProfile


def _defs(**expressions):
    return [CompoundTagDefinition(name=name, expression=expr) for name, expr in expressions.items()]


def test_resource_leak_resolved():
    tags, results = resolve_compound_tags(
        {"USES_CONNECTION"},
        _defs(RESOURCE_LEAK_RISK="USES_CONNECTION && !HAS_TRY_WITH_RESOURCES"),
    )
    assert "RESOURCE_LEAK_RISK" in tags
    assert "USES_CONNECTION" in tags
    assert results["RESOURCE_LEAK_RISK"].matched


def test_unmatched_compound_not_added():
    tags, results = resolve_compound_tags(
        {"USES_CONNECTION", "HAS_TRY_WITH_RESOURCES"},
        _defs(RESOURCE_LEAK_RISK="USES_CONNECTION && !HAS_TRY_WITH_RESOURCES"),
    )
    assert tags == frozenset({"USES_CONNECTION", "HAS_TRY_WITH_RESOURCES"})
    assert results["RESOURCE_LEAK_RISK"].matched is False
    assert results["RESOURCE_LEAK_RISK"].error is None


def test_malformed_expression_recorded_not_raised():
    tags, results = resolve_compound_tags({"A"}, _defs(BROKEN="A &&", FINE="A"))
    assert results["BROKEN"].matched is False
    assert results["BROKEN"].error
    assert "FINE" in tags
    assert "BROKEN" not in tags


def test_compounds_see_only_base_tags():
    # SECOND refers to FIRST, which is not part of the base snapshot.
    tags, results = resolve_compound_tags({"A"}, _defs(FIRST="A", SECOND="FIRST"))
    assert "FIRST" in tags
    assert "SECOND" not in tags
    assert results["SECOND"].matched is False


def test_result_carries_definition_metadata():
    definition = CompoundTagDefinition(
        name="X_RISK", expression="A", severity=Severity.CRITICAL, description="bad"
    )
    _, results = resolve_compound_tags({"A"}, [definition])
    assert results["X_RISK"].severity == Severity.CRITICAL
    assert results["X_RISK"].description == "bad"


def test_profile_with_compound_tags_is_a_new_profile():
    base = TagProfile(tags=frozenset({"A"}))
    _, results = resolve_compound_tags(base.tags, _defs(X_RISK="A"))
    full = base.with_compound_tags(results)
    assert full is not base
    assert base.tags == frozenset({"A"})
    assert full.tags == frozenset({"A", "X_RISK"})
    assert full.details["X_RISK"].expression == "A"
    assert full.stats.by_source["compound"] == 1


def test_compound_profile_stays_read_only():
    base = TagProfile(tags=frozenset({"A"}))
    _, results = resolve_compound_tags(base.tags, _defs(X_RISK="A"))
    full = base.with_compound_tags(results)
    with pytest.raises(TypeError):
        full.details.pop("X_RISK")
    assert full.model_dump()["details"]["X_RISK"]["expression"] == "A"
