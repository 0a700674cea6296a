"""
FastAPI Dependencies — Shared singletons injected via Depends().
"""

from __future__ import annotations

from functools import lru_cache

from taglint.config import settings
from taglint.core.analyzer import CodeAnalyzer
from taglint.core.java_parser import JavaParser
from taglint.core.rule_catalog import default_rule_catalog, load_rule_catalog
from taglint.core.tag_expression import TagExpressionEvaluator
from taglint.core.tag_registry import TagRegistry, default_tag_registry, load_tag_registry
from taglint.models.rule_models import MatchOptions, Rule
from taglint.workers.batch_worker import BatchWorker


@lru_cache
def get_tag_registry() -> TagRegistry:
    """Shared tag registry singleton."""
    if settings.tag_definitions_path:
        return load_tag_registry(settings.tag_definitions_path)
    return default_tag_registry()


@lru_cache
def get_rules() -> tuple[Rule, ...]:
    """Shared rule catalog, in declaration order."""
    if settings.rules_path:
        return tuple(load_rule_catalog(settings.rules_path))
    return tuple(default_rule_catalog())


@lru_cache
def get_match_options() -> MatchOptions:
    return MatchOptions(
        skip_untagged=settings.skip_untagged,
        sort_by_priority=settings.sort_by_priority,
        min_priority=settings.min_priority,
        max_results=settings.max_results,
    )


@lru_cache
def get_evaluator() -> TagExpressionEvaluator:
    return TagExpressionEvaluator()


@lru_cache
def get_analyzer() -> CodeAnalyzer:
    """Shared analyzer singleton."""
    return CodeAnalyzer(
        registry=get_tag_registry(),
        rules=get_rules(),
        parser=JavaParser() if settings.parse_syntax_summary else None,
        options=get_match_options(),
    )


@lru_cache
def get_batch_worker() -> BatchWorker:
    """Shared batch worker singleton."""
    return BatchWorker(
        analyzer=get_analyzer(),
        max_concurrency=settings.batch_max_concurrency,
        max_file_size_bytes=settings.max_file_size_bytes,
    )
