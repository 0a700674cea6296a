"""
Compound Tag Resolver — Derives compound tags from a base tag set.

Every definition is evaluated against the same base-tag snapshot, so the
outcome does not depend on definition order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from taglint.core.tag_expression import evaluate
from taglint.errors import ExpressionSyntaxError
from taglint.models.tag_models import CompoundTagDefinition, CompoundTagResult

logger = logging.getLogger("taglint.compound")


def resolve_compound_tags(
    base_tags: Iterable[str],
    compound_defs: Iterable[CompoundTagDefinition],
) -> tuple[frozenset[str], dict[str, CompoundTagResult]]:
    """
    Evaluate compound tag definitions against base tags.

    Returns:
        (all_tags, results): base tags plus every matched compound name, and
        one CompoundTagResult per definition. A malformed expression is
        recorded as unmatched with its error.
    """
    snapshot = frozenset(base_tags)
    matched: set[str] = set()
    results: dict[str, CompoundTagResult] = {}

    for definition in compound_defs:
        try:
            outcome = evaluate(definition.expression, snapshot)
        except ExpressionSyntaxError as e:
            logger.warning(f"Compound tag {definition.name} not evaluated: {e}")
            results[definition.name] = CompoundTagResult(
                expression=definition.expression,
                description=definition.description,
                severity=definition.severity,
                matched=False,
                error=str(e),
            )
            continue

        results[definition.name] = CompoundTagResult(
            expression=definition.expression,
            description=definition.description,
            severity=definition.severity,
            matched=outcome.result,
        )
        if outcome.result:
            matched.add(definition.name)

    if matched:
        logger.debug(f"Compound tags matched: {sorted(matched)}")

    return snapshot | matched, results
