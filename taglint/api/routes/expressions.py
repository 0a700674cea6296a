"""
TagLint — POST /expressions/validate endpoint.

Checks a tag expression's syntax and reports what it depends on. An invalid
expression is a normal response (valid=False), not an HTTP error.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from taglint.api.dependencies import get_evaluator, get_tag_registry
from taglint.core.tag_expression import TagExpressionEvaluator
from taglint.core.tag_registry import BUILTIN_TAG_NAMES, TagRegistry
from taglint.models.analysis_models import ExpressionRequest, ExpressionResponse

router = APIRouter()


@router.post("/expressions/validate", response_model=ExpressionResponse)
async def validate_expression(
    req: ExpressionRequest,
    evaluator: TagExpressionEvaluator = Depends(get_evaluator),
    registry: TagRegistry = Depends(get_tag_registry),
):
    """Validate a tag expression and describe its dependencies."""
    validation = evaluator.validate(req.expression)
    if not validation.valid:
        return ExpressionResponse(expression=req.expression, valid=False, error=validation.error)

    depends = evaluator.depends_on_tags(req.expression)
    known = set(registry.tags) | {c.name for c in registry.compound_tags} | BUILTIN_TAG_NAMES
    unknown = [name for name in dict.fromkeys(d.lstrip("!") for d in depends) if name not in known]

    response = ExpressionResponse(
        expression=req.expression,
        valid=True,
        depends_on=depends,
        required_tags=evaluator.required_tags(req.expression),
        complexity=evaluator.complexity(req.expression),
        unknown_tags=unknown,
    )
    if req.tags is not None:
        outcome = evaluator.evaluate(req.expression, req.tags)
        response.result = outcome.result
        response.matched_tags = outcome.matched_tags
    return response
