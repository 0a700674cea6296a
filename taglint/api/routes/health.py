"""
Health Check Route — GET /health
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from taglint.api.dependencies import get_rules, get_tag_registry
from taglint.core.tag_registry import TagRegistry
from taglint.models.rule_models import Rule

router = APIRouter()

VERSION = "1.0.0"


@router.get("/health")
async def health(
    registry: TagRegistry = Depends(get_tag_registry),
    rules: tuple[Rule, ...] = Depends(get_rules),
):
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": VERSION,
        "definitions_version": registry.version,
        "tags": len(registry.tags),
        "compound_tags": len(registry.compound_tags),
        "rules": len(rules),
    }
