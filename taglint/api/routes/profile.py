"""
TagLint — POST /profile endpoint.

Returns one file's tag profile and compound tag results, without rule
matching.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, HTTPException

from taglint.api.dependencies import get_analyzer
from taglint.config import settings
from taglint.core.analyzer import CodeAnalyzer
from taglint.models.analysis_models import ProfileRequest, ProfileResponse

router = APIRouter()


@router.post("/profile", response_model=ProfileResponse)
async def profile_file(
    req: ProfileRequest,
    analyzer: CodeAnalyzer = Depends(get_analyzer),
):
    """Extract tags from a single Java file."""
    if len(req.content.encode("utf-8")) > settings.max_file_size_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"File exceeds maximum size of {settings.max_file_size_bytes} bytes",
        )

    profile, compound_results, summary = await asyncio.to_thread(analyzer.profile, req.content)

    return ProfileResponse(
        path=req.path,
        tags=sorted(profile.tags),
        tag_details=profile.details,
        compound_tags=compound_results,
        categories=analyzer.infer_categories(profile.tags),
        stats=profile.stats.model_dump(),
        syntax_parsed=summary is not None,
    )
