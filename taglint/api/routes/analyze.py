"""
TagLint — POST /analyze endpoint.

Accepts a batch of Java files, runs the tag → compound → rule → risk
pipeline on each and returns per-file results plus a batch summary.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from taglint.api.dependencies import get_batch_worker
from taglint.models.analysis_models import AnalyzeRequest, AnalyzeResponse
from taglint.workers.batch_worker import BatchWorker

router = APIRouter()


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_files(
    req: AnalyzeRequest,
    worker: BatchWorker = Depends(get_batch_worker),
):
    """Analyze Java files for rule violations."""
    if not req.files:
        return AnalyzeResponse(message="no_files")
    return await worker.run_batch(req.files, options=req.options)
