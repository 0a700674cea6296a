"""
Batch Worker — Async orchestrator fanning files out to the analyzer.

Pipeline:
1. Reject files above the size limit
2. Analyze remaining files in worker threads (bounded concurrency)
3. Record failures per file without aborting the batch
4. Assemble per-file results and the batch summary
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections import Counter

from taglint.core.analyzer import CodeAnalyzer
from taglint.models.analysis_models import (
    AnalyzeResponse,
    BatchSummary,
    FileAnalysis,
    FileFailure,
    FileInput,
)
from taglint.models.rule_models import MatchOptions

logger = logging.getLogger("taglint.worker")


class BatchWorker:
    """Runs CodeAnalyzer over many files concurrently."""

    def __init__(
        self,
        analyzer: CodeAnalyzer,
        max_concurrency: int = 4,
        max_file_size_bytes: int = 500_000,
    ) -> None:
        self.analyzer = analyzer
        self.max_concurrency = max(1, max_concurrency)
        self.max_file_size_bytes = max_file_size_bytes

    async def run_batch(
        self,
        files: list[FileInput],
        options: MatchOptions | None = None,
    ) -> AnalyzeResponse:
        """
        Analyze every file and summarize the batch.

        Args:
            files: Files to analyze
            options: Match options for every file; analyzer defaults when None

        Returns:
            AnalyzeResponse with results in input order.
        """
        batch_id = str(uuid.uuid4())[:8]
        start_time = time.monotonic()
        semaphore = asyncio.Semaphore(self.max_concurrency)

        logger.info(f"[{batch_id}] Starting batch of {len(files)} files")

        async def _run(file: FileInput) -> FileAnalysis:
            size = len(file.content.encode("utf-8"))
            if size > self.max_file_size_bytes:
                logger.warning(f"[{batch_id}] Rejected {file.path}: {size} bytes")
                return FileAnalysis(
                    path=file.path,
                    status="rejected",
                    error=f"File exceeds maximum size of {self.max_file_size_bytes} bytes",
                )
            async with semaphore:
                try:
                    return await asyncio.to_thread(
                        self.analyzer.analyze, file.content, file.path, options
                    )
                except Exception as e:
                    logger.exception(f"[{batch_id}] Analysis failed: {file.path}")
                    return FileAnalysis(path=file.path, status="failed", error=str(e))

        results = await asyncio.gather(*(_run(f) for f in files))

        elapsed_ms = (time.monotonic() - start_time) * 1000
        summary = summarize_batch(list(results), elapsed_ms)

        logger.info(
            f"[{batch_id}] Batch complete in {elapsed_ms:.0f}ms: "
            f"{summary.files_analyzed} analyzed, {summary.files_failed} failed, "
            f"{summary.files_rejected} rejected, {summary.violations_total} violations"
        )

        return AnalyzeResponse(
            message="analysis_complete",
            batch_id=batch_id,
            results=list(results),
            summary=summary,
        )


def summarize_batch(results: list[FileAnalysis], duration_ms: float = 0.0) -> BatchSummary:
    statuses = Counter(r.status for r in results)
    severities = Counter(v.severity.value for r in results for v in r.violations)
    return BatchSummary(
        files_total=len(results),
        files_analyzed=statuses["ok"],
        files_failed=statuses["failed"],
        files_rejected=statuses["rejected"],
        violations_total=sum(len(r.violations) for r in results),
        by_severity=dict(severities),
        failures=[
            FileFailure(index=i, path=r.path, status=r.status, reason=r.error or r.status)
            for i, r in enumerate(results)
            if r.status != "ok"
        ],
        duration_ms=round(duration_ms, 2),
    )
