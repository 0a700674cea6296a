"""
Tests for Batch Worker — concurrency, per-file failures and summary.
"""

import asyncio

from taglint.core.analyzer import CodeAnalyzer
from taglint.models.analysis_models import FileInput
from taglint.workers.batch_worker import BatchWorker


class _ExplodingAnalyzer(CodeAnalyzer):
    def analyze(self, source, path="", options=None):
        if "explode" in source:
            raise RuntimeError("boom")
        return super().analyze(source, path, options)


def test_batch_analyzes_every_file(registry, rules, leaky_dao_code, safe_service_code):
    worker = BatchWorker(CodeAnalyzer(registry, rules), max_concurrency=2)
    files = [
        FileInput(path="UserDao.java", content=leaky_dao_code),
        FileInput(path="UserService.java", content=safe_service_code),
    ]
    response = asyncio.run(worker.run_batch(files))

    assert response.message == "analysis_complete"
    assert [r.path for r in response.results] == ["UserDao.java", "UserService.java"]
    assert response.summary.files_total == 2
    assert response.summary.files_analyzed == 2
    assert response.summary.violations_total == len(response.results[0].violations)
    assert response.summary.by_severity["CRITICAL"] >= 1


def test_failing_file_does_not_abort_batch(registry, rules, safe_service_code):
    worker = BatchWorker(_ExplodingAnalyzer(registry, rules))
    files = [
        FileInput(path="Bad.java", content="// explode"),
        FileInput(path="Good.java", content=safe_service_code),
    ]
    response = asyncio.run(worker.run_batch(files))

    bad, good = response.results
    assert bad.status == "failed"
    assert "boom" in bad.error
    assert good.status == "ok"
    assert response.summary.files_failed == 1
    assert response.summary.files_analyzed == 1
    [failure] = response.summary.failures
    assert (failure.index, failure.path, failure.status, failure.reason) == (0, "Bad.java", "failed", "boom")


def test_oversize_file_rejected(registry, rules):
    worker = BatchWorker(CodeAnalyzer(registry, rules), max_file_size_bytes=10)
    response = asyncio.run(worker.run_batch([FileInput(path="Big.java", content="x" * 11)]))
    assert response.results[0].status == "rejected"
    assert response.summary.files_rejected == 1


def test_failures_with_same_path_are_all_reported(registry, rules):
    worker = BatchWorker(_ExplodingAnalyzer(registry, rules), max_file_size_bytes=100)
    files = [
        FileInput(path="Dup.java", content="// explode"),
        FileInput(path="Dup.java", content="x" * 101),
        FileInput(path="Dup.java", content="// explode again"),
    ]
    summary = asyncio.run(worker.run_batch(files)).summary

    assert summary.files_failed == 2
    assert summary.files_rejected == 1
    assert len(summary.failures) == 3
    assert [f.index for f in summary.failures] == [0, 1, 2]
    assert [f.status for f in summary.failures] == ["failed", "rejected", "failed"]
