"""
Risk Scoring Engine — Computes an explainable risk level for one file.

Risk Score = Σ compound severity points + Σ violation severity points

Each matched compound tag and each violation is individually traced.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from taglint.models.risk_models import RiskAssessment, RiskContribution, RiskLevel
from taglint.models.rule_models import Severity, Violation
from taglint.models.tag_models import CompoundTagResult

COMPOUND_POINTS: dict[Severity, int] = {
    Severity.CRITICAL: 10,
    Severity.HIGH: 5,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}

VIOLATION_POINTS: dict[Severity, int] = {
    Severity.CRITICAL: 8,
    Severity.HIGH: 4,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}

# (minimum score, level), checked top-down
LEVEL_THRESHOLDS: tuple[tuple[int, RiskLevel], ...] = (
    (15, "critical"),
    (8, "high"),
    (3, "medium"),
)


def risk_level(score: int) -> RiskLevel:
    for minimum, level in LEVEL_THRESHOLDS:
        if score >= minimum:
            return level
    return "low"


def compute_risk(
    compound_results: Mapping[str, CompoundTagResult],
    violations: Iterable[Violation] = (),
) -> RiskAssessment:
    """
    Compute an explainable risk assessment.

    Args:
        compound_results: Output of resolve_compound_tags (unmatched entries are ignored)
        violations: Violations from RuleMatcher.match_rules

    Returns:
        RiskAssessment with per-item contributions, total score and level.
    """
    contributions: list[RiskContribution] = []

    for name, result in compound_results.items():
        if not result.matched:
            continue
        contributions.append(
            RiskContribution(
                kind="compound_tag",
                name=name,
                severity=result.severity.value,
                points=COMPOUND_POINTS[result.severity],
            )
        )

    for v in violations:
        contributions.append(
            RiskContribution(
                kind="violation",
                name=v.rule_id,
                severity=v.severity.value,
                points=VIOLATION_POINTS[v.severity],
            )
        )

    if not contributions:
        return RiskAssessment(
            score=0,
            level="low",
            contributions=[],
            summary="No compound tags or violations detected. Risk is low.",
        )

    score = sum(c.points for c in contributions)
    level = risk_level(score)

    compound_count = sum(1 for c in contributions if c.kind == "compound_tag")
    violation_count = len(contributions) - compound_count
    severity_counts = {
        severity: sum(1 for c in contributions if c.severity == severity.value)
        for severity in Severity
    }
    parts = [f"{count} {severity.value.lower()}" for severity, count in severity_counts.items() if count]

    summary = (
        f"Risk {level} (score {score}) from {compound_count} compound tags and "
        f"{violation_count} violations ({', '.join(parts)})."
    )

    return RiskAssessment(
        score=score,
        level=level,
        contributions=contributions,
        summary=summary,
    )
