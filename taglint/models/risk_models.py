"""
Risk Assessment Data Models — Explainable per-file risk level.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

RiskLevel = Literal["low", "medium", "high", "critical"]


class RiskContribution(BaseModel):
    """How one matched compound tag or violation adds to the risk score."""

    kind: Literal["compound_tag", "violation"]
    name: str = Field(..., description="Compound tag name or rule id")
    severity: str
    points: int


class RiskAssessment(BaseModel):
    """Full explainable breakdown of a file's risk level."""

    score: int = Field(default=0, ge=0, description="Sum of contribution points")
    level: RiskLevel = "low"
    contributions: list[RiskContribution] = Field(default_factory=list)
    formula: str = Field(
        default="score = Σ compound severity points + Σ violation severity points",
        description="Human-readable formula used",
    )
    summary: str = Field(default="", description="Human-readable risk summary")
