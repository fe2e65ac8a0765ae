"""
Recommendation and conflict output models.

``StrategyRecommendation`` is the record handed to the persistence layer: one
per scored, safeguard-passed finding, with its impact broken into four
sub-objects, a markdown reasoning trace and an evidence graph.

``ConflictGroup`` is a set of recommendations that cannot all be adopted.
Groups are recomputed from scratch on every run and never mutated.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from wealth_strategist.taxonomy.strategy_taxonomy import (
    ConfidenceTier,
    ConflictType,
    EntityType,
    FindingType,
    Severity,
    StrategyCategory,
    StrategyType,
)

AlternativeLabel = Literal["CONSERVATIVE", "AGGRESSIVE"]
RiskLevel = Literal["LOW", "MEDIUM", "HIGH"]


class FinancialImpact(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: float
    monthly_savings: Optional[float] = None
    total_savings: Optional[float] = None
    upfront_cost: Optional[float] = None

    def headline_amount(self) -> float:
        """Monthly savings, else total savings, else 0."""
        if self.monthly_savings:
            return self.monthly_savings
        if self.total_savings:
            return self.total_savings
        return 0.0


class RiskImpact(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: float
    description: str


class LiquidityImpact(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: float
    cash_required: Optional[float] = None


class TaxImpact(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: float
    estimated_saving: Optional[float] = None


class AffectedEntity(BaseModel):
    model_config = ConfigDict(frozen=True)

    entity_type: EntityType
    entity_id: str

    @property
    def key(self) -> str:
        return f"{self.entity_type}-{self.entity_id}"


class EvidenceGraph(BaseModel):
    """Where a recommendation's numbers came from.

    Attributes:
        data_sources: Packet sections consulted, e.g. ``("snapshot.loans",)``.
        facts: Flattened evidence fields.
        analyzer: Name of the analyzer that emitted the finding.
    """

    model_config = ConfigDict(frozen=True)

    analyzer: str
    data_sources: tuple[str, ...]
    facts: dict[str, Any]


class Alternative(BaseModel):
    """A more cautious or more ambitious variant of a recommendation."""

    model_config = ConfigDict(frozen=True)

    label: AlternativeLabel
    title: str
    description: str
    financial_impact: float
    risk_level: RiskLevel
    pros: tuple[str, ...]
    cons: tuple[str, ...]


class StrategyRecommendation(BaseModel):
    """Persistable recommendation record.

    Attributes:
        id: ``"<user_id>-<finding_id>"``; unique per user per run.
        sbs_score: Strategic Benefit Score, 0–100.
        priority: 1 (act first) to 4, banded from the SBS.
        score_components: The six SBS inputs, for explainability.
        reasoning_trace: Markdown explanation (title, analysis, evidence).
        expires_at: ``created_at`` + the configured TTL (30 days).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    finding_id: str
    finding_type: FindingType
    category: StrategyCategory
    strategy_type: StrategyType
    severity: Severity
    title: str
    summary: str
    suggested_action: str
    sbs_score: float
    priority: int = Field(ge=1, le=4)
    score_components: dict[str, float]
    confidence: ConfidenceTier
    confidence_score: float
    financial_impact: FinancialImpact
    risk_impact: RiskImpact
    liquidity_impact: LiquidityImpact
    tax_impact: TaxImpact
    reasoning_trace: str
    evidence_graph: EvidenceGraph
    affected_entities: tuple[AffectedEntity, ...] = ()
    alternatives: tuple[Alternative, ...] = ()
    created_at: datetime
    expires_at: datetime

    @field_validator("sbs_score")
    @classmethod
    def validate_sbs(cls, v: float) -> float:
        if not 0.0 <= v <= 100.0:
            raise ValueError(f"sbs_score must be in [0, 100], got {v}.")
        return v

    @model_validator(mode="after")
    def validate_expiry(self) -> "StrategyRecommendation":
        if self.expires_at <= self.created_at:
            raise ValueError("expires_at must be after created_at.")
        return self


class TradeoffOption(BaseModel):
    """One row of a conflict group's trade-off table."""

    model_config = ConfigDict(frozen=True)

    recommendation_id: str
    title: str
    sbs_score: float
    financial_impact: float
    pros: tuple[str, ...]
    cons: tuple[str, ...]


class ConflictGroup(BaseModel):
    """Recommendations that cannot all be adopted simultaneously.

    Attributes:
        id: Deterministic group id, e.g.
            ``"mutually-exclusive-DEBT_REFINANCE-DEBT_EARLY_REPAY"``.
        type: Why they conflict.
        recommendations: Members, at least two.
        tradeoffs: One row per member, same order as ``recommendations``.
        suggested_resolution: Human-readable advice naming the winner.
        preferred_id: Id of the recommended option.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: ConflictType
    recommendations: tuple[StrategyRecommendation, ...]
    tradeoffs: tuple[TradeoffOption, ...]
    suggested_resolution: str
    preferred_id: str

    @model_validator(mode="after")
    def validate_members(self) -> "ConflictGroup":
        if len(self.recommendations) < 2:
            raise ValueError(
                f"A conflict group needs at least 2 recommendations, got "
                f"{len(self.recommendations)}."
            )
        member_ids = {r.id for r in self.recommendations}
        if self.preferred_id not in member_ids:
            raise ValueError(f"preferred_id '{self.preferred_id}' is not a group member.")
        return self

    @property
    def recommendation_ids(self) -> list[str]:
        return [r.id for r in self.recommendations]
