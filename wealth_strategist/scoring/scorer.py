"""
Strategic Benefit Score (SBS): converts a Finding into a 0–100 ranking score.

Score formula (weighted sum, clamped to 0–100)
-----------------------------------------------
    sbs = (
        financial_benefit  * 0.40   # money gained or saved
        + risk_reduction   * 0.25   # downside removed
        + cost_avoidance   * 0.15   # future cost avoided (derived, see below)
        + liquidity_impact * 0.10   # accessibility of funds
        + tax_impact       * 0.05   # tax benefit
        + data_confidence  * 0.05   # trust in the inputs
    )

Weights come from ``ScoringConfig`` and must sum to 1.0.

Component derivation
--------------------
financial_benefit, risk_reduction, liquidity_impact, tax_impact:
    Copied from ``Finding.impact`` and clamped to 0–100.  Negative liquidity
    or tax (the action costs liquidity / triggers tax) therefore contributes 0.

data_confidence:
    ``impact.confidence``; ``ScoringConfig.default_confidence`` (70) when unset.

cost_avoidance (not part of ImpactScore):
    refinance         : total lifetime saving / 500      ($50k → 100)
    consolidation     : annual saving / 50               ($5k/yr → 100)
    tax findings      : estimated tax saving / 100       ($10k → 100)
    emergency fund    : 90 when the fund is critically low
    everything else   : severity step (critical 80, high 60, medium 40, low 20)

SBS ratings
-----------
    CRITICAL ≥ 80 · HIGH ≥ 60 · MEDIUM ≥ 40 · LOW < 40
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable, Optional

from wealth_strategist.config import ScoringConfig
from wealth_strategist.models.finding import (
    CgtDiscountEvidence,
    ConsolidationEvidence,
    Finding,
    LossHarvestEvidence,
    RefinanceEvidence,
)
from wealth_strategist.taxonomy.strategy_taxonomy import FindingType, Severity

_DEFAULT_WEIGHTS = ScoringConfig()

_SEVERITY_COST_AVOIDANCE: dict[Severity, float] = {
    Severity.CRITICAL: 80.0,
    Severity.HIGH:     60.0,
    Severity.MEDIUM:   40.0,
    Severity.LOW:      20.0,
}

_EMERGENCY_CRITICAL_COST_AVOIDANCE = 90.0

_COMPONENT_LABELS: tuple[tuple[str, str, str], ...] = (
    ("financial_benefit", "Financial Benefit", "financial_weight"),
    ("risk_reduction",    "Risk Reduction",    "risk_weight"),
    ("cost_avoidance",    "Cost Avoidance",    "cost_avoidance_weight"),
    ("liquidity_impact",  "Liquidity Impact",  "liquidity_weight"),
    ("tax_impact",        "Tax Impact",        "tax_weight"),
    ("data_confidence",   "Data Confidence",   "confidence_weight"),
)


@dataclass
class ScoreComponents:
    """The six SBS inputs, each 0–100."""

    financial_benefit: float
    risk_reduction:    float
    cost_avoidance:    float
    liquidity_impact:  float
    tax_impact:        float
    data_confidence:   float

    @property
    def total(self) -> float:
        """SBS under the default weights."""
        return calculate_sbs(self)

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass
class ScoredFinding:
    """A finding paired with its score breakdown.

    Attributes:
        finding:    The analyzer output.
        analyzer:   Name of the analyzer that emitted it.
        components: SBS inputs.
        sbs:        Final score, 0–100, rounded to 2 decimals.
    """

    finding:    Finding
    analyzer:   str
    components: ScoreComponents
    sbs:        float

    @property
    def confidence(self) -> float:
        return self.components.data_confidence


def calculate_sbs(
    components: ScoreComponents,
    weights: Optional[ScoringConfig] = None,
) -> float:
    """Weighted SBS, clamped to 0–100 and rounded to 2 decimals."""
    w = weights or _DEFAULT_WEIGHTS
    total = (
        components.financial_benefit  * w.financial_weight
        + components.risk_reduction   * w.risk_weight
        + components.cost_avoidance   * w.cost_avoidance_weight
        + components.liquidity_impact * w.liquidity_weight
        + components.tax_impact       * w.tax_weight
        + components.data_confidence  * w.confidence_weight
    )
    return round(_clamp(total, 0.0, 100.0), 2)


def compute_components(
    finding: Finding,
    weights: Optional[ScoringConfig] = None,
) -> ScoreComponents:
    """Derive the six SBS inputs for one finding."""
    w = weights or _DEFAULT_WEIGHTS
    imp = finding.impact
    confidence = imp.confidence if imp.confidence is not None else w.default_confidence
    return ScoreComponents(
        financial_benefit=round(_clamp(imp.financial, 0.0, 100.0), 2),
        risk_reduction=round(_clamp(imp.risk, 0.0, 100.0), 2),
        cost_avoidance=round(cost_avoidance(finding), 2),
        liquidity_impact=round(_clamp(imp.liquidity, 0.0, 100.0), 2),
        tax_impact=round(_clamp(imp.tax, 0.0, 100.0), 2),
        data_confidence=round(_clamp(confidence, 0.0, 100.0), 2),
    )


def cost_avoidance(finding: Finding) -> float:
    """Future cost avoided by acting on ``finding``, 0–100."""
    ev = finding.evidence
    if isinstance(ev, RefinanceEvidence):
        return _clamp(ev.total_savings / 500.0, 0.0, 100.0)
    if isinstance(ev, ConsolidationEvidence):
        return _clamp(ev.monthly_savings * 12 / 50.0, 0.0, 100.0)
    if isinstance(ev, (LossHarvestEvidence, CgtDiscountEvidence)):
        return _clamp(ev.estimated_tax_saving / 100.0, 0.0, 100.0)
    if (
        finding.type == FindingType.CASHFLOW_EMERGENCY_LOW
        and finding.severity == Severity.CRITICAL
    ):
        return _EMERGENCY_CRITICAL_COST_AVOIDANCE
    return _SEVERITY_COST_AVOIDANCE[finding.severity]


def score_finding(
    finding: Finding,
    analyzer: str = "",
    weights: Optional[ScoringConfig] = None,
) -> ScoredFinding:
    components = compute_components(finding, weights)
    return ScoredFinding(
        finding=finding,
        analyzer=analyzer,
        components=components,
        sbs=calculate_sbs(components, weights),
    )


def score_findings(
    findings: Iterable[tuple[str, Finding]],
    weights: Optional[ScoringConfig] = None,
) -> list[ScoredFinding]:
    """Score ``(analyzer_name, finding)`` pairs, preserving input order."""
    return [score_finding(f, analyzer, weights) for analyzer, f in findings]


def rank_scored(scored: Iterable[ScoredFinding]) -> list[ScoredFinding]:
    """Sort by SBS descending; ties broken by finding id."""
    return sorted(scored, key=lambda s: (-s.sbs, s.finding.id))


def sbs_rating(sbs: float) -> str:
    """Rating label for an SBS value."""
    if sbs >= 80:
        return "CRITICAL"
    if sbs >= 60:
        return "HIGH"
    if sbs >= 40:
        return "MEDIUM"
    return "LOW"


def priority_for(sbs: float) -> int:
    """Action priority, 1 (most urgent) to 4."""
    return {"CRITICAL": 1, "HIGH": 2, "MEDIUM": 3, "LOW": 4}[sbs_rating(sbs)]


def explain_score(
    components: ScoreComponents,
    weights: Optional[ScoringConfig] = None,
) -> str:
    """Multi-line human-readable SBS breakdown.

    Example::

        Financial Benefit: 100.0 × 0.40 = 40.0
        Risk Reduction: 0.0 × 0.25 = 0.0
        ...
        Total SBS: 40
    """
    w = weights or _DEFAULT_WEIGHTS
    lines: list[str] = []
    for attr, label, weight_attr in _COMPONENT_LABELS:
        value = getattr(components, attr)
        weight = getattr(w, weight_attr)
        lines.append(f"{label}: {value:.1f} × {weight:.2f} = {value * weight:.1f}")
    lines.append(f"Total SBS: {calculate_sbs(components, w):g}")
    return "\n".join(lines)


# ── Helper ────────────────────────────────────────────────────────────────────

def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))
