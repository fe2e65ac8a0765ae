"""
Tests for wealth_strategist/synthesis/recommendations.py.

What we test
------------
Classification:
  - category_for() maps each finding-type prefix; RISK_ and LIQUIDITY_ share
    RISK_RESILIENCE and unprefixed types fall back to GROWTH.
  - strategy_type_for() maps severity to horizon.
  - confidence_tier() boundaries at 80 / 60.

Impact sub-objects:
  - Refinance carries monthly / total savings and the upfront cost.
  - risk_impact() wording at each score band.
  - Liquidity impact names the cash an action needs.

build_recommendation():
  - id is "<user>-<finding>", expiry is created_at + TTL.
  - The reasoning trace has title, analysis, recommendation, evidence and
    score sections.
  - Priority is banded from the SBS.
  - Affected entities are extracted from evidence and deduplicated.
  - Evidence without a formatter raises TypeError.
  - The evidence graph carries the analyzer name and flattened facts.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import BaseModel

from wealth_strategist.models.finding import (
    Finding,
    GeographicEvidence,
    ImpactScore,
    LossHarvestEvidence,
    OffsetEvidence,
)
from wealth_strategist.scoring.scorer import priority_for, score_finding
from wealth_strategist.synthesis.recommendations import (
    build_recommendation,
    category_for,
    confidence_tier,
    evidence_lines,
    extract_affected_entities,
    financial_impact,
    liquidity_impact,
    risk_impact,
    strategy_type_for,
)
from wealth_strategist.taxonomy.strategy_taxonomy import (
    ConfidenceTier,
    EntityType,
    FindingType,
    Severity,
    StrategyCategory,
    StrategyType,
)


# ── Classification ────────────────────────────────────────────────────────────

class TestClassification:
    @pytest.mark.parametrize(
        "finding_type, category",
        [
            (FindingType.DEBT_REFINANCE, StrategyCategory.DEBT),
            (FindingType.CASHFLOW_DEFICIT, StrategyCategory.CASHFLOW),
            (FindingType.INVESTMENT_REBALANCE, StrategyCategory.INVESTMENT),
            (FindingType.PROPERTY_LOW_YIELD, StrategyCategory.PROPERTY),
            (FindingType.RISK_HIGH_LEVERAGE, StrategyCategory.RISK_RESILIENCE),
            (FindingType.LIQUIDITY_CASH_LOW, StrategyCategory.RISK_RESILIENCE),
            (FindingType.TAX_LOSS_HARVEST, StrategyCategory.GROWTH),
            (FindingType.RETIREMENT_SHORTFALL, StrategyCategory.GROWTH),
        ],
    )
    def test_category(self, finding_type, category):
        assert category_for(finding_type) == category

    @pytest.mark.parametrize(
        "severity, strategy_type",
        [
            (Severity.CRITICAL, StrategyType.TACTICAL),
            (Severity.HIGH, StrategyType.OPERATIONAL),
            (Severity.MEDIUM, StrategyType.STRATEGIC),
            (Severity.LOW, StrategyType.LONG_TERM),
        ],
    )
    def test_strategy_type(self, severity, strategy_type):
        assert strategy_type_for(severity) == strategy_type

    @pytest.mark.parametrize(
        "confidence, tier",
        [
            (95.0, ConfidenceTier.HIGH),
            (80.0, ConfidenceTier.HIGH),
            (79.9, ConfidenceTier.MEDIUM),
            (60.0, ConfidenceTier.MEDIUM),
            (59.9, ConfidenceTier.LOW),
        ],
    )
    def test_confidence_tier(self, confidence, tier):
        assert confidence_tier(confidence) == tier


# ── Impact sub-objects ────────────────────────────────────────────────────────

class TestImpacts:
    def test_refinance_financial_impact(self, finding_factory):
        fin = financial_impact(finding_factory(FindingType.DEBT_REFINANCE))
        assert fin.score == 60
        assert fin.monthly_savings == pytest.approx(335.12)
        assert fin.total_savings == pytest.approx(72_428.8)
        assert fin.upfront_cost == pytest.approx(8_000.0)
        assert fin.headline_amount() == pytest.approx(335.12)

    def test_tax_saving_is_headline_when_no_monthly(self, finding_factory):
        evidence = LossHarvestEvidence(holding_ids=("a",), total_loss=5_000, estimated_tax_saving=1_500)
        finding = finding_factory(FindingType.TAX_LOSS_HARVEST, id="loss-harvest", evidence=evidence)
        fin = financial_impact(finding)
        assert fin.monthly_savings is None
        assert fin.headline_amount() == pytest.approx(1_500.0)

    @pytest.mark.parametrize(
        "risk, wording",
        [
            (85, "Significantly reduces financial risk"),
            (70, "Significantly reduces financial risk"),
            (40, "Moderately reduces financial risk"),
            (5, "Slightly reduces financial risk"),
            (0, "No material change to financial risk"),
            (-20, "Increases exposure to financial risk"),
        ],
    )
    def test_risk_wording(self, finding_factory, risk, wording):
        finding = finding_factory(
            FindingType.DEBT_HIGH_DTI,
            impact=ImpactScore(financial=10, risk=risk, liquidity=0, tax=0),
        )
        impact = risk_impact(finding)
        assert impact.score == risk
        assert impact.description == wording

    def test_cash_required(self, finding_factory):
        assert liquidity_impact(finding_factory(FindingType.DEBT_EARLY_REPAY)).cash_required == 650.0
        assert liquidity_impact(finding_factory(FindingType.CASHFLOW_EMERGENCY_LOW)).cash_required == 12_000.0
        assert liquidity_impact(finding_factory(FindingType.DEBT_HIGH_DTI)).cash_required is None


# ── Record ────────────────────────────────────────────────────────────────────

class TestBuildRecommendation:
    def test_identity_and_expiry(self, finding_factory, fixed_now):
        scored = score_finding(finding_factory(FindingType.DEBT_REFINANCE), analyzer="DebtAnalyzer")
        rec = build_recommendation(scored, "u-1", fixed_now)
        assert rec.id == "u-1-debt_refinance-loan-1"
        assert rec.finding_id == "debt_refinance-loan-1"
        assert rec.user_id == "u-1"
        assert rec.created_at == fixed_now
        assert rec.expires_at == fixed_now + timedelta(days=30)
        assert rec.category == StrategyCategory.DEBT
        assert rec.strategy_type == StrategyType.STRATEGIC
        assert rec.confidence == ConfidenceTier.HIGH
        assert rec.sbs_score == scored.sbs
        assert rec.score_components == scored.components.as_dict()
        assert rec.priority == priority_for(scored.sbs)

    def test_custom_ttl(self, finding_factory, fixed_now):
        scored = score_finding(finding_factory())
        rec = build_recommendation(scored, "u-1", fixed_now, ttl_days=7)
        assert rec.expires_at == fixed_now + timedelta(days=7)

    def test_reasoning_trace_sections(self, finding_factory, fixed_now):
        scored = score_finding(finding_factory(FindingType.DEBT_REFINANCE))
        trace = build_recommendation(scored, "u-1", fixed_now).reasoning_trace
        assert trace.startswith("### Test DEBT_REFINANCE")
        for heading in ("**Analysis:**", "**Recommendation:**", "**Evidence:**", "**Impact Score:**"):
            assert heading in trace
        assert "Refinance costs $8,000, break-even in 24 months" in trace
        assert trace.splitlines()[-1] == f"**Strategic Benefit Score:** {scored.sbs:.1f}"

    def test_evidence_graph(self, finding_factory, fixed_now):
        scored = score_finding(finding_factory(FindingType.DEBT_REFINANCE), analyzer="DebtAnalyzer")
        graph = build_recommendation(scored, "u-1", fixed_now).evidence_graph
        assert graph.analyzer == "DebtAnalyzer"
        assert "snapshot.loans" in graph.data_sources
        assert graph.facts["loan_id"] == "loan-1"
        assert "kind" not in graph.facts

    def test_alternatives_attached(self, finding_factory, fixed_now):
        from wealth_strategist.synthesis.alternatives import generate_alternatives

        scored = score_finding(finding_factory())
        rec = build_recommendation(scored, "u-1", fixed_now, alternatives=generate_alternatives(scored))
        assert [a.label for a in rec.alternatives] == ["CONSERVATIVE", "AGGRESSIVE"]


class TestAffectedEntities:
    def test_single_loan(self, finding_factory):
        (entity,) = extract_affected_entities(finding_factory(FindingType.DEBT_REFINANCE, loan_id="car"))
        assert entity.entity_type == EntityType.LOAN
        assert entity.entity_id == "car"
        assert entity.key == "LOAN-car"

    def test_holdings_deduplicated(self, finding_factory):
        evidence = LossHarvestEvidence(holding_ids=("a", "b", "a"), total_loss=5_000, estimated_tax_saving=1_500)
        finding = finding_factory(FindingType.TAX_LOSS_HARVEST, id="loss-harvest", evidence=evidence)
        assert [e.key for e in extract_affected_entities(finding)] == ["INVESTMENT-a", "INVESTMENT-b"]

    def test_no_entities(self, finding_factory):
        assert extract_affected_entities(finding_factory(FindingType.DEBT_HIGH_DTI)) == ()

    def test_offset_names_its_loan(self, finding_factory):
        evidence = OffsetEvidence(
            loan_id="home", loan_rate=0.06, offset_balance=0, available_cash=30_000,
            potential_offset=12_000, additional_offset=12_000, yearly_savings=720,
        )
        finding = finding_factory(FindingType.DEBT_OFFSET_OPTIMIZE, id="offset-home", evidence=evidence)
        assert [e.key for e in extract_affected_entities(finding)] == ["LOAN-home"]

    def test_properties_in_one_location(self, finding_factory):
        evidence = GeographicEvidence(location="Sydney", property_ids=("p1", "p2"))
        finding = finding_factory(FindingType.RISK_GEOGRAPHIC, id="geo-sydney", evidence=evidence)
        assert [e.key for e in extract_affected_entities(finding)] == ["PROPERTY-p1", "PROPERTY-p2"]


class TestEvidenceLines:
    def test_unknown_evidence_rejected(self, finding_factory):
        class _StrayEvidence(BaseModel):
            kind: str = "stray"

        base = finding_factory(FindingType.DEBT_HIGH_DTI)
        finding = Finding.model_construct(**(dict(base) | {"evidence": _StrayEvidence()}))
        with pytest.raises(TypeError, match="'stray'"):
            evidence_lines(finding)

    def test_geographic_lines(self, finding_factory):
        evidence = GeographicEvidence(location="Sydney", property_ids=("p1", "p2"))
        finding = finding_factory(FindingType.RISK_GEOGRAPHIC, id="geo-sydney", evidence=evidence)
        assert evidence_lines(finding) == ["Location: Sydney", "Properties: p1, p2"]
