"""
Tests for the pydantic models in wealth_strategist/models/.

What we test
------------
  - ImpactScore sub-scores are bounded to [-100, 100]; confidence may be unset.
  - Finding rejects evidence whose kind does not match its type, and
    evidence is parsed from a dict through the ``kind`` discriminator.
  - Every finding type has an evidence kind.
  - Loan rates are fractions; payment() amortises and handles 0%.
  - UserPreferences upper-cases the risk appetite.
  - StrategyRecommendation bounds the SBS and requires expiry after creation.
  - ConflictGroup needs two members and a member as preferred_id.
  - ForecastResult requires ages to step by one.
  - Models are frozen.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from wealth_strategist.models.finding import (
    EVIDENCE_KIND_BY_TYPE,
    Finding,
    ImpactScore,
)
from wealth_strategist.models.forecast import (
    ForecastAssumptions,
    ForecastResult,
    ForecastSummary,
    YearlyProjection,
)
from wealth_strategist.models.recommendation import ConflictGroup, FinancialImpact
from wealth_strategist.models.snapshot import Loan, UserPreferences
from wealth_strategist.scoring.scorer import score_finding
from wealth_strategist.synthesis.conflicts import build_tradeoffs
from wealth_strategist.synthesis.recommendations import build_recommendation
from wealth_strategist.taxonomy.strategy_taxonomy import (
    ConflictType,
    FindingType,
    RiskAppetite,
    Scenario,
)


def _finding_dict(**overrides):
    values = {
        "id": "dti-high",
        "type": "DEBT_HIGH_DTI",
        "severity": "high",
        "title": "High DTI",
        "description": "Repayments are a large share of income.",
        "impact": {"financial": 50, "risk": 80, "liquidity": 20, "tax": 0},
        "evidence": {
            "kind": "debt_to_income", "ratio": 0.5, "monthly_debt": 4_000,
            "monthly_income": 8_000, "threshold": 0.43,
        },
        "suggested_action": "Pay down debt.",
    }
    values.update(overrides)
    return values


# ── Findings ──────────────────────────────────────────────────────────────────

class TestImpactScore:
    def test_bounds(self):
        with pytest.raises(ValidationError, match="\\[-100, 100\\]"):
            ImpactScore(financial=101, risk=0, liquidity=0, tax=0)
        with pytest.raises(ValidationError):
            ImpactScore(financial=0, risk=0, liquidity=-101, tax=0)

    def test_confidence_optional(self):
        assert ImpactScore(financial=0, risk=0, liquidity=0, tax=0).confidence is None


class TestFinding:
    def test_parsed_from_dict(self):
        finding = Finding.model_validate(_finding_dict())
        assert finding.type == FindingType.DEBT_HIGH_DTI
        assert finding.evidence.kind == "debt_to_income"
        assert finding.evidence.ratio == 0.5

    def test_mismatched_evidence_rejected(self):
        with pytest.raises(ValidationError, match="'debt_to_income' evidence"):
            Finding.model_validate(_finding_dict(evidence={
                "kind": "diversification", "holding_count": 2, "minimum": 5,
            }))

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            Finding.model_validate(_finding_dict(evidence={"kind": "horoscope"}))

    def test_every_type_has_evidence_kind(self):
        assert set(EVIDENCE_KIND_BY_TYPE) == set(FindingType)

    def test_frozen(self):
        finding = Finding.model_validate(_finding_dict())
        with pytest.raises(ValidationError):
            finding.title = "changed"


# ── Snapshot ──────────────────────────────────────────────────────────────────

class TestSnapshotModels:
    def test_percentage_rate_rejected(self):
        with pytest.raises(ValidationError):
            Loan(id="l", balance=1_000, interest_rate=6.0)

    def test_payment_amortises(self):
        loan = Loan(id="l", balance=400_000, interest_rate=0.06, remaining_months=240)
        assert loan.payment() == pytest.approx(2_865.72, abs=0.5)

    def test_zero_rate_payment(self):
        loan = Loan(id="l", balance=12_000, interest_rate=0.0, remaining_months=12)
        assert loan.payment() == pytest.approx(1_000.0)

    def test_appetite_normalised(self):
        assert UserPreferences(risk_appetite="aggressive").risk_appetite == RiskAppetite.AGGRESSIVE


# ── Recommendations and conflicts ─────────────────────────────────────────────

class TestRecommendationModels:
    def test_sbs_bounds(self, finding_factory, fixed_now):
        rec = build_recommendation(score_finding(finding_factory()), "u-1", fixed_now)
        with pytest.raises(ValidationError, match="sbs_score"):
            rec.model_validate(rec.model_dump() | {"sbs_score": 100.5})

    def test_expiry_after_creation(self, finding_factory, fixed_now):
        rec = build_recommendation(score_finding(finding_factory()), "u-1", fixed_now)
        with pytest.raises(ValidationError, match="expires_at"):
            rec.model_validate(rec.model_dump() | {"expires_at": fixed_now - timedelta(days=1)})

    def test_headline_amount(self):
        assert FinancialImpact(score=1, monthly_savings=300, total_savings=9_000).headline_amount() == 300
        assert FinancialImpact(score=1, total_savings=9_000).headline_amount() == 9_000
        assert FinancialImpact(score=1).headline_amount() == 0.0

    def _group(self, recs, preferred_id):
        return ConflictGroup(
            id="g",
            type=ConflictType.SAME_ENTITY,
            recommendations=tuple(recs),
            tradeoffs=build_tradeoffs(recs),
            suggested_resolution="pick one",
            preferred_id=preferred_id,
        )

    def test_group_needs_two_members(self, finding_factory, fixed_now):
        rec = build_recommendation(score_finding(finding_factory()), "u-1", fixed_now)
        with pytest.raises(ValidationError, match="at least 2"):
            self._group([rec], rec.id)

    def test_preferred_must_be_member(self, finding_factory, fixed_now):
        a = build_recommendation(score_finding(finding_factory(loan_id="a")), "u-1", fixed_now)
        b = build_recommendation(score_finding(finding_factory(loan_id="b")), "u-1", fixed_now)
        with pytest.raises(ValidationError, match="not a group member"):
            self._group([a, b], "someone-else")
        assert self._group([a, b], b.id).recommendation_ids == [a.id, b.id]


# ── Forecast ──────────────────────────────────────────────────────────────────

def _year(age: int) -> YearlyProjection:
    return YearlyProjection(
        year=2026 + age, age=age, net_worth=0, property_value=0, investment_value=0,
        cash_value=0, debt_value=0, income=0, expenses=0, surplus=0,
    )


def _summary() -> ForecastSummary:
    return ForecastSummary(
        current_age=40, retirement_age=65, years_to_retirement=25, current_net_worth=0,
        net_worth_at_retirement=0, final_net_worth=0, projected_retirement_income=0,
        replacement_ratio=0, can_retire_comfortably=False,
    )


class TestForecastModels:
    def test_ages_must_step_by_one(self):
        with pytest.raises(ValidationError):
            ForecastResult(
                scenario=Scenario.DEFAULT,
                assumptions=ForecastAssumptions(),
                projections=(_year(40), _year(42)),
                summary=_summary(),
            )

    def test_consecutive_ages_accepted(self):
        result = ForecastResult(
            scenario=Scenario.DEFAULT,
            assumptions=ForecastAssumptions(),
            projections=(_year(40), _year(41), _year(42)),
            summary=_summary(),
        )
        assert len(result.projections) == 3

    def test_assumption_ages_positive(self):
        with pytest.raises(ValidationError):
            ForecastAssumptions(life_expectancy=0)
